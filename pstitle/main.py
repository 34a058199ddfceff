import argparse
from dataclasses import replace
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from pstitle.config import BACKENDS, Settings, get_settings
from pstitle.database import build_session_factory
from pstitle.faults import PipelineFault
from pstitle.runner import LookupRunner
from pstitle.styles import Palette, write_logo


def parse_args(settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulates online information lookup for records.")
    parser.add_argument("-c", "--count", type=int, default=settings.record_count, help="Total number of records.")
    parser.add_argument(
        "-s", "--skip", type=int, default=settings.skip, help="Number of records already processed."
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Continue after the records processed by the last finished run (ignores --skip)",
    )
    parser.add_argument(
        "--delay-rate-limit",
        type=int,
        default=settings.delay_rate_limit_ms,
        help="Number of milliseconds to sleep per record.",
    )
    parser.add_argument(
        "--delay-auth", type=int, default=settings.delay_auth_ms, help="Number of milliseconds authentication takes."
    )
    parser.add_argument(
        "--delay-retrieve",
        type=int,
        default=settings.delay_retrieve_ms,
        help="Number of milliseconds information retrieval takes.",
    )
    parser.add_argument(
        "--delay-persist",
        type=int,
        default=settings.delay_persist_ms,
        help="Number of milliseconds writing one record takes.",
    )
    parser.add_argument(
        "--persist-workers",
        type=int,
        default=settings.persist_workers,
        help="Maximum number of records written concurrently.",
    )
    parser.add_argument("--backend", default=settings.backend, choices=list(BACKENDS), help="Scheduling backend")
    parser.add_argument("--no-progress", action="store_true", help="do not render the progress bar")
    parser.add_argument("--no-color", action="store_true", help="do not style terminal output")

    args = parser.parse_args()
    if args.count < 0:
        parser.error("--count must not be negative")
    if not args.resume and not 0 <= args.skip <= args.count:
        parser.error("--skip must be between 0 and --count")
    if args.persist_workers < 1:
        parser.error("--persist-workers must be at least 1")
    return args


def main() -> None:
    settings = get_settings()
    args = parse_args(settings)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    settings = replace(
        settings,
        record_count=args.count,
        skip=args.skip,
        delay_rate_limit_ms=args.delay_rate_limit,
        delay_auth_ms=args.delay_auth,
        delay_retrieve_ms=args.delay_retrieve,
        delay_persist_ms=args.delay_persist,
        persist_workers=args.persist_workers,
        backend=args.backend,
        show_progress=settings.show_progress and not args.no_progress,
        use_color=settings.use_color and not args.no_color and sys.stderr.isatty(),
    )
    palette = Palette.default() if settings.use_color else Palette.plain()

    try:
        write_logo(palette, sys.stderr)
        session_factory = build_session_factory(settings.database_url)
        runner = LookupRunner(settings, session_factory, palette=palette)
        result = runner.run(resume=args.resume)
    except (PipelineFault, SQLAlchemyError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(
        "run_id={run_id} status={status} total={total} skipped={skipped} processed={processed} missing_info={missing} errors={errors}".format(
            run_id=result.run_id,
            status=result.status,
            total=result.record_count,
            skipped=result.skipped,
            processed=result.successful,
            missing=result.info_missing,
            errors=result.failed,
        )
    )


if __name__ == "__main__":
    main()
