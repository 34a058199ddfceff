import logging
import sys
from typing import TextIO

from rich.console import Console
from sqlalchemy.orm import Session, sessionmaker

from pstitle import step_logic
from pstitle.aggregator import AsyncEventMerge, ProgressAggregator, ThreadedEventMerge
from pstitle.config import BACKENDS, Settings
from pstitle.faults import PipelineFault
from pstitle.interrupts import InterruptSource, interrupt_handler
from pstitle.pipeline import AsyncPipeline, StageDelays, Stages, ThreadedPipeline
from pstitle.progress import ProgressTracker
from pstitle.report import Report, render_report, write_report
from pstitle.run_store import create_run, mark_run_failed, mark_run_finished, resume_offset
from pstitle.schemas import RunResult
from pstitle.styles import Palette


logger = logging.getLogger(__name__)


class LookupRunner:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker[Session],
        *,
        stages: Stages | None = None,
        palette: Palette | None = None,
        stream: TextIO | None = None,
        interrupt: InterruptSource | None = None,
    ) -> None:
        if settings.backend not in BACKENDS:
            raise ValueError(f"unknown backend '{settings.backend}', expected one of {', '.join(BACKENDS)}")
        self.settings = settings
        self.session_factory = session_factory
        self.stages = stages or Stages(StageDelays.from_settings(settings))
        self.palette = palette or (Palette.default() if settings.use_color else Palette.plain())
        self.stream = stream
        self.interrupt = interrupt

    def run(self, *, resume: bool = False) -> RunResult:
        stream = self.stream or sys.stderr
        record_count = self.settings.record_count
        interrupt = self.interrupt or InterruptSource()

        with interrupt_handler(interrupt):
            credentials = step_logic.read_credentials(self.settings.api_token)
            records = step_logic.stream_records(record_count)

            with self.session_factory() as db:
                if resume:
                    offset = resume_offset(db, record_count=record_count)
                else:
                    offset = step_logic.read_output_file(self.settings.skip, record_count)

                report = Report(skipped=offset)
                tracker = ProgressTracker(
                    record_count,
                    offset,
                    visible=self.settings.show_progress,
                    console=Console(file=stream),
                )
                aggregator, pipeline = self._build_backend(interrupt, report, tracker)

                run = create_run(db, backend=self.settings.backend, record_count=record_count, skipped=offset)
                logger.info(
                    "lookup run started",
                    extra={"run_id": run.id, "record_count": record_count, "skipped": offset},
                )

                tracker.start()
                try:
                    pipeline.run(records, credentials, offset)
                except Exception as exc:
                    tracker.finish()
                    mark_run_failed(db, run, error=str(exc), report=report)
                    logger.exception("lookup run failed", extra={"run_id": run.id, "error": str(exc)})
                    if isinstance(exc, PipelineFault):
                        raise
                    raise PipelineFault(f"lookup run failed: {exc}") from exc
                finally:
                    aggregator.close()

                tracker.finish()
                report_text = render_report(report, self.palette)
                write_report(report_text, stream)

                mark_run_finished(db, run, report=report, interrupted=aggregator.interrupted)
                logger.info(
                    "lookup run finished",
                    extra={"run_id": run.id, "status": run.status, "observed": report.observed},
                )

                return RunResult(
                    run_id=run.id,
                    status=run.status,
                    record_count=record_count,
                    skipped=report.skipped,
                    successful=report.successful,
                    info_missing=report.info_missing,
                    failed=report.failed_count,
                    interrupted=aggregator.interrupted,
                    report_text=report_text,
                )

    def _build_backend(
        self, interrupt: InterruptSource, report: Report, tracker: ProgressTracker
    ) -> tuple[ProgressAggregator, ThreadedPipeline | AsyncPipeline]:
        timeout = self.settings.event_timeout_seconds
        workers = self.settings.persist_workers
        if self.settings.backend == "asyncio":
            async_events = AsyncEventMerge(interrupt, timeout_seconds=timeout)
            aggregator = ProgressAggregator(async_events, report, tracker)
            return aggregator, AsyncPipeline(self.stages, aggregator, async_events, persist_workers=workers)

        events = ThreadedEventMerge(interrupt, timeout_seconds=timeout)
        aggregator = ProgressAggregator(events, report, tracker)
        return aggregator, ThreadedPipeline(self.stages, aggregator, events, persist_workers=workers)
