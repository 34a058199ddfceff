from sqlalchemy import select
from sqlalchemy.orm import Session

from pstitle.db_models import LookupRun, RunErrorRecord, utc_now
from pstitle.report import Report


FINISHED_STATUSES = ("completed", "interrupted")


def create_run(db: Session, *, backend: str, record_count: int, skipped: int) -> LookupRun:
    run = LookupRun(
        backend=backend,
        status="running",
        started_at=utc_now(),
        record_count=record_count,
        skipped=skipped,
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def get_last_finished_run(db: Session) -> LookupRun | None:
    stmt = (
        select(LookupRun)
        .where(LookupRun.status.in_(FINISHED_STATUSES))
        .order_by(LookupRun.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()


def resume_offset(db: Session, *, record_count: int) -> int:
    last = get_last_finished_run(db)
    if last is None:
        return 0
    # A shorter sequence than last time is treated as fully processed.
    return min(last.processed_through, record_count)


def _copy_counts(run: LookupRun, report: Report) -> None:
    run.skipped = report.skipped
    run.successful = report.successful
    run.info_missing = report.info_missing
    run.failed = report.failed_count


def mark_run_finished(db: Session, run: LookupRun, *, report: Report, interrupted: bool) -> None:
    _copy_counts(run, report)
    run.status = "interrupted" if interrupted else "completed"
    run.completed_at = utc_now()
    run.error = None
    for position, (record, message) in enumerate(report.failed):
        db.add(
            RunErrorRecord(
                run_id=run.id,
                position=position,
                record_index=record.index,
                title_number=record.title_number,
                message=message,
            )
        )
    db.commit()


def mark_run_failed(db: Session, run: LookupRun, *, error: str, report: Report) -> None:
    _copy_counts(run, report)
    run.status = "failed"
    run.error = error
    run.completed_at = utc_now()
    db.commit()


def list_error_records(db: Session, run_id: int) -> list[RunErrorRecord]:
    stmt = select(RunErrorRecord).where(RunErrorRecord.run_id == run_id).order_by(RunErrorRecord.position)
    return list(db.execute(stmt).scalars().all())
