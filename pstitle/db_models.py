from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class LookupRun(Base):
    __tablename__ = "lookup_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    backend: Mapped[str] = mapped_column(String(32), default="threads")
    status: Mapped[str] = mapped_column(String(32), default="running")
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    record_count: Mapped[int] = mapped_column(Integer, default=0)
    skipped: Mapped[int] = mapped_column(Integer, default=0)
    successful: Mapped[int] = mapped_column(Integer, default=0)
    info_missing: Mapped[int] = mapped_column(Integer, default=0)
    failed: Mapped[int] = mapped_column(Integer, default=0)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    record_errors: Mapped[list["RunErrorRecord"]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="RunErrorRecord.position",
    )

    @property
    def processed_through(self) -> int:
        return self.skipped + self.successful + self.info_missing + self.failed


class RunErrorRecord(Base):
    __tablename__ = "run_error_records"
    __table_args__ = (UniqueConstraint("run_id", "record_index", name="uq_run_record_index"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("lookup_runs.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    record_index: Mapped[int] = mapped_column(Integer)
    title_number: Mapped[str] = mapped_column(String(64))
    message: Mapped[str] = mapped_column(Text)

    run: Mapped[LookupRun] = relationship(back_populates="record_errors")
