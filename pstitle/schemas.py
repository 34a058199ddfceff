from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Record:
    index: int

    @property
    def title_number(self) -> str:
        return f"ABC123/{self.index:02}"


@dataclass(frozen=True)
class Credentials:
    token: str


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class PartialSuccess:
    pass


@dataclass(frozen=True)
class RecordError:
    record: Record
    message: str


Outcome = Success | PartialSuccess | RecordError


@dataclass(frozen=True)
class PopulatedRecord:
    record: Record
    outcome: Outcome


@dataclass(frozen=True)
class Progress:
    outcome: Outcome


@dataclass(frozen=True)
class Interrupt:
    pass


ProgressEvent = Progress | Interrupt


@dataclass(frozen=True)
class RunResult:
    run_id: int
    status: str
    record_count: int
    skipped: int
    successful: int
    info_missing: int
    failed: int
    interrupted: bool
    report_text: str
