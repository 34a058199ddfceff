import asyncio
import time

from pstitle.schemas import (
    Credentials,
    Outcome,
    PartialSuccess,
    PopulatedRecord,
    Record,
    RecordError,
    Success,
)


RECORD_NOT_FOUND = "Could not find record information online."


def read_credentials(api_token: str) -> Credentials:
    return Credentials(token=api_token)


def stream_records(count: int) -> list[Record]:
    if count < 0:
        raise ValueError(f"record count must not be negative: {count}")
    return [Record(index) for index in range(count)]


def read_output_file(skip: int, count: int) -> int:
    if skip < 0 or skip > count:
        raise ValueError(f"skip must be between 0 and the record count ({count}), got {skip}")
    return skip


def classify_record(record: Record) -> Outcome:
    if record.index % 33 == 0:
        return RecordError(record, RECORD_NOT_FOUND)
    if record.index % 3 == 0:
        return PartialSuccess()
    return Success()


def augment_record(record: Record, outcome: Outcome) -> PopulatedRecord:
    return PopulatedRecord(record=record, outcome=outcome)


def _seconds(delay_ms: int) -> float:
    return max(delay_ms, 0) / 1000


# Blocking stages, used by the threaded backend.


def rate_limit_requests(delay_ms: int) -> None:
    time.sleep(_seconds(delay_ms))


def authenticate_with_server(first_time: bool, credentials: Credentials, delay_ms: int) -> None:
    # Sessions are reused after the first handshake.
    if first_time:
        time.sleep(_seconds(delay_ms))


def retrieve_information(record: Record, delay_ms: int) -> Outcome:
    time.sleep(_seconds(delay_ms))
    return classify_record(record)


def output_record_to_file(populated: PopulatedRecord, delay_ms: int) -> None:
    time.sleep(_seconds(delay_ms))


# Cooperative stages, used by the asyncio backend.


async def rate_limit_requests_async(delay_ms: int) -> None:
    await asyncio.sleep(_seconds(delay_ms))


async def authenticate_with_server_async(first_time: bool, credentials: Credentials, delay_ms: int) -> None:
    if first_time:
        await asyncio.sleep(_seconds(delay_ms))


async def retrieve_information_async(record: Record, delay_ms: int) -> Outcome:
    await asyncio.sleep(_seconds(delay_ms))
    return classify_record(record)


async def output_record_to_file_async(populated: PopulatedRecord, delay_ms: int) -> None:
    await asyncio.sleep(_seconds(delay_ms))
