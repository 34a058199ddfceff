import pytest

from pstitle.schemas import PartialSuccess, PopulatedRecord, Record, RecordError, Success
from pstitle.step_logic import (
    RECORD_NOT_FOUND,
    augment_record,
    classify_record,
    read_credentials,
    read_output_file,
    stream_records,
)


def test_classification_matches_lookup_table() -> None:
    for index in range(101):
        outcome = classify_record(Record(index))
        if index % 33 == 0:
            assert outcome == RecordError(Record(index), RECORD_NOT_FOUND)
        elif index % 3 == 0:
            assert outcome == PartialSuccess()
        else:
            assert outcome == Success()


def test_first_ten_records_classify_as_expected() -> None:
    outcomes = [classify_record(record) for record in stream_records(10)]

    assert isinstance(outcomes[0], RecordError)
    assert [i for i, o in enumerate(outcomes) if isinstance(o, PartialSuccess)] == [3, 6, 9]
    assert [i for i, o in enumerate(outcomes) if isinstance(o, Success)] == [1, 2, 4, 5, 7, 8]


def test_error_message_and_title_number() -> None:
    outcome = classify_record(Record(66))

    assert isinstance(outcome, RecordError)
    assert outcome.message == "Could not find record information online."
    assert outcome.record.title_number == "ABC123/66"
    assert Record(3).title_number == "ABC123/03"


def test_stream_records_is_ordered() -> None:
    records = stream_records(5)

    assert records == [Record(0), Record(1), Record(2), Record(3), Record(4)]
    assert records == sorted(records)
    assert stream_records(0) == []


def test_read_output_file_accepts_full_range() -> None:
    assert read_output_file(0, 5) == 0
    assert read_output_file(5, 5) == 5


@pytest.mark.parametrize("skip", [-1, 6])
def test_read_output_file_rejects_out_of_range_skip(skip: int) -> None:
    with pytest.raises(ValueError):
        read_output_file(skip, 5)


def test_augment_pairs_record_with_outcome() -> None:
    populated = augment_record(Record(4), Success())

    assert populated == PopulatedRecord(record=Record(4), outcome=Success())


def test_credentials_are_opaque_tokens() -> None:
    assert read_credentials("secret").token == "secret"
