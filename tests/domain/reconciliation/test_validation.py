from __future__ import annotations

import pytest

from hostdb.config import default_required_context
from hostdb.domain.errors import ValidationError
from hostdb.domain.model import Record, RecordSet, parse_timestamp, payload_hash
from hostdb.domain.reconciliation import (
    ensure_complete,
    merge_envelope,
    validate_record_set,
    validate_type,
)
from tests.helpers.records import make_record_set, partial_record


@pytest.mark.parametrize(
    ("record_type", "message"),
    [("", "no type provided"), ("   ", "no type provided"), ("aws vpc", "whitespace")],
)
def test_validate_type_rejects(record_type: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_type(record_type)


def test_ensure_complete_defaults_timestamp_and_rehashes() -> None:
    record = Record(type="test", context={"a": 1}, data={"x": 1}, hash="bogus")

    ensure_complete(record)

    assert parse_timestamp(record.timestamp) is not None
    assert record.hash == payload_hash({"x": 1})


@pytest.mark.parametrize(
    "timestamp", ["next tuesday", "2024-13-01 00:00:00", "2024-01-01T00:00:00Z"]
)
def test_ensure_complete_replaces_unparsable_timestamp(timestamp: str) -> None:
    record = Record(type="test", timestamp=timestamp, context={"a": 1}, data={})

    ensure_complete(record)

    assert record.timestamp != timestamp
    assert parse_timestamp(record.timestamp) is not None


def test_ensure_complete_rewrites_timestamp_in_canonical_form() -> None:
    record = Record(type="test", timestamp=" 2024-01-01 00:00:00 ", context={"a": 1}, data={})

    ensure_complete(record)

    assert record.timestamp == "2024-01-01 00:00:00"


@pytest.mark.parametrize(
    ("record", "message"),
    [
        (Record(type="test", context={"a": 1}), "record has no data"),
        (Record(type="test", data={}), "record has no context"),
        (Record(context={"a": 1}, data={}), "no type provided"),
    ],
)
def test_ensure_complete_rejects_incomplete_records(record: Record, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        ensure_complete(record)


def test_validate_record_set_fills_defaults() -> None:
    record_set = make_record_set([], timestamp="0000-00-00 00:00:00", committer="")

    validate_record_set(
        record_set,
        required_context=default_required_context(),
        committer_fallback="cli",
    )

    assert parse_timestamp(record_set.timestamp) is not None
    assert record_set.committer == "cli"


@pytest.mark.parametrize(
    ("record_set", "message"),
    [
        (RecordSet(type="test", context={}), "no timestamp provided"),
        (RecordSet(type="test", timestamp="2024-05-01 12:00:00"), "no context provided"),
        (
            RecordSet(type="openstack", timestamp="2024-05-01 12:00:00", context={}),
            "missing context value for tenant_name",
        ),
        (
            RecordSet(
                type="test",
                timestamp="2024-05-01 12:00:00",
                context={},
                records=[partial_record(hostname="web01")],
            ),
            "data payload/element is missing",
        ),
    ],
)
def test_validate_record_set_rejects(record_set: RecordSet, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_record_set(record_set, required_context=default_required_context())


def test_merge_envelope_back_fills_blank_fields() -> None:
    record_set = make_record_set(
        [],
        record_type="openstack",
        context={"tenant_name": "alpha", "region": "eu"},
        committer="collector",
    )
    record = partial_record(context={"tenant_name": "", "region": "us"}, data={"id": "x"})

    merge_envelope(record, record_set)

    assert record.type == "openstack"
    assert record.committer == "collector"
    assert record.timestamp == record_set.timestamp
    assert record.context == {"tenant_name": "alpha", "region": "us"}
