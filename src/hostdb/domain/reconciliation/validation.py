"""Structural completeness checks for records and record sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostdb.domain.errors import ValidationError
from hostdb.domain.model import parse_timestamp, utc_timestamp

if TYPE_CHECKING:
    from hostdb.domain.model import Record, RecordSet, RequiredContext


def validate_type(record_type: str) -> None:
    if not record_type or not record_type.strip():
        raise ValidationError("no type provided")
    if any(character.isspace() for character in record_type):
        raise ValidationError("type cannot contain whitespace")


def ensure_complete(record: Record) -> Record:
    """Validate ``record`` in place, normalising its timestamp and recomputing its hash.

    A missing or unparsable timestamp becomes the current time, as on the envelope.
    """

    validate_type(record.type)
    if record.data is None:
        raise ValidationError("record has no data")
    record.timestamp = utc_timestamp(parse_timestamp(record.timestamp))
    if not record.context:
        raise ValidationError("record has no context")
    record.rehash()
    return record


def validate_record_set(
    record_set: RecordSet,
    *,
    required_context: RequiredContext,
    committer_fallback: str = "",
) -> None:
    """Check the envelope and every record before anything is read or written.

    Fills in a default timestamp (when unparsable) and committer.
    """

    validate_type(record_set.type)

    if not record_set.timestamp:
        raise ValidationError("no timestamp provided")
    if parse_timestamp(record_set.timestamp) is None:
        record_set.timestamp = utc_timestamp()

    if record_set.context is None:
        raise ValidationError("no context provided")

    if not record_set.committer:
        record_set.committer = committer_fallback

    for key in required_context.for_type(record_set.type):
        if key not in record_set.context:
            raise ValidationError(f"missing context value for {key}")

    if any(record.data is None for record in record_set.records):
        raise ValidationError("data payload/element is missing from one or more records")


def merge_envelope(record: Record, record_set: RecordSet) -> Record:
    """Back-fill ``record`` from its envelope.

    Envelope context values fill keys that are absent or empty on the record;
    a record's own non-empty value wins.
    """

    if not record.type:
        record.type = record_set.type
    if not record.timestamp:
        record.timestamp = record_set.timestamp
    if not record.committer:
        record.committer = record_set.committer
    for key, value in (record_set.context or {}).items():
        if record.context.get(key, "") == "":
            record.context[key] = value
    return record
