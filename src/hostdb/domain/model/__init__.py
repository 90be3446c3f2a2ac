"""Domain model for the metadata catalog."""

from __future__ import annotations

from .mapping import FieldMapping, RequiredContext
from .predicate import (
    RECORD_COLUMNS,
    FieldLocation,
    JsonPath,
    Limit,
    LocationKind,
    Operator,
    Relativity,
    WhereClause,
    WhereClauses,
    WhereGrouping,
    format_json_path,
    parse_json_path,
)
from .record import (
    RECORD_ID_PREFIX,
    TIMESTAMP_FORMAT,
    Context,
    JsonScalar,
    JsonValue,
    Record,
    RecordSet,
    compact_payload,
    new_record_id,
    parse_timestamp,
    payload_hash,
    utc_timestamp,
)

__all__ = [
    "RECORD_COLUMNS",
    "RECORD_ID_PREFIX",
    "TIMESTAMP_FORMAT",
    "Context",
    "FieldLocation",
    "FieldMapping",
    "JsonPath",
    "JsonScalar",
    "JsonValue",
    "Limit",
    "LocationKind",
    "Operator",
    "Record",
    "RecordSet",
    "Relativity",
    "RequiredContext",
    "WhereClause",
    "WhereClauses",
    "WhereGrouping",
    "compact_payload",
    "format_json_path",
    "new_record_id",
    "parse_json_path",
    "parse_timestamp",
    "payload_hash",
    "utc_timestamp",
]
