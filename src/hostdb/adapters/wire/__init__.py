"""JSON wire encoding for records, record sets and responses."""

from __future__ import annotations

from .schema import (
    CatalogResponse,
    RecordPayload,
    RecordSetPayload,
    RecordsResponse,
    StatsResponse,
    WireModel,
    WriteResponse,
)
from .translator import (
    catalog_response,
    dump_record,
    error_response,
    parse_record,
    parse_record_set,
    reconcile_response,
    record_to_payload,
    records_response,
    stats_response,
    write_response,
)

__all__ = [
    "CatalogResponse",
    "RecordPayload",
    "RecordSetPayload",
    "RecordsResponse",
    "StatsResponse",
    "WireModel",
    "WriteResponse",
    "catalog_response",
    "dump_record",
    "error_response",
    "parse_record",
    "parse_record_set",
    "reconcile_response",
    "record_to_payload",
    "records_response",
    "stats_response",
    "write_response",
]
