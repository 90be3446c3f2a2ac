"""Translate wire payloads to and from the domain dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any

import pydantic

from hostdb.domain.errors import ValidationError
from hostdb.domain.model import Record, RecordSet

from .schema import (
    CatalogResponse,
    RecordPayload,
    RecordSetPayload,
    RecordsResponse,
    StatsResponse,
    WriteResponse,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from hostdb.domain.catalog import Catalog
    from hostdb.domain.ports import CatalogStats
    from hostdb.domain.reconciliation import ReconcileResult

log = getLogger(__name__)

type RecordInput = RecordPayload | Mapping[str, object] | str | bytes
type RecordSetInput = RecordSetPayload | Mapping[str, object] | str | bytes


def _describe(error: pydantic.ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}"
        for item in error.errors()
    ]
    return "; ".join(problems)


def _ensure_record_payload(raw: RecordInput) -> RecordPayload:
    if isinstance(raw, RecordPayload):
        return raw
    try:
        if isinstance(raw, str | bytes):
            return RecordPayload.model_validate_json(raw)
        return RecordPayload.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"malformed record: {_describe(exc)}") from exc


def _ensure_record_set_payload(raw: RecordSetInput) -> RecordSetPayload:
    if isinstance(raw, RecordSetPayload):
        return raw
    try:
        if isinstance(raw, str | bytes):
            return RecordSetPayload.model_validate_json(raw)
        return RecordSetPayload.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"malformed record set: {_describe(exc)}") from exc


def _record_from_payload(payload: RecordPayload) -> Record:
    return Record(
        id=payload.id.strip(),
        type=payload.type,
        hostname=payload.hostname,
        ip=payload.ip,
        timestamp=payload.timestamp,
        committer=payload.committer,
        context=dict(payload.context),
        data=payload.data,
        hash=payload.hash,
    )


def parse_record(raw: RecordInput) -> Record:
    return _record_from_payload(_ensure_record_payload(raw))


def parse_record_set(raw: RecordSetInput) -> RecordSet:
    payload = _ensure_record_set_payload(raw)
    record_set = RecordSet(
        type=payload.type,
        timestamp=payload.timestamp,
        committer=payload.committer,
        context=dict(payload.context) if payload.context is not None else None,
        records=[_record_from_payload(record) for record in payload.records],
    )
    log.debug("Parsed record set of %s with %d record(s)", record_set.type, len(record_set.records))
    return record_set


def record_to_payload(record: Record) -> RecordPayload:
    return RecordPayload(
        id=record.id,
        type=record.type,
        hostname=record.hostname,
        ip=record.ip,
        timestamp=record.timestamp,
        committer=record.committer,
        context=dict(record.context),
        data=record.data,
        hash=record.hash,
    )


def dump_record(record: Record, fields: Sequence[str] | None = None) -> dict[str, Any]:
    """JSON-ready mapping of ``record``; ``fields`` restricts the keys emitted."""

    include = set(fields) if fields is not None else None
    return record_to_payload(record).model_dump(mode="json", include=include)


def records_response(
    records: Mapping[str, Record] | Iterable[Record],
    total: int,
    *,
    fields: Sequence[str] | None = None,
) -> RecordsResponse:
    """Records keyed by ID, in storage order, with the unpaginated total.

    A mapping supplies its own keys, which lets projected records without an
    ``id`` field stay keyed by the stored ID.
    """

    keyed: Iterable[tuple[str, Record]]
    if isinstance(records, Mapping):
        keyed = records.items()
    else:
        keyed = ((record.id, record) for record in records)
    return RecordsResponse(
        count=total,
        records={record_id: dump_record(record, fields) for record_id, record in keyed},
    )


def catalog_response(catalog: Catalog) -> CatalogResponse:
    if catalog.counted:
        return CatalogResponse(count=len(catalog), catalog=dict(catalog.counts))
    return CatalogResponse(count=len(catalog), catalog=catalog.values)


def reconcile_response(result: ReconcileResult) -> WriteResponse:
    return WriteResponse(
        ok=True,
        error=f"{result.processed} record(s) processed",
        processed=result.processed,
        written=result.written,
        deleted=result.deleted,
        minted=result.minted,
    )


def stats_response(stats: CatalogStats, hostname: str) -> StatsResponse:
    return StatsResponse(
        hostname=hostname,
        total_records=stats.total_records,
        oldest_record=stats.oldest_record,
        newest_record=stats.newest_record,
        last_seen_collectors=dict(stats.last_seen),
    )


def write_response(record_id: str) -> WriteResponse:
    return WriteResponse(ok=True, id=record_id)


def error_response(error: Exception) -> WriteResponse:
    return WriteResponse(ok=False, error=str(error))
