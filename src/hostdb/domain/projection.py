"""List-view projection: keep only the requested record fields."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from hostdb.domain.model import Record

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

FIELDS_PARAM: Final[str] = "_fields"


def _copy_id(source: Record, target: Record) -> None:
    target.id = source.id


def _copy_type(source: Record, target: Record) -> None:
    target.type = source.type


def _copy_hostname(source: Record, target: Record) -> None:
    target.hostname = source.hostname


def _copy_ip(source: Record, target: Record) -> None:
    target.ip = source.ip


def _copy_timestamp(source: Record, target: Record) -> None:
    target.timestamp = source.timestamp


def _copy_committer(source: Record, target: Record) -> None:
    target.committer = source.committer


def _copy_context(source: Record, target: Record) -> None:
    target.context = dict(source.context)


def _copy_data(source: Record, target: Record) -> None:
    target.data = source.data


def _copy_hash(source: Record, target: Record) -> None:
    target.hash = source.hash


FIELD_COPIERS: Final[Mapping[str, Callable[[Record, Record], None]]] = {
    "id": _copy_id,
    "type": _copy_type,
    "hostname": _copy_hostname,
    "ip": _copy_ip,
    "timestamp": _copy_timestamp,
    "committer": _copy_committer,
    "context": _copy_context,
    "data": _copy_data,
    "hash": _copy_hash,
}


def requested_fields(
    params: Mapping[str, Sequence[str]],
    default: Sequence[str],
) -> tuple[str, ...]:
    """Fields named by ``_fields=a,b`` (case-insensitive), else ``default``."""

    raw = next((value for value in params.get(FIELDS_PARAM, ()) if value), "")
    if not raw:
        return tuple(default)
    return tuple(name.strip().lower() for name in raw.split(",") if name.strip())


def project_record(record: Record, fields: Iterable[str]) -> Record:
    """Copy the named fields into an otherwise empty record; unknown names are skipped."""

    projected = Record(data=None)
    for name in fields:
        copier = FIELD_COPIERS.get(name)
        if copier is not None:
            copier(record, projected)
    return projected


def project_records(records: Iterable[Record], fields: Sequence[str]) -> list[Record]:
    return [project_record(record, fields) for record in records]
