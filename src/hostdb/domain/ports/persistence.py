"""Ports for persisting and querying records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from hostdb.domain.model import Record

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hostdb.domain.model import FieldLocation, Limit, WhereClauses


@dataclass(slots=True)
class RecordPage:
    """One page of matching records plus the unpaginated match count."""

    records: list[Record] = field(default_factory=list[Record])
    total: int = 0


@dataclass(slots=True)
class CatalogStats:
    """Catalog-wide counts and timestamps.

    Timestamps are empty on an empty catalog. ``last_seen`` maps each non-empty
    committer to the newest timestamp it wrote.
    """

    total_records: int = 0
    oldest_record: str = ""
    newest_record: str = ""
    last_seen: dict[str, str] = field(default_factory=dict[str, str])


@runtime_checkable
class RecordRepository(Protocol):
    """Storage backend contract used by the query, catalog and reconcile paths.

    Implementations raise ``TransientStorageError`` / ``FatalStorageError``
    rather than driver exceptions.
    """

    def find(self, where: WhereClauses, limit: Limit | None = None) -> RecordPage: ...

    def get(self, record_id: str) -> Record | None: ...

    def upsert_many(self, records: Sequence[Record]) -> None: ...

    def delete(self, record_id: str) -> None:
        """Delete one record; raise ``NotFoundError`` when nothing was deleted."""
        ...

    def distinct_values(
        self,
        location: FieldLocation,
        where: WhereClauses,
        *,
        with_counts: bool = False,
    ) -> list[tuple[str, int]]:
        """Distinct values stored at ``location`` among rows matching ``where``."""
        ...

    def stats(self) -> CatalogStats: ...