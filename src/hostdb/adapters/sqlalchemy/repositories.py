"""Repository implementation backed by a SQLAlchemy session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import delete, func, insert, select, update

from hostdb.adapters.sqlalchemy.errors import storage_errors
from hostdb.adapters.sqlalchemy.filters import compile_where, value_expression
from hostdb.adapters.sqlalchemy.tables import record_table
from hostdb.domain.errors import NotFoundError
from hostdb.domain.model import Record
from hostdb.domain.ports import CatalogStats, RecordPage

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import CursorResult, Row, Select
    from sqlalchemy.orm import Session

    from hostdb.domain.model import FieldLocation, Limit, WhereClauses

log = logging.getLogger(__name__)

ID_CHUNK_SIZE: Final[int] = 500


def record_from_row(row: Row[Any]) -> Record:
    mapping = row._mapping  # noqa: SLF001
    return Record(
        id=mapping["id"],
        type=mapping["type"],
        hostname=mapping["hostname"] or "",
        ip=mapping["ip"] or "",
        timestamp=mapping["timestamp"] or "",
        committer=mapping["committer"] or "",
        context=dict(mapping["context"] or {}),
        data=mapping["data"],
        hash=mapping["hash"] or "",
    )


def record_to_row(record: Record) -> dict[str, Any]:
    return {
        "id": record.id,
        "type": record.type,
        "hostname": record.hostname,
        "ip": record.ip,
        "timestamp": record.timestamp,
        "committer": record.committer,
        "context": dict(record.context),
        "data": record.data,
        "hash": record.hash,
    }


def _chunks(values: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class SqlAlchemyRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.dialect_name = session.get_bind().dialect.name

    def find(self, where: WhereClauses, limit: Limit | None = None) -> RecordPage:
        compiled = compile_where(where, dialect_name=self.dialect_name)
        rows_stmt: Select[Any] = select(record_table).order_by(record_table.c.id)
        count_stmt: Select[Any] = select(func.count()).select_from(record_table)
        if compiled.condition is not None:
            rows_stmt = rows_stmt.where(compiled.condition)
            count_stmt = count_stmt.where(compiled.condition)
        if limit is not None:
            if limit.limit is not None:
                rows_stmt = rows_stmt.limit(limit.limit)
            if limit.offset:
                rows_stmt = rows_stmt.offset(limit.offset)

        with storage_errors("find records"):
            rows = self.session.execute(rows_stmt).all()
            total = self.session.execute(count_stmt).scalar_one()
        log.debug("Found %d of %d record(s) with %s", len(rows), total, compiled.params)
        return RecordPage(records=[record_from_row(row) for row in rows], total=int(total))

    def get(self, record_id: str) -> Record | None:
        stmt = select(record_table).where(record_table.c.id == record_id)
        with storage_errors("get record"):
            row = self.session.execute(stmt).one_or_none()
        return record_from_row(row) if row is not None else None

    def upsert_many(self, records: Sequence[Record]) -> None:
        rows = {record.id: record_to_row(record) for record in records}
        if not rows:
            return
        ids = list(rows)
        with storage_errors("upsert records"):
            existing: set[str] = set()
            for chunk in _chunks(ids, ID_CHUNK_SIZE):
                stmt = select(record_table.c.id).where(record_table.c.id.in_(chunk))
                existing.update(self.session.execute(stmt).scalars())

            inserts = [row for record_id, row in rows.items() if record_id not in existing]
            if inserts:
                self.session.execute(insert(record_table), inserts)
            for record_id in ids:
                if record_id in existing:
                    stmt = (
                        update(record_table)
                        .where(record_table.c.id == record_id)
                        .values(rows[record_id])
                    )
                    self.session.execute(stmt)
        log.debug("Upserted %d record(s): %d new", len(rows), len(inserts))

    def delete(self, record_id: str) -> None:
        stmt = delete(record_table).where(record_table.c.id == record_id)
        with storage_errors("delete record"):
            result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount == 0:
            raise NotFoundError(f"record {record_id!r} not found")

    def distinct_values(
        self,
        location: FieldLocation,
        where: WhereClauses,
        *,
        with_counts: bool = False,
    ) -> list[tuple[str, int]]:
        value = value_expression(location, self.dialect_name).label("value")
        if with_counts:
            stmt: Select[Any] = select(value, func.count().label("count")).group_by(value)
        else:
            stmt = select(value).distinct()
        compiled = compile_where(where, dialect_name=self.dialect_name)
        if compiled.condition is not None:
            stmt = stmt.where(compiled.condition)
        stmt = stmt.order_by(value)

        with storage_errors("list distinct values"):
            rows = self.session.execute(stmt).all()
        if with_counts:
            return [(str(row[0]), int(row[1])) for row in rows]
        return [(str(row[0]), 0) for row in rows]

    def stats(self) -> CatalogStats:
        timestamp = record_table.c.timestamp
        committer = record_table.c.committer
        totals_stmt = select(func.count(), func.min(timestamp), func.max(timestamp)).select_from(
            record_table
        )
        seen_stmt = (
            select(committer, func.max(timestamp))
            .where(committer.is_not(None), committer != "")
            .group_by(committer)
            .order_by(committer)
        )
        with storage_errors("collect stats"):
            total, oldest, newest = self.session.execute(totals_stmt).one()
            seen = self.session.execute(seen_stmt).all()
        return CatalogStats(
            total_records=int(total),
            oldest_record=oldest or "",
            newest_record=newest or "",
            last_seen={str(row[0]): str(row[1]) for row in seen},
        )
