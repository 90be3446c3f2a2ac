"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from hostdb.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, startup
from hostdb.config import get_catalog_config
from hostdb.domain.catalog import build_catalog
from hostdb.domain.errors import NotFoundError
from hostdb.domain.model import Record, new_record_id
from hostdb.domain.ports import CatalogStats, RecordPage
from hostdb.domain.projection import project_records, requested_fields
from hostdb.domain.query_compiler import compile_query
from hostdb.domain.reconciliation import ReconciliationEngine, ensure_complete

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from hostdb.config import CatalogConfig
    from hostdb.domain.catalog import Catalog
    from hostdb.domain.model import RecordSet
    from hostdb.domain.ports import UnitOfWorkFactory
    from hostdb.domain.query_compiler import QueryParams
    from hostdb.domain.reconciliation import ReconcileResult

log = getLogger(__name__)

FALSE_FLAGS: Final[frozenset[str]] = frozenset({"0", "false"})


def parse_flag(value: str | bool | None) -> bool:
    """Query-string flag: present and anything but ``0`` / ``false`` is true."""

    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return value.strip().lower() not in FALSE_FLAGS


@dataclass(slots=True)
class ListPage:
    """A projected page for the list view, keyed by stored record ID."""

    records: dict[str, Record] = field(default_factory=dict[str, Record])
    total: int = 0
    fields: tuple[str, ...] = ()


class CatalogService:
    """Query, catalog and write operations over one storage backend."""

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        config: CatalogConfig,
        engine: ReconciliationEngine | None = None,
        committer: str = "",
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.config = config
        self.engine = engine or ReconciliationEngine(
            mapping=config.mapping,
            required_context=config.required_context,
        )
        self.committer = committer

    def query(self, params: QueryParams) -> RecordPage:
        """Full records matching ``params`` plus the unpaginated match count."""

        compiled = compile_query(params, self.config.mapping)
        with self.unit_of_work_factory() as uow:
            return uow.repositories.records.find(compiled.where, compiled.limit)

    def list_records(self, params: QueryParams) -> ListPage:
        fields = requested_fields(params, self.config.list_fields)
        page = self.query(params)
        projected = project_records(page.records, fields)
        return ListPage(
            records={
                record.id: copy for record, copy in zip(page.records, projected, strict=True)
            },
            total=page.total,
            fields=fields,
        )

    def get_record(self, record_id: str) -> Record:
        with self.unit_of_work_factory() as uow:
            record = uow.repositories.records.get(record_id)
        if record is None:
            raise NotFoundError(f"record {record_id!r} not found")
        return record

    def catalog(
        self,
        field_name: str,
        *,
        count: str | bool | None = None,
        regex_filter: str | None = None,
    ) -> Catalog:
        with self.unit_of_work_factory() as uow:
            return build_catalog(
                field_name,
                repository=uow.repositories.records,
                mapping=self.config.mapping,
                frequency=parse_flag(count),
                regex_filter=regex_filter,
            )

    def reconcile(self, record_set: RecordSet) -> ReconcileResult:
        return self.engine.reconcile(
            record_set,
            self.unit_of_work_factory,
            committer_fallback=self.committer,
        )

    def save_record(self, record: Record, record_id: str | None = None) -> Record:
        """Validate and upsert one record, minting an ID when it has none."""

        if record_id:
            record.id = record_id
        if not record.committer:
            record.committer = self.committer
        ensure_complete(record)
        if not record.id:
            record.id = new_record_id()
        with self.unit_of_work_factory() as uow:
            uow.repositories.records.upsert_many([record])
            uow.commit()
        log.info("Saved %s record %s", record.type, record.id)
        return record

    def stats(self) -> CatalogStats:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.records.stats()

    def delete_record(self, record_id: str) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.records.delete(record_id)
            uow.commit()
        log.info("Deleted record %s", record_id)


def build_service(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    config: CatalogConfig | None = None,
    committer: str = "",
) -> CatalogService:
    """Wire a ``CatalogService`` to the configured SQLAlchemy backend."""

    session_factory = startup(engine=engine, database_uri=database_uri)

    def unit_of_work_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)

    return CatalogService(
        unit_of_work_factory=unit_of_work_factory,
        config=config or get_catalog_config(),
        committer=committer,
    )
