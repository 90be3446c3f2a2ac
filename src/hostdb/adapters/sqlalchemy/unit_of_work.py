"""SQLAlchemy-backed unit of work for the record catalog."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from hostdb.adapters.sqlalchemy.errors import storage_errors
from hostdb.adapters.sqlalchemy.migrations import upgrade_head
from hostdb.adapters.sqlalchemy.repositories import SqlAlchemyRecordRepository
from hostdb.config import get_database_config
from hostdb.domain.ports import CatalogRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


def _dump_json(value: object) -> str:
    # non-ASCII stays literal so text filters see what clients sent
    return json.dumps(value, ensure_ascii=False)


def create_catalog_engine(database_uri: str | None = None) -> Engine:
    return create_engine(
        database_uri or get_database_config().uri,
        future=True,
        json_serializer=_dump_json,
    )


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
) -> sessionmaker[Session]:
    """Migrate the database to head and return a session factory bound to it."""

    resolved_engine = engine or create_catalog_engine(database_uri)
    log.debug("Starting storage on %s", resolved_engine.url.render_as_string(hide_password=True))
    upgrade_head(engine=resolved_engine)
    return sessionmaker(bind=resolved_engine, expire_on_commit=False)


class SqlAlchemyUnitOfWork:
    """One session, one transaction; rolled back when the block raises."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self.session_factory()
        self._repositories = CatalogRepositories(
            records=SqlAlchemyRecordRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        with storage_errors("commit"):
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session
