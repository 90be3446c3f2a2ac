from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from hostdb.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    create_catalog_engine,
    startup,
)
from hostdb.app import CatalogService
from hostdb.config import CatalogConfig, default_catalog_config
from tests.helpers.records import FakeUnitOfWorkFactory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def catalog_config() -> CatalogConfig:
    return default_catalog_config()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_catalog_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return startup(engine=sqlite_engine)


@pytest.fixture
def sqlite_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    session_factory: sessionmaker[Session],
) -> Callable[[], SqlAlchemyUnitOfWork]:
    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def sqlite_service(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    catalog_config: CatalogConfig,
) -> CatalogService:
    return CatalogService(
        unit_of_work_factory=sqlite_unit_of_work,
        config=catalog_config,
        committer="tester",
    )


@pytest.fixture
def fake_unit_of_work() -> FakeUnitOfWorkFactory:
    return FakeUnitOfWorkFactory()
