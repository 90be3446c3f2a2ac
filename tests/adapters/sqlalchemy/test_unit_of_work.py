from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import OperationalError

from hostdb.adapters.sqlalchemy import SqlAlchemyUnitOfWork, StartupError, is_transient
from hostdb.adapters.sqlalchemy.errors import storage_errors
from hostdb.adapters.sqlalchemy.tables import record_table
from hostdb.domain.errors import FatalStorageError, TransientStorageError
from tests.helpers.records import make_record

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine


class _DriverError(Exception):
    pass


def _operational_error(*args: object) -> OperationalError:
    return OperationalError("UPDATE record SET ...", {}, _DriverError(*args))


def test_repositories_require_an_open_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_startup_creates_the_record_table(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    sqlite_engine: Engine,
) -> None:
    _ = sqlite_unit_of_work

    tables = inspect(sqlite_engine).get_table_names()

    assert "record" in tables
    assert "alembic_version" in tables


def test_commit_persists_across_units(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.records.upsert_many([make_record("hdb-1", hostname="web01")])
        uow.commit()

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.records.get("hdb-1")

    assert stored is not None
    assert stored.hostname == "web01"


def test_exception_rolls_back(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.records.upsert_many([make_record("hdb-1")])
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        rows = uow.session.execute(select(record_table.c.id)).all()

    assert rows == []


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        ((1205, "Lock wait timeout exceeded; try restarting transaction"), True),
        ((1213, "Deadlock found when trying to get lock"), True),
        (("database is locked",), True),
        ((1062, "Duplicate entry"), False),
        (("no such table: record",), False),
    ],
)
def test_is_transient(args: tuple[object, ...], expected: bool) -> None:
    assert is_transient(_operational_error(*args)) is expected


def test_storage_errors_translate_driver_failures() -> None:
    with pytest.raises(TransientStorageError, match="upsert records"):
        with storage_errors("upsert records"):
            raise _operational_error(1205, "Lock wait timeout exceeded")

    with pytest.raises(FatalStorageError, match="get record"):
        with storage_errors("get record"):
            raise _operational_error("no such table: record")
