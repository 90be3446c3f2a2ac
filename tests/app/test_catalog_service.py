from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from hostdb.app import CatalogService, build_service, parse_flag
from hostdb.domain.errors import NotFoundError, ValidationError
from hostdb.domain.model import Record, parse_timestamp, payload_hash
from tests.helpers.records import FakeUnitOfWorkFactory, make_record_set, partial_record

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from hostdb.config import CatalogConfig


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, False), ("", True), ("1", True), ("0", False), ("False", False), (True, True)],
)
def test_parse_flag(value: str | bool | None, expected: bool) -> None:
    assert parse_flag(value) is expected


def _seed(service: CatalogService) -> None:
    service.reconcile(
        make_record_set(
            [
                partial_record(hostname="web01", data={"hostname": "web01", "role": "web"}),
                partial_record(hostname="web02", data={"hostname": "web02", "role": "web"}),
                partial_record(hostname="db01", data={"hostname": "db01", "role": "db"}),
            ],
            committer="",
        )
    )


def test_query_and_paging(sqlite_service: CatalogService) -> None:
    _seed(sqlite_service)

    page = sqlite_service.query({"_search": ["web"], "_limit": ["1"]})

    assert page.total == 2
    assert len(page.records) == 1
    assert page.records[0].committer == "tester"


def test_list_records_projects_default_fields(sqlite_service: CatalogService) -> None:
    _seed(sqlite_service)

    listing = sqlite_service.list_records({"hostname": ["db01"]})

    assert listing.total == 1
    assert listing.fields == ("hostname", "ip", "type", "timestamp")
    ((record_id, record),) = listing.records.items()
    assert record_id.startswith("hdb-")
    assert record.hostname == "db01"
    assert record.data is None
    assert not record.id


def test_list_records_honours_fields_param(sqlite_service: CatalogService) -> None:
    _seed(sqlite_service)

    listing = sqlite_service.list_records({"_fields": ["id,data"], "hostname": ["db01"]})

    (record,) = listing.records.values()
    assert record.id
    assert record.data == {"hostname": "db01", "role": "db"}


def test_catalog(sqlite_service: CatalogService) -> None:
    _seed(sqlite_service)

    catalog = sqlite_service.catalog("hostname", count="1", regex_filter="/^web/")

    assert catalog.counts == {"web01": 1, "web02": 1}


def test_catalog_not_found(sqlite_service: CatalogService) -> None:
    with pytest.raises(NotFoundError):
        sqlite_service.catalog("serial")


def test_save_get_and_delete_record(sqlite_service: CatalogService) -> None:
    record = Record(type="test", hostname="solo", context={"source": "manual"}, data={"a": 1})

    saved = sqlite_service.save_record(record)

    assert saved.id.startswith("hdb-")
    assert saved.committer == "tester"
    assert saved.hash == payload_hash({"a": 1})
    assert sqlite_service.get_record(saved.id).hostname == "solo"

    sqlite_service.delete_record(saved.id)

    with pytest.raises(NotFoundError):
        sqlite_service.get_record(saved.id)
    with pytest.raises(NotFoundError):
        sqlite_service.delete_record(saved.id)


def test_save_record_with_explicit_id_overwrites(sqlite_service: CatalogService) -> None:
    first = Record(type="test", context={"a": 1}, data={"v": 1})
    second = Record(id="ignored", type="test", context={"a": 1}, data={"v": 2})

    sqlite_service.save_record(first, "hdb-fixed")
    sqlite_service.save_record(second, "hdb-fixed")

    assert sqlite_service.get_record("hdb-fixed").data == {"v": 2}


def test_save_record_validates_before_writing(catalog_config: CatalogConfig) -> None:
    factory = FakeUnitOfWorkFactory()
    service = CatalogService(unit_of_work_factory=factory, config=catalog_config)

    with pytest.raises(ValidationError, match="record has no context"):
        service.save_record(Record(type="test", data={}))

    assert factory.units == []


def test_save_record_normalises_timestamp(sqlite_service: CatalogService) -> None:
    record = Record(type="test", timestamp="yesterday", context={"a": 1}, data={"v": 1})

    saved = sqlite_service.save_record(record)

    stored = sqlite_service.get_record(saved.id).timestamp
    assert parse_timestamp(stored) is not None
    assert stored == saved.timestamp


def test_stats(sqlite_service: CatalogService) -> None:
    _seed(sqlite_service)
    manual = Record(
        type="test",
        timestamp="2024-06-01 00:00:00",
        committer="manual",
        context={"a": 1},
        data={"v": 1},
    )
    sqlite_service.save_record(manual)

    stats = sqlite_service.stats()

    assert stats.total_records == 4
    assert (stats.oldest_record, stats.newest_record) == (
        "2024-05-01 12:00:00",
        "2024-06-01 00:00:00",
    )
    assert stats.last_seen == {
        "manual": "2024-06-01 00:00:00",
        "tester": "2024-05-01 12:00:00",
    }


def test_build_service_migrates_engine(
    sqlite_engine: Engine,
    catalog_config: CatalogConfig,
) -> None:
    service = build_service(engine=sqlite_engine, config=catalog_config, committer="cli")

    result = service.reconcile(make_record_set([partial_record(data={"x": 1})], committer=""))

    assert result.minted == 1
    (record,) = service.query({}).records
    assert record.committer == "cli"
