"""Reconciliation against a migrated in-memory SQLite catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostdb.adapters.wire import parse_record_set
from hostdb.domain.model import parse_timestamp, payload_hash
from hostdb.domain.reconciliation import scope_predicate

if TYPE_CHECKING:
    from collections.abc import Callable

    from hostdb.adapters.sqlalchemy import SqlAlchemyUnitOfWork
    from hostdb.app import CatalogService
    from hostdb.domain.model import RecordSet
    from hostdb.domain.reconciliation import ReconcilePlan

FIRST_BATCH = {
    "type": "test",
    "timestamp": "0000-00-00 00:00:00",
    "committer": "tester",
    "context": {"test": False},
    "records": [
        {
            "id": "abc123",
            "hostname": "foo.example.com",
            "ip": "10.20.30.40",
            "context": {"test": True},
            "data": {"id": "abc123", "hostname": "foo.example.com", "test": "wahoo"},
        },
        {
            "id": "def456",
            "hostname": "bar.example.com",
            "ip": "10.50.60.70",
            "context": {"test": True},
            "data": {"id": "def456", "hostname": "bar.example.com", "test": "yahoo"},
        },
        {
            "id": "ghi789",
            "hostname": "baz.example.com",
            "ip": "1.1.1.1",
            "context": {"test": True},
            "data": {"id": "ghi789", "hostname": "baz.example.com", "test": "zahoo"},
        },
    ],
}

SECOND_BATCH = {
    "type": "test",
    "timestamp": "0000-00-00 00:00:00",
    "committer": "testing",
    "context": {"test": False},
    "records": [
        {
            "id": "ghi789",
            "hostname": "bar.example.com",
            "ip": "1.1.1.1",
            "context": {"test": True},
            "data": {"id": "ghi789", "hostname": "baz.example.com", "test": "wahoo"},
        },
        {
            "hostname": "m2.local",
            "ip": "127.0.0.1",
            "context": {"test": True},
            "data": {"id": "jkl000", "hostname": "m2.local", "test": "magoo"},
        },
    ],
}


def _tenant_batch(tenant: str, *vm_ids: str) -> RecordSet:
    return parse_record_set(
        {
            "type": "openstack",
            "timestamp": "2024-05-01 12:00:00",
            "context": {"tenant_name": tenant},
            "records": [{"hostname": vm_id, "data": {"id": vm_id}} for vm_id in vm_ids],
        }
    )


def test_bulk_save_then_bulk_delete(sqlite_service: CatalogService) -> None:
    first = sqlite_service.reconcile(parse_record_set(FIRST_BATCH))

    assert (first.processed, first.written, first.minted) == (3, 3, 0)
    stored = sqlite_service.get_record("abc123")
    assert stored.hash == payload_hash(FIRST_BATCH["records"][0]["data"])  # type: ignore[index]
    assert stored.context == {"test": True}
    assert parse_timestamp(stored.timestamp) is not None

    second = sqlite_service.reconcile(parse_record_set(SECOND_BATCH))

    assert (second.processed, second.written, second.deleted, second.minted) == (2, 2, 2, 1)
    page = sqlite_service.query({"type": ["test"]})
    assert page.total == 2
    ids = {record.id for record in page.records}
    assert "ghi789" in ids
    assert not ids & {"abc123", "def456"}
    (minted,) = ids - {"ghi789"}
    assert sqlite_service.get_record(minted).hostname == "m2.local"
    assert sqlite_service.get_record("ghi789").committer == "testing"


def test_resubmitting_identical_batch_writes_nothing(sqlite_service: CatalogService) -> None:
    sqlite_service.reconcile(_tenant_batch("alpha", "vm-1", "vm-2"))

    again = sqlite_service.reconcile(_tenant_batch("alpha", "vm-1", "vm-2"))

    assert (again.processed, again.written, again.deleted, again.minted) == (2, 0, 0, 0)


def test_tenants_do_not_share_a_scope(sqlite_service: CatalogService) -> None:
    sqlite_service.reconcile(_tenant_batch("alpha", "vm-1", "vm-2"))
    sqlite_service.reconcile(_tenant_batch("beta", "vm-3"))

    result = sqlite_service.reconcile(_tenant_batch("alpha", "vm-2"))

    assert result.deleted == 1
    assert sqlite_service.query({"tenant": ["beta"]}).total == 1
    remaining = sqlite_service.query({"tenant": ["alpha"]}).records
    assert [record.hostname for record in remaining] == ["vm-2"]


def test_identity_survives_hostname_change(sqlite_service: CatalogService) -> None:
    sqlite_service.reconcile(_tenant_batch("alpha", "vm-1"))
    (before,) = sqlite_service.query({"tenant": ["alpha"]}).records

    renamed = _tenant_batch("alpha", "vm-1")
    renamed.records[0].hostname = "renamed"
    result = sqlite_service.reconcile(renamed)

    (after,) = sqlite_service.query({"tenant": ["alpha"]}).records
    assert result.minted == 0
    assert after.id == before.id


def test_overlapping_submissions_race_on_the_same_scope(
    sqlite_service: CatalogService,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    # Known limitation: two submissions for one scope are not serialised. Both
    # plan against the same empty scope before either writes, so each mints its
    # own ID for the same host and the catalog ends up with a duplicate.
    engine = sqlite_service.engine
    plans: list[ReconcilePlan] = []
    for _ in range(2):
        record_set = _tenant_batch("alpha", "vm-1")
        record_set.committer = "racer"
        where = scope_predicate(record_set, engine.mapping, engine.scope_rules)
        with sqlite_unit_of_work() as uow:
            plans.append(engine.plan(record_set, uow.repositories.records, where))

    for plan in plans:
        engine.apply(plan, sqlite_unit_of_work)

    page = sqlite_service.query({"tenant": ["alpha"], "hostname": ["vm-1"]})
    assert page.total == 2
