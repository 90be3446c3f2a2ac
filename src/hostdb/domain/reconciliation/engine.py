"""Bulk reconciliation: make the stored records of one scope match a submission.

Planning reads the scope's candidate records, resolves each incoming record to
an existing ID (explicit ID, identity rule, or a freshly minted one), and
collects the records that actually changed. Whatever candidate nobody claimed
was dropped from the submission and is deleted afterwards.

Writes happen only after planning finished, so any validation failure aborts
the batch before storage is touched. Upserts are one transaction, retried on
transient lock errors. Deletions are best effort, one transaction each.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from hostdb.domain.errors import (
    DeletionError,
    FatalStorageError,
    NotFoundError,
    StorageError,
    TransientStorageError,
)
from hostdb.domain.model import Record, new_record_id

from .changes import anything_changed
from .identity import default_identity_registry
from .scope import DEFAULT_SCOPE_RULES, scope_predicate
from .validation import ensure_complete, merge_envelope, validate_record_set

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hostdb.domain.model import FieldMapping, RecordSet, RequiredContext, WhereClauses
    from hostdb.domain.ports import RecordRepository, UnitOfWorkFactory

    from .identity import IdentityRegistry
    from .scope import ScopeRule

log = logging.getLogger(__name__)

UPSERT_MAX_ATTEMPTS: Final[int] = 5


@dataclass(slots=True)
class ReconcileResult:
    """Counts reported for one reconciliation.

    ``processed`` counts every submitted record, including unchanged ones that
    were not rewritten.
    """

    processed: int = 0
    written: int = 0
    deleted: int = 0
    minted: int = 0


@dataclass(slots=True)
class ReconcilePlan:
    upserts: dict[str, Record] = field(default_factory=dict[str, Record])
    deletions: list[str] = field(default_factory=list[str])
    processed: int = 0
    minted: int = 0


class ReconciliationEngine:
    """Plans and applies bulk reconciliations against a unit of work."""

    def __init__(
        self,
        *,
        mapping: FieldMapping,
        required_context: RequiredContext,
        identities: IdentityRegistry | None = None,
        scope_rules: Sequence[ScopeRule] = DEFAULT_SCOPE_RULES,
        max_upsert_attempts: int = UPSERT_MAX_ATTEMPTS,
    ) -> None:
        if max_upsert_attempts < 1:
            raise ValueError("max_upsert_attempts must be at least 1")
        self.mapping = mapping
        self.required_context = required_context
        self.identities = identities if identities is not None else default_identity_registry()
        self.scope_rules = tuple(scope_rules)
        self.max_upsert_attempts = max_upsert_attempts

    def reconcile(
        self,
        record_set: RecordSet,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        committer_fallback: str = "",
    ) -> ReconcileResult:
        validate_record_set(
            record_set,
            required_context=self.required_context,
            committer_fallback=committer_fallback,
        )
        where = scope_predicate(record_set, self.mapping, self.scope_rules)

        with unit_of_work_factory() as uow:
            plan = self.plan(record_set, uow.repositories.records, where)
        return self.apply(plan, unit_of_work_factory, label=record_set.type)

    def apply(
        self,
        plan: ReconcilePlan,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        label: str = "",
    ) -> ReconcileResult:
        """Write the planned upserts, then delete abandoned records one by one.

        Raises ``DeletionError`` after the upserts committed if any deletion failed.
        """

        result = ReconcileResult(processed=plan.processed, minted=plan.minted)
        if plan.upserts:
            self._upsert(list(plan.upserts.values()), unit_of_work_factory)
            result.written = len(plan.upserts)

        result.deleted, failed = self._delete(plan.deletions, unit_of_work_factory)

        log.info(
            "Reconciled %s: processed=%d written=%d deleted=%d minted=%d",
            label or "record set",
            result.processed,
            result.written,
            result.deleted,
            result.minted,
        )
        if failed:
            raise DeletionError(failed, result=result)
        return result

    def plan(
        self,
        record_set: RecordSet,
        repository: RecordRepository,
        where: WhereClauses,
    ) -> ReconcilePlan:
        """Resolve every incoming record against the scope; no writes."""

        candidates = {record.id: record for record in repository.find(where).records}
        log.debug("Scope of %s holds %d candidate(s)", record_set.type, len(candidates))

        plan = ReconcilePlan()
        for record in record_set.records:
            merge_envelope(record, record_set)
            ensure_complete(record)

            existing: Record | None = None
            if record.id:
                existing = repository.get(record.id)
            elif candidates:
                existing = self._claim(record, record_set.type, candidates)
                if existing is not None:
                    record.id = existing.id

            if not record.id:
                record.id = new_record_id()
                plan.minted += 1

            if anything_changed(record, existing):
                plan.upserts[record.id] = record
            candidates.pop(record.id, None)
            plan.processed += 1

        plan.deletions = list(candidates)
        return plan

    def _claim(
        self,
        record: Record,
        record_type: str,
        candidates: dict[str, Record],
    ) -> Record | None:
        # identity follows the envelope type, which also scoped the candidates
        matches = [
            candidate
            for candidate in candidates.values()
            if self.identities.same_identity(record_type, record, candidate)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            log.warning(
                "Ambiguous identity for %s record: %d candidates match (%s); using %s",
                record_type,
                len(matches),
                ", ".join(candidate.id for candidate in matches),
                matches[0].id,
            )
        return matches[0]

    def _upsert(self, records: Sequence[Record], unit_of_work_factory: UnitOfWorkFactory) -> None:
        for attempt in range(1, self.max_upsert_attempts + 1):
            try:
                with unit_of_work_factory() as uow:
                    uow.repositories.records.upsert_many(records)
                    uow.commit()
            except TransientStorageError as exc:
                if attempt == self.max_upsert_attempts:
                    raise FatalStorageError(
                        f"Upsert failed after {attempt} attempts: {exc}"
                    ) from exc
                log.warning("Transient storage error on upsert attempt %d: %s", attempt, exc)
            else:
                return

    def _delete(
        self,
        record_ids: Sequence[str],
        unit_of_work_factory: UnitOfWorkFactory,
    ) -> tuple[int, list[str]]:
        deleted = 0
        failed: list[str] = []
        for record_id in record_ids:
            try:
                with unit_of_work_factory() as uow:
                    uow.repositories.records.delete(record_id)
                    uow.commit()
            except NotFoundError:
                log.warning("Record %s vanished before it could be deleted", record_id)
            except StorageError as exc:
                log.error("Deleting record %s failed: %s", record_id, exc)  # noqa: TRY400
                failed.append(record_id)
            else:
                deleted += 1
        return deleted, failed
