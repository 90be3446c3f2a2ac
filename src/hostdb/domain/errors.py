"""Error taxonomy shared by the query, catalog and reconciliation paths.

Each error carries a ``status_code`` hint so an outer HTTP layer can map it
without inspecting the message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hostdb.domain.reconciliation.engine import ReconcileResult


class CatalogError(Exception):
    """Base class for all errors raised by the catalog core."""

    status_code: ClassVar[int] = 500


class ValidationError(CatalogError):
    """Raised when a parameter, record or record set is malformed."""

    status_code: ClassVar[int] = 400


class NotFoundError(CatalogError):
    """Raised when a record or catalog has nothing to return."""

    status_code: ClassVar[int] = 404


class StorageError(CatalogError):
    """Raised when the storage backend fails."""


class TransientStorageError(StorageError):
    """Lock or contention signal from the backend; safe to retry."""

    status_code: ClassVar[int] = 503


class FatalStorageError(StorageError):
    """Any non-transient backend failure."""


class DeletionError(StorageError):
    """Raised after reconciliation when one or more deletions failed.

    Upserts have already been committed when this is raised.
    """

    def __init__(self, failed_ids: Sequence[str], *, result: ReconcileResult) -> None:
        self.failed_ids = tuple(failed_ids)
        self.result = result
        super().__init__(
            f"Deleting {len(self.failed_ids)} record(s) failed: {', '.join(self.failed_ids)}"
        )
