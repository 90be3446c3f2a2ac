"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import CatalogStats, RecordPage, RecordRepository
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CatalogRepositories",
    "CatalogStats",
    "CatalogUnitOfWork",
    "RecordPage",
    "RecordRepository",
    "RepositoryCollection",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
