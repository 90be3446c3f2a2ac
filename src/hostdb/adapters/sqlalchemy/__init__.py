"""SQLAlchemy storage backend for hostdb."""

from __future__ import annotations

from .errors import is_transient, storage_errors
from .filters import CompiledFilter, compile_where, value_expression
from .repositories import SqlAlchemyRecordRepository, record_from_row, record_to_row
from .tables import UTCTimestampText, metadata, record_table
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    create_catalog_engine,
    startup,
)

__all__ = [
    "CompiledFilter",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "UTCTimestampText",
    "compile_where",
    "create_catalog_engine",
    "is_transient",
    "metadata",
    "record_from_row",
    "record_table",
    "record_to_row",
    "startup",
    "storage_errors",
    "value_expression",
]
