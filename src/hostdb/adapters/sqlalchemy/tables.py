"""SQLAlchemy table metadata for stored records."""

from __future__ import annotations

from typing import Final

from sqlalchemy import JSON, Column, Dialect, MetaData, String, Table, TypeDecorator

from hostdb.domain.model import parse_timestamp, utc_timestamp

ID_LENGTH: Final[int] = 191
TIMESTAMP_LENGTH: Final[int] = 19
HASH_LENGTH: Final[int] = 64


class UTCTimestampText(TypeDecorator[str]):
    """Fixed-width ``YYYY-MM-DD HH:MM:SS`` UTC text; lexical order is chronological.

    Parsable values are normalised on the way in. Anything else (for example a
    ``LIKE`` pattern) is bound unchanged.
    """

    impl = String(TIMESTAMP_LENGTH)
    cache_ok = True

    def process_bind_param(self, value: str | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        parsed = parse_timestamp(value)
        return utc_timestamp(parsed) if parsed is not None else value

    def process_result_value(self, value: str | None, dialect: Dialect) -> str | None:
        _ = dialect
        return value


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

record_table = Table(
    "record",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("type", String(ID_LENGTH), nullable=False, index=True),
    Column("hostname", String(255), nullable=False, default=""),
    Column("ip", String(64), nullable=False, default=""),
    Column("timestamp", UTCTimestampText(), nullable=False),
    Column("committer", String(255), nullable=False, default=""),
    Column("context", JSON, nullable=False),
    Column("data", JSON, nullable=False),
    Column("hash", String(HASH_LENGTH), nullable=False),
)

