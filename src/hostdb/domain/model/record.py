"""Record and RecordSet, the two shapes that flow through the write path."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final
from uuid import uuid4

TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
RECORD_ID_PREFIX: Final[str] = "hdb"

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]
type Context = dict[str, JsonScalar]


def new_record_id(prefix: str = RECORD_ID_PREFIX) -> str:
    return f"{prefix or RECORD_ID_PREFIX}-{uuid4()}"


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format ``moment`` (default: now) in the fixed UTC record format."""

    value = moment or datetime.now(tz=UTC)
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime | None:
    """Parse a record timestamp, returning ``None`` when it is not a real instant."""

    try:
        parsed = datetime.strptime(value.strip(), TIMESTAMP_FORMAT)  # noqa: DTZ007
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)


def compact_payload(data: JsonValue) -> str:
    """Serialise ``data`` without insignificant whitespace and with sorted keys."""

    return json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def payload_hash(data: JsonValue) -> str:
    """Hex SHA-256 of the compacted payload."""

    return hashlib.sha256(compact_payload(data).encode("utf-8")).hexdigest()


@dataclass(kw_only=True)
class Record:
    """One stored inventory entity with an opaque typed payload.

    ``data`` is ``None`` only for records that have not been validated yet.
    """

    id: str = ""
    type: str = ""
    hostname: str = ""
    ip: str = ""
    timestamp: str = ""
    committer: str = ""
    context: Context = field(default_factory=dict[str, "JsonScalar"])
    data: JsonValue = None
    hash: str = ""

    def rehash(self) -> str:
        self.hash = payload_hash(self.data)
        return self.hash


@dataclass(kw_only=True)
class RecordSet:
    """Bulk envelope; its fields back-fill the partial records it carries."""

    type: str = ""
    timestamp: str = ""
    committer: str = ""
    context: Context | None = None
    records: list[Record] = field(default_factory=list["Record"])
