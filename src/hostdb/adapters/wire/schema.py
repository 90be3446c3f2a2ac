"""Pydantic models describing the JSON wire encoding of records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

type ContextValue = str | int | float | bool | None


def _none_to_blank(value: object) -> object:
    if value is None:
        return ""
    return value


def _none_to_empty_mapping(value: object) -> object:
    if value is None:
        return {}
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordPayload(WireModel):
    id: str = ""
    type: str = ""
    hostname: str = ""
    ip: str = ""
    timestamp: str = ""
    committer: str = ""
    context: dict[str, ContextValue] = Field(default_factory=dict[str, "ContextValue"])
    data: Any = None
    hash: str = ""

    _normalize_text = field_validator(
        "id", "type", "hostname", "ip", "timestamp", "committer", "hash", mode="before"
    )(_none_to_blank)
    _normalize_context = field_validator("context", mode="before")(_none_to_empty_mapping)


class RecordSetPayload(WireModel):
    """Bulk envelope; ``context`` stays ``None`` when the client omitted it."""

    type: str = ""
    timestamp: str = ""
    committer: str = ""
    context: dict[str, ContextValue] | None = None
    records: list[RecordPayload] = Field(default_factory=list["RecordPayload"])

    _normalize_text = field_validator("type", "timestamp", "committer", mode="before")(
        _none_to_blank
    )


class RecordsResponse(WireModel):
    count: int
    records: dict[str, dict[str, Any]] = Field(default_factory=dict[str, "dict[str, Any]"])


class CatalogResponse(WireModel):
    count: int
    catalog: list[str] | dict[str, int]


class WriteResponse(WireModel):
    ok: bool
    error: str = ""
    id: str | None = None
    processed: int | None = None
    written: int | None = None
    deleted: int | None = None
    minted: int | None = None


class StatsResponse(WireModel):
    hostname: str
    total_records: int
    oldest_record: str
    newest_record: str
    last_seen_collectors: dict[str, str] = Field(default_factory=dict[str, str])
