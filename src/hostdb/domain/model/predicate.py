"""Backend-agnostic filter tree produced by the query compiler.

A ``WhereClauses`` tree is a conjunction of groupings. Inside a grouping each
clause joins the previous one with its own relativity. A clause may name
several storage locations for one logical field; those are OR-ed together.

Every literal value is bound to exactly one named placeholder, shared by all
locations of its clause, so the bound parameter count always equals the
number of literal values in the tree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

RECORD_COLUMNS: Final[frozenset[str]] = frozenset(
    {"id", "type", "hostname", "ip", "timestamp", "committer", "hash"}
)

_PATH_TOKEN = re.compile(r"\.([^.\[\]]+)|\[(\d+)\]")

type JsonPath = tuple[str | int, ...]


class Relativity(StrEnum):
    AND = "AND"
    OR = "OR"


class Operator(StrEnum):
    EQ = "="
    NE = "!="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    RLIKE = "RLIKE"
    NOT_RLIKE = "NOT RLIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def is_nullary(self) -> bool:
        return self in {Operator.IS_NULL, Operator.IS_NOT_NULL}

    @property
    def is_set(self) -> bool:
        return self in {Operator.IN, Operator.NOT_IN}

    @property
    def negated(self) -> Operator:
        return _NEGATIONS[self]


_NEGATIONS: Final[dict[Operator, Operator]] = {
    Operator.EQ: Operator.NE,
    Operator.NE: Operator.EQ,
    Operator.LIKE: Operator.NOT_LIKE,
    Operator.NOT_LIKE: Operator.LIKE,
    Operator.RLIKE: Operator.NOT_RLIKE,
    Operator.NOT_RLIKE: Operator.RLIKE,
    Operator.IN: Operator.NOT_IN,
    Operator.NOT_IN: Operator.IN,
    Operator.IS_NULL: Operator.IS_NOT_NULL,
    Operator.IS_NOT_NULL: Operator.IS_NULL,
}


class LocationKind(StrEnum):
    COLUMN = "table"
    CONTEXT = "context"
    DATA = "data"


def parse_json_path(raw: str) -> JsonPath:
    """Parse ``.a.b[0]`` (leading ``$`` optional) into a path tuple."""

    text = raw.strip().removeprefix("$")
    if text and not text.startswith((".", "[")):
        text = f".{text}"
    path: list[str | int] = []
    position = 0
    for match in _PATH_TOKEN.finditer(text):
        if match.start() != position:
            raise ValueError(f"Invalid JSON path: {raw!r}")
        key, index = match.groups()
        path.append(int(index) if index is not None else key)
        position = match.end()
    if position != len(text) or not path:
        raise ValueError(f"Invalid JSON path: {raw!r}")
    return tuple(path)


def format_json_path(path: JsonPath) -> str:
    parts: list[str] = ["$"]
    for element in path:
        parts.append(f"[{element}]" if isinstance(element, int) else f".{element}")
    return "".join(parts)


@dataclass(frozen=True, slots=True)
class FieldLocation:
    """Where a logical field is stored.

    For ``CONTEXT`` and ``DATA`` an empty path addresses the whole serialised
    document, which is what free-text search matches against.
    """

    kind: LocationKind
    column: str | None = None
    path: JsonPath = ()

    def __post_init__(self) -> None:
        if self.kind is LocationKind.COLUMN:
            if self.column not in RECORD_COLUMNS:
                raise ValueError(f"Unknown record column: {self.column!r}")
            if self.path:
                raise ValueError("Column locations do not take a JSON path")
        elif self.column is not None:
            raise ValueError(f"{self.kind} locations do not name a column")

    @classmethod
    def table(cls, column: str) -> FieldLocation:
        return cls(kind=LocationKind.COLUMN, column=column)

    @classmethod
    def in_context(cls, path: str | JsonPath = ()) -> FieldLocation:
        resolved = parse_json_path(path) if isinstance(path, str) else tuple(path)
        return cls(kind=LocationKind.CONTEXT, path=resolved)

    @classmethod
    def in_data(cls, path: str | JsonPath = ()) -> FieldLocation:
        resolved = parse_json_path(path) if isinstance(path, str) else tuple(path)
        return cls(kind=LocationKind.DATA, path=resolved)

    @property
    def is_document(self) -> bool:
        return self.kind is not LocationKind.COLUMN and not self.path

    def render(self) -> str:
        if self.kind is LocationKind.COLUMN:
            return f"`{self.column}`"
        if not self.path:
            return f"`{self.kind.value}`"
        return f"json_value(`{self.kind.value}`, '{format_json_path(self.path)}')"


@dataclass(frozen=True, slots=True)
class WhereClause:
    keys: tuple[FieldLocation, ...]
    operator: Operator
    values: tuple[str, ...] = ()
    relativity: Relativity = Relativity.AND

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("A clause needs at least one storage location")
        if self.operator.is_nullary and self.values:
            raise ValueError(f"{self.operator} takes no values")
        if self.operator.is_set and not self.values:
            raise ValueError(f"{self.operator} needs at least one value")
        if not self.operator.is_nullary and not self.operator.is_set and len(self.values) != 1:
            raise ValueError(f"{self.operator} takes exactly one value")


@dataclass(slots=True)
class WhereGrouping:
    clauses: list[WhereClause] = field(default_factory=list["WhereClause"])


@dataclass(slots=True)
class WhereClauses:
    groups: list[WhereGrouping] = field(default_factory=list["WhereGrouping"])

    def add(self, *clauses: WhereClause) -> WhereGrouping:
        grouping = WhereGrouping(clauses=list(clauses))
        self.groups.append(grouping)
        return grouping

    @property
    def is_empty(self) -> bool:
        return not any(group.clauses for group in self.groups)

    def values(self) -> list[str]:
        """All literal values in tree order; position ``n`` binds to ``:pn``."""

        return [
            value for group in self.groups for clause in group.clauses for value in clause.values
        ]

    def render(self) -> tuple[str, dict[str, str]]:
        """Render a MariaDB-flavoured ``WHERE`` fragment with named placeholders.

        Used for diagnostics; the storage adapter builds its own statement from
        the same tree and the same placeholder numbering.
        """

        params: dict[str, str] = {}
        rendered_groups: list[str] = []
        for group in self.groups:
            parts: list[str] = []
            for clause in group.clauses:
                names: list[str] = []
                for value in clause.values:
                    name = f"p{len(params)}"
                    params[name] = value
                    names.append(f":{name}")
                fragment = _render_clause(clause, names)
                if parts:
                    parts.append(f"{clause.relativity.value} {fragment}")
                else:
                    parts.append(fragment)
            if parts:
                rendered_groups.append(f"({' '.join(parts)})")
        if not rendered_groups:
            return "", params
        return f"WHERE {' AND '.join(rendered_groups)}", params


_SEARCH_OPERATORS: Final[frozenset[Operator]] = frozenset({Operator.LIKE, Operator.NOT_LIKE})


def _render_document_search(key: FieldLocation, operator: Operator, placeholder: str) -> str:
    # documents match on string values only, never on keys
    found = "IS NULL" if operator is Operator.NOT_LIKE else "IS NOT NULL"
    return f"json_search({key.render()}, 'one', {placeholder}) {found}"


def _render_clause(clause: WhereClause, placeholders: list[str]) -> str:
    operator = clause.operator
    if operator.is_nullary:
        target = ""
    elif operator.is_set:
        target = f" ({', '.join(placeholders)})"
    else:
        target = f" {placeholders[0]}"
    rendered = [
        _render_document_search(key, operator, placeholders[0])
        if key.is_document and operator in _SEARCH_OPERATORS
        else f"{key.render()} {operator.value}{target}"
        for key in clause.keys
    ]
    if len(rendered) == 1:
        return rendered[0]
    return f"({' OR '.join(rendered)})"


@dataclass(frozen=True, slots=True)
class Limit:
    """Page size and row offset; ``limit=None`` means unbounded."""

    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must not be negative")
        if self.offset < 0:
            raise ValueError("offset must not be negative")

    def render(self) -> str:
        if self.limit is None and not self.offset:
            return ""
        if self.limit is None:
            return f"LIMIT 18446744073709551615 OFFSET {self.offset}"
        return f"LIMIT {self.limit} OFFSET {self.offset}"
