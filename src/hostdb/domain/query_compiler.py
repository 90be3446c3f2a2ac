"""Compile multi-valued query parameters into a filter tree and page bounds.

Parameter rules:

- ``_limit`` / ``_offset``: non-negative integers.
- ``_search`` / ``!_search``: substring match against every searchable surface,
  one grouping per value. JSON documents match on their string values only.
- anything else names a mapped field; ``[]`` suffix is dropped, a leading
  ``!`` negates. Unmapped names are rejected unless they start with ``_``.

Compilation never touches storage.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from hostdb.domain.errors import ValidationError
from hostdb.domain.model import (
    FieldLocation,
    Limit,
    Operator,
    Relativity,
    WhereClause,
    WhereClauses,
    WhereGrouping,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from hostdb.domain.model import FieldMapping

log = logging.getLogger(__name__)

LIMIT_PARAM: Final[str] = "_limit"
OFFSET_PARAM: Final[str] = "_offset"
SEARCH_PARAM: Final[str] = "_search"
NEGATION_PREFIX: Final[str] = "!"
ARRAY_SUFFIX: Final[str] = "[]"

_INTEGER = re.compile(r"-?[0-9]+")

SEARCH_SURFACES: Final[tuple[FieldLocation, ...]] = (
    FieldLocation.in_data(),
    FieldLocation.in_context(),
    FieldLocation.table("hostname"),
    FieldLocation.table("ip"),
    FieldLocation.table("type"),
    FieldLocation.table("committer"),
)

type QueryParams = Mapping[str, Sequence[str]]


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    where: WhereClauses = field(default_factory=WhereClauses)
    limit: Limit = field(default_factory=Limit)


def compile_query(params: QueryParams, mapping: FieldMapping) -> CompiledQuery:
    """Translate ``params`` into a ``CompiledQuery`` or raise ``ValidationError``."""

    where = WhereClauses()
    limit: int | None = None
    offset = 0

    for key, values in params.items():
        if key == LIMIT_PARAM:
            limit = _parse_non_negative(key, values)
        elif key == OFFSET_PARAM:
            offset = _parse_non_negative(key, values)
        elif key in {SEARCH_PARAM, NEGATION_PREFIX + SEARCH_PARAM}:
            negated = key.startswith(NEGATION_PREFIX)
            for value in values:
                if value:
                    where.groups.append(search_grouping(value, negated=negated))
        else:
            grouping = _filter_grouping(key, values, mapping)
            if grouping is not None:
                where.groups.append(grouping)

    compiled = CompiledQuery(where=where, limit=Limit(limit=limit, offset=offset))
    if log.isEnabledFor(logging.DEBUG):
        sql, bound = where.render()
        log.debug("Compiled query: %s %s %s", sql or "<all>", bound, compiled.limit.render())
    return compiled


def search_grouping(value: str, *, negated: bool = False) -> WhereGrouping:
    """Match ``value`` as a substring anywhere, or nowhere when ``negated``."""

    operator = Operator.NOT_LIKE if negated else Operator.LIKE
    relativity = Relativity.AND if negated else Relativity.OR
    pattern = f"%{value}%"
    return WhereGrouping(
        clauses=[
            WhereClause(
                keys=(surface,),
                operator=operator,
                values=(pattern,),
                relativity=relativity,
            )
            for surface in SEARCH_SURFACES
        ]
    )


def parse_bounded_regex(token: str) -> str | None:
    """Return the pattern inside ``/…/`` or ``None`` if ``token`` is not bounded."""

    if len(token) > 2 and token.startswith("/") and token.endswith("/"):  # noqa: PLR2004
        return token[1:-1]
    return None


def _parse_non_negative(key: str, values: Sequence[str]) -> int:
    if not values:
        raise ValidationError(f"{key} parameter requires a value")
    raw = values[0]
    if _INTEGER.fullmatch(raw) is None:
        raise ValidationError(f"{key} parameter must be an integer")
    number = int(raw)
    if number < 0:
        raise ValidationError(f"{key} parameter must not be negative")
    return number


def _filter_grouping(
    key: str,
    values: Sequence[str],
    mapping: FieldMapping,
) -> WhereGrouping | None:
    name = key.removesuffix(ARRAY_SUFFIX)
    negated = name.startswith(NEGATION_PREFIX)
    if negated:
        name = name[len(NEGATION_PREFIX) :]

    if name not in mapping:
        if name.startswith("_"):
            return None
        raise ValidationError(f"unsupported query param '{name}'")

    keys = mapping.locations(name)
    if not keys:
        return None

    literals, patterns = _split_values(values)
    relativity = Relativity.AND if negated else Relativity.OR
    clauses: list[WhereClause] = []

    if literals or not patterns:
        clauses.append(
            WhereClause(
                keys=keys,
                operator=_literal_operator(len(literals), negated=negated),
                values=tuple(literals),
                relativity=relativity,
            )
        )
    regex_operator = Operator.NOT_RLIKE if negated else Operator.RLIKE
    clauses.extend(
        WhereClause(keys=keys, operator=regex_operator, values=(pattern,), relativity=relativity)
        for pattern in patterns
    )
    return WhereGrouping(clauses=clauses)


def _split_values(values: Iterable[str]) -> tuple[list[str], list[str]]:
    literals: list[str] = []
    patterns: list[str] = []
    for token in values:
        pattern = parse_bounded_regex(token)
        if pattern is not None:
            patterns.append(pattern)
            continue
        literals.extend(piece for piece in token.split(",") if piece)
    return literals, patterns


def _literal_operator(count: int, *, negated: bool) -> Operator:
    if count == 0:
        operator = Operator.IS_NOT_NULL
    elif count == 1:
        operator = Operator.EQ
    else:
        operator = Operator.IN
    return operator.negated if negated else operator
