"""Distinct-value catalogs for a mapped field."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hostdb.domain.errors import NotFoundError, ValidationError
from hostdb.domain.model import Operator, WhereClause, WhereClauses
from hostdb.domain.query_compiler import parse_bounded_regex

if TYPE_CHECKING:
    from hostdb.domain.model import FieldLocation, FieldMapping
    from hostdb.domain.ports import RecordRepository

log = logging.getLogger(__name__)


@dataclass(slots=True)
class Catalog:
    """Distinct values of one field; counts are zero unless requested."""

    field_name: str
    counts: dict[str, int] = field(default_factory=dict[str, int])
    counted: bool = False

    @property
    def values(self) -> list[str]:
        return list(self.counts)

    def __len__(self) -> int:
        return len(self.counts)


def catalog_predicate(location: FieldLocation, pattern: str | None = None) -> WhereClauses:
    where = WhereClauses()
    clauses = [WhereClause(keys=(location,), operator=Operator.IS_NOT_NULL)]
    if pattern is not None:
        clauses.append(WhereClause(keys=(location,), operator=Operator.RLIKE, values=(pattern,)))
    where.add(*clauses)
    return where


def build_catalog(
    field_name: str,
    *,
    repository: RecordRepository,
    mapping: FieldMapping,
    frequency: bool = False,
    regex_filter: str | None = None,
) -> Catalog:
    """Collect the distinct values of ``field_name`` across all its locations.

    ``regex_filter`` must be ``/``-bounded. The first location that yields a
    value keeps its count.
    """

    if field_name not in mapping:
        raise ValidationError(f"unsupported catalog item '{field_name}'")

    pattern: str | None = None
    if regex_filter:
        pattern = parse_bounded_regex(regex_filter)
        if pattern is None:
            raise ValidationError("invalid regex encapsulation")

    catalog = Catalog(field_name=field_name, counted=frequency)
    for location in mapping.locations(field_name):
        rows = repository.distinct_values(
            location,
            catalog_predicate(location, pattern),
            with_counts=frequency,
        )
        for value, count in rows:
            catalog.counts.setdefault(value, count)

    if not catalog.counts:
        raise NotFoundError("catalog not found")

    log.debug("Catalog %s: %d value(s)", field_name, len(catalog))
    return catalog
