"""Scope predicates: which stored records a bulk submission may reconcile.

Scope is always the record type. Vendor types add equality on the context
values that identify one account, endpoint or tenant, so a submission for one
never deletes another's records of the same type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from hostdb.domain.errors import CatalogError, ValidationError
from hostdb.domain.model import FieldLocation, Operator, WhereClause, WhereClauses

from .identity import type_contains, type_is

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hostdb.domain.model import FieldMapping, JsonScalar, RecordSet

    from .identity import TypeMatcher


@dataclass(frozen=True, slots=True)
class ScopeKey:
    """A mapped context location and the envelope context key that fills it."""

    param: str
    variant: str
    context_key: str


@dataclass(frozen=True, slots=True)
class ScopeRule:
    name: str
    matches: TypeMatcher
    keys: tuple[ScopeKey, ...]
    type_prefix: bool = False


DEFAULT_SCOPE_RULES: Final[tuple[ScopeRule, ...]] = (
    ScopeRule(
        name="aws",
        matches=type_contains("aws"),
        keys=(
            ScopeKey(param="aws-region", variant="aws", context_key="aws-region"),
            ScopeKey(param="aws-account-id", variant="aws", context_key="aws-account-id"),
        ),
    ),
    ScopeRule(
        name="oneview",
        matches=type_contains("oneview"),
        keys=(ScopeKey(param="oneview_url", variant="oneview", context_key="oneview_url"),),
    ),
    ScopeRule(
        name="openstack",
        matches=type_is("openstack"),
        keys=(ScopeKey(param="tenant", variant="openstack", context_key="tenant_name"),),
    ),
    ScopeRule(
        name="ucs",
        matches=type_contains("ucs"),
        keys=(ScopeKey(param="ucs_url", variant="ucs", context_key="ucs_url"),),
    ),
    ScopeRule(
        name="vrops-vmware",
        matches=type_is("vrops-vmware"),
        keys=(ScopeKey(param="vc_url", variant="vrops-vmware", context_key="vc_url"),),
        type_prefix=True,
    ),
)


def scope_rule_for(
    record_type: str,
    rules: Sequence[ScopeRule] = DEFAULT_SCOPE_RULES,
) -> ScopeRule | None:
    for rule in rules:
        if rule.matches(record_type):
            return rule
    return None


def scope_predicate(
    record_set: RecordSet,
    mapping: FieldMapping,
    rules: Sequence[ScopeRule] = DEFAULT_SCOPE_RULES,
) -> WhereClauses:
    where = WhereClauses()
    rule = scope_rule_for(record_set.type, rules)

    type_location = FieldLocation.table("type")
    if rule is not None and rule.type_prefix:
        type_clause = WhereClause(
            keys=(type_location,), operator=Operator.LIKE, values=(f"{record_set.type}%",)
        )
    else:
        type_clause = WhereClause(
            keys=(type_location,), operator=Operator.EQ, values=(record_set.type,)
        )
    where.add(type_clause)

    if rule is None:
        return where

    context = record_set.context or {}
    clauses: list[WhereClause] = []
    for key in rule.keys:
        location = mapping.location(key.param, key.variant)
        if location is None:
            raise CatalogError(
                f"No storage location mapped for scope key {key.param!r} ({key.variant})"
            )
        value = context.get(key.context_key)
        if value is None or value == "":
            raise ValidationError(f"missing context value for {key.context_key}")
        clauses.append(
            WhereClause(keys=(location,), operator=Operator.EQ, values=(_scope_value(value),))
        )
    where.add(*clauses)
    return where


def _scope_value(value: JsonScalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
