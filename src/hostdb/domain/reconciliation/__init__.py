"""Bulk reconciliation of submitted record sets against stored records."""

from __future__ import annotations

from .changes import anything_changed, contexts_equal
from .engine import UPSERT_MAX_ATTEMPTS, ReconcilePlan, ReconcileResult, ReconciliationEngine
from .identity import (
    IdentityRegistry,
    IdentityRule,
    default_identity_registry,
    payload_property,
    type_contains,
    type_is,
    type_startswith,
)
from .scope import DEFAULT_SCOPE_RULES, ScopeKey, ScopeRule, scope_predicate, scope_rule_for
from .validation import ensure_complete, merge_envelope, validate_record_set, validate_type

__all__ = [
    "DEFAULT_SCOPE_RULES",
    "UPSERT_MAX_ATTEMPTS",
    "IdentityRegistry",
    "IdentityRule",
    "ReconcilePlan",
    "ReconcileResult",
    "ReconciliationEngine",
    "ScopeKey",
    "ScopeRule",
    "anything_changed",
    "contexts_equal",
    "default_identity_registry",
    "ensure_complete",
    "merge_envelope",
    "payload_property",
    "scope_predicate",
    "scope_rule_for",
    "type_contains",
    "type_is",
    "type_startswith",
    "validate_record_set",
    "validate_type",
]
