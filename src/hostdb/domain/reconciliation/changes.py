"""Change detection between an incoming record and its stored counterpart."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from hostdb.domain.model import JsonScalar, Record


def _same_scalar(left: JsonScalar, right: JsonScalar) -> bool:
    # bool is an int subclass; True must not equal 1 here
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


def contexts_equal(left: Mapping[str, JsonScalar], right: Mapping[str, JsonScalar]) -> bool:
    if left.keys() != right.keys():
        return False
    return all(_same_scalar(value, right[key]) for key, value in left.items())


def anything_changed(incoming: Record, existing: Record | None) -> bool:
    """True when ``incoming`` must be written: new, new payload, or new context."""

    if existing is None:
        return True
    if incoming.hash != existing.hash:
        return True
    return not contexts_equal(incoming.context, existing.context)
