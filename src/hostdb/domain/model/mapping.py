"""Field-location mapping: where each logical query parameter is stored.

The mapping is keyed by parameter name, then by record-type variant. One
parameter may live in a different place for each variant (for example a
column for one vendor, a context key for another). A variant mapped to
``None`` is inert.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .predicate import FieldLocation


@dataclass(frozen=True, slots=True)
class FieldMapping:
    params: Mapping[str, Mapping[str, FieldLocation | None]] = field(
        default_factory=dict[str, "Mapping[str, FieldLocation | None]"]
    )

    def __contains__(self, name: object) -> bool:
        return name in self.params

    def names(self) -> tuple[str, ...]:
        return tuple(self.params)

    def locations(self, name: str) -> tuple[FieldLocation, ...]:
        """Distinct locations of ``name`` across every variant, in declaration order."""

        found: list[FieldLocation] = []
        for location in self.params.get(name, {}).values():
            if location is not None and location not in found:
                found.append(location)
        return tuple(found)

    def location(self, name: str, variant: str) -> FieldLocation | None:
        return self.params.get(name, {}).get(variant)


@dataclass(frozen=True, slots=True)
class RequiredContext:
    """Context keys a record set must carry, keyed by a record-type fragment."""

    keys_by_type: Mapping[str, tuple[str, ...]] = field(
        default_factory=dict[str, "tuple[str, ...]"]
    )

    def for_type(self, record_type: str) -> tuple[str, ...]:
        for fragment, keys in self.keys_by_type.items():
            if fragment in record_type:
                return keys
        return ()
