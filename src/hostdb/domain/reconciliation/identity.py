"""Identity key registry: how to recognise the same vendor object twice.

Most record types carry no stable client-side ID, so the engine compares a
natural key extracted from the payload instead. Each rule pairs a record-type
matcher with an extractor; the first matching rule wins. Types without a rule
fall back to hostname equality.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hostdb.domain.model import JsonValue, Record

type TypeMatcher = Callable[[str], bool]
type IdentityExtractor = Callable[["JsonValue"], str | None]


def type_is(*names: str) -> TypeMatcher:
    accepted = frozenset(names)

    def matcher(record_type: str) -> bool:
        return record_type in accepted

    return matcher


def type_startswith(prefix: str) -> TypeMatcher:
    def matcher(record_type: str) -> bool:
        return record_type.startswith(prefix)

    return matcher


def type_contains(fragment: str) -> TypeMatcher:
    def matcher(record_type: str) -> bool:
        return fragment in record_type

    return matcher


def payload_property(name: str) -> IdentityExtractor:
    """Extract a top-level string property from an object payload."""

    def extract(data: JsonValue) -> str | None:
        if not isinstance(data, dict):
            return None
        value = data.get(name)
        if isinstance(value, str) and value:
            return value
        return None

    return extract


@dataclass(frozen=True, slots=True)
class IdentityRule:
    name: str
    matches: TypeMatcher
    extract: IdentityExtractor


class IdentityRegistry:
    """Ordered collection of identity rules."""

    def __init__(self, rules: Iterable[IdentityRule] = ()) -> None:
        self._rules: list[IdentityRule] = list(rules)

    def register(self, rule: IdentityRule) -> None:
        self._rules.append(rule)

    def register_property(self, name: str, matches: TypeMatcher, property_name: str) -> None:
        rule = IdentityRule(name=name, matches=matches, extract=payload_property(property_name))
        self.register(rule)

    def rule_for(self, record_type: str) -> IdentityRule | None:
        for rule in self._rules:
            if rule.matches(record_type):
                return rule
        return None

    def same_identity(self, record_type: str, incoming: Record, candidate: Record) -> bool:
        rule = self.rule_for(record_type)
        if rule is None:
            return bool(incoming.hostname) and incoming.hostname == candidate.hostname
        incoming_key = rule.extract(incoming.data)
        return incoming_key is not None and incoming_key == rule.extract(candidate.data)

    def __len__(self) -> int:
        return len(self._rules)


def default_identity_registry() -> IdentityRegistry:
    registry = IdentityRegistry()
    registry.register_property("aws-bucket", type_is("aws-bucket"), "Name")
    registry.register_property("aws-database", type_is("aws-database"), "DbiResourceId")
    registry.register_property(
        "aws-directconnect", type_is("aws-directconnect"), "VirtualInterfaceId"
    )
    registry.register_property("aws-hostedzone", type_is("aws-hostedzone"), "Id")
    registry.register_property("aws-image", type_is("aws-image"), "ImageId")
    registry.register_property("aws-keypair", type_is("aws-keypair"), "KeyName")
    registry.register_property("aws-securitygroup", type_is("aws-securitygroup"), "GroupId")
    registry.register_property("aws-subnet", type_is("aws-subnet"), "SubnetId")
    registry.register_property("aws-vpc", type_is("aws-vpc"), "VpcId")
    registry.register_property("oneview", type_startswith("oneview-"), "uri")
    registry.register_property("openstack", type_is("openstack"), "id")
    registry.register_property(
        "ucs-dn",
        type_is(
            "ucs-cpu",
            "ucs-fabric_interconnect",
            "ucs-memory",
            "ucs-pci",
            "ucs-storage",
            "ucs-vhba",
            "ucs-vic",
            "ucs-vnic",
        ),
        "dn",
    )
    registry.register_property("ucs-serial", type_is("ucs-disk", "ucs-psu"), "serial")
    registry.register_property("vrops-vmware", type_is("vrops-vmware"), "resourceId")
    return registry
