"""Field-location mapping, required context keys and list defaults.

A TOML file named by ``HOSTDB_CATALOG_CONFIG`` replaces the built-in catalog::

    list_fields = ["hostname", "ip", "type", "timestamp"]

    [required_context]
    openstack = ["tenant_name"]

    [fields.hostname]
    default = { table = "hostname" }

    [fields.tenant]
    openstack = { context = ".tenant_name" }

Each variant entry names exactly one of ``table``, ``context`` or ``data``;
an empty entry is inert.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from hostdb.domain.model import FieldLocation, FieldMapping, RequiredContext

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_VARIANT: Final[str] = "default"
DEFAULT_LIST_FIELDS: Final[tuple[str, ...]] = ("hostname", "ip", "type", "timestamp")

_LOCATION_KINDS: Final[tuple[str, ...]] = ("table", "context", "data")


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    mapping: FieldMapping = field(default_factory=FieldMapping)
    required_context: RequiredContext = field(default_factory=RequiredContext)
    list_fields: tuple[str, ...] = DEFAULT_LIST_FIELDS


def _column(name: str) -> dict[str, FieldLocation | None]:
    return {DEFAULT_VARIANT: FieldLocation.table(name)}


def default_field_mapping() -> FieldMapping:
    """Table columns plus the vendor context and payload keys queried most often."""

    return FieldMapping(
        params={
            "id": _column("id"),
            "type": _column("type"),
            "hostname": _column("hostname"),
            "ip": _column("ip"),
            "committer": _column("committer"),
            "timestamp": _column("timestamp"),
            "aws-region": {"aws": FieldLocation.in_context(".aws-region")},
            "aws-account-id": {"aws": FieldLocation.in_context(".aws-account-id")},
            "oneview_url": {"oneview": FieldLocation.in_context(".oneview_url")},
            "tenant": {"openstack": FieldLocation.in_context(".tenant_name")},
            "ucs_url": {"ucs": FieldLocation.in_context(".ucs_url")},
            "vc_url": {"vrops-vmware": FieldLocation.in_context(".vc_url")},
            "serial": {
                "ucs": FieldLocation.in_data(".serial"),
                "oneview": FieldLocation.in_data(".serialNumber"),
            },
            "resource_id": {
                "openstack": FieldLocation.in_data(".id"),
                "oneview": FieldLocation.in_data(".uri"),
                "vrops-vmware": FieldLocation.in_data(".resourceId"),
            },
            "name": {
                "openstack": FieldLocation.in_data(".name"),
                "oneview": FieldLocation.in_data(".name"),
                "vrops-vmware": FieldLocation.in_data(".resourceKey.name"),
            },
            "model": {
                "ucs": FieldLocation.in_data(".model"),
                "oneview": FieldLocation.in_data(".model"),
            },
        }
    )


def default_required_context() -> RequiredContext:
    return RequiredContext(
        keys_by_type={
            "aws": ("aws-region", "aws-account-id"),
            "oneview": ("oneview_url",),
            "openstack": ("tenant_name",),
            "ucs": ("ucs_url",),
            "vrops-vmware": ("vc_url",),
        }
    )


def default_catalog_config() -> CatalogConfig:
    return CatalogConfig(
        mapping=default_field_mapping(),
        required_context=default_required_context(),
    )


def load_catalog_config(path: Path) -> CatalogConfig:
    """Read a catalog TOML file, raising ``ConfigurationError`` on invalid content."""

    try:
        with path.open("rb") as config_file:
            document = tomllib.load(config_file)
    except FileNotFoundError as exc:
        raise MissingConfigurationError(f"Catalog configuration not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid catalog configuration {path}: {exc}") from exc
    return parse_catalog_config(document)


def parse_catalog_config(document: Mapping[str, object]) -> CatalogConfig:
    fields = _table(document.get("fields", {}), "fields")
    params: dict[str, dict[str, FieldLocation | None]] = {}
    for name, variants in fields.items():
        entries = _table(variants, f"fields.{name}")
        params[name] = {
            variant: _parse_location(entry, f"fields.{name}.{variant}")
            for variant, entry in entries.items()
        }

    required = _table(document.get("required_context", {}), "required_context")
    keys_by_type = {
        fragment: _string_list(keys, f"required_context.{fragment}")
        for fragment, keys in required.items()
    }

    list_fields = DEFAULT_LIST_FIELDS
    if "list_fields" in document:
        list_fields = _string_list(document["list_fields"], "list_fields")

    return CatalogConfig(
        mapping=FieldMapping(params=params),
        required_context=RequiredContext(keys_by_type=keys_by_type),
        list_fields=list_fields,
    )


def get_catalog_config() -> CatalogConfig:
    env_path = os.getenv("HOSTDB_CATALOG_CONFIG")
    if env_path:
        return load_catalog_config(Path(env_path).expanduser())
    return default_catalog_config()


def _table(value: object, where: str) -> dict[str, object]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where} must be a table")
    return {str(key): item for key, item in value.items()}


def _string_list(value: object, where: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{where} must be a list of strings")
    return tuple(value)


def _parse_location(entry: object, where: str) -> FieldLocation | None:
    entry_table = _table(entry, where)
    unknown = sorted(set(entry_table) - set(_LOCATION_KINDS))
    if unknown:
        raise ConfigurationError(f"{where}: unknown keys {', '.join(unknown)}")

    kinds = [kind for kind in _LOCATION_KINDS if kind in entry_table]
    if not kinds:
        return None
    if len(kinds) > 1:
        raise ConfigurationError(f"{where}: expected one of table/context/data, got {kinds}")

    kind = kinds[0]
    value = entry_table[kind]
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{where}.{kind} must be a non-empty string")

    try:
        if kind == "table":
            return FieldLocation.table(value)
        if kind == "context":
            return FieldLocation.in_context(value)
        return FieldLocation.in_data(value)
    except ValueError as exc:
        raise ConfigurationError(f"{where}: {exc}") from exc
