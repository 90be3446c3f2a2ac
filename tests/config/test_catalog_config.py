from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from hostdb.config import (
    DEFAULT_LIST_FIELDS,
    ConfigurationError,
    MissingConfigurationError,
    default_catalog_config,
    get_catalog_config,
    load_catalog_config,
    parse_catalog_config,
)
from hostdb.domain.model import FieldLocation

if TYPE_CHECKING:
    from pathlib import Path

CATALOG_TOML = """
list_fields = ["hostname", "type"]

[required_context]
openstack = ["tenant_name"]

[fields.hostname]
default = { table = "hostname" }

[fields.tenant]
openstack = { context = ".tenant_name" }

[fields.name]
openstack = { data = ".name" }
vrops-vmware = { data = "$.resourceKey.name" }
ucs = {}
"""


def test_load_catalog_config(tmp_path: Path) -> None:
    path = tmp_path / "catalog.toml"
    path.write_text(CATALOG_TOML, encoding="utf-8")

    config = load_catalog_config(path)

    assert config.list_fields == ("hostname", "type")
    assert config.required_context.for_type("openstack") == ("tenant_name",)
    assert config.mapping.location("hostname", "default") == FieldLocation.table("hostname")
    assert config.mapping.location("tenant", "openstack") == FieldLocation.in_context(
        ".tenant_name"
    )
    assert config.mapping.locations("name") == (
        FieldLocation.in_data(".name"),
        FieldLocation.in_data(".resourceKey.name"),
    )
    assert config.mapping.location("name", "ucs") is None


def test_list_fields_default() -> None:
    config = parse_catalog_config({"fields": {}})

    assert config.list_fields == DEFAULT_LIST_FIELDS


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MissingConfigurationError):
        load_catalog_config(tmp_path / "absent.toml")


def test_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "catalog.toml"
    path.write_text("[fields\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid catalog configuration"):
        load_catalog_config(path)


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ({"fields": {"x": {"default": {"column": "ip"}}}}, "unknown keys column"),
        (
            {"fields": {"x": {"default": {"table": "ip", "data": ".ip"}}}},
            "expected one of",
        ),
        ({"fields": {"x": {"default": {"table": "serial"}}}}, "Unknown record column"),
        ({"fields": {"x": {"default": {"data": ".a..b"}}}}, "Invalid JSON path"),
        ({"fields": {"x": {"default": {"data": " "}}}}, "non-empty string"),
        ({"fields": []}, "fields must be a table"),
        ({"required_context": {"aws": "aws-region"}}, "list of strings"),
    ],
)
def test_invalid_documents(document: dict[str, object], message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        parse_catalog_config(document)


def test_get_catalog_config_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "catalog.toml"
    path.write_text(CATALOG_TOML, encoding="utf-8")
    monkeypatch.setenv("HOSTDB_CATALOG_CONFIG", str(path))

    assert get_catalog_config().list_fields == ("hostname", "type")


def test_get_catalog_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOSTDB_CATALOG_CONFIG", raising=False)

    config = get_catalog_config()

    assert config == default_catalog_config()
    assert "resource_id" in config.mapping
