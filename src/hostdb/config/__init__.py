"""Application configuration helpers."""

from __future__ import annotations

from .catalog import (
    DEFAULT_LIST_FIELDS,
    CatalogConfig,
    default_catalog_config,
    default_field_mapping,
    default_required_context,
    get_catalog_config,
    load_catalog_config,
    parse_catalog_config,
)
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, log_level_from_env
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_LIST_FIELDS",
    "CatalogConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "default_catalog_config",
    "default_field_mapping",
    "default_required_context",
    "get_catalog_config",
    "get_database_config",
    "get_storage_config",
    "load_catalog_config",
    "log_level_from_env",
    "parse_catalog_config",
]
