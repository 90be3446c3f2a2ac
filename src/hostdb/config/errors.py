"""Errors raised while loading hostdb settings and catalog files."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting or catalog file is present but unusable."""


class MissingConfigurationError(ConfigurationError):
    """A catalog file or required setting could not be found."""
