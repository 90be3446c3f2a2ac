"""Shared logging helpers for hostdb."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError


def log_level_from_env(default: int = logging.INFO) -> int:
    """Resolve ``HOSTDB_LOG_LEVEL`` (a level name such as ``DEBUG``) or ``default``."""

    raw = os.getenv("HOSTDB_LOG_LEVEL")
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level in HOSTDB_LOG_LEVEL: {raw!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the
    level defaults to ``HOSTDB_LOG_LEVEL`` or INFO, with a terse format suitable
    for CLI output. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else log_level_from_env(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
