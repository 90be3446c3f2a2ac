from __future__ import annotations

import logging

import pytest

from hostdb.config import ConfigurationError, configure_logging, log_level_from_env


def test_log_level_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOSTDB_LOG_LEVEL", raising=False)

    assert log_level_from_env() == logging.INFO
    assert log_level_from_env(logging.WARNING) == logging.WARNING


def test_log_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSTDB_LOG_LEVEL", " debug ")

    assert log_level_from_env() == logging.DEBUG


def test_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSTDB_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError, match="chatty"):
        log_level_from_env()


def test_configure_logging_sets_root_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = list(root.handlers)
    try:
        configure_logging(level=logging.DEBUG, force=True)
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)
