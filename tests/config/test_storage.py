from __future__ import annotations

from typing import TYPE_CHECKING

from hostdb.config import StorageConfig, get_database_config, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path

    import pytest


def test_storage_config_uses_env_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSTDB_DATA_DIR", str(tmp_path / "data"))

    config = get_storage_config()

    assert config.resolve_data_dir() == (tmp_path / "data").resolve()


def test_storage_config_falls_back_to_xdg_data_home(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("HOSTDB_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert get_storage_config().data_dir == tmp_path / "hostdb"


def test_database_path_creates_directory(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path / "nested" / "dir")

    path = config.database_path()

    assert path.parent.exists()
    assert path.name == "hostdb.db"
    assert config.database_uri() == f"sqlite+pysqlite:///{path}"


def test_database_config_prefers_env_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "mysql+pymysql://catalog@db/hostdb")

    assert get_database_config().uri == "mysql+pymysql://catalog@db/hostdb"


def test_database_config_falls_back_to_data_dir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)

    config = get_database_config(storage=StorageConfig(data_dir=tmp_path))

    assert config.uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'hostdb.db'}"
