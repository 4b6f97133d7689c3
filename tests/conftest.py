"""Shared fixtures: an in-memory store and isolated configuration paths."""

from typing import Any, Iterator

import pytest

from timeguru import configuration
from timeguru.repository.configuration import CONFIGURATION_REPO
from timeguru.repository.store import LocalStore


@pytest.fixture
def store() -> Iterator[LocalStore]:
    local_store = LocalStore(":memory:")
    yield local_store
    local_store.close()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch) -> Iterator[Any]:
    """Point every configuration and data path at a temporary directory."""
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    log_dir = tmp_path / "log"
    monkeypatch.setattr(configuration, "CONFIG_PATH", config_dir)
    monkeypatch.setattr(configuration, "APP_CONFIG_PATH", config_dir / "config.yaml")
    monkeypatch.setattr(configuration, "DATA_PATH", data_dir)
    monkeypatch.setattr(configuration, "DATA_DATABASE_PATH", data_dir / "timeguru.db")
    monkeypatch.setattr(configuration, "LOG_PATH", log_dir)
    monkeypatch.setattr(configuration, "LOG_FILE_PATH", log_dir / "app.log")
    monkeypatch.delenv(configuration.API_TOKEN_ENV, raising=False)
    CONFIGURATION_REPO.reset()
    yield tmp_path
    CONFIGURATION_REPO.reset()
