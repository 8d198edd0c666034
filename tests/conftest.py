"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todosh.config import CONFIG_ENV_VAR, DATA_DIR_ENV_VAR, Config, ConfigModel
from todosh.storage import Storage


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test from a scratch directory with no cached config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(DATA_DIR_ENV_VAR, raising=False)
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def config(tmp_path):
    return ConfigModel(
        data_dir=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "data" / "backups"),
    )


@pytest.fixture
def storage(config):
    return Storage(config)


@pytest.fixture
def abc_storage(storage):
    """Storage holding todos a, b and c."""
    for text in ("a", "b", "c"):
        storage.append(text)
    return storage
