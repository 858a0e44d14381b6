"""
Shared pytest fixtures for the SOUBI Vault test suite.

Every fixture points the store at ``tmp_path`` so tests never touch the
real data directory.
"""
import os

import pytest

from soubi_vault.store import StoreConfig


@pytest.fixture
def config(tmp_path):
    """StoreConfig rooted in a per-test temp directory."""
    return StoreConfig(store_path=tmp_path / "soubi_db.json")


@pytest.fixture
def key():
    """Random raw 32-byte key."""
    return os.urandom(32)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep SOUBI_* variables from the developer's shell out of the tests."""
    for name in ("SOUBI_DATA_DIR", "SOUBI_DB_FILE", "SOUBI_SALT_SUFFIX"):
        monkeypatch.delenv(name, raising=False)
