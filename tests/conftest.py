import asyncio

import pytest

from evalq.config.settings import settings
from evalq.core.db import SQLiteJobStore


@pytest.fixture(scope="session")
def event_loop():
    """Event loop compartido para tests async sin pytest-asyncio."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.run_until_complete(asyncio.sleep(0))
        loop.close()


@pytest.fixture(autouse=True)
def _isolated_dirs(tmp_path, monkeypatch):
    # nunca tocar ~/decoded_notebooks ni ./data durante los tests
    monkeypatch.setattr(settings, "STAGING_DIR", tmp_path / "decoded")
    monkeypatch.setattr(settings, "OUTPUT_DIR", tmp_path / "output")
    monkeypatch.setattr(settings, "DB_PATH", tmp_path / "evalq.db")


@pytest.fixture
def temp_db_path(tmp_path):
    return tmp_path / "jobs.db"


@pytest.fixture
def store(temp_db_path):
    return SQLiteJobStore(temp_db_path)
