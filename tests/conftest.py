import pytest

from studydeck.config import get_settings
from studydeck.db import init_db


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_studydeck.db")
    return db_path


@pytest.fixture
def db(tmp_db):
    """A temporary database with the schema created."""
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def settings_env(monkeypatch, tmp_db):
    """Point the cached settings at the temporary database."""
    monkeypatch.setenv("STUDYDECK_DB_PATH", tmp_db)
    monkeypatch.setenv("STUDYDECK_USER_ID", "tester")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
