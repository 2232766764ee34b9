"""Tests for database initialization and connection management."""
from studydeck.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {
        "cards", "card_progress", "questions", "question_options",
        "exam_scores", "reports", "user_profiles",
    }
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "deck.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "deck.db").exists()


def test_get_connection_enables_foreign_keys(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_profiles (user_id, study_streak) VALUES ('u1', 3)")
    row = conn.execute("SELECT user_id, study_streak FROM user_profiles WHERE user_id='u1'").fetchone()
    assert row["study_streak"] == 3
    conn.close()
