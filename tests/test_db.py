"""Tests for local snapshot storage."""
from flashcard_hub.db import (
    STORAGE_NAME, get_connection, init_db, load_snapshot, save_snapshot,
)


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    assert "snapshots" in tables
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise


def test_save_and_load_snapshot(tmp_db):
    init_db(tmp_db)
    save_snapshot(tmp_db, {"cards": [], "stage": 1})
    assert load_snapshot(tmp_db) == {"cards": [], "stage": 1}


def test_save_snapshot_overwrites(tmp_db):
    init_db(tmp_db)
    save_snapshot(tmp_db, {"stage": 1})
    save_snapshot(tmp_db, {"stage": 3})
    assert load_snapshot(tmp_db) == {"stage": 3}
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()[0] == 1
    conn.close()


def test_load_missing_snapshot(tmp_db):
    init_db(tmp_db)
    assert load_snapshot(tmp_db) is None
    assert load_snapshot(tmp_db, "other") is None


def test_corrupt_snapshot_reads_as_missing(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute(
        "INSERT INTO snapshots (name, payload, saved_at) VALUES (?, ?, ?)",
        (STORAGE_NAME, "{not json", "2024-01-01"),
    )
    conn.commit()
    conn.close()
    assert load_snapshot(tmp_db) is None

