"""Local snapshot storage and connection management."""
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str(Path.home() / ".flashcard_hub" / "flashcards.db")
STORAGE_NAME = "flashcard-storage"

SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    name TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def save_snapshot(db_path: str, payload: dict, name: str = STORAGE_NAME) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO snapshots (name, payload, saved_at) VALUES (?, ?, ?)
        ON CONFLICT(name) DO UPDATE SET payload=excluded.payload, saved_at=excluded.saved_at""",
        (name, json.dumps(payload), datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def load_snapshot(db_path: str, name: str = STORAGE_NAME) -> dict | None:
    """Return the stored snapshot, or None when missing or unreadable."""
    conn = get_connection(db_path)
    row = conn.execute("SELECT payload FROM snapshots WHERE name = ?", (name,)).fetchone()
    conn.close()
    if not row:
        return None
    try:
        return json.loads(row["payload"])
    except json.JSONDecodeError:
        logger.warning("Snapshot %r is corrupt, starting from an empty store", name)
        return None

