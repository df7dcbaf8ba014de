"""Datastore initialization, provisioning and connection management."""
import logging
import shutil
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from qq_cards.config import AppConfig
from qq_cards.errors import StorageUnavailable
from qq_cards.sessions import SessionStore

logger = logging.getLogger(__name__)

MASTER_SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    question_id INTEGER PRIMARY KEY CHECK (question_id > 0),
    question_text TEXT NOT NULL,
    pack TEXT NOT NULL DEFAULT '',
    version_added TEXT NOT NULL DEFAULT '',
    tags TEXT NOT NULL DEFAULT ''
);
"""

USER_SCHEMA = """
CREATE TABLE IF NOT EXISTS user_preferences (
    question_id INTEGER PRIMARY KEY,
    status TEXT NOT NULL CHECK (status IN ('favorite', 'hidden'))
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    creation_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS session_progress (
    session_id INTEGER NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
    question_id INTEGER NOT NULL,
    completed_at TEXT,
    PRIMARY KEY (session_id, question_id)
);

CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
    question_id INTEGER NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notes_session_question ON notes (session_id, question_id);
"""


def get_connection(db_path, read_only: bool = False) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    if read_only:
        conn = sqlite3.connect(Path(db_path).resolve().as_uri() + "?mode=ro", uri=True)
    else:
        conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_master_db(db_path) -> None:
    """Create the corpus table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(MASTER_SCHEMA)
    conn.commit()
    conn.close()


def init_user_db(db_path) -> None:
    """Create the user-data tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(USER_SCHEMA)
    conn.commit()
    conn.close()


def provision_user_db(user_path, seed_path=None) -> bool:
    """Copy the seed user datastore into place on first run.

    The copy happens only when nothing exists at ``user_path``. The schema is
    ensured afterwards either way. Returns True when the seed was copied.
    """
    user_path = Path(user_path)
    copied = False
    if not user_path.exists() and seed_path is not None and Path(seed_path).exists():
        user_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(seed_path, user_path)
        logger.info("Copied seed user datastore %s -> %s", seed_path, user_path)
        copied = True
    init_user_db(user_path)
    return copied


def open_master(db_path) -> sqlite3.Connection:
    """Open the corpus read-only, raising StorageUnavailable on failure."""
    if not Path(db_path).exists():
        raise StorageUnavailable(db_path, "file not found")
    try:
        conn = get_connection(db_path, read_only=True)
    except sqlite3.Error as e:
        raise StorageUnavailable(db_path, str(e)) from e
    try:
        conn.execute("SELECT COUNT(*) FROM questions").fetchone()
    except sqlite3.Error as e:
        conn.close()
        raise StorageUnavailable(db_path, str(e)) from e
    return conn


def open_user(db_path, seed_path=None) -> sqlite3.Connection:
    """Provision and open the user datastore, raising StorageUnavailable on failure."""
    try:
        provision_user_db(db_path, seed_path)
        return get_connection(db_path)
    except (sqlite3.Error, OSError) as e:
        raise StorageUnavailable(db_path, str(e)) from e


def memory_store(schema: str) -> sqlite3.Connection:
    """An empty in-memory datastore with the given schema."""
    conn = get_connection(":memory:")
    conn.executescript(schema)
    conn.commit()
    return conn


@dataclass
class Datastores:
    master: sqlite3.Connection
    user: sqlite3.Connection
    degraded: bool = False

    def close(self) -> None:
        self.master.close()
        self.user.close()


def open_datastores(config: AppConfig, seed_path: Optional[Path] = None) -> Datastores:
    """Acquire both long-lived connections.

    A datastore that cannot be opened is replaced with an empty in-memory one
    so callers always get usable handles; ``degraded`` records that it happened.
    """
    degraded = False
    try:
        master = open_master(config.master_db)
    except StorageUnavailable as e:
        logger.error("Corpus unavailable, continuing without questions: %s", e)
        master = memory_store(MASTER_SCHEMA)
        degraded = True
    try:
        user = open_user(config.user_db, seed_path or config.user_seed_db)
        SessionStore(user).repair_names()
    except StorageUnavailable as e:
        logger.error("User datastore unavailable, changes will not persist: %s", e)
        user = memory_store(USER_SCHEMA)
        degraded = True
    return Datastores(master=master, user=user, degraded=degraded)
