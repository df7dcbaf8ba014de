"""Named sessions: creation with name rules, listing, cascade delete."""
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from qq_cards.models import Session

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 20


class SessionError(Enum):
    EMPTY_NAME = "empty_name"
    INVALID_NAME = "invalid_name"
    DUPLICATE_NAME = "duplicate_name"
    STORAGE_FAILED = "storage_failed"

    @property
    def is_constraint_violation(self) -> bool:
        return self is not SessionError.STORAGE_FAILED


@dataclass
class SessionResult:
    session: Optional[Session] = None
    error: Optional[SessionError] = None

    @property
    def ok(self) -> bool:
        return self.session is not None


def _is_corrupt(name) -> bool:
    if not isinstance(name, str) or not name.strip():
        return True
    return any(not (ch.isprintable() or ch.isspace()) for ch in name)


def validate_name(raw: str) -> Optional[str]:
    """Trim and truncate a session name.

    Returns None when nothing is left or the name holds control characters.
    """
    name = (raw or "").strip()[:MAX_NAME_LENGTH]
    if _is_corrupt(name):
        return None
    return name


def _row_to_session(row) -> Session:
    return Session(id=row["session_id"], name=row["name"], creation_date=row["creation_date"])


class SessionStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def exists(self, name: str) -> bool:
        try:
            count = self.conn.execute(
                "SELECT COUNT(*) FROM sessions WHERE name = ?", (name,)
            ).fetchone()[0]
        except sqlite3.Error as e:
            logger.error("Checking session name failed: %s", e)
            return False
        return count > 0

    def create(self, name: str) -> SessionResult:
        final_name = validate_name(name)
        if final_name is None:
            if not (name or "").strip():
                return SessionResult(error=SessionError.EMPTY_NAME)
            return SessionResult(error=SessionError.INVALID_NAME)
        if self.exists(final_name):
            return SessionResult(error=SessionError.DUPLICATE_NAME)
        created = datetime.now().isoformat()
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO sessions (name, creation_date) VALUES (?, ?)",
                    (final_name, created),
                )
        except sqlite3.Error as e:
            logger.error("Creating session %r failed: %s", final_name, e)
            return SessionResult(error=SessionError.STORAGE_FAILED)
        logger.debug("Created session %s %r", cursor.lastrowid, final_name)
        return SessionResult(session=Session(id=cursor.lastrowid, name=final_name, creation_date=created))

    def get(self, session_id: int) -> Optional[Session]:
        try:
            row = self.conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Fetching session %s failed: %s", session_id, e)
            return None
        return _row_to_session(row) if row else None

    def list_all(self) -> list[Session]:
        """All sessions, newest first."""
        try:
            rows = self.conn.execute(
                "SELECT * FROM sessions ORDER BY creation_date DESC, session_id DESC"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Listing sessions failed: %s", e)
            return []
        return [_row_to_session(row) for row in rows]

    def delete(self, session_id: int) -> bool:
        """Delete a session; its progress and notes go with it."""
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "DELETE FROM sessions WHERE session_id = ?", (session_id,)
                )
        except sqlite3.Error as e:
            logger.error("Deleting session %s failed: %s", session_id, e)
            return False
        return cursor.rowcount > 0

    def _free_name(self, base: str) -> str:
        name, suffix = base, 2
        while self.exists(name):
            name = f"{base} ({suffix})"
            suffix += 1
        return name

    def repair_names(self) -> int:
        """Rename sessions whose stored name is blank or unreadable."""
        try:
            rows = self.conn.execute("SELECT session_id, name FROM sessions").fetchall()
            broken = [row["session_id"] for row in rows if _is_corrupt(row["name"])]
            with self.conn:
                for session_id in broken:
                    self.conn.execute(
                        "UPDATE sessions SET name = ? WHERE session_id = ?",
                        (self._free_name(f"Session {session_id}"), session_id),
                    )
        except sqlite3.Error as e:
            logger.error("Repairing session names failed: %s", e)
            return 0
        if broken:
            logger.warning("Repaired %d corrupted session names", len(broken))
        return len(broken)
