"""Per-session completion tracking."""
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from qq_cards.models import PLACEHOLDER_ID, ProgressRecord

logger = logging.getLogger(__name__)


class ProgressStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, session_id: int, question_id: int) -> Optional[ProgressRecord]:
        try:
            row = self.conn.execute(
                "SELECT * FROM session_progress WHERE session_id = ? AND question_id = ?",
                (session_id, question_id),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Reading progress for session %s failed: %s", session_id, e)
            return None
        if not row:
            return None
        return ProgressRecord(row["session_id"], row["question_id"], row["completed_at"])

    def is_completed(self, session_id: int, question_id: int) -> bool:
        try:
            row = self.conn.execute(
                """SELECT 1 FROM session_progress
                WHERE session_id = ? AND question_id = ? AND completed_at IS NOT NULL""",
                (session_id, question_id),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Reading progress for session %s failed: %s", session_id, e)
            return False
        return row is not None

    def mark_completed(self, session_id: int, question_id: int) -> bool:
        """Upsert the completion record; marking again only refreshes the timestamp."""
        if question_id == PLACEHOLDER_ID:
            logger.warning("Refusing to mark the placeholder question as completed")
            return False
        try:
            with self.conn:
                self.conn.execute(
                    """INSERT INTO session_progress (session_id, question_id, completed_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(session_id, question_id) DO UPDATE SET completed_at = excluded.completed_at""",
                    (session_id, question_id, datetime.now().isoformat()),
                )
        except sqlite3.Error as e:
            logger.error("Marking question %s complete in session %s failed: %s", question_id, session_id, e)
            return False
        return True

    def list_completed_ids(self, session_id: int) -> set[int]:
        try:
            rows = self.conn.execute(
                """SELECT question_id FROM session_progress
                WHERE session_id = ? AND completed_at IS NOT NULL AND question_id != ?""",
                (session_id, PLACEHOLDER_ID),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Listing progress for session %s failed: %s", session_id, e)
            return set()
        return {row[0] for row in rows}
