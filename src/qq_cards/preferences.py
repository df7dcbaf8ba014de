"""Per-question favorite / hidden flags in the user datastore.

The table is sparse: a question with no row is in the normal state, and a
stored row carries exactly one status, so favorite and hidden are mutually
exclusive by construction.
"""
import logging
import sqlite3

from qq_cards.models import UserPreference

logger = logging.getLogger(__name__)

FAVORITE = "favorite"
HIDDEN = "hidden"


class PreferenceStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, question_id: int) -> UserPreference:
        try:
            row = self.conn.execute(
                "SELECT status FROM user_preferences WHERE question_id = ?", (question_id,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Reading preference for %s failed: %s", question_id, e)
            return UserPreference(question_id)
        if not row:
            return UserPreference(question_id)
        return UserPreference(
            question_id,
            is_favorite=row["status"] == FAVORITE,
            is_hidden=row["status"] == HIDDEN,
        )

    def _set_status(self, question_id: int, status: str, value: bool) -> bool:
        try:
            with self.conn:
                if value:
                    # Overwrites any other status, which clears the opposite flag.
                    self.conn.execute(
                        """INSERT INTO user_preferences (question_id, status) VALUES (?, ?)
                        ON CONFLICT(question_id) DO UPDATE SET status = excluded.status""",
                        (question_id, status),
                    )
                else:
                    self.conn.execute(
                        "DELETE FROM user_preferences WHERE question_id = ? AND status = ?",
                        (question_id, status),
                    )
        except sqlite3.Error as e:
            logger.error("Setting %s=%s for question %s failed: %s", status, value, question_id, e)
            return False
        return True

    def set_favorite(self, question_id: int, value: bool) -> bool:
        return self._set_status(question_id, FAVORITE, value)

    def set_hidden(self, question_id: int, value: bool) -> bool:
        return self._set_status(question_id, HIDDEN, value)

    def _list(self, status: str) -> set[int]:
        try:
            rows = self.conn.execute(
                "SELECT question_id FROM user_preferences WHERE status = ?", (status,)
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Listing %s questions failed: %s", status, e)
            return set()
        return {row[0] for row in rows}

    def list_hidden(self) -> set[int]:
        return self._list(HIDDEN)

    def list_favorites(self) -> set[int]:
        return self._list(FAVORITE)

    def count_hidden(self) -> int:
        return len(self.list_hidden())

    def count_favorites(self) -> int:
        return len(self.list_favorites())
