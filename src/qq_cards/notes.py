"""Free-text notes attached to a question within a session."""
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from qq_cards.models import Note

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 350


def _row_to_note(row) -> Note:
    return Note(
        id=row["id"],
        session_id=row["session_id"],
        question_id=row["question_id"],
        content=row["content"],
        created_at=row["created_at"],
    )


class NoteStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, session_id: int, question_id: int) -> Optional[Note]:
        """The most recent note for this question in this session."""
        try:
            row = self.conn.execute(
                """SELECT * FROM notes WHERE session_id = ? AND question_id = ?
                ORDER BY created_at DESC, id DESC LIMIT 1""",
                (session_id, question_id),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Reading note failed: %s", e)
            return None
        return _row_to_note(row) if row else None

    def create(self, session_id: int, question_id: int, content: str) -> Optional[Note]:
        if len(content) > MAX_NOTE_LENGTH:
            logger.warning("Note rejected: %d characters exceeds %d", len(content), MAX_NOTE_LENGTH)
            return None
        created = datetime.now().isoformat()
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO notes (session_id, question_id, content, created_at) VALUES (?, ?, ?, ?)",
                    (session_id, question_id, content, created),
                )
        except sqlite3.Error as e:
            logger.error("Creating note failed: %s", e)
            return None
        return Note(cursor.lastrowid, session_id, question_id, content, created)

    def update(self, note_id: int, content: str) -> bool:
        if len(content) > MAX_NOTE_LENGTH:
            logger.warning("Note update rejected: %d characters exceeds %d", len(content), MAX_NOTE_LENGTH)
            return False
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "UPDATE notes SET content = ? WHERE id = ?", (content, note_id)
                )
        except sqlite3.Error as e:
            logger.error("Updating note %s failed: %s", note_id, e)
            return False
        return cursor.rowcount > 0


class NoteDraft:
    """Editor state for the note on one (session, question) pair."""

    def __init__(self, store: NoteStore, session_id: int, question_id: int):
        self.store = store
        self.session_id = session_id
        self.question_id = question_id
        self.current: Optional[Note] = None
        self.content = ""
        self.load()

    def load(self) -> None:
        self.current = self.store.get(self.session_id, self.question_id)
        self.content = self.current.content if self.current else ""

    def switch(self, session_id: int, question_id: int) -> None:
        self.session_id = session_id
        self.question_id = question_id
        self.load()

    def set_content(self, text: str) -> bool:
        """Replace the draft; text past the limit is refused, not truncated."""
        if len(text) > MAX_NOTE_LENGTH:
            return False
        self.content = text
        return True

    def clear(self) -> None:
        # Editor only; the stored note stays.
        self.content = ""

    @property
    def remaining(self) -> int:
        return MAX_NOTE_LENGTH - len(self.content)

    @property
    def at_limit(self) -> bool:
        return len(self.content) >= MAX_NOTE_LENGTH

    def save(self) -> bool:
        if not self.content:
            return False
        if self.current:
            if not self.store.update(self.current.id, self.content):
                return False
            self.current = Note(
                self.current.id, self.session_id, self.question_id,
                self.content, self.current.created_at,
            )
            return True
        note = self.store.create(self.session_id, self.question_id, self.content)
        if note is None:
            return False
        self.current = note
        return True
