"""Read-only access to the question corpus."""
import logging
import random
import sqlite3
from typing import Optional

from qq_cards.models import Question

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> frozenset:
    """Split a comma-separated tags column into trimmed labels."""
    if not raw:
        return frozenset()
    return frozenset(t.strip() for t in raw.split(",") if t.strip())


def _row_to_question(row) -> Question:
    return Question(
        id=row["question_id"],
        text=row["question_text"],
        pack=row["pack"] or "",
        version_added=row["version_added"] or "",
        tags=parse_tags(row["tags"]),
    )


class QuestionStore:
    """Queries against the master corpus.

    Read failures are logged and reported as the empty result, never raised.
    """

    def __init__(self, conn: sqlite3.Connection, rng: Optional[random.Random] = None):
        self.conn = conn
        self.rng = rng or random.Random()

    def get_corpus_size(self) -> int:
        try:
            return self.conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
        except sqlite3.Error as e:
            logger.error("Counting questions failed: %s", e)
            return 0

    def get_all_ids(self) -> set[int]:
        try:
            rows = self.conn.execute("SELECT question_id FROM questions").fetchall()
        except sqlite3.Error as e:
            logger.error("Listing question ids failed: %s", e)
            return set()
        return {row[0] for row in rows}

    def get_tag_index(self) -> dict[str, set[int]]:
        """Map every tag label to the ids of the questions carrying it."""
        try:
            rows = self.conn.execute("SELECT question_id, tags FROM questions").fetchall()
        except sqlite3.Error as e:
            logger.error("Reading tags failed: %s", e)
            return {}
        index: dict[str, set[int]] = {}
        for row in rows:
            for tag in parse_tags(row["tags"]):
                index.setdefault(tag, set()).add(row["question_id"])
        return index

    def get_tag_universe(self) -> set[str]:
        return set(self.get_tag_index())

    def get(self, question_id: int) -> Optional[Question]:
        try:
            row = self.conn.execute(
                "SELECT * FROM questions WHERE question_id = ?", (question_id,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Fetching question %s failed: %s", question_id, e)
            return None
        return _row_to_question(row) if row else None

    def get_random(self, candidate_ids: Optional[set[int]], exclude_ids: set[int]) -> Optional[Question]:
        """Draw uniformly from the eligible questions.

        With ``candidate_ids`` set, the result is one of them; it is never one
        of ``exclude_ids``. Returns None when nothing is eligible.
        """
        eligible = self.get_all_ids()
        if candidate_ids is not None:
            eligible &= set(candidate_ids)
        eligible -= set(exclude_ids)
        if not eligible:
            return None
        return self.get(self.rng.choice(sorted(eligible)))
