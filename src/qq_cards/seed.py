"""Build the master question corpus from the bundled JSON content."""
import json
import logging
from pathlib import Path

from qq_cards.db import get_connection, init_master_db

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"
DEFAULT_CONTENT = CONTENT_DIR / "questions.json"


def load_corpus(path=DEFAULT_CONTENT) -> list[dict]:
    """Read question dicts from a content file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return data["questions"]


def is_built(master_path) -> bool:
    """Check whether the corpus file exists and holds at least one question."""
    if not Path(master_path).exists():
        return False
    conn = get_connection(master_path)
    try:
        count = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    finally:
        conn.close()
    return count > 0


def build_corpus(master_path, questions: list[dict]) -> int:
    """Insert questions into the corpus, returning how many rows were added.

    Ids must be positive; 0 is reserved for the placeholder question.
    """
    bad = [q["id"] for q in questions if int(q["id"]) <= 0]
    if bad:
        raise ValueError(f"question ids must be positive, got {bad}")
    init_master_db(master_path)
    conn = get_connection(master_path)
    added = 0
    for q in questions:
        tags = q.get("tags", [])
        if not isinstance(tags, str):
            tags = ",".join(tags)
        cursor = conn.execute(
            """INSERT OR IGNORE INTO questions
            (question_id, question_text, pack, version_added, tags)
            VALUES (?, ?, ?, ?, ?)""",
            (q["id"], q["text"], q.get("pack", ""), q.get("version_added", ""), tags),
        )
        added += cursor.rowcount
    conn.commit()
    conn.close()
    logger.info("Built corpus at %s with %d new questions", master_path, added)
    return added
