import random

import pytest

from qq_cards.db import get_connection, init_user_db
from qq_cards.preferences import PreferenceStore
from qq_cards.progress import ProgressStore
from qq_cards.questions import QuestionStore
from qq_cards.seed import build_corpus
from qq_cards.sessions import SessionStore

CORPUS = [
    {"id": 1, "text": "Question one?", "pack": "core", "version_added": "1.0", "tags": ["x"]},
    {"id": 2, "text": "Question two?", "pack": "core", "version_added": "1.0", "tags": ["x", "y"]},
    {"id": 3, "text": "Question three?", "pack": "core", "version_added": "1.0", "tags": ["y"]},
    {"id": 4, "text": "Question four?", "pack": "extra", "version_added": "1.1", "tags": []},
    {"id": 5, "text": "Question five?", "pack": "extra", "version_added": "1.1", "tags": []},
]


@pytest.fixture
def master_path(tmp_path):
    """A small corpus: tag x on 1 and 2, tag y on 2 and 3."""
    path = tmp_path / "master_questions.db"
    build_corpus(path, CORPUS)
    return path


@pytest.fixture
def user_path(tmp_path):
    path = tmp_path / "user_data.db"
    init_user_db(path)
    return path


@pytest.fixture
def master_conn(master_path):
    conn = get_connection(master_path, read_only=True)
    yield conn
    conn.close()


@pytest.fixture
def user_conn(user_path):
    conn = get_connection(user_path)
    yield conn
    conn.close()


@pytest.fixture
def questions(master_conn):
    return QuestionStore(master_conn, rng=random.Random(7))


@pytest.fixture
def preferences(user_conn):
    return PreferenceStore(user_conn)


@pytest.fixture
def progress(user_conn):
    return ProgressStore(user_conn)


@pytest.fixture
def sessions(user_conn):
    return SessionStore(user_conn)


@pytest.fixture
def session_id(sessions):
    return sessions.create("Test session").session.id
