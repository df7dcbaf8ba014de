"""Tests for datastore initialization, provisioning and opening."""
import sqlite3

import pytest

from qq_cards.config import AppConfig
from qq_cards.db import (
    get_connection, init_master_db, init_user_db, open_datastores, open_master, provision_user_db,
)
from qq_cards.errors import StorageUnavailable


def _tables(path):
    conn = get_connection(path)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    return tables


def test_init_user_db_creates_tables(tmp_path):
    path = tmp_path / "user.db"
    init_user_db(path)
    assert {"user_preferences", "sessions", "session_progress", "notes"}.issubset(_tables(path))


def test_init_master_db_creates_questions(tmp_path):
    path = tmp_path / "master.db"
    init_master_db(path)
    assert "questions" in _tables(path)


def test_init_is_idempotent(tmp_path):
    path = tmp_path / "user.db"
    init_user_db(path)
    init_user_db(path)  # should not raise
    assert "sessions" in _tables(path)


def test_get_connection_returns_row_factory_and_foreign_keys(user_path):
    conn = get_connection(user_path)
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.execute("INSERT INTO sessions (name, creation_date) VALUES ('a', '2024-01-01')")
    row = conn.execute("SELECT name FROM sessions").fetchone()
    assert row["name"] == "a"
    conn.close()


def test_read_only_connection_rejects_writes(master_path):
    conn = get_connection(master_path, read_only=True)
    with pytest.raises(sqlite3.OperationalError):
        conn.execute("DELETE FROM questions")
    conn.close()


def test_placeholder_id_is_not_a_valid_corpus_id(master_path):
    conn = get_connection(master_path)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO questions (question_id, question_text) VALUES (0, 'nope')")
    conn.close()


def test_provision_copies_seed_once(tmp_path):
    seed = tmp_path / "seed.db"
    init_user_db(seed)
    conn = get_connection(seed)
    conn.execute("INSERT INTO sessions (name, creation_date) VALUES ('Seeded', '2024-01-01')")
    conn.commit()
    conn.close()

    user = tmp_path / "docs" / "user_data.db"
    assert provision_user_db(user, seed) is True

    conn = get_connection(user)
    conn.execute("DELETE FROM sessions")
    conn.commit()
    conn.close()

    # Second run must not overwrite the user's copy.
    assert provision_user_db(user, seed) is False
    conn = get_connection(user)
    assert conn.execute("SELECT COUNT(*) FROM sessions").fetchone()[0] == 0
    conn.close()


def test_provision_without_seed_creates_schema(tmp_path):
    user = tmp_path / "user_data.db"
    assert provision_user_db(user) is False
    assert "user_preferences" in _tables(user)


def test_open_master_missing_file(tmp_path):
    with pytest.raises(StorageUnavailable):
        open_master(tmp_path / "missing.db")


def test_open_master_without_corpus_table(tmp_path):
    path = tmp_path / "empty.db"
    sqlite3.connect(path).close()
    with pytest.raises(StorageUnavailable):
        open_master(path)


def test_open_datastores(tmp_path, master_path):
    config = AppConfig(home=tmp_path, master_db=master_path, user_db=tmp_path / "u" / "user_data.db")
    stores = open_datastores(config)
    assert stores.degraded is False
    assert stores.master.execute("SELECT COUNT(*) FROM questions").fetchone()[0] == 5
    assert stores.user.execute("SELECT COUNT(*) FROM sessions").fetchone()[0] == 0
    stores.close()


def test_open_datastores_degrades_without_corpus(tmp_path):
    config = AppConfig(home=tmp_path, master_db=tmp_path / "missing.db", user_db=tmp_path / "user_data.db")
    stores = open_datastores(config)
    assert stores.degraded is True
    assert stores.master.execute("SELECT COUNT(*) FROM questions").fetchone()[0] == 0
    stores.close()


def test_open_datastores_repairs_session_names(tmp_path, master_path):
    user = tmp_path / "user_data.db"
    init_user_db(user)
    conn = get_connection(user)
    conn.execute("INSERT INTO sessions (name, creation_date) VALUES ('   ', '2024-01-01')")
    conn.commit()
    conn.close()
    stores = open_datastores(AppConfig(home=tmp_path, master_db=master_path, user_db=user))
    row = stores.user.execute("SELECT session_id, name FROM sessions").fetchone()
    assert row["name"] == f"Session {row['session_id']}"
    stores.close()
