from qq_cards.preferences import PreferenceStore


def _rows(conn, question_id):
    return conn.execute(
        "SELECT COUNT(*) FROM user_preferences WHERE question_id = ?", (question_id,)
    ).fetchone()[0]


def test_get_defaults_when_absent(preferences):
    pref = preferences.get(1)
    assert pref.question_id == 1
    assert not pref.is_favorite and not pref.is_hidden


def test_set_favorite(preferences):
    assert preferences.set_favorite(1, True)
    assert preferences.get(1).is_favorite
    assert preferences.list_favorites() == {1}
    assert preferences.count_favorites() == 1


def test_set_hidden_clears_favorite(preferences):
    preferences.set_favorite(1, True)
    assert preferences.set_hidden(1, True)
    pref = preferences.get(1)
    assert pref.is_hidden and not pref.is_favorite
    assert preferences.list_favorites() == set()
    assert preferences.list_hidden() == {1}


def test_set_favorite_clears_hidden(preferences):
    preferences.set_hidden(2, True)
    preferences.set_favorite(2, True)
    pref = preferences.get(2)
    assert pref.is_favorite and not pref.is_hidden
    assert preferences.count_hidden() == 0


def test_unfavorite_does_not_touch_hidden(preferences):
    preferences.set_hidden(3, True)
    preferences.set_favorite(3, False)
    assert preferences.get(3).is_hidden


def test_never_both_flags(preferences):
    for step in range(20):
        if step % 3 == 0:
            preferences.set_favorite(1, step % 2 == 0)
        else:
            preferences.set_hidden(1, step % 4 != 0)
        pref = preferences.get(1)
        assert not (pref.is_favorite and pref.is_hidden)


def test_clearing_both_flags_removes_row(preferences, user_conn):
    preferences.set_favorite(4, True)
    assert _rows(user_conn, 4) == 1
    preferences.set_favorite(4, False)
    preferences.set_hidden(4, False)
    assert preferences.get(4).is_normal
    assert _rows(user_conn, 4) == 0


def test_write_failure_returns_false(user_conn):
    store = PreferenceStore(user_conn)
    user_conn.execute("DROP TABLE user_preferences")
    assert store.set_favorite(1, True) is False
    assert store.set_hidden(1, True) is False


def test_read_failure_returns_defaults(user_conn):
    store = PreferenceStore(user_conn)
    user_conn.execute("DROP TABLE user_preferences")
    assert store.get(1).is_normal
    assert store.list_hidden() == set()
    assert store.count_favorites() == 0
