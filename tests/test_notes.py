from qq_cards.notes import MAX_NOTE_LENGTH, NoteDraft, NoteStore


def test_create_and_get(user_conn, session_id):
    store = NoteStore(user_conn)
    note = store.create(session_id, 1, "Talked about pizza")
    assert note.id is not None
    assert store.get(session_id, 1).content == "Talked about pizza"
    assert store.get(session_id, 2) is None


def test_get_returns_most_recent(user_conn, session_id):
    store = NoteStore(user_conn)
    store.create(session_id, 1, "first")
    latest = store.create(session_id, 1, "second")
    assert store.get(session_id, 1).id == latest.id


def test_update(user_conn, session_id):
    store = NoteStore(user_conn)
    note = store.create(session_id, 1, "draft")
    assert store.update(note.id, "final")
    assert store.get(session_id, 1).content == "final"
    assert store.update(9999, "nothing") is False


def test_content_limit(user_conn, session_id):
    store = NoteStore(user_conn)
    assert store.create(session_id, 1, "x" * (MAX_NOTE_LENGTH + 1)) is None
    assert store.create(session_id, 1, "x" * MAX_NOTE_LENGTH) is not None


def test_draft_create_then_update(user_conn, session_id):
    store = NoteStore(user_conn)
    draft = NoteDraft(store, session_id, 3)
    assert draft.current is None
    assert draft.save() is False  # empty drafts are not saved
    assert draft.set_content("hello")
    assert draft.remaining == MAX_NOTE_LENGTH - 5
    assert draft.save()
    first_id = draft.current.id
    draft.set_content("hello again")
    assert draft.save()
    assert draft.current.id == first_id
    assert store.get(session_id, 3).content == "hello again"


def test_draft_refuses_overlong_text(user_conn, session_id):
    draft = NoteDraft(NoteStore(user_conn), session_id, 1)
    draft.set_content("ok")
    assert draft.set_content("y" * (MAX_NOTE_LENGTH + 1)) is False
    assert draft.content == "ok"
    assert draft.set_content("z" * MAX_NOTE_LENGTH)
    assert draft.at_limit


def test_draft_clear_keeps_stored_note(user_conn, session_id):
    store = NoteStore(user_conn)
    store.create(session_id, 1, "keep me")
    draft = NoteDraft(store, session_id, 1)
    assert draft.content == "keep me"
    draft.clear()
    assert draft.content == ""
    assert store.get(session_id, 1).content == "keep me"


def test_draft_switch_loads_other_question(user_conn, session_id):
    store = NoteStore(user_conn)
    store.create(session_id, 2, "two")
    draft = NoteDraft(store, session_id, 1)
    draft.switch(session_id, 2)
    assert draft.content == "two"
    draft.switch(session_id, 5)
    assert draft.current is None
    assert draft.content == ""
