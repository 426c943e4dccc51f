import pytest

from tagbook.db import init_db, reset_engine
from tagbook.errors import NotFoundError
from tagbook.notes import SqlNoteStore
from tagbook.registry import TagRegistry
from tagbook.services import (
    create_note, list_notes, list_trashed, get_note, edit_note,
    pin_note, archive_note, trash_note, restore_note, purge_note, empty_trash,
)


def _fresh_db(tmp_path, monkeypatch, name="notes.sqlite"):
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / name))
    reset_engine()
    init_db()


def test_create_and_list_filters(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)

    a = create_note("alpha", "first body")
    b = create_note("beta", "second body with keyword")
    c = create_note("gamma", "third body")
    assert a.id is not None

    assert {n.id for n in list_notes()} == {a.id, b.id, c.id}
    assert [n.title for n in list_notes(search="keyword")] == ["beta"]
    assert [n.title for n in list_notes(sort="title")] == ["alpha", "beta", "gamma"]

    pin_note(c.id)
    assert [n.title for n in list_notes(sort="title")][0] == "gamma"

    archive_note(a.id)
    trash_note(b.id)
    assert [n.title for n in list_notes()] == ["gamma"]
    assert {n.title for n in list_notes(include_archived=True)} == {"alpha", "gamma"}
    assert {n.title for n in list_notes(include_trashed=True, include_archived=True)} == {"alpha", "beta", "gamma"}
    assert [n.title for n in list_trashed()] == ["beta"]


def test_edit_updates_fields_and_timestamp(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)

    n = create_note("draft", "hello")
    updated = edit_note(n.id, title="final", content="hello big world", pinned=True)
    assert updated.title == "final"
    assert updated.pinned is True
    assert updated.word_count == 3
    assert updated.character_count == len("hello big world")
    assert updated.updated_at >= n.updated_at
    assert get_note("final").id == n.id

    with pytest.raises(NotFoundError):
        edit_note(9999, title="nope")


def test_trash_restore_drives_sql_store(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    store = SqlNoteStore()

    n = create_note("A")
    assert store.is_trashed(n.id) is False
    assert trash_note(n.id).trashed is True
    assert store.is_trashed(n.id) is True
    assert restore_note(n.id).trashed is False
    with pytest.raises(NotFoundError):
        store.is_trashed(12345)


def test_purge_strips_note_from_registry(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    reg = TagRegistry(SqlNoteStore())
    work = reg.create_tag("Work")

    a = create_note("A")
    b = create_note("B")
    reg.associate(work.id, a.id)
    reg.associate(work.id, b.id)
    assert reg.note_count(work.id) == 2

    purge_note(a.id, registry=reg)
    assert get_note(a.id) is None
    assert reg.notes_for(work.id) == {b.id}
    assert reg.note_count(work.id) == 1

    trash_note(b.id)
    assert reg.note_count(work.id) == 0
    assert empty_trash(registry=reg) == 1
    assert reg.notes_for(work.id) == frozenset()


def test_preview_strips_markdown(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    n = create_note("md", "# Title\n**bold** and `code` " + "x" * 200)
    assert n.preview.startswith(" Title\nbold and code ")
    assert len(n.preview) == 150
