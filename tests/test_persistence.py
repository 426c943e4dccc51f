from tagbook.db import init_db, reset_engine
from tagbook.persistence import load_registry, save_registry
from tagbook.services import create_note, trash_note, purge_note


def test_registry_round_trips_through_sqlite(tmp_path, monkeypatch):
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / "tags.sqlite"))
    reset_engine()
    init_db()

    a = create_note("A")
    b = create_note("B")

    reg = load_registry()
    assert len(reg) == 0
    work = reg.create_tag("Work", color="orange")
    home = reg.create_tag("Home")
    reg.associate(work.id, a.id)
    reg.associate(work.id, b.id)
    reg.associate(home.id, b.id)
    save_registry(reg)

    again = load_registry()
    assert {t.name for t in again.list_tags()} == {"Work", "Home"}
    assert again.get_tag(work.id).color == "orange"
    assert again.notes_for(work.id) == {a.id, b.id}
    assert again.note_count(home.id) == 1

    trash_note(b.id)
    assert again.note_count(work.id) == 1
    assert again.note_count(home.id) == 0

    again.delete_tag(home.id)
    save_registry(again)
    third = load_registry()
    assert [t.name for t in third.list_tags()] == ["Work"]
    assert third.tags_for(b.id)[0].id == work.id


def test_purge_without_registry_drops_stored_links(tmp_path, monkeypatch):
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / "links.sqlite"))
    reset_engine()
    init_db()

    n = create_note("A")
    reg = load_registry()
    t = reg.create_tag("Work")
    reg.associate(t.id, n.id)
    save_registry(reg)

    purge_note(n.id)
    reloaded = load_registry()
    assert reloaded.notes_for(t.id) == frozenset()
    assert reloaded.note_count(t.id) == 0
