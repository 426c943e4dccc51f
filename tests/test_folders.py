import pytest

from tagbook.db import init_db, reset_engine
from tagbook.errors import NotFoundError, ValidationError
from tagbook.folders import (
    create_folder, create_default_folders, list_folders, children_of, update_folder,
    delete_folder, move_note, folder_note_count, all_notes, get_folder,
)
from tagbook.services import create_note, list_notes, pin_note, trash_note


def _fresh_db(tmp_path, monkeypatch):
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / "folders.sqlite"))
    reset_engine()
    init_db()


def test_folder_count_skips_trashed_notes(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    work = create_folder("Work", icon="briefcase.fill", color="orange")
    assert (work.color, work.icon, work.parent_id) == ("orange", "briefcase.fill", None)

    a = create_note("A", folder_id=work.id)
    b = create_note("B", folder_id=work.id)
    create_note("loose")
    assert folder_note_count(work.id) == 2

    trash_note(b.id)
    assert folder_note_count(work.id) == 1
    assert [n.id for n in list_notes(folder_id=work.id)] == [a.id]


def test_folder_notes_pinned_first(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    f = create_folder("Ideas")
    a = create_note("a", folder_id=f.id)
    b = create_note("b", folder_id=f.id)
    pin_note(a.id)
    assert [n.id for n in list_notes(folder_id=f.id, sort="title")] == [a.id, b.id]
    pin_note(a.id, False)
    pin_note(b.id)
    assert [n.id for n in list_notes(folder_id=f.id, sort="title")] == [b.id, a.id]


def test_nested_folders_and_all_notes(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    root = create_folder("Root")
    child = create_folder("Child", parent_id=root.id)
    grandchild = create_folder("Grandchild", parent_id=child.id)
    sibling = create_folder("Sibling", parent_id=root.id)
    assert [f.name for f in children_of(root.id)] == ["Child", "Sibling"]
    assert sibling.sort_order == 1

    n1 = create_note("in root", folder_id=root.id)
    n2 = create_note("deep", folder_id=grandchild.id)
    n3 = create_note("trashed deep", folder_id=grandchild.id)
    trash_note(n3.id)

    assert {n.id for n in all_notes(root.id)} == {n1.id, n2.id, n3.id}
    assert {n.id for n in all_notes(root.id, include_trashed=False)} == {n1.id, n2.id}
    assert folder_note_count(root.id) == 1


def test_move_and_delete_folder(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    parent = create_folder("Parent")
    doomed = create_folder("Doomed", parent_id=parent.id)
    kid = create_folder("Kid", parent_id=doomed.id)
    n = create_note("N")

    moved = move_note(n.id, "Doomed")
    assert moved.folder_id == doomed.id
    delete_folder(doomed.id)

    assert get_folder(doomed.id) is None
    assert get_folder(kid.id).parent_id == parent.id
    assert list_notes()[0].folder_id is None
    assert move_note(n.id, parent.id).folder_id == parent.id
    assert move_note(n.id, None).folder_id is None


def test_folder_validation(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    with pytest.raises(ValidationError):
        create_folder("   ")
    with pytest.raises(ValidationError):
        create_folder("Bad", color="ultraviolet")
    with pytest.raises(NotFoundError):
        create_folder("Orphan", parent_id=99)
    with pytest.raises(NotFoundError):
        create_note("N", folder_id=99)
    with pytest.raises(NotFoundError):
        move_note(create_note("M").id, "nowhere")

    f = create_folder("Work")
    with pytest.raises(ValidationError):
        update_folder(f.id, name="Play", color="ultraviolet")
    assert get_folder(f.id).name == "Work"
    assert update_folder(f.id, name="Play", color="green").color == "green"


def test_default_folders_seed_once(tmp_path, monkeypatch):
    _fresh_db(tmp_path, monkeypatch)
    created = create_default_folders()
    assert [f.name for f in created] == ["Personal", "Work", "Ideas"]
    assert [f.icon for f in created] == ["person.fill", "briefcase.fill", "lightbulb.fill"]
    assert create_default_folders() == []
    assert len(list_folders()) == 3
