from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from sqlmodel import select

from .db import session_scope
from .errors import NotFoundError
from .log import get_logger
from .models import Folder, Note, NoteTagLink

if TYPE_CHECKING:
    from .registry import TagRegistry

logger = get_logger(__name__)


def create_note(title: str = "Untitled", content: str = "", folder_id: Optional[int] = None) -> Note:
    with session_scope() as s:
        if folder_id is not None and s.get(Folder, folder_id) is None:
            raise NotFoundError("folder", folder_id)
        note = Note(title=title, content=content, folder_id=folder_id)
        s.add(note)
        s.flush()  # get the ID assigned
        s.refresh(note)
        logger.info("created note #%s", note.id)
        return note


def list_notes(
    search: Optional[str] = None,
    include_archived: bool = False,
    include_trashed: bool = False,
    sort: str = "updated",  # "updated" | "created" | "title"
    folder_id: Optional[int] = None,
) -> list[Note]:
    """
    Return notes with optional filtering and sorting.
    - search: substring in title or content
    - folder_id: only notes filed directly in that folder
    - include_archived / include_trashed: widen the default active view
    - sort: updated|created|title; pinned notes always come first
    """
    with session_scope() as s:
        stmt = select(Note)
        if not include_trashed:
            stmt = stmt.where(Note.trashed == False)  # noqa: E712
        if not include_archived:
            stmt = stmt.where(Note.archived == False)  # noqa: E712
        if folder_id is not None:
            stmt = stmt.where(Note.folder_id == folder_id)
        if search:
            like = f"%{search}%"
            stmt = stmt.where((Note.title.like(like)) | (Note.content.like(like)))

        if sort == "created":
            order = Note.created_at.desc()
        elif sort == "title":
            order = Note.title.asc()
        else:
            order = Note.updated_at.desc()
        stmt = stmt.order_by(Note.pinned.desc(), order)

        return list(s.exec(stmt))


def list_trashed() -> list[Note]:
    with session_scope() as s:
        stmt = select(Note).where(Note.trashed == True).order_by(Note.updated_at.desc())  # noqa: E712
        return list(s.exec(stmt))


def get_note(identifier: int | str) -> Optional[Note]:
    """Fetch by id (int/str digits) or exact title."""
    with session_scope() as s:
        if isinstance(identifier, int) or str(identifier).isdigit():
            obj = s.get(Note, int(identifier))
            if obj:
                return obj
        stmt = select(Note).where(Note.title == str(identifier))
        return s.exec(stmt).first()


def require_note(identifier: int | str) -> Note:
    note = get_note(identifier)
    if not note:
        raise NotFoundError("note", identifier)
    return note


def edit_note(
    identifier: int | str,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
    archived: Optional[bool] = None,
    pinned: Optional[bool] = None,
) -> Note:
    """
    Update fields and bump updated_at. Returns the updated note.
    """
    with session_scope() as s:
        note = s.merge(require_note(identifier))  # attach to this session

        if title is not None:
            note.title = title
        if content is not None:
            note.content = content
        if archived is not None:
            note.archived = archived
        if pinned is not None:
            note.pinned = pinned

        note.touch()
        s.add(note)
        s.flush()
        s.refresh(note)
        return note


def _set_flag(identifier: int | str, field: str, value: bool) -> Note:
    with session_scope() as s:
        note = s.merge(require_note(identifier))
        setattr(note, field, value)
        note.touch()
        s.add(note)
        s.flush()
        s.refresh(note)
        return note


def pin_note(identifier: int | str, value: bool = True) -> Note:
    return _set_flag(identifier, "pinned", value)


def archive_note(identifier: int | str, value: bool = True) -> Note:
    return _set_flag(identifier, "archived", value)


def trash_note(identifier: int | str) -> Note:
    note = _set_flag(identifier, "trashed", True)
    logger.info("moved note #%s to trash", note.id)
    return note


def restore_note(identifier: int | str) -> Note:
    return _set_flag(identifier, "trashed", False)


def purge_note(identifier: int | str, registry: Optional[TagRegistry] = None) -> None:
    """Hard delete. Tags lose the note too when a registry is given."""
    with session_scope() as s:
        note = s.merge(require_note(identifier))
        note_id = note.id
        for link in list(s.exec(select(NoteTagLink).where(NoteTagLink.note_id == note_id))):
            s.delete(link)
        s.delete(note)
    if registry is not None:
        registry.forget_note(note_id)
    logger.info("purged note #%s", note_id)


def empty_trash(registry: Optional[TagRegistry] = None) -> int:
    notes = list_trashed()
    for n in notes:
        purge_note(n.id, registry=registry)
    return len(notes)
