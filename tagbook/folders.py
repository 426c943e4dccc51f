from __future__ import annotations
from typing import Optional
from sqlmodel import select

from .db import session_scope
from .errors import NotFoundError, ValidationError
from .log import get_logger
from .models import Folder, Note, TagColor
from .registry import check_color
from .services import require_note

logger = get_logger(__name__)

DEFAULT_FOLDERS = [
    ("Personal", "person.fill", TagColor.BLUE.value),
    ("Work", "briefcase.fill", TagColor.ORANGE.value),
    ("Ideas", "lightbulb.fill", TagColor.YELLOW.value),
]


def _clean(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Folder name must not be empty")
    return cleaned


def get_folder(identifier: int | str) -> Optional[Folder]:
    """Fetch by id (int/str digits) or exact name."""
    with session_scope() as s:
        if isinstance(identifier, int) or str(identifier).isdigit():
            obj = s.get(Folder, int(identifier))
            if obj:
                return obj
        return s.exec(select(Folder).where(Folder.name == str(identifier))).first()


def require_folder(identifier: int | str) -> Folder:
    folder = get_folder(identifier)
    if not folder:
        raise NotFoundError("folder", identifier)
    return folder


def create_folder(
    name: str,
    icon: str = "folder",
    color: str = TagColor.BLUE.value,
    parent_id: Optional[int] = None,
) -> Folder:
    cleaned = _clean(name)
    value = check_color(color)
    if parent_id is not None:
        require_folder(parent_id)
    with session_scope() as s:
        siblings = s.exec(select(Folder.id).where(Folder.parent_id == parent_id)).all()
        folder = Folder(name=cleaned, icon=icon, color=value, parent_id=parent_id, sort_order=len(siblings))
        s.add(folder)
        s.flush()
        s.refresh(folder)
        logger.info("created folder #%s (%s)", folder.id, folder.name)
        return folder


def create_default_folders() -> list[Folder]:
    """Seed Personal/Work/Ideas on an empty database; no-op otherwise."""
    if list_folders():
        return []
    return [create_folder(name, icon, color) for name, icon, color in DEFAULT_FOLDERS]


def list_folders(parent_id: Optional[int] = None, all_levels: bool = True) -> list[Folder]:
    with session_scope() as s:
        stmt = select(Folder)
        if not all_levels:
            stmt = stmt.where(Folder.parent_id == parent_id)
        return list(s.exec(stmt.order_by(Folder.sort_order, Folder.name)))


def children_of(folder_id: int) -> list[Folder]:
    return list_folders(parent_id=folder_id, all_levels=False)


def update_folder(
    identifier: int | str,
    *,
    name: Optional[str] = None,
    icon: Optional[str] = None,
    color: Optional[str] = None,
) -> Folder:
    cleaned = None if name is None else _clean(name)
    value = None if color is None else check_color(color)
    with session_scope() as s:
        folder = s.merge(require_folder(identifier))
        if cleaned is not None:
            folder.name = cleaned
        if icon is not None:
            folder.icon = icon
        if value is not None:
            folder.color = value
        s.add(folder)
        s.flush()
        s.refresh(folder)
        return folder


def delete_folder(identifier: int | str) -> None:
    """Notes become unfiled; subfolders move up to the deleted folder's parent."""
    with session_scope() as s:
        folder = s.merge(require_folder(identifier))
        for note in list(s.exec(select(Note).where(Note.folder_id == folder.id))):
            note.folder_id = None
            s.add(note)
        for child in list(s.exec(select(Folder).where(Folder.parent_id == folder.id))):
            child.parent_id = folder.parent_id
            s.add(child)
        s.flush()
        s.delete(folder)
        logger.info("deleted folder #%s", folder.id)


def move_note(note: int | str, folder: Optional[int | str]) -> Note:
    """File a note into a folder, or unfile it with folder=None."""
    folder_id = None if folder is None else require_folder(folder).id
    with session_scope() as s:
        obj = s.merge(require_note(note))
        obj.folder_id = folder_id
        obj.touch()
        s.add(obj)
        s.flush()
        s.refresh(obj)
        return obj


def folder_note_count(identifier: int | str) -> int:
    """Notes filed directly in the folder that are not trashed."""
    folder = require_folder(identifier)
    with session_scope() as s:
        stmt = select(Note.id).where(Note.folder_id == folder.id, Note.trashed == False)  # noqa: E712
        return len(s.exec(stmt).all())


def descendant_ids(folder_id: int) -> list[int]:
    """The folder itself followed by every folder below it, depth first."""
    ids = [folder_id]
    for child in children_of(folder_id):
        ids.extend(descendant_ids(child.id))
    return ids


def all_notes(identifier: int | str, include_trashed: bool = True) -> list[Note]:
    """Notes in the folder and all of its subfolders."""
    ids = descendant_ids(require_folder(identifier).id)
    with session_scope() as s:
        stmt = select(Note).where(Note.folder_id.in_(ids))
        if not include_trashed:
            stmt = stmt.where(Note.trashed == False)  # noqa: E712
        return list(s.exec(stmt.order_by(Note.pinned.desc(), Note.updated_at.desc())))
