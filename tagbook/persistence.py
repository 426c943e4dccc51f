from __future__ import annotations
from sqlmodel import select

from .db import session_scope
from .log import get_logger
from .models import NoteTagLink, Tag
from .notes import NoteStore, SqlNoteStore
from .registry import TagRegistry

logger = get_logger(__name__)


def load_registry(store: NoteStore | None = None) -> TagRegistry:
    """Build a registry from the tag and notetaglink tables."""
    with session_scope() as s:
        tags = list(s.exec(select(Tag).order_by(Tag.created_at, Tag.id)))
        links = [(l.tag_id, l.note_id) for l in s.exec(select(NoteTagLink))]
    registry = TagRegistry(store or SqlNoteStore(), tags=tags, links=links)
    logger.debug("loaded %d tags, %d links", len(tags), len(links))
    return registry


def save_registry(registry: TagRegistry) -> None:
    """Replace the stored tags and links with the registry's current state."""
    with session_scope() as s:
        for link in list(s.exec(select(NoteTagLink))):
            s.delete(link)
        for tag in list(s.exec(select(Tag))):
            s.delete(tag)
        s.flush()
        for tag in registry.list_tags():
            s.add(tag)
        s.flush()
        for tag_id, note_id in registry.links():
            s.add(NoteTagLink(tag_id=tag_id, note_id=note_id))
