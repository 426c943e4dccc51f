from __future__ import annotations
from datetime import datetime, UTC
from typing import Hashable, Iterable, Optional
from uuid import uuid4

from .errors import NotFoundError, ValidationError
from .log import get_logger
from .models import DEFAULT_COLOR, PALETTE, Tag
from .notes import NoteStore

logger = get_logger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Tag name must not be empty")
    return cleaned


def check_color(color: str) -> str:
    value = getattr(color, "value", color)
    if value not in PALETTE:
        raise ValidationError(
            f"Unknown color '{value}'; expected one of: {', '.join(PALETTE)}"
        )
    return value


def _snapshot(tag: Tag) -> Tag:
    return Tag(id=tag.id, name=tag.name, color=tag.color, created_at=tag.created_at)


class TagRegistry:
    """
    In-memory owner of tags and their note associations.

    The association lives in two indices (tag id -> note ids, note id -> tag ids)
    so neither side holds a reference to the other. Trash state is never stored
    here: note_count asks the note store every time.

    Every read hands out a detached copy of the tag.
    """

    def __init__(
        self,
        store: NoteStore,
        tags: Iterable[Tag] = (),
        links: Iterable[tuple[str, Hashable]] = (),
    ) -> None:
        self.store = store
        self._tags: dict[str, Tag] = {}
        self._notes_by_tag: dict[str, set[Hashable]] = {}
        self._tags_by_note: dict[Hashable, set[str]] = {}
        for tag in tags:
            self._tags[tag.id] = _snapshot(tag)
            self._notes_by_tag[tag.id] = set()
        for tag_id, note_id in links:
            self.associate(tag_id, note_id)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._tags

    def _get(self, tag_id: str) -> Tag:
        tag = self._tags.get(tag_id)
        if tag is None:
            raise NotFoundError("tag", tag_id)
        return tag

    # ---------- tags ----------
    def create_tag(self, name: str, color: str = DEFAULT_COLOR) -> Tag:
        cleaned = _clean_name(name)
        value = check_color(color)
        tag = Tag(id=str(uuid4()), name=cleaned, color=value, created_at=datetime.now(UTC))
        self._tags[tag.id] = tag
        self._notes_by_tag[tag.id] = set()
        logger.debug("created tag %s (%s)", tag.id, tag.name)
        return _snapshot(tag)

    def rename_tag(self, tag_id: str, new_name: str) -> Tag:
        tag = self._get(tag_id)
        tag.name = _clean_name(new_name)
        logger.debug("renamed tag %s to %s", tag_id, tag.name)
        return _snapshot(tag)

    def set_color(self, tag_id: str, color: str) -> Tag:
        value = check_color(color)
        tag = self._get(tag_id)
        tag.color = value
        logger.debug("recolored tag %s to %s", tag_id, value)
        return _snapshot(tag)

    def update_tag(
        self, tag_id: str, *, name: Optional[str] = None, color: Optional[str] = None
    ) -> Tag:
        """Rename and/or recolor in one step; nothing changes if either is invalid."""
        tag = self._get(tag_id)
        cleaned = None if name is None else _clean_name(name)
        value = None if color is None else check_color(color)
        if cleaned is not None:
            tag.name = cleaned
        if value is not None:
            tag.color = value
        logger.debug("updated tag %s (name=%s, color=%s)", tag_id, tag.name, tag.color)
        return _snapshot(tag)

    def delete_tag(self, tag_id: str) -> None:
        self._get(tag_id)
        for note_id in self._notes_by_tag.pop(tag_id):
            tag_ids = self._tags_by_note[note_id]
            tag_ids.discard(tag_id)
            if not tag_ids:
                del self._tags_by_note[note_id]
        del self._tags[tag_id]
        logger.debug("deleted tag %s", tag_id)

    def get_tag(self, tag_id: str) -> Tag:
        return _snapshot(self._get(tag_id))

    def find_tag(self, name: str) -> Optional[Tag]:
        """Exact match on the trimmed name, ignoring case."""
        wanted = (name or "").strip().casefold()
        for tag in self._tags.values():
            if tag.name.casefold() == wanted:
                return _snapshot(tag)
        return None

    def list_tags(self, sort: str = "created") -> list[Tag]:
        """Tags in creation order, or by name with sort="name"."""
        tags = list(self._tags.values())
        if sort == "name":
            tags.sort(key=lambda t: t.name.casefold())
        return [_snapshot(t) for t in tags]

    # ---------- associations ----------
    def associate(self, tag_id: str, note_id: Hashable) -> None:
        self._get(tag_id)
        self._notes_by_tag[tag_id].add(note_id)
        self._tags_by_note.setdefault(note_id, set()).add(tag_id)
        logger.debug("tagged note %s with %s", note_id, tag_id)

    def disassociate(self, tag_id: str, note_id: Hashable) -> None:
        self._get(tag_id)
        self._notes_by_tag[tag_id].discard(note_id)
        tag_ids = self._tags_by_note.get(note_id)
        if tag_ids is not None:
            tag_ids.discard(tag_id)
            if not tag_ids:
                del self._tags_by_note[note_id]
        logger.debug("untagged note %s from %s", note_id, tag_id)

    def forget_note(self, note_id: Hashable) -> None:
        """Drop a note from every tag, e.g. after it was purged."""
        for tag_id in self._tags_by_note.pop(note_id, set()):
            self._notes_by_tag[tag_id].discard(note_id)
        logger.debug("forgot note %s", note_id)

    def notes_for(self, tag_id: str) -> frozenset:
        return frozenset(self._notes_by_tag[self._get(tag_id).id])

    def tags_for(self, note_id: Hashable) -> list[Tag]:
        tag_ids = self._tags_by_note.get(note_id, set())
        return [_snapshot(t) for t in self._tags.values() if t.id in tag_ids]

    def links(self) -> list[tuple[str, Hashable]]:
        return [
            (tag_id, note_id)
            for tag_id in self._tags
            for note_id in self._notes_by_tag[tag_id]
        ]

    def _is_active(self, note_id: Hashable) -> bool:
        try:
            return not self.store.is_trashed(note_id)
        except NotFoundError:
            # a purged note no longer counts
            logger.debug("note %s unknown to the store, not counted", note_id)
            return False

    def note_count(self, tag_id: str) -> int:
        """Associated notes the store knows and does not report as trashed."""
        self._get(tag_id)
        return sum(1 for note_id in self._notes_by_tag[tag_id] if self._is_active(note_id))
