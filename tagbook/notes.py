from __future__ import annotations
from typing import Hashable, Protocol

from .db import session_scope
from .errors import NotFoundError
from .models import Note


class NoteStore(Protocol):
    """What the tag registry needs from whoever owns notes."""

    def is_trashed(self, note_id: Hashable) -> bool: ...


class InMemoryNoteStore:
    """Trash flags kept in a dict; handy for tests and embedding."""

    def __init__(self) -> None:
        self._trashed: dict[Hashable, bool] = {}

    def add(self, note_id: Hashable, trashed: bool = False) -> None:
        self._trashed[note_id] = trashed

    def trash(self, note_id: Hashable) -> None:
        self._require(note_id)
        self._trashed[note_id] = True

    def restore(self, note_id: Hashable) -> None:
        self._require(note_id)
        self._trashed[note_id] = False

    def remove(self, note_id: Hashable) -> None:
        self._require(note_id)
        del self._trashed[note_id]

    def is_trashed(self, note_id: Hashable) -> bool:
        self._require(note_id)
        return self._trashed[note_id]

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._trashed

    def _require(self, note_id: Hashable) -> None:
        if note_id not in self._trashed:
            raise NotFoundError("note", note_id)


class SqlNoteStore:
    """Reads trash state straight from the notes table on every call."""

    def is_trashed(self, note_id: Hashable) -> bool:
        with session_scope() as s:
            note = s.get(Note, note_id)
            if note is None:
                raise NotFoundError("note", note_id)
            return note.trashed
