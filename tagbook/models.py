from __future__ import annotations
from datetime import datetime, UTC
from enum import Enum
from typing import Optional
from uuid import uuid4
import re

from sqlmodel import Field, SQLModel


class TagColor(str, Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    MINT = "mint"
    TEAL = "teal"
    CYAN = "cyan"
    BLUE = "blue"
    INDIGO = "indigo"
    PURPLE = "purple"
    PINK = "pink"
    BROWN = "brown"
    GRAY = "gray"


PALETTE: tuple[str, ...] = tuple(c.value for c in TagColor)
DEFAULT_COLOR = TagColor.GRAY.value

_MARKDOWN_PUNCT = re.compile(r"[#*_`~\[\]()]")


class Folder(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    icon: str = "folder"
    color: str = TagColor.BLUE.value
    sort_order: int = 0
    parent_id: Optional[int] = Field(default=None, foreign_key="folder.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Note(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = "Untitled"
    content: str = ""
    folder_id: Optional[int] = Field(default=None, foreign_key="folder.id", index=True)

    pinned: bool = Field(default=False, index=True)
    archived: bool = Field(default=False, index=True)
    trashed: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def preview(self) -> str:
        return _MARKDOWN_PUNCT.sub("", self.content or "")[:150]

    @property
    def word_count(self) -> int:
        return len((self.content or "").split())

    @property
    def character_count(self) -> int:
        return len(self.content or "")

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)


class Tag(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(index=True)
    color: str = DEFAULT_COLOR
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class NoteTagLink(SQLModel, table=True):
    tag_id: str = Field(foreign_key="tag.id", primary_key=True)
    note_id: int = Field(foreign_key="note.id", primary_key=True)
