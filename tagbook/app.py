# tagbook/app.py
from __future__ import annotations
from typing import Optional
from datetime import datetime

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .db import init_db
from .errors import NotFoundError, ValidationError
from .folders import (
    all_notes, create_folder, delete_folder, folder_note_count, list_folders, move_note, require_folder,
)
from .log import get_logger, setup_logging
from .models import DEFAULT_COLOR, PALETTE, TagColor
from .persistence import load_registry, save_registry
from .registry import TagRegistry
from .services import create_note, list_notes, require_note, trash_note, restore_note, purge_note

logger = get_logger(__name__)

app = FastAPI(title="tagbook API")

def bootstrap() -> None:
    setup_logging()
    init_db()

def get_registry() -> TagRegistry:
    """Fresh registry per request; the CLI may have written since the last one."""
    bootstrap()
    return load_registry()

# ---------- Errors ----------
@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(ValidationError)
def _invalid(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

# ---------- Schemas ----------
# color stays a plain str here so palette errors come from the registry
class TagCreate(BaseModel):
    name: str
    color: str = DEFAULT_COLOR

class TagEdit(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None

class TagOut(BaseModel):
    id: str
    name: str
    color: TagColor
    created_at: datetime
    note_count: int
    note_ids: list[int]

class NoteCreate(BaseModel):
    title: str = "Untitled"
    content: str = ""
    folder_id: Optional[int] = None
    tag_ids: list[str] = []

class NoteOut(BaseModel):
    id: int
    title: str
    content: str
    pinned: bool
    archived: bool
    trashed: bool
    folder_id: Optional[int]
    tag_ids: list[str]
    created_at: datetime
    updated_at: datetime

class FolderCreate(BaseModel):
    name: str
    icon: str = "folder"
    color: str = TagColor.BLUE.value
    parent_id: Optional[int] = None

class FolderOut(BaseModel):
    id: int
    name: str
    icon: str
    color: TagColor
    sort_order: int
    parent_id: Optional[int]
    note_count: int

class NoteMove(BaseModel):
    folder_id: Optional[int] = None

def _folder_out(f) -> FolderOut:
    return FolderOut(
        id=f.id, name=f.name, icon=f.icon, color=f.color, sort_order=f.sort_order,
        parent_id=f.parent_id, note_count=folder_note_count(f.id),
    )

def _tag_out(registry: TagRegistry, tag_id: str) -> TagOut:
    t = registry.get_tag(tag_id)
    return TagOut(
        id=t.id, name=t.name, color=t.color, created_at=t.created_at,
        note_count=registry.note_count(t.id),
        note_ids=sorted(registry.notes_for(t.id)),
    )

def _note_out(registry: TagRegistry, n) -> NoteOut:
    return NoteOut(
        id=n.id, title=n.title, content=n.content,
        pinned=n.pinned, archived=n.archived, trashed=n.trashed,
        folder_id=n.folder_id,
        tag_ids=[t.id for t in registry.tags_for(n.id)],
        created_at=n.created_at, updated_at=n.updated_at,
    )

# ---------- Tags ----------
@app.get("/api/palette")
def api_palette():
    return {"colors": list(PALETTE), "default": DEFAULT_COLOR}

@app.get("/api/tags", response_model=list[TagOut])
def api_list_tags(
    sort: str = Query("created", pattern="^(created|name)$"),
    registry: TagRegistry = Depends(get_registry),
):
    return [_tag_out(registry, t.id) for t in registry.list_tags(sort=sort)]

@app.post("/api/tags", response_model=TagOut, status_code=201)
def api_create_tag(payload: TagCreate, registry: TagRegistry = Depends(get_registry)):
    t = registry.create_tag(payload.name, payload.color)
    save_registry(registry)
    logger.info("created tag %s", t.id)
    return _tag_out(registry, t.id)

@app.get("/api/tags/{tag_id}", response_model=TagOut)
def api_get_tag(tag_id: str, registry: TagRegistry = Depends(get_registry)):
    return _tag_out(registry, tag_id)

@app.patch("/api/tags/{tag_id}", response_model=TagOut)
def api_edit_tag(tag_id: str, payload: TagEdit, registry: TagRegistry = Depends(get_registry)):
    registry.update_tag(tag_id, name=payload.name, color=payload.color)
    save_registry(registry)
    return _tag_out(registry, tag_id)

@app.delete("/api/tags/{tag_id}")
def api_delete_tag(tag_id: str, registry: TagRegistry = Depends(get_registry)):
    registry.delete_tag(tag_id)
    save_registry(registry)
    logger.info("deleted tag %s", tag_id)
    return {"ok": True}

@app.put("/api/tags/{tag_id}/notes/{note_id}", response_model=TagOut)
def api_attach(tag_id: str, note_id: int, registry: TagRegistry = Depends(get_registry)):
    registry.get_tag(tag_id)
    registry.associate(tag_id, require_note(note_id).id)
    save_registry(registry)
    return _tag_out(registry, tag_id)

@app.delete("/api/tags/{tag_id}/notes/{note_id}", response_model=TagOut)
def api_detach(tag_id: str, note_id: int, registry: TagRegistry = Depends(get_registry)):
    registry.disassociate(tag_id, note_id)
    save_registry(registry)
    return _tag_out(registry, tag_id)

# ---------- Notes ----------
@app.get("/api/notes", response_model=list[NoteOut])
def api_list_notes(
    search: Optional[str] = None,
    include_archived: bool = Query(False, alias="archived"),
    include_trashed: bool = Query(False, alias="trashed"),
    sort: str = Query("updated", pattern="^(updated|created|title)$"),
    folder_id: Optional[int] = Query(None, alias="folder"),
    registry: TagRegistry = Depends(get_registry),
):
    notes = list_notes(
        search=search, include_archived=include_archived, include_trashed=include_trashed,
        sort=sort, folder_id=folder_id,
    )
    return [_note_out(registry, n) for n in notes]

@app.post("/api/notes", response_model=NoteOut, status_code=201)
def api_create_note(payload: NoteCreate, registry: TagRegistry = Depends(get_registry)):
    for tag_id in payload.tag_ids:
        registry.get_tag(tag_id)
    n = create_note(payload.title, payload.content, folder_id=payload.folder_id)
    for tag_id in payload.tag_ids:
        registry.associate(tag_id, n.id)
    if payload.tag_ids:
        save_registry(registry)
    return _note_out(registry, n)

@app.post("/api/notes/{identifier}/trash", response_model=NoteOut)
def api_trash(identifier: str, registry: TagRegistry = Depends(get_registry)):
    return _note_out(registry, trash_note(identifier))

@app.post("/api/notes/{identifier}/restore", response_model=NoteOut)
def api_restore(identifier: str, registry: TagRegistry = Depends(get_registry)):
    return _note_out(registry, restore_note(identifier))

@app.delete("/api/notes/{identifier}")
def api_purge(identifier: str, registry: TagRegistry = Depends(get_registry)):
    purge_note(identifier, registry=registry)
    save_registry(registry)
    return {"ok": True}

@app.put("/api/notes/{identifier}/folder", response_model=NoteOut)
def api_move_note(identifier: str, payload: NoteMove, registry: TagRegistry = Depends(get_registry)):
    return _note_out(registry, move_note(identifier, payload.folder_id))

# ---------- Folders ----------
@app.get("/api/folders", response_model=list[FolderOut], dependencies=[Depends(bootstrap)])
def api_list_folders():
    return [_folder_out(f) for f in list_folders()]

@app.post("/api/folders", response_model=FolderOut, status_code=201, dependencies=[Depends(bootstrap)])
def api_create_folder(payload: FolderCreate):
    f = create_folder(payload.name, icon=payload.icon, color=payload.color, parent_id=payload.parent_id)
    return _folder_out(f)

@app.get("/api/folders/{folder_id}/notes", response_model=list[NoteOut])
def api_folder_notes(
    folder_id: int,
    recursive: bool = False,
    registry: TagRegistry = Depends(get_registry),
):
    """Active notes directly in the folder, or in its whole subtree with recursive=true."""
    if recursive:
        notes = all_notes(folder_id, include_trashed=False)
    else:
        notes = list_notes(folder_id=require_folder(folder_id).id)
    return [_note_out(registry, n) for n in notes]

@app.delete("/api/folders/{folder_id}", dependencies=[Depends(bootstrap)])
def api_delete_folder(folder_id: int):
    delete_folder(folder_id)
    return {"ok": True}
