from __future__ import annotations
from contextlib import contextmanager
from typing import Optional
import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from .db import init_db
from .errors import NotFoundError, TagbookError
from .folders import (
    require_folder, create_folder, create_default_folders, list_folders,
    delete_folder, move_note, folder_note_count,
)
from .log import setup_logging
from .models import PALETTE, DEFAULT_COLOR, Tag
from .persistence import load_registry, save_registry
from .registry import TagRegistry
from .services import (
    create_note, list_notes, get_note, require_note,
    pin_note, archive_note, trash_note, restore_note, purge_note, empty_trash,
)

app = typer.Typer(help="tagbook — notes with colored tags")
tag_app = typer.Typer(help="Create, recolor and attach tags")
app.add_typer(tag_app, name="tag")
folder_app = typer.Typer(help="Organize notes into nested folders")
app.add_typer(folder_app, name="folder")
console = Console()

# rich has no "mint"/"indigo"/... so map the palette onto its color names
RICH_COLORS = {
    "red": "red", "orange": "orange1", "yellow": "yellow", "green": "green",
    "mint": "aquamarine1", "teal": "dark_cyan", "cyan": "cyan", "blue": "blue",
    "indigo": "slate_blue1", "purple": "purple", "pink": "hot_pink",
    "brown": "dark_orange3", "gray": "grey50",
}

@app.callback()
def _boot():
    setup_logging()
    init_db()

@contextmanager
def reporting():
    try:
        yield
    except TagbookError as e:
        console.print(f"[red]Error[/]: {escape(str(e))}")
        raise typer.Exit(1)

def _swatch(tag: Tag) -> str:
    return f"[{RICH_COLORS[tag.color]}]●[/] {tag.color}"

def _resolve_tag(registry: TagRegistry, ref: str) -> Tag:
    """Accept a tag id, an id prefix or a name."""
    if ref in registry:
        return registry.get_tag(ref)
    found = registry.find_tag(ref)
    if found:
        return found
    matches = [t for t in registry.list_tags() if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    raise NotFoundError("tag", ref)

# ---------- notes ----------
@app.command()
def add(
    title: str = typer.Option(..., "--title", "-t"),
    content: str = typer.Option("", "--content", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g", help="comma separated tag names"),
    folder: Optional[str] = typer.Option(None, "--folder", "-f", help="folder id or name"),
):
    with reporting():
        registry = load_registry()
        names = [t.strip() for t in (tags or "").split(",") if t.strip()]
        folder_id = None if folder is None else require_folder(folder).id
        n = create_note(title, content, folder_id=folder_id)
        for name in names:
            tag = registry.find_tag(name) or registry.create_tag(name)
            registry.associate(tag.id, n.id)
        if names:
            save_registry(registry)
    console.print(f"[green]Created[/] #{n.id}: {escape(n.title)}")

@app.command("list")
def _list(
    search: Optional[str] = typer.Option(None, "--search"),
    tag: Optional[str] = typer.Option(None, "--tag"),
    folder: Optional[str] = typer.Option(None, "--folder"),
    archived: bool = typer.Option(False, "--archived"),
    trashed: bool = typer.Option(False, "--trashed"),
    sort: str = typer.Option("updated", "--sort", help="updated|created|title"),
):
    with reporting():
        registry = load_registry()
        folder_id = None if folder is None else require_folder(folder).id
        notes = list_notes(search=search, include_archived=archived, include_trashed=trashed, sort=sort, folder_id=folder_id)
        if tag:
            wanted = registry.notes_for(_resolve_tag(registry, tag).id)
            notes = [n for n in notes if n.id in wanted]
    table = Table(title="tagbook")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Tags", style="magenta")
    table.add_column("Pinned")
    table.add_column("Archived")
    table.add_column("Trashed")
    table.add_column("Updated")
    for n in notes:
        table.add_row(
            str(n.id), escape(n.title), ", ".join(escape(t.name) for t in registry.tags_for(n.id)),
            "✓" if n.pinned else "", "✓" if n.archived else "", "✓" if n.trashed else "",
            n.updated_at.isoformat(timespec="minutes"),
        )
    console.print(table)

@app.command()
def show(identifier: str):
    n = get_note(identifier)
    if not n:
        console.print(f"[red]Not found[/]: {escape(identifier)}")
        raise typer.Exit(1)
    registry = load_registry()
    console.rule(f"#{n.id} {escape(n.title)}")
    tags = registry.tags_for(n.id)
    if tags:
        console.print(f"[dim]tags:[/] {', '.join(escape(t.name) for t in tags)}")
    if n.trashed:
        console.print("[yellow]in trash[/]")
    console.print(Markdown(n.content or "_<empty>_"))
    console.print(f"[dim]{n.word_count} words, {n.character_count} characters[/]")

@app.command()
def pin(identifier: str):
    with reporting():
        n = pin_note(identifier, True)
    console.print(f"[green]Pinned[/] #{n.id}: {escape(n.title)}")

@app.command()
def unpin(identifier: str):
    with reporting():
        n = pin_note(identifier, False)
    console.print(f"[yellow]Unpinned[/] #{n.id}: {escape(n.title)}")

@app.command()
def archive(identifier: str):
    with reporting():
        n = archive_note(identifier, True)
    console.print(f"[yellow]Archived[/] #{n.id}: {escape(n.title)}")

@app.command()
def unarchive(identifier: str):
    with reporting():
        n = archive_note(identifier, False)
    console.print(f"[green]Unarchived[/] #{n.id}: {escape(n.title)}")

@app.command()
def trash(identifier: str):
    with reporting():
        n = trash_note(identifier)
    console.print(f"[yellow]Trashed[/] #{n.id}: {escape(n.title)}")

@app.command()
def restore(identifier: str):
    with reporting():
        n = restore_note(identifier)
    console.print(f"[green]Restored[/] #{n.id}: {escape(n.title)}")

@app.command()
def purge(identifier: str):
    with reporting():
        registry = load_registry()
        purge_note(identifier, registry=registry)
        save_registry(registry)
    console.print(f"[red]Purged[/]: {escape(identifier)}")

@app.command("empty-trash")
def empty_trash_cmd():
    with reporting():
        registry = load_registry()
        count = empty_trash(registry=registry)
        save_registry(registry)
    console.print(f"[red]Purged[/] {count} notes from trash")

# ---------- tags ----------
@tag_app.command("list")
def tag_list(sort: str = typer.Option("created", "--sort", help="created|name")):
    with reporting():
        registry = load_registry()
        rows = [(t, registry.note_count(t.id)) for t in registry.list_tags(sort=sort)]
    table = Table(title="Tags")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Color")
    table.add_column("Notes", justify="right")
    for t, count in rows:
        table.add_row(t.id[:8], escape(t.name), _swatch(t), str(count))
    console.print(table)

@tag_app.command("palette")
def tag_palette():
    for color in PALETTE:
        console.print(f"[{RICH_COLORS[color]}]●[/] {color}")

@tag_app.command("new")
def tag_new(
    name: str,
    color: str = typer.Option(DEFAULT_COLOR, "--color", "-c"),
):
    with reporting():
        registry = load_registry()
        t = registry.create_tag(name, color)
        save_registry(registry)
    console.print(f"[green]Created tag[/] {escape(t.name)} ({t.color}) {t.id[:8]}")

@tag_app.command("rename")
def tag_rename(ref: str, new_name: str):
    with reporting():
        registry = load_registry()
        t = registry.rename_tag(_resolve_tag(registry, ref).id, new_name)
        save_registry(registry)
    console.print(f"[green]Renamed[/] → {escape(t.name)}")

@tag_app.command("color")
def tag_color(ref: str, color: str):
    with reporting():
        registry = load_registry()
        t = registry.set_color(_resolve_tag(registry, ref).id, color)
        save_registry(registry)
    console.print(f"[green]Recolored[/] {escape(t.name)} {_swatch(t)}")

@tag_app.command("delete")
def tag_delete(ref: str):
    with reporting():
        registry = load_registry()
        t = _resolve_tag(registry, ref)
        registry.delete_tag(t.id)
        save_registry(registry)
    console.print(f"[yellow]Deleted tag[/] {escape(t.name)}")

@tag_app.command("attach")
def tag_attach(ref: str, note: str):
    with reporting():
        registry = load_registry()
        t = _resolve_tag(registry, ref)
        n = require_note(note)
        registry.associate(t.id, n.id)
        save_registry(registry)
    console.print(f"[green]Tagged[/] #{n.id} with {escape(t.name)}")

@tag_app.command("detach")
def tag_detach(ref: str, note: str):
    with reporting():
        registry = load_registry()
        t = _resolve_tag(registry, ref)
        n = require_note(note)
        registry.disassociate(t.id, n.id)
        save_registry(registry)
    console.print(f"[yellow]Untagged[/] #{n.id} from {escape(t.name)}")

# ---------- folders ----------
@folder_app.command("list")
def folder_list():
    folders = list_folders()
    by_id = {f.id: f for f in folders}
    table = Table(title="Folders")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Parent")
    table.add_column("Color")
    table.add_column("Notes", justify="right")
    for f in folders:
        parent = by_id.get(f.parent_id)
        table.add_row(
            str(f.id), escape(f.name), escape(parent.name) if parent else "",
            f"[{RICH_COLORS[f.color]}]●[/] {f.color}", str(folder_note_count(f.id)),
        )
    console.print(table)

@folder_app.command("new")
def folder_new(
    name: str,
    icon: str = typer.Option("folder", "--icon"),
    color: str = typer.Option("blue", "--color", "-c"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="parent folder id or name"),
):
    with reporting():
        parent_id = None if parent is None else require_folder(parent).id
        f = create_folder(name, icon=icon, color=color, parent_id=parent_id)
    console.print(f"[green]Created folder[/] #{f.id}: {escape(f.name)}")

@folder_app.command("defaults")
def folder_defaults():
    created = create_default_folders()
    console.print(f"[green]Created[/] {len(created)} default folders")

@folder_app.command("move")
def folder_move(note: str, folder: Optional[str] = typer.Argument(None, help="omit to unfile")):
    with reporting():
        n = move_note(note, folder)
    console.print(f"[green]Moved[/] #{n.id} → {escape(folder) if folder else '(unfiled)'}")

@folder_app.command("delete")
def folder_delete(ref: str):
    with reporting():
        delete_folder(ref)
    console.print(f"[yellow]Deleted folder[/] {escape(ref)}")

def main():
    app()

if __name__ == "__main__":
    main()
