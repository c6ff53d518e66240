"""fairmap CLI: entry-point for local operations.

Usage:
    python cli/main.py --help

Command groups:
    db        schema initialisation
    category  manage categories
    entry     create, list and de-duplicate entries
    search    run a bounded search
    serve     start the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from fairmap.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import uuid
from time import time
from typing import List, Optional

import typer

from fairmap.config import settings
from fairmap.core import geo, usecase
from fairmap.core.filters import Combination
from fairmap.core.models import Category
from fairmap.core.search import SearchConfig
from fairmap.db import SqliteRepository, get_connection, init_db
from fairmap.errors import FairmapError

app = typer.Typer(
    name="fairmap",
    help="fairmap directory CLI.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    settings.configure_logging()


def _open_repo() -> SqliteRepository:
    conn = get_connection()
    init_db(conn)
    return SqliteRepository(conn)


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    repo = _open_repo()
    repo.conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# category
# ---------------------------------------------------------------------------
category_app = typer.Typer(help="Category operations.", no_args_is_help=True)
app.add_typer(category_app, name="category")


@category_app.command("add")
def category_add(
    name: str = typer.Option(..., help="Category name."),
    category_id: Optional[str] = typer.Option(None, "--id", help="Explicit id."),
) -> None:
    """Create a new category."""
    repo = _open_repo()
    category = Category(id=category_id or uuid.uuid4().hex, name=name, created=int(time()))
    try:
        repo.create_category(category)
    except FairmapError as exc:
        typer.echo(f"[category add] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()
    typer.echo(f"[category add] Created category: {category.id}  name={category.name!r}")


@category_app.command("list")
def category_list() -> None:
    """List all categories."""
    repo = _open_repo()
    try:
        categories = repo.all_categories()
    except FairmapError as exc:
        typer.echo(f"[category list] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()
    if not categories:
        typer.echo("[category list] No categories found.")
        return
    for c in categories:
        typer.echo(f"  {c.id}  {c.name!r}")


# ---------------------------------------------------------------------------
# entry
# ---------------------------------------------------------------------------
entry_app = typer.Typer(help="Entry operations.", no_args_is_help=True)
app.add_typer(entry_app, name="entry")


@entry_app.command("add")
def entry_add(
    title: str = typer.Option(..., help="Entry title."),
    description: str = typer.Option(..., help="Entry description."),
    lat: float = typer.Option(..., help="Latitude."),
    lng: float = typer.Option(..., help="Longitude."),
    category: List[str] = typer.Option([], "--category", help="Category id (repeatable)."),
    tag: List[str] = typer.Option([], "--tag", help="Tag (repeatable)."),
    license: str = typer.Option("CC0-1.0", help="License: CC0-1.0 | ODbL-1.0."),
) -> None:
    """Create a new entry."""
    repo = _open_repo()
    new = usecase.NewEntry(
        title=title,
        description=description,
        lat=lat,
        lng=lng,
        license=license,
        categories=list(category),
        tags=list(tag),
    )
    try:
        entry_id = usecase.create_new_entry(repo, new)
    except FairmapError as exc:
        typer.echo(f"[entry add] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()
    typer.echo(f"[entry add] Created entry: {entry_id}  title={title!r}")


@entry_app.command("list")
def entry_list() -> None:
    """List all current entries."""
    repo = _open_repo()
    try:
        entries = repo.all_entries()
    except FairmapError as exc:
        typer.echo(f"[entry list] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()
    if not entries:
        typer.echo("[entry list] No entries found.")
        return
    for e in entries:
        typer.echo(f"  {e.id}  v{e.version}  ({e.lat}, {e.lng})  {e.title!r}")


@entry_app.command("duplicates")
def entry_duplicates() -> None:
    """List pairs of entries that look like the same place."""
    repo = _open_repo()
    try:
        pairs = usecase.find_duplicate_entries(repo)
    except FairmapError as exc:
        typer.echo(f"[entry duplicates] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()
    if not pairs:
        typer.echo("[entry duplicates] No duplicates found.")
        return
    for a, b, kind in pairs:
        typer.echo(f"  {a}  {b}  {kind.value}")


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------
@app.command("search")
def search(
    bbox: str = typer.Option(..., help="sw_lat,sw_lng,ne_lat,ne_lng"),
    text: str = typer.Option("", help="Free text, may contain #hashtags."),
    category: List[str] = typer.Option([], "--category", help="Category id (repeatable)."),
    tag: List[str] = typer.Option([], "--tag", help="Tag (repeatable)."),
    combination: Combination = typer.Option(
        Combination.OR, help="Tag matching: or (any tag) | and (all tags)."
    ),
) -> None:
    """Run a bounded search and print visible / invisible ids."""
    repo = _open_repo()
    try:
        result = usecase.search_entries(
            repo,
            geo.extract_bbox(bbox),
            SearchConfig.from_settings(settings),
            categories=list(category) or None,
            text=text,
            tags=list(tag),
            combination=combination,
        )
    except FairmapError as exc:
        typer.echo(f"[search] Failed: {exc}")
        raise typer.Exit(1)
    finally:
        repo.conn.close()

    typer.echo(f"[search] {len(result.visible)} visible, {len(result.invisible)} invisible")
    for entry_id in result.visible:
        typer.echo(f"  visible    {entry_id}")
    for entry_id in result.invisible:
        typer.echo(f"  invisible  {entry_id}")


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address."),
    port: Optional[int] = typer.Option(None, help="Port to listen on."),
) -> None:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "fairmap.api.app:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
