"""
CLI helpers for database lookup and output formatting.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from recordproxy.core.errors import ProxyError
from recordproxy.core.settings import get_settings
from recordproxy.storage.engine import Database, database_path, open_database

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


# ── Database helpers ─────────────────────────────────────────────────────


def resolve_database(db_name: str, data_dir: Path | None = None) -> Path:
    """Path of an existing database file; exits when it does not exist."""
    path = database_path(data_dir or get_settings().data_dir, db_name)
    if not path.exists():
        err_console.print(f"[bold red]Error[/bold red]: database not found: {path}")
        raise typer.Exit(code=1)
    return path


@asynccontextmanager
async def open_existing(db_name: str, data_dir: Path | None = None) -> AsyncIterator[Database]:
    """Open a database at its current version (never upgrades)."""
    database = await open_database(resolve_database(db_name, data_dir), db_name)
    try:
        yield database
    finally:
        await database.close()


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning proxy errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except ProxyError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def output_rows(rows: list[dict[str, Any]], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of payloads as JSON or a Rich table."""
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return

    if not rows:
        console.print("[dim]No items.[/dim]")
        return

    _print_table(rows, title=title)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as JSON or key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return

    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Columns are the union of keys, in first-seen order."""
    columns: list[str] = []
    for row in rows:
        columns.extend(k for k in row if k not in columns)

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)
