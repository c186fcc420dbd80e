"""
Root Typer application for the recordproxy CLI.

Inspects local databases written by :class:`~recordproxy.LocalStoreProxy`.
Databases are always opened at their stored version, so the CLI never
triggers an upgrade.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from recordproxy.cli.utils import console, open_existing, output_dict, output_rows, run
from recordproxy.core.logging import configure_logging
from recordproxy.core.settings import get_settings
from recordproxy.data.model import Model
from recordproxy.data.operation import Sorter
from recordproxy.proxy.query import run_query

app = Typer(
    name="recordproxy",
    help="Inspect local object-store databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DB_OPTION = typer.Option(..., "--db", "-d", help="Database name")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", help="Directory holding database files")


def _version_callback(value: bool) -> None:
    if value:
        from recordproxy import __version__

        typer.echo(f"recordproxy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Inspect and clear object stores written by recordproxy."""
    settings = get_settings()
    configure_logging(level="DEBUG" if settings.debug else settings.log_level)


@app.command()
def info(
    db: str = DB_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show database version and object store counts."""

    async def _info() -> dict:
        async with open_existing(db, data_dir) as database:
            stores = {}
            for name in await database.object_store_names():
                stores[name] = await database.count(name)
            return {"database": database.name, "version": database.version, "stores": stores}

    output_dict(run(_info()), as_json=json_out, title="Database")


@app.command()
def ids(
    store: str = typer.Argument(..., help="Object store name"),
    db: str = DB_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """List every key in an object store."""

    async def _ids() -> list:
        async with open_existing(db, data_dir) as database:
            return await database.get_all_keys(store)

    for key in run(_ids()):
        console.print(key)


@app.command()
def dump(
    store: str = typer.Argument(..., help="Object store name"),
    db: str = DB_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
    start: int = typer.Option(0, "--start", min=0, help="Skip this many records"),
    limit: int = typer.Option(0, "--limit", min=0, help="Maximum records (0 = all)"),
    sort: str | None = typer.Option(None, "--sort", help="Field to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the records of an object store."""

    async def _dump() -> list[dict]:
        async with open_existing(db, data_dir) as database:
            model = Model(store, id_property=await database.key_path(store))
            records = [model.create(payload) for payload in await database.get_all(store)]
        sorters = [Sorter(sort, "DESC" if desc else "ASC")] if sort else []
        page = run_query(records, sorters=sorters, start=start, limit=limit)
        return [record.data for record in page]

    output_rows(run(_dump()), as_json=json_out, title=store)


@app.command()
def clear(
    store: str = typer.Argument(..., help="Object store name"),
    db: str = DB_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete every record in an object store."""
    if not force:
        if not typer.confirm(f"Delete all records in {db}/{store}?"):
            raise typer.Abort()

    async def _clear() -> None:
        async with open_existing(db, data_dir) as database:
            await database.clear(store)

    run(_clear())
    console.print(f"[green]Cleared[/green] {db}/{store}")


if __name__ == "__main__":
    app()
