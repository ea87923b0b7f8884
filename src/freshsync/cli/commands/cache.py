"""Cache commands for CLI."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from freshsync.cli.formatting import _format_size, _format_status_with_color
from freshsync.cli.main import app, load_cli_settings
from freshsync.core.formatting import format_age


cache_app = typer.Typer(help="Inspect and clear the local cache.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")


@cache_app.command()
def status() -> None:
    """Show cached keys with their age and fresh/stale state."""
    from freshsync.adapters.cache import FileCacheBackend
    from freshsync.core.cache_store import CacheStore
    from freshsync.core.ports import utc_now

    settings = load_cli_settings()
    backend = FileCacheBackend(settings.cache_dir)
    store = CacheStore(backend)

    keys = store.keys()
    if not keys:
        typer.echo("Cache is empty.")
        return

    table = Table()
    table.add_column("Key")
    table.add_column("Items", justify="right")
    table.add_column("Age", justify="right")
    table.add_column("Status")

    now = utc_now()
    for key in keys:
        entry = store.read(key)
        if entry is None:
            table.add_row(key, "-", "-", _format_status_with_color("missing"))
            continue
        state = "fresh" if store.is_fresh(entry, settings.cache_expiry) else "stale"
        table.add_row(
            key,
            str(len(entry.payload.items)),
            format_age(entry.age(now)),
            _format_status_with_color(state),
        )

    console = Console()
    console.print(table)
    stats = backend.statistics()
    size = _format_size(stats["total_size"])
    console.print(f"{stats['entry_count']} entries, {size}")


@cache_app.command()
def clear(
    key: str | None = typer.Argument(
        None, help="Key to remove (see 'freshsync cache status'). Omit to clear all."
    ),
) -> None:
    """Remove one cached key, or every key."""
    from freshsync.adapters.cache import FileCacheBackend
    from freshsync.core.cache_store import CacheStore

    settings = load_cli_settings()
    store = CacheStore(FileCacheBackend(settings.cache_dir))

    if key is not None:
        if key not in store.keys():
            typer.echo(f"Key '{key}' is not cached.")
            raise typer.Exit(1)
        store.invalidate(key)
        typer.echo(f"Cleared '{key}'.")
        return

    keys = store.keys()
    for k in keys:
        store.invalidate(k)
    typer.echo(f"Cleared {len(keys)} cached key(s).")
