"""CLI commands for freshsync."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from freshsync.core.exceptions import FreshsyncError
from freshsync.core.models import SyncPhase


if TYPE_CHECKING:
    from freshsync.config import Settings
    from freshsync.core.models import SyncState
    from freshsync.core.ports import FetchFunction
    from freshsync.core.scheduler import SyncOptions, SyncScheduler


SOURCE_HELP = "s3://bucket/key, file:// URI or local path."

app = typer.Typer(
    name="freshsync",
    help="Keep remote datasets fresh: polling, retries, caching and filtering.",
    no_args_is_help=True,
)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def _root(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging (retries, timer ticks, cache activity).",
    ),
) -> None:
    """Keep remote datasets fresh."""
    configure_logging(verbose)


def fail(error: FreshsyncError | str) -> typer.Exit:
    """Print an error (and its recovery hint) and return an Exit(1)."""
    typer.echo(f"Error: {error}", err=True)
    hint = getattr(error, "recovery_hint", None)
    if hint:
        typer.echo(f"Hint: {hint}", err=True)
    return typer.Exit(1)


def load_cli_settings() -> Settings:
    """Load project settings for CLI commands.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    from freshsync.config import load_settings

    try:
        return load_settings()
    except FreshsyncError as e:
        raise fail(e) from None


def build_scheduler(
    settings: Settings, source: str, use_cache: bool
) -> SyncScheduler[Any]:
    """Create a scheduler for source, cached in the project cache unless disabled."""
    from freshsync.adapters.cache import FileCacheBackend
    from freshsync.cli.formatting import cache_key_for
    from freshsync.core.cache_store import CacheStore
    from freshsync.core.scheduler import CachedSyncScheduler, SyncScheduler

    if not use_cache:
        return SyncScheduler()
    return CachedSyncScheduler(
        CacheStore(FileCacheBackend(settings.cache_dir)),
        cache_key_for(source),
        cache_expiry=settings.cache_expiry,
    )


def create_fetch_function(source: str, fmt: str | None) -> FetchFunction:
    """Build the fetch function for source, exiting on bad input."""
    from freshsync.adapters.sources import create_source

    try:
        return create_source(source, fmt=fmt)
    except (FreshsyncError, ValueError) as e:
        raise fail(e) from None


async def _sync_once(
    scheduler: SyncScheduler[Any], fetch_fn: FetchFunction, options: SyncOptions
) -> SyncState[Any]:
    async with scheduler:
        await scheduler.start(fetch_fn, options)
        return scheduler.state


@app.command()
def fetch(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    search: str = typer.Option("", "--search", "-s", help="Free-text search term."),
    search_fields: list[str] | None = typer.Option(
        None,
        "--search-field",
        help="Field searched by --search (repeatable). Defaults to configuration.",
    ),
    filters: list[str] | None = typer.Option(
        None,
        "--filter",
        "-f",
        help="Filter as field:operator:value (repeatable), e.g. score:greater:5.",
    ),
    sort: str | None = typer.Option(None, "--sort", help="Field to sort by."),
    desc: bool = typer.Option(False, "--desc", help="Sort descending."),
    page: int = typer.Option(0, "--page", min=0, help="Zero-based page to show."),
    page_size: int = typer.Option(
        50, "--page-size", help="Records per page; 0 shows everything."
    ),
    max_retries: int | None = typer.Option(
        None, "--max-retries", min=0, help="Retries after the first attempt."
    ),
    retry_delay: float | None = typer.Option(
        None, "--retry-delay", min=0, help="Base backoff delay in seconds."
    ),
    fmt: str | None = typer.Option(
        None, "--format", help="json, csv or parquet. Inferred from the suffix."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Neither read nor write the local cache."
    ),
) -> None:
    """Fetch a source once (with retries) and print the matching records."""
    from dataclasses import replace

    from freshsync.cli.formatting import build_records_table, describe_page
    from freshsync.cli.parsing import parse_filter
    from freshsync.core.filtering import FilterEngine
    from freshsync.core.models import FilterState, SortOrder
    from freshsync.progress import RichStatusReporter

    settings = load_cli_settings()

    try:
        state = FilterState(
            global_search=search,
            expressions=tuple(parse_filter(f, i) for i, f in enumerate(filters or [])),
            sort_by=sort,
            sort_order=SortOrder.DESC if desc else SortOrder.ASC,
            page_size=page_size,
            current_page=page,
        )
    except FreshsyncError as e:
        raise fail(e) from None

    options = settings.sync
    if max_retries is not None:
        options = replace(options, max_retries=max_retries)
    if retry_delay is not None:
        options = replace(options, retry_delay=retry_delay)
    options = replace(options, enable_auto_refresh=False)

    fetch_fn = create_fetch_function(source, fmt)
    scheduler = build_scheduler(settings, source, use_cache=not no_cache)
    reporter = RichStatusReporter(label=source, max_retries=options.max_retries)
    scheduler.subscribe(reporter)

    try:
        result_state = asyncio.run(_sync_once(scheduler, fetch_fn, options))
    except FreshsyncError as e:
        raise fail(e) from None

    engine: FilterEngine[Any] = FilterEngine(
        search_fields=tuple(search_fields or settings.search_fields)
    )
    result = engine.apply(list(result_state.items), state)

    console = Console()
    if result.items:
        console.print(build_records_table(result.items))
    console.print(describe_page(result))

    if result_state.phase is SyncPhase.ERROR:
        raise fail(result_state.error or "Failed to fetch data")


@app.command()
def watch(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between refreshes."
    ),
    ticks: int | None = typer.Option(
        None, "--ticks", "-n", min=1, help="Stop after this many settled fetches."
    ),
    fmt: str | None = typer.Option(
        None, "--format", help="json, csv or parquet. Inferred from the suffix."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Neither read nor write the local cache."
    ),
) -> None:
    """Refresh a source periodically and report each fetch until stopped."""
    from dataclasses import replace

    from freshsync.progress import RichStatusReporter

    settings = load_cli_settings()
    options = replace(
        settings.sync,
        enable_auto_refresh=True,
        refresh_interval=(
            interval if interval is not None else settings.sync.refresh_interval
        ),
    )
    if options.refresh_interval <= 0:
        raise fail("--interval must be greater than 0")

    fetch_fn = create_fetch_function(source, fmt)
    scheduler = build_scheduler(settings, source, use_cache=not no_cache)
    reporter = RichStatusReporter(label=source, max_retries=options.max_retries)
    scheduler.subscribe(reporter)

    try:
        final = asyncio.run(_watch(scheduler, fetch_fn, options, ticks))
    except KeyboardInterrupt:
        typer.echo("Stopped.")
        return
    except FreshsyncError as e:
        raise fail(e) from None

    if final.phase is SyncPhase.ERROR:
        raise typer.Exit(1)


async def _watch(
    scheduler: SyncScheduler[Any],
    fetch_fn: FetchFunction,
    options: SyncOptions,
    ticks: int | None,
) -> SyncState[Any]:
    done = asyncio.Event()
    settled = 0

    def on_state(state: SyncState[Any]) -> None:
        nonlocal settled
        if state.phase in (SyncPhase.SUCCESS, SyncPhase.ERROR):
            settled += 1
            if ticks is not None and settled >= ticks:
                done.set()

    scheduler.subscribe(on_state)
    async with scheduler:
        await scheduler.start(fetch_fn, options)
        await done.wait()
        return scheduler.state


def main() -> None:
    """Entry point for the CLI."""
    app()
