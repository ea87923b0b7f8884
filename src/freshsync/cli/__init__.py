"""CLI for freshsync."""

# Import commands to register them with the app
# These imports have side effects (registering commands with app.add_typer())
from freshsync.cli.commands import cache as _cache_module  # noqa: F401
from freshsync.cli.main import app, main


__all__ = ["app", "main"]
