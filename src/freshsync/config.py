"""Configuration utilities for freshsync.

Settings are read from ``[tool.freshsync]`` in the project's
pyproject.toml, or from a standalone ``.freshsync/config.toml`` whose
values take precedence.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from freshsync.core.exceptions import ConfigurationError
from freshsync.core.scheduler import SyncOptions


MARKER_DIR = ".freshsync"
CONFIG_FILE = "config.toml"
DEFAULT_CACHE_DIR = Path(MARKER_DIR) / "cache"

_SYNC_KEYS: dict[str, type | tuple[type, ...]] = {
    "refresh_interval": (int, float),
    "enable_auto_refresh": bool,
    "max_retries": int,
    "retry_delay": (int, float),
    "max_retry_delay": (int, float),
    "backoff_factor": (int, float),
}
_SETTINGS_KEYS: dict[str, type | tuple[type, ...]] = {
    "cache_dir": str,
    "cache_expiry": (int, float),
    "search_fields": list,
}


def find_project_root(start: Path | None = None) -> Path:
    """Find the project root directory by walking up from start directory.

    Searches for marker files in the following priority order:
    1. .freshsync - Explicit project marker
    2. pyproject.toml - Python project root
    3. .git - Version control root

    Args:
        start: Directory to start searching from. If None, uses current directory.

    Returns:
        Path to project root directory. Returns start directory if no markers found.
    """
    if start is None:
        start = Path.cwd()

    markers = [MARKER_DIR, "pyproject.toml", ".git"]
    current = start.resolve()

    for parent in [current, *current.parents]:
        for marker in markers:
            if (parent / marker).exists():
                return parent

    return current


@dataclass(frozen=True)
class Settings:
    """Resolved project settings.

    Attributes:
        sync: Scheduler and retry options.
        cache_dir: Directory for the file cache backend.
        cache_expiry: Seconds after which a cached entry is not fresh.
        search_fields: Default fields searched by the CLI's --search.
    """

    sync: SyncOptions = field(default_factory=SyncOptions)
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_expiry: float = 60.0
    search_fields: tuple[str, ...] = ()


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def _collect_table(root: Path) -> dict[str, Any]:
    table: dict[str, Any] = {}

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        tool = _read_toml(pyproject).get("tool", {})
        table.update(tool.get("freshsync", {}))

    standalone = root / MARKER_DIR / CONFIG_FILE
    if standalone.is_file():
        table.update(_read_toml(standalone))

    return table


def _check_types(table: dict[str, Any]) -> None:
    allowed = {**_SYNC_KEYS, **_SETTINGS_KEYS}
    unknown = sorted(set(table) - set(allowed))
    if unknown:
        raise ConfigurationError(f"Unknown freshsync setting(s): {', '.join(unknown)}")

    for key, value in table.items():
        expected = allowed[key]
        # bool is an int subclass; only enable_auto_refresh takes booleans
        if isinstance(value, bool) and expected is not bool:
            raise ConfigurationError(f"Setting '{key}' must be a number, not a boolean")
        if not isinstance(value, expected):
            raise ConfigurationError(
                f"Setting '{key}' has invalid type {type(value).__name__}"
            )

    fields = table.get("search_fields", [])
    if not all(isinstance(f, str) for f in fields):
        raise ConfigurationError("Setting 'search_fields' must be a list of strings")


def load_settings(root: Path | None = None) -> Settings:
    """Load settings for the project at root.

    Args:
        root: Project root. If None, discovered with find_project_root().

    Returns:
        Settings with defaults for every key that is not configured.

    Raises:
        ConfigurationError: If a config file is malformed, names an unknown
            key, or holds a value of the wrong type or range.
    """
    if root is None:
        root = find_project_root()

    table = _collect_table(root)
    _check_types(table)

    sync = SyncOptions(**{k: v for k, v in table.items() if k in _SYNC_KEYS})
    sync.validate()

    cache_dir = Path(table.get("cache_dir", DEFAULT_CACHE_DIR))
    if not cache_dir.is_absolute():
        cache_dir = root / cache_dir

    cache_expiry = float(table.get("cache_expiry", 60.0))
    if cache_expiry < 0:
        raise ConfigurationError("Setting 'cache_expiry' cannot be negative")

    return Settings(
        sync=sync,
        cache_dir=cache_dir,
        cache_expiry=cache_expiry,
        search_fields=tuple(table.get("search_fields", ())),
    )
