"""Workspace root, timezone, path helpers for examplan."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from examplan.storage import JsonFileStore, read_yaml


def workspace_root() -> Path:
    """Get the workspace root directory (contains planner/)."""
    return Path(
        os.environ.get("EXAMPLAN_ROOT", str(Path.home() / "examplan"))
    ).expanduser().resolve()


def _root(root: Path | None) -> Path:
    return workspace_root() if root is None else root


def settings_path(root: Path | None = None) -> Path:
    return _root(root) / "planner" / "settings.yaml"


def local_store_path(root: Path | None = None) -> Path:
    return _root(root) / "planner" / "local_store.json"


def local_store(root: Path | None = None) -> JsonFileStore:
    return JsonFileStore(local_store_path(root))


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the user's timezone from settings.yaml, defaulting to UTC."""
    name = read_yaml(settings_path(root)).get("timezone")
    if name:
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in the user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's date key (YYYY-MM-DD) in the user's timezone."""
    return now_local(root).date().isoformat()
