"""Local key/value persistence for examplan.

The local store is a single JSON document written atomically
(temp file + flock + rename). Everything that reads persisted state goes
through the KeyValueStore protocol so tests can swap in MemoryStore.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Protocol

import yaml


class StoreError(Exception):
    """A persisted value could not be read or written."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


# ── Files ─────────────────────────────────────────────────────


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning empty dict if missing, empty or not a mapping."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    result = yaml.safe_load(text)
    return result if isinstance(result, dict) else {}


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON to *path* via a locked temp file that replaces the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n"
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


# ── Stores ────────────────────────────────────────────────────


class JsonFileStore:
    """KeyValueStore backed by one JSON file.

    Every call re-reads the file, so several processes (web UI, TUI) see each
    other's writes. Missing file reads as an empty store.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, Any]:
        try:
            if not self.path.exists():
                return {}
            text = self.path.read_text(encoding="utf-8")
            if not text.strip():
                return {}
            data = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Store root is not an object: {self.path}")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            write_json_atomic(self.path, data)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> list[str]:
        return sorted(self._load())


class MemoryStore:
    """In-process KeyValueStore."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self.data)
