"""One-time rename migration for keys in the local store.

Runs once at startup, before anything reads persisted state. Copies each old
key to its new name when only the old one is set, never deletes (see
clear_old_keys), and records the version so later runs are no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from examplan.storage import KeyValueStore, MemoryStore, StoreError


logger = logging.getLogger(__name__)

MIGRATION_VERSION = 1
MIGRATION_KEY = "storage_migration_version"

KEY_MIGRATIONS: dict[str, str] = {
    "calendar_slots": "calendar_blocks",
    "private_blocks": "private_sessions",
    "time_blocks": "time_sessions",
}


@dataclass
class MigrationResult:
    version: int
    ran: bool = False
    migrated: list[str] = field(default_factory=list)
    kept_both: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def stored_version(store: KeyValueStore) -> int:
    """Stored migration version, 0 when absent or unreadable."""
    try:
        return int(store.get(MIGRATION_KEY) or 0)
    except (TypeError, ValueError):
        return 0


def migrate(store: KeyValueStore) -> MigrationResult:
    """Run pending key migrations against *store*. Idempotent."""
    try:
        version = stored_version(store)
    except StoreError as e:
        logger.error("Cannot read migration version: %s", e)
        version = 0
    if version >= MIGRATION_VERSION:
        logger.debug("Local store already migrated to version %d", version)
        return MigrationResult(version=version)

    result = MigrationResult(version=MIGRATION_VERSION, ran=True)
    for old_key, new_key in KEY_MIGRATIONS.items():
        try:
            old_value = store.get(old_key)
            new_value = store.get(new_key)
            if _is_set(old_value) and not _is_set(new_value):
                store.set(new_key, old_value)
                result.migrated.append(old_key)
                logger.info("Migrated %s -> %s", old_key, new_key)
            elif _is_set(old_value) and _is_set(new_value):
                result.kept_both.append(old_key)
                logger.info("Both %s and %s exist, keeping both", old_key, new_key)
        except StoreError as e:
            result.failed.append(old_key)
            logger.error("Error migrating %s -> %s: %s", old_key, new_key, e)

    try:
        store.set(MIGRATION_KEY, MIGRATION_VERSION)
    except StoreError as e:
        logger.error("Cannot record migration version: %s", e)

    logger.info("Migration complete: %d keys migrated", len(result.migrated))
    return result


def migrate_snapshot(snapshot: dict[str, Any], version: int | None = None) -> tuple[dict[str, Any], int]:
    """Pure form of migrate(): returns (new_snapshot, new_version).

    *version* overrides the marker stored in *snapshot* when given.
    """
    store = MemoryStore(snapshot)
    if version is not None:
        store.set(MIGRATION_KEY, version)
    result = migrate(store)
    return store.data, result.version


def migration_status(store: KeyValueStore) -> dict[str, Any]:
    """Per key pair: whether old/new exist and whether migration is complete."""
    marker = store.get(MIGRATION_KEY)
    status: dict[str, Any] = {
        "migrationVersion": marker if _is_set(marker) else "not run",
        "keys": {},
    }
    for old_key, new_key in KEY_MIGRATIONS.items():
        old_exists = _is_set(store.get(old_key))
        new_exists = _is_set(store.get(new_key))
        status["keys"][old_key] = {
            "newKey": new_key,
            "oldKeyExists": old_exists,
            "newKeyExists": new_exists,
            "migrated": not old_exists and new_exists,
        }
    return status


def clear_old_keys(store: KeyValueStore) -> list[str]:
    """Explicit opt-in: delete old keys. Returns the keys removed."""
    removed = []
    for old_key in KEY_MIGRATIONS:
        if _is_set(store.get(old_key)):
            store.remove(old_key)
            removed.append(old_key)
            logger.info("Removed old key %s", old_key)
    return removed
