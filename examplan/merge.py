"""Local/remote reconciliation of daily check-in records.

The local copy is write-ahead: anything the user committed in-session lives
there first and may not have reached the remote store yet. Merging is a
per-(date, period) union in which a local payload always wins. There is no
timestamp comparison; two devices editing the same cell offline end up
last-sync-wins on the remote side.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Protocol

from examplan.models import DayRecord, RecordMap, records_from_dict, records_to_dict


logger = logging.getLogger(__name__)

DEFAULT_REMOTE_TIMEOUT = 10.0


# ── Merge ─────────────────────────────────────────────────────


def merge_records(local: RecordMap, remote: RecordMap) -> RecordMap:
    """Merge two record maps; local periods override remote ones.

    Remote-only dates and periods pass through untouched. Argument order
    matters: *local* must be the overriding side.
    """
    merged: RecordMap = dict(remote)
    for day in sorted(local):
        periods = local[day]
        existing = merged.get(day)
        if existing is None:
            merged[day] = periods
            continue
        merged[day] = DayRecord(
            morning=periods.morning if periods.morning is not None else existing.morning,
            evening=periods.evening if periods.evening is not None else existing.evening,
        )
    return merged


def merge_record_dicts(local: dict[str, Any], remote: dict[str, Any]) -> dict[str, Any]:
    """merge_records over raw JSON-shaped maps."""
    merged = merge_records(records_from_dict(local), records_from_dict(remote))
    return records_to_dict(merged)


# ── Remote store ──────────────────────────────────────────────


class RemoteRecordStore(Protocol):
    async def fetch_records(self) -> dict[str, Any]: ...

    async def save_records(self, records: dict[str, Any]) -> None: ...


class InMemoryRemoteStore:
    """Remote store stand-in holding records in memory."""

    def __init__(self, records: dict[str, Any] | None = None) -> None:
        self.records: dict[str, Any] = copy.deepcopy(records or {})

    async def fetch_records(self) -> dict[str, Any]:
        return copy.deepcopy(self.records)

    async def save_records(self, records: dict[str, Any]) -> None:
        self.records = copy.deepcopy(records)


async def _try_fetch(remote: RemoteRecordStore, timeout: float) -> RecordMap | None:
    try:
        data = await asyncio.wait_for(remote.fetch_records(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Remote fetch timed out after %ss", timeout)
        return None
    except Exception as e:
        logger.warning("Remote fetch failed: %s", e)
        return None
    return records_from_dict(data if isinstance(data, dict) else {})


async def fetch_remote(
    remote: RemoteRecordStore | None,
    timeout: float = DEFAULT_REMOTE_TIMEOUT,
) -> RecordMap:
    """Fetch remote records; failures and timeouts read as an empty map."""
    if remote is None:
        return {}
    records = await _try_fetch(remote, timeout)
    return {} if records is None else records


async def reconcile(
    local: RecordMap,
    remote: RemoteRecordStore | None,
    timeout: float = DEFAULT_REMOTE_TIMEOUT,
) -> RecordMap:
    """One reconciliation pass: fetch remote, merge local over it."""
    return merge_records(local, await fetch_remote(remote, timeout))


async def push_local(
    local: RecordMap,
    remote: RemoteRecordStore | None,
    timeout: float = DEFAULT_REMOTE_TIMEOUT,
) -> bool:
    """Upload local cells merged over the current remote state. Best-effort.

    Skipped when the remote state cannot be read, so an unreachable remote is
    never overwritten with local data alone.
    """
    if remote is None:
        return False
    current = await _try_fetch(remote, timeout)
    if current is None:
        return False
    merged = merge_records(local, current)
    try:
        await asyncio.wait_for(remote.save_records(records_to_dict(merged)), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Remote save timed out after %ss", timeout)
        return False
    except Exception as e:
        logger.warning("Remote save failed: %s", e)
        return False
    return True
