"""Slot model for the examplan calendar.

Every date of the plan window holds a fixed number of slots (positions
1..capacity). A topic occupies a contiguous run of positions on one day,
tied together by group_id. Slots are never deleted, only re-emptied, and a
locked slot is never reassigned by placement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from examplan.allocator import PlanDay
from examplan.models import Calendar, LearningDay, Slot


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4


class SlotError(ValueError):
    """A user edit could not be applied to the calendar."""


# ── Construction ──────────────────────────────────────────────


def create_day_slots(day: date | str, capacity: int = DEFAULT_CAPACITY) -> list[Slot]:
    key = day.isoformat() if isinstance(day, date) else day
    return [Slot(date=key, position=p) for p in range(1, capacity + 1)]


def ensure_calendar(
    dates: Iterable[date | str],
    calendar: Calendar | None = None,
    capacity: int = DEFAULT_CAPACITY,
) -> Calendar:
    """Create empty slots for every date that has none; keep existing slots."""
    result: Calendar = {day: list(slots) for day, slots in (calendar or {}).items()}
    for d in dates:
        key = d.isoformat() if isinstance(d, date) else d
        if not result.get(key):
            result[key] = create_day_slots(key, capacity)
    return result


# ── Queries ───────────────────────────────────────────────────


def free_positions(slots: list[Slot]) -> list[int]:
    return sorted(s.position for s in slots if s.is_empty)


def find_run(slots: list[Slot], size: int) -> list[int] | None:
    """Lowest contiguous run of *size* empty positions, or None."""
    if size <= 0:
        return None
    run: list[int] = []
    for slot in sorted(slots, key=lambda s: s.position):
        if slot.is_empty and (not run or slot.position == run[-1] + 1):
            run.append(slot.position)
        elif slot.is_empty:
            run = [slot.position]
        else:
            run = []
        if len(run) == size:
            return run
    return None


def group_slots(slots: list[Slot]) -> dict[str, list[Slot]]:
    """Slots with content grouped by group_id, each group ordered by group_index."""
    groups: dict[str, list[Slot]] = {}
    for slot in slots:
        if slot.has_content and slot.group_id:
            groups.setdefault(slot.group_id, []).append(slot)
    for members in groups.values():
        members.sort(key=lambda s: s.group_index or 0)
    return groups


@dataclass
class Session:
    """Display unit for one topic group on a day."""

    id: str
    title: str
    category: str | None
    color: str | None
    start_position: int
    block_size: int
    locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "rechtsgebiet": self.category,
            "color": self.color,
            "startPosition": self.start_position,
            "blockSize": self.block_size,
            "locked": self.locked,
        }


def slots_to_sessions(slots: list[Slot]) -> list[Session]:
    """Collapse a day's slots into one session per group (or ungrouped topic)."""
    groups = group_slots(slots)
    sessions: list[Session] = []
    seen: set[str] = set()
    for slot in sorted(slots, key=lambda s: s.position):
        if not slot.has_content:
            continue
        if slot.group_id:
            if slot.group_id in seen:
                continue
            seen.add(slot.group_id)
            members = groups[slot.group_id]
        else:
            members = [slot]
        first = members[0]
        sessions.append(Session(
            id=first.topic_id or first.id,
            title=first.title or "",
            category=first.category,
            color=first.color,
            start_position=min(m.position for m in members),
            block_size=len(members),
            locked=any(m.state == "locked" for m in members),
        ))
    return sessions


# ── Placement ─────────────────────────────────────────────────


def occupy(slots: list[Slot], positions: list[int], unit: LearningDay) -> None:
    """Fill *positions* of a day with one topic group."""
    by_position = {s.position: s for s in slots}
    group_id = f"group-{by_position[positions[0]].date}-{positions[0]}"
    for index, position in enumerate(positions):
        slot = by_position[position]
        if not slot.is_empty:
            raise SlotError(f"Slot {slot.id} is not empty")
        slot.state = "occupied"
        slot.topic_id = unit.topic_id or unit.id
        slot.title = unit.theme or unit.subject
        slot.category = unit.category
        slot.color = unit.color
        slot.group_id = group_id
        slot.group_index = index
        slot.group_size = len(positions)


@dataclass
class Placement:
    placed: list[LearningDay] = field(default_factory=list)
    unplaced: list[LearningDay] = field(default_factory=list)


def place_learning_days(
    days: list[PlanDay],
    calendar: Calendar,
    learning_days: list[LearningDay],
    capacity: int = DEFAULT_CAPACITY,
) -> Placement:
    """Bin-fill allocation units into the calendar in priority order.

    One unit per learning day. Days without a free run of the unit's block
    count (locked or user-occupied slots) are skipped. Units left over when
    the learning days run out are reported as unplaced. Sets unit.date on
    placed units.
    """
    learning_dates = [d.date.isoformat() for d in days if d.kind == "learning"]
    result = Placement()
    cursor = 0

    for unit in learning_days:
        size = min(max(1, unit.blocks), capacity)
        if size != unit.blocks:
            logger.info("Clamped %s from %d to %d blocks", unit.id, unit.blocks, size)
        placed = False
        while cursor < len(learning_dates):
            day = learning_dates[cursor]
            cursor += 1
            slots = calendar.setdefault(day, create_day_slots(day, capacity))
            run = find_run(slots, size)
            if run is None:
                continue
            occupy(slots, run, unit)
            unit.date = day
            result.placed.append(unit)
            placed = True
            break
        if not placed:
            result.unplaced.append(unit)

    if result.unplaced:
        logger.warning("%d learning days could not be placed", len(result.unplaced))
    return result


# ── User edits ────────────────────────────────────────────────


def _find_slot(calendar: Calendar, day: str, position: int) -> Slot:
    for slot in calendar.get(day, []):
        if slot.position == position:
            return slot
    raise SlotError(f"No slot at {day} position {position}")


def _group_members(calendar: Calendar, day: str, group_id: str) -> list[Slot]:
    members = [s for s in calendar.get(day, []) if s.group_id == group_id]
    if not members:
        raise SlotError(f"No group {group_id} on {day}")
    return sorted(members, key=lambda s: s.group_index or 0)


def _reset(slot: Slot) -> None:
    slot.state = "empty"
    slot.topic_id = None
    slot.title = None
    slot.category = None
    slot.color = None
    slot.group_id = None
    slot.group_index = None
    slot.group_size = None


def lock_slot(calendar: Calendar, day: str, position: int) -> Slot:
    slot = _find_slot(calendar, day, position)
    slot.state = "locked"
    return slot


def unlock_slot(calendar: Calendar, day: str, position: int) -> Slot:
    slot = _find_slot(calendar, day, position)
    if slot.state == "locked":
        slot.state = "occupied" if slot.has_content else "empty"
    return slot


def clear_unlocked(calendar: Calendar) -> int:
    """Re-empty every occupied slot that is not locked. Returns the count."""
    cleared = 0
    for slots in calendar.values():
        for slot in slots:
            if slot.state == "occupied":
                _reset(slot)
                cleared += 1
    return cleared


def clear_group(calendar: Calendar, day: str, group_id: str) -> None:
    """Re-empty every slot of a group. Refuses if any member is locked."""
    members = _group_members(calendar, day, group_id)
    if any(m.state == "locked" for m in members):
        raise SlotError(f"Group {group_id} is locked")
    for slot in members:
        _reset(slot)


def move_group(
    calendar: Calendar,
    day: str,
    group_id: str,
    target_day: str,
    capacity: int = DEFAULT_CAPACITY,
) -> list[Slot]:
    """Move a group to the first free run of the same size on *target_day*."""
    members = _group_members(calendar, day, group_id)
    if any(m.state == "locked" for m in members):
        raise SlotError(f"Group {group_id} is locked")
    first = members[0]
    unit = LearningDay(
        id=first.topic_id or first.id,
        topic_id=first.topic_id or "",
        subject=first.title or "",
        theme=first.title or "",
        category=first.category or "",
        color=first.color or "",
        blocks=len(members),
    )
    target = calendar.setdefault(target_day, create_day_slots(target_day, capacity))
    run = find_run(target, len(members))
    if run is None:
        raise SlotError(f"No free run of {len(members)} slots on {target_day}")
    for slot in members:
        _reset(slot)
    occupy(target, run, unit)
    return [s for s in target if s.position in run]


def split_group(calendar: Calendar, day: str, group_id: str) -> list[Slot]:
    """Turn a multi-slot group into independent single-slot groups."""
    members = _group_members(calendar, day, group_id)
    for slot in members:
        slot.group_id = f"group-{slot.date}-{slot.position}"
        slot.group_index = 0
        slot.group_size = 1
    return members
