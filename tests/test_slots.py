"""Tests for examplan/slots.py: placement, locking, group edits."""

from datetime import date

import pytest

from examplan.allocator import PlanDay
from examplan.models import LearningDay
from examplan.slots import (
    SlotError,
    clear_group,
    clear_unlocked,
    create_day_slots,
    ensure_calendar,
    find_run,
    lock_slot,
    move_group,
    place_learning_days,
    slots_to_sessions,
    split_group,
    unlock_slot,
)


def _days(*isodates: str, kind: str = "learning") -> list[PlanDay]:
    return [PlanDay(date=date.fromisoformat(d), kind=kind) for d in isodates]


def _unit(uid: str, blocks: int = 1) -> LearningDay:
    return LearningDay(id=uid, subject=uid.upper(), theme=f"{uid} theme", topic_id=uid, blocks=blocks, category="zivilrecht")


def test_create_day_slots_positions():
    slots = create_day_slots(date(2026, 3, 2), 3)
    assert [s.position for s in slots] == [1, 2, 3]
    assert all(s.is_empty for s in slots)
    assert slots[0].id == "2026-03-02-1"


def test_ensure_calendar_keeps_existing_days():
    cal = {"2026-03-02": create_day_slots("2026-03-02", 2)}
    cal["2026-03-02"][0].state = "locked"
    result = ensure_calendar(["2026-03-02", "2026-03-03"], cal, capacity=4)
    assert len(result["2026-03-02"]) == 2
    assert result["2026-03-02"][0].state == "locked"
    assert len(result["2026-03-03"]) == 4


def test_find_run_skips_locked_and_occupied():
    slots = create_day_slots("2026-03-02", 4)
    slots[1].state = "locked"
    assert find_run(slots, 2) == [3, 4]
    assert find_run(slots, 1) == [1]
    assert find_run(slots, 3) is None
    assert find_run(slots, 0) is None


def test_place_one_unit_per_learning_day():
    cal = {}
    placement = place_learning_days(_days("2026-03-02", "2026-03-03"), cal, [_unit("a", 2), _unit("b", 2)])
    assert [u.date for u in placement.placed] == ["2026-03-02", "2026-03-03"]
    first_day = cal["2026-03-02"]
    assert [s.state for s in first_day] == ["occupied", "occupied", "empty", "empty"]
    assert first_day[0].group_id == first_day[1].group_id == "group-2026-03-02-1"
    assert [s.group_index for s in first_day[:2]] == [0, 1]
    assert first_day[0].group_size == 2
    assert first_day[0].title == "a theme"


def test_place_ignores_non_learning_days():
    days = _days("2026-03-02", kind="buffer") + _days("2026-03-03")
    cal = {}
    placement = place_learning_days(days, cal, [_unit("a")])
    assert placement.placed[0].date == "2026-03-03"
    assert "2026-03-02" not in cal


def test_locked_slot_is_never_reassigned():
    cal = ensure_calendar(["2026-03-02", "2026-03-03"], capacity=2)
    lock_slot(cal, "2026-03-02", 1)
    placement = place_learning_days(_days("2026-03-02", "2026-03-03"), cal, [_unit("a", 2)])
    assert placement.placed[0].date == "2026-03-03"
    assert cal["2026-03-02"][0].state == "locked"
    assert not cal["2026-03-02"][0].has_content


def test_unplaced_units_are_reported():
    cal = {}
    placement = place_learning_days(_days("2026-03-02"), cal, [_unit("a"), _unit("b")])
    assert [u.id for u in placement.placed] == ["a"]
    assert [u.id for u in placement.unplaced] == ["b"]
    assert placement.unplaced[0].date is None


def test_blocks_clamped_to_capacity():
    cal = {}
    placement = place_learning_days(_days("2026-03-02"), cal, [_unit("a", 9)], capacity=3)
    assert placement.placed
    assert all(s.state == "occupied" for s in cal["2026-03-02"])


def test_unlock_restores_state():
    cal = ensure_calendar(["2026-03-02"], capacity=2)
    place_learning_days(_days("2026-03-02"), cal, [_unit("a")])
    assert lock_slot(cal, "2026-03-02", 1).state == "locked"
    assert unlock_slot(cal, "2026-03-02", 1).state == "occupied"
    lock_slot(cal, "2026-03-02", 2)
    assert unlock_slot(cal, "2026-03-02", 2).state == "empty"


def test_lock_unknown_slot_raises():
    with pytest.raises(SlotError):
        lock_slot({}, "2026-03-02", 1)


def test_clear_group_refuses_locked():
    cal = {}
    place_learning_days(_days("2026-03-02"), cal, [_unit("a", 2)])
    group_id = cal["2026-03-02"][0].group_id
    lock_slot(cal, "2026-03-02", 2)
    with pytest.raises(SlotError):
        clear_group(cal, "2026-03-02", group_id)
    unlock_slot(cal, "2026-03-02", 2)
    clear_group(cal, "2026-03-02", group_id)
    assert all(s.is_empty and not s.has_content for s in cal["2026-03-02"])


def test_move_group_to_other_day():
    cal = {}
    place_learning_days(_days("2026-03-02"), cal, [_unit("a", 2)])
    group_id = cal["2026-03-02"][0].group_id
    moved = move_group(cal, "2026-03-02", group_id, "2026-03-04")
    assert [s.position for s in moved] == [1, 2]
    assert all(s.topic_id == "a" for s in moved)
    assert all(s.is_empty for s in cal["2026-03-02"])


def test_move_group_without_room_raises():
    cal = {}
    place_learning_days(_days("2026-03-02", "2026-03-03"), cal, [_unit("a", 3), _unit("b", 3)])
    group_id = cal["2026-03-02"][0].group_id
    with pytest.raises(SlotError):
        move_group(cal, "2026-03-02", group_id, "2026-03-03")
    # source untouched
    assert cal["2026-03-02"][0].topic_id == "a"


def test_split_group_and_sessions():
    cal = {}
    place_learning_days(_days("2026-03-02"), cal, [_unit("a", 2)])
    sessions = slots_to_sessions(cal["2026-03-02"])
    assert len(sessions) == 1
    assert sessions[0].block_size == 2
    assert sessions[0].start_position == 1

    split_group(cal, "2026-03-02", cal["2026-03-02"][0].group_id)
    sessions = slots_to_sessions(cal["2026-03-02"])
    assert [s.block_size for s in sessions] == [1, 1]
    assert sessions[0].to_dict()["rechtsgebiet"] == "zivilrecht"


def test_clear_unlocked_keeps_locked_slots():
    cal = {}
    place_learning_days(_days("2026-03-02", "2026-03-03"), cal, [_unit("a", 2), _unit("b", 1)])
    lock_slot(cal, "2026-03-03", 1)
    assert clear_unlocked(cal) == 2
    assert all(s.is_empty for s in cal["2026-03-02"])
    kept = cal["2026-03-03"][0]
    assert kept.state == "locked"
    assert kept.topic_id == "b"
