"""Tests for examplan/allocator.py: net days, distribution, day classification."""

from datetime import date

from examplan.allocator import (
    FALLBACK_MESSAGE,
    active_days,
    allocate,
    build_metadata,
    calendar_days,
    generate_local_plan,
    net_learning_days,
    plan_days,
)
from examplan.models import PlanSettings, Topic

WEEKDAYS_ONLY = {
    "montag": True, "dienstag": True, "mittwoch": True, "donnerstag": True, "freitag": True,
    "samstag": False, "sonntag": False,
}
EVERY_DAY = {k: True for k in WEEKDAYS_ONLY}


def _settings(start, end, topics=None, buffer_days=0, vacation_days=0, week=None, blocks=1) -> PlanSettings:
    return PlanSettings(
        start_date=start,
        end_date=end,
        buffer_days=buffer_days,
        vacation_days=vacation_days,
        blocks_per_day=blocks,
        week_structure=week if week is not None else EVERY_DAY,
        topics=topics or [],
    )


def _topics(*names: str) -> list[Topic]:
    return [Topic(id=n.lower(), name=n, category="zivilrecht", rank=i) for i, n in enumerate(names)]


def test_window_excludes_end_date():
    s = _settings(date(2026, 3, 2), date(2026, 3, 9))
    days = calendar_days(s)
    assert len(days) == 7
    assert days[-1] == date(2026, 3, 8)


def test_active_days_follow_week_structure():
    s = _settings(date(2026, 3, 2), date(2026, 3, 16), week=WEEKDAYS_ONLY)
    assert len(active_days(s)) == 10
    assert all(d.weekday() < 5 for d in active_days(s))


def test_net_learning_days_floored_at_zero():
    s = _settings(date(2026, 3, 2), date(2026, 3, 5), buffer_days=5, vacation_days=5)
    assert net_learning_days(s) == 0
    assert allocate(s, _topics("A")) == []


def test_even_distribution():
    s = _settings(date(2026, 3, 1), date(2026, 3, 7), topics=_topics("A", "B", "C"))
    units = allocate(s)
    assert len(units) == 6
    assert [u.subject for u in units] == ["A", "A", "B", "B", "C", "C"]
    assert units[0].theme == "A - Teil 1"
    assert units[1].theme == "A - Teil 2"


def test_remainder_goes_to_highest_priority_topics():
    s = _settings(date(2026, 3, 1), date(2026, 3, 8), topics=_topics("A", "B", "C"))
    units = allocate(s)
    counts = {name: sum(1 for u in units if u.subject == name) for name in "ABC"}
    assert counts == {"A": 3, "B": 2, "C": 2}


def test_fewer_days_than_topics_only_top_topics_get_a_day():
    s = _settings(date(2026, 3, 1), date(2026, 3, 3), topics=_topics("A", "B", "C", "D"))
    units = allocate(s)
    assert [u.subject for u in units] == ["A", "B"]
    # single-unit topics keep their plain name
    assert units[0].theme == "A"


def test_rank_orders_topics_not_list_position():
    topics = [Topic(id="b", name="B", rank=1), Topic(id="a", name="A", rank=0)]
    s = _settings(date(2026, 3, 1), date(2026, 3, 3))
    assert [u.subject for u in allocate(s, topics)] == ["A", "B"]


def test_empty_topic_list_uses_placeholder():
    s = _settings(date(2026, 3, 1), date(2026, 3, 4))
    units = allocate(s)
    assert len(units) == 3
    assert {u.subject for u in units} == {"Grundlagen"}
    assert units[2].theme == "Grundlagen - Teil 3"


def test_units_carry_topic_fields():
    topics = [Topic(id="bgb", name="BGB AT", category="zivilrecht", color="bg-blue-500", group="Kern")]
    s = _settings(date(2026, 3, 1), date(2026, 3, 2), blocks=3)
    unit = allocate(s, topics)[0]
    assert unit.id == "day-bgb-0"
    assert unit.topic_id == "bgb"
    assert unit.color == "bg-blue-500"
    assert unit.category == "zivilrecht"
    assert unit.group == "Kern"
    assert unit.blocks == 3


def test_missing_topic_color_defaults():
    s = _settings(date(2026, 3, 1), date(2026, 3, 2))
    assert allocate(s, _topics("A"))[0].color == "bg-gray-500"


def test_allocate_does_not_mutate_settings(wizard_payload):
    s = PlanSettings.from_dict(wizard_payload)
    before = s.to_dict()
    allocate(s)
    assert s.to_dict() == before


def test_plan_days_classification(wizard_payload):
    s = PlanSettings.from_dict(wizard_payload)
    kinds = {d.date.isoformat(): d.kind for d in plan_days(s)}
    assert len(kinds) == 14
    assert [k for k, v in kinds.items() if v == "learning"] == [
        "2026-03-02", "2026-03-03", "2026-03-04", "2026-03-05", "2026-03-06",
        "2026-03-09", "2026-03-10", "2026-03-11",
    ]
    assert kinds["2026-03-12"] == "vacation"
    assert kinds["2026-03-13"] == "buffer"
    assert kinds["2026-03-07"] == "rest"


def test_build_metadata(wizard_payload):
    meta = build_metadata(PlanSettings.from_dict(wizard_payload))
    assert meta.total_calendar_days == 14
    assert meta.active_learning_days == 10
    assert meta.net_learning_days == 8
    assert meta.subjects_count == 3


def test_metadata_counts_placeholder_subject():
    meta = build_metadata(_settings(date(2026, 3, 1), date(2026, 3, 2)))
    assert meta.subjects_count == 1


def test_generate_local_plan_is_fallback(wizard_payload):
    result = generate_local_plan(PlanSettings.from_dict(wizard_payload))
    assert result.source == "fallback"
    assert result.message == FALLBACK_MESSAGE
    assert result.total_days == 8
    assert result.success is True
