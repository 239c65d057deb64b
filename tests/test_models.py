"""Tests for examplan/models.py: wire names and record parsing."""

from datetime import date

from examplan.models import (
    CheckinEntry,
    ColorPalette,
    DayRecord,
    EligibilitySettings,
    LearningDay,
    PlanResult,
    PlanSettings,
    Slot,
    Topic,
    WeekdayNames,
    calendar_from_dict,
    calendar_to_dict,
    records_from_dict,
    records_to_dict,
)


def test_topic_from_dict_german_wire_names():
    t = Topic.from_dict({"id": "x", "name": "BGB AT", "rechtsgebiet": "zivilrecht", "kategorie": "Kern"}, rank=3)
    assert t.category == "zivilrecht"
    assert t.group == "Kern"
    assert t.rank == 3
    assert t.to_dict()["rechtsgebiet"] == "zivilrecht"


def test_plan_settings_from_dict(wizard_payload):
    s = PlanSettings.from_dict(wizard_payload)
    assert s.start_date == date(2026, 3, 2)
    assert s.end_date == date(2026, 3, 16)
    assert s.buffer_days == 1
    assert s.blocks_per_day == 2
    assert [t.rank for t in s.topics] == [0, 1, 2]
    assert s.week_structure["samstag"] is False


def test_plan_settings_accepts_full_iso_timestamps():
    s = PlanSettings.from_dict({"startDate": "2026-03-02T00:00:00.000Z", "endDate": "2026-03-09"})
    assert s.start_date == date(2026, 3, 2)
    assert s.topics == []


def test_weekday_names_monday_first():
    w = WeekdayNames()
    assert w.key_for(date(2026, 3, 2)) == "montag"
    assert w.key_for(date(2026, 3, 8)) == "sonntag"
    assert w.label_for("mittwoch") == "Mittwoch"
    assert w.label_for("unknown") == "unknown"


def test_color_palette_lookup():
    p = ColorPalette()
    assert p.color_for("strafrecht") == "bg-red-500"
    assert p.color_for("nope") is None
    assert p.color_for("") is None


def test_plan_result_to_dict_camel_case():
    r = PlanResult(learning_days=[LearningDay(id="d1", subject="A")], message="hi")
    d = r.to_dict()
    assert d["totalDays"] == 1
    assert d["learningDays"][0]["id"] == "d1"
    assert d["metadata"]["netLearningDays"] == 0
    assert d["message"] == "hi"
    assert d["source"] == "fallback"


def test_slot_roundtrip_keeps_group():
    s = Slot(date="2026-03-02", position=2, state="occupied", topic_id="t", title="T",
             category="zivilrecht", color="bg-blue-500", group_id="g", group_index=0, group_size=2)
    d = s.to_dict()
    assert d["id"] == "2026-03-02-2"
    back = Slot.from_dict(d)
    assert back == s


def test_slot_from_dict_unknown_state_is_empty():
    assert Slot.from_dict({"date": "2026-03-02", "position": 1, "state": "weird"}).state == "empty"


def test_calendar_from_dict_sorts_positions():
    cal = calendar_from_dict({"2026-03-02": [{"date": "2026-03-02", "position": 2}, {"date": "2026-03-02", "position": 1}]})
    assert [s.position for s in cal["2026-03-02"]] == [1, 2]
    assert list(calendar_to_dict(cal)) == ["2026-03-02"]


def test_checkin_entry_preserves_unknown_keys():
    e = CheckinEntry.from_dict({"answers": {"energy": 3}, "timestamp": "t", "device": "phone"})
    assert e.extra == {"device": "phone"}
    assert e.to_dict() == {"answers": {"energy": 3}, "timestamp": "t", "device": "phone"}


def test_day_record_empty_payload_counts_as_present():
    r = DayRecord.from_dict({"morning": {}})
    assert r.morning is not None
    assert r.evening is None
    assert r.get("morning") is r.morning
    assert r.get("noon") is None


def test_records_from_dict_skips_non_objects():
    records = records_from_dict({"2026-03-01": {"morning": {"skipped": True}}, "2026-03-02": "junk"})
    assert list(records) == ["2026-03-01"]
    assert records["2026-03-01"].morning.skipped is True
    assert records_to_dict(records) == {"2026-03-01": {"morning": {"skipped": True}}}


def test_eligibility_settings_defaults_and_invalid_timing():
    assert EligibilitySettings.from_dict({}) == EligibilitySettings()
    s = EligibilitySettings.from_dict({"timing": "Noon", "eveningHour": 19})
    assert s.timing == "both"
    assert s.evening_hour == 19


def test_checkin_entry_keeps_default_valued_keys():
    raw = {"answers": None, "skipped": False, "timestamp": None}
    e = CheckinEntry.from_dict(raw)
    assert e.answers is None
    assert e.skipped is False
    assert e.to_dict() == raw


def test_checkin_entry_keeps_unexpected_value_types():
    raw = {"answers": "n/a", "skipped": "yes", "timestamp": "t"}
    e = CheckinEntry.from_dict(raw)
    assert e.answers is None
    assert e.skipped is True
    assert e.to_dict() == raw


def test_checkin_entry_equality_ignores_key_presence():
    assert CheckinEntry.from_dict({"skipped": False}) == CheckinEntry.from_dict({})


def test_eligibility_settings_bad_hours_use_defaults():
    s = EligibilitySettings.from_dict({"morningHour": "abc", "eveningHour": 30})
    assert s.morning_hour == 9
    assert s.evening_hour == 18
    assert EligibilitySettings.from_dict({"eveningHour": True}).evening_hour == 18
