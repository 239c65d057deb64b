"""Daily check-ins: eligibility, local recording, well score.

Eligibility is a stateless decision over the merged record view, the
check-in settings and the current hour. Check-ins are written to the local
store only; the remote copy catches up through merge.push_local().
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

from examplan.models import (
    CheckinEntry,
    DayRecord,
    EligibilitySettings,
    RecordMap,
    records_from_dict,
    records_to_dict,
)
from examplan.storage import KeyValueStore
from examplan.workspace import today_str


RESPONSES_KEY = "checkin_responses"
SETTINGS_KEY = "checkin_settings"

CHECKIN_QUESTIONS: list[dict[str, Any]] = [
    {
        "id": "positivity",
        "question": "Wie positiv fühlst du dich?",
        "options": [(1, "sehr negativ"), (2, "eher negativ"), (3, "neutral"), (4, "eher positiv"), (5, "sehr positiv")],
    },
    {
        "id": "energy",
        "question": "Wie energiegeladen bist du?",
        "options": [(1, "sehr müde"), (2, "eher müde"), (3, "neutral"), (4, "eher energiegeladen"), (5, "sehr energiegeladen")],
    },
    {
        "id": "motivation",
        "question": "Wie motiviert bist du?",
        "options": [(1, "sehr unmotiviert"), (2, "eher unmotiviert"), (3, "neutral"), (4, "eher motiviert"), (5, "sehr motiviert")],
    },
    {
        "id": "stress",
        "question": "Wie gestresst fühlst du dich?",
        # reversed scale: 5 is best
        "options": [(5, "gar nicht gestresst"), (4, "wenig gestresst"), (3, "neutral"), (2, "eher gestresst"), (1, "sehr gestresst")],
    },
]
MAX_ANSWER = 5


# ── Eligibility ───────────────────────────────────────────────


TIMINGS = ("morning", "evening", "both")


def validate_eligibility_settings(payload: Any) -> list[str]:
    """Validate a check-in settings update and return errors (empty if valid)."""
    if not isinstance(payload, dict):
        return ["Payload must be an object"]
    errors = []
    if "timing" in payload and payload["timing"] not in TIMINGS:
        errors.append(f"timing must be one of {', '.join(TIMINGS)}")
    for key in ("morningHour", "eveningHour"):
        if key in payload:
            value = payload[key]
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 23:
                errors.append(f"{key} must be an integer 0-23")
    return errors


def current_period(settings: EligibilitySettings, now_hour: int) -> str:
    """'evening' from evening_hour onwards (inclusive), else 'morning'."""
    return "evening" if now_hour >= settings.evening_hour else "morning"


def is_due(
    merged: RecordMap,
    settings: EligibilitySettings,
    is_feature_activated: bool,
    daily_prompt_count: int,
    now_hour: int,
    today: str | None = None,
) -> bool:
    """Whether a check-in prompt is due right now.

    *today* defaults to the current date in the workspace timezone.
    """
    if not is_feature_activated:
        return False

    today = today or today_str()
    period = current_period(settings, now_hour)

    # A single daily prompt is always the morning one.
    if daily_prompt_count == 1 and period == "evening":
        return False
    if settings.timing in ("morning", "evening") and period != settings.timing:
        return False

    record = merged.get(today)
    if record is not None and record.get(period) is not None:
        return False
    return True


def was_morning_skipped(merged: RecordMap, today: str) -> bool:
    record = merged.get(today)
    return bool(record and record.morning and record.morning.skipped)


def is_button_enabled(
    merged: RecordMap,
    settings: EligibilitySettings,
    is_feature_activated: bool,
    daily_prompt_count: int,
    now_hour: int,
    today: str,
) -> bool:
    """Manual check-in stays available while due or after a skipped morning."""
    due = is_due(merged, settings, is_feature_activated, daily_prompt_count, now_hour, today)
    return due or was_morning_skipped(merged, today)


# ── Recording ─────────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def validate_answers(answers: dict[str, Any]) -> list[str]:
    """Validate questionnaire answers and return errors (empty if valid)."""
    errors = []
    known = {q["id"] for q in CHECKIN_QUESTIONS}
    for key, value in answers.items():
        if key not in known:
            errors.append(f"Unknown question: {key}")
        elif isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_ANSWER:
            errors.append(f"{key} must be an integer 1-{MAX_ANSWER}")
    if not answers:
        errors.append("No answers given")
    return errors


def _write_period(local: RecordMap, today: str, period: str, entry: CheckinEntry) -> RecordMap:
    if period not in ("morning", "evening"):
        raise ValueError(f"Invalid period: {period}")
    updated = dict(local)
    existing = updated.get(today) or DayRecord()
    updated[today] = DayRecord(
        morning=entry if period == "morning" else existing.morning,
        evening=entry if period == "evening" else existing.evening,
    )
    return updated


def submit_checkin(
    local: RecordMap,
    answers: dict[str, int],
    period: str,
    today: str,
    timestamp: str | None = None,
) -> RecordMap:
    """Record answers for (today, period). Returns a new local map."""
    entry = CheckinEntry(answers=dict(answers), timestamp=timestamp or _now_iso())
    return _write_period(local, today, period, entry)


def skip_checkin(
    local: RecordMap,
    period: str,
    today: str,
    timestamp: str | None = None,
) -> RecordMap:
    """Mark (today, period) as skipped. Returns a new local map."""
    entry = CheckinEntry(skipped=True, timestamp=timestamp or _now_iso())
    return _write_period(local, today, period, entry)


# ── Well score ────────────────────────────────────────────────


def _entry_score(entry: CheckinEntry | None) -> float | None:
    if entry is None or not entry.answers:
        return None
    total = sum(v for v in entry.answers.values() if isinstance(v, (int, float)))
    return total / (len(CHECKIN_QUESTIONS) * MAX_ANSWER) * 100


def _window_score(records: RecordMap, today: date, start_days_ago: int, days: int = 7) -> float | None:
    scores = []
    for i in range(start_days_ago, start_days_ago + days):
        record = records.get((today - timedelta(days=i)).isoformat())
        if record is None:
            continue
        for entry in (record.morning, record.evening):
            score = _entry_score(entry)
            if score is not None:
                scores.append(score)
    if not scores:
        return None
    return sum(scores) / len(scores)


def well_score(records: RecordMap, today: str, days: int = 7) -> int | None:
    """Average check-in score (0-100) over the last *days* days, None without data."""
    score = _window_score(records, date.fromisoformat(today), 0, days)
    return None if score is None else round(score)


def well_score_trend(records: RecordMap, today: str) -> int:
    """This week's score minus last week's; 0 when either week has no data."""
    d = date.fromisoformat(today)
    this_week = _window_score(records, d, 0)
    last_week = _window_score(records, d, 7)
    if this_week is None or last_week is None:
        return 0
    return round(this_week - last_week)


# ── Persistence ───────────────────────────────────────────────


def load_local_records(store: KeyValueStore) -> RecordMap:
    data = store.get(RESPONSES_KEY)
    return records_from_dict(data if isinstance(data, dict) else {})


def save_local_records(store: KeyValueStore, records: RecordMap) -> None:
    store.set(RESPONSES_KEY, records_to_dict(records))


def load_eligibility_settings(store: KeyValueStore) -> EligibilitySettings:
    data = store.get(SETTINGS_KEY)
    return EligibilitySettings.from_dict(data if isinstance(data, dict) else {})


def save_eligibility_settings(store: KeyValueStore, settings: EligibilitySettings) -> None:
    store.set(SETTINGS_KEY, settings.to_dict())
