"""Deterministic topic allocator for examplan.

Distributes the ordered topic list across the net learning days of the
preparation window. Greedy and explainable: no scoring, no reordering; the
user's ranking is the only ordering key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from examplan.models import (
    DEFAULT_COLOR,
    LearningDay,
    PlanMetadata,
    PlanResult,
    PlanSettings,
    Topic,
    WeekdayNames,
)


# ── Constants ─────────────────────────────────────────────────

PLACEHOLDER_TOPIC = Topic(id="default-1", name="Grundlagen", color=DEFAULT_COLOR)
FALLBACK_MESSAGE = "Lernplan lokal generiert (KI nicht verfügbar)"

DAY_KINDS = {"learning", "buffer", "vacation", "rest"}


# ── Calendar days ─────────────────────────────────────────────


def calendar_days(settings: PlanSettings) -> list[date]:
    """All dates in [start_date, end_date)."""
    span = (settings.end_date - settings.start_date).days
    return [settings.start_date + timedelta(days=i) for i in range(max(0, span))]


def is_active_day(d: date, settings: PlanSettings, weekdays: WeekdayNames | None = None) -> bool:
    weekdays = weekdays or WeekdayNames()
    return bool(settings.week_structure.get(weekdays.key_for(d), False))


def active_days(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> list[date]:
    return [d for d in calendar_days(settings) if is_active_day(d, settings, weekdays)]


def net_learning_days(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> int:
    """Active days minus buffer and vacation days, floored at 0."""
    active = len(active_days(settings, weekdays))
    return max(0, active - settings.buffer_days - settings.vacation_days)


def build_metadata(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> PlanMetadata:
    active = len(active_days(settings, weekdays))
    return PlanMetadata(
        total_calendar_days=len(calendar_days(settings)),
        active_learning_days=active,
        net_learning_days=max(0, active - settings.buffer_days - settings.vacation_days),
        subjects_count=len(settings.topics) or 1,
    )


@dataclass
class PlanDay:
    date: date
    kind: str  # learning, buffer, vacation, rest


def plan_days(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> list[PlanDay]:
    """Classify every calendar day of the window.

    Learning days come first; the last buffer_days active days form the
    pre-exam buffer and the vacation_days active days before them are
    vacation. Inactive weekdays are rest days.
    """
    days = calendar_days(settings)
    active = [d for d in days if is_active_day(d, settings, weekdays)]

    buffer_count = min(settings.buffer_days, len(active))
    vacation_count = min(settings.vacation_days, len(active) - buffer_count)
    learning_count = len(active) - buffer_count - vacation_count

    kinds: dict[date, str] = {}
    for i, d in enumerate(active):
        if i < learning_count:
            kinds[d] = "learning"
        elif i < learning_count + vacation_count:
            kinds[d] = "vacation"
        else:
            kinds[d] = "buffer"
    return [PlanDay(date=d, kind=kinds.get(d, "rest")) for d in days]


# ── Allocation ────────────────────────────────────────────────


def allocate(
    settings: PlanSettings,
    topics: list[Topic] | None = None,
    weekdays: WeekdayNames | None = None,
) -> list[LearningDay]:
    """Distribute net learning days across topics in priority order.

    Each topic gets net // n units; the first net % n topics get one more.
    Topics spanning several units are labelled "<name> - Teil k".
    Returns an empty list when there is nothing to allocate.
    """
    if topics is None:
        topics = settings.topics
    ordered = sorted(topics, key=lambda t: t.rank) if topics else [PLACEHOLDER_TOPIC]

    net = net_learning_days(settings, weekdays)
    if net <= 0:
        return []

    per_topic, extra = divmod(net, len(ordered))

    units: list[LearningDay] = []
    for index, topic in enumerate(ordered):
        count = per_topic + (1 if index < extra else 0)
        for part in range(count):
            units.append(LearningDay(
                id=f"day-{topic.id}-{part}",
                subject=topic.name,
                category=topic.category,
                color=topic.color or DEFAULT_COLOR,
                theme=f"{topic.name} - Teil {part + 1}" if count > 1 else topic.name,
                blocks=settings.blocks_per_day,
                group=topic.group,
                topic_id=topic.id,
            ))
    return units


def generate_local_plan(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> PlanResult:
    """The deterministic plan, labelled as fallback."""
    return PlanResult(
        learning_days=allocate(settings, weekdays=weekdays),
        metadata=build_metadata(settings, weekdays),
        source="fallback",
        message=FALLBACK_MESSAGE,
    )
