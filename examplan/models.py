"""Typed dataclasses for the examplan data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python; the plan endpoint keeps
the German wire names its clients send (rechtsgebiet, kategorie, ...).
Unknown keys are ignored unless noted; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


DEFAULT_COLOR = "bg-gray-500"
PERIODS = ("morning", "evening")


# ── Configuration structs ─────────────────────────────────────


@dataclass(frozen=True)
class ColorPalette:
    """Category -> CSS color class lookup."""

    colors: dict[str, str] = field(default_factory=lambda: {
        "oeffentliches-recht": "bg-green-500",
        "zivilrecht": "bg-blue-500",
        "strafrecht": "bg-red-500",
        "querschnitt": "bg-purple-500",
    })
    default: str = DEFAULT_COLOR

    def color_for(self, category: str | None) -> str | None:
        if not category:
            return None
        return self.colors.get(category)


@dataclass(frozen=True)
class WeekdayNames:
    """Weekday keys (Monday first, matching date.weekday()) and display labels."""

    keys: tuple[str, ...] = (
        "montag", "dienstag", "mittwoch", "donnerstag", "freitag", "samstag", "sonntag",
    )
    labels: tuple[str, ...] = (
        "Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag",
    )

    def key_for(self, d: date) -> str:
        return self.keys[d.weekday()]

    def label_for(self, key: str) -> str:
        try:
            return self.labels[self.keys.index(key)]
        except ValueError:
            return key


# ── Plan input ────────────────────────────────────────────────


@dataclass
class Topic:
    id: str = ""
    name: str = ""
    category: str = ""  # legal area (rechtsgebiet) or custom subject
    rank: int = 0  # position in the user's ordering
    color: str = ""
    group: str = ""  # kategorie

    @classmethod
    def from_dict(cls, d: dict[str, Any], rank: int = 0) -> Topic:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            category=str(d.get("rechtsgebiet", d.get("category", "")) or ""),
            rank=rank,
            color=str(d.get("color", "") or ""),
            group=str(d.get("kategorie", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "rechtsgebiet": self.category,
            "color": self.color,
        }
        if self.group:
            d["kategorie"] = self.group
        return d


@dataclass
class PlanSettings:
    """Wizard input for plan generation. Never mutated by the allocator."""

    start_date: date
    end_date: date
    buffer_days: int = 0
    vacation_days: int = 0
    blocks_per_day: int = 1
    week_structure: dict[str, bool] = field(default_factory=dict)
    topics: list[Topic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PlanSettings:
        """Build settings from a validated wizard payload."""
        raw_topics = d.get("unterrechtsgebieteOrder", d.get("topics")) or []
        topics = [
            Topic.from_dict(t, rank=i)
            for i, t in enumerate(raw_topics)
            if isinstance(t, dict)
        ]
        return cls(
            start_date=date.fromisoformat(str(d["startDate"])[:10]),
            end_date=date.fromisoformat(str(d["endDate"])[:10]),
            buffer_days=int(d.get("bufferDays", 0) or 0),
            vacation_days=int(d.get("vacationDays", 0) or 0),
            blocks_per_day=int(d.get("blocksPerDay", 1) or 1),
            week_structure={str(k): bool(v) for k, v in (d.get("weekStructure") or {}).items()},
            topics=topics,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "bufferDays": self.buffer_days,
            "vacationDays": self.vacation_days,
            "blocksPerDay": self.blocks_per_day,
            "weekStructure": dict(self.week_structure),
            "unterrechtsgebieteOrder": [t.to_dict() for t in self.topics],
        }


# ── Plan output ───────────────────────────────────────────────


@dataclass
class LearningDay:
    """One allocation unit: a topic (part) worth one learning day."""

    id: str = ""
    subject: str = ""
    category: str = ""
    color: str = DEFAULT_COLOR
    theme: str = ""
    blocks: int = 1
    group: str = ""
    topic_id: str = ""
    date: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LearningDay:
        return cls(
            id=str(d.get("id", "")),
            subject=str(d.get("subject", "")),
            category=str(d.get("rechtsgebiet", "") or ""),
            color=str(d.get("color", DEFAULT_COLOR) or DEFAULT_COLOR),
            theme=str(d.get("theme", "")),
            blocks=int(d.get("blocks", 1) or 1),
            group=str(d.get("kategorie", "") or ""),
            topic_id=str(d.get("topicId", "") or ""),
            date=d.get("date"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "subject": self.subject,
            "rechtsgebiet": self.category,
            "color": self.color,
            "theme": self.theme,
            "blocks": self.blocks,
            "kategorie": self.group,
        }
        if self.topic_id:
            d["topicId"] = self.topic_id
        if self.date:
            d["date"] = self.date
        return d


@dataclass
class PlanMetadata:
    total_calendar_days: int = 0
    active_learning_days: int = 0
    net_learning_days: int = 0
    subjects_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCalendarDays": self.total_calendar_days,
            "activeLearningDays": self.active_learning_days,
            "netLearningDays": self.net_learning_days,
            "subjectsCount": self.subjects_count,
        }


@dataclass
class PlanResult:
    learning_days: list[LearningDay] = field(default_factory=list)
    metadata: PlanMetadata = field(default_factory=PlanMetadata)
    source: str = "fallback"  # ai, fallback
    message: str | None = None
    success: bool = True

    @property
    def total_days(self) -> int:
        return len(self.learning_days)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "success": self.success,
            "learningDays": [ld.to_dict() for ld in self.learning_days],
            "totalDays": self.total_days,
            "metadata": self.metadata.to_dict(),
            "source": self.source,
        }
        if self.message:
            d["message"] = self.message
        return d


# ── Calendar slots ────────────────────────────────────────────


SLOT_STATES = {"empty", "occupied", "locked"}


@dataclass
class Slot:
    date: str = ""
    position: int = 1
    state: str = "empty"  # empty, occupied, locked
    topic_id: str | None = None
    title: str | None = None
    category: str | None = None
    color: str | None = None
    group_id: str | None = None
    group_index: int | None = None
    group_size: int | None = None

    @property
    def id(self) -> str:
        return f"{self.date}-{self.position}"

    @property
    def is_empty(self) -> bool:
        return self.state == "empty"

    @property
    def has_content(self) -> bool:
        return self.topic_id is not None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Slot:
        state = str(d.get("state", "empty"))
        return cls(
            date=str(d.get("date", "")),
            position=int(d.get("position", 1)),
            state=state if state in SLOT_STATES else "empty",
            topic_id=d.get("topicId"),
            title=d.get("title"),
            category=d.get("rechtsgebiet"),
            color=d.get("color"),
            group_id=d.get("groupId"),
            group_index=d.get("groupIndex"),
            group_size=d.get("groupSize"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "position": self.position,
            "state": self.state,
        }
        if self.topic_id is not None:
            d["topicId"] = self.topic_id
            d["title"] = self.title
            d["rechtsgebiet"] = self.category
            d["color"] = self.color
        if self.group_id is not None:
            d["groupId"] = self.group_id
            d["groupIndex"] = self.group_index
            d["groupSize"] = self.group_size
        return d


Calendar = dict[str, list[Slot]]


def calendar_from_dict(d: dict[str, Any]) -> Calendar:
    if not d or not isinstance(d, dict):
        return {}
    return {
        day: sorted((Slot.from_dict(s) for s in slots if isinstance(s, dict)), key=lambda s: s.position)
        for day, slots in d.items()
        if isinstance(slots, list)
    }


def calendar_to_dict(calendar: Calendar) -> dict[str, Any]:
    return {day: [s.to_dict() for s in calendar[day]] for day in sorted(calendar)}


# ── Check-in records ──────────────────────────────────────────


@dataclass
class CheckinEntry:
    """A period payload. Keys beyond answers/timestamp/skipped are kept verbatim.

    Known keys round-trip as they were read: a key that was present is
    written back even when it holds the default value (``skipped: false``,
    ``answers: null``), and values of an unexpected type stay in ``extra``.
    """

    answers: dict[str, int] | None = None
    timestamp: str | None = None
    skipped: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
    present: frozenset[str] = field(default=frozenset(), compare=False, repr=False)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CheckinEntry:
        known = {"answers", "timestamp", "skipped"}
        extra = {k: v for k, v in d.items() if k not in known}
        answers = d.get("answers")
        if answers is not None and not isinstance(answers, dict):
            extra["answers"] = answers
        skipped = d.get("skipped", False)
        if not isinstance(skipped, bool):
            extra["skipped"] = skipped
        return cls(
            answers=dict(answers) if isinstance(answers, dict) else None,
            timestamp=d.get("timestamp"),
            skipped=bool(skipped),
            extra=extra,
            present=frozenset(k for k in known if k in d),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        if "answers" not in d and (self.answers is not None or "answers" in self.present):
            d["answers"] = None if self.answers is None else dict(self.answers)
        if "skipped" not in d and (self.skipped or "skipped" in self.present):
            d["skipped"] = self.skipped
        if self.timestamp is not None or "timestamp" in self.present:
            d["timestamp"] = self.timestamp
        return d


@dataclass
class DayRecord:
    morning: CheckinEntry | None = None
    evening: CheckinEntry | None = None

    def get(self, period: str) -> CheckinEntry | None:
        if period == "morning":
            return self.morning
        if period == "evening":
            return self.evening
        return None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DayRecord:
        if not d or not isinstance(d, dict):
            return cls()
        morning = d.get("morning")
        evening = d.get("evening")
        return cls(
            morning=CheckinEntry.from_dict(morning) if isinstance(morning, dict) else None,
            evening=CheckinEntry.from_dict(evening) if isinstance(evening, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.morning is not None:
            d["morning"] = self.morning.to_dict()
        if self.evening is not None:
            d["evening"] = self.evening.to_dict()
        return d


RecordMap = dict[str, DayRecord]


def records_from_dict(d: dict[str, Any]) -> RecordMap:
    if not d or not isinstance(d, dict):
        return {}
    return {str(day): DayRecord.from_dict(periods) for day, periods in d.items() if isinstance(periods, dict)}


def records_to_dict(records: RecordMap) -> dict[str, Any]:
    return {day: records[day].to_dict() for day in sorted(records)}


def _hour(value: Any, default: int) -> int:
    """An hour of day 0-23, or *default* for anything else."""
    if isinstance(value, bool):
        return default
    try:
        hour = int(value)
    except (TypeError, ValueError):
        return default
    return hour if 0 <= hour <= 23 else default


@dataclass
class EligibilitySettings:
    timing: str = "both"  # morning, evening, both
    morning_hour: int = 9
    evening_hour: int = 18

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> EligibilitySettings:
        if not d or not isinstance(d, dict):
            return cls()
        timing = str(d.get("timing", "both")).strip().lower()
        return cls(
            timing=timing if timing in {"morning", "evening", "both"} else "both",
            morning_hour=_hour(d.get("morningHour"), 9),
            evening_hour=_hour(d.get("eveningHour"), 18),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timing": self.timing,
            "morningHour": self.morning_hour,
            "eveningHour": self.evening_hour,
        }
