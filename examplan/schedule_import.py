"""Line-based import of course schedules (e.g. OCR output of a Terminplan).

Recognizes lines such as:
    20.02.2025 Grundzüge des Strafverfahrens
    1. 20.02.2025 Thema
    17.04.2025 - 01.05.2025 Ferien
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from examplan.models import Topic


logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"\b(\d{1,2}\.\d{2}\.\d{4})\b")
DATE_RANGE_RE = re.compile(r"(\d{1,2}\.\d{2}\.\d{4})\s*[-–]\s*(\d{1,2}\.\d{2}\.\d{4})")
HEADER_RE = re.compile(r"^(Termin|Datum|Programm|Einheit|Schwerpunkt|Nr\.?|Uhrzeit|Raum|Dozent)", re.IGNORECASE)
HINT_RE = re.compile(
    r"\b(Ferien|Feiertag|Himmelfahrt|Ostern|Weihnachten|Keine Vorlesung|Ausweichstunde"
    r"|Wiederholung|frei|entfällt|Tag der Arbeit)\b",
    re.IGNORECASE,
)
LEADING_ORDINAL_RE = re.compile(r"^\d+\.?\s+(?=\d{1,2}\.\d{2}\.\d{4})")
SEPARATOR_RE = re.compile(r"^\s*[-–:]\s*")
BARE_NUMBER_RE = re.compile(r"^\d+\.?\s*$")

SUBJECT_SCAN_LINES = 5


@dataclass
class ScheduleImport:
    subject: str | None = None
    topics: list[dict[str, str]] = field(default_factory=list)
    hints: list[dict[str, str]] = field(default_factory=list)
    unparsed: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "subject": self.subject,
            "topics": self.topics,
            "hints": self.hints,
            "unparsed": self.unparsed,
        }
        if self.error:
            d["error"] = self.error
        return d


def _detect_subject(lines: list[str]) -> str | None:
    """First non-header, non-date line among the first few lines."""
    for raw in lines[:SUBJECT_SCAN_LINES]:
        line = (raw or "").strip()
        if not line:
            continue
        if DATE_RE.search(line):
            break
        if HEADER_RE.match(line):
            continue
        if len(line) > 3 and not BARE_NUMBER_RE.match(line):
            return line
    return None


def parse_schedule_lines(lines: list[str]) -> ScheduleImport:
    """Split raw text lines into subject, dated topics, holiday hints and leftovers."""
    result = ScheduleImport(subject=_detect_subject(lines))

    for raw in lines:
        line = (raw or "").strip()
        if not line or HEADER_RE.match(line):
            continue
        if result.subject and line == result.subject:
            continue

        date_match = DATE_RE.search(line)
        if not date_match:
            if len(line) > 5:
                result.unparsed.append(line)
            continue

        range_match = DATE_RANGE_RE.search(line)
        if HINT_RE.search(line):
            when = f"{range_match.group(1)} - {range_match.group(2)}" if range_match else date_match.group(1)
            result.hints.append({"date": when, "text": line})
            continue

        name = LEADING_ORDINAL_RE.sub("", line, count=1)
        name = DATE_RANGE_RE.sub("", name, count=1)
        name = DATE_RE.sub("", name, count=1)
        name = SEPARATOR_RE.sub("", name, count=1).strip()
        if len(name) < 2:
            continue
        result.topics.append({"date": date_match.group(1), "name": name})

    return result


def parsed_to_topics(parsed: ScheduleImport, category: str = "") -> list[Topic]:
    """Imported topics in schedule order, ready for the plan wizard."""
    return [
        Topic(id=f"imported-{index}", name=item["name"], category=category, rank=index)
        for index, item in enumerate(parsed.topics)
    ]


def import_schedule(extract: Callable[[bytes], list[str]], data: bytes) -> ScheduleImport:
    """Run a text-extraction provider and parse its lines.

    Provider failures yield an empty result with *error* set.
    """
    try:
        lines = extract(data)
    except Exception as e:
        logger.warning("Text extraction failed: %s", e)
        return ScheduleImport(error=str(e) or e.__class__.__name__)
    return parse_schedule_lines([str(line) for line in lines or []])
