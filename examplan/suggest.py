"""AI plan suggestions for examplan.

Renders the plan settings into a German generation prompt, calls a
text-completion provider, and validates the JSON array it returns.
suggest_plan() never raises: every failure comes back as a ProviderError so
the caller can substitute the deterministic plan.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from examplan.allocator import calendar_days
from examplan.models import (
    ColorPalette,
    LearningDay,
    PlanSettings,
    Topic,
    WeekdayNames,
)


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Du bist ein Experte für Jura-Examensvorbereitung in Deutschland. "
    "Antworte immer im angeforderten JSON-Format."
)
DEFAULT_MODEL = "gpt-4o-mini"
JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


# ── Result types ──────────────────────────────────────────────


class SuggestionParseError(ValueError):
    """The provider response did not contain a usable plan."""


@dataclass
class Suggestion:
    learning_days: list[LearningDay] = field(default_factory=list)


@dataclass
class ProviderError:
    kind: str  # credentials, timeout, provider, parse
    reason: str


# ── Prompt ────────────────────────────────────────────────────


def estimated_learning_days(settings: PlanSettings) -> int:
    total = len(calendar_days(settings))
    return round(total * 0.7) - settings.buffer_days - settings.vacation_days


def build_prompt(settings: PlanSettings, weekdays: WeekdayNames | None = None) -> str:
    """Render the generation request for the provider."""
    weekdays = weekdays or WeekdayNames()
    total = len(calendar_days(settings))
    estimate = estimated_learning_days(settings)

    active = ", ".join(
        weekdays.label_for(key) for key in weekdays.keys if settings.week_structure.get(key)
    )

    by_category: dict[str, list[str]] = {}
    for topic in settings.topics:
        by_category.setdefault(topic.category or "Sonstige", []).append(topic.name)

    topic_lines = "\n".join(
        f"{i}. {t.name} ({t.category})" for i, t in enumerate(settings.topics, 1)
    )
    category_lines = "\n".join(
        f"- {category}: {len(names)} Themen" for category, names in by_category.items()
    )

    return f"""Du bist ein Experte für Jura-Examensvorbereitungen in Deutschland. Erstelle einen optimalen Lernplan basierend auf folgenden Parametern:

## Lernzeitraum
- Start: {settings.start_date.isoformat()}
- Ende: {settings.end_date.isoformat()}
- Kalendertage gesamt: {total}
- Puffertage: {settings.buffer_days}
- Urlaubstage: {settings.vacation_days}
- Netto verfügbare Lerntage: ca. {estimate}

## Wochenstruktur
- Aktive Lerntage: {active}
- Lernblöcke pro Tag: {settings.blocks_per_day}

## Zu bearbeitende Unterrechtsgebiete (in Prioritätsreihenfolge)
{topic_lines}

## Verteilung nach Rechtsgebieten
{category_lines}

## Aufgabe
Erstelle einen strukturierten Lernplan, der:
1. Die Unterrechtsgebiete in der gegebenen Prioritätsreihenfolge bearbeitet
2. Komplexere Themen mehr Tage zuweist als einfachere
3. Thematisch zusammenhängende Gebiete gruppiert
4. Wiederholungsphasen einplant (ca. 20% der Zeit)

## Ausgabeformat (JSON)
Antworte NUR mit einem JSON-Array im folgenden Format, ohne zusätzlichen Text:
[
  {{
    "subject": "Name des Unterrechtsgebiets",
    "theme": "Spezifisches Thema/Kapitel",
    "rechtsgebiet": "oeffentliches-recht|zivilrecht|strafrecht|querschnitt",
    "blocks": {settings.blocks_per_day},
    "isRepetition": false
  }}
]

Generiere ca. {estimate} Lerntage."""


# ── Response parsing ──────────────────────────────────────────


def match_topic(subject: str, topics: list[Topic]) -> Topic | None:
    """Exact name match, else substring match in either direction."""
    if not subject:
        return None
    for topic in topics:
        if topic.name == subject:
            return topic
    for topic in topics:
        if topic.name and (subject in topic.name or topic.name in subject):
            return topic
    return None


def parse_suggestion(
    text: str,
    topics: list[Topic],
    blocks_per_day: int,
    palette: ColorPalette | None = None,
) -> list[LearningDay]:
    """Validate a provider response and map it to learning days.

    Raises SuggestionParseError if no JSON array can be parsed, the value is
    not a list, the list is empty, or an entry is not an object.
    """
    palette = palette or ColorPalette()
    m = JSON_ARRAY_RE.search(text or "")
    raw = m.group(0) if m else (text or "")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("AI response is not valid JSON: %s (first 200 chars: %.200s)", e, text)
        raise SuggestionParseError("AI-Antwort konnte nicht verarbeitet werden") from e

    if not isinstance(parsed, list):
        raise SuggestionParseError("AI-Antwort ist kein Array")
    if len(parsed) < 1:
        raise SuggestionParseError("AI-Antwort enthält keine Lerntage")

    days: list[LearningDay] = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise SuggestionParseError(f"Eintrag {index + 1} ist kein Objekt")
        subject = str(item.get("subject") or "")
        topic = match_topic(subject, topics)
        ai_category = str(item.get("rechtsgebiet") or "")
        try:
            blocks = int(item.get("blocks") or blocks_per_day)
        except (TypeError, ValueError, OverflowError):
            blocks = blocks_per_day
        days.append(LearningDay(
            id=f"day-{index}",
            subject=subject or "Unbekannt",
            category=ai_category or (topic.category if topic else ""),
            color=(
                palette.color_for(ai_category)
                or (topic.color if topic and topic.color else None)
                or palette.default
            ),
            theme=str(item.get("theme") or subject or f"Tag {index + 1}"),
            blocks=blocks if blocks > 0 else blocks_per_day,
            group=topic.group if topic else "",
            topic_id=topic.id if topic else "",
        ))
    return days


# ── Providers ─────────────────────────────────────────────────


class PlanProvider(Protocol):
    async def complete(self, prompt: str) -> str: ...


class OpenAIPlanProvider:
    """Chat-completions provider backed by the openai SDK."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, base_url: str | None = None) -> None:
        from openai import AsyncOpenAI

        kwargs: dict[str, Any] = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self.client = AsyncOpenAI(**kwargs)
        self.model = model

    @classmethod
    def from_env(cls, model: str | None = None) -> OpenAIPlanProvider | None:
        """Provider from OPENAI_API_KEY, or None when no key is configured."""
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            return None
        return cls(
            api_key=api_key,
            model=model or os.environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
            base_url=os.environ.get("OPENAI_BASE_URL") or None,
        )

    async def complete(self, prompt: str) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=8000,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


async def suggest_plan(
    settings: PlanSettings,
    provider: PlanProvider,
    timeout: float,
    palette: ColorPalette | None = None,
    weekdays: WeekdayNames | None = None,
) -> Suggestion | ProviderError:
    """Ask the provider for a plan. Returns a ProviderError instead of raising."""
    prompt = build_prompt(settings, weekdays)
    try:
        text = await asyncio.wait_for(provider.complete(prompt), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("AI provider timed out after %ss", timeout)
        return ProviderError("timeout", f"Zeitüberschreitung nach {timeout:g}s")
    except Exception as e:
        logger.warning("AI provider failed: %s", e)
        return ProviderError("provider", str(e) or e.__class__.__name__)

    try:
        days = parse_suggestion(text, settings.topics, settings.blocks_per_day, palette)
    except SuggestionParseError as e:
        return ProviderError("parse", str(e))
    except Exception as e:
        logger.warning("AI response could not be mapped: %r", e)
        return ProviderError("parse", str(e) or e.__class__.__name__)
    return Suggestion(learning_days=days)
