"""Plan generation: validation, AI-or-fallback selection, slot placement, persistence."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from examplan.allocator import generate_local_plan, plan_days
from examplan.models import (
    ColorPalette,
    PlanMetadata,
    PlanResult,
    PlanSettings,
    WeekdayNames,
    calendar_from_dict,
    calendar_to_dict,
)
from examplan.slots import DEFAULT_CAPACITY, Placement, clear_unlocked, ensure_calendar, place_learning_days
from examplan.storage import KeyValueStore
from examplan.suggest import PlanProvider, ProviderError, suggest_plan


logger = logging.getLogger(__name__)

PLAN_KEY = "plan"
CALENDAR_KEY = "calendar_blocks"
DEFAULT_TIMEOUT = 60.0


# ── Validation ────────────────────────────────────────────────


def _parse_date(value: Any) -> date | None:
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        return None


def validate_wizard_data(payload: Any) -> list[str]:
    """Validate a plan-generation payload and return errors (empty if valid)."""
    if not isinstance(payload, dict):
        return ["Payload must be an object"]

    errors = []
    start = end = None
    if not payload.get("startDate") or not payload.get("endDate"):
        errors.append("startDate und endDate sind erforderlich")
    else:
        start = _parse_date(payload["startDate"])
        end = _parse_date(payload["endDate"])
        if start is None:
            errors.append(f"Invalid startDate: {payload['startDate']}")
        if end is None:
            errors.append(f"Invalid endDate: {payload['endDate']}")
        if start and end and end <= start:
            errors.append("endDate must be after startDate")

    for key in ("bufferDays", "vacationDays"):
        if key in payload and payload[key] is not None:
            value = payload[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(f"{key} must be a non-negative integer")

    if "blocksPerDay" in payload and payload["blocksPerDay"] is not None:
        value = payload["blocksPerDay"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            errors.append("blocksPerDay must be an integer >= 1")

    if "weekStructure" in payload and not isinstance(payload["weekStructure"] or {}, dict):
        errors.append("weekStructure must be an object")

    topics = payload.get("unterrechtsgebieteOrder", payload.get("topics"))
    if topics is not None and not isinstance(topics, list):
        errors.append("unterrechtsgebieteOrder must be a list")

    return errors


# ── Generation ────────────────────────────────────────────────


async def generate_plan(
    settings: PlanSettings,
    provider: PlanProvider | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    palette: ColorPalette | None = None,
    weekdays: WeekdayNames | None = None,
) -> PlanResult:
    """AI plan when a provider is available, otherwise (or on any error) the local plan."""
    if provider is None:
        return generate_local_plan(settings, weekdays)

    outcome = await suggest_plan(settings, provider, timeout, palette, weekdays)
    if isinstance(outcome, ProviderError):
        logger.warning("AI generation failed (%s), using fallback: %s", outcome.kind, outcome.reason)
        result = generate_local_plan(settings, weekdays)
        result.message = f"KI-Fehler: {outcome.reason}. Lokaler Fallback verwendet."
        return result

    days = outcome.learning_days
    local_meta = generate_local_plan(settings, weekdays).metadata
    return PlanResult(
        learning_days=days,
        metadata=PlanMetadata(
            total_calendar_days=local_meta.total_calendar_days,
            active_learning_days=len(days) + settings.buffer_days + settings.vacation_days,
            net_learning_days=len(days),
            subjects_count=len(settings.topics),
        ),
        source="ai",
    )


def schedule_plan(
    settings: PlanSettings,
    result: PlanResult,
    calendar: dict[str, Any] | None = None,
    capacity: int = DEFAULT_CAPACITY,
    weekdays: WeekdayNames | None = None,
) -> tuple[dict[str, Any], Placement]:
    """Place the plan's learning days into the slot calendar (serialized form in and out).

    The previous placement is replaced: occupied slots are re-emptied first,
    locked slots are kept as they are.
    """
    days = plan_days(settings, weekdays)
    cal = calendar_from_dict(calendar or {})
    cleared = clear_unlocked(cal)
    if cleared:
        logger.info("Cleared %d slots of the previous plan", cleared)
    cal = ensure_calendar((d.date for d in days), cal, capacity)
    placement = place_learning_days(days, cal, result.learning_days, capacity)
    return calendar_to_dict(cal), placement


# ── High-level API ────────────────────────────────────────────


async def create_plan(
    payload: dict[str, Any],
    store: KeyValueStore,
    provider: PlanProvider | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    capacity: int = DEFAULT_CAPACITY,
) -> dict[str, Any]:
    """Validate, generate, place and persist a plan. Returns the response body.

    Raises ValueError with the joined validation messages on bad input.
    """
    errors = validate_wizard_data(payload)
    if errors:
        raise ValueError("; ".join(errors))

    settings = PlanSettings.from_dict(payload)
    result = await generate_plan(settings, provider, timeout)
    calendar, placement = schedule_plan(settings, result, store.get(CALENDAR_KEY), capacity)

    store.set(PLAN_KEY, {"settings": settings.to_dict(), "result": result.to_dict()})
    store.set(CALENDAR_KEY, calendar)

    body = result.to_dict()
    body["unplaced"] = [ld.id for ld in placement.unplaced]
    return body
