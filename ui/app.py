from __future__ import annotations

import os
import secrets
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from examplan import (
    CHECKIN_QUESTIONS,
    OpenAIPlanProvider,
    SlotError,
    configure_logging,
    create_plan,
    current_period,
    is_button_enabled,
    is_due,
    load_config,
    local_store,
    lock_slot,
    migrate,
    migration_status,
    now_local,
    parse_schedule_lines,
    reconcile,
    skip_checkin,
    slots_to_sessions,
    submit_checkin,
    unlock_slot,
    well_score,
    well_score_trend,
)
from examplan.checkin import (
    load_eligibility_settings,
    load_local_records,
    save_eligibility_settings,
    save_local_records,
    validate_answers,
    validate_eligibility_settings,
)
from examplan.merge import RemoteRecordStore, push_local
from examplan.models import EligibilitySettings, calendar_from_dict, calendar_to_dict, records_to_dict
from examplan.planner import CALENDAR_KEY


# ── Remote store wiring ───────────────────────────────────────

_remote: RemoteRecordStore | None = None


def set_remote_store(remote: RemoteRecordStore | None) -> None:
    """Install the remote record store used for check-in sync."""
    global _remote
    _remote = remote


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    migrate(local_store())
    yield


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="examplan", version="0.1.0", lifespan=lifespan)

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("EXAMPLAN_USERNAME", "")
    expected_password = os.environ.get("EXAMPLAN_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


# ── Plan ──────────────────────────────────────────────────────

@app.post("/api/generate-plan")
async def api_generate_plan(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Generate a plan (AI when configured, local fallback otherwise) and place it in the calendar."""
    config = load_config()
    provider = OpenAIPlanProvider.from_env(config.ai_model)
    try:
        return await create_plan(
            payload,
            local_store(),
            provider=provider,
            timeout=config.ai_timeout_seconds,
            capacity=config.day_capacity,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"success": False, "error": str(e)})


@app.get("/api/calendar")
def api_calendar(day: str | None = None, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Calendar sessions, for one day or the whole plan window."""
    calendar = calendar_from_dict(local_store().get(CALENDAR_KEY) or {})
    days = [day] if day else sorted(calendar)
    return {
        "days": {
            d: [s.to_dict() for s in slots_to_sessions(calendar.get(d, []))]
            for d in days
        }
    }


@app.post("/api/calendar/lock")
def api_calendar_lock(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Lock or unlock a single slot."""
    day = payload.get("date")
    position = payload.get("position")
    if not day or not isinstance(position, int):
        raise HTTPException(status_code=400, detail="Missing date or position")

    store = local_store()
    calendar = calendar_from_dict(store.get(CALENDAR_KEY) or {})
    try:
        if payload.get("locked", True):
            slot = lock_slot(calendar, day, position)
        else:
            slot = unlock_slot(calendar, day, position)
    except SlotError as e:
        raise HTTPException(status_code=404, detail=str(e))
    store.set(CALENDAR_KEY, calendar_to_dict(calendar))
    return {"ok": True, "slot": slot.to_dict()}


# ── Check-in ──────────────────────────────────────────────────

@app.get("/api/checkin/status")
async def api_checkin_status(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Merged check-in view plus whether a prompt is due now."""
    config = load_config()
    store = local_store()
    settings = load_eligibility_settings(store)
    merged = await reconcile(load_local_records(store), _remote)

    now = now_local()
    today = now.date().isoformat()
    args = (merged, settings, config.checkin_activated, config.daily_prompt_count, now.hour, today)
    return {
        "today": today,
        "period": current_period(settings, now.hour),
        "due": is_due(*args),
        "buttonEnabled": is_button_enabled(*args),
        "todayCheckin": merged[today].to_dict() if today in merged else {},
        "wellScore": well_score(merged, today),
        "wellScoreTrend": well_score_trend(merged, today),
        "settings": settings.to_dict(),
        "questions": CHECKIN_QUESTIONS,
    }


def _period_from(payload: dict[str, Any], settings: EligibilitySettings, hour: int) -> str:
    period = payload.get("period") or current_period(settings, hour)
    if period not in ("morning", "evening"):
        raise HTTPException(status_code=400, detail=f"Invalid period: {period}")
    return period


@app.post("/api/checkin")
async def api_checkin(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Record today's answers locally, then push to the remote store (best-effort)."""
    answers = payload.get("answers")
    if not isinstance(answers, dict):
        raise HTTPException(status_code=400, detail="Missing answers")
    errors = validate_answers(answers)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    store = local_store()
    settings = load_eligibility_settings(store)
    now = now_local()
    period = _period_from(payload, settings, now.hour)
    today = now.date().isoformat()

    records = submit_checkin(load_local_records(store), answers, period, today)
    save_local_records(store, records)
    synced = await push_local(records, _remote)
    return {"ok": True, "day": today, "period": period, "synced": synced}


@app.post("/api/checkin/skip")
async def api_checkin_skip(payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = local_store()
    settings = load_eligibility_settings(store)
    now = now_local()
    period = _period_from(payload, settings, now.hour)
    today = now.date().isoformat()

    records = skip_checkin(load_local_records(store), period, today)
    save_local_records(store, records)
    synced = await push_local(records, _remote)
    return {"ok": True, "day": today, "period": period, "synced": synced}


@app.put("/api/checkin/settings")
def api_checkin_settings(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    errors = validate_eligibility_settings(payload)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    store = local_store()
    merged = {**load_eligibility_settings(store).to_dict(), **payload}
    settings = EligibilitySettings.from_dict(merged)
    save_eligibility_settings(store, settings)
    return {"ok": True, "settings": settings.to_dict()}


@app.get("/api/checkin/records")
async def api_checkin_records(username: str = Depends(get_current_user)) -> dict[str, Any]:
    merged = await reconcile(load_local_records(local_store()), _remote)
    return {"records": records_to_dict(merged)}


# ── Maintenance & import ──────────────────────────────────────

@app.get("/api/migration/status")
def api_migration_status(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return migration_status(local_store())


@app.post("/api/import/schedule")
def api_import_schedule(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Parse schedule text lines (already extracted, e.g. by OCR)."""
    lines = payload.get("lines")
    if lines is None and payload.get("text"):
        lines = str(payload["text"]).splitlines()
    if not isinstance(lines, list):
        raise HTTPException(status_code=400, detail="Missing lines")
    return parse_schedule_lines([str(line) for line in lines]).to_dict()
