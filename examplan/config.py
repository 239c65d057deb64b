"""Application settings for examplan.

Settings live in planner/settings.yaml; secrets only come from the
environment (OPENAI_API_KEY, OPENAI_MODEL, EXAMPLAN_USERNAME/PASSWORD).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from examplan.storage import read_yaml
from examplan.workspace import settings_path


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_AI_TIMEOUT = 60.0
DEFAULT_DAY_CAPACITY = 4


@dataclass
class AppConfig:
    timezone: str = "UTC"
    day_capacity: int = DEFAULT_DAY_CAPACITY
    ai_model: str = DEFAULT_MODEL
    ai_timeout_seconds: float = DEFAULT_AI_TIMEOUT
    checkin_activated: bool = True
    daily_prompt_count: int = 2

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppConfig:
        if not d or not isinstance(d, dict):
            d = {}
        ai = d.get("ai") if isinstance(d.get("ai"), dict) else {}
        checkin = d.get("checkin") if isinstance(d.get("checkin"), dict) else {}
        count = int(checkin.get("dailyPromptCount", 2))
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            day_capacity=max(1, int(d.get("day_capacity", DEFAULT_DAY_CAPACITY))),
            ai_model=str(os.environ.get("OPENAI_MODEL") or ai.get("model") or DEFAULT_MODEL),
            ai_timeout_seconds=float(ai.get("timeout_seconds", DEFAULT_AI_TIMEOUT)),
            checkin_activated=bool(checkin.get("activated", True)),
            daily_prompt_count=1 if count == 1 else 2,
        )


def load_config(root: Path | None = None) -> AppConfig:
    return AppConfig.from_dict(read_yaml(settings_path(root)))


def configure_logging(level: str | None = None) -> None:
    """Basic logging setup for the terminal app and scripts."""
    name = (level or os.environ.get("EXAMPLAN_LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
