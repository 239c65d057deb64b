"""Shared test fixtures for examplan tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with standard structure."""
    root = tmp_path / "workspace"
    (root / "planner").mkdir(parents=True)

    # Settings
    settings = {
        "timezone": "UTC",
        "day_capacity": 4,
        "ai": {"model": "gpt-4o-mini", "timeout_seconds": 5},
        "checkin": {"activated": True, "dailyPromptCount": 2},
    }
    (root / "planner" / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Local store with pre-migration keys
    store = {
        "calendar_slots": {"2026-03-02": []},
        "private_blocks": {"2026-03-02": [{"title": "Arzttermin"}]},
        "checkin_responses": {
            "2026-03-01": {
                "morning": {
                    "answers": {"positivity": 4, "energy": 3, "motivation": 4, "stress": 3},
                    "timestamp": "2026-03-01T08:10:00+00:00",
                },
            },
        },
    }
    (root / "planner" / "local_store.json").write_text(
        json.dumps(store, indent=2), encoding="utf-8"
    )

    # Set env var
    os.environ["EXAMPLAN_ROOT"] = str(root)
    yield root
    # Cleanup
    if "EXAMPLAN_ROOT" in os.environ:
        del os.environ["EXAMPLAN_ROOT"]


@pytest.fixture
def wizard_payload() -> dict:
    """Two weeks, Monday to Friday, three topics."""
    return {
        "startDate": "2026-03-02",
        "endDate": "2026-03-16",
        "bufferDays": 1,
        "vacationDays": 1,
        "blocksPerDay": 2,
        "weekStructure": {
            "montag": True,
            "dienstag": True,
            "mittwoch": True,
            "donnerstag": True,
            "freitag": True,
            "samstag": False,
            "sonntag": False,
        },
        "unterrechtsgebieteOrder": [
            {"id": "bgb-at", "name": "BGB AT", "rechtsgebiet": "zivilrecht", "color": "bg-blue-500"},
            {"id": "stgb-at", "name": "StGB AT", "rechtsgebiet": "strafrecht", "color": "bg-red-500"},
            {"id": "staatsorg", "name": "Staatsorganisationsrecht", "rechtsgebiet": "oeffentliches-recht"},
        ],
    }
