"""Shared test fixtures for HabitLog tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from habitlog.store import FileStore, MemoryStore


def sample_habits() -> list[dict]:
    return [
        {
            "id": "smoking",
            "name": "Smoking",
            "color": "#EF4444",
            "type": "tracking",
            "tracking_values": ["Smoked", "Clean"],
            "frequency_conditions": [
                {"trackingValue": "Smoked", "frequency": "weekly", "count": 2},
            ],
            "fine_amount": 10,
            "yearly_goal": {"count": 0, "contributingValues": []},
            "allowed_out_of_control_misses": 0,
            "created_at": "2025-01-01T08:00:00+00:00",
        },
        {
            "id": "exercise",
            "name": "Exercise",
            "color": "#10B981",
            "type": "tracking",
            "tracking_values": ["Done", "Skipped"],
            "frequency_conditions": [
                {"trackingValue": "Skipped", "frequency": "monthly", "count": 3},
            ],
            "fine_amount": 5,
            "yearly_goal": {"count": 200, "contributingValues": ["Done"]},
            "allowed_out_of_control_misses": 1,
            "created_at": "2025-01-02T08:00:00+00:00",
        },
        {
            "id": "gratitude",
            "name": "Gratitude",
            "type": "free_text",
            "hint_text": "One thing you are grateful for",
            "created_at": "2025-01-03T08:00:00+00:00",
        },
    ]


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with habits and settings."""
    root = tmp_path / "workspace"
    root.mkdir()

    (root / "habits.yaml").write_text(
        yaml.dump({"habits": sample_habits()}, default_flow_style=False, allow_unicode=True),
        encoding="utf-8",
    )
    settings = {
        "timezone": "UTC",
        "yearly_week_offs_allowed": 2,
        "yearly_nothings_allowed": 0,
        "app_password": "password",
    }
    (root / "settings.json").write_text(json.dumps(settings, indent=2), encoding="utf-8")

    # Set env var
    os.environ["HABITLOG_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HABITLOG_ROOT" in os.environ:
        del os.environ["HABITLOG_ROOT"]


@pytest.fixture
def store(workspace: Path) -> FileStore:
    return FileStore(workspace)


@pytest.fixture
def memory_store() -> MemoryStore:
    s = MemoryStore({
        "habits": json.dumps({"habits": sample_habits()}),
        "settings": json.dumps({"timezone": "UTC", "yearly_week_offs_allowed": 1}),
    })
    return s
