"""Workspace root, timezone, path helpers for HabitLog."""

from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitlog.errors import StorageError
from habitlog.fileio import read_json


def workspace_root() -> Path:
    """Get the workspace directory holding habits, tracking and fines."""
    return Path(
        os.environ.get("HABITLOG_ROOT", str(Path.home() / "habitlog"))
    ).expanduser().resolve()


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the user's timezone from settings.json, defaulting to UTC."""
    if root is None:
        root = workspace_root()
    try:
        settings = read_json(settings_path(root))
        name = settings.get("timezone")
        if name:
            return ZoneInfo(str(name))
    except (StorageError, ZoneInfoNotFoundError, ValueError):
        pass
    return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_local(root: Path | None = None) -> date:
    """Get today's date in user's timezone."""
    return now_local(root).date()


# ── Path helpers ──────────────────────────────────────────────

def habits_path(root: Path) -> Path:
    return root / "habits.yaml"


def tracking_path(root: Path, year: str | int) -> Path:
    return root / "tracking" / f"{year}.json"


def fines_path(root: Path) -> Path:
    return root / "fines.json"


def entries_path(root: Path) -> Path:
    return root / "entries.json"


def settings_path(root: Path) -> Path:
    return root / "settings.json"
