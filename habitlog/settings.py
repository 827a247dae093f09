"""Application settings: yearly allowances and the user's timezone."""

from __future__ import annotations

import logging
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitlog.errors import ValidationError
from habitlog.models import AppSettings
from habitlog.store import Store

logger = logging.getLogger(__name__)

ALLOWANCE_FIELDS = ("yearly_week_offs_allowed", "yearly_nothings_allowed")


def validate_settings(updates: dict[str, Any]) -> list[str]:
    errors = []
    for key in ALLOWANCE_FIELDS:
        if key not in updates:
            continue
        v = updates[key]
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            errors.append(f"{key} must be a whole number >= 0")
    if "timezone" in updates:
        try:
            ZoneInfo(str(updates["timezone"]))
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone: {updates['timezone']}")
    if "app_password" in updates and not isinstance(updates["app_password"], str):
        errors.append("app_password must be a string")
    return errors


def load_settings(store: Store) -> AppSettings:
    return store.load_settings()


def update_settings(store: Store, updates: dict[str, Any]) -> AppSettings:
    """Merge ``updates`` into the stored settings. Unknown keys are kept as-is."""
    errors = validate_settings(updates)
    if errors:
        raise ValidationError("; ".join(errors))
    current = store.load_settings().to_dict()
    current.update(updates)
    settings = AppSettings.from_dict(current)
    store.save_settings(settings)
    logger.info("Settings updated: %s", ", ".join(sorted(k for k in updates if k != "app_password")) or "-")
    return settings
