"""Habit validation and CRUD for HabitLog."""

from __future__ import annotations

import uuid
from typing import Any

from habitlog.errors import NotFoundError
from habitlog.models import (
    FREQUENCIES,
    HABIT_KINDS,
    MAX_FREQUENCY_CONDITIONS,
    WEEK_OFF,
    Habit,
)
from habitlog.store import Store


# ── Validation ────────────────────────────────────────────────


def _is_count(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v >= 0


def validate_habit(habit: dict[str, Any]) -> list[str]:
    """Validate a habit row and return list of errors (empty if valid)."""
    errors = []
    name = habit.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Habit name cannot be empty.")

    kind = habit.get("type", "tracking")
    if kind not in HABIT_KINDS:
        errors.append(f"Invalid habit type: {kind}")
        return errors
    if kind == "free_text":
        return errors

    values = habit.get("tracking_values") or []
    if not isinstance(values, list) or not all(isinstance(v, str) and v.strip() for v in values):
        errors.append("tracking_values must be a list of non-empty strings")
        values = []
    elif len(set(values)) != len(values):
        errors.append("tracking_values must be unique")
    if any(v.strip() == WEEK_OFF for v in values):
        errors.append(f"'{WEEK_OFF}' is reserved for week offs and cannot be a tracking value")

    conditions = habit.get("frequency_conditions") or []
    if not isinstance(conditions, list):
        errors.append("frequency_conditions must be a list")
        conditions = []
    if len(conditions) > MAX_FREQUENCY_CONDITIONS:
        errors.append(f"Maximum of {MAX_FREQUENCY_CONDITIONS} frequency conditions allowed.")
    seen = set()
    for i, cond in enumerate(conditions, start=1):
        if not isinstance(cond, dict):
            errors.append(f"Frequency condition {i} is malformed")
            continue
        value = cond.get("trackingValue")
        if value not in values:
            errors.append(f"Frequency condition {i} references unknown tracking value: {value}")
        if cond.get("frequency") not in FREQUENCIES:
            errors.append(f"Frequency condition {i} has invalid frequency: {cond.get('frequency')}")
        if not _is_count(cond.get("count")):
            errors.append(f"Frequency condition {i} count must be a whole number >= 0")
        key = (str(value), str(cond.get("frequency")))
        if key in seen:
            errors.append(f"Frequency condition {i} duplicates another {key[1]} condition for {key[0]}")
        seen.add(key)

    if not _is_count(habit.get("fine_amount", 0)):
        errors.append("fine_amount must be a whole number >= 0")
    if not _is_count(habit.get("allowed_out_of_control_misses", 0)):
        errors.append("allowed_out_of_control_misses must be a whole number >= 0")

    goal = habit.get("yearly_goal") or {}
    if not isinstance(goal, dict):
        errors.append("yearly_goal must be an object")
    else:
        if not _is_count(goal.get("count", 0)):
            errors.append("yearly goal count must be a whole number >= 0")
        contributing = goal.get("contributingValues") or []
        unknown = [v for v in contributing if v not in values]
        if unknown:
            errors.append(f"Contributing values not in tracking values: {', '.join(map(str, unknown))}")

    return errors


def _prune_removed_values(data: dict[str, Any]) -> None:
    """Drop goal/condition references to tracking values no longer defined."""
    values = data.get("tracking_values")
    if not isinstance(values, list):
        return
    goal = data.get("yearly_goal")
    if isinstance(goal, dict) and isinstance(goal.get("contributingValues"), list):
        goal["contributingValues"] = [v for v in goal["contributingValues"] if v in values]
    conditions = data.get("frequency_conditions")
    if isinstance(conditions, list):
        data["frequency_conditions"] = [
            c for c in conditions if not isinstance(c, dict) or c.get("trackingValue") in values
        ]


# ── CRUD ──────────────────────────────────────────────────────


def list_habits(store: Store, newest_first: bool = False) -> list[Habit]:
    habits = store.load_habits()
    return sorted(habits, key=lambda h: h.created_at, reverse=newest_first)


def find_habit(habits: list[Habit], habit_id: str) -> Habit | None:
    for h in habits:
        if h.id == habit_id:
            return h
    return None


def get_habit(store: Store, habit_id: str) -> Habit:
    habit = find_habit(store.load_habits(), habit_id)
    if habit is None:
        raise NotFoundError(f"Habit not found: {habit_id}")
    return habit


def create_habit(habits: list[Habit], habit_data: dict[str, Any], now_iso: str = "") -> tuple[Habit, list[str]]:
    """Create and add a new habit. Returns (habit, errors)."""
    errors = validate_habit(habit_data)
    if errors:
        return Habit(), errors

    habit_id = str(habit_data.get("id") or uuid.uuid4())
    if find_habit(habits, habit_id):
        return Habit(), [f"Habit ID already exists: {habit_id}"]

    data = dict(habit_data)
    data["id"] = habit_id
    data["name"] = habit_data["name"].strip()
    data["created_at"] = habit_data.get("created_at") or now_iso
    habit = Habit.from_dict(data)
    habits.append(habit)
    return habit, []


def update_habit(habits: list[Habit], habit_id: str, updates: dict[str, Any]) -> tuple[Habit | None, list[str]]:
    """Update a habit by ID. Returns (updated_habit, errors)."""
    habit = find_habit(habits, habit_id)
    if not habit:
        return None, [f"Habit not found: {habit_id}"]

    habit_dict = habit.to_dict()
    habit_dict.update({k: v for k, v in updates.items() if k not in ("id", "created_at")})
    _prune_removed_values(habit_dict)

    errors = validate_habit(habit_dict)
    if errors:
        return None, errors

    habit_dict["name"] = habit_dict["name"].strip()
    updated = Habit.from_dict(habit_dict)
    for i, h in enumerate(habits):
        if h.id == habit_id:
            habits[i] = updated
            break
    return updated, []


def delete_habit(habits: list[Habit], habit_id: str) -> bool:
    """Remove a habit. Its tracking records stay in the ledgers."""
    for i, h in enumerate(habits):
        if h.id == habit_id:
            habits.pop(i)
            return True
    return False
