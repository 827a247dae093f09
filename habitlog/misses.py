"""Out-of-control miss allowance per habit per year."""

from __future__ import annotations

import logging
from typing import Iterable

from habitlog.errors import RuleViolation
from habitlog.models import DailyTrackingRecord, DayState, Habit

logger = logging.getLogger(__name__)


def remaining(habit: Habit, used_count: int) -> int:
    return habit.allowed_out_of_control_misses - used_count


def check_can_mark_miss(habit: Habit, record: DailyTrackingRecord, used_count: int) -> None:
    """Raise RuleViolation if the day may not be flagged as an out-of-control miss."""
    if record.state == DayState.TRACKED:
        logger.warning("Miss rejected for %s on %s: value %r is tracked", habit.id, record.date, record.value)
        raise RuleViolation(
            f"'{habit.name}' already has '{record.value}' tracked for {record.date}. "
            "Clear it before marking an out-of-control miss."
        )
    left = remaining(habit, used_count)
    if left <= 0:
        logger.warning("Miss rejected for %s on %s: allowance used up", habit.id, record.date)
        raise RuleViolation(
            f"No out-of-control misses left for '{habit.name}' this year "
            f"({used_count} of {habit.allowed_out_of_control_misses} used)."
        )


def increment_used(used_count: int) -> int:
    return used_count + 1


def decrement_used(used_count: int) -> int:
    return max(0, used_count - 1)


def derive_used(habit_id: str, records: Iterable[DailyTrackingRecord]) -> int:
    return sum(1 for r in records if r.habit_id == habit_id and r.is_out_of_control_miss)
