"""Yearly goal progress.

The running total moves by at most one step per side of a transition: the
old value leaving (if it contributed) and the new value arriving (if it
contributes). The decrement is floored at 0, so an out-of-order edit history
can lose a step; ``derive_progress`` recounts from the records when needed.
"""

from __future__ import annotations

from typing import Iterable

from habitlog.models import DailyTrackingRecord, Habit, YearlyGoal


def apply_goal_transition(
    goal: YearlyGoal,
    progress_count: int,
    old_value: str | None,
    new_value: str | None,
) -> int:
    """Return the progress count after a day's selection changes old -> new."""
    if old_value == new_value:
        return progress_count
    count = progress_count
    if goal.contributes(old_value):
        count = max(0, count - 1)
    if goal.contributes(new_value):
        count += 1
    return count


def goal_percentage(goal: YearlyGoal, progress_count: int) -> float:
    if goal.count <= 0:
        return 0.0
    return min(100.0, progress_count / goal.count * 100)


def derive_progress(habit: Habit, records: Iterable[DailyTrackingRecord]) -> int:
    """Count the habit's records holding a contributing value."""
    return sum(
        1 for r in records
        if r.habit_id == habit.id and r.tracked_values and habit.yearly_goal.contributes(r.value)
    )
