"""Yearly analytics for HabitLog.

Value counts are recomputed from the year's records; goal progress is read
from the stored yearly counter, which the tracking service keeps current.
"""

from __future__ import annotations

import calendar
from datetime import date

from habitlog.aggregate import yearly_value_counts
from habitlog.goals import goal_percentage
from habitlog.models import WEEK_OFF, HabitYearSummary, YearlySummary, YearProgress
from habitlog.store import Store


def year_progress(today: date) -> YearProgress:
    """How far through its calendar year ``today`` is."""
    days_in_year = 366 if calendar.isleap(today.year) else 365
    days_passed = today.timetuple().tm_yday
    return YearProgress(
        year=today.year,
        days_passed=days_passed,
        days_in_year=days_in_year,
        days_left=days_in_year - days_passed,
    )


def yearly_summary(store: Store, year: int, today: date | None = None) -> YearlySummary:
    """Per-habit value counts and goal progress for one calendar year.

    Habits with no tracked values and no goal are left out. Year progress is
    only attached when ``year`` is the current year.
    """
    if today is None:
        today = store.today()
    ledger = store.load_year(str(year))
    counts = yearly_value_counts(ledger.iter_records())

    summary = YearlySummary(
        year=year,
        has_data=bool(counts) or bool(ledger.progress),
        year_progress=year_progress(today) if today.year == year else None,
    )
    for habit in store.load_habits():
        if not habit.is_tracking:
            continue
        values = {v: n for v, n in counts.get(habit.id, {}).items() if v != WEEK_OFF}
        goal = habit.yearly_goal
        if not values and goal.count <= 0:
            continue
        progress = ledger.progress_count(habit.id)
        summary.habits.append(HabitYearSummary(
            habit_id=habit.id,
            name=habit.name,
            color=habit.color,
            value_counts=dict(sorted(values.items(), key=lambda kv: (-kv[1], kv[0]))),
            progress_count=progress,
            goal_count=goal.count,
            goal_percentage=goal_percentage(goal, progress),
        ))
    return summary
