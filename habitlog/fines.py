"""Fine evaluation for HabitLog.

Fines are a derived view: every refresh recomputes them from the tracking
records. The only user-owned field is the payment status, which survives a
refresh whenever the same (period, habit, tracking value) comes back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from habitlog.aggregate import TrackingMap, build_tracking_map, count_value
from habitlog.errors import NotFoundError, ValidationError
from habitlog.models import (
    FINE_STATUSES,
    FineDetail,
    FineWarning,
    Habit,
    Period,
    PeriodFines,
)
from habitlog.periods import periods_in_year
from habitlog.store import FinesLedger, Store, fines_to_dict

logger = logging.getLogger(__name__)


def fine_cause(tracking_value: str, actual: int, allowed: int) -> str:
    return (
        f"Tracking value '{tracking_value}' occurred {actual} times, "
        f"which exceeds the allowed {allowed} times."
    )


def _previous(existing: FinesLedger | None, period_key: str, habit_id: str, value: str) -> FineDetail | None:
    for fine in (existing or {}).get(period_key, {}).get(habit_id, []):
        if fine.tracking_value == value:
            return fine
    return None


def evaluate_period(
    habits: Iterable[Habit],
    period: Period,
    tracking: TrackingMap,
    existing: FinesLedger | None = None,
    today: date | None = None,
    now: datetime | None = None,
) -> PeriodFines:
    """Compute the fines (and, for the running period, warnings) of one period.

    A condition is broken when its value occurred strictly more often than
    allowed. Warnings are only produced when ``today`` falls in the period.
    """
    dates = period.dates()
    result = PeriodFines(period=period, is_current=today is not None and period.contains(today))
    created_at = now.isoformat(timespec="seconds") if now else ""
    seen: set[tuple[str, str]] = set()

    for habit in habits:
        if not habit.is_tracking:
            continue
        for cond in habit.conditions_for(period.frequency):
            if (habit.id, cond.tracking_value) in seen:
                continue
            seen.add((habit.id, cond.tracking_value))
            actual = count_value(habit.id, cond.tracking_value, dates, tracking)

            if actual > cond.count:
                prev = _previous(existing, period.key, habit.id, cond.tracking_value)
                result.fines.append(FineDetail(
                    habit_id=habit.id,
                    habit_name=habit.name,
                    tracking_value=cond.tracking_value,
                    period_key=period.key,
                    condition_count=cond.count,
                    actual_count=actual,
                    fine_amount=habit.fine_amount,
                    status=prev.status if prev else "unpaid",
                    cause=fine_cause(cond.tracking_value, actual, cond.count),
                    created_at=prev.created_at if prev else created_at,
                ))
                continue

            if not result.is_current or cond.count <= 0:
                continue
            if actual == cond.count:
                kind = "at_threshold"
                message = (
                    f"'{cond.tracking_value}' for '{habit.name}' has reached the allowed "
                    f"{cond.count} times in {period.label}; further tracking will incur a fine."
                )
            elif actual == cond.count - 1:
                kind = "one_below"
                message = (
                    f"'{cond.tracking_value}' for '{habit.name}' is at {actual} of "
                    f"{cond.count} in {period.label}; one more occurrence will incur a fine."
                )
            else:
                continue
            result.warnings.append(FineWarning(
                habit_id=habit.id,
                habit_name=habit.name,
                tracking_value=cond.tracking_value,
                period_key=period.key,
                condition_count=cond.count,
                actual_count=actual,
                kind=kind,
                message=message,
            ))

    return result


def evaluate_year(
    habits: list[Habit],
    year: int,
    frequency: str,
    tracking: TrackingMap,
    existing: FinesLedger | None = None,
    today: date | None = None,
    now: datetime | None = None,
) -> list[PeriodFines]:
    return [
        evaluate_period(habits, period, tracking, existing, today=today, now=now)
        for period in periods_in_year(year, frequency)
    ]


def summarize_fines(reports: Iterable[PeriodFines]) -> dict[str, int]:
    total = paid = 0
    for report in reports:
        for fine in report.fines:
            total += fine.fine_amount
            if fine.status == "paid":
                paid += fine.fine_amount
    return {"total": total, "paid": paid, "unpaid": total - paid}


# ── Store-backed operations ───────────────────────────────────


def load_tracking_around(store: Store, year: int) -> TrackingMap:
    """Records of the year plus its neighbours, for weeks that cross New Year."""
    return build_tracking_map(store.load_year(str(y)) for y in (year - 1, year, year + 1))


def refresh_fines(
    store: Store,
    year: int,
    frequency: str,
    today: date | None = None,
) -> list[PeriodFines]:
    """Recompute and persist the fines of every period of the year."""
    now = store.now()
    if today is None:
        today = store.today()
    habits = store.load_habits()
    tracking = load_tracking_around(store, year)
    ledger = store.load_fines()
    before = fines_to_dict(ledger)

    reports = evaluate_year(habits, year, frequency, tracking, ledger, today=today, now=now)
    for report in reports:
        by_habit: dict[str, list[FineDetail]] = {}
        for fine in report.fines:
            by_habit.setdefault(fine.habit_id, []).append(fine)
        ledger[report.period.key] = by_habit

    if fines_to_dict(ledger) != before:
        store.save_fines(ledger)
        logger.info("Fines refreshed for %s (%s)", year, frequency)
    return reports


def set_fine_status(
    store: Store,
    period_key: str,
    habit_id: str,
    tracking_value: str,
    status: str,
) -> FineDetail:
    """Mark a recorded fine as paid or unpaid."""
    if status not in FINE_STATUSES:
        raise ValidationError(f"Invalid fine status: {status!r} (expected paid or unpaid)")
    ledger = store.load_fines()
    fine = _previous(ledger, period_key, habit_id, tracking_value)
    if fine is None:
        raise NotFoundError(f"No fine for habit {habit_id} / '{tracking_value}' in {period_key}")
    if fine.status != status:
        fine.status = status
        store.save_fines(ledger)
        logger.info("Fine %s/%s/%s marked %s", period_key, habit_id, tracking_value, status)
    return fine
