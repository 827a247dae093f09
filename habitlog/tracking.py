"""Daily tracking transitions for HabitLog.

A change to one day of one habit touches three tables: the day's record, the
habit's yearly goal progress and its out-of-control miss count. All three are
updated inside one ``year_transaction`` so they are written together or not
at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from habitlog.errors import RuleViolation, ValidationError
from habitlog.goals import apply_goal_transition, derive_progress, goal_percentage
from habitlog.habits import find_habit, get_habit
from habitlog.misses import (
    check_can_mark_miss,
    decrement_used,
    derive_used,
    increment_used,
    remaining,
)
from habitlog.models import (
    WEEK_OFF,
    DailyTrackingRecord,
    DayState,
    Habit,
    YearLedger,
)
from habitlog.periods import dates_in_period, parse_day, period_containing, week_key
from habitlog.store import Store

logger = logging.getLogger(__name__)

UNKNOWN_HABIT_COLOR = "#9ca3af"


@dataclass
class DayStatus:
    """A habit's state for one day, plus the yearly counters it feeds."""

    habit_id: str
    date: str
    record: DailyTrackingRecord
    progress_count: int
    goal_count: int
    used_misses: int
    remaining_misses: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "date": self.date,
            "state": self.record.state.value,
            "trackedValues": self.record.tracked_values,
            "textValue": self.record.text_value,
            "isOutOfControlMiss": self.record.is_out_of_control_miss,
            "progressCount": self.progress_count,
            "goalCount": self.goal_count,
            "usedMisses": self.used_misses,
            "remainingMisses": self.remaining_misses,
        }


def _status(ledger: YearLedger, habit: Habit, day: str) -> DayStatus:
    used = ledger.used_count(habit.id)
    return DayStatus(
        habit_id=habit.id,
        date=day,
        record=ledger.record(day, habit.id),
        progress_count=ledger.progress_count(habit.id),
        goal_count=habit.yearly_goal.count,
        used_misses=used,
        remaining_misses=remaining(habit, used),
    )


def _tracking_habit(store: Store, habit_id: str) -> Habit:
    habit = get_habit(store, habit_id)
    if not habit.is_tracking:
        raise ValidationError(f"'{habit.name}' is a free-text habit; record text for it instead.")
    return habit


def _apply_value(ledger: YearLedger, habit: Habit, day: str, value: str | None, now_iso: str) -> None:
    """Move a day's selection to ``value`` (None = no value) and update the counters."""
    old = ledger.record(day, habit.id)
    old_value = old.value if old.state == DayState.TRACKED else None
    if value is None and old.state != DayState.TRACKED:
        # Nothing selected before or after; a flagged miss stays flagged.
        return
    if value == old_value:
        return

    progress = ledger.progress_count(habit.id)
    new_progress = apply_goal_transition(habit.yearly_goal, progress, old_value, value)
    if new_progress != progress:
        ledger.set_progress(habit.id, new_progress, now_iso)

    if value is not None and old.is_out_of_control_miss:
        ledger.set_used(habit.id, decrement_used(ledger.used_count(habit.id)), now_iso)

    if value is None:
        new = DailyTrackingRecord.miss(day, habit.id)
    else:
        new = DailyTrackingRecord.tracked(day, habit.id, value)
    new.created_at = old.created_at or now_iso
    ledger.put_record(new)


# ── Public operations ─────────────────────────────────────────


def track_value(store: Store, habit_id: str, day: date | str, value: str | None) -> DayStatus:
    """Select ``value`` for the day, or clear the selection with None."""
    d = parse_day(day)
    habit = _tracking_habit(store, habit_id)
    if value is not None:
        if not isinstance(value, str):
            raise ValidationError(f"Tracking value must be text or null, got {value!r}")
        value = value.strip()
        if value not in habit.tracking_values:
            raise ValidationError(f"'{value}' is not a tracking value of '{habit.name}'")

    now_iso = store.now().isoformat(timespec="seconds")
    with store.year_transaction(d.year) as ledger:
        _apply_value(ledger, habit, d.isoformat(), value, now_iso)
        status = _status(ledger, habit, d.isoformat())
    logger.info("Tracked %r for %s on %s (progress %d)", value, habit.id, d, status.progress_count)
    return status


def set_out_of_control_miss(store: Store, habit_id: str, day: date | str, on: bool) -> DayStatus:
    """Flag or unflag the day as an out-of-control miss.

    Flagging is refused while a value is tracked or once the yearly allowance
    is used up. Unflagging only changes anything when the day was flagged.
    """
    d = parse_day(day)
    day_s = d.isoformat()
    habit = _tracking_habit(store, habit_id)
    now_iso = store.now().isoformat(timespec="seconds")

    with store.year_transaction(d.year) as ledger:
        record = ledger.record(day_s, habit.id)
        used = ledger.used_count(habit.id)
        if on and not record.is_out_of_control_miss:
            check_can_mark_miss(habit, record, used)
            flagged = DailyTrackingRecord.out_of_control_miss(day_s, habit.id)
            flagged.created_at = record.created_at or now_iso
            ledger.put_record(flagged)
            ledger.set_used(habit.id, increment_used(used), now_iso)
        elif not on and record.is_out_of_control_miss:
            cleared = DailyTrackingRecord.miss(day_s, habit.id)
            cleared.created_at = record.created_at
            ledger.put_record(cleared)
            ledger.set_used(habit.id, decrement_used(used), now_iso)
        status = _status(ledger, habit, day_s)
    logger.info("Out-of-control miss %s for %s on %s (%d left)",
                "set" if on else "cleared", habit.id, day_s, status.remaining_misses)
    return status


def set_text_value(store: Store, habit_id: str, day: date | str, text: str) -> DayStatus:
    """Record free text for a free-text habit; blank text removes the record."""
    d = parse_day(day)
    day_s = d.isoformat()
    habit = get_habit(store, habit_id)
    if habit.is_tracking:
        raise ValidationError(f"'{habit.name}' is a tracking habit; select one of its values instead.")
    text = (text or "").strip()
    now_iso = store.now().isoformat(timespec="seconds")

    with store.year_transaction(d.year) as ledger:
        old = ledger.record(day_s, habit.id)
        if text:
            new = DailyTrackingRecord.text(day_s, habit.id, text)
            new.created_at = old.created_at or now_iso
        else:
            new = DailyTrackingRecord.empty(day_s, habit.id)
        ledger.put_record(new)
        status = _status(ledger, habit, day_s)
    return status


def day_status(store: Store, habit_id: str, day: date | str) -> DayStatus:
    d = parse_day(day)
    habit = get_habit(store, habit_id)
    return _status(store.load_year(str(d.year)), habit, d.isoformat())


def records_for_date(store: Store, day: date | str) -> dict[str, DailyTrackingRecord]:
    d = parse_day(day)
    ledger = store.load_year(str(d.year))
    return {
        habit_id: rec
        for habit_id, rec in ledger.records.get(d.isoformat(), {}).items()
        if rec.state != DayState.NO_ENTRY
    }


def describe_record(record: DailyTrackingRecord) -> str:
    if record.state == DayState.TRACKED:
        return "Week Off" if record.value == WEEK_OFF else str(record.value)
    if record.state == DayState.OUT_OF_CONTROL_MISS:
        return "Out-of-Control Miss"
    if record.state == DayState.TEXT:
        return record.text_value or ""
    return ""


def tracked_summary(store: Store, day: date | str) -> list[dict[str, str]]:
    """What was tracked on a date, one line per habit, skipping empty days."""
    habits = store.load_habits()
    out = []
    for habit_id, record in records_for_date(store, day).items():
        text = describe_record(record)
        if not text:
            continue
        habit = find_habit(habits, habit_id)
        out.append({
            "habitId": habit_id,
            "name": habit.name if habit else "Unknown habit",
            "color": habit.color if habit else UNKNOWN_HABIT_COLOR,
            "text": text,
        })
    return out


# ── Week offs ─────────────────────────────────────────────────


def week_offs_used(store: Store, iso_year: int) -> list[str]:
    """ISO week keys of the given ISO year that were taken off."""
    prefix = f"{iso_year}-W"
    weeks = set()
    for y in (iso_year - 1, iso_year, iso_year + 1):
        for record in store.load_year(str(y)).iter_records():
            if record.holds(WEEK_OFF):
                key = week_key(parse_day(record.date))
                if key.startswith(prefix):
                    weeks.add(key)
    return sorted(weeks)


def take_week_off(store: Store, day: date | str) -> dict[str, Any]:
    """Mark the whole ISO week holding ``day`` as a week off for every tracking habit."""
    week = period_containing(day, "weekly")
    iso_year = int(week.key.split("-W")[0])
    allowed = store.load_settings().yearly_week_offs_allowed
    used = week_offs_used(store, iso_year)
    if week.key in used:
        raise RuleViolation(f"{week.label} ({week.key}) is already a week off.")
    if len(used) >= allowed:
        logger.warning("Week off %s rejected: %d of %d used", week.key, len(used), allowed)
        raise RuleViolation(f"No week offs left for {iso_year} ({len(used)} of {allowed} used).")

    habits = [h for h in store.load_habits() if h.is_tracking]
    if not habits:
        raise RuleViolation("There are no tracking habits to take a week off from.")

    now_iso = store.now().isoformat(timespec="seconds")
    dates = dates_in_period(week.start, week.end)
    by_year: dict[str, list[str]] = {}
    for d in dates:
        by_year.setdefault(d[:4], []).append(d)
    # A week crossing New Year is one write per year.
    for year, year_dates in sorted(by_year.items()):
        with store.year_transaction(year) as ledger:
            for d in year_dates:
                for habit in habits:
                    _apply_value(ledger, habit, d, WEEK_OFF, now_iso)

    logger.info("Week off taken for %s", week.key)
    return {
        "periodKey": week.key,
        "dates": dates,
        "habits": [h.id for h in habits],
        "weekOffsUsed": len(used) + 1,
        "weekOffsAllowed": allowed,
    }


# ── Reconciliation ────────────────────────────────────────────


def reconcile_year(store: Store, year: int) -> list[str]:
    """Re-derive progress and miss counts from the year's records.

    Repairs counters left behind by an interrupted write or by the floor at
    zero. Returns the IDs of habits whose counters changed.
    """
    habits = [h for h in store.load_habits() if h.is_tracking]
    changed = []
    now_iso = store.now().isoformat(timespec="seconds")
    with store.year_transaction(year) as ledger:
        records = list(ledger.iter_records())
        for habit in habits:
            progress = derive_progress(habit, records)
            used = derive_used(habit.id, records)
            if progress != ledger.progress_count(habit.id) or used != ledger.used_count(habit.id):
                ledger.set_progress(habit.id, progress, now_iso)
                ledger.set_used(habit.id, used, now_iso)
                changed.append(habit.id)
    if changed:
        logger.info("Reconciled %s counters for %s", year, ", ".join(changed))
    return changed


def progress_overview(store: Store, year: int) -> list[dict[str, Any]]:
    """Yearly goal progress of every tracking habit."""
    ledger = store.load_year(str(year))
    out = []
    for habit in store.load_habits():
        if not habit.is_tracking:
            continue
        count = ledger.progress_count(habit.id)
        out.append({
            "habitId": habit.id,
            "name": habit.name,
            "progressCount": count,
            "goalCount": habit.yearly_goal.count,
            "percentage": round(goal_percentage(habit.yearly_goal, count), 1),
            "usedMisses": ledger.used_count(habit.id),
            "remainingMisses": remaining(habit, ledger.used_count(habit.id)),
        })
    return out
