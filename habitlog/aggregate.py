"""Occurrence counting over tracking records.

Everything here is recomputed from the records on each call so that edits to
past days are always reflected.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from habitlog.models import DailyTrackingRecord, YearLedger

# date -> habit_id -> record
TrackingMap = dict[str, dict[str, DailyTrackingRecord]]


def build_tracking_map(ledgers: Iterable[YearLedger]) -> TrackingMap:
    """Merge the records of several years (a boundary week spans two)."""
    merged: TrackingMap = {}
    for ledger in ledgers:
        for day, by_habit in ledger.records.items():
            merged.setdefault(day, {}).update(by_habit)
    return merged


def count_values(habit_id: str, dates: Iterable[str], tracking: TrackingMap) -> dict[str, int]:
    """Map each tracked value of a habit to the number of days it occurs on."""
    counts: dict[str, int] = defaultdict(int)
    for day in dates:
        record = tracking.get(day, {}).get(habit_id)
        if record is None:
            continue
        for value in record.tracked_values:
            counts[value] += 1
    return dict(counts)


def count_value(habit_id: str, value: str, dates: Iterable[str], tracking: TrackingMap) -> int:
    n = 0
    for day in dates:
        record = tracking.get(day, {}).get(habit_id)
        if record is not None and record.holds(value):
            n += 1
    return n


def yearly_value_counts(records: Iterable[DailyTrackingRecord]) -> dict[str, dict[str, int]]:
    """habit_id -> value -> occurrences, over whatever records are passed in."""
    counts: dict[str, dict[str, int]] = {}
    for record in records:
        for value in record.tracked_values:
            by_value = counts.setdefault(record.habit_id, {})
            by_value[value] = by_value.get(value, 0) + 1
    return counts
