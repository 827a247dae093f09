"""Tests for habitlog/aggregate.py."""

from habitlog.aggregate import build_tracking_map, count_value, count_values, yearly_value_counts
from habitlog.models import DailyTrackingRecord, YearLedger


def _ledger(year: str, *records: DailyTrackingRecord) -> YearLedger:
    ledger = YearLedger(year=year)
    for r in records:
        ledger.put_record(r)
    return ledger


def test_build_tracking_map_merges_years():
    a = _ledger("2024", DailyTrackingRecord.tracked("2024-12-31", "h", "Yes"))
    b = _ledger("2025", DailyTrackingRecord.tracked("2025-01-01", "h", "No"))
    tracking = build_tracking_map([a, b])
    assert set(tracking) == {"2024-12-31", "2025-01-01"}
    assert tracking["2025-01-01"]["h"].value == "No"


def test_count_values_only_counts_requested_dates():
    tracking = build_tracking_map([_ledger(
        "2025",
        DailyTrackingRecord.tracked("2025-03-10", "h", "Yes"),
        DailyTrackingRecord.tracked("2025-03-11", "h", "Yes"),
        DailyTrackingRecord.tracked("2025-03-12", "h", "No"),
        DailyTrackingRecord.tracked("2025-03-20", "h", "Yes"),
        DailyTrackingRecord.tracked("2025-03-10", "other", "Yes"),
    )])
    dates = ["2025-03-10", "2025-03-11", "2025-03-12", "2025-03-13"]
    assert count_values("h", dates, tracking) == {"Yes": 2, "No": 1}
    assert count_value("h", "Yes", dates, tracking) == 2
    assert count_value("h", "Maybe", dates, tracking) == 0


def test_misses_and_text_do_not_count():
    tracking = build_tracking_map([_ledger(
        "2025",
        DailyTrackingRecord.miss("2025-03-10", "h"),
        DailyTrackingRecord.out_of_control_miss("2025-03-11", "h"),
        DailyTrackingRecord.text("2025-03-12", "h", "Yes"),
    )])
    dates = ["2025-03-10", "2025-03-11", "2025-03-12"]
    assert count_values("h", dates, tracking) == {}


def test_yearly_value_counts():
    records = [
        DailyTrackingRecord.tracked("2025-01-01", "a", "Done"),
        DailyTrackingRecord.tracked("2025-01-02", "a", "Done"),
        DailyTrackingRecord.tracked("2025-01-03", "a", "Skipped"),
        DailyTrackingRecord.tracked("2025-01-01", "b", "Yes"),
        DailyTrackingRecord.miss("2025-01-02", "b"),
    ]
    assert yearly_value_counts(records) == {"a": {"Done": 2, "Skipped": 1}, "b": {"Yes": 1}}
