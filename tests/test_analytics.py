"""Tests for habitlog/analytics.py."""

from datetime import date
from unittest.mock import patch

from habitlog.analytics import year_progress, yearly_summary
from habitlog.store import MemoryStore
from habitlog.tracking import set_text_value, take_week_off, track_value


def test_year_progress_counts_today():
    p = year_progress(date(2025, 1, 1))
    assert p.days_passed == 1
    assert p.days_in_year == 365
    assert p.days_left == 364

    p = year_progress(date(2024, 12, 31))
    assert p.days_passed == 366
    assert p.days_left == 0
    assert p.percentage == 100.0


def test_yearly_summary(memory_store):
    track_value(memory_store, "exercise", "2025-02-01", "Done")
    track_value(memory_store, "exercise", "2025-02-02", "Done")
    track_value(memory_store, "exercise", "2025-02-03", "Skipped")
    track_value(memory_store, "smoking", "2025-02-01", "Clean")
    set_text_value(memory_store, "gratitude", "2025-02-01", "Tea")

    summary = yearly_summary(memory_store, 2025, today=date(2025, 7, 1))
    assert summary.has_data
    assert summary.year_progress is not None
    by_id = {h.habit_id: h for h in summary.habits}
    assert set(by_id) == {"exercise", "smoking"}
    assert by_id["exercise"].value_counts == {"Done": 2, "Skipped": 1}
    assert by_id["exercise"].progress_count == 2
    assert by_id["exercise"].goal_count == 200
    assert by_id["exercise"].goal_percentage == 1.0
    assert by_id["smoking"].value_counts == {"Clean": 1}


def test_habit_without_values_or_goal_is_omitted(memory_store):
    track_value(memory_store, "exercise", "2025-02-01", "Done")
    summary = yearly_summary(memory_store, 2025, today=date(2025, 7, 1))
    # Exercise has a goal; Smoking has neither values nor a goal this year.
    assert [h.habit_id for h in summary.habits] == ["exercise"]


def test_past_year_has_no_year_progress(memory_store):
    summary = yearly_summary(memory_store, 2024, today=date(2025, 7, 1))
    assert summary.year_progress is None
    assert not summary.has_data
    # A goal is still shown with zero progress.
    assert [(h.habit_id, h.progress_count) for h in summary.habits] == [("exercise", 0)]


def test_week_off_is_not_a_tracked_value(memory_store):
    take_week_off(memory_store, "2025-03-12")
    summary = yearly_summary(memory_store, 2025, today=date(2025, 7, 1))
    assert all("WEEK_OFF" not in h.value_counts for h in summary.habits)
    assert summary.to_dict()["yearProgress"]["daysPassed"] == 182


def test_summary_defaults_to_store_today(memory_store):
    with patch.object(MemoryStore, "today", return_value=date(2025, 7, 1)):
        summary = yearly_summary(memory_store, 2025)
    assert summary.year_progress.days_passed == 182
