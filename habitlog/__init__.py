"""HabitLog core library: habit tracking, fines, goals and journal.

Public API re-exports for convenient imports:
    from habitlog import FileStore, track_value, refresh_fines, ...
"""

# Errors
from habitlog.errors import (
    HabitLogError,
    ValidationError,
    RuleViolation,
    EntryExistsError,
    NotFoundError,
    StorageError,
)

# Workspace & paths
from habitlog.workspace import (
    workspace_root,
    get_user_timezone,
    now_local,
    today_local,
)

# Storage
from habitlog.store import Store, FileStore, MemoryStore

# Periods
from habitlog.periods import (
    parse_day,
    week_key,
    month_key,
    weeks_in_year,
    months_in_year,
    periods_in_year,
    period_containing,
    dates_in_period,
)

# Aggregation, goals, misses
from habitlog.aggregate import build_tracking_map, count_values, count_value
from habitlog.goals import apply_goal_transition, goal_percentage
from habitlog.misses import check_can_mark_miss, remaining

# Fines
from habitlog.fines import (
    evaluate_period,
    evaluate_year,
    refresh_fines,
    set_fine_status,
    summarize_fines,
)

# Habits
from habitlog.habits import (
    validate_habit,
    list_habits,
    find_habit,
    get_habit,
    create_habit,
    update_habit,
    delete_habit,
)

# Tracking
from habitlog.tracking import (
    track_value,
    set_out_of_control_miss,
    set_text_value,
    take_week_off,
    week_offs_used,
    records_for_date,
    tracked_summary,
    reconcile_year,
)

# Journal, analytics, settings
from habitlog.entries import save_entry, get_entry, list_entries, delete_entry
from habitlog.analytics import year_progress, yearly_summary
from habitlog.settings import load_settings, update_settings

# Models
from habitlog.models import (
    WEEK_OFF,
    FrequencyCondition,
    YearlyGoal,
    Habit,
    DayState,
    DailyTrackingRecord,
    YearLedger,
    Period,
    FineDetail,
    FineWarning,
    PeriodFines,
    DailyEntry,
    AppSettings,
)
