"""Typed dataclasses for the HabitLog data model.

All models use from_dict/to_dict for JSON/YAML serialization.
Row-level keys are snake_case (``tracking_values``, ``fine_amount``...); the
JSON columns nested inside a habit row keep their camelCase keys
(``trackingValue``, ``contributingValues``). Fines are stored camelCase.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any


FREQUENCIES = ("weekly", "monthly")
HABIT_KINDS = ("tracking", "free_text")
FINE_STATUSES = ("paid", "unpaid")
MAX_FREQUENCY_CONDITIONS = 5
DEFAULT_COLOR = "#4F46E5"
DEFAULT_MOOD = "\U0001f60a"

# Reserved tracking value written for every habit on a week taken off.
WEEK_OFF = "WEEK_OFF"


def _clean_str(v: Any) -> str | None:
    """Return a stripped string, or None for blanks and non-strings."""
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None


# ── Habits ────────────────────────────────────────────────────


@dataclass
class FrequencyCondition:
    tracking_value: str
    frequency: str = "weekly"  # weekly, monthly
    count: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FrequencyCondition:
        return cls(
            tracking_value=str(d.get("trackingValue", d.get("tracking_value", ""))),
            frequency=str(d.get("frequency", "weekly")),
            count=int(d.get("count", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackingValue": self.tracking_value,
            "frequency": self.frequency,
            "count": self.count,
        }


@dataclass
class YearlyGoal:
    count: int = 0
    contributing_values: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> YearlyGoal:
        if not d or not isinstance(d, dict):
            return cls()
        values = d.get("contributingValues", d.get("contributing_values")) or []
        return cls(count=int(d.get("count", 0) or 0), contributing_values=[str(v) for v in values])

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "contributingValues": list(self.contributing_values)}

    def contributes(self, value: str | None) -> bool:
        return value is not None and value in self.contributing_values


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    color: str = DEFAULT_COLOR
    kind: str = "tracking"  # tracking, free_text
    tracking_values: list[str] = field(default_factory=list)
    frequency_conditions: list[FrequencyCondition] = field(default_factory=list)
    fine_amount: int = 0
    yearly_goal: YearlyGoal = field(default_factory=YearlyGoal)
    allowed_out_of_control_misses: int = 0
    hint_text: str = ""
    created_at: str = ""
    user_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        # Rows written before free-text habits existed carry no type.
        kind = str(d.get("type") or d.get("kind") or "tracking")
        habit = cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            color=str(d.get("color") or DEFAULT_COLOR),
            kind=kind,
            hint_text=str(d.get("hint_text") or ""),
            created_at=str(d.get("created_at") or ""),
            user_id=d.get("user_id"),
        )
        if kind == "tracking":
            habit.tracking_values = [str(v) for v in (d.get("tracking_values") or [])]
            habit.frequency_conditions = [
                FrequencyCondition.from_dict(c)
                for c in (d.get("frequency_conditions") or [])
                if isinstance(c, dict)
            ]
            habit.fine_amount = int(d.get("fine_amount") or 0)
            habit.yearly_goal = YearlyGoal.from_dict(d.get("yearly_goal"))
            habit.allowed_out_of_control_misses = int(d.get("allowed_out_of_control_misses") or 0)
        return habit

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "type": self.kind,
        }
        if self.kind == "tracking":
            d["tracking_values"] = list(self.tracking_values)
            d["frequency_conditions"] = [c.to_dict() for c in self.frequency_conditions]
            d["fine_amount"] = self.fine_amount
            d["yearly_goal"] = self.yearly_goal.to_dict()
            d["allowed_out_of_control_misses"] = self.allowed_out_of_control_misses
        d["hint_text"] = self.hint_text
        d["created_at"] = self.created_at
        if self.user_id is not None:
            d["user_id"] = self.user_id
        return d

    @property
    def is_tracking(self) -> bool:
        return self.kind == "tracking"

    def conditions_for(self, frequency: str) -> list[FrequencyCondition]:
        return [c for c in self.frequency_conditions if c.frequency == frequency]


# ── Daily tracking ────────────────────────────────────────────


class DayState(str, Enum):
    """What a (date, habit) pair holds. Exactly one of these at a time."""

    NO_ENTRY = "no_entry"
    TRACKED = "tracked"
    MISS = "miss"
    OUT_OF_CONTROL_MISS = "out_of_control_miss"
    TEXT = "text"


@dataclass
class DailyTrackingRecord:
    date: str = ""
    habit_id: str = ""
    state: DayState = DayState.NO_ENTRY
    value: str | None = None
    text_value: str | None = None
    created_at: str = ""

    # Constructors keep value/flag mutually exclusive.

    @classmethod
    def empty(cls, day: str, habit_id: str) -> DailyTrackingRecord:
        return cls(date=day, habit_id=habit_id)

    @classmethod
    def tracked(cls, day: str, habit_id: str, value: str) -> DailyTrackingRecord:
        return cls(date=day, habit_id=habit_id, state=DayState.TRACKED, value=value)

    @classmethod
    def miss(cls, day: str, habit_id: str) -> DailyTrackingRecord:
        return cls(date=day, habit_id=habit_id, state=DayState.MISS)

    @classmethod
    def out_of_control_miss(cls, day: str, habit_id: str) -> DailyTrackingRecord:
        return cls(date=day, habit_id=habit_id, state=DayState.OUT_OF_CONTROL_MISS)

    @classmethod
    def text(cls, day: str, habit_id: str, text_value: str) -> DailyTrackingRecord:
        return cls(date=day, habit_id=habit_id, state=DayState.TEXT, text_value=text_value)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyTrackingRecord:
        raw = d.get("tracked_values")
        values: list[str] = []
        if isinstance(raw, list):
            values = [v for v in (_clean_str(x) for x in raw) if v]
        elif _clean_str(raw):
            values = [_clean_str(raw)]
        else:
            # Legacy singular columns
            for key in ("tracked_value", "tracking_value", "value"):
                single = _clean_str(d.get(key))
                if single:
                    values = [single]
                    break

        text_value = None
        for key in ("text_value", "text", "free_text"):
            text_value = _clean_str(d.get(key))
            if text_value:
                break

        record = cls(
            date=str(d.get("date", "")),
            habit_id=str(d.get("habit_id", "")),
            created_at=str(d.get("created_at") or ""),
        )
        if values:
            record.state = DayState.TRACKED
            record.value = values[0]
        elif text_value:
            record.state = DayState.TEXT
            record.text_value = text_value
        elif d.get("is_out_of_control_miss"):
            record.state = DayState.OUT_OF_CONTROL_MISS
        else:
            record.state = DayState.MISS
        return record

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": self.date,
            "habit_id": self.habit_id,
            "tracked_values": self.tracked_values,
            "text_value": self.text_value,
            "is_out_of_control_miss": self.is_out_of_control_miss,
        }
        if self.created_at:
            d["created_at"] = self.created_at
        return d

    @property
    def tracked_values(self) -> list[str]:
        return [self.value] if self.state == DayState.TRACKED and self.value else []

    @property
    def is_out_of_control_miss(self) -> bool:
        return self.state == DayState.OUT_OF_CONTROL_MISS

    def holds(self, value: str) -> bool:
        return self.state == DayState.TRACKED and self.value == value


@dataclass
class YearlyProgress:
    year: str = ""
    habit_id: str = ""
    progress_count: int = 0
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> YearlyProgress:
        return cls(
            year=str(d.get("year", "")),
            habit_id=str(d.get("habit_id", "")),
            progress_count=int(d.get("progress_count", 0) or 0),
            updated_at=str(d.get("updated_at") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "habit_id": self.habit_id,
            "progress_count": self.progress_count,
            "updated_at": self.updated_at,
        }


@dataclass
class YearlyOutOfControlMissCount:
    year: str = ""
    habit_id: str = ""
    used_count: int = 0
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> YearlyOutOfControlMissCount:
        return cls(
            year=str(d.get("year", "")),
            habit_id=str(d.get("habit_id", "")),
            used_count=int(d.get("used_count", 0) or 0),
            updated_at=str(d.get("updated_at") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "habit_id": self.habit_id,
            "used_count": self.used_count,
            "updated_at": self.updated_at,
        }


@dataclass
class YearLedger:
    """The three per-year tables, read and written as one unit."""

    year: str = ""
    records: dict[str, dict[str, DailyTrackingRecord]] = field(default_factory=dict)
    progress: dict[str, YearlyProgress] = field(default_factory=dict)
    miss_counts: dict[str, YearlyOutOfControlMissCount] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any], year: str = "") -> YearLedger:
        ledger = cls(year=str(d.get("year") or year))
        for row in d.get("daily_habit_tracking") or []:
            if isinstance(row, dict):
                rec = DailyTrackingRecord.from_dict(row)
                ledger.records.setdefault(rec.date, {})[rec.habit_id] = rec
        for row in d.get("yearly_habit_progress") or []:
            if isinstance(row, dict):
                p = YearlyProgress.from_dict(row)
                ledger.progress[p.habit_id] = p
        for row in d.get("yearly_out_of_control_miss_counts") or []:
            if isinstance(row, dict):
                m = YearlyOutOfControlMissCount.from_dict(row)
                ledger.miss_counts[m.habit_id] = m
        return ledger

    def to_dict(self) -> dict[str, Any]:
        rows = []
        for day in sorted(self.records):
            for habit_id in sorted(self.records[day]):
                rec = self.records[day][habit_id]
                if rec.state != DayState.NO_ENTRY:
                    rows.append(rec.to_dict())
        return {
            "year": self.year,
            "daily_habit_tracking": rows,
            "yearly_habit_progress": [self.progress[k].to_dict() for k in sorted(self.progress)],
            "yearly_out_of_control_miss_counts": [
                self.miss_counts[k].to_dict() for k in sorted(self.miss_counts)
            ],
        }

    def record(self, day: str, habit_id: str) -> DailyTrackingRecord:
        """Return the stored record, or an empty one (not inserted)."""
        rec = self.records.get(day, {}).get(habit_id)
        return rec if rec is not None else DailyTrackingRecord.empty(day, habit_id)

    def put_record(self, record: DailyTrackingRecord) -> None:
        self.records.setdefault(record.date, {})[record.habit_id] = record

    def progress_count(self, habit_id: str) -> int:
        p = self.progress.get(habit_id)
        return p.progress_count if p else 0

    def used_count(self, habit_id: str) -> int:
        m = self.miss_counts.get(habit_id)
        return m.used_count if m else 0

    def set_progress(self, habit_id: str, count: int, now_iso: str = "") -> None:
        self.progress[habit_id] = YearlyProgress(
            year=self.year, habit_id=habit_id, progress_count=count, updated_at=now_iso,
        )

    def set_used(self, habit_id: str, count: int, now_iso: str = "") -> None:
        self.miss_counts[habit_id] = YearlyOutOfControlMissCount(
            year=self.year, habit_id=habit_id, used_count=count, updated_at=now_iso,
        )

    def iter_records(self):
        for by_habit in self.records.values():
            yield from by_habit.values()


# ── Periods & fines ───────────────────────────────────────────


def format_date_range(start: date, end: date) -> str:
    """'Jan 01 - Jan 07, 2025'"""
    return f"{start.strftime('%b %d')} - {end.strftime('%b %d, %Y')}"


@dataclass(frozen=True)
class Period:
    start: date
    end: date  # inclusive
    label: str
    key: str  # 2025-W39 or 2025-09
    frequency: str = "weekly"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def dates(self) -> list[str]:
        out = []
        d = self.start
        while d <= self.end:
            out.append(d.isoformat())
            d += timedelta(days=1)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
            "dateRange": format_date_range(self.start, self.end),
            "periodKey": self.key,
            "frequency": self.frequency,
        }


@dataclass
class FineDetail:
    habit_id: str = ""
    habit_name: str = ""
    tracking_value: str = ""
    period_key: str = ""
    condition_count: int = 0
    actual_count: int = 0
    fine_amount: int = 0
    status: str = "unpaid"  # paid, unpaid
    cause: str = ""
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FineDetail:
        status = str(d.get("status", "unpaid"))
        return cls(
            habit_id=str(d.get("habitId", "")),
            habit_name=str(d.get("habitName", "")),
            tracking_value=str(d.get("trackingValue", "")),
            period_key=str(d.get("periodKey", "")),
            condition_count=int(d.get("conditionCount", 0) or 0),
            actual_count=int(d.get("actualCount", 0) or 0),
            fine_amount=int(d.get("fineAmount", 0) or 0),
            status=status if status in FINE_STATUSES else "unpaid",
            cause=str(d.get("cause", "")),
            created_at=str(d.get("createdAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "trackingValue": self.tracking_value,
            "periodKey": self.period_key,
            "conditionCount": self.condition_count,
            "actualCount": self.actual_count,
            "fineAmount": self.fine_amount,
            "status": self.status,
            "cause": self.cause,
            "createdAt": self.created_at,
        }

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.period_key, self.habit_id, self.tracking_value)


@dataclass
class FineWarning:
    habit_id: str
    habit_name: str
    tracking_value: str
    period_key: str
    condition_count: int
    actual_count: int
    kind: str  # at_threshold, one_below
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "trackingValue": self.tracking_value,
            "periodKey": self.period_key,
            "conditionCount": self.condition_count,
            "actualCount": self.actual_count,
            "kind": self.kind,
            "message": self.message,
        }


@dataclass
class PeriodFines:
    period: Period
    fines: list[FineDetail] = field(default_factory=list)
    warnings: list[FineWarning] = field(default_factory=list)
    is_current: bool = False

    @property
    def total_amount(self) -> int:
        return sum(f.fine_amount for f in self.fines)

    @property
    def all_paid(self) -> bool:
        return bool(self.fines) and all(f.status == "paid" for f in self.fines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.to_dict(),
            "fines": [f.to_dict() for f in self.fines],
            "warnings": [w.to_dict() for w in self.warnings],
            "isCurrent": self.is_current,
            "totalAmount": self.total_amount,
            "allPaid": self.all_paid,
        }


# ── Journal & settings ────────────────────────────────────────


@dataclass
class DailyEntry:
    id: str = ""
    date: str = ""
    text: str = ""
    mood: str = DEFAULT_MOOD
    new_learning_text: str | None = None
    misc_text_tracking: str | None = None
    timestamp: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyEntry:
        return cls(
            id=str(d.get("id", "")),
            date=str(d.get("date", "")),
            text=str(d.get("text", "")),
            mood=str(d.get("mood") or DEFAULT_MOOD),
            new_learning_text=_clean_str(d.get("new_learning_text")),
            misc_text_tracking=_clean_str(d.get("misc_text_tracking")),
            timestamp=str(d.get("timestamp", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "text": self.text,
            "mood": self.mood,
            "new_learning_text": self.new_learning_text,
            "misc_text_tracking": self.misc_text_tracking,
            "timestamp": self.timestamp,
        }


@dataclass
class AppSettings:
    yearly_week_offs_allowed: int = 0
    yearly_nothings_allowed: int = 0
    app_password: str = "password"
    timezone: str = "UTC"
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("yearly_week_offs_allowed", "yearly_nothings_allowed", "app_password", "timezone")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppSettings:
        if not d or not isinstance(d, dict):
            return cls()
        # Accept both the bare blob and the {settings_data: {...}} row.
        data = d.get("settings_data") if isinstance(d.get("settings_data"), dict) else d
        return cls(
            yearly_week_offs_allowed=int(data.get("yearly_week_offs_allowed", 0) or 0),
            yearly_nothings_allowed=int(data.get("yearly_nothings_allowed", 0) or 0),
            app_password=str(data.get("app_password") or "password"),
            timezone=str(data.get("timezone") or "UTC"),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({
            "yearly_week_offs_allowed": self.yearly_week_offs_allowed,
            "yearly_nothings_allowed": self.yearly_nothings_allowed,
            "app_password": self.app_password,
            "timezone": self.timezone,
        })
        return d


# ── Analytics ─────────────────────────────────────────────────


@dataclass
class YearProgress:
    year: int
    days_passed: int  # including today
    days_in_year: int
    days_left: int

    @property
    def percentage(self) -> float:
        return self.days_passed / self.days_in_year * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "daysPassed": self.days_passed,
            "daysInYear": self.days_in_year,
            "daysLeft": self.days_left,
            "percentage": round(self.percentage, 1),
        }


@dataclass
class HabitYearSummary:
    habit_id: str
    name: str
    color: str
    value_counts: dict[str, int] = field(default_factory=dict)
    progress_count: int = 0
    goal_count: int = 0
    goal_percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "name": self.name,
            "color": self.color,
            "valueCounts": dict(self.value_counts),
            "progressCount": self.progress_count,
            "goalCount": self.goal_count,
            "goalPercentage": round(self.goal_percentage, 1),
        }


@dataclass
class YearlySummary:
    year: int
    habits: list[HabitYearSummary] = field(default_factory=list)
    has_data: bool = False
    year_progress: YearProgress | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "hasData": self.has_data,
            "yearProgress": self.year_progress.to_dict() if self.year_progress else None,
            "habits": [h.to_dict() for h in self.habits],
        }
