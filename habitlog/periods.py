"""Calendar periods (ISO weeks, months) used as the unit of fine evaluation."""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from habitlog.errors import ValidationError
from habitlog.models import FREQUENCIES, Period


def parse_day(value: date | str) -> date:
    """Accept a date or a 'YYYY-MM-DD' string."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def week_key(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def _week_of(day: date) -> Period:
    start = day - timedelta(days=day.weekday())
    return Period(
        start=start,
        end=start + timedelta(days=6),
        label=f"Week {start.isocalendar()[1]}",
        key=week_key(start),
        frequency="weekly",
    )


def _month_of(year: int, month: int) -> Period:
    last = calendar.monthrange(year, month)[1]
    start = date(year, month, 1)
    return Period(
        start=start,
        end=date(year, month, last),
        label=start.strftime("%B %Y"),
        key=month_key(start),
        frequency="monthly",
    )


def weeks_in_year(year: int) -> list[Period]:
    """Every Monday-start ISO week touching the calendar year, in order.

    The first entry is the week holding Jan 1 and the last the week holding
    Dec 31, so boundary weeks may start or end in the adjacent year.
    """
    weeks = []
    current = _week_of(date(year, 1, 1))
    year_end = date(year, 12, 31)
    while current.start <= year_end:
        weeks.append(current)
        current = _week_of(current.start + timedelta(days=7))
    return weeks


def months_in_year(year: int) -> list[Period]:
    return [_month_of(year, m) for m in range(1, 13)]


def periods_in_year(year: int, frequency: str) -> list[Period]:
    if frequency == "weekly":
        return weeks_in_year(year)
    if frequency == "monthly":
        return months_in_year(year)
    raise ValidationError(f"Invalid frequency: {frequency!r} (expected one of {', '.join(FREQUENCIES)})")


def period_containing(day: date | str, frequency: str) -> Period:
    d = parse_day(day)
    if frequency == "weekly":
        return _week_of(d)
    if frequency == "monthly":
        return _month_of(d.year, d.month)
    raise ValidationError(f"Invalid frequency: {frequency!r} (expected one of {', '.join(FREQUENCIES)})")


def dates_in_period(start: date | str, end: date | str) -> list[str]:
    """Every day from start to end, both inclusive, as YYYY-MM-DD strings."""
    d = parse_day(start)
    last = parse_day(end)
    out = []
    while d <= last:
        out.append(d.isoformat())
        d += timedelta(days=1)
    return out
