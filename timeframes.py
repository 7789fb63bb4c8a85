"""
Timeframe windows for dashboard stats and submission filters.

Windows are half-open ``[start, end)`` over naive datetimes. Weeks run
Sunday to Saturday; week 1 of a month begins on the Sunday on or before the
1st, and week N starts ``(N - 1) * 7`` days later.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from errors import ValidationError
from utils import utc_today

WEEKLY = 'weekly'
MONTHLY = 'monthly'
YEARLY = 'yearly'
TIMEFRAME_KINDS = (WEEKLY, MONTHLY, YEARLY)

MAX_WEEKS_IN_MONTH = 6


@dataclass(frozen=True)
class Timeframe:
    kind: str
    year: int
    month: Optional[int] = None
    week: Optional[int] = None


@dataclass(frozen=True)
class Window:
    start: datetime
    end: datetime  # exclusive

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def days(self):
        day = self.start.date()
        while datetime.combine(day, time.min) < self.end:
            yield day
            day += timedelta(days=1)

    def to_dict(self):
        return {
            'start': self.start.date().isoformat(),
            'end': (self.end - timedelta(days=1)).date().isoformat()
        }


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def sunday_offset(day: date) -> int:
    """Days since the most recent Sunday (0 for a Sunday)."""
    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    return day - timedelta(days=sunday_offset(day))


def current_week(today: Optional[date] = None) -> Window:
    today = today or utc_today()
    start = week_start(today)
    return Window(_midnight(start), _midnight(start + timedelta(days=7)))


def week_of_month(day: date) -> int:
    first = day.replace(day=1)
    return math.ceil((day.day + sunday_offset(first)) / 7)


def window_for(timeframe: Timeframe) -> Window:
    if timeframe.kind == WEEKLY:
        first = date(timeframe.year, timeframe.month, 1)
        start = week_start(first) + timedelta(days=(timeframe.week - 1) * 7)
        return Window(_midnight(start), _midnight(start + timedelta(days=7)))

    if timeframe.kind == MONTHLY:
        start = date(timeframe.year, timeframe.month, 1)
        if timeframe.month == 12:
            end = date(timeframe.year + 1, 1, 1)
        else:
            end = date(timeframe.year, timeframe.month + 1, 1)
        return Window(_midnight(start), _midnight(end))

    if timeframe.kind == YEARLY:
        return Window(_midnight(date(timeframe.year, 1, 1)), _midnight(date(timeframe.year + 1, 1, 1)))

    raise ValidationError(f'Unknown timeframe: {timeframe.kind}')


def _parse_int(args, name, errors):
    raw = args.get(name)
    if raw is None or raw == '':
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors.append(f'{name} must be an integer')
        return None


def parse_timeframe(args, today: Optional[date] = None, required: bool = False) -> Optional[Timeframe]:
    """Build a Timeframe from request args.

    Returns None when no timeframe was requested and ``required`` is false.
    Missing month/year default to the current ones; a weekly request without
    a week defaults to the current week of that month.
    """
    today = today or utc_today()
    kind = args.get('timeframe') or None
    if kind is None and not required:
        return None
    kind = kind or WEEKLY

    errors = []
    if kind not in TIMEFRAME_KINDS:
        errors.append(f'timeframe must be one of: {", ".join(TIMEFRAME_KINDS)}')

    week = _parse_int(args, 'week', errors)
    month = _parse_int(args, 'month', errors)
    year = _parse_int(args, 'year', errors)

    if year is not None and not 1900 <= year <= 9998:
        errors.append('year is out of range')
    if month is not None and not 1 <= month <= 12:
        errors.append('month must be between 1 and 12')
    if week is not None and not 1 <= week <= MAX_WEEKS_IN_MONTH:
        errors.append(f'week must be between 1 and {MAX_WEEKS_IN_MONTH}')

    if errors:
        raise ValidationError('Invalid timeframe parameters', errors)

    year = year or today.year
    if kind == YEARLY:
        return Timeframe(kind, year)

    month = month or today.month
    if kind == MONTHLY:
        return Timeframe(kind, year, month)

    if week is None:
        if (year, month) == (today.year, today.month):
            week = week_of_month(today)
        else:
            week = 1
    return Timeframe(kind, year, month, week)
