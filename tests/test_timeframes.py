"""
Unit tests for timeframe windows.

Run: pytest tests/test_timeframes.py -v
"""

from datetime import date, datetime

import pytest

from errors import ValidationError
from timeframes import (MONTHLY, WEEKLY, YEARLY, Timeframe, current_week, parse_timeframe, sunday_offset,
                        week_of_month, window_for)


# ---------------------------------------------------------------------------
# Week arithmetic
# ---------------------------------------------------------------------------

class TestWeekArithmetic:

    def test_sunday_offset(self):
        assert sunday_offset(date(2024, 1, 14)) == 0  # Sunday
        assert sunday_offset(date(2024, 1, 15)) == 1  # Monday
        assert sunday_offset(date(2024, 1, 20)) == 6  # Saturday

    def test_week_of_month_when_month_starts_midweek(self):
        # January 1st 2024 is a Monday
        assert week_of_month(date(2024, 1, 1)) == 1
        assert week_of_month(date(2024, 1, 6)) == 1
        assert week_of_month(date(2024, 1, 7)) == 2
        assert week_of_month(date(2024, 1, 14)) == 3
        assert week_of_month(date(2024, 1, 20)) == 3
        assert week_of_month(date(2024, 1, 31)) == 5

    def test_week_of_month_inverts_window_for(self):
        for day in range(1, 32):
            d = date(2024, 1, day)
            window = window_for(Timeframe(WEEKLY, 2024, 1, week_of_month(d)))
            assert window.contains(datetime(2024, 1, day, 12, 0))

    def test_current_week_runs_sunday_to_saturday(self):
        window = current_week(date(2024, 1, 17))
        assert window.start == datetime(2024, 1, 14)
        assert window.end == datetime(2024, 1, 21)
        assert len(list(window.days())) == 7


# ---------------------------------------------------------------------------
# window_for
# ---------------------------------------------------------------------------

class TestWindowFor:

    def test_weekly_week_three_of_january_2024(self):
        window = window_for(Timeframe(WEEKLY, 2024, 1, 3))
        assert window.start == datetime(2024, 1, 14)
        assert window.end == datetime(2024, 1, 21)
        assert window.to_dict() == {'start': '2024-01-14', 'end': '2024-01-20'}

    def test_weekly_window_is_half_open(self):
        window = window_for(Timeframe(WEEKLY, 2024, 1, 3))
        assert window.contains(datetime(2024, 1, 14, 0, 0))
        assert window.contains(datetime(2024, 1, 20, 23, 59))
        assert not window.contains(datetime(2024, 1, 21, 0, 0))
        assert not window.contains(datetime(2024, 1, 22, 9, 0))

    def test_week_one_may_start_in_previous_month(self):
        window = window_for(Timeframe(WEEKLY, 2024, 1, 1))
        assert window.start == datetime(2023, 12, 31)

    def test_monthly_december_rolls_into_next_year(self):
        window = window_for(Timeframe(MONTHLY, 2023, 12))
        assert window.start == datetime(2023, 12, 1)
        assert window.end == datetime(2024, 1, 1)

    def test_yearly(self):
        window = window_for(Timeframe(YEARLY, 2024))
        assert window.start == datetime(2024, 1, 1)
        assert window.end == datetime(2025, 1, 1)

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            window_for(Timeframe('fortnightly', 2024, 1))


# ---------------------------------------------------------------------------
# parse_timeframe
# ---------------------------------------------------------------------------

class TestParseTimeframe:

    def test_no_timeframe_returns_none(self):
        assert parse_timeframe({}) is None

    def test_full_weekly_request(self):
        args = {'timeframe': 'weekly', 'week': '3', 'month': '1', 'year': '2024'}
        assert parse_timeframe(args) == Timeframe(WEEKLY, 2024, 1, 3)

    def test_missing_week_defaults_to_current_week_of_this_month(self):
        tf = parse_timeframe({'timeframe': 'weekly'}, today=date(2024, 1, 17))
        assert tf == Timeframe(WEEKLY, 2024, 1, 3)

    def test_missing_week_in_other_month_defaults_to_first(self):
        tf = parse_timeframe({'timeframe': 'weekly', 'month': '3', 'year': '2023'}, today=date(2024, 1, 17))
        assert tf == Timeframe(WEEKLY, 2023, 3, 1)

    def test_monthly_defaults_year(self):
        tf = parse_timeframe({'timeframe': 'monthly', 'month': '6'}, today=date(2024, 1, 17))
        assert tf == Timeframe(MONTHLY, 2024, 6)

    def test_required_defaults_to_weekly(self):
        tf = parse_timeframe({}, today=date(2024, 1, 17), required=True)
        assert tf.kind == WEEKLY

    @pytest.mark.parametrize('args', [
        {'timeframe': 'weekly', 'week': 'three'},
        {'timeframe': 'weekly', 'week': '7'},
        {'timeframe': 'weekly', 'week': '0'},
        {'timeframe': 'monthly', 'month': '13'},
        {'timeframe': 'monthly', 'year': 'soon'},
        {'timeframe': 'daily'},
    ])
    def test_malformed_parameters_raise(self, args):
        with pytest.raises(ValidationError) as exc_info:
            parse_timeframe(args, today=date(2024, 1, 17))
        assert exc_info.value.errors
