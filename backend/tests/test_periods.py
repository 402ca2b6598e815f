"""
Calendar-month range tests.

Every month-filtered listing uses month_date_range, so the boundaries here
are the boundaries of every report.
"""

from datetime import date

import pytest

from hazel.periods import month_date_range, month_key, parse_month, recent_months, shift_month
from hazel.time_utils import local_today
from hazel.validation import ValidationError


class TestMonthDateRange:

    @pytest.mark.parametrize(
        "month,expected_end",
        [
            ("2024-01", date(2024, 1, 31)),
            ("2024-02", date(2024, 2, 29)),
            ("2023-02", date(2023, 2, 28)),
            ("2024-04", date(2024, 4, 30)),
            ("2024-12", date(2024, 12, 31)),
        ],
    )
    def test_last_day_is_the_real_calendar_day(self, month, expected_end):
        start, end = month_date_range(month)
        assert start == expected_end.replace(day=1)
        assert end == expected_end

    def test_leap_century_rules(self):
        assert month_date_range("2000-02")[1] == date(2000, 2, 29)
        assert month_date_range("1900-02")[1] == date(1900, 2, 28)

    @pytest.mark.parametrize("month", ["2024-13", "2024-00", "2024-1", "24-01", "2024/01", "abc"])
    def test_malformed_or_out_of_range_month_is_rejected(self, month):
        with pytest.raises(ValidationError):
            month_date_range(month)

    def test_missing_month_means_current_local_month(self, app):
        with app.app_context():
            today = local_today()
            start, end = month_date_range(None)
        assert start == today.replace(day=1)
        assert start <= today <= end

    def test_blank_month_is_treated_as_missing(self, app):
        with app.app_context():
            assert parse_month("  ") == parse_month(None)


class TestMonthArithmetic:

    def test_shift_month_crosses_year_boundaries(self):
        assert shift_month(2024, 1, -1) == (2023, 12)
        assert shift_month(2024, 12, 1) == (2025, 1)
        assert shift_month(2024, 3, -14) == (2023, 1)

    def test_recent_months_oldest_first(self):
        assert recent_months(3, until=date(2024, 2, 10)) == [(2023, 12), (2024, 1), (2024, 2)]

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"
