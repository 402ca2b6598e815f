# Overview: Calendar-month helpers shared by every month-filtered listing and report.

from __future__ import annotations

import calendar
import re
from datetime import date

from hazel.time_utils import local_today
from hazel.validation import ValidationError

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(month: str | None) -> tuple[int, int]:
    """
    'YYYY-MM' -> (year, month). None or "" -> the current month in the shop timezone.

    Raises ValidationError for anything else (including month 00 or 13).
    """
    if month is None or (isinstance(month, str) and not month.strip()):
        today = local_today()
        return today.year, today.month

    match = MONTH_RE.match(str(month).strip())
    if not match:
        raise ValidationError("month must be in YYYY-MM format")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12:
        raise ValidationError("month must be between 01 and 12")
    if year < 1:
        raise ValidationError("month has an invalid year")
    return year, month_num


def month_date_range(month: str | None) -> tuple[date, date]:
    """Inclusive [first day, last day] of the calendar month."""
    year, month_num = parse_month(month)
    last_day = calendar.monthrange(year, month_num)[1]
    return date(year, month_num, 1), date(year, month_num, last_day)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def recent_months(count: int, *, until: date | None = None) -> list[tuple[int, int]]:
    """The last `count` calendar months ending with the month of `until`, oldest first."""
    anchor = until or local_today()
    return [shift_month(anchor.year, anchor.month, -offset) for offset in range(count - 1, -1, -1)]
