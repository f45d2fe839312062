"""Month-length-safe date arithmetic"""

import calendar
from datetime import date, datetime
from typing import Tuple

from fatura_gateway.domain.exceptions import InvalidRecordDataError


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the month (1-12), leap years included"""
    return calendar.monthrange(year, month)[1]


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, pulling the day back to the month's last day when it overflows"""
    return date(year, month, min(day, last_day_of_month(year, month)))


def add_months(year: int, month: int, n: int) -> Tuple[int, int]:
    """Shift a (year, month) pair by n months, rolling the year over"""
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    return add_months(year, month, 1)


def shift_date(value: date, n: int, day: int | None = None) -> date:
    """
    Move a date n months forward (or back), keeping its day or using `day`.

    The day is clamped to the target month, so Jan 31 + 1 month is Feb 28/29.
    """
    year, month = add_months(value.year, value.month, n)
    return clamped_date(year, month, day if day is not None else value.day)


def parse_iso_date(value: object) -> date:
    """
    Parse a persisted date value.

    Accepts date/datetime objects and ISO strings ("2025-06-10", optionally
    followed by a "T" or space separated time part). Anything else is a
    data-integrity fault.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            if text[10:11] not in ("T", " "):
                raise ValueError("date must be followed by a time part")
            return datetime.fromisoformat(text).date()
        except ValueError as e:
            raise InvalidRecordDataError(f"Invalid date: {value!r}") from e
    raise InvalidRecordDataError(f"Invalid date: {value!r}")
