"""Day-count arithmetic shared by the prediction engine.

``datetime.date`` is proleptic Gregorian and its ordinal is a continuous
day count, so all arithmetic here is plain integer math on days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], date]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def day_gap(start: date, end: date) -> int:
    """Signed number of days from ``start`` to ``end`` (``end - start``)."""
    return (end - start).days


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def truncated_divmod(dividend: int, divisor: int) -> tuple[int, int]:
    """Integer division rounding toward zero.

    Unlike ``divmod``, a negative dividend gives a non-positive quotient and
    a remainder carrying the dividend's sign: ``(-4, 28) -> (0, -4)``.
    Cycle-index arithmetic relies on this when a query starts before the
    anchor date.
    """
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        quotient = -quotient
    return quotient, dividend - divisor * quotient


def truncated_mod(dividend: int, divisor: int) -> int:
    return truncated_divmod(dividend, divisor)[1]


def iter_days(start: date, end: date):
    """Yield every day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
