"""Pregnancy interaction rules and pregnancy date helpers.

An active pregnancy ends cycle prediction: predicted ranges are cut off the
day before the pregnancy starts, and period records logged during the
pregnancy are ignored.  With a due date, the pregnancy is the closed
interval ``[start_date, due_date]`` and records or ranges after the due date
are treated as post-partum cycles again.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from period_calculator.dates import add_days, day_gap, truncated_divmod
from period_calculator.models import DateRange, PeriodRecord, PregnancyInfo

PREGNANCY_DURATION_DAYS = 280  # 40 weeks from the last menstrual period


def _overlaps_pregnancy(r: DateRange, pregnancy: PregnancyInfo) -> bool:
    if pregnancy.due_date is not None:
        return pregnancy.start_date <= r.end_date and pregnancy.due_date >= r.start_date
    return pregnancy.start_date <= r.end_date


def filter_by_pregnancy(
    ranges: Iterable[DateRange],
    pregnancy: PregnancyInfo | None,
) -> list[DateRange]:
    """Drop or truncate predicted ranges that reach into an active pregnancy.

    Ranges ending before the pregnancy are kept; ranges starting before it
    are cut to end the day before it starts; ranges starting inside it are
    dropped.  Applying the filter twice gives the same result.
    """
    if pregnancy is None or not pregnancy.is_active:
        return list(ranges)

    last_day_before = add_days(pregnancy.start_date, -1)
    kept: list[DateRange] = []
    for r in ranges:
        if not _overlaps_pregnancy(r, pregnancy):
            kept.append(r)
        elif r.start_date <= last_day_before:
            kept.append(DateRange(r.start_date, last_day_before))
    return kept


def periods_outside_pregnancy(
    records: Iterable[PeriodRecord],
    pregnancy: PregnancyInfo | None,
) -> list[PeriodRecord]:
    """Period records that do not start inside an active pregnancy."""
    if pregnancy is None or not pregnancy.is_active:
        return list(records)
    if pregnancy.due_date is not None:
        return [
            r for r in records
            if r.start_date < pregnancy.start_date or r.start_date > pregnancy.due_date
        ]
    return [r for r in records if r.start_date < pregnancy.start_date]


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def due_date_from_last_period(last_period_start: date) -> date:
    return add_days(last_period_start, PREGNANCY_DURATION_DAYS)


def last_period_from_due_date(due_date: date) -> date:
    return add_days(due_date, -PREGNANCY_DURATION_DAYS)


def weeks_and_days(last_period_start: date, current: date) -> tuple[int, int]:
    """Gestational age as (completed weeks, extra days)."""
    return truncated_divmod(day_gap(last_period_start, current), 7)


def days_until_due(due_date: date, current: date) -> int:
    return day_gap(current, due_date)


def trimester(weeks: int) -> int:
    """1, 2 or 3; 0 before the pregnancy or after week 40."""
    if weeks < 0:
        return 0
    if weeks <= 13:
        return 1
    if weeks <= 27:
        return 2
    if weeks <= 40:
        return 3
    return 0


def progress_pct(last_period_start: date, current: date) -> float:
    days = day_gap(last_period_start, current)
    return min(max(days / PREGNANCY_DURATION_DAYS * 100.0, 0.0), 100.0)


def due_date_or_estimate(pregnancy: PregnancyInfo) -> date | None:
    """The entered due date, else one estimated from the last period."""
    if pregnancy.due_date is not None:
        return pregnancy.due_date
    if pregnancy.last_period_date is not None:
        return due_date_from_last_period(pregnancy.last_period_date)
    return None
