"""Ovulation data from positive tests and user-entered days.

Both sources are merged into one set of dates.  Whenever a cycle has any
such date the orchestrator uses it instead of the computed window; the two
never coexist for a cycle.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from period_calculator.dates import add_days
from period_calculator.models import DateRange, OvulationTestResult, UserOvulationDay

# Fertile window around an observed ovulation: two days before, one after.
FERTILE_DAYS_BEFORE_OVULATION = 2
FERTILE_DAYS_AFTER_OVULATION = 1


def combine_ovulation_dates(
    tests: Iterable[OvulationTestResult],
    user_days: Iterable[UserOvulationDay],
    date_from: date,
    date_to: date,
) -> list[date]:
    """Sorted, de-duplicated positive-test and user dates in ``[date_from, date_to]``."""
    combined = {t.date for t in tests if t.is_positive and date_from <= t.date <= date_to}
    combined.update(d.date for d in user_days if date_from <= d.date <= date_to)
    return sorted(combined)


def compress_to_ranges(sorted_dates: Iterable[date]) -> list[DateRange]:
    """Collapse runs of consecutive days into single ranges."""
    ranges: list[DateRange] = []
    for day in sorted_dates:
        if ranges and add_days(ranges[-1].end_date, 1) == day:
            ranges[-1] = DateRange(ranges[-1].start_date, day)
        else:
            ranges.append(DateRange(day, day))
    return ranges


def fertile_from_ovulation(ovulation_ranges: Iterable[DateRange]) -> list[DateRange]:
    return [
        DateRange(
            add_days(r.start_date, -FERTILE_DAYS_BEFORE_OVULATION),
            add_days(r.end_date, FERTILE_DAYS_AFTER_OVULATION),
        )
        for r in ovulation_ranges
    ]
