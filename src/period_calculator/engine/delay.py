"""Period delay detection.

A delay only exists relative to "today": a query entirely in the past or
future reports none.  ``today`` is always passed in explicitly so results
stay deterministic.
"""

from __future__ import annotations

from datetime import date

from period_calculator.dates import add_days, day_gap
from period_calculator.models import DateRange


def delay_days(
    anchor: date,
    query_from: date,
    query_to: date,
    today: date,
    cycle_length: int,
) -> int:
    """Return how many days the next period is overdue.

    Args:
        anchor:       Start of the last recorded period.
        query_from:   First day of the evaluated range.
        query_to:     Last day of the evaluated range.
        today:        Reference "today".
        cycle_length: Expected cycle length.

    Returns:
        0 when today is outside the query or the expected period has not
        been reached, otherwise the number of days counted from the
        expected start (the expected day itself counts as day 1).
    """
    if not query_from <= today <= query_to:
        return 0

    if day_gap(anchor, query_to) + 1 <= cycle_length:
        return 0

    elapsed = day_gap(anchor, today)
    if elapsed >= cycle_length - 1:
        return elapsed - cycle_length + 1
    return 0


def delay_range(
    anchor: date,
    query_from: date,
    cycle_length: int,
    delay: int,
    today: date,
) -> DateRange | None:
    """Return the overdue days as a range, or None when there is no delay."""
    if delay <= 0:
        return None
    if query_from > today:
        return None
    start = add_days(anchor, cycle_length)
    return DateRange(start, add_days(start, delay - 1))
