"""Repeating-window range builder.

Given an anchor (a period start), a cycle length and a window expressed as
day offsets from the anchor, ``predict`` returns every occurrence of the
window that falls inside a query range.  It is used for predicted periods
(window ``0 .. period_length - 1``) as well as the fertile and ovulation
windows from ``engine.windows``.

Algorithm:
1. Express ``query_from`` and ``query_to`` as (whole cycles, day-in-cycle)
   relative to the anchor, using truncating division.
2. Shift the window by the current delay.
3. If the shifted window overlaps the day-in-cycle interval, emit one range
   per whole-cycle index between the two quotients.
"""

from __future__ import annotations

import logging
from datetime import date

from period_calculator.dates import add_days, day_gap, truncated_divmod
from period_calculator.models import DateRange

logger = logging.getLogger("period_calculator.engine.predictor")

# A delay longer than this makes any shifted window meaningless.
MAX_TRUSTED_DELAY_DAYS = 7


def predict(
    is_period_prediction: bool,
    anchor: date,
    query_from: date,
    query_to: date,
    cycle_length: int,
    window_start: int,
    window_end: int,
    delay_days: int = 0,
    allow_multiple: bool = True,
) -> list[DateRange]:
    """Build the occurrences of a cycle window that intersect a query range.

    Args:
        is_period_prediction: True for predicted periods; an occurrence
                              starting exactly on the anchor is then skipped.
        anchor:               Period start the offsets are relative to.
        query_from:           First day of the query range.
        query_to:             Last day of the query range.
        cycle_length:         Repeat interval in days (0 is treated as 1).
        window_start:         Zero-based offset of the window's first day.
        window_end:           Zero-based offset of the window's last day.
        delay_days:           Current delay; shifts the window later.
        allow_multiple:       If False, only the first cycle index is used.

    Returns:
        Ranges in ascending order.  Empty when the delay exceeds
        ``MAX_TRUSTED_DELAY_DAYS`` or the window misses the query.

    Raises:
        ValueError: If ``cycle_length`` is negative.
    """
    if cycle_length < 0:
        raise ValueError(f"cycle_length must be >= 0, got {cycle_length}")
    period = cycle_length or 1

    if delay_days > MAX_TRUSTED_DELAY_DAYS:
        return []

    quotient_start, remainder_start = truncated_divmod(day_gap(anchor, query_from), period)
    quotient_end, remainder_end = truncated_divmod(day_gap(anchor, query_to), period)

    # Query wraps into the next cycle: search from the cycle start.
    if remainder_end < remainder_start:
        remainder_start = 0

    start = window_start + delay_days
    end = window_end + delay_days

    overlaps = (
        remainder_start <= start <= remainder_end
        or remainder_start <= end <= remainder_end
        or (start <= remainder_start and remainder_end <= end)
    )
    if not overlaps:
        return []

    ranges: list[DateRange] = []
    for index in range(quotient_start, quotient_end + 1):
        offset = period * index
        candidate_start = add_days(anchor, offset + start)
        candidate_end = add_days(anchor, offset + end)

        if candidate_end < anchor:
            logger.debug(
                "Window %d..%d of a %d-day cycle ends before anchor %s; dropping all",
                start, end, period, anchor,
            )
            return []

        if candidate_start < anchor:
            ranges.append(DateRange(anchor, candidate_end))
        elif not (is_period_prediction and candidate_start == anchor):
            ranges.append(DateRange(candidate_start, candidate_end))

        if not allow_multiple:
            break

    return ranges
