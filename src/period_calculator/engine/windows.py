"""Fixed day offsets of the fertile and ovulation windows within a cycle.

Offsets are zero-based from the period start.  Cycles in the standard band
(26–32 days) share one window; outside it the window tracks the end of the
cycle, since the luteal phase is roughly constant.  Very short cycles would
produce negative offsets, which are clamped to the period start.
"""

from __future__ import annotations

STANDARD_CYCLE_MIN = 26
STANDARD_CYCLE_MAX = 32

# Cycle days 8–19 and 13–15 (one-based) inside the standard band.
STANDARD_FERTILE_OFFSETS = (7, 18)
STANDARD_OVULATION_OFFSETS = (12, 14)


def is_standard_cycle(cycle_length: int) -> bool:
    return STANDARD_CYCLE_MIN <= cycle_length <= STANDARD_CYCLE_MAX


def _clamp(start: int, end: int) -> tuple[int, int]:
    return max(start, 0), max(end, 0)


def fertile_window_offsets(cycle_length: int) -> tuple[int, int]:
    """Return ``(start_offset, end_offset)`` of the fertile window."""
    if is_standard_cycle(cycle_length):
        return STANDARD_FERTILE_OFFSETS
    return _clamp(cycle_length - 19, cycle_length - 11)


def ovulation_window_offsets(cycle_length: int) -> tuple[int, int]:
    """Return ``(start_offset, end_offset)`` of the ovulation window."""
    if is_standard_cycle(cycle_length):
        return STANDARD_OVULATION_OFFSETS
    return _clamp(cycle_length - 16, cycle_length - 14)
