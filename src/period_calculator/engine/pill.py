"""Combined oral contraceptive rules.

On the pill, bleeding is a withdrawal bleed during the pill-free interval
rather than a menstrual period, and ovulation is suppressed.  A pack only
counts once it was started far enough ahead of the next period
(``MIN_PILL_LEAD_DAYS``).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from period_calculator.dates import add_days, day_gap
from period_calculator.models import PillPackage, PillSettings

MIN_PILL_LEAD_DAYS = 5
# Withdrawal bleed is expected from the third pill-free day.
WITHDRAWAL_BLEED_ONSET_DAYS = 2
WITHDRAWAL_BLEED_LENGTH_DAYS = 5


def _packages_from(start: date, packages: Iterable[PillPackage]) -> list[PillPackage]:
    return sorted(
        (p for p in packages if p.package_start >= start),
        key=lambda p: p.package_start,
    )


def pill_active_between(
    cycle_start: date,
    next_cycle_start: date,
    packages: Iterable[PillPackage],
) -> bool:
    """Return True if a pack started in ``[cycle_start, next_cycle_start)``
    at least ``MIN_PILL_LEAD_DAYS`` before the next period."""
    in_cycle = [p for p in _packages_from(cycle_start, packages) if p.package_start < next_cycle_start]
    if not in_cycle:
        return False
    return day_gap(in_cycle[0].package_start, next_cycle_start) >= MIN_PILL_LEAD_DAYS


def pill_based_predict_date(
    cycle_start: date,
    packages: Iterable[PillPackage],
    settings: PillSettings,
) -> date | None:
    """Predicted withdrawal-bleed start for the cycle beginning at ``cycle_start``.

    Returns None when no pack was started in this cycle, when the first pack
    started too close to the normally expected period, or when the pill is
    taken continuously (no rest days).
    """
    if settings.rest_days == 0:
        return None

    after_start = _packages_from(cycle_start, packages)
    if not after_start:
        return None

    normal_predict_date = add_days(cycle_start, settings.total_cycle_days)
    if day_gap(after_start[0].package_start, normal_predict_date) < MIN_PILL_LEAD_DAYS:
        return None
    return add_days(
        after_start[-1].package_start,
        settings.active_pill_count + WITHDRAWAL_BLEED_ONSET_DAYS,
    )


def pill_active_on_date(
    day: date,
    packages: Iterable[PillPackage],
    settings: PillSettings,
) -> bool:
    """True if ``day`` is an active-pill day of some pack."""
    if not settings.use_for_calculation:
        return False
    for package in packages:
        last_active = add_days(package.package_start, settings.active_pill_count - 1)
        if package.package_start <= day <= last_active:
            return True
    return False


def remaining_rest_days(today: date, packages: Iterable[PillPackage]) -> int | None:
    """Pill-free days left in the pack covering ``today``.

    Returns 0 on an active-pill day, the remaining rest days (today
    included) during the pill-free interval, and None if no pack covers
    ``today``.
    """
    for package in packages:
        package_end = add_days(package.package_start, package.total_cycle_days - 1)
        if not package.package_start <= today <= package_end:
            continue
        day_in_package = day_gap(package.package_start, today) + 1
        if day_in_package > package.active_pill_count:
            return package.rest_days - (day_in_package - package.active_pill_count) + 1
        return 0
    return None
