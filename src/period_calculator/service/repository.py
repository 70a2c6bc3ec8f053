"""Storage contract for the calendar service, plus an in-memory adapter.

A repository instance is scoped to one user.  Storage backends subclass
``PeriodDataRepository`` and return the canonical models from
``period_calculator.models``; the engine never talks to storage directly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable

from period_calculator.models import (
    OvulationTestResult,
    PeriodRecord,
    PeriodSettings,
    PillPackage,
    PillSettings,
    PregnancyInfo,
    UserOvulationDay,
)

logger = logging.getLogger("period_calculator.service.repository")


class PeriodDataRepository(ABC):
    """Abstract read interface over one user's cycle data.

    Subclasses must implement every method.  Date-range arguments are
    inclusive on both ends.
    """

    @abstractmethod
    async def get_periods(self, date_from: date, date_to: date) -> list[PeriodRecord]:
        """Return records overlapping ``[date_from, date_to]``, sorted by start."""

    @abstractmethod
    async def get_latest_period(self) -> PeriodRecord | None:
        """Return the record with the latest start date."""

    @abstractmethod
    async def get_last_period_before(self, day: date) -> PeriodRecord | None:
        """Return the latest record starting on or before ``day``."""

    @abstractmethod
    async def get_first_period_after(self, day: date) -> PeriodRecord | None:
        """Return the earliest record starting on or after ``day``."""

    @abstractmethod
    async def get_period_settings(self) -> PeriodSettings | None:
        """Return stored cycle settings, or None if the user has none."""

    @abstractmethod
    async def get_ovulation_tests(
        self, date_from: date, date_to: date
    ) -> list[OvulationTestResult]:
        """Return ovulation test readings dated within the range."""

    @abstractmethod
    async def get_user_ovulation_days(
        self, date_from: date, date_to: date
    ) -> list[UserOvulationDay]:
        """Return user-marked ovulation days within the range."""

    @abstractmethod
    async def get_pill_packages(self) -> list[PillPackage]:
        """Return all pill packages, sorted by start."""

    @abstractmethod
    async def get_pill_settings(self) -> PillSettings | None:
        """Return stored pill settings, or None if the user has none."""

    @abstractmethod
    async def get_active_pregnancy(self) -> PregnancyInfo | None:
        """Return the pregnancy that is neither ended, miscarried nor deleted."""


class InMemoryPeriodRepository(PeriodDataRepository):
    """Repository backed by plain lists.

    Used by tests and by callers that already hold the user's data in
    memory.

    Usage::

        repo = InMemoryPeriodRepository(periods=[PeriodRecord(d1, d2)])
        repo.add_period(PeriodRecord(d3, d4))
        service = CycleCalendarService(repo)
    """

    def __init__(
        self,
        periods: Iterable[PeriodRecord] = (),
        period_settings: PeriodSettings | None = None,
        ovulation_tests: Iterable[OvulationTestResult] = (),
        user_ovulation_days: Iterable[UserOvulationDay] = (),
        pill_packages: Iterable[PillPackage] = (),
        pill_settings: PillSettings | None = None,
        pregnancies: Iterable[PregnancyInfo] = (),
    ) -> None:
        self._periods: list[PeriodRecord] = sorted(periods, key=lambda r: r.start_date)
        self._period_settings = period_settings
        self._ovulation_tests = list(ovulation_tests)
        self._user_ovulation_days = list(user_ovulation_days)
        self._pill_packages = sorted(pill_packages, key=lambda p: p.package_start)
        self._pill_settings = pill_settings
        self._pregnancies = list(pregnancies)

    # ------------------------------------------------------------------
    # Mutation helpers
    # ------------------------------------------------------------------

    def add_period(self, record: PeriodRecord) -> None:
        self._periods.append(record)
        self._periods.sort(key=lambda r: r.start_date)
        logger.debug("Added period %s..%s", record.start_date, record.end_date)

    def add_ovulation_test(self, result: OvulationTestResult) -> None:
        self._ovulation_tests.append(result)

    def add_user_ovulation_day(self, day: UserOvulationDay) -> None:
        self._user_ovulation_days.append(day)

    def add_pill_package(self, package: PillPackage) -> None:
        self._pill_packages.append(package)
        self._pill_packages.sort(key=lambda p: p.package_start)

    def add_pregnancy(self, pregnancy: PregnancyInfo) -> None:
        self._pregnancies.append(pregnancy)

    def set_period_settings(self, settings: PeriodSettings) -> None:
        self._period_settings = settings

    def set_pill_settings(self, settings: PillSettings) -> None:
        self._pill_settings = settings

    # ------------------------------------------------------------------
    # PeriodDataRepository
    # ------------------------------------------------------------------

    async def get_periods(self, date_from: date, date_to: date) -> list[PeriodRecord]:
        return [
            r for r in self._periods
            if r.start_date <= date_to and r.end_date >= date_from
        ]

    async def get_latest_period(self) -> PeriodRecord | None:
        return self._periods[-1] if self._periods else None

    async def get_last_period_before(self, day: date) -> PeriodRecord | None:
        earlier = [r for r in self._periods if r.start_date <= day]
        return earlier[-1] if earlier else None

    async def get_first_period_after(self, day: date) -> PeriodRecord | None:
        return next((r for r in self._periods if r.start_date >= day), None)

    async def get_period_settings(self) -> PeriodSettings | None:
        return self._period_settings

    async def get_ovulation_tests(
        self, date_from: date, date_to: date
    ) -> list[OvulationTestResult]:
        return [t for t in self._ovulation_tests if date_from <= t.date <= date_to]

    async def get_user_ovulation_days(
        self, date_from: date, date_to: date
    ) -> list[UserOvulationDay]:
        return [d for d in self._user_ovulation_days if date_from <= d.date <= date_to]

    async def get_pill_packages(self) -> list[PillPackage]:
        return list(self._pill_packages)

    async def get_pill_settings(self) -> PillSettings | None:
        return self._pill_settings

    async def get_active_pregnancy(self) -> PregnancyInfo | None:
        return next((p for p in self._pregnancies if p.is_active), None)
