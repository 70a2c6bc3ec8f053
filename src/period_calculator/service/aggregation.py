"""Calendar aggregation service.

The only async, storage-facing layer.  It gathers one user's data from a
``PeriodDataRepository``, fills in configured defaults, and hands a
``CycleInput`` to the synchronous engine:

1. Load periods overlapping the range plus the nearest records on either
   side, skipping records logged during an active pregnancy.
2. Load settings, ovulation data and (only when pill calculation is on)
   pill packages, issuing independent reads concurrently.
3. Run the engine with a single "today" taken from the injected clock.

Usage::

    service = CycleCalendarService(InMemoryPeriodRepository(periods=records))
    cycles = await service.compute_cycles(date(2025, 1, 1), date(2025, 2, 28))
    overview = await service.month_overview(2025, 2)
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date

from period_calculator.boundary import CycleQuery, DateLike, coerce_date
from period_calculator.config_loader import CalculatorConfig, get_calculator_config
from period_calculator.dates import Clock, add_days, iter_days, utc_today
from period_calculator.engine.orchestrator import CycleOrchestrator, next_period_estimate
from period_calculator.engine.pregnancy import periods_outside_pregnancy
from period_calculator.models import (
    CalendarDayStatus,
    CycleInput,
    CycleResult,
    DateRange,
    DayClassification,
    PeriodRecord,
    PillPackage,
    PregnancyInfo,
)
from period_calculator.service.repository import PeriodDataRepository

logger = logging.getLogger("period_calculator.service.aggregation")


@dataclass
class MonthOverview:
    """Cycles and per-day statuses for one calendar month.

    Attributes:
        year:     Calendar year.
        month:    Calendar month (1-12).
        cycles:   Cycle results covering the month.
        statuses: Status of every day in the month.
    """

    year: int
    month: int
    cycles: list[CycleResult] = field(default_factory=list)
    statuses: dict[date, CalendarDayStatus] = field(default_factory=dict)

    def status_for(self, day: date) -> CalendarDayStatus | None:
        return self.statuses.get(day)

    def _days_classified(self, *classifications: DayClassification) -> list[date]:
        return sorted(d for d, s in self.statuses.items() if s.classification in classifications)

    def period_dates(self) -> list[date]:
        """Recorded period days only."""
        return self._days_classified(DayClassification.PERIOD_DAY)

    def predicted_period_dates(self) -> list[date]:
        return self._days_classified(DayClassification.PREDICTED_PERIOD)

    def ovulation_dates(self) -> list[date]:
        return self._days_classified(DayClassification.OVULATION)

    def fertile_dates(self) -> list[date]:
        return self._days_classified(DayClassification.FERTILE_WINDOW)


class CycleCalendarService:
    """Answer calendar questions for one user's repository.

    Args:
        repository: Data source for the user.
        config:     Calculator config; the global singleton by default.
        clock:      Returns "today"; UTC date by default.
    """

    def __init__(
        self,
        repository: PeriodDataRepository,
        config: CalculatorConfig | None = None,
        clock: Clock = utc_today,
    ) -> None:
        self._repository = repository
        self._config = config or get_calculator_config()
        self._clock = clock

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_input(self, date_from: DateLike, date_to: DateLike) -> CycleInput:
        """Collect everything the engine needs for ``[date_from, date_to]``.

        Both ends may be given in any form ``coerce_date`` accepts.

        Raises:
            DateInputError: If either end cannot be resolved to a date.
            ValueError: If ``date_from`` is after ``date_to``.
            Exception:  Any repository failure, logged and re-raised.
        """
        date_from, date_to = coerce_date(date_from), coerce_date(date_to)
        if date_from > date_to:
            raise ValueError(f"date_from {date_from} is after date_to {date_to}")

        repo = self._repository
        try:
            (
                overlapping,
                period_settings,
                pill_settings,
                pregnancy,
                look_back,
                look_ahead,
            ) = await asyncio.gather(
                repo.get_periods(date_from, date_to),
                repo.get_period_settings(),
                repo.get_pill_settings(),
                repo.get_active_pregnancy(),
                repo.get_last_period_before(date_from),
                repo.get_first_period_after(date_to),
            )

            look_back = await self._look_back_outside_pregnancy(look_back, pregnancy)
            look_ahead = await self._look_ahead_outside_pregnancy(look_ahead, pregnancy)

            pill_settings = pill_settings or self._config.pill_settings()
            ovulation_from = min(date_from, look_back.start_date) if look_back else date_from
            tests, user_days, packages = await asyncio.gather(
                repo.get_ovulation_tests(ovulation_from, date.max),
                repo.get_user_ovulation_days(ovulation_from, date.max),
                self._pill_packages(pill_settings.use_for_calculation),
            )
        except Exception as exc:
            logger.error("Loading cycle data for %s..%s failed: %s", date_from, date_to, exc)
            raise

        records = set(overlapping)
        records.update(r for r in (look_back, look_ahead) if r is not None)
        periods = sorted(records, key=lambda r: (r.start_date, r.end_date))
        logger.debug(
            "Loaded %d periods, %d tests, %d user days, %d pill packs for %s..%s",
            len(periods), len(tests), len(user_days), len(packages), date_from, date_to,
        )

        return CycleInput(
            periods=periods,
            period_settings=period_settings or self._config.period_settings(),
            ovulation_tests=tests,
            user_ovulation_days=user_days,
            pill_packages=packages,
            pill_settings=pill_settings,
            pregnancy=pregnancy,
        )

    async def _pill_packages(self, enabled: bool) -> list[PillPackage]:
        if not enabled:
            return []
        return await self._repository.get_pill_packages()

    async def _look_back_outside_pregnancy(
        self,
        record: PeriodRecord | None,
        pregnancy: PregnancyInfo | None,
    ) -> PeriodRecord | None:
        """Step back past a record logged during the pregnancy."""
        if record is None or periods_outside_pregnancy([record], pregnancy):
            return record
        return await self._repository.get_last_period_before(
            add_days(pregnancy.start_date, -1)
        )

    async def _look_ahead_outside_pregnancy(
        self,
        record: PeriodRecord | None,
        pregnancy: PregnancyInfo | None,
    ) -> PeriodRecord | None:
        """Step forward past a record logged during the pregnancy."""
        if record is None or periods_outside_pregnancy([record], pregnancy):
            return record
        if pregnancy.due_date is None:
            return None
        return await self._repository.get_first_period_after(add_days(pregnancy.due_date, 1))

    def _orchestrator(self, data: CycleInput) -> CycleOrchestrator:
        return CycleOrchestrator(data, today=self._clock())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def compute_cycles(self, date_from: DateLike, date_to: DateLike) -> list[CycleResult]:
        date_from, date_to = coerce_date(date_from), coerce_date(date_to)
        data = await self.load_input(date_from, date_to)
        return self._orchestrator(data).compute_cycles(date_from, date_to)

    async def query_cycles(self, query: CycleQuery | dict) -> list[CycleResult]:
        """Cycles for a caller-supplied query, validated as a ``CycleQuery``."""
        if not isinstance(query, CycleQuery):
            query = CycleQuery.model_validate(query)
        return await self.compute_cycles(query.date_from, query.date_to)

    async def status_on(self, day: DateLike) -> CalendarDayStatus:
        """Status of a single day, with records loaded around it."""
        day = coerce_date(day)
        lookaround = self._config.aggregation.status_lookaround_days
        data = await self.load_input(add_days(day, -lookaround), add_days(day, lookaround))
        return self._orchestrator(data).status_on_date(day)

    async def month_overview(self, year: int, month: int) -> MonthOverview:
        """Cycles plus the status of every day of a month.

        Day statuses are computed concurrently, at most
        ``aggregation.max_concurrent`` at a time.
        """
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        lookaround = self._config.aggregation.status_lookaround_days
        data = await self.load_input(add_days(first, -lookaround), add_days(last, lookaround))
        orchestrator = self._orchestrator(data)

        semaphore = asyncio.Semaphore(self._config.aggregation.max_concurrent)

        async def _status(day: date) -> tuple[date, CalendarDayStatus]:
            async with semaphore:
                return day, await asyncio.to_thread(orchestrator.status_on_date, day)

        days = list(iter_days(first, last))
        results = await asyncio.gather(*(_status(d) for d in days), return_exceptions=True)

        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            logger.error(
                "month_overview %04d-%02d: %d of %d day statuses failed: %s",
                year, month, len(failures), len(days), failures[0],
            )
            raise failures[0]

        overview = MonthOverview(
            year=year,
            month=month,
            cycles=orchestrator.compute_cycles(first, last),
            statuses=dict(results),
        )
        logger.info(
            "month_overview %04d-%02d: %d cycles, %d period days, %d predicted",
            year, month, len(overview.cycles), len(overview.period_dates()),
            len(overview.predicted_period_dates()),
        )
        return overview

    async def next_period(self) -> DateRange | None:
        """Quick estimate from the latest record and the user's settings."""
        latest, settings = await asyncio.gather(
            self._repository.get_latest_period(),
            self._repository.get_period_settings(),
        )
        if latest is None:
            return None
        return next_period_estimate([latest], settings or self._config.period_settings())
