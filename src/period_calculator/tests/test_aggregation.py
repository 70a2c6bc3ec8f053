"""Tests for the repository adapter and the async calendar service."""

from __future__ import annotations

from datetime import date

import pytest

from period_calculator.boundary import DateInputError, IsoDateInput, to_julian_day
from period_calculator.config_loader import CalculatorConfig
from period_calculator.models import (
    DateRange,
    DayClassification,
    PeriodRecord,
    PillPackage,
    PregnancyInfo,
    UserOvulationDay,
)
from period_calculator.service.aggregation import CycleCalendarService
from period_calculator.service.repository import InMemoryPeriodRepository
from period_calculator.tests.conftest import (
    QUERY_FROM,
    QUERY_TO,
    TEST_TODAY,
    make_period,
    make_settings,
)


def fixed_clock() -> date:
    return TEST_TODAY


@pytest.fixture
def repository(anchor_record: PeriodRecord) -> InMemoryPeriodRepository:
    return InMemoryPeriodRepository(periods=[anchor_record], period_settings=make_settings(28, 5))


@pytest.fixture
def service(
    repository: InMemoryPeriodRepository, calculator_config: CalculatorConfig
) -> CycleCalendarService:
    return CycleCalendarService(repository, config=calculator_config, clock=fixed_clock)


class FailingRepository(InMemoryPeriodRepository):
    async def get_periods(self, date_from: date, date_to: date) -> list[PeriodRecord]:
        raise RuntimeError("storage unavailable")


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------


class TestInMemoryRepository:
    @pytest.mark.asyncio
    async def test_periods_overlapping_range(self) -> None:
        r1 = make_period(date(2025, 1, 5), date(2025, 1, 9))
        r2 = make_period(date(2025, 2, 2), date(2025, 2, 6))
        repo = InMemoryPeriodRepository(periods=[r2, r1])
        assert await repo.get_periods(date(2025, 1, 9), date(2025, 1, 31)) == [r1]
        assert await repo.get_periods(QUERY_FROM, QUERY_TO) == [r1, r2]

    @pytest.mark.asyncio
    async def test_neighbour_lookups(self) -> None:
        r1 = make_period(date(2025, 1, 5), date(2025, 1, 9))
        r2 = make_period(date(2025, 2, 2), date(2025, 2, 6))
        repo = InMemoryPeriodRepository(periods=[r1, r2])
        assert await repo.get_last_period_before(date(2025, 2, 1)) == r1
        assert await repo.get_last_period_before(date(2025, 2, 2)) == r2
        assert await repo.get_first_period_after(date(2025, 1, 6)) == r2
        assert await repo.get_first_period_after(date(2025, 2, 3)) is None
        assert await repo.get_latest_period() == r2

    @pytest.mark.asyncio
    async def test_active_pregnancy_skips_ended(self) -> None:
        ended = PregnancyInfo(start_date=date(2023, 5, 1), is_ended=True)
        active = PregnancyInfo(start_date=date(2025, 3, 1))
        repo = InMemoryPeriodRepository(pregnancies=[ended, active])
        assert await repo.get_active_pregnancy() == active

    @pytest.mark.asyncio
    async def test_mutation_helpers(self) -> None:
        repo = InMemoryPeriodRepository()
        repo.add_period(make_period(date(2025, 2, 2), date(2025, 2, 6)))
        repo.add_period(make_period(date(2025, 1, 5), date(2025, 1, 9)))
        repo.add_user_ovulation_day(UserOvulationDay(date(2025, 1, 18)))
        latest = await repo.get_latest_period()
        assert latest.start_date == date(2025, 2, 2)
        assert len(await repo.get_user_ovulation_days(QUERY_FROM, QUERY_TO)) == 1


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadInput:
    @pytest.mark.asyncio
    async def test_defaults_from_config(self, calculator_config: CalculatorConfig) -> None:
        repo = InMemoryPeriodRepository(periods=[make_period(date(2025, 1, 5), date(2025, 1, 9))])
        service = CycleCalendarService(repo, config=calculator_config, clock=fixed_clock)
        data = await service.load_input(QUERY_FROM, QUERY_TO)
        assert data.period_settings.cycle_length == 30
        assert not data.pill_settings.use_for_calculation

    @pytest.mark.asyncio
    async def test_pill_packages_only_loaded_when_enabled(
        self, service: CycleCalendarService, repository: InMemoryPeriodRepository
    ) -> None:
        repository.add_pill_package(PillPackage(date(2025, 1, 8)))
        data = await service.load_input(QUERY_FROM, QUERY_TO)
        assert data.pill_packages == ()

    @pytest.mark.asyncio
    async def test_look_back_skips_records_during_pregnancy(
        self, calculator_config: CalculatorConfig
    ) -> None:
        before = make_period(date(2025, 2, 1), date(2025, 2, 5), "before")
        during = make_period(date(2025, 5, 10), date(2025, 5, 12), "during")
        repo = InMemoryPeriodRepository(
            periods=[before, during],
            pregnancies=[PregnancyInfo(start_date=date(2025, 3, 1), due_date=date(2025, 12, 6))],
        )
        service = CycleCalendarService(repo, config=calculator_config, clock=fixed_clock)
        data = await service.load_input(date(2025, 6, 1), date(2025, 6, 30))
        assert [r.record_id for r in data.periods] == ["before"]

    @pytest.mark.asyncio
    async def test_reversed_range(self, service: CycleCalendarService) -> None:
        with pytest.raises(ValueError):
            await service.load_input(QUERY_TO, QUERY_FROM)

    @pytest.mark.asyncio
    async def test_repository_failure_propagates(self, calculator_config: CalculatorConfig) -> None:
        service = CycleCalendarService(FailingRepository(), config=calculator_config, clock=fixed_clock)
        with pytest.raises(RuntimeError, match="storage unavailable"):
            await service.load_input(QUERY_FROM, QUERY_TO)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestCalendarQueries:
    @pytest.mark.asyncio
    async def test_compute_cycles(self, service: CycleCalendarService) -> None:
        (result,) = await service.compute_cycles(QUERY_FROM, QUERY_TO)
        assert result.predicted_periods == (DateRange(date(2025, 2, 2), date(2025, 2, 6)),)
        assert result.ovulation_ranges[0] == DateRange(date(2025, 1, 17), date(2025, 1, 19))

    @pytest.mark.asyncio
    async def test_status_on(self, service: CycleCalendarService) -> None:
        status = await service.status_on(date(2025, 1, 18))
        assert status.classification is DayClassification.OVULATION

    @pytest.mark.asyncio
    async def test_compute_cycles_accepts_boundary_forms(self, service: CycleCalendarService) -> None:
        expected = await service.compute_cycles(QUERY_FROM, QUERY_TO)
        assert await service.compute_cycles("2025-01-01", to_julian_day(QUERY_TO)) == expected
        assert (
            await service.compute_cycles(
                IsoDateInput(value="2025-01-01"), {"kind": "date", "value": QUERY_TO}
            )
            == expected
        )

    @pytest.mark.asyncio
    async def test_query_cycles(self, service: CycleCalendarService) -> None:
        (result,) = await service.query_cycles(
            {
                "query_from": {"kind": "iso8601", "value": "2025-01-01"},
                "query_to": {"kind": "julian_day", "value": to_julian_day(QUERY_TO)},
            }
        )
        assert result.predicted_periods == (DateRange(date(2025, 2, 2), date(2025, 2, 6)),)

    @pytest.mark.asyncio
    async def test_status_on_iso_string(self, service: CycleCalendarService) -> None:
        status = await service.status_on("2025-01-18")
        assert status.classification is DayClassification.OVULATION

    @pytest.mark.asyncio
    async def test_malformed_date_rejected(self, service: CycleCalendarService) -> None:
        with pytest.raises(DateInputError):
            await service.status_on("18/01/2025")
        with pytest.raises(DateInputError):
            await service.load_input({"kind": "unix", "value": 0}, QUERY_TO)

    @pytest.mark.asyncio
    async def test_next_period(self, service: CycleCalendarService) -> None:
        assert await service.next_period() == DateRange(date(2025, 2, 2), date(2025, 2, 6))

    @pytest.mark.asyncio
    async def test_next_period_uses_config_defaults(self, calculator_config: CalculatorConfig) -> None:
        repo = InMemoryPeriodRepository(periods=[make_period(date(2025, 1, 5), date(2025, 1, 9))])
        service = CycleCalendarService(repo, config=calculator_config, clock=fixed_clock)
        assert await service.next_period() == DateRange(date(2025, 2, 4), date(2025, 2, 8))

    @pytest.mark.asyncio
    async def test_next_period_without_records(self, calculator_config: CalculatorConfig) -> None:
        service = CycleCalendarService(InMemoryPeriodRepository(), config=calculator_config)
        assert await service.next_period() is None


class TestMonthOverview:
    @pytest.mark.asyncio
    async def test_january(self, service: CycleCalendarService) -> None:
        overview = await service.month_overview(2025, 1)

        assert len(overview.statuses) == 31
        assert overview.status_for(date(2025, 1, 7)).classification is DayClassification.PERIOD_DAY
        assert overview.status_for(date(2025, 2, 1)) is None
        assert overview.period_dates() == [date(2025, 1, d) for d in range(5, 10)]
        assert overview.ovulation_dates() == [date(2025, 1, d) for d in (17, 18, 19)]
        assert overview.fertile_dates() == [
            date(2025, 1, d) for d in (12, 13, 14, 15, 16, 20, 21, 22, 23)
        ]
        assert overview.cycles[0].record_id == "p-2025-01"

    @pytest.mark.asyncio
    async def test_february_includes_predicted_period(self, service: CycleCalendarService) -> None:
        overview = await service.month_overview(2025, 2)
        assert len(overview.statuses) == 28
        assert overview.period_dates() == []
        assert overview.predicted_period_dates() == [date(2025, 2, d) for d in range(2, 7)]
