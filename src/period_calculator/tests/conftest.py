"""Shared fixtures and canonical dates for period calculator tests."""

from __future__ import annotations

from datetime import date

import pytest

from period_calculator.config_loader import CalculatorConfig, load_calculator_config
from period_calculator.models import (
    CycleInput,
    PeriodRecord,
    PeriodSettings,
    UserOvulationDay,
)

# Canonical "today" for engine calls
TEST_TODAY = date(2025, 1, 20)

# Period 2025-01-05 .. 2025-01-09 on a 28-day cycle
ANCHOR_START = date(2025, 1, 5)
ANCHOR_END = date(2025, 1, 9)
QUERY_FROM = date(2025, 1, 1)
QUERY_TO = date(2025, 2, 28)


def make_settings(cycle_length: int = 28, period_length: int = 5) -> PeriodSettings:
    return PeriodSettings(
        manual_cycle_length=cycle_length,
        manual_period_length=period_length,
    )


def make_period(start: date, end: date, record_id: str = "") -> PeriodRecord:
    return PeriodRecord(start_date=start, end_date=end, record_id=record_id)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def calculator_config() -> CalculatorConfig:
    """Load the bundled calculator config."""
    return load_calculator_config()


# ---------------------------------------------------------------------------
# Engine input fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_28() -> PeriodSettings:
    return make_settings(28, 5)


@pytest.fixture
def anchor_record() -> PeriodRecord:
    return make_period(ANCHOR_START, ANCHOR_END, record_id="p-2025-01")


@pytest.fixture
def single_record_input(anchor_record: PeriodRecord, settings_28: PeriodSettings) -> CycleInput:
    """One recorded period, no ovulation data, no pill, no pregnancy."""
    return CycleInput(periods=[anchor_record], period_settings=settings_28)


@pytest.fixture
def two_record_input(settings_28: PeriodSettings) -> CycleInput:
    """Two recorded periods exactly 28 days apart."""
    return CycleInput(
        periods=[
            make_period(date(2025, 1, 5), date(2025, 1, 9), "p1"),
            make_period(date(2025, 2, 2), date(2025, 2, 6), "p2"),
        ],
        period_settings=settings_28,
    )


@pytest.fixture
def ovulation_only_input(settings_28: PeriodSettings) -> CycleInput:
    """No period records; one user-marked ovulation day."""
    return CycleInput(
        period_settings=settings_28,
        user_ovulation_days=[UserOvulationDay(date(2025, 1, 18))],
    )
