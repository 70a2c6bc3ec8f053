"""Period Calculator.

Predicts menstrual periods, ovulation and fertile windows from recorded
periods, ovulation tests, user-marked ovulation days, contraceptive pill
packs and pregnancy records, and classifies individual calendar days.

Subpackages:
    engine/  — Pure prediction engine (no I/O)
    service/ — Async repository contract and calendar aggregation service

Core modules:
    models        — Canonical input / output dataclasses
    dates         — Day-count arithmetic
    boundary      — ISO-8601 / Julian day date input
    config        — Environment settings (pydantic-settings)
    config_loader — Load/validate/hot-reload calculator_config.yaml
"""

from period_calculator.engine import (
    CycleOrchestrator,
    compute_cycles,
    next_period_estimate,
    status_on_date,
)
from period_calculator.models import (
    CalendarDayStatus,
    CycleInput,
    CycleResult,
    DateRange,
    DayClassification,
    PeriodRecord,
    PeriodSettings,
    PregnancyProbability,
)

__version__ = "0.1.0"

__all__ = [
    "CycleOrchestrator",
    "compute_cycles",
    "status_on_date",
    "next_period_estimate",
    "CycleInput",
    "CycleResult",
    "CalendarDayStatus",
    "DateRange",
    "DayClassification",
    "PeriodRecord",
    "PeriodSettings",
    "PregnancyProbability",
]
