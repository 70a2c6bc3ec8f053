"""Async service layer over the prediction engine.

Modules:
    repository  — PeriodDataRepository ABC and the in-memory adapter
    aggregation — CycleCalendarService: load, compute, month overview
"""

from period_calculator.service.aggregation import CycleCalendarService, MonthOverview
from period_calculator.service.repository import InMemoryPeriodRepository, PeriodDataRepository

__all__ = [
    "CycleCalendarService",
    "MonthOverview",
    "PeriodDataRepository",
    "InMemoryPeriodRepository",
]
