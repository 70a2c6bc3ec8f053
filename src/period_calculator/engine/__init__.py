"""Menstrual cycle prediction engine.

Pure, synchronous functions over the canonical models.  Nothing in this
subpackage performs I/O or reads the clock except through an explicit
``today`` argument.

Modules:
    windows      — Fertile / ovulation day offsets for a cycle length
    predictor    — Repeating-window range builder
    delay        — Overdue-period detection
    ovulation    — Positive tests + user days → ovulation / fertile ranges
    pill         — Combined-pill withdrawal-bleed prediction
    pregnancy    — Pregnancy cut-off rules and pregnancy date helpers
    orchestrator — Record selection, per-cycle results, day status
"""

from period_calculator.engine.orchestrator import (
    CycleOrchestrator,
    compute_cycles,
    next_period_estimate,
    status_on_date,
)
from period_calculator.engine.predictor import predict

__all__ = [
    "CycleOrchestrator",
    "compute_cycles",
    "status_on_date",
    "next_period_estimate",
    "predict",
]
