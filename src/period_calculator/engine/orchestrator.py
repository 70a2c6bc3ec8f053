"""Cycle orchestration: turns stored records into per-cycle predictions.

For a query range the orchestrator:
1. Ignores period records logged during an active pregnancy.
2. Selects the records overlapping the range, plus at most one look-back
   and one look-ahead record to bound it.
3. Branches on how many records were selected:
   - none: rebuilds ovulation/fertile ranges from ovulation data only;
   - one:  predicts forward from that record (pill, ovulation-based or
           plain cycle prediction, with delay detection);
   - two or more: describes each historical cycle between adjacent records.
4. Cuts every predicted range at the start of an active pregnancy.

``status_on_date`` runs the same pipeline over a four-day window around a
date and classifies the date against the governing cycle.

The engine is pure: ``today`` is fixed when the orchestrator is created,
and identical inputs always give identical results.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from period_calculator.dates import Clock, add_days, day_gap, truncated_mod, utc_today
from period_calculator.engine.delay import delay_days, delay_range
from period_calculator.engine.ovulation import (
    combine_ovulation_dates,
    compress_to_ranges,
    fertile_from_ovulation,
)
from period_calculator.engine.pill import (
    WITHDRAWAL_BLEED_LENGTH_DAYS,
    pill_active_between,
    pill_based_predict_date,
    remaining_rest_days,
)
from period_calculator.engine.predictor import predict
from period_calculator.engine.pregnancy import filter_by_pregnancy, periods_outside_pregnancy
from period_calculator.engine.windows import fertile_window_offsets, ovulation_window_offsets
from period_calculator.models import (
    CalendarDayStatus,
    CycleInput,
    CycleResult,
    DateRange,
    DayClassification,
    PeriodRecord,
    PeriodSettings,
    PregnancyInfo,
    PregnancyProbability,
)

logger = logging.getLogger("period_calculator.engine.orchestrator")

# Next period is expected this many days after the last ovulation.
LUTEAL_PHASE_DAYS = 14
# From this many days of delay on, predictions stop and medical advice is flagged.
SEEK_MEDICAL_DELAY_DAYS = 8
# Ovulation-only reconstruction looks slightly past the query end.
OVULATION_LOOKAHEAD_DAYS = 2
# Status queries evaluate [date - 1, date + 2].
STATUS_WINDOW_BEFORE_DAYS = 1
STATUS_WINDOW_AFTER_DAYS = 2


def select_records(
    periods: Sequence[PeriodRecord],
    query_from: date,
    query_to: date,
) -> list[PeriodRecord]:
    """Pick the records needed to describe ``[query_from, query_to]``.

    Args:
        periods:    Candidate records sorted by start date.
        query_from: First day of the query.
        query_to:   Last day of the query.

    Returns:
        Overlapping records, preceded by the latest record starting on or
        before ``query_from`` and followed by the earliest record starting
        on or after ``query_to`` when the overlapping ones do not already
        bound the range.
    """
    overlapping = [r for r in periods if r.start_date <= query_to and r.end_date >= query_from]
    look_back = max(
        (r for r in periods if r.start_date <= query_from),
        key=lambda r: r.start_date,
        default=None,
    )
    look_ahead = min(
        (r for r in periods if r.start_date >= query_to),
        key=lambda r: r.start_date,
        default=None,
    )

    if not overlapping:
        return [r for r in (look_back, look_ahead) if r is not None]

    selected = list(overlapping)
    if query_from < overlapping[0].start_date and look_back is not None:
        selected.insert(0, look_back)
    if query_to > overlapping[-1].end_date and look_ahead is not None:
        selected.append(look_ahead)
    return selected


class CycleOrchestrator:
    """Compute cycles and day statuses for one set of user records.

    Usage::

        orchestrator = CycleOrchestrator(cycle_input, today=date(2025, 2, 10))
        cycles = orchestrator.compute_cycles(date(2025, 2, 1), date(2025, 2, 28))
        status = orchestrator.status_on_date(date(2025, 2, 10))
    """

    def __init__(
        self,
        data: CycleInput,
        today: date | None = None,
        clock: Clock = utc_today,
    ) -> None:
        self._data = data
        self._today = today or clock()

    @property
    def today(self) -> date:
        return self._today

    @property
    def _settings(self) -> PeriodSettings:
        return self._data.period_settings

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def compute_cycles(self, query_from: date, query_to: date) -> list[CycleResult]:
        """Return per-cycle results describing ``[query_from, query_to]``.

        Raises:
            ValueError: If ``query_from`` is after ``query_to``.
        """
        if query_from > query_to:
            raise ValueError(f"query_from {query_from} is after query_to {query_to}")

        periods = sorted(
            periods_outside_pregnancy(self._data.periods, self._data.pregnancy),
            key=lambda r: r.start_date,
        )
        selected = select_records(periods, query_from, query_to)
        logger.debug(
            "compute_cycles %s..%s: %d usable records, %d selected",
            query_from, query_to, len(periods), len(selected),
        )

        if len(selected) >= 2:
            results = [
                self._historical_cycle(current, following, query_from, query_to)
                for current, following in zip(selected, selected[1:])
            ]
            if len(selected) == 2:
                results.append(self._open_cycle(selected[-1]))
            return results

        if len(selected) == 1:
            result = self._forward_cycle(selected[0], query_from, query_to)
            if result is not None:
                return [result]

        fallback = self._ovulation_only(
            query_from, add_days(query_to, OVULATION_LOOKAHEAD_DAYS)
        )
        return [fallback] if fallback is not None else []

    def _build(
        self,
        record: PeriodRecord | None,
        predicted: Iterable[DateRange] = (),
        ovulation: Iterable[DateRange] = (),
        fertile: Iterable[DateRange] = (),
        **fields,
    ) -> CycleResult:
        """Assemble a result, cutting all predicted ranges at a pregnancy."""
        pregnancy = self._data.pregnancy
        pregnancy_start = None
        if pregnancy is not None and pregnancy.is_active and (
            record is None or pregnancy.start_date >= record.start_date
        ):
            pregnancy_start = pregnancy.start_date

        return CycleResult(
            record_id=record.record_id if record is not None else None,
            actual_period=record.as_range() if record is not None else None,
            predicted_periods=filter_by_pregnancy(predicted, pregnancy),
            ovulation_ranges=filter_by_pregnancy(ovulation, pregnancy),
            fertile_ranges=filter_by_pregnancy(fertile, pregnancy),
            pregnancy_start_date=pregnancy_start,
            **fields,
        )

    def _ovulation_dates(self, date_from: date, date_to: date) -> list[date]:
        return combine_ovulation_dates(
            self._data.ovulation_tests,
            self._data.user_ovulation_days,
            date_from,
            date_to,
        )

    def _historical_cycle(
        self,
        record: PeriodRecord,
        following: PeriodRecord,
        query_from: date,
        query_to: date,
    ) -> CycleResult:
        """Cycle bounded by two recorded periods."""
        cycle_length = day_gap(record.start_date, following.start_date)

        ovulation_dates = self._ovulation_dates(
            record.start_date,
            max(query_to, add_days(following.start_date, -1)),
        )
        if ovulation_dates:
            ovulation = compress_to_ranges(ovulation_dates)
            return self._build(
                record,
                ovulation=ovulation,
                fertile=fertile_from_ovulation(ovulation),
                cycle_length=cycle_length,
                is_ovulation_user_provided=True,
            )

        pill_settings = self._data.pill_settings
        if pill_settings.use_for_calculation and pill_active_between(
            record.start_date, following.start_date, self._data.pill_packages
        ):
            logger.debug("Cycle from %s is pill-governed; no ovulation window", record.start_date)
            return self._build(record, cycle_length=cycle_length)

        fertile_start, fertile_end = fertile_window_offsets(cycle_length)
        ovulation_start, ovulation_end = ovulation_window_offsets(cycle_length)
        return self._build(
            record,
            ovulation=predict(
                False, record.start_date, query_from, query_to, cycle_length,
                ovulation_start, ovulation_end, allow_multiple=False,
            ),
            fertile=predict(
                False, record.start_date, query_from, query_to, cycle_length,
                fertile_start, fertile_end, allow_multiple=False,
            ),
            cycle_length=cycle_length,
        )

    def _open_cycle(self, record: PeriodRecord) -> CycleResult:
        """Latest of exactly two records: recorded days only, no prediction."""
        return self._build(record, cycle_length=self._settings.cycle_length)

    def _forward_cycle(
        self,
        record: PeriodRecord,
        query_from: date,
        query_to: date,
    ) -> CycleResult | None:
        """Predict forward from the most recent record."""
        if record.start_date > query_to:
            return None

        anchor = record.start_date
        cycle_length = self._settings.cycle_length
        period_length = max(self._settings.period_length, 1)
        today = self._today

        # Ovulation data from the query start (or the period, if earlier) on.
        ovulation_dates = self._ovulation_dates(min(query_from, anchor), date.max)
        ovulation: list[DateRange] = []
        fertile: list[DateRange] = []
        if ovulation_dates:
            ovulation = compress_to_ranges(ovulation_dates)
            fertile = fertile_from_ovulation(ovulation)

        if self._data.pill_settings.use_for_calculation:
            pill_result = self._pill_cycle(
                record, query_from, query_to, ovulation, fertile, bool(ovulation_dates)
            )
            if pill_result is not None:
                return pill_result

        if ovulation_dates:
            predicted_start = add_days(ovulation_dates[-1], LUTEAL_PHASE_DAYS)
            ovulation_cycle_length = day_gap(anchor, predicted_start)
            delay = delay_days(anchor, query_from, query_to, today, ovulation_cycle_length)
            predicted: list[DateRange] = []
            if delay < SEEK_MEDICAL_DELAY_DAYS:
                predicted.append(
                    DateRange(predicted_start, add_days(predicted_start, period_length - 1))
                )
                predicted.extend(
                    predict(
                        True, predicted_start, query_from, query_to, cycle_length,
                        0, period_length - 1, delay,
                    )
                )
            logger.debug(
                "Forward cycle from %s predicted from ovulation on %s (delay=%d)",
                anchor, ovulation_dates[-1], delay,
            )
            return self._build(
                record,
                predicted=predicted,
                ovulation=ovulation,
                fertile=fertile,
                delay_range=delay_range(anchor, query_from, ovulation_cycle_length, delay, today),
                delay_days=delay,
                cycle_length=cycle_length,
                ovulation_based_cycle_length=ovulation_cycle_length,
                is_ovulation_user_provided=True,
            )

        delay = delay_days(anchor, query_from, query_to, today, cycle_length)
        predicted = []
        if delay < SEEK_MEDICAL_DELAY_DAYS:
            predicted = predict(
                True, anchor, query_from, query_to, cycle_length, 0, period_length - 1, delay
            )
        fertile_start, fertile_end = fertile_window_offsets(cycle_length)
        ovulation_start, ovulation_end = ovulation_window_offsets(cycle_length)
        logger.debug("Forward cycle from %s on a %d-day cycle (delay=%d)", anchor, cycle_length, delay)
        return self._build(
            record,
            predicted=predicted,
            ovulation=predict(
                False, anchor, query_from, query_to, cycle_length,
                ovulation_start, ovulation_end, delay,
            ),
            fertile=predict(
                False, anchor, query_from, query_to, cycle_length,
                fertile_start, fertile_end, delay,
            ),
            delay_range=delay_range(anchor, query_from, cycle_length, delay, today),
            delay_days=delay,
            cycle_length=cycle_length,
        )

    def _pill_cycle(
        self,
        record: PeriodRecord,
        query_from: date,
        query_to: date,
        ovulation: list[DateRange],
        fertile: list[DateRange],
        user_provided: bool,
    ) -> CycleResult | None:
        """Forward prediction driven by pill packs; None if the packs don't apply."""
        anchor = record.start_date
        packages = self._data.pill_packages
        pill_settings = self._data.pill_settings
        today = self._today

        if pill_settings.rest_days == 0 and any(p.package_start >= anchor for p in packages):
            logger.debug("Continuous pill use since %s; no withdrawal bleed predicted", anchor)
            return self._build(
                record,
                ovulation=ovulation,
                fertile=fertile,
                cycle_length=self._settings.cycle_length,
                is_ovulation_user_provided=user_provided,
                remaining_rest_days=0,
            )

        bleed_date = pill_based_predict_date(anchor, packages, pill_settings)
        if bleed_date is None:
            return None

        pill_cycle_length = day_gap(anchor, bleed_date)
        pack_cycle_length = pill_settings.total_cycle_days
        delay = delay_days(anchor, query_from, query_to, today, pill_cycle_length)
        bleed_start = add_days(bleed_date, delay)

        predicted: list[DateRange] = []
        if delay < SEEK_MEDICAL_DELAY_DAYS:
            predicted.append(
                DateRange(bleed_start, add_days(bleed_start, WITHDRAWAL_BLEED_LENGTH_DAYS - 1))
            )
            predicted.extend(
                predict(
                    True, bleed_start, query_from, query_to, pack_cycle_length,
                    0, WITHDRAWAL_BLEED_LENGTH_DAYS - 1,
                )
            )
        logger.debug("Pill-based bleed from %s predicted on %s (delay=%d)", anchor, bleed_date, delay)
        return self._build(
            record,
            predicted=predicted,
            ovulation=ovulation,
            fertile=fertile,
            delay_range=delay_range(anchor, query_from, pill_cycle_length, delay, today),
            delay_days=delay,
            cycle_length=pack_cycle_length,
            pill_based_cycle_length=pill_cycle_length,
            is_ovulation_user_provided=user_provided,
            remaining_rest_days=remaining_rest_days(today, packages),
        )

    def _ovulation_only(self, date_from: date, date_to: date) -> CycleResult | None:
        """Ovulation and fertile ranges without any usable period record."""
        ovulation_dates = self._ovulation_dates(date_from, date_to)
        if not ovulation_dates:
            return None

        ovulation = filter_by_pregnancy(compress_to_ranges(ovulation_dates), self._data.pregnancy)
        if not ovulation:
            return None
        return self._build(
            None,
            ovulation=ovulation,
            fertile=fertile_from_ovulation(ovulation),
            cycle_length=self._settings.cycle_length,
            is_ovulation_user_provided=True,
        )

    # ------------------------------------------------------------------
    # Day status
    # ------------------------------------------------------------------

    def status_on_date(self, day: date) -> CalendarDayStatus:
        """Classify ``day`` against the cycle that governs it."""
        pregnancy = self._data.pregnancy
        if pregnancy is not None and pregnancy.is_active:
            within_term = (
                pregnancy.due_date is not None
                and pregnancy.start_date <= day <= pregnancy.due_date
            )
            if within_term or (day >= pregnancy.start_date and pregnancy.start_date <= self._today):
                return _pregnancy_status(pregnancy, day, PregnancyProbability.PREGNANCY)

        cycles = [
            c for c in self.compute_cycles(
                add_days(day, -STATUS_WINDOW_BEFORE_DAYS),
                add_days(day, STATUS_WINDOW_AFTER_DAYS),
            )
            if c.actual_period is not None and c.actual_period.start_date <= day
        ]
        if not cycles:
            return self._status_without_record(day)
        return _classify(cycles[-1], day)

    def _status_without_record(self, day: date) -> CalendarDayStatus:
        pregnancy = self._data.pregnancy
        if pregnancy is not None:
            if pregnancy.start_date <= day:
                return _pregnancy_status(
                    pregnancy, day, PregnancyProbability.RECOVERY_AFTER_CHILDBIRTH
                )
            if pregnancy.due_date is not None and pregnancy.due_date >= day:
                return _pregnancy_status(pregnancy, day, PregnancyProbability.NO_PERIOD_RECORD)
        return CalendarDayStatus(
            classification=DayClassification.NONE,
            day_offset_from_period_start=0,
            pregnancy_probability=PregnancyProbability.INPUT_PERIOD_RECORD,
            cycle_length=0,
        )


def _pregnancy_status(
    pregnancy: PregnancyInfo,
    day: date,
    probability: PregnancyProbability,
) -> CalendarDayStatus:
    gap = day_gap(pregnancy.start_date, day)
    return CalendarDayStatus(
        classification=DayClassification.NONE,
        day_offset_from_period_start=gap,
        pregnancy_probability=probability,
        cycle_length=gap,
    )


def _status(
    classification: DayClassification,
    gap: int,
    probability: PregnancyProbability,
    cycle: CycleResult,
) -> CalendarDayStatus:
    return CalendarDayStatus(
        classification=classification,
        day_offset_from_period_start=gap,
        pregnancy_probability=probability,
        cycle_length=cycle.cycle_length,
    )


def _classify(cycle: CycleResult, day: date) -> CalendarDayStatus:
    """Classify ``day`` against one cycle, in priority order."""
    actual = cycle.actual_period
    gap = day_gap(actual.start_date, day)
    if day in actual:
        return _status(DayClassification.PERIOD_DAY, gap, PregnancyProbability.LOW, cycle)

    # Re-base the offset on whichever cycle length governs this position:
    # the pill or ovulation based length until it (plus delay) has elapsed,
    # the plain cycle length after that.
    period = cycle.cycle_length
    period_gap = 0
    alternate = cycle.pill_based_cycle_length
    if alternate is None:
        alternate = cycle.ovulation_based_cycle_length
    if alternate is not None:
        if gap < cycle.delay_days + alternate:
            period = alternate
        else:
            period_gap = cycle.cycle_length - alternate

    modulus = period if period > 0 else 1
    gap = truncated_mod(gap + period_gap, modulus)

    delay = cycle.delay_range
    if delay is None or delay.end_date < day:
        gap -= cycle.delay_days

    if delay is not None and day in delay:
        delay_gap = day_gap(delay.start_date, day)
        probability = (
            PregnancyProbability.NORMAL
            if delay_gap < SEEK_MEDICAL_DELAY_DAYS - 1
            else PregnancyProbability.SEEK_MEDICAL_ATTENTION
        )
        return _status(DayClassification.DELAY, delay_gap, probability, cycle)

    if cycle.delay_days >= SEEK_MEDICAL_DELAY_DAYS:
        expected_length = cycle.pill_based_cycle_length
        if expected_length is None:
            expected_length = cycle.ovulation_based_cycle_length
        if expected_length is None:
            expected_length = cycle.cycle_length
        if day_gap(actual.start_date, day) + 1 - expected_length >= SEEK_MEDICAL_DELAY_DAYS:
            return _status(
                DayClassification.NONE, 0, PregnancyProbability.SEEK_MEDICAL_ATTENTION, cycle
            )

    if any(day in r for r in cycle.predicted_periods):
        return _status(
            DayClassification.PREDICTED_PERIOD,
            truncated_mod(gap, modulus),
            PregnancyProbability.LOW,
            cycle,
        )

    if any(day in r for r in cycle.ovulation_ranges):
        return _status(DayClassification.OVULATION, gap, PregnancyProbability.HIGH, cycle)

    if any(day in r for r in cycle.fertile_ranges):
        probability = (
            PregnancyProbability.HIGH if cycle.ovulation_ranges else PregnancyProbability.MIDDLE
        )
        return _status(DayClassification.FERTILE_WINDOW, gap, probability, cycle)

    return _status(DayClassification.NONE, gap, PregnancyProbability.LOW, cycle)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def compute_cycles(
    data: CycleInput,
    query_from: date,
    query_to: date,
    today: date | None = None,
) -> list[CycleResult]:
    """Per-cycle predictions for ``[query_from, query_to]``."""
    return CycleOrchestrator(data, today=today).compute_cycles(query_from, query_to)


def status_on_date(data: CycleInput, day: date, today: date | None = None) -> CalendarDayStatus:
    """Calendar status of a single day."""
    return CycleOrchestrator(data, today=today).status_on_date(day)


def next_period_estimate(
    periods: Iterable[PeriodRecord],
    settings: PeriodSettings,
) -> DateRange | None:
    """Quick next-period estimate: latest recorded start plus the average cycle."""
    latest = max(periods, key=lambda r: r.start_date, default=None)
    if latest is None:
        return None
    start = add_days(latest.start_date, settings.cycle_length)
    return DateRange(start, add_days(start, max(settings.period_length, 1) - 1))
