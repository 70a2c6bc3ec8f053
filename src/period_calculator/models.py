"""Canonical data models for the period calculator.

Every input record and every computed result is an immutable dataclass.
Inputs are validated on construction; anything that violates a record's
contract (an end before a start, a negative length) raises
``RecordValidationError`` immediately instead of being clamped later.

Dates are plain ``datetime.date`` values.  Conversion from wire formats
(ISO strings, Julian day numbers) happens in ``period_calculator.boundary``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class RecordValidationError(ValueError):
    """Raised when an input record violates its contract."""


def _require_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise RecordValidationError(f"{name} must be >= 0, got {value}")


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range.

    Attributes:
        start_date: First day of the range.
        end_date:   Last day of the range (inclusive).
    """

    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def __contains__(self, day: date) -> bool:
        return self.contains(day)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodRecord:
    """One observed menstruation episode.

    Attributes:
        record_id:  Storage identifier of the record ("" if unsaved).
        start_date: First day of bleeding.
        end_date:   Last day of bleeding.
    """

    start_date: date
    end_date: date
    record_id: str = ""

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise RecordValidationError(
                f"Period record {self.record_id!r} ends ({self.end_date}) "
                f"before it starts ({self.start_date})"
            )

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def as_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)


@dataclass(frozen=True)
class PeriodSettings:
    """User cycle settings.

    ``cycle_length`` and ``period_length`` pick the automatically computed
    averages when ``use_auto_calc`` is set, otherwise the manual values.
    """

    manual_cycle_length: int = 30
    manual_period_length: int = 5
    auto_cycle_length: int = 30
    auto_period_length: int = 5
    use_auto_calc: bool = False

    def __post_init__(self) -> None:
        _require_non_negative("manual_cycle_length", self.manual_cycle_length)
        _require_non_negative("manual_period_length", self.manual_period_length)
        _require_non_negative("auto_cycle_length", self.auto_cycle_length)
        _require_non_negative("auto_period_length", self.auto_period_length)

    @property
    def cycle_length(self) -> int:
        return self.auto_cycle_length if self.use_auto_calc else self.manual_cycle_length

    @property
    def period_length(self) -> int:
        return self.auto_period_length if self.use_auto_calc else self.manual_period_length


class OvulationTestOutcome(str, Enum):
    NEGATIVE = "negative"
    POSITIVE = "positive"
    UNCLEAR = "unclear"


@dataclass(frozen=True)
class OvulationTestResult:
    """An LH / ovulation test reading."""

    date: date
    outcome: OvulationTestOutcome

    @property
    def is_positive(self) -> bool:
        return self.outcome is OvulationTestOutcome.POSITIVE


@dataclass(frozen=True)
class UserOvulationDay:
    """A day the user explicitly marked as ovulation."""

    date: date


@dataclass(frozen=True)
class PillPackage:
    """One blister pack of combined oral contraceptive.

    Attributes:
        package_start:     Day the first active pill was taken.
        active_pill_count: Number of hormone pills in the pack.
        rest_days:         Pill-free (or placebo) days after the active pills.
    """

    package_start: date
    active_pill_count: int = 21
    rest_days: int = 7

    def __post_init__(self) -> None:
        _require_non_negative("active_pill_count", self.active_pill_count)
        _require_non_negative("rest_days", self.rest_days)

    @property
    def total_cycle_days(self) -> int:
        return self.active_pill_count + self.rest_days


@dataclass(frozen=True)
class PillSettings:
    """Whether pill packages drive the calculation, and the pack layout."""

    use_for_calculation: bool = False
    active_pill_count: int = 21
    rest_days: int = 7

    def __post_init__(self) -> None:
        _require_non_negative("active_pill_count", self.active_pill_count)
        _require_non_negative("rest_days", self.rest_days)

    @property
    def total_cycle_days(self) -> int:
        return self.active_pill_count + self.rest_days


@dataclass(frozen=True)
class PregnancyInfo:
    """A recorded pregnancy.

    Attributes:
        start_date:       Pregnancy start.
        due_date:         Expected delivery date, if decided.
        is_ended:         Delivery has happened.
        is_miscarriage:   Pregnancy ended in miscarriage.
        is_deleted:       Soft-deleted by the user.
        last_period_date: Last menstrual period before the pregnancy, used to
                          estimate a due date when none was entered.
        pregnancy_id:     Storage identifier.
    """

    start_date: date
    due_date: date | None = None
    is_ended: bool = False
    is_miscarriage: bool = False
    is_deleted: bool = False
    last_period_date: date | None = None
    pregnancy_id: str = ""

    @property
    def is_active(self) -> bool:
        return not (self.is_ended or self.is_miscarriage or self.is_deleted)


@dataclass(frozen=True)
class CycleInput:
    """Everything one engine call needs, already fetched from storage."""

    periods: tuple[PeriodRecord, ...] = ()
    period_settings: PeriodSettings = field(default_factory=PeriodSettings)
    ovulation_tests: tuple[OvulationTestResult, ...] = ()
    user_ovulation_days: tuple[UserOvulationDay, ...] = ()
    pill_packages: tuple[PillPackage, ...] = ()
    pill_settings: PillSettings = field(default_factory=PillSettings)
    pregnancy: PregnancyInfo | None = None

    def __post_init__(self) -> None:
        # Accept any iterable from callers but store tuples.
        for name in ("periods", "ovulation_tests", "user_ovulation_days", "pill_packages"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CycleResult:
    """Derived ranges for one cycle.

    Attributes:
        record_id:                   Period record the cycle starts from
                                     (None for ovulation-only results).
        actual_period:               Recorded bleeding days.
        predicted_periods:           Predicted upcoming periods.
        ovulation_ranges:            Ovulation windows.
        fertile_ranges:              Fertile windows.
        delay_range:                 Days past the expected period start.
        delay_days:                  Length of the delay.
        cycle_length:                Cycle length governing this result.
        pill_based_cycle_length:     Days from period start to the
                                     pill-based predicted period.
        ovulation_based_cycle_length: Days from period start to the period
                                     predicted from recorded ovulation.
        is_ovulation_user_provided:  Ovulation came from tests/user input.
        pregnancy_start_date:        Start of an overlapping pregnancy.
        remaining_rest_days:         Pill-free days left in the current pack.
    """

    record_id: str | None = None
    actual_period: DateRange | None = None
    predicted_periods: tuple[DateRange, ...] = ()
    ovulation_ranges: tuple[DateRange, ...] = ()
    fertile_ranges: tuple[DateRange, ...] = ()
    delay_range: DateRange | None = None
    delay_days: int = 0
    cycle_length: int = 0
    pill_based_cycle_length: int | None = None
    ovulation_based_cycle_length: int | None = None
    is_ovulation_user_provided: bool = False
    pregnancy_start_date: date | None = None
    remaining_rest_days: int | None = None

    def __post_init__(self) -> None:
        for name in ("predicted_periods", "ovulation_ranges", "fertile_ranges"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


class DayClassification(str, Enum):
    NONE = "none"
    PERIOD_DAY = "period_day"
    PREDICTED_PERIOD = "predicted_period"
    OVULATION = "ovulation"
    FERTILE_WINDOW = "fertile_window"
    DELAY = "delay"


class PregnancyProbability(str, Enum):
    LOW = "low"
    MIDDLE = "middle"
    NORMAL = "normal"
    HIGH = "high"
    PREGNANCY = "pregnancy"
    RECOVERY_AFTER_CHILDBIRTH = "recovery_after_childbirth"
    NO_PERIOD_RECORD = "no_period_record"
    INPUT_PERIOD_RECORD = "input_period_record"
    SEEK_MEDICAL_ATTENTION = "seek_medical_attention"


@dataclass(frozen=True)
class CalendarDayStatus:
    """Status of a single calendar day.

    Attributes:
        classification:              What kind of day it is.
        day_offset_from_period_start: Zero-based day within the governing
                                     cycle (or delay / pregnancy).
        pregnancy_probability:       Conception likelihood or a pregnancy
                                     state flag.
        cycle_length:                Cycle length of the governing cycle.
    """

    classification: DayClassification
    day_offset_from_period_start: int
    pregnancy_probability: PregnancyProbability
    cycle_length: int
