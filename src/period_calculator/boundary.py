"""Date input at the system boundary.

Callers may hand dates over as ISO-8601 strings (``"2025-01-05"``), as
Julian Day Numbers (``2460681``) or as ``datetime.date`` values.  Each form
is resolved to a ``date`` exactly once, here; the engine never sees
anything else.

Usage::

    from period_calculator.boundary import CycleQuery, coerce_date

    query = CycleQuery.model_validate({
        "query_from": {"kind": "iso8601", "value": "2025-01-01"},
        "query_to": {"kind": "julian_day", "value": 2460701},
    })
    query.date_from, query.date_to     # date(2025, 1, 1), date(2025, 1, 25)
    coerce_date("2025-01-05")          # date(2025, 1, 5)
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

# Julian Day Number of 0001-01-01 minus its proleptic Gregorian ordinal (1).
JULIAN_DAY_OFFSET = 1721425
MIN_JULIAN_DAY = date.min.toordinal() + JULIAN_DAY_OFFSET
MAX_JULIAN_DAY = date.max.toordinal() + JULIAN_DAY_OFFSET


class DateInputError(ValueError):
    """Raised when a value cannot be resolved to a calendar date."""


def to_julian_day(day: date) -> int:
    """Julian Day Number of the noon of ``day`` (2000-01-01 → 2451545)."""
    return day.toordinal() + JULIAN_DAY_OFFSET


def from_julian_day(julian_day: float) -> date:
    """Calendar date containing Julian day ``julian_day``.

    Fractional days are accepted; the Julian day starts at noon, so
    ``2451544.5`` (midnight starting 2000-01-01) maps to 2000-01-01.

    Raises:
        DateInputError: If the day is outside the representable date range.
    """
    ordinal = math.floor(julian_day + 0.5) - JULIAN_DAY_OFFSET
    try:
        return date.fromordinal(ordinal)
    except (ValueError, OverflowError) as exc:
        raise DateInputError(f"Julian day {julian_day} is out of range") from exc


# ---------------------------------------------------------------------------
# Pydantic input models
# ---------------------------------------------------------------------------


class BoundaryBase(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class IsoDateInput(BoundaryBase):
    kind: Literal["iso8601"] = "iso8601"
    value: str

    @field_validator("value")
    @classmethod
    def check_iso_format(cls, v: str) -> str:
        date.fromisoformat(v)  # raises ValueError → ValidationError
        return v

    def resolve(self) -> date:
        return date.fromisoformat(self.value)


class JulianDayInput(BoundaryBase):
    kind: Literal["julian_day"] = "julian_day"
    value: int = Field(ge=MIN_JULIAN_DAY, le=MAX_JULIAN_DAY)

    def resolve(self) -> date:
        return from_julian_day(self.value)


class NativeDateInput(BoundaryBase):
    kind: Literal["date"] = "date"
    value: date

    def resolve(self) -> date:
        return self.value


DateInput = Annotated[
    Union[IsoDateInput, JulianDayInput, NativeDateInput],
    Field(discriminator="kind"),
]

_date_input_adapter: TypeAdapter = TypeAdapter(DateInput)

# Anything coerce_date accepts.
DateLike = Union[date, str, int, IsoDateInput, JulianDayInput, NativeDateInput, dict]


def parse_date_input(payload: Any) -> date:
    """Validate a tagged date payload (``{"kind": ..., "value": ...}``) and resolve it."""
    return _date_input_adapter.validate_python(payload).resolve()


def coerce_date(value: Any) -> date:
    """Resolve any accepted date form to a ``date``.

    Accepts ``date`` (``datetime`` is truncated to its date), ISO-8601
    strings, integer Julian Day Numbers, the tagged input models and
    their ``{"kind": ..., "value": ...}`` payloads.

    Raises:
        DateInputError: If the value has an unsupported type or is malformed.
    """
    if isinstance(value, (IsoDateInput, JulianDayInput, NativeDateInput)):
        return value.resolve()
    if isinstance(value, dict):
        try:
            return parse_date_input(value)
        except ValidationError as exc:
            raise DateInputError(f"Invalid tagged date: {value!r}") from exc
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise DateInputError(f"Not an ISO-8601 date: {value!r}") from exc
    if isinstance(value, int) and not isinstance(value, bool):
        return from_julian_day(value)
    raise DateInputError(f"Unsupported date input type: {type(value).__name__}")


class CycleQuery(BoundaryBase):
    """A cycle query range as received from a caller.

    Attributes:
        query_from: First day of the range.
        query_to:   Last day of the range (inclusive).
    """

    query_from: DateInput
    query_to: DateInput

    @model_validator(mode="after")
    def check_order(self) -> "CycleQuery":
        if self.query_from.resolve() > self.query_to.resolve():
            raise ValueError("query_from must not be after query_to")
        return self

    @property
    def date_from(self) -> date:
        return self.query_from.resolve()

    @property
    def date_to(self) -> date:
        return self.query_to.resolve()
