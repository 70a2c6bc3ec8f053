"""Tests for combining ovulation tests and user-marked ovulation days."""

from __future__ import annotations

from datetime import date

from period_calculator.engine.ovulation import (
    combine_ovulation_dates,
    compress_to_ranges,
    fertile_from_ovulation,
)
from period_calculator.models import (
    DateRange,
    OvulationTestOutcome,
    OvulationTestResult,
    UserOvulationDay,
)

JAN_FROM = date(2025, 1, 1)
JAN_TO = date(2025, 1, 31)


def make_test(d: date, outcome: OvulationTestOutcome = OvulationTestOutcome.POSITIVE) -> OvulationTestResult:
    return OvulationTestResult(date=d, outcome=outcome)


class TestCombine:
    def test_only_positive_tests_count(self) -> None:
        tests = [
            make_test(date(2025, 1, 15), OvulationTestOutcome.NEGATIVE),
            make_test(date(2025, 1, 16), OvulationTestOutcome.UNCLEAR),
            make_test(date(2025, 1, 17)),
        ]
        assert combine_ovulation_dates(tests, [], JAN_FROM, JAN_TO) == [date(2025, 1, 17)]

    def test_union_is_sorted_and_deduplicated(self) -> None:
        tests = [make_test(date(2025, 1, 18)), make_test(date(2025, 1, 16))]
        user_days = [UserOvulationDay(date(2025, 1, 18)), UserOvulationDay(date(2025, 1, 17))]
        assert combine_ovulation_dates(tests, user_days, JAN_FROM, JAN_TO) == [
            date(2025, 1, 16),
            date(2025, 1, 17),
            date(2025, 1, 18),
        ]

    def test_range_is_inclusive(self) -> None:
        user_days = [
            UserOvulationDay(date(2024, 12, 31)),
            UserOvulationDay(JAN_FROM),
            UserOvulationDay(JAN_TO),
            UserOvulationDay(date(2025, 2, 1)),
        ]
        assert combine_ovulation_dates([], user_days, JAN_FROM, JAN_TO) == [JAN_FROM, JAN_TO]


class TestRanges:
    def test_consecutive_days_compress(self) -> None:
        days = [date(2025, 1, 16), date(2025, 1, 17), date(2025, 1, 18), date(2025, 1, 25)]
        assert compress_to_ranges(days) == [
            DateRange(date(2025, 1, 16), date(2025, 1, 18)),
            DateRange(date(2025, 1, 25), date(2025, 1, 25)),
        ]

    def test_empty(self) -> None:
        assert compress_to_ranges([]) == []

    def test_fertile_window_two_before_one_after(self) -> None:
        ovulation = [DateRange(date(2025, 1, 18), date(2025, 1, 18))]
        assert fertile_from_ovulation(ovulation) == [
            DateRange(date(2025, 1, 16), date(2025, 1, 19))
        ]
