"""Tests for the repeating-window range builder."""

from __future__ import annotations

from datetime import date

import pytest

from period_calculator.engine.predictor import predict
from period_calculator.models import DateRange
from period_calculator.tests.conftest import ANCHOR_START, QUERY_FROM, QUERY_TO


class TestPeriodPrediction:
    def test_occurrence_on_anchor_is_skipped(self) -> None:
        """The recorded period itself is not predicted again."""
        result = predict(True, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 0, 4)
        assert result == [DateRange(date(2025, 2, 2), date(2025, 2, 6))]

    def test_non_period_window_keeps_anchor_cycle(self) -> None:
        result = predict(False, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 0, 4)
        assert result == [
            DateRange(date(2025, 1, 5), date(2025, 1, 9)),
            DateRange(date(2025, 2, 2), date(2025, 2, 6)),
        ]

    def test_delay_shifts_window(self) -> None:
        result = predict(True, ANCHOR_START, date(2025, 2, 1), QUERY_TO, 28, 0, 4, delay_days=3)
        assert DateRange(date(2025, 2, 5), date(2025, 2, 9)) in result

    def test_delay_over_a_week_disables_prediction(self) -> None:
        assert predict(True, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 0, 4, delay_days=8) == []

    def test_delay_of_a_week_still_predicts(self) -> None:
        assert predict(True, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 0, 4, delay_days=7)


class TestOvulationWindows:
    def test_every_cycle_in_range(self) -> None:
        result = predict(False, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 12, 14)
        assert result == [
            DateRange(date(2025, 1, 17), date(2025, 1, 19)),
            DateRange(date(2025, 2, 14), date(2025, 2, 16)),
        ]

    def test_single_occurrence(self) -> None:
        result = predict(False, ANCHOR_START, QUERY_FROM, QUERY_TO, 28, 12, 14, allow_multiple=False)
        assert result == [DateRange(date(2025, 1, 17), date(2025, 1, 19))]

    def test_window_outside_query_day_range(self) -> None:
        """Query covering cycle days 21-24 misses a day 12-14 window."""
        result = predict(False, ANCHOR_START, date(2025, 1, 26), date(2025, 1, 29), 28, 12, 14)
        assert result == []

    def test_query_wrapping_into_next_cycle(self) -> None:
        """Days 25..0 of the next cycle still find the next period."""
        result = predict(True, ANCHOR_START, date(2025, 1, 30), date(2025, 2, 2), 28, 0, 4)
        assert result == [DateRange(date(2025, 2, 2), date(2025, 2, 6))]

    def test_occurrence_before_anchor_discards_everything(self) -> None:
        """A cycle index before the anchor ends the whole prediction."""
        result = predict(False, ANCHOR_START, date(2024, 12, 1), date(2025, 1, 20), 28, 12, 14)
        assert result == []


class TestCycleLengthEdgeCases:
    def test_zero_cycle_length_treated_as_one(self) -> None:
        result = predict(False, ANCHOR_START, ANCHOR_START, date(2025, 1, 7), 0, 0, 0)
        assert result == [
            DateRange(date(2025, 1, 5), date(2025, 1, 5)),
            DateRange(date(2025, 1, 6), date(2025, 1, 6)),
            DateRange(date(2025, 1, 7), date(2025, 1, 7)),
        ]

    def test_negative_cycle_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            predict(True, ANCHOR_START, QUERY_FROM, QUERY_TO, -1, 0, 4)
