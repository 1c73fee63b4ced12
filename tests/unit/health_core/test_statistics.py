"""
Tests for descriptive statistics and moving-average smoothing.

Testing philosophy:
- Exact expectations on small hand-checked series
- Property-based tests for the invariants that must hold for any input
"""

import math
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from health_core.domain.models import DataPoint, StatisticsSummary
from health_core.errors import InvalidArgumentError
from health_core.services.statistics import compute_moving_average, compute_statistics

START = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)

finite_values = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


def _series(values: list[float]) -> list[DataPoint]:
    return [DataPoint(timestamp=START + timedelta(days=i), value=v) for i, v in enumerate(values)]


class TestComputeStatistics:
    def test_empty_input_returns_all_zero_summary(self) -> None:
        summary = compute_statistics([])

        assert summary == StatisticsSummary()
        assert summary.count == 0
        assert summary.mean == 0.0
        assert summary.std_dev == 0.0

    def test_even_count_uses_average_of_middle_values(self) -> None:
        summary = compute_statistics(_series([4.0, 1.0, 3.0, 2.0]))

        assert summary.mean == pytest.approx(2.5)
        assert summary.median == pytest.approx(2.5)
        assert summary.min == 1.0
        assert summary.max == 4.0
        assert summary.std_dev == pytest.approx(math.sqrt(1.25))
        assert summary.count == 4

    def test_odd_count_uses_middle_value(self) -> None:
        summary = compute_statistics(_series([5.0, 1.0, 3.0]))

        assert summary.median == 3.0

    def test_single_point_has_zero_std_dev(self) -> None:
        summary = compute_statistics(_series([72.5]))

        assert summary.mean == 72.5
        assert summary.median == 72.5
        assert summary.std_dev == 0.0
        assert summary.count == 1

    def test_population_std_dev_is_used(self) -> None:
        # sample std dev of [2, 4] would be sqrt(2)
        summary = compute_statistics(_series([2.0, 4.0]))

        assert summary.std_dev == pytest.approx(1.0)

    @given(values=st.lists(finite_values, min_size=1, max_size=200))
    def test_mean_lies_between_min_and_max(self, values: list[float]) -> None:
        summary = compute_statistics(_series(values))

        assert summary.min <= summary.mean <= summary.max
        assert summary.min <= summary.median <= summary.max
        assert summary.std_dev >= 0.0
        assert not math.isnan(summary.std_dev)

    @given(values=st.lists(finite_values, max_size=50))
    def test_identical_inputs_give_identical_outputs(self, values: list[float]) -> None:
        points = _series(values)

        assert compute_statistics(points) == compute_statistics(points)


class TestComputeMovingAverage:
    def test_window_average_uses_last_timestamp_of_window(self) -> None:
        points = _series([1.0, 2.0, 3.0, 4.0, 5.0])

        smoothed = compute_moving_average(points, 3)

        assert [p.value for p in smoothed] == pytest.approx([2.0, 3.0, 4.0])
        assert [p.timestamp for p in smoothed] == [p.timestamp for p in points[2:]]

    def test_window_of_one_reproduces_input_values(self) -> None:
        points = _series([3.0, 1.0, 2.0])

        assert compute_moving_average(points, 1) == points

    def test_sparse_history_is_returned_unchanged(self) -> None:
        points = _series([70.0, 71.0])

        assert compute_moving_average(points, 7) == points

    def test_window_equal_to_length_gives_single_point(self) -> None:
        points = _series([2.0, 4.0, 6.0])

        smoothed = compute_moving_average(points, 3)

        assert len(smoothed) == 1
        assert smoothed[0].value == pytest.approx(4.0)

    @pytest.mark.parametrize("window_size", [0, -1, -7])
    def test_non_positive_window_raises(self, window_size: int) -> None:
        with pytest.raises(InvalidArgumentError, match="window_size"):
            compute_moving_average(_series([1.0, 2.0]), window_size)

    def test_invalid_argument_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            compute_moving_average([], 0)

    def test_input_is_not_modified(self) -> None:
        points = _series([1.0, 2.0, 3.0, 4.0])
        snapshot = list(points)

        compute_moving_average(points, 2)

        assert points == snapshot

    @given(
        values=st.lists(finite_values, max_size=40),
        window_size=st.integers(min_value=1, max_value=10),
    )
    def test_output_length(self, values: list[float], window_size: int) -> None:
        points = _series(values)

        smoothed = compute_moving_average(points, window_size)

        if len(points) >= window_size:
            assert len(smoothed) == len(points) - window_size + 1
        else:
            assert smoothed == points
