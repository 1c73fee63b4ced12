"""
Descriptive statistics and moving-average smoothing over a time series.

Both operations are pure: the input sequence is never modified and the result
depends only on the arguments.
"""

from collections.abc import Sequence

import numpy as np
import structlog

from health_core.domain.models import DataPoint, StatisticsSummary
from health_core.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)


def compute_statistics(points: Sequence[DataPoint]) -> StatisticsSummary:
    """
    Summarize ``points`` with mean, median, min, max and population std dev.

    Empty input yields an all-zero summary so dashboards always have
    something to render.
    """
    if not points:
        return StatisticsSummary()

    values = np.array([p.value for p in points], dtype=float)
    lowest, highest = float(np.min(values)), float(np.max(values))

    # pairwise summation can land one ulp outside the observed range
    mean = min(max(float(np.mean(values)), lowest), highest)

    return StatisticsSummary(
        mean=mean,
        median=float(np.median(values)),
        min=lowest,
        max=highest,
        std_dev=float(np.std(values)) if len(values) > 1 else 0.0,
        count=len(values),
    )


def compute_moving_average(points: Sequence[DataPoint], window_size: int) -> list[DataPoint]:
    """
    Smooth ``points`` with a trailing window of ``window_size`` samples.

    Each output point carries the timestamp of the last sample in its window.
    When there are fewer points than the window the input is returned as is.

    Raises:
        InvalidArgumentError: if ``window_size`` is not a positive integer.
    """
    if window_size <= 0:
        raise InvalidArgumentError("window_size", f"must be positive, got {window_size}")

    if len(points) < window_size:
        logger.debug(
            "moving_average_skipped_sparse_history",
            point_count=len(points),
            window_size=window_size,
        )
        return list(points)

    values = np.array([p.value for p in points], dtype=float)
    smoothed = np.convolve(values, np.ones(window_size) / window_size, mode="valid")

    return [
        DataPoint(timestamp=point.timestamp, value=float(value))
        for point, value in zip(points[window_size - 1 :], smoothed, strict=True)
    ]
