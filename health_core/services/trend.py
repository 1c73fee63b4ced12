"""
Trend detection, short-horizon forecasting and period-over-period comparison.

Time is encoded as elapsed days since the first point of a series so that the
fit does not depend on the magnitude of raw timestamps. Degenerate input never
raises: too few points give a STABLE zero-slope trend and an empty forecast,
and two empty periods give no comparison at all.
"""

import math
from collections.abc import Sequence
from datetime import timedelta

import numpy as np
import structlog
from scipy import stats

from health_core.config import DEFAULT_CONFIG, AnalyticsConfig, TrendConfig
from health_core.domain.models import (
    ChangeType,
    DataPoint,
    PeriodComparison,
    RegressionResult,
    TrendAnalysis,
    TrendDirection,
)
from health_core.errors import InvalidArgumentError
from health_core.services.statistics import compute_moving_average, compute_statistics

logger = structlog.get_logger(__name__)

_SECONDS_PER_DAY = 86_400.0


def _elapsed_days(points: Sequence[DataPoint]) -> np.ndarray:
    origin = points[0].timestamp
    return np.array(
        [(p.timestamp - origin).total_seconds() / _SECONDS_PER_DAY for p in points], dtype=float
    )


def _fit_line(xs: np.ndarray, ys: np.ndarray) -> tuple[float, float, float]:
    """Least-squares fit. Returns (slope, intercept, r_squared)."""
    if np.ptp(xs) == 0.0:
        # every sample shares one timestamp, so there is no time axis to fit
        return 0.0, float(np.mean(ys)), 0.0
    fit = stats.linregress(xs, ys)
    return float(fit.slope), float(fit.intercept), float(fit.rvalue) ** 2


def classify_direction(slope: float, config: TrendConfig) -> TrendDirection:
    if abs(slope) < config.slope_threshold_per_day:
        return TrendDirection.STABLE
    return TrendDirection.UP if slope > 0 else TrendDirection.DOWN


def compute_linear_regression(
    points: Sequence[DataPoint], config: AnalyticsConfig = DEFAULT_CONFIG
) -> RegressionResult:
    """
    Fit a least-squares line through ``points`` and classify its direction.

    R² is defined as 1 when every value is equal (nothing left to explain)
    and is clamped to [0, 1]. With fewer than two points the result is a
    STABLE zero-slope trend with R² of 0.
    """
    if len(points) < 2:
        intercept = points[0].value if points else 0.0
        return RegressionResult(slope=0.0, intercept=intercept, r_squared=0.0)

    ys = np.array([p.value for p in points], dtype=float)
    slope, intercept, r_squared = _fit_line(_elapsed_days(points), ys)

    # a constant series leaves nothing unexplained
    r_squared = 1.0 if np.ptp(ys) == 0.0 else min(1.0, max(0.0, r_squared))

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        direction=classify_direction(slope, config.trend),
    )


def predict_future_trend(
    points: Sequence[DataPoint],
    steps: int | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    *,
    clamp_non_negative: bool = False,
) -> list[DataPoint]:
    """
    Extrapolate ``steps`` equally spaced points past the last observation.

    Points are spaced ``config.trend.prediction_step_days`` apart. With a
    positive slope the forecast is strictly increasing, with a negative slope
    strictly decreasing. ``clamp_non_negative`` floors values at zero for
    metrics that cannot go negative, at the cost of that monotonicity.

    Returns an empty list when fewer than two points are available.

    Raises:
        InvalidArgumentError: if ``steps`` is below 1.
    """
    horizon = config.trend.prediction_horizon if steps is None else steps
    if horizon < 1:
        raise InvalidArgumentError("steps", f"must be at least 1, got {horizon}")

    if len(points) < 2:
        return []

    xs = _elapsed_days(points)
    slope, intercept, _ = _fit_line(xs, np.array([p.value for p in points], dtype=float))

    step_days = config.trend.prediction_step_days
    last_x = float(xs[-1])
    last_timestamp = points[-1].timestamp

    predictions: list[DataPoint] = []
    for i in range(1, horizon + 1):
        value = slope * (last_x + i * step_days) + intercept
        if clamp_non_negative:
            value = max(0.0, value)
        predictions.append(
            DataPoint(timestamp=last_timestamp + timedelta(days=i * step_days), value=value)
        )
    return predictions


def compare_periods(
    current: Sequence[DataPoint],
    previous: Sequence[DataPoint],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> PeriodComparison | None:
    """
    Compare the mean of ``current`` with the mean of ``previous``.

    Returns None when both periods are empty. A previous mean of zero, or one
    so close to zero that the ratio overflows, gives a change percent of 0.
    """
    if not current and not previous:
        return None

    current_mean = compute_statistics(current).mean
    previous_mean = compute_statistics(previous).mean
    change_absolute = current_mean - previous_mean
    change_percent = change_absolute / previous_mean * 100 if previous_mean != 0 else 0.0
    if not math.isfinite(change_percent):
        change_percent = 0.0

    threshold = config.trend.change_percent_threshold
    if change_percent > threshold:
        change_type = ChangeType.INCREASE
    elif change_percent < -threshold:
        change_type = ChangeType.DECREASE
    else:
        change_type = ChangeType.STABLE

    return PeriodComparison(
        current_mean=current_mean,
        previous_mean=previous_mean,
        change_absolute=change_absolute,
        change_percent=change_percent,
        change_type=change_type,
    )


def analyze_trend(
    points: Sequence[DataPoint],
    previous_points: Sequence[DataPoint] = (),
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> TrendAnalysis:
    """Run every trend computation over one window of a metric."""
    analysis = TrendAnalysis(
        data_points=list(points),
        statistics=compute_statistics(points),
        trend=compute_linear_regression(points, config),
        moving_average=compute_moving_average(points, config.trend.moving_average_window),
        predictions=predict_future_trend(points, config=config),
        period_comparison=compare_periods(points, previous_points, config)
        if previous_points
        else None,
    )

    logger.debug(
        "trend_analyzed",
        point_count=len(points),
        direction=analysis.trend.direction.value,
        slope=round(analysis.trend.slope, 4),
        r_squared=round(analysis.trend.r_squared, 4),
    )
    return analysis
