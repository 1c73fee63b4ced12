"""Health analytics core.

Pure, stateless computations over already-fetched health data: descriptive
statistics, trend detection and forecasting, period comparison, anomaly
checks on new readings and the composite health score.
"""

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .errors import HealthCoreError, HealthDataValidationError, InvalidArgumentError
from .services.alerts import detect_all_alerts
from .services.anomaly import check_health_record, detect_anomaly, validate_health_record
from .services.health_score import compute_health_score
from .services.statistics import compute_moving_average, compute_statistics
from .services.trend import (
    analyze_trend,
    compare_periods,
    compute_linear_regression,
    predict_future_trend,
)

__all__ = [
    "DEFAULT_CONFIG",
    "AnalyticsConfig",
    "HealthCoreError",
    "HealthDataValidationError",
    "InvalidArgumentError",
    "analyze_trend",
    "check_health_record",
    "compare_periods",
    "compute_health_score",
    "compute_linear_regression",
    "compute_moving_average",
    "compute_statistics",
    "detect_all_alerts",
    "detect_anomaly",
    "predict_future_trend",
    "validate_health_record",
]
