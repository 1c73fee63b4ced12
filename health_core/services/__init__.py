"""
Core services for the analytics core.

This package contains the pure computations (statistics, trends, anomaly
checks, health score, alerts) and the async service that feeds them from a
caller-supplied repository.
"""

from .analytics_service import HealthAnalyticsService, HealthDataRepository
from .result import Result

__all__ = [
    "HealthAnalyticsService",
    "HealthDataRepository",
    "Result",
]
