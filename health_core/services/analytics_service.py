"""
Async integration seam between a caller's data layer and the pure analytics.

The service only awaits the repository it is given; every computation it
triggers is a pure function over the already-fetched data.

Key patterns:
- Protocol-based dependency injection for the repository
- Structured concurrency with asyncio.TaskGroup for independent fetches
- Graceful degradation where a failed lookup must not block data entry
"""

import asyncio
from datetime import datetime, timedelta
from typing import Protocol

import structlog

from health_core.config import AnalyticsConfig, get_config
from health_core.domain.models import (
    AnomalyCheckResult,
    DataPoint,
    HealthAlert,
    HealthMetric,
    HealthRecord,
    TrendAnalysis,
)
from health_core.services.alerts import detect_sudden_change
from health_core.services.anomaly import detect_anomaly
from health_core.services.trend import analyze_trend

logger = structlog.get_logger(__name__)


class HealthDataRepository(Protocol):
    """
    Read-only access to a member's stored health data.

    Implementations return series ordered by timestamp ascending and own all
    persistence concerns.
    """

    async def fetch_series(
        self, member_id: str, metric: HealthMetric, start: datetime, end: datetime
    ) -> list[DataPoint]:
        """Points for ``metric`` with ``start <= timestamp <= end``, oldest first."""
        ...

    async def fetch_latest_record(self, member_id: str, before: datetime) -> HealthRecord | None:
        """Most recent record measured strictly before ``before``, if any."""
        ...


class HealthAnalyticsService:
    """Fetches inputs through a repository and runs the analytics on them."""

    def __init__(
        self, repository: HealthDataRepository, config: AnalyticsConfig | None = None
    ) -> None:
        self.repository = repository
        self.config = config or get_config().analytics
        self.logger = logger.bind(component="health_analytics_service")

    async def analyze_metric_trend(
        self, member_id: str, metric: HealthMetric, start: datetime, end: datetime
    ) -> TrendAnalysis:
        """
        Analyze ``metric`` over [start, end] against the equally long window
        immediately before it. Repository errors propagate to the caller.
        """
        if end < start:
            raise ValueError("end must not be before start")

        period = end - start
        previous_end = start - timedelta(microseconds=1)
        previous_start = previous_end - period

        async with asyncio.TaskGroup() as task_group:
            current_task = task_group.create_task(
                self.repository.fetch_series(member_id, metric, start, end)
            )
            previous_task = task_group.create_task(
                self.repository.fetch_series(member_id, metric, previous_start, previous_end)
            )

        analysis = analyze_trend(current_task.result(), previous_task.result(), self.config)
        self.logger.info(
            "metric_trend_analyzed",
            member_id=member_id,
            metric=metric.value,
            point_count=len(analysis.data_points),
            direction=analysis.trend.direction.value,
        )
        return analysis

    async def check_new_record(self, member_id: str, record: HealthRecord) -> AnomalyCheckResult:
        """
        Validate ``record`` and compare it with the member's latest prior one.

        If the lookup fails the record is checked as if it were the first one:
        anomaly detection is advisory and must never block data entry.
        """
        try:
            previous = await self.repository.fetch_latest_record(member_id, record.measured_at)
        except Exception as e:
            self.logger.exception(
                "previous_record_lookup_failed", member_id=member_id, error=str(e)
            )
            previous = None

        result = detect_anomaly(previous, record, self.config)
        self.logger.info(
            "record_checked",
            member_id=member_id,
            valid=result.valid,
            anomaly_count=len(result.anomalies),
        )
        return result

    async def check_sudden_change(
        self,
        member_id: str,
        metric: HealthMetric,
        new_value: float,
        measured_at: datetime,
        history_days: int = 30,
    ) -> HealthAlert | None:
        """Compare ``new_value`` with the member's history before its day."""
        history_end = measured_at.replace(hour=0, minute=0, second=0, microsecond=0)
        history_start = history_end - timedelta(days=history_days)
        history = await self.repository.fetch_series(
            member_id, metric, history_start, history_end - timedelta(microseconds=1)
        )

        alert = detect_sudden_change(metric, history, new_value, self.config)
        if alert is not None:
            self.logger.warning(
                "sudden_change_detected",
                member_id=member_id,
                metric=metric.value,
                severity=alert.severity.value,
                deviation=round(alert.deviation or 0.0, 2),
            )
        return alert
