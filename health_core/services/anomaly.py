"""
Validation of newly submitted health records and anomaly checks against the
member's most recent prior record.

Structural validation always runs first and is reported as field-level
errors. Anomalies are advisory: they accompany an accepted record and never
block the write.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from health_core.config import DEFAULT_CONFIG, AnalyticsConfig, AnomalyConfig
from health_core.domain.models import (
    AnomalyCheckResult,
    AnomalyFlag,
    AnomalySeverity,
    FieldError,
    HealthMetric,
    HealthRecord,
)
from health_core.errors import HealthDataValidationError
from health_core.services.result import Result

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _DeltaRule:
    """Thresholds for one metric, in units per elapsed day."""

    metric: HealthMetric
    label: str
    unit: str
    anomaly_above: Callable[[AnomalyConfig], float | None]
    warning_above: Callable[[AnomalyConfig], float | None]


_DELTA_RULES: tuple[_DeltaRule, ...] = (
    _DeltaRule(
        metric=HealthMetric.WEIGHT,
        label="Weight",
        unit="kg",
        anomaly_above=lambda c: c.weight_anomaly_per_day,
        warning_above=lambda c: c.weight_warning_per_day,
    ),
    _DeltaRule(
        metric=HealthMetric.BODY_FAT,
        label="Body fat",
        unit="%",
        anomaly_above=lambda c: c.body_fat_anomaly_per_day,
        warning_above=lambda c: None,
    ),
    _DeltaRule(
        metric=HealthMetric.BLOOD_PRESSURE_SYSTOLIC,
        label="Systolic blood pressure",
        unit="mmHg",
        anomaly_above=lambda c: None,
        warning_above=lambda c: c.systolic_warning_per_day,
    ),
    _DeltaRule(
        metric=HealthMetric.HEART_RATE,
        label="Heart rate",
        unit="bpm",
        anomaly_above=lambda c: None,
        warning_above=lambda c: c.heart_rate_warning_per_day,
    ),
)


def validate_health_record(
    record: HealthRecord, config: AnalyticsConfig = DEFAULT_CONFIG
) -> list[FieldError]:
    """Return every structural violation in ``record``; empty when valid."""
    errors: list[FieldError] = []

    if not record.has_any_metric():
        errors.append(
            FieldError(field="record", message="At least one health metric must be provided")
        )
        return errors

    for metric in HealthMetric:
        value = record.metric_value(metric)
        if value is None:
            continue
        vital_range = getattr(config.validation, metric.value)
        # NaN fails the range check as well
        if not vital_range.contains(value):
            errors.append(
                FieldError(
                    field=metric.value,
                    message=(
                        f"{vital_range.label} must be between {vital_range.minimum:g} and "
                        f"{vital_range.maximum:g} {vital_range.unit}, got {value:g}"
                    ),
                )
            )

    systolic = record.blood_pressure_systolic
    diastolic = record.blood_pressure_diastolic
    if systolic is not None and diastolic is not None and systolic < diastolic:
        errors.append(
            FieldError(
                field=HealthMetric.BLOOD_PRESSURE_SYSTOLIC.value,
                message="Systolic blood pressure must not be lower than diastolic blood pressure",
            )
        )

    return errors


def elapsed_days(previous: HealthRecord, new: HealthRecord) -> int:
    """Whole days between two readings, regardless of their order."""
    return abs(new.measured_at - previous.measured_at).days


def _compare_metric(
    rule: _DeltaRule, previous: HealthRecord, new: HealthRecord, days: int, config: AnomalyConfig
) -> AnomalyFlag | None:
    old_value = previous.metric_value(rule.metric)
    new_value = new.metric_value(rule.metric)
    if old_value is None or new_value is None:
        return None

    delta = new_value - old_value
    # same-day readings are compared on the raw delta
    per_day = abs(delta) / days if days > 0 else abs(delta)

    anomaly_above = rule.anomaly_above(config)
    warning_above = rule.warning_above(config)
    if anomaly_above is not None and per_day > anomaly_above:
        severity = AnomalySeverity.ANOMALY
    elif warning_above is not None and per_day > warning_above:
        severity = AnomalySeverity.WARNING
    else:
        return None

    span = "on the same day" if days == 0 else f"over {days} day(s)"
    return AnomalyFlag(
        metric=rule.metric,
        severity=severity,
        message=(
            f"{rule.label} changed by {delta:+.1f} {rule.unit} {span} "
            f"({per_day:.1f} {rule.unit}/day); please confirm the reading is accurate"
        ),
        delta=delta,
        delta_per_day=per_day,
    )


def check_health_record(
    previous: HealthRecord | None,
    new: HealthRecord,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> Result[list[AnomalyFlag], HealthDataValidationError]:
    """
    Validate ``new`` and compare it with ``previous``.

    Returns:
        Result holding the advisory anomaly flags (possibly empty), or a
        HealthDataValidationError listing every field-level violation.
    """
    errors = validate_health_record(new, config)
    if errors:
        logger.info(
            "record_validation_failed",
            error_count=len(errors),
            fields=[e.field for e in errors],
        )
        return Result.err(HealthDataValidationError(errors))

    if previous is None:
        return Result.ok([])

    days = elapsed_days(previous, new)
    flags: list[AnomalyFlag] = []
    for rule in _DELTA_RULES:
        flag = _compare_metric(rule, previous, new, days, config.anomaly)
        if flag is not None:
            flags.append(flag)
            logger.warning(
                "anomaly_flagged",
                metric=flag.metric.value,
                severity=flag.severity.value,
                delta_per_day=round(flag.delta_per_day, 2),
                elapsed_days=days,
            )

    return Result.ok(flags)


def detect_anomaly(
    previous: HealthRecord | None,
    new: HealthRecord,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> AnomalyCheckResult:
    """
    Validate a new reading and flag implausible changes since the last one.

    Invalid records come back with ``valid=False`` and their field errors;
    call :meth:`AnomalyCheckResult.raise_for_errors` to turn that into a
    HealthDataValidationError. Anomaly flags never make a record invalid.
    """
    result = check_health_record(previous, new, config)
    if result.is_err():
        return AnomalyCheckResult(valid=False, errors=result.unwrap_err().errors)
    return AnomalyCheckResult(valid=True, anomalies=result.unwrap())
