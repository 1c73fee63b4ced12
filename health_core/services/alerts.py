"""
History-based health alerts.

Rule checks over data the caller has already fetched: a 3-sigma test for
sudden changes, sustained nutrition imbalance, drift away from an active goal
and gaps in logging. Every check returns advisory alerts and never raises on
sparse data.
"""

from collections.abc import Sequence

import structlog

from health_core.config import DEFAULT_CONFIG, AlertConfig, AnalyticsConfig
from health_core.domain.models import (
    AlertType,
    DailyNutritionTarget,
    DataPoint,
    GoalType,
    HealthAlert,
    HealthGoal,
    HealthMetric,
    Severity,
)
from health_core.services.statistics import compute_statistics

logger = structlog.get_logger(__name__)

_METRIC_LABELS: dict[HealthMetric, tuple[str, str]] = {
    HealthMetric.WEIGHT: ("Weight", "kg"),
    HealthMetric.BODY_FAT: ("Body fat", "%"),
    HealthMetric.MUSCLE_MASS: ("Muscle mass", "kg"),
    HealthMetric.BLOOD_PRESSURE_SYSTOLIC: ("Systolic blood pressure", "mmHg"),
    HealthMetric.BLOOD_PRESSURE_DIASTOLIC: ("Diastolic blood pressure", "mmHg"),
    HealthMetric.HEART_RATE: ("Heart rate", "bpm"),
}


def _sigma_severity(deviation: float, config: AlertConfig) -> Severity:
    if deviation >= config.critical_sigma:
        return Severity.CRITICAL
    if deviation >= config.high_sigma:
        return Severity.HIGH
    return Severity.MEDIUM


def detect_sudden_change(
    metric: HealthMetric,
    history: Sequence[DataPoint],
    new_value: float,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> HealthAlert | None:
    """
    Flag ``new_value`` if it falls outside mean ± k·sigma of ``history``.

    Needs at least ``min_history_points`` samples. A flat history has no
    spread to judge against and never alerts.
    """
    rules = config.alerts
    if len(history) < rules.min_history_points:
        return None

    stats = compute_statistics(history)
    if stats.std_dev == 0:
        return None

    lower = stats.mean - rules.sigma_multiplier * stats.std_dev
    upper = stats.mean + rules.sigma_multiplier * stats.std_dev
    if lower <= new_value <= upper:
        return None

    deviation = abs(new_value - stats.mean) / stats.std_dev
    label, unit = _METRIC_LABELS[metric]
    direction = "rose" if new_value > stats.mean else "dropped"

    return HealthAlert(
        alert_type=AlertType.SUDDEN_CHANGE,
        severity=_sigma_severity(deviation, rules),
        title=f"Unusual {label.lower()} reading",
        description=(
            f"{label} suddenly {direction} to {new_value:.1f}{unit}, outside the normal "
            f"range ({lower:.1f}-{upper:.1f}{unit})"
        ),
        value=new_value,
        expected_min=lower,
        expected_max=upper,
        deviation=deviation,
    )


def detect_nutrition_imbalance(
    targets: Sequence[DailyNutritionTarget], config: AnalyticsConfig = DEFAULT_CONFIG
) -> list[HealthAlert]:
    """Alert when protein is short or calories run high on every recent day."""
    rules = config.alerts
    if len(targets) < rules.nutrition_window_days:
        return []

    recent = sorted(targets, key=lambda t: t.day)[-rules.nutrition_window_days :]
    days = len(recent)
    alerts: list[HealthAlert] = []

    if all(t.actual_protein < t.target_protein * rules.protein_deficit_ratio for t in recent):
        avg_actual = sum(t.actual_protein for t in recent) / days
        avg_target = sum(t.target_protein for t in recent) / days
        alerts.append(
            HealthAlert(
                alert_type=AlertType.NUTRITION_IMBALANCE,
                severity=Severity.HIGH,
                title="Protein intake severely low",
                description=(
                    f"Protein intake stayed below {rules.protein_deficit_ratio:.0%} of target "
                    f"for {days} days (average {avg_actual:.1f}g, target {avg_target:.1f}g)"
                ),
                value=avg_actual,
                expected_min=avg_target * 0.8,
                expected_max=avg_target * 1.2,
            )
        )

    if all(t.actual_calories > t.target_calories * rules.calorie_excess_ratio for t in recent):
        avg_actual = sum(t.actual_calories for t in recent) / days
        avg_target = sum(t.target_calories for t in recent) / days
        alerts.append(
            HealthAlert(
                alert_type=AlertType.NUTRITION_IMBALANCE,
                severity=Severity.MEDIUM,
                title="Calorie intake above target",
                description=(
                    f"Calorie intake exceeded target by more than "
                    f"{rules.calorie_excess_ratio - 1:.0%} for {days} days "
                    f"(average {avg_actual:.0f}kcal, target {avg_target:.0f}kcal)"
                ),
                value=avg_actual,
                expected_min=avg_target * 0.8,
                expected_max=avg_target * 1.2,
            )
        )

    return alerts


def detect_goal_deviation(
    goal: HealthGoal | None, latest_weight: float | None
) -> HealthAlert | None:
    """Alert when weight moves away from the start weight against the goal."""
    if goal is None or latest_weight is None:
        return None

    losing = goal.goal_type == GoalType.LOSE_WEIGHT
    if losing and latest_weight > goal.start_weight:
        expected_min, expected_max = 0.0, goal.target_weight
    elif not losing and latest_weight < goal.start_weight:
        expected_min, expected_max = goal.target_weight, 1000.0
    else:
        return None

    aim = "weight loss" if losing else "muscle gain"
    return HealthAlert(
        alert_type=AlertType.GOAL_DEVIATION,
        severity=Severity.MEDIUM,
        title="Progress moving away from goal",
        description=(
            f"Weight is trending against your {aim} goal; current weight "
            f"{latest_weight:.1f}kg versus start weight {goal.start_weight:.1f}kg"
        ),
        value=latest_weight,
        expected_min=expected_min,
        expected_max=expected_max,
    )


def detect_missing_data(meal_log_count: int, exercise_log_count: int) -> list[HealthAlert]:
    """Alert when nothing was logged for meals or exercise in the window."""
    alerts: list[HealthAlert] = []
    if meal_log_count == 0:
        alerts.append(
            HealthAlert(
                alert_type=AlertType.MISSING_DATA,
                severity=Severity.LOW,
                title="No meals logged",
                description="No meals were logged recently; keep logging to track nutrition",
                value=0.0,
            )
        )
    if exercise_log_count == 0:
        alerts.append(
            HealthAlert(
                alert_type=AlertType.MISSING_DATA,
                severity=Severity.LOW,
                title="No exercise logged",
                description="No exercise was logged recently; log workouts to track activity",
                value=0.0,
            )
        )
    return alerts


def detect_all_alerts(
    *,
    nutrition_targets: Sequence[DailyNutritionTarget] = (),
    goal: HealthGoal | None = None,
    latest_weight: float | None = None,
    meal_log_count: int = 0,
    exercise_log_count: int = 0,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> list[HealthAlert]:
    """Run the nutrition, goal and missing-data checks for one member."""
    alerts = detect_nutrition_imbalance(nutrition_targets, config)

    goal_alert = detect_goal_deviation(goal, latest_weight)
    if goal_alert is not None:
        alerts.append(goal_alert)

    alerts.extend(detect_missing_data(meal_log_count, exercise_log_count))

    if alerts:
        logger.info(
            "health_alerts_detected",
            count=len(alerts),
            types=sorted({a.alert_type.value for a in alerts}),
        )
    return alerts
