"""
Domain models for health analytics.

These models represent the core business concepts and are framework-agnostic.
Every derived model is computed fresh per call and is immutable so results can
be shared freely between callers.
"""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from health_core.errors import HealthDataValidationError


class TrendDirection(str, Enum):
    """Short-term direction of a series after applying the slope dead-band."""

    UP = "UP"
    DOWN = "DOWN"
    STABLE = "STABLE"


class ChangeType(str, Enum):
    """Classification of a period-over-period change."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    STABLE = "STABLE"


class HealthMetric(str, Enum):
    """Vital-sign metrics carried by a health record."""

    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    MUSCLE_MASS = "muscle_mass"
    BLOOD_PRESSURE_SYSTOLIC = "blood_pressure_systolic"
    BLOOD_PRESSURE_DIASTOLIC = "blood_pressure_diastolic"
    HEART_RATE = "heart_rate"


class AnomalySeverity(str, Enum):
    """Advisory level of a delta between consecutive readings."""

    WARNING = "warning"
    ANOMALY = "anomaly"


class Severity(str, Enum):
    """Alert severity levels for history-based health alerts."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(str, Enum):
    SUDDEN_CHANGE = "sudden_change"
    NUTRITION_IMBALANCE = "nutrition_imbalance"
    GOAL_DEVIATION = "goal_deviation"
    MISSING_DATA = "missing_data"


class ScoreDomain(str, Enum):
    NUTRITION = "nutrition"
    EXERCISE = "exercise"
    SLEEP = "sleep"
    MEDICAL = "medical"


class ScoreGrade(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"


class SleepQuality(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"


class GoalType(str, Enum):
    LOSE_WEIGHT = "LOSE_WEIGHT"
    GAIN_MUSCLE = "GAIN_MUSCLE"


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


class DataPoint(BaseModel):
    """Single (timestamp, value) sample of a tracked metric."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float = Field(allow_inf_nan=False)


class StatisticsSummary(BaseModel):
    """Descriptive statistics over a point set. All zeros for empty input."""

    model_config = ConfigDict(frozen=True)

    mean: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    std_dev: float = Field(default=0.0, ge=0.0, description="Population standard deviation")
    count: int = Field(default=0, ge=0)


class RegressionResult(BaseModel):
    """Least-squares fit over (elapsed days, value) pairs."""

    model_config = ConfigDict(frozen=True)

    slope: float = Field(default=0.0, description="Value units per day")
    intercept: float = 0.0
    r_squared: float = Field(default=0.0, ge=0.0, le=1.0)
    direction: TrendDirection = TrendDirection.STABLE


class PeriodComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_mean: float
    previous_mean: float
    change_absolute: float
    change_percent: float = Field(description="Signed; 0 when the previous mean is 0")
    change_type: ChangeType


class TrendAnalysis(BaseModel):
    """Everything a dashboard needs to chart one metric over one window."""

    model_config = ConfigDict(frozen=True)

    data_points: list[DataPoint]
    statistics: StatisticsSummary
    trend: RegressionResult
    moving_average: list[DataPoint]
    predictions: list[DataPoint]
    period_comparison: PeriodComparison | None = None


# ---------------------------------------------------------------------------
# Health records and anomaly checks
# ---------------------------------------------------------------------------


class HealthRecord(BaseModel):
    """
    Vital-sign reading as submitted by a member.

    Any subset of the metrics may be present. Ranges are deliberately not
    enforced here: structural validation reports every violation at once with
    field-level messages instead of failing on the first one.
    """

    model_config = ConfigDict(frozen=True)

    measured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    weight: float | None = Field(None, description="Kilograms")
    body_fat: float | None = Field(None, description="Percent")
    muscle_mass: float | None = Field(None, description="Kilograms")
    blood_pressure_systolic: float | None = Field(None, description="mmHg")
    blood_pressure_diastolic: float | None = Field(None, description="mmHg")
    heart_rate: float | None = Field(None, description="Beats per minute")
    notes: str | None = None

    def metric_value(self, metric: HealthMetric) -> float | None:
        return getattr(self, metric.value)

    def has_any_metric(self) -> bool:
        return any(self.metric_value(metric) is not None for metric in HealthMetric)


class FieldError(BaseModel):
    """One structural violation on one field of a health record."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class AnomalyFlag(BaseModel):
    """Advisory flag for an implausible change between consecutive readings."""

    model_config = ConfigDict(frozen=True)

    metric: HealthMetric
    severity: AnomalySeverity
    message: str
    delta: float = Field(description="New value minus previous value")
    delta_per_day: float = Field(ge=0.0, description="Absolute change per elapsed day")


class AnomalyCheckResult(BaseModel):
    """Outcome of validating a new reading and comparing it with the last one."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    anomalies: list[AnomalyFlag] = Field(default_factory=list)

    @property
    def has_anomalies(self) -> bool:
        return bool(self.anomalies)

    def raise_for_errors(self) -> None:
        """Raise HealthDataValidationError if the record was structurally invalid."""
        if not self.valid:
            raise HealthDataValidationError(self.errors)


class HealthAlert(BaseModel):
    """Rule-based advisory derived from a member's already-fetched history."""

    model_config = ConfigDict(frozen=True)

    alert_type: AlertType
    severity: Severity
    title: str
    description: str
    value: float
    expected_min: float | None = None
    expected_max: float | None = None
    deviation: float | None = Field(None, ge=0.0, description="Distance from mean in sigmas")


class DailyNutritionTarget(BaseModel):
    """Target versus actual intake for one day."""

    model_config = ConfigDict(frozen=True)

    day: date
    target_calories: float = Field(gt=0.0)
    actual_calories: float = Field(ge=0.0)
    target_protein: float = Field(gt=0.0)
    actual_protein: float = Field(ge=0.0)


class HealthGoal(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_type: GoalType
    start_weight: float = Field(gt=0.0)
    target_weight: float = Field(gt=0.0)


# ---------------------------------------------------------------------------
# Health score
# ---------------------------------------------------------------------------


class NutrientIntake(BaseModel):
    """Actual versus target amount of one nutrient."""

    model_config = ConfigDict(frozen=True)

    actual: float = Field(ge=0.0)
    target: float = Field(ge=0.0)


class NutritionIntake(BaseModel):
    """
    Daily nutrition target-vs-actual figures.

    Calories are always present. When macros are supplied the nutrition score
    averages the ratio score of every nutrient.
    """

    model_config = ConfigDict(frozen=True)

    calories: NutrientIntake
    protein: NutrientIntake | None = None
    carbs: NutrientIntake | None = None
    fat: NutrientIntake | None = None

    def nutrients(self) -> list[NutrientIntake]:
        return [n for n in (self.calories, self.protein, self.carbs, self.fat) if n is not None]


class HealthScoreInputs(BaseModel):
    """
    Per-domain inputs for one day. A domain with no input counts as missing.

    Nutrition, exercise and sleep may be given raw (intake, minutes, hours)
    or as a pre-computed 0-100 score. Medical is always pre-computed.
    """

    model_config = ConfigDict(frozen=True)

    nutrition: NutritionIntake | None = None
    nutrition_score: float | None = Field(None, ge=0.0, le=100.0)
    exercise_minutes: float | None = Field(None, ge=0.0)
    exercise_score: float | None = Field(None, ge=0.0, le=100.0)
    sleep_hours: float | None = Field(None, ge=0.0, le=24.0)
    sleep_quality: SleepQuality | None = None
    sleep_score: float | None = Field(None, ge=0.0, le=100.0)
    medical_score: float | None = Field(None, ge=0.0, le=100.0)


class DomainScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: ScoreDomain
    value: float = Field(ge=0.0, le=100.0)
    has_data: bool = True


class CompositeHealthScore(BaseModel):
    """Weighted combination of the domain scores with a grade."""

    model_config = ConfigDict(frozen=True)

    overall: float = Field(ge=0.0, le=100.0)
    grade: ScoreGrade
    domain_scores: list[DomainScore]
    data_completeness: float = Field(ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)

    def score_for(self, domain: ScoreDomain) -> DomainScore:
        return next(s for s in self.domain_scores if s.domain == domain)
