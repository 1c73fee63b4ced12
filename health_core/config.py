"""
Configuration management with environment variable support and validation.

Design principles:
- Domain thresholds are immutable values passed explicitly into computations
- Validation at construction (fail fast)
- Type safety with Pydantic
- Only operational knobs (logging, default window sizes) come from the environment
"""

import math
import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class TrendConfig(BaseModel):
    """Thresholds for trend detection and period comparison."""

    model_config = ConfigDict(frozen=True)

    slope_threshold_per_day: float = Field(
        default=0.01, ge=0.0, description="Dead-band below which a slope counts as STABLE"
    )
    change_percent_threshold: float = Field(
        default=1.0, ge=0.0, description="Percent change below which periods count as STABLE"
    )
    moving_average_window: int = Field(default=7, gt=0, description="Default smoothing window")
    prediction_horizon: int = Field(default=7, gt=0, description="Default number of predictions")
    prediction_step_days: float = Field(
        default=1.0, gt=0.0, description="Spacing of predicted points in days"
    )


class VitalRange(BaseModel):
    """Inclusive plausible range for one vital sign."""

    model_config = ConfigDict(frozen=True)

    label: str
    minimum: float
    maximum: float
    unit: str

    @model_validator(mode="after")
    def minimum_below_maximum(self) -> "VitalRange":
        if self.minimum >= self.maximum:
            raise ValueError(f"{self.label}: minimum must be below maximum")
        return self

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


class ValidationConfig(BaseModel):
    """Structural ranges for submitted health records."""

    model_config = ConfigDict(frozen=True)

    weight: VitalRange = VitalRange(label="Weight", minimum=20, maximum=300, unit="kg")
    body_fat: VitalRange = VitalRange(label="Body fat", minimum=3, maximum=50, unit="%")
    muscle_mass: VitalRange = VitalRange(label="Muscle mass", minimum=10, maximum=150, unit="kg")
    blood_pressure_systolic: VitalRange = VitalRange(
        label="Systolic blood pressure", minimum=60, maximum=200, unit="mmHg"
    )
    blood_pressure_diastolic: VitalRange = VitalRange(
        label="Diastolic blood pressure", minimum=40, maximum=150, unit="mmHg"
    )
    heart_rate: VitalRange = VitalRange(label="Heart rate", minimum=40, maximum=220, unit="bpm")


class AnomalyConfig(BaseModel):
    """Per-day delta thresholds between consecutive readings."""

    model_config = ConfigDict(frozen=True)

    weight_anomaly_per_day: float = Field(default=5.0, gt=0.0)
    weight_warning_per_day: float = Field(default=3.0, gt=0.0)
    body_fat_anomaly_per_day: float = Field(default=5.0, gt=0.0)
    systolic_warning_per_day: float = Field(default=30.0, gt=0.0)
    heart_rate_warning_per_day: float = Field(default=50.0, gt=0.0)

    @model_validator(mode="after")
    def warning_below_anomaly(self) -> "AnomalyConfig":
        if self.weight_warning_per_day > self.weight_anomaly_per_day:
            raise ValueError("weight warning threshold must not exceed the anomaly threshold")
        return self


class ScoringConfig(BaseModel):
    """Domain weights, grade cut-offs and recommendation threshold."""

    model_config = ConfigDict(frozen=True)

    nutrition_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    exercise_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    sleep_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    medical_weight: float = Field(default=0.1, ge=0.0, le=1.0)

    excellent_min: float = Field(default=90.0, ge=0.0, le=100.0)
    good_min: float = Field(default=75.0, ge=0.0, le=100.0)
    fair_min: float = Field(default=60.0, ge=0.0, le=100.0)

    recommendation_threshold: float = Field(
        default=70.0, ge=0.0, le=100.0, description="Domain scores below this get advice"
    )

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        total = math.fsum(
            (self.nutrition_weight, self.exercise_weight, self.sleep_weight, self.medical_weight)
        )
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"domain weights must sum to 1.0, got {total}")
        if not self.fair_min <= self.good_min <= self.excellent_min:
            raise ValueError("grade cut-offs must be ordered fair <= good <= excellent")
        return self


class AlertConfig(BaseModel):
    """Rules for history-based health alerts."""

    model_config = ConfigDict(frozen=True)

    sigma_multiplier: float = Field(default=3.0, gt=0.0)
    min_history_points: int = Field(default=7, ge=2)
    high_sigma: float = Field(default=3.5, gt=0.0)
    critical_sigma: float = Field(default=4.0, gt=0.0)

    nutrition_window_days: int = Field(default=3, gt=0)
    protein_deficit_ratio: float = Field(default=0.5, gt=0.0)
    calorie_excess_ratio: float = Field(default=1.3, gt=1.0)


class AnalyticsConfig(BaseModel):
    """All domain thresholds, grouped. Pass explicitly; never mutate."""

    model_config = ConfigDict(frozen=True)

    trend: TrendConfig = TrendConfig()
    validation: ValidationConfig = ValidationConfig()
    anomaly: AnomalyConfig = AnomalyConfig()
    scoring: ScoringConfig = ScoringConfig()
    alerts: AlertConfig = AlertConfig()


DEFAULT_CONFIG = AnalyticsConfig()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    analytics: AnalyticsConfig = DEFAULT_CONFIG
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _format_to_literal(val: str | None, debug: bool) -> Literal["json", "console"]:
        if val is None:
            return "console" if debug else "json"
        return "console" if val.strip().lower() == "console" else "json"

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    trend_config = TrendConfig(
        moving_average_window=int(os.getenv("MOVING_AVERAGE_WINDOW", "7")),
        prediction_horizon=int(os.getenv("PREDICTION_HORIZON_DAYS", "7")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format=_format_to_literal(os.getenv("LOG_FORMAT"), debug),
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        analytics=AnalyticsConfig(trend=trend_config),
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
