"""
Tests for configuration management in `health_core/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level and format coercion
- Operational overrides from the environment
- get_config cache behavior
- Validation of threshold models (weights, ranges, ordering)
- Immutability of the analytics configuration
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from health_core.config import (
    DEFAULT_CONFIG,
    AnomalyConfig,
    AppConfig,
    LoggingConfig,
    ScoringConfig,
    VitalRange,
    get_config,
    load_config_from_env,
)
from health_core.observability import configure_logging


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo global structlog and root logger changes made by configure_logging."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("MOVING_AVERAGE_WINDOW", raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.logging.level == "INFO"
    assert config.analytics.trend.moving_average_window == 7


def test_production_logs_json_unless_overridden(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    config = load_config_from_env()
    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"

    monkeypatch.setenv("LOG_FORMAT", "console")
    assert load_config_from_env().logging.format == "console"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    assert load_config_from_env().logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert load_config_from_env().logging.level == "ERROR"


def test_operational_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVING_AVERAGE_WINDOW", "14")
    monkeypatch.setenv("PREDICTION_HORIZON_DAYS", "30")

    trend = load_config_from_env().analytics.trend

    assert trend.moving_average_window == 14
    assert trend.prediction_horizon == 30
    # domain thresholds are not environment driven
    assert trend.slope_threshold_per_day == DEFAULT_CONFIG.trend.slope_threshold_per_day


def test_invalid_override_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVING_AVERAGE_WINDOW", "0")

    with pytest.raises(ValueError):
        load_config_from_env()


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


class TestThresholdModels:
    def test_defaults_match_domain_constants(self) -> None:
        assert DEFAULT_CONFIG.trend.slope_threshold_per_day == 0.01
        assert DEFAULT_CONFIG.trend.change_percent_threshold == 1.0
        assert DEFAULT_CONFIG.validation.weight.minimum == 20
        assert DEFAULT_CONFIG.validation.weight.maximum == 300
        assert DEFAULT_CONFIG.anomaly.weight_anomaly_per_day == 5.0
        scoring = DEFAULT_CONFIG.scoring
        assert (
            scoring.nutrition_weight,
            scoring.exercise_weight,
            scoring.sleep_weight,
            scoring.medical_weight,
        ) == (0.4, 0.3, 0.2, 0.1)

    def test_config_is_immutable(self) -> None:
        with pytest.raises(ValueError, match="frozen"):
            DEFAULT_CONFIG.trend.slope_threshold_per_day = 1.0  # type: ignore[misc]

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(ValueError, match="sum to 1.0"):
            ScoringConfig(nutrition_weight=0.5)

    def test_grade_cut_offs_must_be_ordered(self) -> None:
        with pytest.raises(ValueError, match="ordered"):
            ScoringConfig(good_min=95.0)

    def test_vital_range_bounds_must_be_ordered(self) -> None:
        with pytest.raises(ValueError, match="minimum must be below maximum"):
            VitalRange(label="Weight", minimum=300, maximum=20, unit="kg")

    def test_vital_range_is_inclusive(self) -> None:
        vital_range = VitalRange(label="Heart rate", minimum=40, maximum=220, unit="bpm")

        assert vital_range.contains(40)
        assert vital_range.contains(220)
        assert not vital_range.contains(220.5)

    def test_weight_warning_must_not_exceed_anomaly(self) -> None:
        with pytest.raises(ValueError, match="warning threshold"):
            AnomalyConfig(weight_warning_per_day=6.0)


@pytest.mark.usefixtures("restore_logging")
def test_configure_logging_renders_json(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingConfig(level="INFO", format="json"))

    structlog.get_logger("health_core.tests").info("config_logged", window=7)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "config_logged"
    assert payload["window"] == 7
    assert payload["level"] == "info"


@pytest.mark.usefixtures("restore_logging")
def test_configure_logging_filters_below_level(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingConfig(level="WARNING", format="console"))

    structlog.get_logger("health_core.tests").info("should_not_appear")

    assert "should_not_appear" not in capsys.readouterr().out
