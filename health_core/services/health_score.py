"""
Composite health score.

Each domain (nutrition, exercise, sleep, medical) is scored 0-100 from one
day's target-vs-actual data, then combined with fixed weights into an overall
figure and a grade. Tiers are half-open so that every real input lands in
exactly one tier.
"""

from collections.abc import Sequence

import numpy as np
import structlog

from health_core.config import DEFAULT_CONFIG, AnalyticsConfig, ScoringConfig
from health_core.domain.models import (
    CompositeHealthScore,
    DomainScore,
    HealthScoreInputs,
    NutrientIntake,
    NutritionIntake,
    ScoreDomain,
    ScoreGrade,
    SleepQuality,
)

logger = structlog.get_logger(__name__)

_SLEEP_QUALITY_ADJUSTMENT: dict[SleepQuality, float] = {
    SleepQuality.EXCELLENT: 10.0,
    SleepQuality.GOOD: 5.0,
    SleepQuality.FAIR: 0.0,
    SleepQuality.POOR: -10.0,
}

_LOW_SCORE_ADVICE: dict[ScoreDomain, str] = {
    ScoreDomain.NUTRITION: "Improve dietary balance so intake stays close to the daily targets",
    ScoreDomain.EXERCISE: "Increase exercise time to at least 30 minutes a day",
    ScoreDomain.SLEEP: "Aim for 7-9 hours of sleep every night",
    ScoreDomain.MEDICAL: "Some health indicators look abnormal; consider consulting a doctor",
}

_MISSING_DATA_ADVICE: dict[ScoreDomain, str] = {
    ScoreDomain.EXERCISE: "Start logging exercise to include it in your health score",
    ScoreDomain.SLEEP: "Start logging sleep to include it in your health score",
}


def _clamp_score(value: float) -> float:
    return min(100.0, max(0.0, value))


def score_nutrient_ratio(ratio: float) -> float:
    """Score how close actual intake is to target, 100 inside 90-110%."""
    if 0.9 <= ratio <= 1.1:
        return 100.0
    if 0.8 <= ratio < 0.9 or 1.1 < ratio <= 1.2:
        return 90.0
    if 0.7 <= ratio < 0.8 or 1.2 < ratio <= 1.3:
        return 75.0
    if 0.6 <= ratio < 0.7 or 1.3 < ratio <= 1.5:
        return 60.0
    return 40.0


def score_nutrient(intake: NutrientIntake) -> float:
    # a zero target leaves nothing to compare against
    if intake.target <= 0:
        return 0.0
    return score_nutrient_ratio(intake.actual / intake.target)


def score_nutrition(intake: NutritionIntake) -> float:
    """Average ratio score over every nutrient supplied."""
    return float(np.mean([score_nutrient(n) for n in intake.nutrients()]))


def score_exercise(minutes: float) -> float:
    """Step function over daily exercise minutes; no interpolation."""
    if minutes >= 30:
        return 100.0
    if minutes >= 22:
        return 90.0
    if minutes >= 15:
        return 75.0
    if minutes >= 10:
        return 60.0
    if minutes > 0:
        return 40.0
    return 0.0


def score_sleep(hours: float, quality: SleepQuality | None = None) -> float:
    """
    Tiered sleep score: [7, 9] is ideal, [6, 7) and (9, 10] acceptable,
    [5, 6) short, anything else poor. Sleep quality nudges the tier score.
    """
    if 7 <= hours <= 9:
        score = 100.0
    elif 6 <= hours < 7 or 9 < hours <= 10:
        score = 85.0
    elif 5 <= hours < 6:
        score = 65.0
    else:
        score = 40.0

    if quality is not None:
        score = _clamp_score(score + _SLEEP_QUALITY_ADJUSTMENT[quality])
    return score


def grade_for(overall: float, config: ScoringConfig) -> ScoreGrade:
    if overall >= config.excellent_min:
        return ScoreGrade.EXCELLENT
    if overall >= config.good_min:
        return ScoreGrade.GOOD
    if overall >= config.fair_min:
        return ScoreGrade.FAIR
    return ScoreGrade.POOR


def _domain_scores(inputs: HealthScoreInputs) -> list[DomainScore]:
    """Pre-computed domain scores take precedence over raw inputs."""
    nutrition = inputs.nutrition_score
    if nutrition is None and inputs.nutrition is not None:
        nutrition = score_nutrition(inputs.nutrition)

    exercise = inputs.exercise_score
    if exercise is None and inputs.exercise_minutes is not None:
        exercise = score_exercise(inputs.exercise_minutes)

    sleep = inputs.sleep_score
    if sleep is None and inputs.sleep_hours is not None:
        sleep = score_sleep(inputs.sleep_hours, inputs.sleep_quality)

    raw: dict[ScoreDomain, float | None] = {
        ScoreDomain.NUTRITION: nutrition,
        ScoreDomain.EXERCISE: exercise,
        ScoreDomain.SLEEP: sleep,
        ScoreDomain.MEDICAL: inputs.medical_score,
    }
    return [
        DomainScore(domain=domain, value=0.0, has_data=False)
        if value is None
        else DomainScore(domain=domain, value=_clamp_score(value))
        for domain, value in raw.items()
    ]


def _recommendations(scores: Sequence[DomainScore], config: ScoringConfig) -> list[str]:
    advice: list[str] = []
    for score in scores:
        if score.has_data and score.value < config.recommendation_threshold:
            advice.append(_LOW_SCORE_ADVICE[score.domain])
        elif not score.has_data and score.domain in _MISSING_DATA_ADVICE:
            advice.append(_MISSING_DATA_ADVICE[score.domain])
    return advice


def compute_health_score(
    inputs: HealthScoreInputs, config: AnalyticsConfig = DEFAULT_CONFIG
) -> CompositeHealthScore:
    """
    Combine the domain scores into the weighted composite health score.

    Missing domains contribute 0 to the weighted sum; ``data_completeness``
    reports the share of domains that had data so callers can judge how much
    to trust the figure.
    """
    scoring = config.scoring
    weights = {
        ScoreDomain.NUTRITION: scoring.nutrition_weight,
        ScoreDomain.EXERCISE: scoring.exercise_weight,
        ScoreDomain.SLEEP: scoring.sleep_weight,
        ScoreDomain.MEDICAL: scoring.medical_weight,
    }

    scores = _domain_scores(inputs)
    overall = _clamp_score(
        float(np.dot([s.value for s in scores], [weights[s.domain] for s in scores]))
    )
    completeness = sum(1 for s in scores if s.has_data) / len(scores)

    result = CompositeHealthScore(
        overall=overall,
        grade=grade_for(overall, scoring),
        domain_scores=scores,
        data_completeness=completeness,
        recommendations=_recommendations(scores, scoring),
    )

    logger.info(
        "health_score_computed",
        overall=round(result.overall, 2),
        grade=result.grade.value,
        data_completeness=result.data_completeness,
    )
    return result


def average_score(scores: Sequence[float]) -> float:
    """Mean of historical overall scores; 0 when there are none."""
    return float(np.mean(scores)) if len(scores) else 0.0
