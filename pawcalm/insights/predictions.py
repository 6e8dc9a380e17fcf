"""
Predictions.

Closed-form forecasts from counts and rates, scaled by the dog's profile
(anxiety severity and age bracket). Nothing is learned; the constants in
``pawcalm.core.thresholds`` are research-based defaults.

Rules are ordered warning > milestone > comparison > mastery estimate.
There is no catch-all.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from pawcalm.core.models import Animal
from pawcalm.core.thresholds import (
    ABSENCE_GOAL_MINUTES,
    AGE_MULTIPLIERS,
    AVG_PRACTICES_TO_MASTER_CUE,
    BUILDING_DATA_PRACTICES,
    DEFAULT_PRACTICES_PER_DAY,
    EXPECTED_CALM_RATE,
    MINUTES_GAINED_PER_SESSION,
    MISSION_READY_CUES,
    PLATEAU_FIRST_DAY,
    PLATEAU_LAST_DAY,
    SESSIONS_PER_DAY,
    SEVERITY_MULTIPLIERS,
    SUCCESS_BASE_PERCENT,
    SUCCESS_CAP_PERCENT,
)
from pawcalm.insights.selector import InsightCategory, InsightRule, RuleSet
from pawcalm.progress.snapshot import ProgressSnapshot


@dataclass(frozen=True)
class PredictionContext:
    snapshot: ProgressSnapshot
    animal: Animal

    @property
    def profile_multiplier(self) -> float:
        """Severity x age; harder cases take proportionally longer."""
        severity = SEVERITY_MULTIPLIERS.get(self.animal.severity.value, 1.0)
        age = AGE_MULTIPLIERS.get(self.animal.age_bracket.value, 1.0)
        return severity * age


def calm_percentile(ctx: PredictionContext) -> int:
    """Rough standing against dogs with the same severity."""
    expected = EXPECTED_CALM_RATE.get(ctx.animal.severity.value, EXPECTED_CALM_RATE["moderate"])
    actual = ctx.snapshot.calm_rate

    percentile = 50
    if actual > expected * 1.2:
        percentile = 75
    if actual > expected * 1.4:
        percentile = 90
    if actual < expected * 0.8:
        percentile = 25
    if actual < expected * 0.6:
        percentile = 10
    return percentile


def estimated_days_to_mastery(ctx: PredictionContext) -> int:
    """Days until enough cues are mastered for absence training."""
    s = ctx.snapshot
    remaining = max(0, MISSION_READY_CUES - s.cues_mastered)
    practices_per_cue = AVG_PRACTICES_TO_MASTER_CUE * ctx.profile_multiplier

    pace = DEFAULT_PRACTICES_PER_DAY
    if s.days_since_start > 0 and s.total_practices > 0:
        pace = s.total_practices / s.days_since_start
    return math.ceil(remaining * practices_per_cue / max(pace, 1))


def estimated_days_to_goal(ctx: PredictionContext) -> int:
    """Days until a 30-minute calm absence at a steady pace."""
    minutes_left = ABSENCE_GOAL_MINUTES - ctx.snapshot.longest_calm_absence
    sessions_needed = math.ceil(minutes_left / MINUTES_GAINED_PER_SESSION)
    return math.ceil(sessions_needed / SESSIONS_PER_DAY)


def success_probability(ctx: PredictionContext) -> int:
    s = ctx.snapshot
    return min(SUCCESS_CAP_PERCENT, SUCCESS_BASE_PERCENT + s.current_streak * 2 + s.cues_mastered * 5)


def _has_data(ctx: PredictionContext) -> bool:
    return ctx.snapshot.total_practices >= BUILDING_DATA_PRACTICES


PREDICTION_RULES = RuleSet(
    name="prediction",
    rules=(
        # Warnings
        InsightRule(
            "plateau_warning",
            InsightCategory.WARNING,
            lambda c: PLATEAU_FIRST_DAY <= c.snapshot.days_since_start <= PLATEAU_LAST_DAY
            and c.snapshot.cues_mastered >= 1,
            lambda c: {"risk_factor": "plateau", "confidence": "high"},
        ),
        # Milestones
        InsightRule(
            "almost_a_week",
            InsightCategory.MILESTONE,
            lambda c: 5 <= c.snapshot.current_streak < 7,
            lambda c: {"days_remaining": 7 - c.snapshot.current_streak, "confidence": "high"},
        ),
        InsightRule(
            "building_data",
            InsightCategory.MILESTONE,
            lambda c: not _has_data(c),
            lambda c: {"practices_needed": BUILDING_DATA_PRACTICES - c.snapshot.total_practices},
        ),
        # Comparisons
        InsightRule(
            "above_average",
            InsightCategory.COMPARISON,
            lambda c: _has_data(c) and calm_percentile(c) >= 75,
            lambda c: {
                "percentile": calm_percentile(c),
                "severity": c.animal.severity.value,
                "confidence": "medium",
            },
        ),
        InsightRule(
            "building_foundation",
            InsightCategory.COMPARISON,
            lambda c: _has_data(c) and calm_percentile(c) <= 25,
            lambda c: {
                "percentile": calm_percentile(c),
                "severity": c.animal.severity.value,
                "confidence": "medium",
            },
        ),
        InsightRule(
            "high_success_probability",
            InsightCategory.COMPARISON,
            lambda c: c.snapshot.current_streak >= 7 and c.snapshot.cues_mastered >= 1,
            lambda c: {"percent": success_probability(c), "confidence": "medium"},
        ),
        # Mastery estimates
        InsightRule(
            "cue_mastery_estimate",
            InsightCategory.MASTERY,
            lambda c: c.snapshot.cues_mastered < MISSION_READY_CUES,
            lambda c: {
                "cues_remaining": MISSION_READY_CUES - c.snapshot.cues_mastered,
                "estimated_days": estimated_days_to_mastery(c),
                "confidence": "medium" if c.snapshot.total_practices > 10 else "low",
            },
        ),
        InsightRule(
            "absence_goal_estimate",
            InsightCategory.MASTERY,
            lambda c: c.snapshot.cues_mastered >= MISSION_READY_CUES
            and c.snapshot.total_sessions > 0
            and c.snapshot.longest_calm_absence < ABSENCE_GOAL_MINUTES,
            lambda c: {
                "current_minutes": c.snapshot.longest_calm_absence,
                "goal_minutes": ABSENCE_GOAL_MINUTES,
                "estimated_days": estimated_days_to_goal(c),
                "confidence": "medium" if c.snapshot.total_sessions > 5 else "low",
            },
        ),
    ),
)
