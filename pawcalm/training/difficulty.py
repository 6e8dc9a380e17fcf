"""
Difficulty Adjuster.

Sets the next absence session's target duration from the animal's
baseline tolerance, its recent outcomes and how the owner feels.

The trend ladder is evaluated top-down and the first match wins, so
regression rules always beat progression rules:

    3+ consecutive struggled     x0.50
    exactly 2 consecutive        x0.70
    most recent struggled        x0.85
    4+ great, 0 struggled (of 5) x1.15
    3+ great (of 5)              x1.10
    otherwise                    x1.00

The owner modifier is applied on top, then the result is rounded half
up to whole minutes and clamped to [1, 60].
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from pawcalm.core.errors import InvalidInputError
from pawcalm.core.models import OwnerEnergy, OwnerMood, OwnerState, SessionResponse
from pawcalm.core.thresholds import (
    MAJOR_REGRESSION_MULTIPLIER,
    MAX_TARGET_MINUTES,
    MIN_TARGET_MINUTES,
    MINOR_REGRESSION_MULTIPLIER,
    OUTCOME_WINDOW,
    OWNER_CONFIDENT_MULTIPLIER,
    OWNER_STRAIN_MULTIPLIER,
    PROGRESS_MULTIPLIER,
    REGRESSION_MULTIPLIER,
    STRONG_PROGRESS_MULTIPLIER,
)


@dataclass(frozen=True)
class DifficultyAdjustment:
    """Full breakdown of a target-duration decision."""

    baseline: float
    rule_id: str
    trend_multiplier: float
    owner_rule_id: str | None
    owner_multiplier: float
    raw_minutes: float
    target_minutes: int

    def to_dict(self) -> dict:
        return {
            "baseline": self.baseline,
            "rule_id": self.rule_id,
            "trend_multiplier": self.trend_multiplier,
            "owner_rule_id": self.owner_rule_id,
            "owner_multiplier": self.owner_multiplier,
            "raw_minutes": self.raw_minutes,
            "target_minutes": self.target_minutes,
        }


def _leading_struggles(outcomes: Sequence[SessionResponse]) -> int:
    count = 0
    for outcome in outcomes:
        if outcome is not SessionResponse.STRUGGLED:
            break
        count += 1
    return count


def _trend_rule(outcomes: Sequence[SessionResponse]) -> tuple[str, float]:
    struggles = _leading_struggles(outcomes)
    if struggles >= 3:
        return "major_regression", MAJOR_REGRESSION_MULTIPLIER
    if struggles == 2:
        return "regression", REGRESSION_MULTIPLIER
    if struggles == 1:
        return "minor_regression", MINOR_REGRESSION_MULTIPLIER

    window = outcomes[:OUTCOME_WINDOW]
    great = sum(1 for outcome in window if outcome is SessionResponse.GREAT)
    struggled = sum(1 for outcome in window if outcome is SessionResponse.STRUGGLED)
    if great >= 4 and struggled == 0:
        return "strong_progress", STRONG_PROGRESS_MULTIPLIER
    if great >= 3:
        return "progress", PROGRESS_MULTIPLIER
    return "steady", 1.0


def _owner_rule(
    owner_state: OwnerState | None, outcomes: Sequence[SessionResponse]
) -> tuple[str | None, float]:
    if owner_state is None:
        return None, 1.0
    if owner_state.mood is OwnerMood.ANXIOUS or owner_state.energy is OwnerEnergy.LOW:
        return "owner_strained", OWNER_STRAIN_MULTIPLIER
    last_struggled = bool(outcomes) and outcomes[0] is SessionResponse.STRUGGLED
    if (
        owner_state.mood is OwnerMood.CONFIDENT
        and owner_state.energy is OwnerEnergy.HIGH
        and not last_struggled
    ):
        return "owner_confident", OWNER_CONFIDENT_MULTIPLIER
    return None, 1.0


def round_half_up(value: float) -> int:
    # Strip float noise (3.4999999999999996) before rounding
    return int(math.floor(round(value, 9) + 0.5))


def adjust_difficulty(
    baseline: float,
    recent_outcomes: Sequence[SessionResponse | str] = (),
    owner_state: OwnerState | None = None,
) -> DifficultyAdjustment:
    """
    Compute the next target duration with its full breakdown.

    Args:
        baseline: Current tolerance in minutes
        recent_outcomes: Dog responses, most recent first
        owner_state: Owner's self-report before the session

    Raises:
        InvalidInputError: for a negative baseline or an unknown outcome
    """
    if baseline < 0:
        raise InvalidInputError(f"Baseline must be non-negative, got {baseline}")
    try:
        outcomes = [SessionResponse(outcome) for outcome in recent_outcomes]
    except ValueError as exc:
        raise InvalidInputError(f"Unknown session outcome: {exc}") from exc

    rule_id, trend = _trend_rule(outcomes)
    owner_rule_id, owner = _owner_rule(owner_state, outcomes)

    raw = baseline * trend * owner
    target = min(MAX_TARGET_MINUTES, max(MIN_TARGET_MINUTES, round_half_up(raw)))

    logger.debug(
        f"Target {target} min from baseline {baseline} ({rule_id} x{trend}, "
        f"{owner_rule_id or 'no owner modifier'} x{owner})"
    )
    return DifficultyAdjustment(
        baseline=baseline,
        rule_id=rule_id,
        trend_multiplier=trend,
        owner_rule_id=owner_rule_id,
        owner_multiplier=owner,
        raw_minutes=raw,
        target_minutes=target,
    )


def compute_target_duration(
    baseline: float,
    recent_outcomes: Sequence[SessionResponse | str] = (),
    owner_state: OwnerState | None = None,
) -> int:
    """Next session's target duration in whole minutes, within [1, 60]."""
    return adjust_difficulty(baseline, recent_outcomes, owner_state).target_minutes
