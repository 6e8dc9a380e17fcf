"""
Cue Selector.

Scores the animal's cues and picks the next one to practice.

Scoring (additive, from a base of 50):
- +30 close to mastery (3-4 calm responses): finish it
- +20 never practiced: introduce new material
- +15 practiced with a 50%+ calm rate: reinforce what's working
- -10 last response was anxious: give it a rest
- -40 already at 5+ calm: focus elsewhere
- + uniform jitter in [0, jitter) so sessions don't feel scripted

The two cues practiced most recently today are skipped unless that
would leave nothing to pick.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from pawcalm.core.models import Cue, PracticeResponse
from pawcalm.core.thresholds import (
    CUE_ANXIOUS_PENALTY,
    CUE_BASE_SCORE,
    CUE_CLOSE_TO_MASTERY_BONUS,
    CUE_JITTER_MAX,
    CUE_MASTERED_PENALTY,
    CUE_NEW_BONUS,
    CUE_RECENT_EXCLUSION,
    CUE_WORKING_BONUS,
    CUE_WORKING_RATE,
    MASTERY_CALM_COUNT,
)


@dataclass
class CueScore:
    """Score breakdown for one candidate cue."""

    cue: Cue
    base: float = CUE_BASE_SCORE
    adjustment: float = 0.0
    jitter: float = 0.0
    reasons: list[str] = field(default_factory=list)

    @property
    def score(self) -> float:
        return self.base + self.adjustment + self.jitter

    @property
    def deterministic_score(self) -> float:
        """Score without jitter."""
        return self.base + self.adjustment


def _score_cue(cue: Cue, rng: random.Random, jitter: float) -> CueScore:
    result = CueScore(cue=cue)

    if cue.is_close_to_mastery:
        result.adjustment += CUE_CLOSE_TO_MASTERY_BONUS
        result.reasons.append("close_to_mastery")
    if cue.is_new:
        result.adjustment += CUE_NEW_BONUS
        result.reasons.append("new")
    elif cue.calm_rate >= CUE_WORKING_RATE:
        result.adjustment += CUE_WORKING_BONUS
        result.reasons.append("working")
    if cue.last_response is PracticeResponse.ANXIOUS:
        result.adjustment -= CUE_ANXIOUS_PENALTY
        result.reasons.append("recent_anxious")
    if cue.calm_count >= MASTERY_CALM_COUNT:
        result.adjustment -= CUE_MASTERED_PENALTY
        result.reasons.append("mastered")

    if jitter > 0:
        result.jitter = rng.random() * jitter
    return result


def _candidates(cues: Sequence[Cue], todays_practiced_ids: Sequence[str]) -> list[Cue]:
    recent = set(todays_practiced_ids[-CUE_RECENT_EXCLUSION:]) if CUE_RECENT_EXCLUSION else set()
    remaining = [cue for cue in cues if cue.id not in recent]
    return remaining or list(cues)


def score_cues(
    cues: Sequence[Cue],
    todays_practiced_ids: Sequence[str] = (),
    *,
    rng: random.Random | None = None,
    jitter: float = CUE_JITTER_MAX,
) -> list[CueScore]:
    """
    Score every eligible cue, in input order.

    Args:
        cues: All of the animal's cues
        todays_practiced_ids: Cue ids practiced today, oldest first
        rng: Random source for jitter (a fresh ``random.Random`` if None)
        jitter: Upper bound of the jitter (0 disables it)
    """
    rng = rng or random.Random()
    return [_score_cue(cue, rng, jitter) for cue in _candidates(cues, todays_practiced_ids)]


def select_next_cue(
    cues: Sequence[Cue],
    todays_practiced_ids: Sequence[str] = (),
    requested_id: str | None = None,
    *,
    rng: random.Random | None = None,
    jitter: float = CUE_JITTER_MAX,
) -> Cue | None:
    """
    Pick the next cue to practice.

    A requested cue that exists is returned as-is. Otherwise the highest
    score wins; ties keep input order. Returns None only when ``cues`` is
    empty.
    """
    if not cues:
        return None

    if requested_id is not None:
        for cue in cues:
            if cue.id == requested_id:
                logger.debug(f"Cue {requested_id} requested explicitly")
                return cue
        logger.warning(f"Requested cue {requested_id} not found; selecting automatically")

    scored = score_cues(cues, todays_practiced_ids, rng=rng, jitter=jitter)
    if not scored:
        return cues[0]

    best = scored[0]
    for candidate in scored[1:]:
        if candidate.score > best.score:
            best = candidate

    logger.debug(
        f"Selected cue {best.cue.id} (score={best.score:.1f}, reasons={best.reasons})"
    )
    return best.cue
