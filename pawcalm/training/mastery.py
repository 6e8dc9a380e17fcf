"""
Cue Mastery.

Two predicates over a cue's cumulative counters:

- ``is_mastered``: 5+ calm responses AND a 70%+ calm rate. This is the
  canonical rule; it gates milestones, ``cues_mastered`` and absence
  training readiness.
- ``should_celebrate``: 5+ calm responses. Only a UI trigger for the
  "you did it" moment right after logging; nothing downstream reads it.

Mastery is one-directional. Once a cue is mastered it stays mastered even
if later practices pull its rate under 70%, and the transition timestamp
is recorded once.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from pawcalm.core.models import Cue, PracticeEvent
from pawcalm.core.thresholds import (
    MASTERY_CALM_COUNT,
    MASTERY_CALM_RATE,
    MISSION_READY_CUES,
)


def is_mastered(calm_count: int, total_count: int) -> bool:
    """Canonical mastery predicate."""
    if total_count <= 0 or calm_count < MASTERY_CALM_COUNT:
        return False
    return calm_count / total_count >= MASTERY_CALM_RATE


def should_celebrate(calm_count: int) -> bool:
    """Immediate celebration trigger (5 calm responses, any rate)."""
    return calm_count >= MASTERY_CALM_COUNT


@dataclass(frozen=True)
class MasteryResult:
    mastered: bool
    mastered_at: datetime | None = None
    celebrated: bool = False
    celebrated_at: datetime | None = None
    calm_count: int = 0
    total_count: int = 0

    @property
    def calm_rate(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return self.calm_count / self.total_count


def evaluate_mastery(
    cue: Cue,
    history: Iterable[PracticeEvent] | None = None,
) -> MasteryResult:
    """
    Evaluate a cue's mastery state.

    Without ``history`` the cue's cached counters are used. With
    ``history`` the cue's practice events are replayed in order from zero
    and the transition is stamped with the qualifying event's timestamp.
    In both cases an already-recorded ``cue.mastered_at`` wins.

    Args:
        cue: Cue to evaluate
        history: Practice events, already in chronological order. Events
            for other cues are ignored.

    Returns:
        MasteryResult with both the canonical and celebratory state
    """
    if history is None:
        mastered = cue.mastered_at is not None or is_mastered(cue.calm_count, cue.total_count)
        return MasteryResult(
            mastered=mastered,
            mastered_at=cue.mastered_at,
            celebrated=should_celebrate(cue.calm_count),
            calm_count=cue.calm_count,
            total_count=cue.total_count,
        )

    calm = total = 0
    mastered = False
    mastered_at: datetime | None = None
    celebrated = False
    celebrated_at: datetime | None = None

    for event in history:
        if event.cue_id != cue.id:
            continue
        total += 1
        if event.is_calm:
            calm += 1
        if not celebrated and should_celebrate(calm):
            celebrated, celebrated_at = True, event.timestamp
        if not mastered and is_mastered(calm, total):
            mastered, mastered_at = True, event.timestamp

    if cue.mastered_at is not None:
        mastered, mastered_at = True, cue.mastered_at

    return MasteryResult(
        mastered=mastered,
        mastered_at=mastered_at,
        celebrated=celebrated,
        celebrated_at=celebrated_at,
        calm_count=calm,
        total_count=total,
    )


# =============================================================================
# Absence training gate
# =============================================================================


@dataclass(frozen=True)
class MissionReadiness:
    ready: bool
    mastered_cues: int
    required: int = MISSION_READY_CUES

    @property
    def cues_needed(self) -> int:
        return max(0, self.required - self.mastered_cues)


def mission_readiness(cues: Sequence[Cue]) -> MissionReadiness:
    """Absence sessions unlock once 3 cues are canonically mastered."""
    mastered = sum(1 for cue in cues if evaluate_mastery(cue).mastered)
    return MissionReadiness(ready=mastered >= MISSION_READY_CUES, mastered_cues=mastered)
