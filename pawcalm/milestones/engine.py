"""
Milestone Engine.

Compares a progress snapshot with the catalog and emits the milestones
crossed for the first time. Evaluation is idempotent: an id already in
``already_unlocked_ids`` is never emitted again. Persisting the returned
unlocks (with a uniqueness guard) before the next evaluation is the
caller's job; see ``pawcalm.store.repository.TrainingRepository.record_unlocks``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from pawcalm.core.models import MilestoneUnlock
from pawcalm.core.timeutils import ensure_aware
from pawcalm.milestones.catalog import (
    MILESTONES,
    MILESTONES_BY_ID,
    MilestoneCategory,
    MilestoneDefinition,
)
from pawcalm.progress.snapshot import ProgressSnapshot

# Categories that surface a "next up" milestone, in display order
NEXT_MILESTONE_CATEGORIES = (
    MilestoneCategory.ENGAGEMENT,
    MilestoneCategory.CUES,
    MilestoneCategory.SESSIONS,
    MilestoneCategory.CONSISTENCY,
)


def evaluate_milestones(
    snapshot: ProgressSnapshot,
    already_unlocked_ids: Iterable[str],
    now: datetime | None = None,
) -> list[MilestoneUnlock]:
    """
    Emit every catalog milestone that is met and not yet unlocked.

    Args:
        snapshot: Current progress snapshot
        already_unlocked_ids: Milestone ids the animal already holds
        now: Unlock timestamp (defaults to the snapshot time, then UTC now)

    Returns:
        New unlocks in catalog order
    """
    unlocked = set(already_unlocked_ids)
    stamp = ensure_aware(now or snapshot.generated_at or datetime.now(UTC))

    new_unlocks = [
        MilestoneUnlock(animal_id=snapshot.animal_id, milestone_id=milestone.id, unlocked_at=stamp)
        for milestone in MILESTONES
        if milestone.id not in unlocked and milestone.is_met(snapshot)
    ]
    if new_unlocks:
        logger.info(
            f"Animal {snapshot.animal_id} unlocked {len(new_unlocks)} milestones: "
            f"{[u.milestone_id for u in new_unlocks]}"
        )
    return new_unlocks


@dataclass(frozen=True)
class MilestoneStatus:
    definition: MilestoneDefinition
    unlocked: bool


def milestones_by_category(
    unlocked_ids: Iterable[str],
) -> dict[MilestoneCategory, list[MilestoneStatus]]:
    """Full catalog grouped by category, each entry flagged unlocked or not."""
    unlocked = set(unlocked_ids)
    grouped: dict[MilestoneCategory, list[MilestoneStatus]] = {c: [] for c in MilestoneCategory}
    for milestone in MILESTONES:
        grouped[milestone.category].append(
            MilestoneStatus(definition=milestone, unlocked=milestone.id in unlocked)
        )
    return grouped


def next_milestones(unlocked_ids: Iterable[str], limit: int = 3) -> list[MilestoneDefinition]:
    """First locked milestone of each category, up to ``limit``."""
    unlocked = set(unlocked_ids)
    upcoming = []
    for category in NEXT_MILESTONE_CATEGORIES:
        for milestone in MILESTONES:
            if milestone.category is category and milestone.id not in unlocked:
                upcoming.append(milestone)
                break
    return upcoming[:limit]


@dataclass(frozen=True)
class MilestoneProgress:
    milestone_id: str
    current: float
    target: float

    @property
    def percentage(self) -> int:
        """Completion, rounded to a whole percent and capped at 100."""
        if self.target <= 0:
            return 100
        return min(100, int(self.current / self.target * 100 + 0.5))


def milestone_progress(milestone_id: str, snapshot: ProgressSnapshot) -> MilestoneProgress | None:
    """Progress toward a numeric milestone; None for the others."""
    milestone = MILESTONES_BY_ID.get(milestone_id)
    if milestone is None or not milestone.is_numeric:
        return None
    return MilestoneProgress(
        milestone_id=milestone.id,
        current=getattr(snapshot, milestone.target_metric),
        target=milestone.target,
    )
