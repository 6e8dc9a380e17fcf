"""
Progress Engine facade.

Binds the configured calendar timezone, cue jitter and random source to
the pure functions of the progress, training, milestone and insight
packages, so callers hand over a ``TrainingHistory`` and get decisions
back without threading settings through every call.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, tzinfo

from loguru import logger

from pawcalm.config import Settings, get_settings
from pawcalm.core.models import (
    Cue,
    MilestoneUnlock,
    OwnerState,
    SessionResponse,
    TrainingHistory,
)
from pawcalm.core.thresholds import GENERAL_PROMPT_VARIANTS
from pawcalm.core.timeutils import ensure_aware, local_date
from pawcalm.insights.registry import build_context, get_rule_set
from pawcalm.insights.selector import InsightPayload, select_insight
from pawcalm.milestones.engine import evaluate_milestones
from pawcalm.progress.aggregator import aggregate_history, order_practices, todays_goal
from pawcalm.progress.snapshot import ProgressSnapshot
from pawcalm.training.cue_selector import select_next_cue
from pawcalm.training.difficulty import DifficultyAdjustment, adjust_difficulty
from pawcalm.training.mastery import (
    MasteryResult,
    MissionReadiness,
    evaluate_mastery,
    mission_readiness,
)


class ProgressEngine:
    """
    Orchestrates one animal's progress decisions.

    Every method is a pure function of its arguments plus the bound
    settings; nothing is cached between calls.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        tz: tzinfo | None = None,
    ):
        self.settings = settings or get_settings()
        self.tz = tz or self.settings.tzinfo
        self.jitter = self.settings.cue_jitter
        self.rng = rng or random.Random(self.settings.random_seed)

    def _now(self, now: datetime | None) -> datetime:
        return ensure_aware(now or datetime.now(UTC))

    # ========================================
    # Aggregation
    # ========================================

    def snapshot(self, history: TrainingHistory, now: datetime | None = None) -> ProgressSnapshot:
        return aggregate_history(history, now=self._now(now), tz=self.tz)

    def todays_goal(self, snapshot: ProgressSnapshot) -> int:
        return todays_goal(snapshot.total_practices, snapshot.current_streak)

    # ========================================
    # Cues
    # ========================================

    def todays_cue_ids(self, history: TrainingHistory, now: datetime | None = None) -> list[str]:
        """Cue ids practiced on today's local date, oldest first."""
        today = local_date(self._now(now), self.tz)
        return [
            event.cue_id
            for event in order_practices(history.practices)
            if event.is_dated and local_date(event.timestamp, self.tz) == today
        ]

    def next_cue(
        self,
        history: TrainingHistory,
        requested_id: str | None = None,
        now: datetime | None = None,
        cues: Sequence[Cue] | None = None,
    ) -> Cue | None:
        """
        Pick the next cue to practice.

        Counters are re-derived from the practice log first unless
        ``cues`` is passed in already projected.
        """
        if cues is None:
            cues = self.snapshot(history, now).cues
        return select_next_cue(
            cues,
            self.todays_cue_ids(history, now),
            requested_id,
            rng=self.rng,
            jitter=self.jitter,
        )

    def mastery(self, cue: Cue, history: TrainingHistory | None = None) -> MasteryResult:
        if history is None:
            return evaluate_mastery(cue)
        return evaluate_mastery(cue, order_practices(history.practices))

    def mission_readiness(self, snapshot: ProgressSnapshot) -> MissionReadiness:
        return mission_readiness(snapshot.cues)

    # ========================================
    # Milestones & insights
    # ========================================

    def milestones(
        self,
        snapshot: ProgressSnapshot,
        already_unlocked: Iterable[str] = (),
        now: datetime | None = None,
    ) -> list[MilestoneUnlock]:
        return evaluate_milestones(snapshot, already_unlocked, now)

    def insight(
        self,
        rule_set_name: str,
        snapshot: ProgressSnapshot,
        history: TrainingHistory | None = None,
    ) -> InsightPayload | None:
        """
        Select the first matching insight from a named rule set.

        Raises:
            InvalidInputError: for an unknown rule set, or prediction rules
                without an animal profile
        """
        rule_set = get_rule_set(rule_set_name)
        variant = self.rng.randrange(GENERAL_PROMPT_VARIANTS) if rule_set_name == "journal" else 0
        context = build_context(
            rule_set_name,
            snapshot,
            animal=history.animal if history else None,
            variant=variant,
        )
        payload = select_insight(context, rule_set)
        if payload is None:
            logger.debug(f"No {rule_set_name} insight matched for {snapshot.animal_id}")
        return payload

    # ========================================
    # Absence sessions
    # ========================================

    def target_duration(
        self,
        baseline: float,
        recent_outcomes: Sequence[SessionResponse | str] = (),
        owner_state: OwnerState | None = None,
    ) -> DifficultyAdjustment:
        return adjust_difficulty(baseline, recent_outcomes, owner_state)

    def next_target(
        self,
        history: TrainingHistory,
        owner_state: OwnerState | None = None,
        snapshot: ProgressSnapshot | None = None,
    ) -> DifficultyAdjustment:
        """Target for the next absence session from the animal's baseline and recent outcomes."""
        snapshot = snapshot or self.snapshot(history)
        return adjust_difficulty(
            history.animal.baseline_minutes,
            snapshot.recent_session_responses,
            owner_state,
        )
