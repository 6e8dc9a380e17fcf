"""
Milestone Catalog.

Static achievement definitions. Catalog order is significant: evaluation
emits unlocks in this order and browsing helpers list them in it.

Most milestones are a threshold on one snapshot metric; those carry
``target_metric``/``target`` so progress bars can be drawn. Definitions
without a predicate are manual: the caller unlocks them directly.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pawcalm.progress.snapshot import ProgressSnapshot

Predicate = Callable[[ProgressSnapshot], bool]


class MilestoneCategory(str, Enum):
    ENGAGEMENT = "engagement"
    CUES = "cues"
    SESSIONS = "sessions"
    CONSISTENCY = "consistency"
    BREAKTHROUGH = "breakthrough"


@dataclass(frozen=True)
class MilestoneDefinition:
    id: str
    title: str
    category: MilestoneCategory
    predicate: Predicate | None = None
    target_metric: str | None = None
    target: float | None = None

    @property
    def is_manual(self) -> bool:
        return self.predicate is None

    @property
    def is_numeric(self) -> bool:
        return self.target_metric is not None and self.target is not None

    def is_met(self, snapshot: ProgressSnapshot) -> bool:
        return self.predicate is not None and bool(self.predicate(snapshot))


def _at_least(metric: str, target: float) -> Predicate:
    return lambda snapshot: getattr(snapshot, metric) >= target


def _streak_of(days: int) -> Predicate:
    return lambda s: s.current_streak >= days or s.longest_streak >= days


def _threshold(
    milestone_id: str,
    title: str,
    category: MilestoneCategory,
    metric: str,
    target: float,
    predicate: Predicate | None = None,
) -> MilestoneDefinition:
    return MilestoneDefinition(
        id=milestone_id,
        title=title,
        category=category,
        predicate=predicate or _at_least(metric, target),
        target_metric=metric,
        target=target,
    )


_E = MilestoneCategory.ENGAGEMENT
_C = MilestoneCategory.CUES
_S = MilestoneCategory.SESSIONS
_K = MilestoneCategory.CONSISTENCY
_B = MilestoneCategory.BREAKTHROUGH

MILESTONES: tuple[MilestoneDefinition, ...] = (
    # Engagement: just showing up matters
    MilestoneDefinition("first_open", "First Step", _E),
    _threshold("first_practice", "First Try", _E, "total_practices", 1),
    _threshold("five_practices", "Getting Started", _E, "total_practices", 5),
    _threshold("ten_practices", "Building Momentum", _E, "total_practices", 10),
    _threshold("twenty_five_practices", "Dedicated", _E, "total_practices", 25),
    _threshold("fifty_practices", "Committed", _E, "total_practices", 50),
    _threshold("hundred_practices", "Expert Practitioner", _E, "total_practices", 100),
    # Cues
    _threshold("first_calm", "First Calm Response", _C, "calm_responses", 1),
    _threshold("three_calm_streak", "Calm Streak", _C, "longest_cue_calm_run", 3),
    _threshold("first_mastery", "First Cue Mastered", _C, "cues_mastered", 1),
    _threshold("three_mastered", "Triple Mastery", _C, "cues_mastered", 3),
    _threshold("five_mastered", "Cue Champion", _C, "cues_mastered", 5),
    MilestoneDefinition(
        "all_cues_mastered", "Complete Mastery", _C, predicate=lambda s: s.all_cues_mastered
    ),
    # Absence sessions
    _threshold("first_session", "First Absence", _S, "total_sessions", 1),
    _threshold("first_success", "Successful Absence", _S, "successful_sessions", 1),
    _threshold("five_sessions", "Session Regular", _S, "total_sessions", 5),
    _threshold("five_minutes", "5 Minute Mark", _S, "longest_calm_absence", 5),
    _threshold("fifteen_minutes", "Quarter Hour", _S, "longest_calm_absence", 15),
    _threshold("thirty_minutes", "Half Hour Hero", _S, "longest_calm_absence", 30),
    _threshold("one_hour", "Hour of Freedom", _S, "longest_calm_absence", 60),
    # Consistency
    _threshold("three_day_streak", "3 Day Streak", _K, "current_streak", 3, _streak_of(3)),
    _threshold("seven_day_streak", "Week Warrior", _K, "current_streak", 7, _streak_of(7)),
    _threshold("fourteen_day_streak", "Two Week Champion", _K, "current_streak", 14, _streak_of(14)),
    _threshold("thirty_day_streak", "Monthly Master", _K, "current_streak", 30, _streak_of(30)),
    _threshold("week_active", "First Week", _K, "days_active", 7),
    _threshold("month_active", "One Month Journey", _K, "days_active", 30),
    # Breakthroughs
    _threshold("first_journal", "Reflective", _B, "journal_entries", 1),
    _threshold("ten_journals", "Dedicated Journaler", _B, "journal_entries", 10),
    MilestoneDefinition(
        "overcame_setback", "Resilient", _B, predicate=lambda s: s.recovered_from_setback
    ),
    MilestoneDefinition("pattern_discovered", "Pattern Spotter", _B),
)

MILESTONES_BY_ID: dict[str, MilestoneDefinition] = {m.id: m for m in MILESTONES}


def get_milestone(milestone_id: str) -> MilestoneDefinition | None:
    return MILESTONES_BY_ID.get(milestone_id)
