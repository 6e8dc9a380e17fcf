"""
Progress Module - Metric aggregation into progress snapshots.

Provides:
- aggregate: Reduce raw logs into a ProgressSnapshot
- project_cues: Re-derive cue counters from the practice log
- Streak helpers recomputed from practice days on every read
"""

from pawcalm.progress.aggregator import (
    aggregate,
    aggregate_history,
    check_invariants,
    order_practices,
    project_cues,
    todays_goal,
)
from pawcalm.progress.snapshot import (
    CueImprovement,
    LastPractice,
    ProgressSnapshot,
    RateStat,
    RateStatus,
    WindowStats,
)
from pawcalm.progress.streaks import (
    StreakState,
    current_streak,
    longest_streak,
    streak_state,
)

__all__ = [
    # Aggregation
    "aggregate",
    "aggregate_history",
    "check_invariants",
    "order_practices",
    "project_cues",
    "todays_goal",
    # Snapshot
    "ProgressSnapshot",
    "RateStat",
    "RateStatus",
    "WindowStats",
    "CueImprovement",
    "LastPractice",
    # Streaks
    "StreakState",
    "current_streak",
    "longest_streak",
    "streak_state",
]
