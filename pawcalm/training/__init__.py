"""
Training Module - Per-practice decisions.

Provides:
- Cue selection (score_cues, select_next_cue)
- Canonical and celebratory mastery predicates
- Absence session target duration
"""

from pawcalm.training.cue_selector import CueScore, score_cues, select_next_cue
from pawcalm.training.difficulty import (
    DifficultyAdjustment,
    adjust_difficulty,
    compute_target_duration,
)
from pawcalm.training.mastery import (
    MasteryResult,
    MissionReadiness,
    evaluate_mastery,
    is_mastered,
    mission_readiness,
    should_celebrate,
)

__all__ = [
    # Cue selection
    "CueScore",
    "score_cues",
    "select_next_cue",
    # Mastery
    "MasteryResult",
    "MissionReadiness",
    "evaluate_mastery",
    "is_mastered",
    "mission_readiness",
    "should_celebrate",
    # Difficulty
    "DifficultyAdjustment",
    "adjust_difficulty",
    "compute_target_duration",
]
