"""
PawCalm - Adaptive training progress engine for separation anxiety.

Reduces append-only practice, session and check-in logs into progress
snapshots, and makes the per-practice decisions built on them: which cue
next, when a cue is mastered, which milestones unlock, which message to
show and how long the next absence should be.
"""

from pawcalm.engine import ProgressEngine
from pawcalm.insights.selector import select_insight
from pawcalm.milestones.engine import evaluate_milestones
from pawcalm.progress.aggregator import aggregate
from pawcalm.training.cue_selector import select_next_cue
from pawcalm.training.difficulty import compute_target_duration
from pawcalm.training.mastery import evaluate_mastery

__version__ = "0.1.0"

__all__ = [
    "ProgressEngine",
    "aggregate",
    "compute_target_duration",
    "evaluate_mastery",
    "evaluate_milestones",
    "select_insight",
    "select_next_cue",
]
