"""
Milestones Module - Achievement catalog and exactly-once unlock evaluation.
"""

from pawcalm.milestones.catalog import (
    MILESTONES,
    MILESTONES_BY_ID,
    MilestoneCategory,
    MilestoneDefinition,
    get_milestone,
)
from pawcalm.milestones.engine import (
    MilestoneProgress,
    MilestoneStatus,
    evaluate_milestones,
    milestone_progress,
    milestones_by_category,
    next_milestones,
)

__all__ = [
    "MILESTONES",
    "MILESTONES_BY_ID",
    "MilestoneCategory",
    "MilestoneDefinition",
    "get_milestone",
    "MilestoneProgress",
    "MilestoneStatus",
    "evaluate_milestones",
    "milestone_progress",
    "milestones_by_category",
    "next_milestones",
]
