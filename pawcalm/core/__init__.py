"""
Core Module - Shared domain models, thresholds and errors.

Every other package (progress, training, milestones, insights, store)
imports its vocabulary from here rather than redefining it.
"""

from pawcalm.core.errors import (
    InvalidInputError,
    MalformedEventError,
    PawCalmError,
    SnapshotInvariantError,
)
from pawcalm.core.models import (
    AgeBracket,
    Animal,
    Cue,
    JournalEntry,
    JournalMood,
    MilestoneUnlock,
    OwnerCheckIn,
    OwnerEnergy,
    OwnerFeeling,
    OwnerMood,
    OwnerState,
    PracticeEvent,
    PracticeResponse,
    ProgressRating,
    SessionOutcome,
    SessionRating,
    SessionResponse,
    Severity,
    TimeOfDay,
    TrainingHistory,
)

__all__ = [
    # Errors
    "PawCalmError",
    "SnapshotInvariantError",
    "InvalidInputError",
    "MalformedEventError",
    # Records
    "Animal",
    "Cue",
    "PracticeEvent",
    "SessionOutcome",
    "OwnerCheckIn",
    "JournalEntry",
    "MilestoneUnlock",
    "OwnerState",
    "TrainingHistory",
    # Enums
    "PracticeResponse",
    "TimeOfDay",
    "SessionResponse",
    "SessionRating",
    "OwnerFeeling",
    "OwnerMood",
    "OwnerEnergy",
    "ProgressRating",
    "JournalMood",
    "Severity",
    "AgeBracket",
]
