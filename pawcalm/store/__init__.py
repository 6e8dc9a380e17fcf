"""
Store Module - SQLAlchemy persistence sink for training events.

Provides:
- Declarative row models for cues, practices, sessions, check-ins and unlocks
- session_scope / init_db engine helpers
- TrainingRepository with conflict-safe writes and domain-typed reads
"""

from pawcalm.store.database import (
    get_engine,
    get_session_factory,
    init_db,
    reset_engine,
    session_scope,
)
from pawcalm.store.models import (
    Base,
    CheckInRow,
    CueRow,
    MilestoneUnlockRow,
    PracticeEventRow,
    SessionOutcomeRow,
)
from pawcalm.store.repository import TrainingRepository

__all__ = [
    # Database
    "get_engine",
    "get_session_factory",
    "init_db",
    "reset_engine",
    "session_scope",
    # Models
    "Base",
    "CueRow",
    "PracticeEventRow",
    "SessionOutcomeRow",
    "CheckInRow",
    "MilestoneUnlockRow",
    # Repository
    "TrainingRepository",
]
