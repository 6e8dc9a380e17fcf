"""
Training Domain Models.

Append-only records (practice events, sessions, check-ins, journal
entries, milestone unlocks) plus the two mutable profile records
(Animal, Cue). Closed vocabularies are ``str`` enums so they serialize
straight to their stored values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pawcalm.core.thresholds import CLOSE_TO_MASTERY_MIN, MASTERY_CALM_COUNT


# =============================================================================
# Vocabularies
# =============================================================================


class PracticeResponse(str, Enum):
    """Dog's reaction to a single cue practice."""

    CALM = "calm"
    NOTICED = "noticed"  # Noticed or slight reaction
    ANXIOUS = "anxious"


class TimeOfDay(str, Enum):
    """Practice time bucket. Declaration order is the tie-break order."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class SessionResponse(str, Enum):
    """Dog's overall response to an absence session."""

    GREAT = "great"
    OKAY = "okay"
    STRUGGLED = "struggled"


class SessionRating(str, Enum):
    """Owner's rating of how an absence session felt."""

    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    TOUGH = "tough"

    @property
    def is_positive(self) -> bool:
        return self in (SessionRating.GREAT, SessionRating.GOOD)


class OwnerFeeling(str, Enum):
    """How the owner felt after a session or during a check-in."""

    CONFIDENT = "confident"
    HOPEFUL = "hopeful"
    NEUTRAL = "neutral"
    ANXIOUS = "anxious"
    FRUSTRATED = "frustrated"


class OwnerMood(str, Enum):
    """Owner's self-reported mood right before a session."""

    ANXIOUS = "anxious"
    NEUTRAL = "neutral"
    GOOD = "good"
    CONFIDENT = "confident"


class OwnerEnergy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProgressRating(str, Enum):
    """Weekly check-in answer to "how did this week feel?"."""

    MUCH_HARDER = "much_harder"
    BIT_HARDER = "bit_harder"
    SAME = "same"
    BIT_EASIER = "bit_easier"
    MUCH_EASIER = "much_easier"


class JournalMood(str, Enum):
    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    TOUGH = "tough"
    HARD = "hard"

    @property
    def score(self) -> int:
        return {
            JournalMood.GREAT: 5,
            JournalMood.GOOD: 4,
            JournalMood.OKAY: 3,
            JournalMood.TOUGH: 2,
            JournalMood.HARD: 1,
        }[self]


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class AgeBracket(str, Enum):
    PUPPY = "puppy"
    YOUNG = "young"
    ADULT = "adult"
    SENIOR = "senior"


# =============================================================================
# Profile records
# =============================================================================


@dataclass
class Animal:
    """Static profile of the dog in training."""

    id: str
    name: str = ""
    breed: str = ""
    age_bracket: AgeBracket = AgeBracket.ADULT
    severity: Severity = Severity.MODERATE
    baseline_minutes: float = 0.0  # Current alone-time tolerance
    created_at: datetime | None = None


@dataclass
class Cue:
    """
    A departure cue being desensitized for one animal.

    The counters are a cached projection of the practice log; see
    ``pawcalm.progress.aggregator.project_cues`` for the re-derivation.
    """

    id: str
    name: str = ""
    animal_id: str | None = None
    calm_count: int = 0
    total_count: int = 0
    last_practiced_at: datetime | None = None
    last_response: PracticeResponse | None = None
    mastered_at: datetime | None = None
    is_generated: bool = False

    @property
    def calm_rate(self) -> float:
        """Observed calm rate (0.0 before the first practice)."""
        if self.total_count <= 0:
            return 0.0
        return self.calm_count / self.total_count

    @property
    def is_new(self) -> bool:
        return self.total_count == 0

    @property
    def is_close_to_mastery(self) -> bool:
        return CLOSE_TO_MASTERY_MIN <= self.calm_count < MASTERY_CALM_COUNT


# =============================================================================
# Append-only event records
# =============================================================================


@dataclass(frozen=True)
class PracticeEvent:
    """
    One cue practiced once.

    ``timestamp`` is None only for records whose timestamp could not be
    parsed; such events still count toward totals.
    """

    animal_id: str
    cue_id: str
    response: PracticeResponse
    timestamp: datetime | None
    time_of_day: TimeOfDay | None = None
    sequence: int = 0
    cue_name: str = ""

    @property
    def is_calm(self) -> bool:
        return self.response is PracticeResponse.CALM

    @property
    def is_dated(self) -> bool:
        return self.timestamp is not None


@dataclass(frozen=True)
class SessionOutcome:
    """One absence ("mission") session."""

    animal_id: str
    timestamp: datetime | None
    dog_response: SessionResponse
    target_minutes: float = 0.0
    steps_completed: int = 0
    steps_total: int = 0
    owner_feeling: OwnerFeeling | None = None
    owner_rating: SessionRating | None = None
    notes: str = ""

    @property
    def is_complete(self) -> bool:
        return self.steps_total > 0 and self.steps_completed >= self.steps_total


@dataclass(frozen=True)
class OwnerCheckIn:
    """Weekly self-report. At most one per animal per calendar week."""

    animal_id: str
    timestamp: datetime
    progress_rating: ProgressRating
    owner_feeling: OwnerFeeling | None = None
    note: str = ""


@dataclass(frozen=True)
class JournalEntry:
    animal_id: str
    timestamp: datetime | None
    mood: JournalMood
    content: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class MilestoneUnlock:
    """A milestone crossed by an animal. Unique per (animal, milestone)."""

    animal_id: str | None
    milestone_id: str
    unlocked_at: datetime


@dataclass
class OwnerState:
    """Owner's self-report captured right before an absence session."""

    mood: OwnerMood | None = None
    energy: OwnerEnergy | None = None


@dataclass
class TrainingHistory:
    """Everything the aggregator needs for one animal."""

    animal: Animal
    cues: list[Cue] = field(default_factory=list)
    practices: list[PracticeEvent] = field(default_factory=list)
    sessions: list[SessionOutcome] = field(default_factory=list)
    check_ins: list[OwnerCheckIn] = field(default_factory=list)
    journal: list[JournalEntry] = field(default_factory=list)
    unlocked_milestones: list[str] = field(default_factory=list)
