"""
Progress Snapshot.

The derived, never-persisted view of one animal's history that every
rule in the engine reads. Built by ``pawcalm.progress.aggregator``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from pawcalm.core.models import (
    Cue,
    OwnerCheckIn,
    PracticeResponse,
    SessionResponse,
    TimeOfDay,
)
from pawcalm.core.thresholds import MIN_WINDOW_SAMPLE


class RateStatus(str, Enum):
    """Whether a rate has enough samples to be shown."""

    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient"


@dataclass(frozen=True)
class RateStat:
    """
    A success rate that knows its own sample size.

    Below ``minimum`` samples the rate is ``None`` and the status is
    INSUFFICIENT; callers never see a fabricated zero.
    """

    successes: int = 0
    samples: int = 0
    minimum: int = MIN_WINDOW_SAMPLE

    @property
    def status(self) -> RateStatus:
        if self.samples >= self.minimum:
            return RateStatus.SUFFICIENT
        return RateStatus.INSUFFICIENT

    @property
    def is_sufficient(self) -> bool:
        return self.status is RateStatus.SUFFICIENT

    @property
    def rate(self) -> float | None:
        if not self.is_sufficient or self.samples == 0:
            return None
        return self.successes / self.samples

    def to_dict(self) -> dict[str, Any]:
        return {
            "successes": self.successes,
            "samples": self.samples,
            "status": self.status.value,
            "rate": self.rate,
        }


@dataclass(frozen=True)
class WindowStats:
    """One Monday-anchored calendar week."""

    start: date | None = None
    calm: RateStat = field(default_factory=RateStat)
    positive: RateStat = field(default_factory=RateStat)  # Sessions rated good/great
    tough_sessions: int = 0
    great_sessions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat() if self.start else None,
            "calm": self.calm.to_dict(),
            "positive": self.positive.to_dict(),
            "tough_sessions": self.tough_sessions,
            "great_sessions": self.great_sessions,
        }


@dataclass(frozen=True)
class CueImprovement:
    cue_id: str
    cue_name: str
    practices: int
    start_rate: float  # Calm rate over the first responses
    current_rate: float  # Calm rate over the last responses

    @property
    def delta(self) -> float:
        return self.current_rate - self.start_rate


@dataclass(frozen=True)
class LastPractice:
    """The most recent practice and the state of its cue right after it."""

    cue_id: str
    response: PracticeResponse
    cue_calm_count: int
    cue_total_count: int
    celebrated_now: bool = False  # This practice brought the cue to 5 calm


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    Aggregated progress for one animal at ``generated_at``.

    Frozen: sequences are stored as tuples and mappings as read-only
    views, so rules cannot alter what later rules see.

    Field groups follow the aggregator: totals, streaks, weekly windows,
    time of day, cues, recent runs, sessions, first-time flags, owner
    records.
    """

    animal_id: str | None = None
    generated_at: datetime | None = None

    # Totals
    total_practices: int = 0
    response_counts: Mapping[PracticeResponse, int] = field(
        default_factory=lambda: {response: 0 for response in PracticeResponse}
    )
    calm_rate: float = 0.0
    undated_practices: int = 0

    # Streaks and activity
    current_streak: int = 0
    longest_streak: int = 0
    practiced_today: bool = False
    days_active: int = 0
    days_since_start: int = 0
    days_since_last_practice: int | None = None
    practices_last_7_days: int = 0

    # Weekly windows
    this_week: WindowStats = field(default_factory=WindowStats)
    last_week: WindowStats = field(default_factory=WindowStats)
    first_week: WindowStats = field(default_factory=WindowStats)

    # Time of day
    time_of_day: Mapping[TimeOfDay, RateStat] = field(default_factory=dict)
    best_time_of_day: TimeOfDay | None = None

    # Cues
    cues: tuple[Cue, ...] = ()
    total_cues: int = 0
    cues_mastered: int = 0
    cues_celebrated: int = 0
    best_improving_cue: CueImprovement | None = None

    # Recent practice runs
    consecutive_calm: int = 0
    consecutive_anxious: int = 0
    longest_cue_calm_run: int = 0
    last_practice: LastPractice | None = None

    # Absence sessions
    total_sessions: int = 0
    successful_sessions: int = 0
    longest_calm_absence: float = 0.0
    recent_session_responses: tuple[SessionResponse, ...] = ()
    consecutive_frustrated_sessions: int = 0
    days_since_last_session: int | None = None
    recovered_from_setback: bool = False

    # First-time and just-happened flags
    is_first_practice: bool = False
    is_first_mastery: bool = False
    just_mastered_cue_id: str | None = None
    just_hit_streak: int | None = None
    is_first_successful_session: bool = False
    had_great_this_week: bool = False
    is_first_great_ever: bool = False

    # Owner records
    journal_entries: int = 0
    latest_check_in: OwnerCheckIn | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "response_counts", MappingProxyType(dict(self.response_counts)))
        object.__setattr__(self, "time_of_day", MappingProxyType(dict(self.time_of_day)))
        object.__setattr__(self, "cues", tuple(self.cues))
        object.__setattr__(
            self, "recent_session_responses", tuple(self.recent_session_responses)
        )

    @property
    def calm_responses(self) -> int:
        return self.response_counts.get(PracticeResponse.CALM, 0)

    @property
    def all_cues_mastered(self) -> bool:
        return self.total_cues > 0 and self.cues_mastered >= self.total_cues

    def cue(self, cue_id: str) -> Cue | None:
        for cue in self.cues:
            if cue.id == cue_id:
                return cue
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {_plain(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value
