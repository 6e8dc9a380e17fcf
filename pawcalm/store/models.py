"""
Event Store Models.

SQLAlchemy models for the reference persistence sink:
- Cue counters (a cached projection of the practice log)
- Append-only practice events, absence sessions and weekly check-ins
- Milestone unlocks, unique per (animal, milestone)

Timestamps are stored in UTC.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CueRow(Base):
    """
    Per-cue counters, keyed by (animal, cue id).

    ``calm_count``/``total_count`` are only ever changed by single-statement
    increments, and ``mastered_at`` is only written while it is NULL.
    """

    __tablename__ = "cues"

    animal_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, default="")
    calm_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_practiced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_response: Mapped[str | None] = mapped_column(String(16))
    mastered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())

    def __repr__(self) -> str:
        return (
            f"<CueRow animal={self.animal_id} id={self.id} "
            f"calm={self.calm_count}/{self.total_count}>"
        )


class PracticeEventRow(Base):
    __tablename__ = "practice_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    animal_id: Mapped[str] = mapped_column(String(64), nullable=False)
    cue_id: Mapped[str] = mapped_column(String(64), nullable=False)
    response: Mapped[str] = mapped_column(String(16), nullable=False)
    timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    time_of_day: Mapped[str | None] = mapped_column(String(16))
    sequence: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        ForeignKeyConstraint(["animal_id", "cue_id"], ["cues.animal_id", "cues.id"]),
        Index("idx_practice_animal_time", "animal_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<PracticeEventRow cue={self.cue_id} response={self.response} at={self.timestamp}>"


class SessionOutcomeRow(Base):
    __tablename__ = "session_outcomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    animal_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    dog_response: Mapped[str] = mapped_column(String(16), nullable=False)
    target_minutes: Mapped[float] = mapped_column(Float, default=0.0)
    steps_completed: Mapped[int] = mapped_column(Integer, default=0)
    steps_total: Mapped[int] = mapped_column(Integer, default=0)
    owner_feeling: Mapped[str | None] = mapped_column(String(16))
    owner_rating: Mapped[str | None] = mapped_column(String(16))
    notes: Mapped[str] = mapped_column(Text, default="")

    def __repr__(self) -> str:
        return f"<SessionOutcomeRow animal={self.animal_id} response={self.dog_response}>"


class CheckInRow(Base):
    """Weekly owner check-in; ``week_start`` is the Monday of its week."""

    __tablename__ = "owner_check_ins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    animal_id: Mapped[str] = mapped_column(String(64), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    progress_rating: Mapped[str] = mapped_column(String(16), nullable=False)
    owner_feeling: Mapped[str | None] = mapped_column(String(16))
    note: Mapped[str] = mapped_column(Text, default="")

    __table_args__ = (UniqueConstraint("animal_id", "week_start", name="uq_checkin_animal_week"),)

    def __repr__(self) -> str:
        return f"<CheckInRow animal={self.animal_id} week={self.week_start}>"


class MilestoneUnlockRow(Base):
    __tablename__ = "milestone_unlocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    animal_id: Mapped[str] = mapped_column(String(64), nullable=False)
    milestone_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("animal_id", "milestone_id", name="uq_unlock_animal_milestone"),
    )

    def __repr__(self) -> str:
        return f"<MilestoneUnlockRow animal={self.animal_id} milestone={self.milestone_id}>"
