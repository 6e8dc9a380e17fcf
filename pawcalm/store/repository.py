"""
Training Repository.

Write sink and read-only feed for one store session. Concurrency
guarantees come from the database, not from Python:

- cue counters change only through ``UPDATE ... SET n = n + 1``
- ``mastered_at`` is stamped by an UPDATE guarded on ``mastered_at IS NULL``
- milestone unlocks and weekly check-ins are ``INSERT ... ON CONFLICT DO
  NOTHING`` against their unique constraints, so a racing duplicate is
  dropped instead of raising
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from pawcalm.core.models import (
    Cue,
    MilestoneUnlock,
    OwnerCheckIn,
    OwnerFeeling,
    PracticeEvent,
    PracticeResponse,
    ProgressRating,
    SessionOutcome,
    SessionRating,
    SessionResponse,
    TimeOfDay,
)
from pawcalm.core.thresholds import MASTERY_CALM_COUNT, MASTERY_CALM_RATE
from pawcalm.core.timeutils import ensure_aware, local_date, week_start
from pawcalm.progress.aggregator import project_cues
from pawcalm.store.models import (
    CheckInRow,
    CueRow,
    MilestoneUnlockRow,
    PracticeEventRow,
    SessionOutcomeRow,
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _utc(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    return ensure_aware(moment).astimezone(UTC)


def _aware(moment: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return ensure_aware(moment) if moment is not None else None


def _enum(kind, value):
    return kind(value) if value is not None else None


class TrainingRepository:
    """Persistence operations for practices, sessions, check-ins and unlocks."""

    def __init__(self, session: Session):
        self.session = session

    # ========================================
    # Helpers
    # ========================================

    def _insert(self, model):
        dialect = self.session.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect](model)
        except KeyError:
            raise NotImplementedError(f"No conflict-safe insert for dialect {dialect}") from None

    # ========================================
    # Writes
    # ========================================

    def ensure_cue(self, cue: Cue) -> bool:
        """Create the cue row if it does not exist. Returns True if created."""
        stmt = (
            self._insert(CueRow)
            .values(
                id=cue.id,
                animal_id=cue.animal_id or "",
                name=cue.name,
                calm_count=0,
                total_count=0,
                is_generated=cue.is_generated,
            )
            .on_conflict_do_nothing(index_elements=[CueRow.animal_id, CueRow.id])
        )
        return self.session.execute(stmt).rowcount == 1

    def append_practice(self, event: PracticeEvent, now: datetime | None = None) -> bool:
        """
        Append a practice event and bump its cue's counters atomically.

        Returns:
            True when this practice made the cue canonically mastered
        """
        self.ensure_cue(Cue(id=event.cue_id, name=event.cue_name, animal_id=event.animal_id))
        timestamp = _utc(event.timestamp)

        self.session.add(
            PracticeEventRow(
                animal_id=event.animal_id,
                cue_id=event.cue_id,
                response=event.response.value,
                timestamp=timestamp,
                time_of_day=event.time_of_day.value if event.time_of_day else None,
                sequence=event.sequence,
            )
        )

        counters = {
            "total_count": CueRow.total_count + 1,
            "calm_count": CueRow.calm_count + (1 if event.is_calm else 0),
            "last_response": event.response.value,
        }
        if timestamp is not None:
            counters["last_practiced_at"] = timestamp
        self.session.execute(
            update(CueRow)
            .where(CueRow.animal_id == event.animal_id, CueRow.id == event.cue_id)
            .values(**counters)
            .execution_options(synchronize_session=False)
        )

        stamped = self.session.execute(
            update(CueRow)
            .where(
                CueRow.animal_id == event.animal_id,
                CueRow.id == event.cue_id,
                CueRow.mastered_at.is_(None),
                CueRow.calm_count >= MASTERY_CALM_COUNT,
                # Integer percent comparison keeps float rounding out of SQL
                CueRow.calm_count * 100 >= CueRow.total_count * round(MASTERY_CALM_RATE * 100),
            )
            .values(mastered_at=timestamp or _utc(now or datetime.now(UTC)))
            .execution_options(synchronize_session=False)
        )
        self.session.flush()

        mastered_now = stamped.rowcount == 1
        if mastered_now:
            logger.info(f"Cue {event.cue_id} mastered for animal {event.animal_id}")
        return mastered_now

    def append_session(self, outcome: SessionOutcome) -> None:
        self.session.add(
            SessionOutcomeRow(
                animal_id=outcome.animal_id,
                timestamp=_utc(outcome.timestamp),
                dog_response=outcome.dog_response.value,
                target_minutes=outcome.target_minutes,
                steps_completed=outcome.steps_completed,
                steps_total=outcome.steps_total,
                owner_feeling=outcome.owner_feeling.value if outcome.owner_feeling else None,
                owner_rating=outcome.owner_rating.value if outcome.owner_rating else None,
                notes=outcome.notes,
            )
        )
        self.session.flush()

    def append_check_in(self, check_in: OwnerCheckIn, tz: tzinfo = UTC) -> bool:
        """
        Store a weekly check-in.

        Returns:
            False when the animal already has a check-in for that week
        """
        week = week_start(local_date(check_in.timestamp, tz))
        stmt = (
            self._insert(CheckInRow)
            .values(
                animal_id=check_in.animal_id,
                week_start=week,
                timestamp=_utc(check_in.timestamp),
                progress_rating=check_in.progress_rating.value,
                owner_feeling=check_in.owner_feeling.value if check_in.owner_feeling else None,
                note=check_in.note,
            )
            .on_conflict_do_nothing(index_elements=[CheckInRow.animal_id, CheckInRow.week_start])
        )
        inserted = self.session.execute(stmt).rowcount == 1
        if not inserted:
            logger.debug(f"Check-in for {check_in.animal_id} week {week} already exists")
        return inserted

    def record_unlocks(self, unlocks: Iterable[MilestoneUnlock]) -> list[MilestoneUnlock]:
        """
        Persist milestone unlocks at most once per (animal, milestone).

        Returns:
            The unlocks actually written; duplicates are skipped
        """
        written = []
        for unlock in unlocks:
            stmt = (
                self._insert(MilestoneUnlockRow)
                .values(
                    animal_id=unlock.animal_id or "",
                    milestone_id=unlock.milestone_id,
                    unlocked_at=_utc(unlock.unlocked_at),
                )
                .on_conflict_do_nothing(
                    index_elements=[MilestoneUnlockRow.animal_id, MilestoneUnlockRow.milestone_id]
                )
            )
            if self.session.execute(stmt).rowcount == 1:
                written.append(unlock)
            else:
                logger.debug(
                    f"Skipped duplicate unlock {unlock.milestone_id} for {unlock.animal_id}"
                )
        return written

    # ========================================
    # Reads
    # ========================================

    def load_cues(self, animal_id: str) -> list[Cue]:
        rows = self.session.scalars(
            select(CueRow).where(CueRow.animal_id == animal_id).order_by(CueRow.created_at, CueRow.id)
        )
        return [
            Cue(
                id=row.id,
                name=row.name or "",
                animal_id=row.animal_id,
                calm_count=row.calm_count,
                total_count=row.total_count,
                last_practiced_at=_aware(row.last_practiced_at),
                last_response=_enum(PracticeResponse, row.last_response),
                mastered_at=_aware(row.mastered_at),
                is_generated=bool(row.is_generated),
            )
            for row in rows
        ]

    def load_practices(self, animal_id: str) -> list[PracticeEvent]:
        rows = self.session.scalars(
            select(PracticeEventRow)
            .where(PracticeEventRow.animal_id == animal_id)
            .order_by(PracticeEventRow.id)
        )
        return [
            PracticeEvent(
                animal_id=row.animal_id,
                cue_id=row.cue_id,
                response=PracticeResponse(row.response),
                timestamp=_aware(row.timestamp),
                time_of_day=_enum(TimeOfDay, row.time_of_day),
                sequence=row.sequence or 0,
            )
            for row in rows
        ]

    def load_sessions(self, animal_id: str) -> list[SessionOutcome]:
        rows = self.session.scalars(
            select(SessionOutcomeRow)
            .where(SessionOutcomeRow.animal_id == animal_id)
            .order_by(SessionOutcomeRow.id)
        )
        return [
            SessionOutcome(
                animal_id=row.animal_id,
                timestamp=_aware(row.timestamp),
                dog_response=SessionResponse(row.dog_response),
                target_minutes=row.target_minutes or 0.0,
                steps_completed=row.steps_completed or 0,
                steps_total=row.steps_total or 0,
                owner_feeling=_enum(OwnerFeeling, row.owner_feeling),
                owner_rating=_enum(SessionRating, row.owner_rating),
                notes=row.notes or "",
            )
            for row in rows
        ]

    def load_check_ins(self, animal_id: str) -> list[OwnerCheckIn]:
        rows = self.session.scalars(
            select(CheckInRow).where(CheckInRow.animal_id == animal_id).order_by(CheckInRow.week_start)
        )
        return [
            OwnerCheckIn(
                animal_id=row.animal_id,
                timestamp=_aware(row.timestamp),
                progress_rating=ProgressRating(row.progress_rating),
                owner_feeling=_enum(OwnerFeeling, row.owner_feeling),
                note=row.note or "",
            )
            for row in rows
        ]

    def load_unlocked_ids(self, animal_id: str) -> list[str]:
        return list(
            self.session.scalars(
                select(MilestoneUnlockRow.milestone_id)
                .where(MilestoneUnlockRow.animal_id == animal_id)
                .order_by(MilestoneUnlockRow.id)
            )
        )

    # ========================================
    # Maintenance
    # ========================================

    def rebuild_cue_counters(self, animal_id: str, now: datetime | None = None) -> list[Cue]:
        """
        Re-derive every cue's counters from the practice log and write them back.

        An existing ``mastered_at`` is never overwritten.
        """
        projected = project_cues(self.load_cues(animal_id), self.load_practices(animal_id), now)
        for cue in projected:
            self.ensure_cue(cue)
            self.session.execute(
                update(CueRow)
                .where(CueRow.animal_id == animal_id, CueRow.id == cue.id)
                .values(
                    calm_count=cue.calm_count,
                    total_count=cue.total_count,
                    last_practiced_at=_utc(cue.last_practiced_at),
                    last_response=cue.last_response.value if cue.last_response else None,
                )
                .execution_options(synchronize_session=False)
            )
            if cue.mastered_at is not None:
                self.session.execute(
                    update(CueRow)
                    .where(
                        CueRow.animal_id == animal_id,
                        CueRow.id == cue.id,
                        CueRow.mastered_at.is_(None),
                    )
                    .values(mastered_at=_utc(cue.mastered_at))
                    .execution_options(synchronize_session=False)
                )
        self.session.flush()
        logger.info(f"Rebuilt counters for {len(projected)} cues of animal {animal_id}")
        return projected
