"""
Event Boundary Schema.

Raw records arrive from the event store as loosely-shaped dicts (numeric
ids, legacy response codes, practice rows that bundle several cues).
These Pydantic models turn them into the strict domain records in
``pawcalm.core.models``:

- Unknown response codes or missing ids: the record is quarantined.
- Unparseable timestamps: the record is kept but undated, so it still
  counts toward totals and is left out of calendar windows.

Nothing here raises for a bad record inside a batch; ``parse_*`` helpers
log and quarantine instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import Any

from loguru import logger
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from pawcalm.core.errors import MalformedEventError
from pawcalm.core.models import (
    AgeBracket,
    Animal,
    Cue,
    JournalEntry,
    JournalMood,
    OwnerCheckIn,
    OwnerFeeling,
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
from pawcalm.core.timeutils import ensure_aware, time_of_day_for

# Legacy / UI spellings mapped onto the closed vocabularies
RESPONSE_ALIASES = {
    "slight_reaction": "noticed",
    "slight": "noticed",
}

FEELING_ALIASES = {
    "meh": "neutral",
    "good": "hopeful",
}


def _lenient(value: Any, handler: Any) -> Any:
    """Run the normal validator but degrade a failure to None."""
    try:
        return handler(value)
    except ValidationError:
        return None


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("id", "animal_id", "cue_id", mode="before", check_fields=False)
    @classmethod
    def _as_id(cls, value: Any) -> Any:
        """Store ids arrive as ints or UUIDs; the engine keys on strings."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if value is not None and not isinstance(value, str):
            return str(value)
        return value


# =============================================================================
# Event records
# =============================================================================


class PracticeRecord(_Record):
    """One cue practiced once, as stored."""

    animal_id: str = Field(validation_alias=AliasChoices("animal_id", "dog_id"))
    cue_id: str
    cue_name: str = ""
    response: PracticeResponse
    timestamp: datetime | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "created_at")
    )
    time_of_day: TimeOfDay | None = None
    sequence: int = Field(default=0, ge=0)

    @field_validator("response", mode="before")
    @classmethod
    def _alias_response(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return RESPONSE_ALIASES.get(value, value)
        return value

    @field_validator("timestamp", "time_of_day", mode="wrap")
    @classmethod
    def _tolerate_bad_value(cls, value: Any, handler: Any) -> Any:
        return _lenient(value, handler)

    def to_event(self, tz: tzinfo = UTC) -> PracticeEvent:
        timestamp = ensure_aware(self.timestamp) if self.timestamp else None
        time_of_day = self.time_of_day
        if time_of_day is None and timestamp is not None:
            time_of_day = time_of_day_for(timestamp, tz)
        return PracticeEvent(
            animal_id=self.animal_id,
            cue_id=self.cue_id,
            response=self.response,
            timestamp=timestamp,
            time_of_day=time_of_day,
            sequence=self.sequence,
            cue_name=self.cue_name,
        )


class SessionRecord(_Record):
    """One absence session, as stored."""

    animal_id: str = Field(validation_alias=AliasChoices("animal_id", "dog_id"))
    timestamp: datetime | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "created_at")
    )
    dog_response: SessionResponse
    target_minutes: float = Field(default=0.0, ge=0.0)
    steps_completed: int = Field(default=0, ge=0)
    steps_total: int = Field(default=0, ge=0)
    owner_feeling: OwnerFeeling | None = None
    owner_rating: SessionRating | None = None
    notes: str = ""

    @field_validator("owner_feeling", mode="before")
    @classmethod
    def _alias_feeling(cls, value: Any) -> Any:
        if isinstance(value, str):
            return FEELING_ALIASES.get(value.strip().lower(), value.strip().lower())
        return value

    @field_validator("timestamp", "owner_feeling", "owner_rating", mode="wrap")
    @classmethod
    def _tolerate_bad_value(cls, value: Any, handler: Any) -> Any:
        return _lenient(value, handler)

    def to_outcome(self) -> SessionOutcome:
        return SessionOutcome(
            animal_id=self.animal_id,
            timestamp=ensure_aware(self.timestamp) if self.timestamp else None,
            dog_response=self.dog_response,
            target_minutes=self.target_minutes,
            steps_completed=self.steps_completed,
            steps_total=self.steps_total,
            owner_feeling=self.owner_feeling,
            owner_rating=self.owner_rating,
            notes=self.notes,
        )


class CheckInRecord(_Record):
    """Weekly owner check-in. The timestamp is required."""

    animal_id: str = Field(validation_alias=AliasChoices("animal_id", "dog_id"))
    timestamp: datetime = Field(
        validation_alias=AliasChoices("timestamp", "created_at", "week_of")
    )
    progress_rating: ProgressRating
    owner_feeling: OwnerFeeling | None = None
    note: str = ""

    @field_validator("owner_feeling", mode="before")
    @classmethod
    def _alias_feeling(cls, value: Any) -> Any:
        if isinstance(value, str):
            return FEELING_ALIASES.get(value.strip().lower(), value.strip().lower())
        return value

    def to_check_in(self) -> OwnerCheckIn:
        return OwnerCheckIn(
            animal_id=self.animal_id,
            timestamp=ensure_aware(self.timestamp),
            progress_rating=self.progress_rating,
            owner_feeling=self.owner_feeling,
            note=self.note or "",
        )


class JournalRecord(_Record):
    animal_id: str = Field(validation_alias=AliasChoices("animal_id", "dog_id"))
    timestamp: datetime | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "created_at")
    )
    mood: JournalMood
    content: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("timestamp", mode="wrap")
    @classmethod
    def _tolerate_bad_value(cls, value: Any, handler: Any) -> Any:
        return _lenient(value, handler)

    def to_entry(self) -> JournalEntry:
        return JournalEntry(
            animal_id=self.animal_id,
            timestamp=ensure_aware(self.timestamp) if self.timestamp else None,
            mood=self.mood,
            content=self.content,
            tags=tuple(self.tags),
        )


# =============================================================================
# Profile records
# =============================================================================


class CueRecord(_Record):
    id: str
    name: str = ""
    is_generated: bool = Field(
        default=False, validation_alias=AliasChoices("is_generated", "is_ai_generated")
    )

    def to_cue(self, animal_id: str | None = None) -> Cue:
        # Counters start at zero; the aggregator replays the practice log.
        return Cue(id=self.id, name=self.name, animal_id=animal_id, is_generated=self.is_generated)


class AnimalRecord(_Record):
    id: str
    name: str = ""
    breed: str = ""
    age_bracket: AgeBracket = Field(
        default=AgeBracket.ADULT, validation_alias=AliasChoices("age_bracket", "age")
    )
    severity: Severity = Severity.MODERATE
    baseline_minutes: float = Field(
        default=0.0, ge=0.0, validation_alias=AliasChoices("baseline_minutes", "baseline")
    )
    created_at: datetime | None = None

    def to_animal(self) -> Animal:
        return Animal(
            id=self.id,
            name=self.name,
            breed=self.breed,
            age_bracket=self.age_bracket,
            severity=self.severity,
            baseline_minutes=self.baseline_minutes,
            created_at=ensure_aware(self.created_at) if self.created_at else None,
        )


# =============================================================================
# Batch parsing
# =============================================================================


@dataclass
class QuarantinedRecord:
    """A raw record that could not become a domain event."""

    kind: str
    index: int
    reason: str
    record: Any = None


@dataclass
class ParseResult:
    items: list[Any] = field(default_factory=list)
    quarantined: list[QuarantinedRecord] = field(default_factory=list)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg', 'invalid')}" if location else err.get("msg", "invalid")


def parse_practice_record(raw: Mapping[str, Any], tz: tzinfo = UTC) -> PracticeEvent:
    """
    Strictly parse one flat practice record.

    Raises:
        MalformedEventError: when the record cannot be validated
    """
    try:
        return PracticeRecord.model_validate(raw).to_event(tz)
    except ValidationError as exc:
        raise MalformedEventError(_first_error(exc), record=raw) from exc


def _expand_practice_rows(raw: Iterable[Mapping[str, Any]]) -> Iterable[Mapping[str, Any]]:
    """
    Flatten stored practice rows that bundle several cues.

    A bundled row looks like ``{"dog_id", "created_at", "time_of_day",
    "cues": [{"cue_id", "cue_name", "response"}, ...]}``; each cue becomes
    its own record with the row's timestamp and its position as sequence.
    """
    for row in raw:
        bundled = row.get("cues") if isinstance(row, Mapping) else None
        if isinstance(bundled, list):
            shared = {k: v for k, v in row.items() if k != "cues"}
            for position, item in enumerate(bundled):
                if isinstance(item, Mapping):
                    yield {**shared, "sequence": position, **item}
                else:
                    yield {**shared, "sequence": position}
        else:
            yield row


def parse_practice_events(
    raw: Iterable[Mapping[str, Any]], tz: tzinfo = UTC
) -> ParseResult:
    """Parse a batch of practice records, quarantining the bad ones."""
    result = ParseResult()
    for index, record in enumerate(_expand_practice_rows(raw)):
        try:
            result.items.append(parse_practice_record(record, tz))
        except MalformedEventError as exc:
            logger.warning(f"Quarantined practice record #{index}: {exc}")
            result.quarantined.append(
                QuarantinedRecord(kind="practice", index=index, reason=str(exc), record=record)
            )
    return result


def _parse_many(
    kind: str,
    model: type[_Record],
    convert: str,
    raw: Iterable[Mapping[str, Any]],
) -> ParseResult:
    result = ParseResult()
    for index, record in enumerate(raw):
        try:
            parsed = model.model_validate(record)
        except ValidationError as exc:
            reason = _first_error(exc)
            logger.warning(f"Quarantined {kind} record #{index}: {reason}")
            result.quarantined.append(
                QuarantinedRecord(kind=kind, index=index, reason=reason, record=record)
            )
            continue
        result.items.append(getattr(parsed, convert)())
    return result


def parse_sessions(raw: Iterable[Mapping[str, Any]]) -> ParseResult:
    return _parse_many("session", SessionRecord, "to_outcome", raw)


def parse_check_ins(raw: Iterable[Mapping[str, Any]]) -> ParseResult:
    return _parse_many("check_in", CheckInRecord, "to_check_in", raw)


def parse_journal(raw: Iterable[Mapping[str, Any]]) -> ParseResult:
    return _parse_many("journal", JournalRecord, "to_entry", raw)


class TrainingLog(BaseModel):
    """
    Full export of one animal's training history.

    Event lists stay raw here so a single bad record cannot reject the
    whole export; they are parsed leniently by ``to_history``.
    """

    model_config = ConfigDict(extra="ignore")

    animal: AnimalRecord
    cues: list[CueRecord] = Field(default_factory=list)
    practices: list[dict[str, Any]] = Field(default_factory=list)
    sessions: list[dict[str, Any]] = Field(default_factory=list)
    check_ins: list[dict[str, Any]] = Field(default_factory=list)
    journal: list[dict[str, Any]] = Field(default_factory=list)
    unlocked_milestones: list[str] = Field(default_factory=list)

    def to_history(self, tz: tzinfo = UTC) -> tuple[TrainingHistory, list[QuarantinedRecord]]:
        animal = self.animal.to_animal()
        practices = parse_practice_events(self.practices, tz)
        sessions = parse_sessions(self.sessions)
        check_ins = parse_check_ins(self.check_ins)
        journal = parse_journal(self.journal)

        history = TrainingHistory(
            animal=animal,
            cues=[record.to_cue(animal.id) for record in self.cues],
            practices=practices.items,
            sessions=sessions.items,
            check_ins=check_ins.items,
            journal=journal.items,
            unlocked_milestones=list(self.unlocked_milestones),
        )
        quarantined = (
            practices.quarantined
            + sessions.quarantined
            + check_ins.quarantined
            + journal.quarantined
        )
        if quarantined:
            logger.info(f"Loaded history for {animal.id} with {len(quarantined)} quarantined records")
        return history, quarantined
