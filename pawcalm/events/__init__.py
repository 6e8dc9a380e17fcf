"""
Event boundary: validation and quarantine of raw event-store records.
"""

from pawcalm.events.schema import (
    AnimalRecord,
    CheckInRecord,
    CueRecord,
    JournalRecord,
    ParseResult,
    PracticeRecord,
    QuarantinedRecord,
    SessionRecord,
    TrainingLog,
    parse_check_ins,
    parse_journal,
    parse_practice_events,
    parse_practice_record,
    parse_sessions,
)

__all__ = [
    "AnimalRecord",
    "CheckInRecord",
    "CueRecord",
    "JournalRecord",
    "PracticeRecord",
    "SessionRecord",
    "TrainingLog",
    "ParseResult",
    "QuarantinedRecord",
    "parse_practice_record",
    "parse_practice_events",
    "parse_sessions",
    "parse_check_ins",
    "parse_journal",
]
