"""
Metric Aggregator.

Reduces one animal's append-only logs (practices, sessions, check-ins,
journal) into a ``ProgressSnapshot``. Everything here is a pure function
of its arguments; ``now`` and ``tz`` are explicit so results are
reproducible.

Ordering:
    Dated events are sorted by (timestamp, sequence), so out-of-order
    feeds are accepted. Undated events (timestamp could not be parsed)
    keep their input order and sort before every dated event: they count
    toward totals and per-cue counters but never toward calendar windows,
    streaks or time-of-day stats, and are never "the most recent".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta, tzinfo

from loguru import logger

from pawcalm.core.errors import SnapshotInvariantError
from pawcalm.core.models import (
    Cue,
    JournalEntry,
    OwnerCheckIn,
    OwnerFeeling,
    PracticeEvent,
    PracticeResponse,
    SessionOutcome,
    SessionRating,
    SessionResponse,
    TimeOfDay,
    TrainingHistory,
)
from pawcalm.core.thresholds import (
    GOAL_BUILDING,
    GOAL_ESTABLISHED,
    GOAL_NEW_USER_PRACTICES,
    GOAL_STARTER,
    IMPROVEMENT_SPAN,
    MASTERY_CALM_COUNT,
    MIN_IMPROVEMENT_PRACTICES,
    MIN_TIME_OF_DAY_SAMPLE,
    MIN_WINDOW_SAMPLE,
    STREAK_CELEBRATION_DAYS,
)
from pawcalm.core.timeutils import (
    days_between,
    ensure_aware,
    local_date,
    time_of_day_for,
    week_start,
)
from pawcalm.progress.snapshot import (
    CueImprovement,
    LastPractice,
    ProgressSnapshot,
    RateStat,
    WindowStats,
)
from pawcalm.progress.streaks import streak_state
from pawcalm.training.mastery import evaluate_mastery, should_celebrate

RECENT_FEELINGS_SCANNED = 5


# =============================================================================
# Ordering
# =============================================================================


def order_practices(practices: Iterable[PracticeEvent]) -> list[PracticeEvent]:
    """Undated events first (input order), then dated by (timestamp, sequence)."""
    undated: list[PracticeEvent] = []
    dated: list[PracticeEvent] = []
    for event in practices:
        (dated if event.is_dated else undated).append(event)
    dated.sort(key=lambda e: (ensure_aware(e.timestamp), e.sequence))
    return undated + dated


def order_sessions(sessions: Iterable[SessionOutcome]) -> list[SessionOutcome]:
    sessions = list(sessions)
    undated = [s for s in sessions if s.timestamp is None]
    dated = sorted(
        (s for s in sessions if s.timestamp is not None),
        key=lambda s: ensure_aware(s.timestamp),
    )
    return undated + dated


# =============================================================================
# Cue projection
# =============================================================================


def project_cues(
    cues: Sequence[Cue],
    practices: Iterable[PracticeEvent],
    now: datetime | None = None,
) -> list[Cue]:
    """
    Re-derive every cue's counters from the practice log.

    Input cues are not mutated. Cues that only appear in the log are
    created on demand (after the known cues, in order of first practice).
    A mastery transition whose qualifying event is undated is stamped
    with ``now``.
    """
    ordered = order_practices(practices)
    now = ensure_aware(now or datetime.now(UTC))

    known: dict[str, Cue] = {cue.id: cue for cue in cues}
    events_by_cue: dict[str, list[PracticeEvent]] = {cue.id: [] for cue in cues}
    for event in ordered:
        if event.cue_id not in known:
            known[event.cue_id] = Cue(
                id=event.cue_id, name=event.cue_name, animal_id=event.animal_id
            )
            events_by_cue[event.cue_id] = []
        events_by_cue[event.cue_id].append(event)

    projected: list[Cue] = []
    for cue_id, cue in known.items():
        events = events_by_cue[cue_id]
        result = evaluate_mastery(cue, events)
        mastered_at = result.mastered_at
        if result.mastered and mastered_at is None:
            mastered_at = now

        dated = [e for e in events if e.is_dated]
        projected.append(
            replace(
                cue,
                calm_count=result.calm_count,
                total_count=result.total_count,
                last_response=events[-1].response if events else cue.last_response,
                last_practiced_at=dated[-1].timestamp if dated else cue.last_practiced_at,
                mastered_at=mastered_at,
            )
        )
    return projected


# =============================================================================
# Building blocks
# =============================================================================


def _window(
    start: date,
    practices: Sequence[PracticeEvent],
    sessions: Sequence[SessionOutcome],
    tz: tzinfo,
) -> WindowStats:
    end = start + timedelta(days=7)

    in_week = [e for e in practices if start <= local_date(e.timestamp, tz) < end]
    rated = [
        s
        for s in sessions
        if s.owner_rating is not None and start <= local_date(s.timestamp, tz) < end
    ]
    return WindowStats(
        start=start,
        calm=RateStat(
            successes=sum(1 for e in in_week if e.is_calm),
            samples=len(in_week),
            minimum=MIN_WINDOW_SAMPLE,
        ),
        positive=RateStat(
            successes=sum(1 for s in rated if s.owner_rating.is_positive),
            samples=len(rated),
            minimum=MIN_WINDOW_SAMPLE,
        ),
        tough_sessions=sum(1 for s in rated if s.owner_rating is SessionRating.TOUGH),
        great_sessions=sum(1 for s in rated if s.owner_rating is SessionRating.GREAT),
    )


def _time_of_day_stats(
    practices: Sequence[PracticeEvent], tz: tzinfo
) -> dict[TimeOfDay, RateStat]:
    calm = {bucket: 0 for bucket in TimeOfDay}
    total = {bucket: 0 for bucket in TimeOfDay}
    for event in practices:
        bucket = event.time_of_day or time_of_day_for(event.timestamp, tz)
        total[bucket] += 1
        if event.is_calm:
            calm[bucket] += 1
    return {
        bucket: RateStat(successes=calm[bucket], samples=total[bucket], minimum=MIN_TIME_OF_DAY_SAMPLE)
        for bucket in TimeOfDay
    }


def best_time_of_day(stats: dict[TimeOfDay, RateStat]) -> TimeOfDay | None:
    """Highest calm rate among sufficient buckets; earlier bucket wins ties."""
    best: TimeOfDay | None = None
    best_rate = -1.0
    for bucket in TimeOfDay:
        stat = stats.get(bucket)
        if stat is None or stat.rate is None:
            continue
        if stat.rate > best_rate:
            best, best_rate = bucket, stat.rate
    return best


def _calm_share(events: Sequence[PracticeEvent]) -> float:
    if not events:
        return 0.0
    return sum(1 for e in events if e.is_calm) / len(events)


def best_improving_cue(
    cues: Sequence[Cue], events_by_cue: dict[str, list[PracticeEvent]]
) -> CueImprovement | None:
    """
    Cue with the largest gain from its first 3 to its last 3 responses.

    Only cues with 5+ practices qualify. Ties go to the cue with more
    practices, then to the cue listed first.
    """
    best: CueImprovement | None = None
    for cue in cues:
        events = events_by_cue.get(cue.id, [])
        if len(events) < MIN_IMPROVEMENT_PRACTICES:
            continue
        candidate = CueImprovement(
            cue_id=cue.id,
            cue_name=cue.name,
            practices=len(events),
            start_rate=_calm_share(events[:IMPROVEMENT_SPAN]),
            current_rate=_calm_share(events[-IMPROVEMENT_SPAN:]),
        )
        if best is None or (candidate.delta, candidate.practices) > (best.delta, best.practices):
            best = candidate
    return best


def _trailing_run(events: Sequence[PracticeEvent], response: PracticeResponse) -> int:
    run = 0
    for event in reversed(events):
        if event.response is not response:
            break
        run += 1
    return run


def _longest_calm_run(events: Sequence[PracticeEvent]) -> int:
    longest = run = 0
    for event in events:
        run = run + 1 if event.is_calm else 0
        longest = max(longest, run)
    return longest


def _consecutive_frustrated(sessions_recent_first: Sequence[SessionOutcome]) -> int:
    feelings = [s.owner_feeling for s in sessions_recent_first if s.owner_feeling is not None]
    count = 0
    for feeling in feelings[:RECENT_FEELINGS_SCANNED]:
        if feeling is not OwnerFeeling.FRUSTRATED:
            break
        count += 1
    return count


def _recovered_from_setback(sessions: Sequence[SessionOutcome]) -> bool:
    seen_struggle = False
    for session in sessions:
        if session.dog_response is SessionResponse.STRUGGLED:
            seen_struggle = True
        elif seen_struggle and session.dog_response is SessionResponse.GREAT:
            return True
    return False


# =============================================================================
# Aggregation
# =============================================================================


def aggregate(
    practices: Iterable[PracticeEvent],
    *,
    now: datetime | None = None,
    cues: Sequence[Cue] = (),
    sessions: Iterable[SessionOutcome] = (),
    check_ins: Iterable[OwnerCheckIn] = (),
    journal: Iterable[JournalEntry] = (),
    animal_id: str | None = None,
    tz: tzinfo = UTC,
) -> ProgressSnapshot:
    """
    Build the progress snapshot for one animal.

    Args:
        practices: Practice events in any order
        now: Evaluation time (defaults to the current UTC time)
        cues: Known cues; counters are re-derived from ``practices``
        sessions: Absence session outcomes in any order
        check_ins: Weekly owner check-ins
        journal: Journal entries
        animal_id: Animal the snapshot belongs to
        tz: Timezone used to cut calendar days and weeks

    Returns:
        A ProgressSnapshot that passed the invariant checks

    Raises:
        SnapshotInvariantError: when the derived state is inconsistent
    """
    now = ensure_aware(now or datetime.now(UTC))
    today = local_date(now, tz)

    ordered = order_practices(practices)
    dated = [e for e in ordered if e.is_dated]
    ordered_sessions = order_sessions(sessions)
    dated_sessions = [s for s in ordered_sessions if s.timestamp is not None]

    if animal_id is None and ordered:
        animal_id = ordered[0].animal_id

    # Totals
    response_counts = {response: 0 for response in PracticeResponse}
    for event in ordered:
        response_counts[event.response] += 1
    total = len(ordered)
    calm_rate = response_counts[PracticeResponse.CALM] / total if total else 0.0

    # Cues
    projected = project_cues(cues, ordered, now)
    events_by_cue: dict[str, list[PracticeEvent]] = {cue.id: [] for cue in projected}
    for event in ordered:
        events_by_cue[event.cue_id].append(event)
    cues_mastered = sum(1 for cue in projected if evaluate_mastery(cue).mastered)

    # Streaks and activity
    practice_days = {local_date(e.timestamp, tz) for e in dated}
    streaks = streak_state(practice_days, today)
    first_day = min(practice_days) if practice_days else None
    week_ago = now - timedelta(days=7)

    # Windows
    this_start = week_start(today)
    this_week = _window(this_start, dated, dated_sessions, tz)
    last_week = _window(this_start - timedelta(days=7), dated, dated_sessions, tz)
    first_week = _window(week_start(first_day), dated, dated_sessions, tz) if first_day else WindowStats()

    tod_stats = _time_of_day_stats(dated, tz)

    # Last practice
    last_practice = None
    if ordered:
        last = ordered[-1]
        last_cue = next(cue for cue in projected if cue.id == last.cue_id)
        last_practice = LastPractice(
            cue_id=last.cue_id,
            response=last.response,
            cue_calm_count=last_cue.calm_count,
            cue_total_count=last_cue.total_count,
            celebrated_now=last.is_calm and last_cue.calm_count == MASTERY_CALM_COUNT,
        )

    # Sessions
    recent_sessions = list(reversed(ordered_sessions))
    successful = sum(1 for s in ordered_sessions if s.dog_response is SessionResponse.GREAT)
    calm_absences = [
        s.target_minutes
        for s in ordered_sessions
        if s.is_complete and s.dog_response is not SessionResponse.STRUGGLED
    ]
    great_before_this_week = any(
        s.owner_rating is SessionRating.GREAT
        and (s.timestamp is None or local_date(s.timestamp, tz) < this_start)
        for s in ordered_sessions
    )

    # Just-happened flags
    mastered_today = [
        cue
        for cue in projected
        if cue.mastered_at is not None and local_date(cue.mastered_at, tz) == today
    ]
    just_mastered = max(mastered_today, key=lambda c: ensure_aware(c.mastered_at), default=None)
    check_ins = list(check_ins)
    journal = list(journal)

    snapshot = ProgressSnapshot(
        animal_id=animal_id,
        generated_at=now,
        total_practices=total,
        response_counts=response_counts,
        calm_rate=calm_rate,
        undated_practices=total - len(dated),
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        practiced_today=streaks.practiced_today,
        days_active=len(practice_days),
        days_since_start=max(0, (today - first_day).days) if first_day else 0,
        days_since_last_practice=days_between(dated[-1].timestamp, now, tz) if dated else None,
        practices_last_7_days=sum(1 for e in dated if week_ago < ensure_aware(e.timestamp) <= now),
        this_week=this_week,
        last_week=last_week,
        first_week=first_week,
        time_of_day=tod_stats,
        best_time_of_day=best_time_of_day(tod_stats),
        cues=projected,
        total_cues=len(projected),
        cues_mastered=cues_mastered,
        cues_celebrated=sum(1 for cue in projected if should_celebrate(cue.calm_count)),
        best_improving_cue=best_improving_cue(projected, events_by_cue),
        consecutive_calm=_trailing_run(ordered, PracticeResponse.CALM),
        consecutive_anxious=_trailing_run(ordered, PracticeResponse.ANXIOUS),
        longest_cue_calm_run=max(
            (_longest_calm_run(events) for events in events_by_cue.values()), default=0
        ),
        last_practice=last_practice,
        total_sessions=len(ordered_sessions),
        successful_sessions=successful,
        longest_calm_absence=max(calm_absences, default=0.0),
        recent_session_responses=[s.dog_response for s in recent_sessions],
        consecutive_frustrated_sessions=_consecutive_frustrated(recent_sessions),
        days_since_last_session=(
            days_between(dated_sessions[-1].timestamp, now, tz) if dated_sessions else None
        ),
        recovered_from_setback=_recovered_from_setback(ordered_sessions),
        is_first_practice=total == 1,
        is_first_mastery=cues_mastered == 1 and just_mastered is not None,
        just_mastered_cue_id=just_mastered.id if just_mastered else None,
        just_hit_streak=(
            streaks.current
            if streaks.practiced_today and streaks.current in STREAK_CELEBRATION_DAYS
            else None
        ),
        is_first_successful_session=successful == 1,
        had_great_this_week=this_week.great_sessions > 0,
        is_first_great_ever=this_week.great_sessions > 0 and not great_before_this_week,
        journal_entries=len(journal),
        latest_check_in=max(check_ins, key=lambda c: ensure_aware(c.timestamp), default=None),
    )

    check_invariants(snapshot)
    logger.debug(
        f"Aggregated {total} practices, {len(ordered_sessions)} sessions for {animal_id}: "
        f"streak={snapshot.current_streak}, mastered={cues_mastered}/{len(projected)}"
    )
    return snapshot


def aggregate_history(
    history: TrainingHistory,
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> ProgressSnapshot:
    """Aggregate a loaded ``TrainingHistory``."""
    return aggregate(
        history.practices,
        now=now,
        cues=history.cues,
        sessions=history.sessions,
        check_ins=history.check_ins,
        journal=history.journal,
        animal_id=history.animal.id,
        tz=tz,
    )


# =============================================================================
# Invariants
# =============================================================================


def _rate_violations(label: str, stat: RateStat) -> list[str]:
    problems = []
    if stat.successes < 0 or stat.samples < 0:
        problems.append(f"{label}: negative count")
    if stat.successes > stat.samples:
        problems.append(f"{label}: {stat.successes} successes > {stat.samples} samples")
    return problems


def check_invariants(snapshot: ProgressSnapshot) -> None:
    """
    Refuse inconsistent derived state.

    Raises:
        SnapshotInvariantError: listing every violation found
    """
    violations: list[str] = []

    counts = {
        "total_practices": snapshot.total_practices,
        "total_cues": snapshot.total_cues,
        "cues_mastered": snapshot.cues_mastered,
        "total_sessions": snapshot.total_sessions,
        "successful_sessions": snapshot.successful_sessions,
        "current_streak": snapshot.current_streak,
        "longest_streak": snapshot.longest_streak,
        "journal_entries": snapshot.journal_entries,
    }
    for response, count in snapshot.response_counts.items():
        counts[f"response_counts[{response.value}]"] = count
    violations.extend(f"{name} is negative ({value})" for name, value in counts.items() if value < 0)

    if sum(snapshot.response_counts.values()) != snapshot.total_practices:
        violations.append(
            f"response counts sum to {sum(snapshot.response_counts.values())}, "
            f"total is {snapshot.total_practices}"
        )
    if snapshot.cues_mastered > snapshot.total_cues:
        violations.append(f"cues_mastered {snapshot.cues_mastered} > total_cues {snapshot.total_cues}")
    if snapshot.current_streak > snapshot.longest_streak:
        violations.append(
            f"current_streak {snapshot.current_streak} > longest_streak {snapshot.longest_streak}"
        )
    if snapshot.successful_sessions > snapshot.total_sessions:
        violations.append("successful_sessions > total_sessions")
    if not 0.0 <= snapshot.calm_rate <= 1.0:
        violations.append(f"calm_rate {snapshot.calm_rate} outside [0, 1]")

    for cue in snapshot.cues:
        if cue.calm_count < 0 or cue.total_count < 0:
            violations.append(f"cue {cue.id}: negative counter")
        elif cue.calm_count > cue.total_count:
            violations.append(f"cue {cue.id}: calm {cue.calm_count} > total {cue.total_count}")

    for label, window in (
        ("this_week", snapshot.this_week),
        ("last_week", snapshot.last_week),
        ("first_week", snapshot.first_week),
    ):
        violations.extend(_rate_violations(f"{label}.calm", window.calm))
        violations.extend(_rate_violations(f"{label}.positive", window.positive))
    for bucket, stat in snapshot.time_of_day.items():
        violations.extend(_rate_violations(f"time_of_day.{bucket.value}", stat))

    if violations:
        logger.error(f"Snapshot invariants violated for {snapshot.animal_id}: {violations}")
        raise SnapshotInvariantError(violations)


# =============================================================================
# Daily goal
# =============================================================================


def todays_goal(total_practices: int, current_streak: int) -> int:
    """Practices to suggest for today, growing with the owner's habit."""
    if total_practices < GOAL_NEW_USER_PRACTICES:
        return GOAL_STARTER
    if current_streak < 3:
        return GOAL_STARTER
    if current_streak < 7:
        return GOAL_BUILDING
    return GOAL_ESTABLISHED
