"""
Unit tests for the metric aggregator.

Tests:
- Totals, response counts and cue projection
- Ordering of out-of-order and undated events
- Calendar windows, streaks and time-of-day buckets
- Best improving cue ranking
- Just-happened flags used by the insight rules
- Invariant checks refusing inconsistent state
"""

from dataclasses import FrozenInstanceError, replace
from datetime import date, timedelta
from zoneinfo import ZoneInfo

import pytest

from pawcalm.core.errors import SnapshotInvariantError
from pawcalm.core.models import (
    Cue,
    OwnerFeeling,
    PracticeResponse,
    SessionResponse,
    TimeOfDay,
)
from pawcalm.progress.aggregator import (
    aggregate,
    aggregate_history,
    check_invariants,
    order_practices,
    project_cues,
    todays_goal,
)
from pawcalm.progress.snapshot import ProgressSnapshot, RateStatus


class TestTotals:
    """Totals and response counts."""

    def test_empty_log(self, now):
        snapshot = aggregate([], now=now)

        assert snapshot.total_practices == 0
        assert snapshot.calm_rate == 0.0
        assert snapshot.current_streak == 0
        assert snapshot.days_since_last_practice is None
        assert snapshot.last_practice is None

    def test_response_counts_sum_to_total(self, now, days_ago, make_practice):
        practices = [
            make_practice(response="calm", timestamp=days_ago(1)),
            make_practice(response="noticed", timestamp=days_ago(1, 10)),
            make_practice(response="anxious", timestamp=days_ago(0)),
            make_practice(response="calm", timestamp=days_ago(0, 10)),
        ]

        snapshot = aggregate(practices, now=now)

        assert snapshot.total_practices == 4
        assert snapshot.response_counts[PracticeResponse.CALM] == 2
        assert snapshot.response_counts[PracticeResponse.NOTICED] == 1
        assert snapshot.response_counts[PracticeResponse.ANXIOUS] == 1
        assert snapshot.calm_rate == pytest.approx(0.5)

    def test_cues_only_in_log_are_created(self, now, days_ago, make_practice, cues):
        practices = [make_practice(cue_id="bag", timestamp=days_ago(0))]

        snapshot = aggregate(practices, now=now, cues=cues)

        assert [cue.id for cue in snapshot.cues] == ["keys", "shoes", "coat", "bag"]
        assert snapshot.cue("bag").total_count == 1

    def test_input_cues_are_not_mutated(self, now, days_ago, make_practice, cues):
        aggregate([make_practice(timestamp=days_ago(0))], now=now, cues=cues)

        assert cues[0].total_count == 0


class TestDuplicateEvent:
    """Appending a duplicate of the last event."""

    def test_duplicate_adds_one_practice_without_new_mastery(self, now, days_ago, make_practice):
        practices = [
            make_practice(cue_id="keys", timestamp=days_ago(3)),
            make_practice(cue_id="keys", timestamp=days_ago(2)),
            make_practice(cue_id="shoes", response="anxious", timestamp=days_ago(1)),
        ]

        before = aggregate(practices, now=now)
        after = aggregate(practices + [practices[-1]], now=now)

        assert after.total_practices == before.total_practices + 1
        assert after.cues_mastered == before.cues_mastered

    def test_duplicate_that_is_fifth_calm_masters_cue(self, now, days_ago, make_practice):
        practices = [make_practice(cue_id="keys", timestamp=days_ago(4 - i)) for i in range(4)]

        before = aggregate(practices, now=now)
        after = aggregate(practices + [practices[-1]], now=now)

        assert before.cues_mastered == 0
        assert after.cues_mastered == 1


class TestOrdering:
    """Ordering of out-of-order and undated events."""

    def test_out_of_order_feed_gives_same_snapshot(self, now, days_ago, make_practice):
        practices = [
            make_practice(cue_id="keys", response="anxious", timestamp=days_ago(2)),
            make_practice(cue_id="keys", timestamp=days_ago(1)),
            make_practice(cue_id="shoes", timestamp=days_ago(0)),
        ]

        ordered = aggregate(practices, now=now)
        shuffled = aggregate(list(reversed(practices)), now=now)

        assert shuffled.to_dict() == ordered.to_dict()
        assert shuffled.last_practice.cue_id == "shoes"

    def test_sequence_breaks_timestamp_ties(self, days_ago, make_practice):
        stamp = days_ago(0)
        second = make_practice(cue_id="shoes", timestamp=stamp, sequence=1)
        first = make_practice(cue_id="keys", timestamp=stamp, sequence=0)

        assert [e.cue_id for e in order_practices([second, first])] == ["keys", "shoes"]

    def test_undated_events_count_but_are_not_calendar_data(self, now, days_ago, make_practice):
        practices = [
            make_practice(cue_id="keys", timestamp=None),
            make_practice(cue_id="keys", timestamp=days_ago(1)),
        ]

        snapshot = aggregate(practices, now=now)

        assert snapshot.total_practices == 2
        assert snapshot.undated_practices == 1
        assert snapshot.days_active == 1
        assert snapshot.cue("keys").total_count == 2
        assert snapshot.last_practice.cue_id == "keys"
        assert snapshot.days_since_last_practice == 1

    def test_undated_events_sort_first(self, days_ago, make_practice):
        dated = make_practice(cue_id="keys", timestamp=days_ago(1))
        undated = make_practice(cue_id="shoes", timestamp=None)

        assert order_practices([dated, undated]) == [undated, dated]


class TestStreaks:
    """Streaks cut on local calendar days."""

    def test_streak_including_today(self, now, days_ago, make_practice):
        practices = [make_practice(timestamp=days_ago(d)) for d in (0, 1, 2)]

        snapshot = aggregate(practices, now=now)

        assert snapshot.current_streak == 3
        assert snapshot.longest_streak == 3
        assert snapshot.practiced_today
        assert snapshot.just_hit_streak == 3

    def test_streak_ending_yesterday_still_counts(self, now, days_ago, make_practice):
        practices = [make_practice(timestamp=days_ago(d)) for d in (1, 2)]

        snapshot = aggregate(practices, now=now)

        assert snapshot.current_streak == 2
        assert not snapshot.practiced_today
        assert snapshot.just_hit_streak is None

    def test_gap_resets_current_but_not_longest(self, now, days_ago, make_practice):
        practices = [make_practice(timestamp=days_ago(d)) for d in (2, 5, 6, 7, 8)]

        snapshot = aggregate(practices, now=now)

        assert snapshot.current_streak == 0
        assert snapshot.longest_streak == 4

    def test_timezone_moves_practice_to_previous_day(self, now, make_practice):
        # 02:00 UTC Wednesday is still Tuesday evening in New York
        late = now.replace(hour=2)
        tz = ZoneInfo("America/New_York")

        snapshot = aggregate([make_practice(timestamp=late)], now=now, tz=tz)

        assert not snapshot.practiced_today
        assert snapshot.current_streak == 1
        assert snapshot.days_since_last_practice == 1


class TestWindows:
    """Weekly windows and sample-size gating."""

    def test_small_week_is_insufficient(self, now, days_ago, make_practice):
        practices = [make_practice(timestamp=days_ago(0)), make_practice(timestamp=days_ago(1))]

        snapshot = aggregate(practices, now=now)

        assert snapshot.this_week.calm.samples == 2
        assert snapshot.this_week.calm.status is RateStatus.INSUFFICIENT
        assert snapshot.this_week.calm.rate is None

    def test_last_week_window(self, now, days_ago, make_practice):
        # now is Wednesday; 7-9 days back fall in the previous Monday-Sunday week
        practices = [
            make_practice(response=response, timestamp=days_ago(d))
            for d, response in ((7, "calm"), (8, "calm"), (9, "anxious"))
        ]

        snapshot = aggregate(practices, now=now)

        assert snapshot.this_week.calm.samples == 0
        assert snapshot.last_week.calm.samples == 3
        assert snapshot.last_week.calm.rate == pytest.approx(2 / 3)
        assert snapshot.first_week.start == snapshot.last_week.start

    def test_best_time_of_day_needs_ten_samples(self, now, days_ago, make_practice):
        mornings = [make_practice(timestamp=days_ago(d, 8)) for d in range(10)]
        evenings = [make_practice(response="anxious", timestamp=days_ago(d, 20)) for d in range(1, 4)]

        snapshot = aggregate(mornings + evenings, now=now)

        assert snapshot.best_time_of_day is TimeOfDay.MORNING
        assert snapshot.time_of_day[TimeOfDay.EVENING].rate is None

    def test_best_time_of_day_tie_goes_to_earlier_bucket(self, now, days_ago, make_practice):
        evenings = [make_practice(timestamp=days_ago(d, 20)) for d in range(1, 11)]
        afternoons = [make_practice(timestamp=days_ago(d, 14)) for d in range(1, 11)]
        mornings = [make_practice(timestamp=days_ago(d, 8)) for d in range(1, 11)]

        without_morning = aggregate(evenings + afternoons, now=now)
        all_three = aggregate(evenings + afternoons + mornings, now=now)

        assert without_morning.best_time_of_day is TimeOfDay.AFTERNOON
        assert all_three.best_time_of_day is TimeOfDay.MORNING

    def test_first_week_differs_from_last_week(self, now, days_ago, make_practice):
        # 20-22 days before Wednesday 2024-06-12 is the week of Monday 2024-05-20
        practices = [
            make_practice(response=response, timestamp=days_ago(d))
            for d, response in (
                (22, "calm"),
                (21, "calm"),
                (20, "anxious"),
                (9, "anxious"),
                (8, "anxious"),
                (7, "calm"),
            )
        ]

        snapshot = aggregate(practices, now=now)

        assert snapshot.first_week.start == date(2024, 5, 20)
        assert snapshot.last_week.start == date(2024, 6, 3)
        assert snapshot.this_week.start == date(2024, 6, 10)
        assert snapshot.first_week.calm.rate == pytest.approx(2 / 3)
        assert snapshot.last_week.calm.rate == pytest.approx(1 / 3)


def _cue_run(make_practice, days_ago, cue_id, responses, hour):
    return [
        make_practice(cue_id=cue_id, response=response, timestamp=days_ago(len(responses) - i, hour))
        for i, response in enumerate(responses)
    ]


class TestBestImprovingCue:
    """First three vs last three responses per cue."""

    def test_largest_gain_wins(self, now, days_ago, make_practice, cues):
        practices = (
            _cue_run(make_practice, days_ago, "keys", ["anxious"] * 3 + ["calm"] * 3, 8)
            + _cue_run(make_practice, days_ago, "shoes", ["calm", "anxious", "calm", "calm", "calm"], 9)
            + _cue_run(make_practice, days_ago, "coat", ["anxious"] * 2 + ["calm"] * 2, 10)
        )

        best = aggregate(practices, now=now, cues=cues).best_improving_cue

        assert best.cue_id == "keys"
        assert best.practices == 6
        assert best.start_rate == 0.0
        assert best.current_rate == 1.0
        assert best.delta == 1.0

    def test_cues_under_five_practices_are_ignored(self, now, days_ago, make_practice, cues):
        practices = _cue_run(make_practice, days_ago, "coat", ["anxious"] * 2 + ["calm"] * 2, 10)

        assert aggregate(practices, now=now, cues=cues).best_improving_cue is None

    def test_tie_goes_to_more_practices(self, now, days_ago, make_practice, cues):
        practices = (
            _cue_run(make_practice, days_ago, "keys", ["anxious"] * 3 + ["calm"] * 3, 8)
            + _cue_run(make_practice, days_ago, "shoes", ["anxious"] * 3 + ["calm"] * 4, 9)
        )

        best = aggregate(practices, now=now, cues=cues).best_improving_cue

        assert best.cue_id == "shoes"
        assert best.practices == 7

    def test_full_tie_goes_to_first_listed_cue(self, now, days_ago, make_practice, cues):
        practices = (
            _cue_run(make_practice, days_ago, "shoes", ["anxious"] * 3 + ["calm"] * 3, 8)
            + _cue_run(make_practice, days_ago, "keys", ["anxious"] * 3 + ["calm"] * 3, 9)
        )

        assert aggregate(practices, now=now, cues=cues).best_improving_cue.cue_id == "keys"


class TestFlags:
    """Just-happened flags."""

    def test_mastery_today_sets_flags(self, now, days_ago, make_practice):
        practices = [make_practice(cue_id="keys", timestamp=days_ago(0, h)) for h in range(8, 13)]

        snapshot = aggregate(practices, now=now)

        assert snapshot.cues_mastered == 1
        assert snapshot.just_mastered_cue_id == "keys"
        assert snapshot.is_first_mastery
        assert snapshot.last_practice.celebrated_now

    def test_mastery_on_earlier_day_is_not_just_mastered(self, now, days_ago, make_practice):
        practices = [make_practice(cue_id="keys", timestamp=days_ago(1, h)) for h in range(8, 13)]

        snapshot = aggregate(practices, now=now)

        assert snapshot.cues_mastered == 1
        assert snapshot.just_mastered_cue_id is None
        assert not snapshot.is_first_mastery

    def test_first_practice(self, now, days_ago, make_practice):
        snapshot = aggregate([make_practice(timestamp=days_ago(0))], now=now)

        assert snapshot.is_first_practice
        assert snapshot.consecutive_calm == 1

    def test_first_great_ever(self, now, days_ago, make_session):
        sessions = [make_session(owner_rating="great", timestamp=days_ago(0))]

        snapshot = aggregate([], now=now, sessions=sessions)

        assert snapshot.had_great_this_week
        assert snapshot.is_first_great_ever

    def test_earlier_great_blocks_first_great_ever(self, now, days_ago, make_session):
        sessions = [
            make_session(owner_rating="great", timestamp=days_ago(10)),
            make_session(owner_rating="great", timestamp=days_ago(0)),
        ]

        snapshot = aggregate([], now=now, sessions=sessions)

        assert snapshot.had_great_this_week
        assert not snapshot.is_first_great_ever


class TestSessions:
    """Absence session metrics."""

    def test_session_metrics(self, now, days_ago, make_session):
        sessions = [
            make_session("great", days_ago(4), target_minutes=3),
            make_session("struggled", days_ago(3), target_minutes=20),
            make_session("okay", days_ago(2), target_minutes=8),
            make_session("great", days_ago(1), target_minutes=12, complete=False),
        ]

        snapshot = aggregate([], now=now, sessions=sessions)

        assert snapshot.total_sessions == 4
        assert snapshot.successful_sessions == 2
        assert snapshot.longest_calm_absence == 8
        assert snapshot.recovered_from_setback
        assert snapshot.recent_session_responses[0] is SessionResponse.GREAT
        assert snapshot.days_since_last_session == 1

    def test_consecutive_frustrated_skips_sessions_without_feeling(
        self, now, days_ago, make_session
    ):
        sessions = [
            make_session(timestamp=days_ago(3), owner_feeling=OwnerFeeling.HOPEFUL),
            make_session(timestamp=days_ago(2), owner_feeling=OwnerFeeling.FRUSTRATED),
            make_session(timestamp=days_ago(1)),
            make_session(timestamp=days_ago(0), owner_feeling=OwnerFeeling.FRUSTRATED),
        ]

        snapshot = aggregate([], now=now, sessions=sessions)

        assert snapshot.consecutive_frustrated_sessions == 2


class TestProjection:
    """Cue counter re-derivation."""

    def test_project_cues_keeps_existing_mastery(self, now, days_ago, make_practice):
        stamped = Cue(id="keys", mastered_at=days_ago(30))

        projected = project_cues([stamped], [make_practice(response="anxious", timestamp=days_ago(0))], now)

        assert projected[0].mastered_at == days_ago(30)
        assert projected[0].total_count == 1

    def test_undated_qualifying_event_is_stamped_with_now(self, now, make_practice):
        practices = [make_practice(cue_id="keys", timestamp=None) for _ in range(5)]

        projected = project_cues([], practices, now)

        assert projected[0].mastered_at == now

    def test_aggregate_history(self, now, days_ago, make_practice, history):
        history.practices = [make_practice(timestamp=days_ago(0))]

        snapshot = aggregate_history(history, now=now)

        assert snapshot.animal_id == "dog-1"
        assert snapshot.total_cues == 3


class TestInvariants:
    """Inconsistent state is refused, not clamped."""

    def test_calm_above_total_is_refused(self):
        snapshot = ProgressSnapshot(cues=[Cue(id="keys", calm_count=3, total_count=2)], total_cues=1)

        with pytest.raises(SnapshotInvariantError) as exc_info:
            check_invariants(snapshot)

        assert "cue keys" in str(exc_info.value)

    def test_current_streak_above_longest_is_refused(self):
        snapshot = ProgressSnapshot(current_streak=4, longest_streak=2)

        with pytest.raises(SnapshotInvariantError):
            check_invariants(snapshot)

    def test_consistent_snapshot_passes(self, now, days_ago, make_practice):
        snapshot = aggregate([make_practice(timestamp=days_ago(0))], now=now)

        check_invariants(replace(snapshot))


class TestImmutability:
    """Snapshots cannot be changed after aggregation."""

    def test_fields_cannot_be_reassigned(self, now, days_ago, make_practice):
        snapshot = aggregate([make_practice(timestamp=days_ago(0))], now=now)

        with pytest.raises(FrozenInstanceError):
            snapshot.total_practices = 5

    def test_collections_are_read_only(self, now, days_ago, make_practice, make_session):
        snapshot = aggregate(
            [make_practice(timestamp=days_ago(0))],
            now=now,
            sessions=[make_session(timestamp=days_ago(1))],
        )

        assert isinstance(snapshot.cues, tuple)
        assert isinstance(snapshot.recent_session_responses, tuple)
        with pytest.raises(TypeError):
            snapshot.response_counts[PracticeResponse.CALM] = 9
        with pytest.raises(TypeError):
            snapshot.time_of_day[TimeOfDay.MORNING] = None

    def test_replace_builds_a_new_snapshot(self, now, days_ago, make_practice):
        snapshot = aggregate([make_practice(timestamp=days_ago(0))], now=now)

        bumped = replace(snapshot, current_streak=2, longest_streak=2)

        assert snapshot.current_streak == 1
        assert bumped.current_streak == 2
        assert bumped.response_counts[PracticeResponse.CALM] == 1


class TestTodaysGoal:
    """Daily practice goal."""

    @pytest.mark.parametrize(
        "total,streak,expected",
        [(0, 0, 3), (4, 10, 3), (20, 2, 3), (20, 3, 4), (20, 6, 4), (20, 7, 5)],
    )
    def test_goal_grows_with_habit(self, total, streak, expected):
        assert todays_goal(total, streak) == expected


def test_days_since_start_counts_from_first_practice(now, days_ago, make_practice):
    snapshot = aggregate([make_practice(timestamp=days_ago(5)), make_practice(timestamp=days_ago(0))], now=now)

    assert snapshot.days_since_start == 5
    assert snapshot.practices_last_7_days == 2
    assert now - timedelta(days=7) < days_ago(5)
