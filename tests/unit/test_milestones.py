"""
Unit tests for the milestone engine.

Tests:
- Threshold predicates and catalog order
- Exactly-once emission (idempotence)
- Browsing helpers: by category, next up, progress bars
"""

from pawcalm.core.models import Cue
from pawcalm.milestones.catalog import MILESTONES, MilestoneCategory, get_milestone
from pawcalm.milestones.engine import (
    evaluate_milestones,
    milestone_progress,
    milestones_by_category,
    next_milestones,
)
from pawcalm.progress.snapshot import ProgressSnapshot


def _ids(unlocks):
    return [unlock.milestone_id for unlock in unlocks]


class TestEvaluate:
    def test_five_practices(self, now):
        snapshot = ProgressSnapshot(animal_id="dog-1", total_practices=5)

        unlocked = _ids(evaluate_milestones(snapshot, [], now))

        assert "first_practice" in unlocked
        assert "five_practices" in unlocked
        assert "ten_practices" not in unlocked

    def test_unlocks_are_stamped_and_owned(self, now):
        snapshot = ProgressSnapshot(animal_id="dog-1", total_practices=1)

        (unlock,) = evaluate_milestones(snapshot, [], now)

        assert unlock.animal_id == "dog-1"
        assert unlock.unlocked_at == now

    def test_idempotent(self, now):
        snapshot = ProgressSnapshot(animal_id="dog-1", total_practices=12, current_streak=3, longest_streak=3)

        first = evaluate_milestones(snapshot, [], now)
        second = evaluate_milestones(snapshot, _ids(first), now)

        assert first
        assert second == []

    def test_catalog_order(self, now):
        snapshot = ProgressSnapshot(total_practices=10, current_streak=7, longest_streak=7)

        unlocked = _ids(evaluate_milestones(snapshot, [], now))
        catalog = [m.id for m in MILESTONES]

        assert unlocked == sorted(unlocked, key=catalog.index)

    def test_longest_streak_satisfies_streak_milestone(self, now):
        snapshot = ProgressSnapshot(current_streak=0, longest_streak=7)

        unlocked = _ids(evaluate_milestones(snapshot, [], now))

        assert "seven_day_streak" in unlocked
        assert "fourteen_day_streak" not in unlocked

    def test_manual_milestones_never_fire(self, now):
        snapshot = ProgressSnapshot(total_practices=500, journal_entries=50)

        unlocked = _ids(evaluate_milestones(snapshot, [], now))

        assert "first_open" not in unlocked
        assert "pattern_discovered" not in unlocked

    def test_all_cues_mastered(self, now):
        cues = [Cue(id="a", calm_count=5, total_count=5), Cue(id="b", calm_count=6, total_count=7)]
        snapshot = ProgressSnapshot(cues=cues, total_cues=2, cues_mastered=2)

        assert "all_cues_mastered" in _ids(evaluate_milestones(snapshot, [], now))

    def test_no_cues_is_not_all_mastered(self, now):
        assert "all_cues_mastered" not in _ids(evaluate_milestones(ProgressSnapshot(), [], now))


class TestBrowsing:
    def test_by_category_flags_unlocked(self):
        grouped = milestones_by_category(["first_practice"])

        engagement = {status.definition.id: status.unlocked for status in grouped[MilestoneCategory.ENGAGEMENT]}
        assert engagement["first_practice"]
        assert not engagement["five_practices"]

    def test_next_milestones_one_per_category(self):
        upcoming = next_milestones(["first_open", "first_practice"])

        assert [m.id for m in upcoming] == ["five_practices", "first_calm", "first_session"]

    def test_progress_is_capped(self):
        snapshot = ProgressSnapshot(total_practices=30)

        assert milestone_progress("ten_practices", snapshot).percentage == 100
        assert milestone_progress("fifty_practices", snapshot).percentage == 60

    def test_progress_for_non_numeric_milestone(self):
        assert milestone_progress("overcame_setback", ProgressSnapshot()) is None
        assert milestone_progress("unknown", ProgressSnapshot()) is None

    def test_get_milestone(self):
        assert get_milestone("one_hour").target == 60
        assert get_milestone("nope") is None
