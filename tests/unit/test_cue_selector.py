"""
Unit tests for cue selection.

Tests:
- Additive scoring bonuses and penalties
- Recent-cue exclusion
- Explicit requests and fallbacks
- Jitter bounds with a seeded random source
"""

import random

import pytest

from pawcalm.core.models import Cue, PracticeResponse
from pawcalm.training.cue_selector import score_cues, select_next_cue


def _cue(cue_id: str, calm: int = 0, total: int = 0, last=None) -> Cue:
    return Cue(id=cue_id, calm_count=calm, total_count=total, last_response=last)


class TestScoring:
    """Deterministic part of the score."""

    def _score(self, cue: Cue) -> float:
        (result,) = score_cues([cue], jitter=0)
        return result.deterministic_score

    def test_new_cue(self):
        assert self._score(_cue("a")) == 70

    def test_close_to_mastery_and_working(self):
        assert self._score(_cue("a", calm=3, total=4)) == 95

    def test_struggling_cue_gets_no_working_bonus(self):
        assert self._score(_cue("a", calm=1, total=4, last=PracticeResponse.ANXIOUS)) == 40

    def test_mastered_cue_is_deprioritized(self):
        assert self._score(_cue("a", calm=5, total=5)) == 25

    def test_reasons_are_recorded(self):
        (result,) = score_cues([_cue("a", calm=4, total=5, last=PracticeResponse.ANXIOUS)], jitter=0)

        assert result.reasons == ["close_to_mastery", "working", "recent_anxious"]

    def test_jitter_stays_in_bounds(self):
        rng = random.Random(3)
        for result in score_cues([_cue(str(i)) for i in range(50)], rng=rng, jitter=20):
            assert 0 <= result.jitter < 20


class TestSelection:
    """Picking the next cue."""

    def test_empty_cue_list(self):
        assert select_next_cue([]) is None

    def test_highest_score_wins_without_jitter(self):
        cues = [_cue("mastered", 6, 6), _cue("close", 3, 3), _cue("new")]

        assert select_next_cue(cues, jitter=0).id == "close"

    def test_ties_keep_input_order(self):
        cues = [_cue("first"), _cue("second")]

        assert select_next_cue(cues, jitter=0).id == "first"

    def test_last_two_practiced_today_are_skipped(self):
        cues = [_cue("a"), _cue("b"), _cue("c", calm=1, total=5)]

        chosen = select_next_cue(cues, todays_practiced_ids=["c", "a", "b"], jitter=0)

        assert chosen.id == "c"

    def test_exclusion_never_empties_the_pool(self):
        cues = [_cue("a"), _cue("b")]

        assert select_next_cue(cues, todays_practiced_ids=["a", "b"], jitter=0).id == "a"

    def test_requested_cue_is_returned(self):
        cues = [_cue("a"), _cue("b", 5, 5)]

        assert select_next_cue(cues, requested_id="b").id == "b"

    def test_missing_request_falls_back_with_warning(self, log_messages):
        cues = [_cue("a"), _cue("b")]

        chosen = select_next_cue(cues, requested_id="nope", jitter=0)

        assert chosen.id == "a"
        assert any(level == "WARNING" and "nope" in text for level, text in log_messages)

    @pytest.mark.parametrize("seed", range(5))
    def test_selection_is_always_an_input_cue(self, seed):
        cues = [_cue("a", 2, 3), _cue("b"), _cue("c", 5, 6)]

        chosen = select_next_cue(cues, rng=random.Random(seed))

        assert chosen in cues

    def test_close_to_mastery_beats_untouched_cue_in_most_trials(self):
        # Same +20 vs +30 setup as a fresh cue against one with 3/3 calm
        rng = random.Random(42)
        wins = 0
        trials = 500
        for _ in range(trials):
            chosen = select_next_cue([_cue("fresh"), _cue("close", 3, 3)], rng=rng)
            wins += chosen.id == "close"

        assert wins / trials >= 0.9
