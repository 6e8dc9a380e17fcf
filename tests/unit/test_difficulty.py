"""
Unit tests for the difficulty adjuster.

Tests:
- Rule ladder precedence (regressions before progress)
- Owner state modifiers
- Rounding and clamping
- Input validation
"""

import pytest

from pawcalm.core.errors import InvalidInputError
from pawcalm.core.models import OwnerEnergy, OwnerMood, OwnerState
from pawcalm.training.difficulty import (
    adjust_difficulty,
    compute_target_duration,
    round_half_up,
)


class TestLadder:
    """Trend rules, most recent outcome first."""

    @pytest.mark.parametrize(
        "outcomes,rule_id,expected",
        [
            (["struggled", "struggled", "struggled"], "major_regression", 5),
            (["struggled", "struggled", "great", "great", "great"], "regression", 7),
            (["struggled", "great", "great", "great", "great"], "minor_regression", 9),
            (["great", "great", "great", "great", "okay"], "strong_progress", 12),
            (["great", "great", "great", "struggled", "okay"], "progress", 11),
            (["okay", "great", "okay"], "steady", 10),
            ([], "steady", 10),
        ],
    )
    def test_rule_ladder(self, outcomes, rule_id, expected):
        adjustment = adjust_difficulty(10, outcomes)

        assert adjustment.rule_id == rule_id
        assert adjustment.target_minutes == expected

    def test_only_last_five_count_toward_progress(self):
        outcomes = ["okay", "okay", "great", "great", "okay", "great", "great"]

        assert adjust_difficulty(10, outcomes).rule_id == "steady"


class TestOwnerModifier:
    def test_anxious_owner_shortens_session(self):
        adjustment = adjust_difficulty(10, [], OwnerState(mood=OwnerMood.ANXIOUS))

        assert adjustment.owner_rule_id == "owner_strained"
        assert adjustment.target_minutes == 8

    def test_low_energy_shortens_session(self):
        owner = OwnerState(mood=OwnerMood.CONFIDENT, energy=OwnerEnergy.LOW)

        assert compute_target_duration(10, [], owner) == 8

    def test_confident_high_energy_extends_session(self):
        owner = OwnerState(mood=OwnerMood.CONFIDENT, energy=OwnerEnergy.HIGH)

        adjustment = adjust_difficulty(10, ["okay"], owner)

        assert adjustment.owner_rule_id == "owner_confident"
        assert adjustment.target_minutes == 11

    def test_confidence_does_not_override_a_struggle(self):
        owner = OwnerState(mood=OwnerMood.CONFIDENT, energy=OwnerEnergy.HIGH)

        adjustment = adjust_difficulty(10, ["struggled"], owner)

        assert adjustment.owner_rule_id is None
        assert adjustment.target_minutes == 9

    def test_modifiers_multiply(self):
        adjustment = adjust_difficulty(20, ["struggled", "struggled"], OwnerState(energy=OwnerEnergy.LOW))

        assert adjustment.raw_minutes == pytest.approx(11.2)
        assert adjustment.target_minutes == 11


class TestBounds:
    def test_round_half_up(self):
        assert round_half_up(8.5) == 9
        assert round_half_up(2.5) == 3
        assert round_half_up(0.35 * 10) == 4

    def test_clamped_to_one_minute(self):
        assert compute_target_duration(0, ["struggled"] * 3) == 1

    def test_clamped_to_an_hour(self):
        assert compute_target_duration(58, ["great"] * 5) == 60

    def test_negative_baseline_rejected(self):
        with pytest.raises(InvalidInputError):
            adjust_difficulty(-1)

    def test_unknown_outcome_rejected(self):
        with pytest.raises(InvalidInputError):
            adjust_difficulty(10, ["fine"])

    def test_breakdown_serializes(self):
        data = adjust_difficulty(10, ["great"] * 4).to_dict()

        assert data["rule_id"] == "strong_progress"
        assert data["target_minutes"] == 12
