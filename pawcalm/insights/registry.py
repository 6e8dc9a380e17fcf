"""
Rule set lookup by short name, with the context each set expects.
"""

from __future__ import annotations

from typing import Any

from pawcalm.core.errors import InvalidInputError
from pawcalm.core.models import Animal
from pawcalm.insights.feedback_rules import PRACTICE_FEEDBACK_RULES
from pawcalm.insights.journal import JOURNAL_PROMPT_RULES, JournalContext
from pawcalm.insights.owner_support import OWNER_SUPPORT_RULES
from pawcalm.insights.predictions import PREDICTION_RULES, PredictionContext
from pawcalm.insights.progress_rules import WEEKLY_PROGRESS_RULES
from pawcalm.insights.selector import RuleSet
from pawcalm.progress.snapshot import ProgressSnapshot

RULE_SETS: dict[str, RuleSet] = {
    "weekly": WEEKLY_PROGRESS_RULES,
    "feedback": PRACTICE_FEEDBACK_RULES,
    "owner": OWNER_SUPPORT_RULES,
    "prediction": PREDICTION_RULES,
    "journal": JOURNAL_PROMPT_RULES,
}


def get_rule_set(name: str) -> RuleSet:
    """
    Raises:
        InvalidInputError: for an unknown rule set name
    """
    try:
        return RULE_SETS[name]
    except KeyError:
        raise InvalidInputError(
            f"Unknown rule set {name!r}; expected one of {sorted(RULE_SETS)}"
        ) from None


def build_context(
    name: str,
    snapshot: ProgressSnapshot,
    animal: Animal | None = None,
    variant: int = 0,
) -> Any:
    """Wrap a snapshot in the context object rule set ``name`` reads."""
    get_rule_set(name)
    if name == "prediction":
        if animal is None:
            raise InvalidInputError("Prediction rules need the animal profile")
        return PredictionContext(snapshot=snapshot, animal=animal)
    if name == "journal":
        return JournalContext.from_snapshot(snapshot, variant=variant)
    return snapshot
