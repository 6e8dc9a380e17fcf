"""Post-practice feedback rules, evaluated right after one practice is logged."""

from __future__ import annotations

from pawcalm.core.models import PracticeResponse
from pawcalm.insights.selector import InsightCategory, InsightRule, RuleSet, always
from pawcalm.progress.snapshot import ProgressSnapshot


def _last_was(response: PracticeResponse):
    def predicate(s: ProgressSnapshot) -> bool:
        return s.last_practice is not None and s.last_practice.response is response

    return predicate


def _calm_run(predicate):
    is_calm = _last_was(PracticeResponse.CALM)
    return lambda s: is_calm(s) and predicate(s.consecutive_calm)


def _anxious_run(predicate):
    is_anxious = _last_was(PracticeResponse.ANXIOUS)
    return lambda s: is_anxious(s) and predicate(s.consecutive_anxious)


def _cue_params(s: ProgressSnapshot) -> dict:
    practice = s.last_practice
    return {
        "cue_id": practice.cue_id,
        "calm_count": practice.cue_calm_count,
        "total_count": practice.cue_total_count,
    }


PRACTICE_FEEDBACK_RULES = RuleSet(
    name="practice_feedback",
    rules=(
        InsightRule(
            "celebrate_cue",
            InsightCategory.CELEBRATION,
            lambda s: s.last_practice is not None and s.last_practice.celebrated_now,
            _cue_params,
        ),
        InsightRule("calm_first", InsightCategory.ENCOURAGEMENT, _calm_run(lambda n: n == 1)),
        InsightRule(
            "calm_three_in_a_row",
            InsightCategory.ENCOURAGEMENT,
            _calm_run(lambda n: n == 3),
            lambda s: {"consecutive_calm": s.consecutive_calm},
        ),
        InsightRule(
            "calm_superstar",
            InsightCategory.CELEBRATION,
            _calm_run(lambda n: n >= 5),
            lambda s: {"consecutive_calm": s.consecutive_calm},
        ),
        InsightRule(
            "calm",
            InsightCategory.ENCOURAGEMENT,
            _last_was(PracticeResponse.CALM),
            lambda s: {"consecutive_calm": s.consecutive_calm},
        ),
        InsightRule("noticed", InsightCategory.REASSURANCE, _last_was(PracticeResponse.NOTICED)),
        InsightRule("anxious_first", InsightCategory.REASSURANCE, _anxious_run(lambda n: n == 1)),
        InsightRule("anxious_second", InsightCategory.TOUGH_DAY, _anxious_run(lambda n: n == 2)),
        InsightRule(
            "anxious_hard_day",
            InsightCategory.TOUGH_DAY,
            _anxious_run(lambda n: n >= 3),
            lambda s: {"consecutive_anxious": s.consecutive_anxious},
        ),
        InsightRule("practice_logged", InsightCategory.ENCOURAGEMENT, always),
    ),
)
