"""
Weekly progress insight rules.

Evaluated against a ``ProgressSnapshot``. Priority: first-time
celebrations, streak records and full mastery, then week-over-week
trends, then acknowledgement of the week, then plain encouragement,
then an always-true default.
"""

from __future__ import annotations

from pawcalm.core.thresholds import (
    GOOD_WEEK_RATE,
    NEW_USER_SESSIONS,
    TOUGH_WEEK_SHARE,
    TREND_DELTA,
)
from pawcalm.insights.selector import InsightCategory, InsightRule, RuleSet, always
from pawcalm.progress.snapshot import ProgressSnapshot, RateStat


def _improved(this_week: RateStat, last_week: RateStat) -> bool:
    if this_week.rate is None or last_week.rate is None:
        return False
    return this_week.rate > last_week.rate + TREND_DELTA


def _rates(this_week: RateStat, last_week: RateStat) -> dict:
    return {"this_week_rate": this_week.rate, "last_week_rate": last_week.rate}


def _tough_week(s: ProgressSnapshot) -> bool:
    rated = s.this_week.positive
    return rated.is_sufficient and s.this_week.tough_sessions >= rated.samples * TOUGH_WEEK_SHARE


def _good_week(s: ProgressSnapshot) -> bool:
    rate = s.this_week.positive.rate
    return rate is not None and rate >= GOOD_WEEK_RATE


WEEKLY_PROGRESS_RULES = RuleSet(
    name="weekly_progress",
    rules=(
        InsightRule(
            "first_great_session",
            InsightCategory.CELEBRATION,
            lambda s: s.is_first_great_ever and s.had_great_this_week,
        ),
        InsightRule(
            "longest_streak_yet",
            InsightCategory.MILESTONE,
            lambda s: s.current_streak >= 3 and s.current_streak == s.longest_streak,
            lambda s: {"streak_days": s.current_streak},
        ),
        InsightRule(
            "all_cues_mastered",
            InsightCategory.CELEBRATION,
            lambda s: s.all_cues_mastered,
            lambda s: {"total_cues": s.total_cues},
        ),
        InsightRule(
            "sessions_feeling_easier",
            InsightCategory.TREND,
            lambda s: _improved(s.this_week.positive, s.last_week.positive),
            lambda s: _rates(s.this_week.positive, s.last_week.positive),
        ),
        InsightRule(
            "staying_calmer",
            InsightCategory.TREND,
            lambda s: _improved(s.this_week.calm, s.last_week.calm),
            lambda s: _rates(s.this_week.calm, s.last_week.calm),
        ),
        InsightRule(
            "tough_week_showing_up",
            InsightCategory.REASSURANCE,
            _tough_week,
            lambda s: {
                "tough_sessions": s.this_week.tough_sessions,
                "rated_sessions": s.this_week.positive.samples,
            },
        ),
        InsightRule(
            "good_week",
            InsightCategory.ENCOURAGEMENT,
            _good_week,
            lambda s: {"positive_rate": s.this_week.positive.rate},
        ),
        InsightRule(
            "building_foundation",
            InsightCategory.ENCOURAGEMENT,
            lambda s: s.total_sessions < NEW_USER_SESSIONS,
            lambda s: {"total_sessions": s.total_sessions},
        ),
        InsightRule(
            "streak_consistency",
            InsightCategory.ENCOURAGEMENT,
            lambda s: s.current_streak >= 3,
            lambda s: {"streak_days": s.current_streak},
        ),
        InsightRule(
            "cues_mastered",
            InsightCategory.MILESTONE,
            lambda s: s.cues_mastered > 0,
            lambda s: {"cues_mastered": s.cues_mastered},
        ),
        InsightRule("keep_going", InsightCategory.ENCOURAGEMENT, always),
    ),
)
