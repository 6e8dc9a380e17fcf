"""
Owner support rules.

Messages aimed at the human rather than the dog. Celebrations outrank
welcome-back nudges, which outrank tough-stretch support, which outranks
generic encouragement and tips. There is no catch-all: most of the time
the owner needs no extra message and selection returns None.
"""

from __future__ import annotations

from pawcalm.core.thresholds import (
    ABSENCE_TIP_IDLE_DAYS,
    MISSION_READY_CUES,
    ON_FIRE_PRACTICES,
    TOUGH_STRETCH_ANXIOUS,
    TOUGH_STRETCH_FRUSTRATED,
    WELCOME_BACK_LONG_DAYS,
    WELCOME_BACK_SHORT_DAYS,
)
from pawcalm.insights.selector import InsightCategory, InsightRule, RuleSet
from pawcalm.progress.snapshot import ProgressSnapshot


def _away_at_least(days: int):
    return lambda s: s.days_since_last_practice is not None and s.days_since_last_practice >= days


def _ready_for_absence(s: ProgressSnapshot) -> bool:
    idle = s.days_since_last_session
    return s.cues_mastered >= MISSION_READY_CUES and (idle is None or idle > ABSENCE_TIP_IDLE_DAYS)


OWNER_SUPPORT_RULES = RuleSet(
    name="owner_support",
    rules=(
        # Celebrations
        InsightRule(
            "cue_mastered",
            InsightCategory.CELEBRATION,
            lambda s: s.just_mastered_cue_id is not None,
            lambda s: {"cue_id": s.just_mastered_cue_id},
        ),
        InsightRule(
            "streak_hit",
            InsightCategory.CELEBRATION,
            lambda s: s.just_hit_streak is not None,
            lambda s: {"streak_days": s.just_hit_streak},
        ),
        InsightRule("first_mastery", InsightCategory.CELEBRATION, lambda s: s.is_first_mastery),
        InsightRule(
            "first_successful_session",
            InsightCategory.CELEBRATION,
            lambda s: s.is_first_successful_session,
        ),
        # Welcome back
        InsightRule(
            "welcome_back_long",
            InsightCategory.WELCOME_BACK,
            _away_at_least(WELCOME_BACK_LONG_DAYS),
            lambda s: {"days_away": s.days_since_last_practice},
        ),
        InsightRule(
            "welcome_back_short",
            InsightCategory.WELCOME_BACK,
            _away_at_least(WELCOME_BACK_SHORT_DAYS),
            lambda s: {"days_away": s.days_since_last_practice},
        ),
        # Tough stretch
        InsightRule(
            "tough_stretch_anxious",
            InsightCategory.TOUGH_DAY,
            lambda s: s.consecutive_anxious >= TOUGH_STRETCH_ANXIOUS,
            lambda s: {"consecutive_anxious": s.consecutive_anxious},
        ),
        InsightRule(
            "tough_stretch_frustrated",
            InsightCategory.TOUGH_DAY,
            lambda s: s.consecutive_frustrated_sessions >= TOUGH_STRETCH_FRUSTRATED,
            lambda s: {"consecutive_frustrated": s.consecutive_frustrated_sessions},
        ),
        # Encouragement and tips
        InsightRule(
            "on_fire",
            InsightCategory.ENCOURAGEMENT,
            lambda s: s.current_streak >= 3 and s.practices_last_7_days >= ON_FIRE_PRACTICES,
            lambda s: {
                "streak_days": s.current_streak,
                "practices_this_week": s.practices_last_7_days,
            },
        ),
        InsightRule(
            "try_absence_training",
            InsightCategory.TIP,
            _ready_for_absence,
            lambda s: {"cues_mastered": s.cues_mastered},
        ),
    ),
)
