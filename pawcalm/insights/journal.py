"""
Journal Insights.

- Keyword tagging of free-text entries (``extract_tags``)
- Pattern findings across entries (``analyze_journal``)
- Community pattern lookup for a set of tags
- Journal prompt rules, built on the same selector as every other rule set

Findings and recommendations are identifiers, not prose.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from pawcalm.core.models import JournalEntry, PracticeResponse, SessionResponse
from pawcalm.core.thresholds import (
    COMMON_TAGS_LIMIT,
    EXERCISE_CALM_SHARE,
    GENERAL_PROMPT_VARIANTS,
    JOURNAL_MIN_ENTRIES,
    JOURNAL_RETURN_DAYS,
    JOURNAL_SETBACK_ANXIOUS,
    JOURNAL_STREAK_DAYS,
    MOOD_TREND_DELTA,
)
from pawcalm.core.timeutils import ensure_aware
from pawcalm.insights.selector import InsightCategory, InsightRule, RuleSet, always
from pawcalm.progress.snapshot import ProgressSnapshot

# =============================================================================
# Tagging
# =============================================================================

# (tag, keywords) in output order; a tag is added once if any keyword appears
TAG_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    # Time of day
    ("morning", ("morning",)),
    ("afternoon", ("afternoon",)),
    ("evening", ("evening", "night")),
    # Owner mood and energy
    ("low_energy", ("tired", "exhausted")),
    ("owner_stressed", ("stressed", "anxious", "worried")),
    ("calm", ("calm", "relaxed")),
    ("positive", ("happy", "excited", "proud")),
    ("frustrated", ("frustrated", "discouraged")),
    # External factors
    ("loud_noises", ("thunder", "storm", "firework")),
    ("exercise", ("walk", "exercise")),
    ("visitors", ("visitor", "guest", "someone came")),
    ("food_reward", ("treat", "food", "kong")),
    # Progress
    ("improvement", ("better", "improvement", "progress")),
    ("setback", ("worse", "setback", "regression")),
    ("breakthrough", ("breakthrough", "finally")),
    # Behaviour
    ("barking", ("bark",)),
    ("whining", ("whine", "cry")),
    ("pacing", ("pace", "pacing")),
    ("following", ("follow",)),
    ("destructive", ("destroy", "chew", "scratch")),
)


def extract_tags(content: str) -> list[str]:
    """Tag an entry by substring keyword match (case-insensitive)."""
    text = content.lower()
    return [tag for tag, keywords in TAG_KEYWORDS if any(word in text for word in keywords)]


# =============================================================================
# Pattern analysis
# =============================================================================


class MoodTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


@dataclass
class JournalAnalysis:
    findings: list[str] = field(default_factory=list)
    common_tags: list[tuple[str, int]] = field(default_factory=list)
    mood_trend: MoodTrend = MoodTrend.UNKNOWN
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "findings": list(self.findings),
            "common_tags": [{"tag": tag, "count": count} for tag, count in self.common_tags],
            "mood_trend": self.mood_trend.value,
            "recommendations": list(self.recommendations),
        }


def _entry_tags(entry: JournalEntry) -> list[str]:
    return list(entry.tags) if entry.tags else extract_tags(entry.content)


def _most_recent_first(entries: Iterable[JournalEntry]) -> list[JournalEntry]:
    dated = sorted(
        (e for e in entries if e.timestamp is not None),
        key=lambda e: ensure_aware(e.timestamp),
        reverse=True,
    )
    return dated + [e for e in entries if e.timestamp is None]


def _average_mood(entries: Sequence[JournalEntry]) -> float:
    return sum(entry.mood.score for entry in entries) / len(entries)


def mood_trend(entries_recent_first: Sequence[JournalEntry]) -> MoodTrend:
    """Compare the recent half's average mood with the older half's."""
    if len(entries_recent_first) < 2:
        return MoodTrend.UNKNOWN
    split = (len(entries_recent_first) + 1) // 2
    recent = _average_mood(entries_recent_first[:split])
    older = _average_mood(entries_recent_first[split:])
    if recent > older + MOOD_TREND_DELTA:
        return MoodTrend.IMPROVING
    if recent < older - MOOD_TREND_DELTA:
        return MoodTrend.DECLINING
    return MoodTrend.STABLE


def analyze_journal(entries: Iterable[JournalEntry]) -> JournalAnalysis:
    """Look for recurring patterns across journal entries."""
    ordered = _most_recent_first(list(entries))
    if len(ordered) < JOURNAL_MIN_ENTRIES:
        return JournalAnalysis(
            findings=["keep_journaling"],
            recommendations=["journal_after_practice"],
        )

    tags_by_entry = [_entry_tags(entry) for entry in ordered]
    counts = Counter(tag for tags in tags_by_entry for tag in tags)
    analysis = JournalAnalysis(
        common_tags=counts.most_common(COMMON_TAGS_LIMIT),
        mood_trend=mood_trend(ordered),
    )

    if counts["morning"] > counts["evening"]:
        analysis.findings.append("practices_mostly_mornings")

    if counts["exercise"] and counts["calm"]:
        with_exercise = [tags for tags in tags_by_entry if "exercise" in tags]
        calm_share = sum(1 for tags in with_exercise if "calm" in tags) / len(with_exercise)
        if calm_share > EXERCISE_CALM_SHARE:
            analysis.findings.append("calmer_after_exercise")

    if counts["owner_stressed"] and counts["setback"]:
        analysis.findings.append("setbacks_when_owner_stressed")
        analysis.recommendations.append("breathing_before_practice")

    if counts["loud_noises"] and counts["setback"]:
        analysis.findings.append("noise_affects_training")
        analysis.recommendations.append("lighter_practice_on_noisy_days")

    if counts["food_reward"] and counts["improvement"]:
        analysis.findings.append("food_rewards_help")

    if analysis.mood_trend is MoodTrend.IMPROVING:
        analysis.findings.append("mood_improving")
    elif analysis.mood_trend is MoodTrend.DECLINING:
        analysis.findings.append("mood_declining")
        analysis.recommendations.append("celebrate_small_wins")

    if not analysis.recommendations:
        analysis.recommendations.append("keep_journaling")
    return analysis


# =============================================================================
# Community patterns
# =============================================================================


@dataclass(frozen=True)
class CommunityPattern:
    pattern_id: str
    frequency: int  # Percent of owners who report it


COMMUNITY_PATTERNS: dict[str, CommunityPattern] = {
    p.pattern_id: p
    for p in (
        CommunityPattern("regression_after_loud_noises", 73),
        CommunityPattern("weeks_two_three_hardest", 68),
        CommunityPattern("mornings_more_successful", 61),
        CommunityPattern("owner_stress_affects_dog", 82),
        CommunityPattern("exercise_before_practice", 67),
        CommunityPattern("setbacks_after_routine_changes", 71),
    )
}

# First matching tag wins
_TAG_TO_PATTERN = (
    ("loud_noises", "regression_after_loud_noises"),
    ("owner_stressed", "owner_stress_affects_dog"),
    ("exercise", "exercise_before_practice"),
    ("setback", "weeks_two_three_hardest"),
)


def relevant_community_pattern(tags: Iterable[str]) -> CommunityPattern | None:
    tags = set(tags)
    for tag, pattern_id in _TAG_TO_PATTERN:
        if tag in tags:
            return COMMUNITY_PATTERNS[pattern_id]
    return None


# =============================================================================
# Prompt rules
# =============================================================================


@dataclass(frozen=True)
class JournalContext:
    last_response: PracticeResponse | None = None
    streak: int = 0
    recent_setback: bool = False
    just_mastered: bool = False
    days_inactive: int | None = None
    variant: int = 0  # Picks among the general prompts

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot, variant: int = 0) -> JournalContext:
        last_session_struggled = (
            bool(snapshot.recent_session_responses)
            and snapshot.recent_session_responses[0] is SessionResponse.STRUGGLED
        )
        return cls(
            last_response=snapshot.last_practice.response if snapshot.last_practice else None,
            streak=snapshot.current_streak,
            recent_setback=last_session_struggled
            or snapshot.consecutive_anxious >= JOURNAL_SETBACK_ANXIOUS,
            just_mastered=snapshot.just_mastered_cue_id is not None,
            days_inactive=snapshot.days_since_last_practice,
            variant=variant,
        )


JOURNAL_PROMPT_RULES = RuleSet(
    name="journal_prompt",
    rules=(
        InsightRule("mastery_celebration", InsightCategory.CELEBRATION, lambda c: c.just_mastered),
        InsightRule("setback_reflection", InsightCategory.CHALLENGE, lambda c: c.recent_setback),
        InsightRule(
            "return_reflection",
            InsightCategory.REFLECTION,
            lambda c: c.days_inactive is not None and c.days_inactive >= JOURNAL_RETURN_DAYS,
            lambda c: {"days_inactive": c.days_inactive},
        ),
        InsightRule(
            "streak_reflection",
            InsightCategory.CELEBRATION,
            lambda c: c.streak >= JOURNAL_STREAK_DAYS,
            lambda c: {"streak_days": c.streak},
        ),
        InsightRule(
            "calm_observation",
            InsightCategory.OBSERVATION,
            lambda c: c.last_response is PracticeResponse.CALM,
        ),
        InsightRule(
            "anxious_reflection",
            InsightCategory.OBSERVATION,
            lambda c: c.last_response is PracticeResponse.ANXIOUS,
        ),
        InsightRule(
            "general",
            InsightCategory.REFLECTION,
            always,
            lambda c: {"prompt_variant": c.variant % GENERAL_PROMPT_VARIANTS},
        ),
    ),
)

