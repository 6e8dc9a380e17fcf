"""
Insights Module - Short-circuit rule selection for every message family.

Provides:
- InsightRule / RuleSet / InsightPayload and select_insight
- Weekly progress, practice feedback and owner support rule sets
- Predictions scaled by the dog's profile
- Journal tagging, pattern analysis and prompt rules
"""

from pawcalm.insights.feedback_rules import PRACTICE_FEEDBACK_RULES
from pawcalm.insights.journal import (
    COMMUNITY_PATTERNS,
    JOURNAL_PROMPT_RULES,
    CommunityPattern,
    JournalAnalysis,
    JournalContext,
    MoodTrend,
    analyze_journal,
    extract_tags,
    relevant_community_pattern,
)
from pawcalm.insights.owner_support import OWNER_SUPPORT_RULES
from pawcalm.insights.predictions import (
    PREDICTION_RULES,
    PredictionContext,
    calm_percentile,
    estimated_days_to_goal,
    estimated_days_to_mastery,
)
from pawcalm.insights.progress_rules import WEEKLY_PROGRESS_RULES
from pawcalm.insights.registry import RULE_SETS, build_context, get_rule_set
from pawcalm.insights.selector import (
    InsightCategory,
    InsightPayload,
    InsightRule,
    RuleSet,
    collect_insights,
    select_insight,
)

__all__ = [
    # Selector
    "InsightCategory",
    "InsightPayload",
    "InsightRule",
    "RuleSet",
    "collect_insights",
    "select_insight",
    # Rule sets
    "RULE_SETS",
    "WEEKLY_PROGRESS_RULES",
    "PRACTICE_FEEDBACK_RULES",
    "OWNER_SUPPORT_RULES",
    "PREDICTION_RULES",
    "JOURNAL_PROMPT_RULES",
    "build_context",
    "get_rule_set",
    # Predictions
    "PredictionContext",
    "calm_percentile",
    "estimated_days_to_goal",
    "estimated_days_to_mastery",
    # Journal
    "COMMUNITY_PATTERNS",
    "CommunityPattern",
    "JournalAnalysis",
    "JournalContext",
    "MoodTrend",
    "analyze_journal",
    "extract_tags",
    "relevant_community_pattern",
]
