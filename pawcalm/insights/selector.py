"""
Insight Selector.

Every message family in the engine (weekly progress, post-practice
feedback, owner support, predictions, journal prompts) is an ordered
list of ``InsightRule``s evaluated against one context object. The
first rule whose predicate holds wins and later rules are not evaluated.

Rules never carry prose. A payload is a rule id, a category tag and
numeric/identifier parameters; rendering is someone else's job.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger


class InsightCategory(str, Enum):
    """Tag a renderer can style or route on."""

    CELEBRATION = "celebration"
    MILESTONE = "milestone"
    TREND = "trend"
    REASSURANCE = "reassurance"
    ENCOURAGEMENT = "encouragement"
    WELCOME_BACK = "welcome_back"
    TOUGH_DAY = "tough_day"
    TIP = "tip"
    WARNING = "warning"
    COMPARISON = "comparison"
    MASTERY = "mastery"
    REFLECTION = "reflection"
    CHALLENGE = "challenge"
    OBSERVATION = "observation"


def _no_params(context: Any) -> Mapping[str, Any]:
    return {}


@dataclass(frozen=True)
class InsightRule:
    """One candidate message: a predicate plus a parameter builder."""

    rule_id: str
    category: InsightCategory
    predicate: Callable[[Any], bool]
    params: Callable[[Any], Mapping[str, Any]] = _no_params


@dataclass(frozen=True)
class RuleSet:
    """Rules in priority order (first is highest)."""

    name: str
    rules: tuple[InsightRule, ...]

    def __post_init__(self) -> None:
        ids = [rule.rule_id for rule in self.rules]
        duplicates = sorted({rule_id for rule_id in ids if ids.count(rule_id) > 1})
        if duplicates:
            raise ValueError(f"Rule set {self.name} has duplicate rule ids: {duplicates}")

    @property
    def rule_ids(self) -> list[str]:
        return [rule.rule_id for rule in self.rules]


@dataclass(frozen=True)
class InsightPayload:
    rule_set: str
    rule_id: str
    category: InsightCategory
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_set": self.rule_set,
            "rule_id": self.rule_id,
            "category": self.category.value,
            "params": dict(self.params),
        }


def _payload(rule_set: RuleSet, rule: InsightRule, context: Any) -> InsightPayload:
    return InsightPayload(
        rule_set=rule_set.name,
        rule_id=rule.rule_id,
        category=rule.category,
        params=dict(rule.params(context)),
    )


def select_insight(context: Any, rule_set: RuleSet) -> InsightPayload | None:
    """
    Return the payload of the first matching rule.

    Returns None only when no rule matches, which can only happen for
    rule sets without an always-true catch-all.
    """
    for rule in rule_set.rules:
        if rule.predicate(context):
            payload = _payload(rule_set, rule, context)
            logger.debug(f"{rule_set.name}: selected {rule.rule_id} {payload.params}")
            return payload
    logger.debug(f"{rule_set.name}: no rule matched")
    return None


def collect_insights(context: Any, rule_set: RuleSet) -> list[InsightPayload]:
    """Every matching rule's payload, highest priority first."""
    return [
        _payload(rule_set, rule, context) for rule in rule_set.rules if rule.predicate(context)
    ]


def always(context: Any) -> bool:
    """Predicate for catch-all rules."""
    return True
