"""
Practice streaks.

A streak is a run of consecutive calendar days with at least one
practice. Both values are recomputed from the practice days on every
read; nothing here is cached.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class StreakState:
    current: int = 0
    longest: int = 0
    practiced_today: bool = False


def current_streak(practice_days: Iterable[date], today: date) -> int:
    """
    Count consecutive practice days ending today or yesterday.

    Today only counts if it already has a practice; otherwise the count
    starts from yesterday. A gap on the starting day means no streak.
    """
    days = set(practice_days)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(practice_days: Iterable[date]) -> int:
    """Longest run of consecutive practice days anywhere in the history."""
    ordered = sorted(set(practice_days))
    if not ordered:
        return 0

    longest = run = 1
    for previous, day in zip(ordered, ordered[1:]):
        if (day - previous).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def streak_state(practice_days: Iterable[date], today: date) -> StreakState:
    days = set(practice_days)
    return StreakState(
        current=current_streak(days, today),
        longest=longest_streak(days),
        practiced_today=today in days,
    )
