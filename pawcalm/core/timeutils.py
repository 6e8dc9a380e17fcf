"""Calendar helpers shared by the aggregator and the store."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo

from pawcalm.core.models import TimeOfDay
from pawcalm.core.thresholds import AFTERNOON_STARTS_HOUR, EVENING_STARTS_HOUR


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def local_date(moment: datetime, tz: tzinfo = UTC) -> date:
    """Calendar day of ``moment`` in ``tz``."""
    return ensure_aware(moment).astimezone(tz).date()


def week_start(day: date) -> date:
    """Monday of the calendar week containing ``day``."""
    return day - timedelta(days=day.weekday())


def time_of_day_for(moment: datetime, tz: tzinfo = UTC) -> TimeOfDay:
    """Bucket a timestamp into morning / afternoon / evening."""
    hour = ensure_aware(moment).astimezone(tz).hour
    if hour < AFTERNOON_STARTS_HOUR:
        return TimeOfDay.MORNING
    if hour < EVENING_STARTS_HOUR:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def days_between(earlier: datetime, later: datetime, tz: tzinfo = UTC) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (never negative)."""
    return max(0, (local_date(later, tz) - local_date(earlier, tz)).days)
