"""Human-readable descriptions of reminder rules and instants.

Used by the preview service and by reminder notifications.
"""

from __future__ import annotations

from datetime import datetime

from .. import const
from ..utils.dt_utils import dt_format_short, resolve_timezone
from .recurrence_rule import (
    DailyRule,
    MonthlyRule,
    RecurrenceRule,
    WeeklyRule,
    normalize_recurrence,
)


def ordinal(day: int) -> str:
    """Return 1 -> "1st", 2 -> "2nd", 11 -> "11th", 23 -> "23rd"."""
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def describe_recurrence(rule: RecurrenceRule | dict | None) -> str:
    """Describe a cadence, e.g. "Every 2 weeks on Mon, Wed".

    Raw stored mappings are normalized first; None means a one-time reminder.
    """
    normalized = normalize_recurrence(rule)
    if normalized is None:
        return const.DISPLAY_ONE_TIME

    interval = normalized.interval

    if isinstance(normalized, DailyRule):
        return "Daily" if interval == 1 else f"Every {interval} days"

    if isinstance(normalized, WeeklyRule):
        base = "Weekly" if interval == 1 else f"Every {interval} weeks"
        if not normalized.weekdays:
            return base
        days = ", ".join(const.WEEKDAY_LABELS[day] for day in normalized.weekdays)
        return f"{base} on {days}"

    if isinstance(normalized, MonthlyRule):
        base = "Monthly" if interval == 1 else f"Every {interval} months"
        if not normalized.monthdays:
            return base
        days = ", ".join(ordinal(day) for day in normalized.monthdays)
        return f"{base} on the {days}"

    return normalized.frequency.capitalize()


def format_reminder_date(instant: datetime, timezone: str | None = None) -> str:
    """Render an instant in the given zone (viewer's zone when unresolvable)."""
    return dt_format_short(instant, resolve_timezone(timezone))


def permission_guidance(capability: const.NotificationCapability | str) -> str | None:
    """Return user guidance for a notification capability, None when granted."""
    try:
        state = const.NotificationCapability(capability)
    except ValueError:
        return None
    return const.PERMISSION_GUIDANCE.get(state)
