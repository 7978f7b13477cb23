"""Engine modules for Zen Reminders integration.

Contains pure computation engines (no Home Assistant imports):
- recurrence_rule: Recurrence value types, normalization, RRULE export
- schedule_engine: Occurrence calculation for reminder schedules
- describer: Human-readable rule and instant formatting
"""

# Use relative imports within package to avoid mypy module resolution issues
from .describer import describe_recurrence, format_reminder_date, permission_guidance
from .recurrence_rule import (
    DailyRule,
    MonthlyRule,
    RecurrenceRule,
    WeeklyRule,
    normalize_recurrence,
    to_rrule_string,
)
from .schedule_engine import (
    ReminderSchedule,
    next_occurrence,
    rebase_schedule,
    should_schedule_reminder,
    upcoming_occurrences,
)

__all__ = [
    "DailyRule",
    "MonthlyRule",
    "RecurrenceRule",
    "ReminderSchedule",
    "WeeklyRule",
    "describe_recurrence",
    "format_reminder_date",
    "next_occurrence",
    "normalize_recurrence",
    "permission_guidance",
    "rebase_schedule",
    "should_schedule_reminder",
    "to_rrule_string",
    "upcoming_occurrences",
]
