"""Type definitions for Zen Reminders data structures.

TypedDicts describe the JSON shapes held in storage and passed through
services. They are STATIC ANALYSIS ONLY: runtime code still uses `.get()`
with defaults, because stored records may predate a field.

IMPORTANT: This file must NOT import from coordinator.py or any manager.
Only typing machinery is imported here.
"""

from typing import NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"


# =============================================================================
# Recurrence
# =============================================================================


class RecurrenceInput(TypedDict, total=False):
    """Raw recurrence input as stored or submitted by the reminder form.

    Every key is optional; `normalize_recurrence` fills defaults and drops
    anything it cannot use.
    """

    frequency: str  # once | daily | weekly | monthly
    interval: int | float | str
    weekdays: list[int]  # 0=Sunday ... 6=Saturday
    monthdays: list[int]  # 1..31
    start_at: ISODatetime
    end_at: ISODatetime


# =============================================================================
# Tasks
# =============================================================================


class TaskData(TypedDict):
    """Type definition for a task record holding reminder fields."""

    internal_id: TaskId
    title: str
    completed: bool
    due_date: NotRequired[ISODatetime | None]
    reminder_minutes_before: NotRequired[int | None]
    reminder_recurrence: NotRequired[RecurrenceInput | None]
    reminder_snoozed_until: NotRequired[ISODatetime | None]
    reminder_timezone: NotRequired[str | None]
    reminder_next_trigger_at: NotRequired[ISODatetime | None]
    reminder_last_trigger_at: NotRequired[ISODatetime | None]


class MetaData(TypedDict):
    """Integration-wide metadata stored alongside tasks."""

    schema_version: int
    notification_permission: str


class StoreData(TypedDict):
    """Top-level storage structure."""

    meta: MetaData
    tasks: dict[TaskId, TaskData]


# =============================================================================
# Service payloads
# =============================================================================


class PreviewResult(TypedDict):
    """Response of the preview_reminder service."""

    description: str
    occurrences: list[ISODatetime]
    formatted: list[str]
    rrule: str

