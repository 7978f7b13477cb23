# File: const.py
"""Constants for the Zen Reminders integration.

This file centralizes configuration keys, defaults, storage keys, service
field names, signal suffixes, and notification payload keys so that engines,
managers, and services stay consistent with each other.
"""

from enum import StrEnum
import logging

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
ZEN_REMINDERS_TITLE = "Zen Reminders"

DOMAIN = "zen_reminders"

LOGGER = logging.getLogger(__package__)

COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
DISPATCH_MANAGER = "dispatch_manager"
NOTIFICATION_MANAGER = "notification_manager"
STORE = "store"

# Storage and Versioning
STORAGE_KEY = "zen_reminders_data"
STORAGE_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_NOTIFY_SERVICE = "notify_service"
CONF_DEFAULT_TIMEZONE = "default_timezone"

# ------------------------------------------------------------------------------------------------
# Recurrence
# ------------------------------------------------------------------------------------------------
FREQUENCY_ONCE = "once"
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"

FREQUENCY_OPTIONS = [
    FREQUENCY_ONCE,
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_MONTHLY,
]

# Weekdays use 0=Sunday ... 6=Saturday
WEEKDAY_MIN = 0
WEEKDAY_MAX = 6
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

MONTHDAY_MIN = 1
MONTHDAY_MAX = 31

DEFAULT_INTERVAL = 1
DEFAULT_UPCOMING_LIMIT = 3

# Hard cap on enumerated cadence cycles (days, weeks, or months)
MAX_RECURRENCE_CYCLES = 512

# Recurrence input keys (stored JSON shape)
RECURRENCE_FREQUENCY = "frequency"
RECURRENCE_INTERVAL = "interval"
RECURRENCE_WEEKDAYS = "weekdays"
RECURRENCE_MONTHDAYS = "monthdays"
RECURRENCE_START_AT = "start_at"
RECURRENCE_END_AT = "end_at"

# ------------------------------------------------------------------------------------------------
# Storage Data Keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_NOTIFICATION_PERMISSION = "notification_permission"
DATA_TASKS = "tasks"

SCHEMA_VERSION = 1

DATA_TASK_ID = "internal_id"
DATA_TASK_TITLE = "title"
DATA_TASK_COMPLETED = "completed"
DATA_TASK_DUE_DATE = "due_date"
DATA_TASK_REMINDER_MINUTES_BEFORE = "reminder_minutes_before"
DATA_TASK_REMINDER_RECURRENCE = "reminder_recurrence"
DATA_TASK_REMINDER_SNOOZED_UNTIL = "reminder_snoozed_until"
DATA_TASK_REMINDER_TIMEZONE = "reminder_timezone"
DATA_TASK_REMINDER_NEXT_TRIGGER_AT = "reminder_next_trigger_at"
DATA_TASK_REMINDER_LAST_TRIGGER_AT = "reminder_last_trigger_at"


# ------------------------------------------------------------------------------------------------
# Notification Capability
# ------------------------------------------------------------------------------------------------
class NotificationCapability(StrEnum):
    """Platform notification availability."""

    UNSUPPORTED = "unsupported"
    NOT_ASKED = "not_asked"
    DENIED = "denied"
    GRANTED = "granted"


# ------------------------------------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------------------------------------
class ReminderState(StrEnum):
    """Per-task dispatch state."""

    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"


SIGNAL_SUFFIX_REMINDER_DISPATCHED = "reminder_dispatched"
SIGNAL_SUFFIX_PERMISSION_CHANGED = "permission_changed"
SIGNAL_SUFFIX_TASK_COMPLETED = "task_completed"

# ------------------------------------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------------------------------------
NOTIFY_DOMAIN = "notify"
NOTIFY_TITLE = "title"
NOTIFY_MESSAGE = "message"
NOTIFY_DATA = "data"
NOTIFY_TAG = "tag"

NOTIFICATION_TAG_PREFIX = "task-reminder-"

NOTIFY_TITLE_REMINDER = "Task reminder"
NOTIFY_TITLE_COMPLETED = "Task completed"
NOTIFY_MESSAGE_REMINDER_FMT = '"{title}" is due {due}.'
NOTIFY_MESSAGE_REMINDER_NO_DUE_FMT = 'Reminder for "{title}".'
NOTIFY_MESSAGE_COMPLETED_FMT = 'Nice work! "{title}" is done.'

DISPLAY_DOT = "."
DISPLAY_ONE_TIME = "One-time reminder"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_SET_TASK_REMINDER = "set_task_reminder"
SERVICE_SNOOZE_TASK_REMINDER = "snooze_task_reminder"
SERVICE_RESCHEDULE_TASK = "reschedule_task"
SERVICE_CLEAR_TASK_REMINDER = "clear_task_reminder"
SERVICE_COMPLETE_TASK = "complete_task"
SERVICE_REMOVE_TASK = "remove_task"
SERVICE_PREVIEW_REMINDER = "preview_reminder"
SERVICE_SET_NOTIFICATION_PERMISSION = "set_notification_permission"

FIELD_TASK_ID = "task_id"
FIELD_TITLE = "title"
FIELD_DUE_DATE = "due_date"
FIELD_LEAD_MINUTES = "lead_minutes"
FIELD_FREQUENCY = "frequency"
FIELD_INTERVAL = "interval"
FIELD_WEEKDAYS = "weekdays"
FIELD_MONTHDAYS = "monthdays"
FIELD_END_AT = "end_at"
FIELD_SNOOZED_UNTIL = "snoozed_until"
FIELD_TIMEZONE = "timezone"
FIELD_LIMIT = "limit"
FIELD_COMPLETED = "completed"
FIELD_PERMISSION = "permission"

PREVIEW_DESCRIPTION = "description"
PREVIEW_OCCURRENCES = "occurrences"
PREVIEW_FORMATTED = "formatted"
PREVIEW_RRULE = "rrule"

RESPONSE_TASK_ID = "task_id"
RESPONSE_NEXT_TRIGGER = "next_trigger"
RESPONSE_PERMISSION = "permission"
RESPONSE_GUIDANCE = "guidance"

PREVIEW_LIMIT_MAX = 50

# ------------------------------------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------------------------------------
ERROR_NO_ENTRY_FOUND = "No Zen Reminders entry found"
ERROR_TASK_NOT_FOUND_FMT = "Task '{}' not found"
ERROR_WEEKDAYS_REQUIRED = "Select at least one weekday for a weekly reminder"
ERROR_MONTHDAYS_REQUIRED = "Enter at least one day of the month for a monthly reminder"
ERROR_MONTHDAYS_INVALID_FMT = "Invalid day of month '{}': use numbers between 1 and 31"
ERROR_DUE_DATE_REQUIRED = "A due date is required for a recurring reminder"
ERROR_INVALID_DATETIME_FMT = "Invalid date/time '{}'"

# ------------------------------------------------------------------------------------------------
# Permission guidance
# ------------------------------------------------------------------------------------------------
PERMISSION_GUIDANCE = {
    NotificationCapability.UNSUPPORTED: (
        "No notification service is configured. You can still review reminders "
        "inside Home Assistant."
    ),
    NotificationCapability.DENIED: (
        "Reminder notifications are turned off. Call "
        "zen_reminders.set_notification_permission to enable them."
    ),
    NotificationCapability.NOT_ASKED: (
        "Enable notifications to receive reminder alerts on your devices."
    ),
}

# ------------------------------------------------------------------------------------------------
# Config Flow
# ------------------------------------------------------------------------------------------------
CFOF_STEP_USER = "user"
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_TIMEZONE = "invalid_timezone"
TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE = "invalid_notify_service"
