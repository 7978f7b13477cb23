# File: services.py
"""Defines custom services for the Zen Reminders integration.

These services are the reminder form contract: create/edit a reminder,
snooze, reschedule, complete, clear, remove, and a live preview of the
upcoming occurrences for an unsaved schedule.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.util import dt as dt_util

from . import const
from .engines.describer import (
    describe_recurrence,
    format_reminder_date,
    permission_guidance,
)
from .engines.recurrence_rule import normalize_recurrence, to_rrule_string
from .engines.schedule_engine import (
    ReminderSchedule,
    compute_anchor,
    upcoming_occurrences,
)
from .helpers.entity_helpers import get_coordinator
from .type_defs import PreviewResult, RecurrenceInput
from .utils.dt_utils import dt_parse, dt_to_iso, dt_to_utc

# --- Service Schemas ---
_OPTIONAL_DATETIME = vol.Any(cv.string, None)

_SCHEDULE_FIELDS = {
    vol.Optional(const.FIELD_DUE_DATE): _OPTIONAL_DATETIME,
    vol.Optional(const.FIELD_LEAD_MINUTES): vol.Any(
        None, vol.All(vol.Coerce(int), vol.Range(min=0))
    ),
    vol.Optional(const.FIELD_FREQUENCY, default=const.FREQUENCY_ONCE): vol.In(
        const.FREQUENCY_OPTIONS
    ),
    vol.Optional(const.FIELD_INTERVAL, default=const.DEFAULT_INTERVAL): vol.All(
        vol.Coerce(int), vol.Range(min=1)
    ),
    vol.Optional(const.FIELD_WEEKDAYS, default=[]): vol.All(
        cv.ensure_list,
        [
            vol.All(
                vol.Coerce(int),
                vol.Range(min=const.WEEKDAY_MIN, max=const.WEEKDAY_MAX),
            )
        ],
    ),
    vol.Optional(const.FIELD_MONTHDAYS): vol.Any(cv.string, [vol.Any(int, cv.string)]),
    vol.Optional(const.FIELD_END_AT): _OPTIONAL_DATETIME,
    vol.Optional(const.FIELD_SNOOZED_UNTIL): _OPTIONAL_DATETIME,
    vol.Optional(const.FIELD_TIMEZONE): vol.Any(cv.string, None),
}

SET_TASK_REMINDER_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_TASK_ID): cv.string,
        vol.Optional(const.FIELD_TITLE): cv.string,
        **_SCHEDULE_FIELDS,
    }
)

PREVIEW_REMINDER_SCHEMA = vol.Schema(
    {
        **_SCHEDULE_FIELDS,
        vol.Optional(const.FIELD_LIMIT, default=const.DEFAULT_UPCOMING_LIMIT): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=const.PREVIEW_LIMIT_MAX)
        ),
    }
)

SNOOZE_TASK_REMINDER_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TASK_ID): cv.string,
        vol.Required(const.FIELD_SNOOZED_UNTIL): _OPTIONAL_DATETIME,
    }
)

RESCHEDULE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TASK_ID): cv.string,
        vol.Required(const.FIELD_DUE_DATE): _OPTIONAL_DATETIME,
        vol.Optional(const.FIELD_LEAD_MINUTES): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    }
)

TASK_ID_SCHEMA = vol.Schema({vol.Required(const.FIELD_TASK_ID): cv.string})

COMPLETE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TASK_ID): cv.string,
        vol.Optional(const.FIELD_COMPLETED, default=True): cv.boolean,
    }
)

SET_NOTIFICATION_PERMISSION_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PERMISSION): vol.In(
            [capability.value for capability in const.NotificationCapability]
        ),
    }
)


# --- Form validation ---


def parse_datetime_field(value: str | datetime | None) -> datetime | None:
    """Parse an optional date/time form field, raising on garbage."""
    if value is None or value == "":
        return None
    parsed = dt_parse(value)
    if parsed is None:
        raise HomeAssistantError(const.ERROR_INVALID_DATETIME_FMT.format(value))
    return dt_to_utc(parsed)


def parse_monthdays(value: str | list[Any] | None) -> list[int]:
    """Parse the comma-separated day-of-month list of the form.

    "1, 15" -> [1, 15]. Anything that is not a whole number between 1 and 31
    is rejected here so the engine never has to guess.
    """
    if value is None:
        return []
    tokens = value.split(",") if isinstance(value, str) else value
    days: list[int] = []
    for token in tokens:
        text = str(token).strip()
        if not text:
            continue
        try:
            day = int(text)
        except ValueError as err:
            raise HomeAssistantError(
                const.ERROR_MONTHDAYS_INVALID_FMT.format(text)
            ) from err
        if not const.MONTHDAY_MIN <= day <= const.MONTHDAY_MAX:
            raise HomeAssistantError(const.ERROR_MONTHDAYS_INVALID_FMT.format(text))
        days.append(day)
    return days


def build_recurrence_input(data: dict[str, Any]) -> RecurrenceInput | None:
    """Turn validated service data into a stored recurrence mapping."""
    frequency = data.get(const.FIELD_FREQUENCY, const.FREQUENCY_ONCE)
    if frequency == const.FREQUENCY_ONCE:
        return None

    if not data.get(const.FIELD_DUE_DATE):
        raise HomeAssistantError(const.ERROR_DUE_DATE_REQUIRED)

    recurrence: dict[str, Any] = {
        const.RECURRENCE_FREQUENCY: frequency,
        const.RECURRENCE_INTERVAL: data.get(
            const.FIELD_INTERVAL, const.DEFAULT_INTERVAL
        ),
    }
    if frequency == const.FREQUENCY_WEEKLY:
        weekdays = data.get(const.FIELD_WEEKDAYS) or []
        if not weekdays:
            raise HomeAssistantError(const.ERROR_WEEKDAYS_REQUIRED)
        recurrence[const.RECURRENCE_WEEKDAYS] = weekdays
    elif frequency == const.FREQUENCY_MONTHLY:
        monthdays = parse_monthdays(data.get(const.FIELD_MONTHDAYS))
        if not monthdays:
            raise HomeAssistantError(const.ERROR_MONTHDAYS_REQUIRED)
        recurrence[const.RECURRENCE_MONTHDAYS] = monthdays

    end_at = parse_datetime_field(data.get(const.FIELD_END_AT))
    if end_at is not None:
        recurrence[const.RECURRENCE_END_AT] = dt_to_iso(end_at)
    return recurrence  # type: ignore[return-value]


def build_preview(data: dict[str, Any], as_of: datetime) -> PreviewResult:
    """Compute the live preview for an unsaved schedule."""
    due_at = parse_datetime_field(data.get(const.FIELD_DUE_DATE))
    timezone = data.get(const.FIELD_TIMEZONE) or None
    schedule = ReminderSchedule(
        due_at=due_at,
        lead_minutes=data.get(const.FIELD_LEAD_MINUTES),
        snoozed_until=parse_datetime_field(data.get(const.FIELD_SNOOZED_UNTIL)),
        timezone=timezone,
    )
    rule = normalize_recurrence(
        build_recurrence_input(data), anchor=compute_anchor(schedule)
    )
    schedule = replace(schedule, recurrence=rule)
    occurrences = upcoming_occurrences(
        schedule,
        limit=data.get(const.FIELD_LIMIT, const.DEFAULT_UPCOMING_LIMIT),
        as_of=as_of,
    )
    return {
        const.PREVIEW_DESCRIPTION: describe_recurrence(rule),
        const.PREVIEW_OCCURRENCES: [dt_to_iso(item) for item in occurrences],
        const.PREVIEW_FORMATTED: [
            format_reminder_date(item, timezone) for item in occurrences
        ],
        const.PREVIEW_RRULE: to_rrule_string(rule),
    }  # type: ignore[return-value]


def async_setup_services(hass: HomeAssistant):
    """Register Zen Reminders services."""

    async def handle_set_task_reminder(call: ServiceCall) -> ServiceResponse:
        """Handle creating or editing a task reminder."""
        coordinator = get_coordinator(hass)
        data = dict(call.data)

        task_id = await coordinator.async_set_task_reminder(
            data.get(const.FIELD_TASK_ID),
            title=data.get(const.FIELD_TITLE),
            due_date=parse_datetime_field(data.get(const.FIELD_DUE_DATE)),
            lead_minutes=data.get(const.FIELD_LEAD_MINUTES),
            recurrence=build_recurrence_input(data),
            snoozed_until=parse_datetime_field(data.get(const.FIELD_SNOOZED_UNTIL)),
            timezone=data.get(const.FIELD_TIMEZONE),
        )
        task = coordinator.tasks_data[task_id]
        const.LOGGER.info("INFO: Reminder saved for task '%s'", task_id)
        return {
            const.RESPONSE_TASK_ID: task_id,
            const.RESPONSE_NEXT_TRIGGER: task.get(
                const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT
            ),
        }

    async def handle_snooze_task_reminder(call: ServiceCall):
        """Handle snoozing the next occurrence of a task reminder."""
        coordinator = get_coordinator(hass)
        await coordinator.async_snooze_task_reminder(
            call.data[const.FIELD_TASK_ID],
            parse_datetime_field(call.data[const.FIELD_SNOOZED_UNTIL]),
        )

    async def handle_reschedule_task(call: ServiceCall):
        """Handle a due date moved from a calendar view."""
        coordinator = get_coordinator(hass)
        await coordinator.async_reschedule_task(
            call.data[const.FIELD_TASK_ID],
            parse_datetime_field(call.data[const.FIELD_DUE_DATE]),
            call.data.get(const.FIELD_LEAD_MINUTES),
        )

    async def handle_clear_task_reminder(call: ServiceCall):
        """Handle removing the reminder of a task."""
        coordinator = get_coordinator(hass)
        await coordinator.async_clear_task_reminder(call.data[const.FIELD_TASK_ID])

    async def handle_complete_task(call: ServiceCall):
        """Handle completing (or reopening) a task."""
        coordinator = get_coordinator(hass)
        await coordinator.async_set_task_completed(
            call.data[const.FIELD_TASK_ID], call.data[const.FIELD_COMPLETED]
        )

    async def handle_remove_task(call: ServiceCall):
        """Handle deleting a task."""
        coordinator = get_coordinator(hass)
        await coordinator.async_remove_task(call.data[const.FIELD_TASK_ID])

    async def handle_preview_reminder(call: ServiceCall) -> ServiceResponse:
        """Return the description and upcoming occurrences of a draft."""
        preview = build_preview(dict(call.data), dt_util.utcnow())
        const.LOGGER.debug(
            "DEBUG: Preview '%s' -> %s",
            preview[const.PREVIEW_DESCRIPTION],
            preview[const.PREVIEW_OCCURRENCES],
        )
        return dict(preview)

    async def handle_set_notification_permission(call: ServiceCall) -> ServiceResponse:
        """Handle a permission change reported by the platform."""
        coordinator = get_coordinator(hass)
        capability = const.NotificationCapability(call.data[const.FIELD_PERMISSION])
        await coordinator.async_set_notification_permission(capability)
        return {
            const.RESPONSE_PERMISSION: capability.value,
            const.RESPONSE_GUIDANCE: permission_guidance(capability),
        }

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_TASK_REMINDER,
        handle_set_task_reminder,
        schema=SET_TASK_REMINDER_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SNOOZE_TASK_REMINDER,
        handle_snooze_task_reminder,
        schema=SNOOZE_TASK_REMINDER_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESCHEDULE_TASK,
        handle_reschedule_task,
        schema=RESCHEDULE_TASK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CLEAR_TASK_REMINDER,
        handle_clear_task_reminder,
        schema=TASK_ID_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_TASK,
        handle_complete_task,
        schema=COMPLETE_TASK_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REMOVE_TASK,
        handle_remove_task,
        schema=TASK_ID_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_PREVIEW_REMINDER,
        handle_preview_reminder,
        schema=PREVIEW_REMINDER_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_NOTIFICATION_PERMISSION,
        handle_set_notification_permission,
        schema=SET_NOTIFICATION_PERMISSION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    const.LOGGER.info("INFO: Zen Reminders services have been registered successfully")


async def async_unload_services(hass: HomeAssistant):
    """Unregister Zen Reminders services when unloading the integration."""
    services = [
        const.SERVICE_SET_TASK_REMINDER,
        const.SERVICE_SNOOZE_TASK_REMINDER,
        const.SERVICE_RESCHEDULE_TASK,
        const.SERVICE_CLEAR_TASK_REMINDER,
        const.SERVICE_COMPLETE_TASK,
        const.SERVICE_REMOVE_TASK,
        const.SERVICE_PREVIEW_REMINDER,
        const.SERVICE_SET_NOTIFICATION_PERMISSION,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Zen Reminders services have been unregistered")
