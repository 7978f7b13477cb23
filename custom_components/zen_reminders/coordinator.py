# File: coordinator.py
"""Coordinator for the Zen Reminders integration.

Owns the task collection (the TaskStore seen by the dispatch manager),
applies reminder edits through the schedule engine, keeps the stored
next-trigger memo current, and holds the notification permission.
Tasks are keyed by internal_id.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Any
import uuid

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from . import const
from .engines.recurrence_rule import normalize_recurrence, rebase_rule
from .engines.schedule_engine import (
    ReminderSchedule,
    compute_anchor,
    normalize_lead_minutes,
    rebase_schedule,
    resolve_next_trigger,
)
from .helpers.entity_helpers import (
    async_connect_entry_signal,
    async_send_entry_signal,
)
from .utils.dt_utils import dt_to_iso, dt_to_utc

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .store import ZenRemindersStore
    from .type_defs import RecurrenceInput, TaskData


class ZenRemindersCoordinator(DataUpdateCoordinator):
    """Coordinator for Zen Reminders.

    Data changes are pushed (no polling): every mutation persists to the
    store and calls `async_set_updated_data`, which notifies the dispatch
    manager and any other listener.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: ZenRemindersStore,
    ) -> None:
        """Initialize the ZenRemindersCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.config_entry = config_entry
        self.store = store
        self._data: dict[str, Any] = {}

    # -------------------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------------------

    @property
    def tasks_data(self) -> dict[str, TaskData]:
        """Return the live task collection keyed by internal_id."""
        return self._data.setdefault(const.DATA_TASKS, {})

    @property
    def notification_capability(self) -> const.NotificationCapability:
        """Return the current notification permission state."""
        meta = self._data.get(const.DATA_META, {})
        raw = meta.get(
            const.DATA_META_NOTIFICATION_PERMISSION,
            const.NotificationCapability.NOT_ASKED,
        )
        try:
            return const.NotificationCapability(raw)
        except ValueError:
            const.LOGGER.warning(
                "WARNING: Unknown stored notification permission '%s'", raw
            )
            return const.NotificationCapability.NOT_ASKED

    @property
    def notify_service(self) -> str | None:
        """Return the configured notify service, if any."""
        return self.config_entry.data.get(const.CONF_NOTIFY_SERVICE) or None

    def get_task(self, task_id: str) -> TaskData:
        """Return a task record or raise for service callers."""
        task = self.tasks_data.get(task_id)
        if task is None:
            raise HomeAssistantError(const.ERROR_TASK_NOT_FOUND_FMT.format(task_id))
        return task

    # -------------------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self):
        """Return the in-memory data; storage is the source of truth."""
        return self._data

    async def async_config_entry_first_refresh(self) -> None:
        """Load from storage, then refresh listeners."""
        self._data = self.store.data or self.store.get_default_structure()
        self._data.setdefault(const.DATA_TASKS, {})
        for task_id, task in self.tasks_data.items():
            task.setdefault(const.DATA_TASK_ID, task_id)
            task.setdefault(const.DATA_TASK_COMPLETED, False)

        const.LOGGER.debug(
            "DEBUG: Coordinator loaded %s tasks, permission %s",
            len(self.tasks_data),
            self.notification_capability,
        )
        async_connect_entry_signal(
            self.hass,
            self.config_entry,
            const.SIGNAL_SUFFIX_REMINDER_DISPATCHED,
            self._on_reminder_dispatched,
        )
        await super().async_config_entry_first_refresh()

    # -------------------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------------------

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send an instance-scoped dispatcher signal."""
        async_send_entry_signal(
            self.hass, self.config_entry.entry_id, suffix, payload
        )

    @callback
    def _on_reminder_dispatched(self, payload: dict[str, Any]) -> None:
        """Record a delivered reminder and advance the stored memo."""
        task = self.tasks_data.get(payload.get("task_id", ""))
        if task is None:
            return

        task[const.DATA_TASK_REMINDER_LAST_TRIGGER_AT] = payload.get("occurrence")
        schedule = ReminderSchedule.from_task(task)
        fired_at = dt_to_utc(payload.get("occurrence")) or dt_util.utcnow()
        task[const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT] = dt_to_iso(
            resolve_next_trigger(schedule, as_of=fired_at, schedule_changed=True)
        )
        # Bookkeeping only: listeners are not notified, the dispatch manager
        # re-arms the task itself.
        self._persist()

    # -------------------------------------------------------------------------------------
    # Reminder Operations
    # -------------------------------------------------------------------------------------

    def _store_schedule(
        self,
        task: TaskData,
        schedule: ReminderSchedule,
        schedule_changed: bool,
    ) -> None:
        """Write a schedule into a task and refresh its next-trigger memo."""
        memo = resolve_next_trigger(
            schedule, as_of=dt_util.utcnow(), schedule_changed=schedule_changed
        )
        fields = schedule.to_task_fields()
        fields[const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT] = dt_to_iso(memo)
        task.update(fields)  # type: ignore[typeddict-item]

    async def async_set_task_reminder(
        self,
        task_id: str | None = None,
        *,
        title: str | None = None,
        due_date: datetime | str | None = None,
        lead_minutes: int | None = None,
        recurrence: RecurrenceInput | None = None,
        snoozed_until: datetime | str | None = None,
        timezone: str | None = None,
    ) -> str:
        """Create a task or replace the reminder fields of an existing one.

        All schedule fields are taken from the submitted form. A changed due
        date or lead time clears any previous snooze unless a new snooze is
        submitted along with it.

        Returns:
            The internal_id of the task.
        """
        if task_id is None:
            task_id = str(uuid.uuid4())
            task: TaskData = {
                const.DATA_TASK_ID: task_id,
                const.DATA_TASK_TITLE: title or "",
                const.DATA_TASK_COMPLETED: False,
            }  # type: ignore[typeddict-item]
            previous = ReminderSchedule()
            const.LOGGER.info("INFO: Creating task '%s' (%s)", title, task_id)
        else:
            task = self.get_task(task_id)
            previous = ReminderSchedule.from_task(task)
            if title is not None:
                task[const.DATA_TASK_TITLE] = title

        due_at = dt_to_utc(due_date)
        lead = normalize_lead_minutes(lead_minutes)
        snooze = dt_to_utc(snoozed_until)
        moved = (due_at, lead) != (previous.due_at, previous.lead_minutes)
        if moved and snooze is not None and snooze == previous.snoozed_until:
            const.LOGGER.debug(
                "DEBUG: Due date or lead time changed for %s, clearing snooze",
                task_id,
            )
            snooze = None

        anchor = compute_anchor(ReminderSchedule(due_at=due_at, lead_minutes=lead))
        schedule = ReminderSchedule(
            due_at=due_at,
            lead_minutes=lead,
            recurrence=rebase_rule(normalize_recurrence(recurrence), anchor),
            snoozed_until=snooze,
            timezone=timezone or None,
            last_computed_trigger=previous.last_computed_trigger,
        )

        changed = _schedule_signature(schedule) != _schedule_signature(previous)
        self._store_schedule(task, schedule, schedule_changed=changed)
        self.tasks_data[task_id] = task

        const.LOGGER.debug(
            "DEBUG: Reminder for task %s set, next trigger %s",
            task_id,
            task.get(const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT),
        )
        self._persist_and_update()
        return task_id

    async def async_snooze_task_reminder(
        self, task_id: str, snoozed_until: datetime | str | None
    ) -> None:
        """Override only the next occurrence of a task reminder."""
        task = self.get_task(task_id)
        schedule = replace(
            ReminderSchedule.from_task(task),
            snoozed_until=dt_to_utc(snoozed_until),
            last_computed_trigger=None,
        )
        self._store_schedule(task, schedule, schedule_changed=True)
        const.LOGGER.info(
            "INFO: Task %s reminder snoozed until %s",
            task_id,
            task.get(const.DATA_TASK_REMINDER_SNOOZED_UNTIL),
        )
        self._persist_and_update()

    async def async_reschedule_task(
        self,
        task_id: str,
        due_date: datetime | str | None,
        lead_minutes: int | None = None,
    ) -> None:
        """Move a task's due instant, rebasing its recurrence and clearing snooze."""
        task = self.get_task(task_id)
        schedule = rebase_schedule(
            ReminderSchedule.from_task(task),
            dt_to_utc(due_date),
            normalize_lead_minutes(lead_minutes),
        )
        self._store_schedule(task, schedule, schedule_changed=True)
        const.LOGGER.info(
            "INFO: Task %s rescheduled to %s",
            task_id,
            task.get(const.DATA_TASK_DUE_DATE),
        )
        self._persist_and_update()

    async def async_clear_task_reminder(self, task_id: str) -> None:
        """Remove lead time, recurrence, and snooze from a task."""
        task = self.get_task(task_id)
        task[const.DATA_TASK_REMINDER_MINUTES_BEFORE] = None
        task[const.DATA_TASK_REMINDER_RECURRENCE] = None
        task[const.DATA_TASK_REMINDER_SNOOZED_UNTIL] = None
        task[const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT] = None
        const.LOGGER.info("INFO: Reminder cleared for task %s", task_id)
        self._persist_and_update()

    async def async_set_task_completed(self, task_id: str, completed: bool) -> None:
        """Mark a task completed (or open again)."""
        task = self.get_task(task_id)
        was_completed = bool(task.get(const.DATA_TASK_COMPLETED))
        task[const.DATA_TASK_COMPLETED] = completed

        if completed:
            task[const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT] = None
        else:
            self._store_schedule(
                task, ReminderSchedule.from_task(task), schedule_changed=True
            )

        self._persist_and_update()
        if completed and not was_completed:
            self.emit(
                const.SIGNAL_SUFFIX_TASK_COMPLETED,
                task_id=task_id,
                title=task.get(const.DATA_TASK_TITLE, ""),
            )

    async def async_remove_task(self, task_id: str) -> None:
        """Delete a task and its reminder."""
        self.get_task(task_id)
        self.tasks_data.pop(task_id)
        const.LOGGER.info("INFO: Task %s removed", task_id)
        self._persist_and_update()

    async def async_set_notification_permission(
        self, capability: const.NotificationCapability | str
    ) -> None:
        """Change the permission state and tell the dispatch manager."""
        state = const.NotificationCapability(capability)
        if state == self.notification_capability:
            return
        meta = self._data.setdefault(const.DATA_META, {})
        meta[const.DATA_META_NOTIFICATION_PERMISSION] = state.value
        const.LOGGER.info("INFO: Notification permission changed to %s", state)
        self._persist()
        self.emit(const.SIGNAL_SUFFIX_PERMISSION_CHANGED, capability=state.value)

    # -------------------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------------------

    def _persist(self) -> None:
        """Save to persistent storage."""
        self.store.set_data(self._data)
        self.hass.async_create_task(self.store.async_save())

    def _persist_and_update(self) -> None:
        """Save and notify listeners of a user-visible change."""
        self._persist()
        self.async_set_updated_data(self._data)


def _schedule_signature(schedule: ReminderSchedule) -> tuple:
    """Return the schedule fields that affect the next-trigger memo."""
    return (
        schedule.due_at,
        schedule.lead_minutes,
        schedule.recurrence,
        schedule.snoozed_until,
        schedule.timezone,
    )
