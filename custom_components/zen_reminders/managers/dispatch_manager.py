# File: dispatch_manager.py
"""Dispatch Manager for Zen Reminders integration.

Turns computed reminder occurrences into exactly-once alerts.

Every reconciliation (coordinator update or permission change):
1. cancels all outstanding timers,
2. computes each eligible task's next occurrence (an occurrence due right now
   counts, so overdue reminders fire immediately),
3. skips an occurrence already dispatched this session and arms the one
   after it instead,
4. arms a one-shot timer for the remaining delay,
5. forgets firing records of tasks that no longer exist.

All state lives on the manager instance and is only touched from the event
loop, so no locking is needed. `async_teardown` cancels every timer and no
alert fires afterwards.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.helpers.event import async_call_later
from homeassistant.util import dt as dt_util

from .. import const
from ..engines.schedule_engine import (
    ReminderSchedule,
    next_occurrence,
    should_schedule_reminder,
)
from ..utils.dt_utils import dt_to_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ZenRemindersCoordinator
    from ..type_defs import TaskData

# (task_id, task, occurrence) -> True when an alert went out; may raise
NotificationSink = Callable[[str, "TaskData", datetime], Awaitable[bool]]
Clock = Callable[[], datetime]


class DispatchManager(BaseManager):
    """Arms, cancels, and fires reminder timers for the live task collection."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ZenRemindersCoordinator,
        sink: NotificationSink,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the dispatch manager.

        Args:
            hass: Home Assistant instance
            coordinator: Source of tasks and notification permission
            sink: Coroutine function delivering one alert
            clock: Wall clock returning aware UTC datetimes (default: HA utcnow)
        """
        super().__init__(hass, coordinator)
        self._sink = sink
        self._clock: Clock = clock or dt_util.utcnow
        self._timers: dict[str, CALLBACK_TYPE] = {}
        # task_id -> signature of the last dispatched occurrence (never persisted)
        self._fired: dict[str, str] = {}
        self._states: dict[str, const.ReminderState] = {}
        self._torn_down = False

    async def async_setup(self) -> None:
        """Subscribe to task and permission changes, then arm timers."""
        self.listen(
            const.SIGNAL_SUFFIX_PERMISSION_CHANGED, self._handle_permission_changed
        )
        self.coordinator.config_entry.async_on_unload(
            self.coordinator.async_add_listener(self.async_reconcile)
        )
        self.coordinator.config_entry.async_on_unload(self.async_teardown)
        self.async_reconcile()

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_state(self, task_id: str) -> const.ReminderState:
        """Return the dispatch state of a task (Idle when unknown)."""
        return self._states.get(task_id, const.ReminderState.IDLE)

    @property
    def armed_task_ids(self) -> set[str]:
        """Return ids of tasks with an outstanding timer."""
        return set(self._timers)

    @property
    def is_torn_down(self) -> bool:
        """Return True once teardown has run."""
        return self._torn_down

    # =========================================================================
    # Reconciliation
    # =========================================================================

    @callback
    def _handle_permission_changed(self, payload: dict[str, Any]) -> None:
        const.LOGGER.debug(
            "DEBUG: Permission changed to %s, reconciling reminders",
            payload.get("capability"),
        )
        self.async_reconcile()

    @property
    def _permission_granted(self) -> bool:
        return (
            self.coordinator.notification_capability
            == const.NotificationCapability.GRANTED
        )

    @callback
    def async_reconcile(self) -> None:
        """Re-arm every task's timer from the latest task snapshot."""
        if self._torn_down:
            return

        self._cancel_all_timers()
        tasks = self.coordinator.tasks_data

        for task_id in [tid for tid in self._fired if tid not in tasks]:
            self._fired.pop(task_id)
        for task_id in [tid for tid in self._states if tid not in tasks]:
            self._states.pop(task_id)

        now = self._clock()
        granted = self._permission_granted
        for task_id, task in tasks.items():
            self._reconcile_task(task_id, task, now, granted)

        const.LOGGER.debug(
            "DEBUG: Reconciled %s tasks, %s timers armed",
            len(tasks),
            len(self._timers),
        )

    def _reconcile_task(
        self, task_id: str, task: TaskData, now: datetime, granted: bool
    ) -> None:
        """Arm (or leave idle) a single task."""
        if not granted or not should_schedule_reminder(task):
            self._states[task_id] = const.ReminderState.IDLE
            return

        schedule = ReminderSchedule.from_task(task)
        occurrence = next_occurrence(schedule, as_of=now, include_as_of=True)
        if occurrence is not None and dt_to_iso(occurrence) == self._fired.get(
            task_id
        ):
            occurrence = next_occurrence(schedule, as_of=occurrence)

        if occurrence is None:
            self._states[task_id] = (
                const.ReminderState.FIRED
                if task_id in self._fired
                else const.ReminderState.IDLE
            )
            return

        self._arm(task_id, occurrence, now)

    def _arm(self, task_id: str, occurrence: datetime, now: datetime) -> None:
        """Arm a one-shot timer for a task's occurrence."""
        self._cancel_timer(task_id)
        delay = max(0.0, (occurrence - now).total_seconds())
        self._timers[task_id] = async_call_later(
            self.hass, delay, partial(self._async_fire, task_id, occurrence)
        )
        self._states[task_id] = const.ReminderState.ARMED
        const.LOGGER.debug(
            "DEBUG: Armed reminder for task %s at %s (in %.1fs)",
            task_id,
            occurrence,
            delay,
        )

    # =========================================================================
    # Firing
    # =========================================================================

    async def _async_fire(
        self, task_id: str, occurrence: datetime, _now: datetime
    ) -> None:
        """Timer expiry: emit one alert, then re-arm this task."""
        self._timers.pop(task_id, None)
        if self._torn_down:
            return

        task = self.coordinator.tasks_data.get(task_id)
        if (
            task is None
            or not should_schedule_reminder(task)
            or not self._permission_granted
        ):
            self._states[task_id] = const.ReminderState.IDLE
            return

        signature = dt_to_iso(occurrence) or ""
        if self._fired.get(task_id) == signature:
            return
        # Recorded before awaiting the sink so a reconcile during delivery
        # cannot arm the same occurrence again.
        self._fired[task_id] = signature
        self._states[task_id] = const.ReminderState.FIRED

        const.LOGGER.info(
            "INFO: Dispatching reminder for task %s (occurrence %s)",
            task_id,
            signature,
        )
        try:
            delivered = await self._sink(task_id, task, occurrence)
        except Exception as err:  # pylint: disable=broad-exception-caught
            # A failing sink must not stop other tasks from being reminded.
            const.LOGGER.error(
                "ERROR: Failed to deliver reminder for task %s: %s", task_id, err
            )
            delivered = False

        if delivered:
            self.emit(
                const.SIGNAL_SUFFIX_REMINDER_DISPATCHED,
                task_id=task_id,
                occurrence=signature,
            )
        else:
            # The occurrence stays consumed; it is not retried.
            const.LOGGER.info(
                "INFO: Reminder for task %s at %s was not delivered",
                task_id,
                signature,
            )

        if self._torn_down:
            return
        current = self.coordinator.tasks_data.get(task_id)
        if current is not None:
            self._reconcile_task(
                task_id, current, self._clock(), self._permission_granted
            )

    # =========================================================================
    # Cancellation
    # =========================================================================

    def _cancel_timer(self, task_id: str) -> None:
        unsub = self._timers.pop(task_id, None)
        if unsub is not None:
            unsub()

    def _cancel_all_timers(self) -> None:
        for unsub in self._timers.values():
            unsub()
        self._timers.clear()

    @callback
    def async_teardown(self) -> None:
        """Cancel every timer; nothing fires after this."""
        self._torn_down = True
        self._cancel_all_timers()
        self._states.clear()
        const.LOGGER.debug("DEBUG: Dispatch manager torn down for %s", self.entry_id)
