"""Test helpers for Zen Reminders integration tests.

    from tests.helpers import (
        create_mock_task_data,   # stored task record builder
        FakeCoordinator,         # minimal task source for the dispatch manager
        ReminderCapture,         # notification sink that records deliveries
    )
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any
import uuid

from custom_components.zen_reminders import const


def create_mock_task_data(
    title: str = "Water the plants",
    due_date: datetime | str | None = None,
    lead_minutes: int | None = None,
    recurrence: dict[str, Any] | None = None,
    snoozed_until: datetime | str | None = None,
    timezone: str | None = None,
    completed: bool = False,
) -> dict[str, Any]:
    """Create a stored task record for testing."""

    def _iso(value: datetime | str | None) -> str | None:
        return value.isoformat() if isinstance(value, datetime) else value

    return {
        const.DATA_TASK_ID: str(uuid.uuid4()),
        const.DATA_TASK_TITLE: title,
        const.DATA_TASK_COMPLETED: completed,
        const.DATA_TASK_DUE_DATE: _iso(due_date),
        const.DATA_TASK_REMINDER_MINUTES_BEFORE: lead_minutes,
        const.DATA_TASK_REMINDER_RECURRENCE: recurrence,
        const.DATA_TASK_REMINDER_SNOOZED_UNTIL: _iso(snoozed_until),
        const.DATA_TASK_REMINDER_TIMEZONE: timezone,
    }


class FakeCoordinator:
    """Stands in for ZenRemindersCoordinator in dispatch manager tests.

    Exposes only what the dispatch manager reads: the config entry, the live
    task collection, the permission state, and update listeners.
    """

    def __init__(
        self,
        config_entry: Any,
        tasks: dict[str, dict[str, Any]] | None = None,
        capability: const.NotificationCapability = (
            const.NotificationCapability.GRANTED
        ),
    ) -> None:
        """Initialize with an optional task collection."""
        self.config_entry = config_entry
        self.tasks_data: dict[str, dict[str, Any]] = tasks or {}
        self.notification_capability = capability
        self._listeners: list[Callable[[], None]] = []

    def add_task(self, task: dict[str, Any]) -> str:
        """Add a task record and return its id."""
        task_id = task[const.DATA_TASK_ID]
        self.tasks_data[task_id] = task
        return task_id

    def async_add_listener(
        self, update_callback: Callable[[], None], context: Any = None
    ) -> Callable[[], None]:
        """Register an update listener, like DataUpdateCoordinator does."""
        self._listeners.append(update_callback)

        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def async_update_listeners(self) -> None:
        """Notify listeners that the task collection changed."""
        for update_callback in list(self._listeners):
            update_callback()


class ReminderCapture:
    """Notification sink that records deliveries in order."""

    def __init__(
        self,
        fail_for: set[str] | None = None,
        undelivered: set[str] | None = None,
    ) -> None:
        """Initialize capture storage.

        Tasks in `fail_for` raise on delivery; tasks in `undelivered` are
        reported as not sent, like a missing notify service.
        """
        self.deliveries: list[tuple[str, datetime]] = []
        self.fail_for = fail_for or set()
        self.undelivered = undelivered or set()

    async def sink(
        self, task_id: str, task: dict[str, Any], occurrence: datetime
    ) -> bool:
        """Record (or fail) one reminder delivery."""
        if task_id in self.fail_for:
            raise RuntimeError(f"Simulated delivery failure for {task_id}")
        if task_id in self.undelivered:
            return False
        self.deliveries.append((task_id, occurrence))
        return True

    @property
    def task_ids(self) -> list[str]:
        """Return delivered task ids in delivery order."""
        return [task_id for task_id, _ in self.deliveries]
