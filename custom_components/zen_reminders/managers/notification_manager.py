# File: notification_manager.py
"""Notification Manager for Zen Reminders integration.

Everything that leaves Home Assistant as a push message lives here:
- Reminder alerts for the dispatch manager (the notification sink)
- Task-completed alerts, sent in response to domain events
- Notification tags so a newer reminder for a task replaces the older one

Sending goes through Home Assistant notify services. A missing service is
skipped with a warning; any other failure propagates to the caller of
`async_send_reminder` so the dispatch manager can log it per task.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback

from .. import const
from ..engines.describer import format_reminder_date
from ..utils.dt_utils import dt_to_utc
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ZenRemindersCoordinator
    from ..type_defs import TaskData


# =============================================================================
# Service-call helpers (patched directly in tests)
# =============================================================================


def split_notify_service(notify_service: str) -> tuple[str, str]:
    """Split "notify.mobile_app_x" (or just "mobile_app_x") into domain/service."""
    if const.DISPLAY_DOT not in notify_service:
        return const.NOTIFY_DOMAIN, notify_service
    domain, service = notify_service.split(const.DISPLAY_DOT, 1)
    return domain, service


async def async_send_notification(
    hass: HomeAssistant,
    service: str,
    title: str,
    message: str,
    extra_data: dict[str, Any] | None = None,
) -> None:
    """Call a notify service with a title, a message and optional data.

    Kept outside the manager so callers and tests can patch it alone.

    Args:
        hass: Home Assistant instance
        service: Notification service as "notify.service_name" or "service_name"
        title: Notification title
        message: Notification message
        extra_data: Optional extra data (e.g., tag)
    """
    domain, svc = split_notify_service(service)

    payload: dict[str, Any] = {
        const.NOTIFY_TITLE: title,
        const.NOTIFY_MESSAGE: message,
    }
    if extra_data:
        payload[const.NOTIFY_DATA] = dict(extra_data)

    const.LOGGER.debug(
        "Calling %s.%s (title=%r, message=%r)",
        domain,
        svc,
        title,
        message,
    )

    await hass.services.async_call(domain, svc, payload, blocking=True)


class NotificationManager(BaseManager):
    """Manager for reminder and task-completed notifications.

    Uses coordinator for:
    - tasks_data lookups
    - notify_service and notification_capability
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: ZenRemindersCoordinator
    ) -> None:
        """Initialize notification manager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Subscribe to task events that produce notifications."""
        self.listen(const.SIGNAL_SUFFIX_TASK_COMPLETED, self._handle_task_completed)
        const.LOGGER.debug(
            "NotificationManager initialized for entry %s", self.entry_id
        )

    # =========================================================================
    # Notification Tag Helper
    # =========================================================================

    @staticmethod
    def build_notification_tag(task_id: str) -> str:
        """Build the tag that lets a newer reminder replace an older one."""
        return f"{const.NOTIFICATION_TAG_PREFIX}{task_id}"

    @staticmethod
    def build_reminder_message(task: TaskData) -> str:
        """Build the body text of a reminder alert."""
        title = task.get(const.DATA_TASK_TITLE) or ""
        due_at = dt_to_utc(task.get(const.DATA_TASK_DUE_DATE))
        if due_at is None:
            return const.NOTIFY_MESSAGE_REMINDER_NO_DUE_FMT.format(title=title)
        return const.NOTIFY_MESSAGE_REMINDER_FMT.format(
            title=title,
            due=format_reminder_date(
                due_at, task.get(const.DATA_TASK_REMINDER_TIMEZONE)
            ),
        )

    # =========================================================================
    # Sending
    # =========================================================================

    def _resolve_service(self) -> str | None:
        """Return the notify service if it is configured and registered."""
        notify_service = self.coordinator.notify_service
        if not notify_service:
            const.LOGGER.debug("DEBUG: No notify service configured")
            return None

        domain, service = split_notify_service(notify_service)
        if not self.hass.services.has_service(domain, service):
            const.LOGGER.warning(
                "Notify service '%s.%s' is not available, reminder not sent. "
                "Configure the '%s' integration to receive reminders",
                domain,
                service,
                domain,
            )
            return None
        return notify_service

    async def async_send_reminder(
        self, task_id: str, task: TaskData, occurrence: datetime
    ) -> bool:
        """Deliver one reminder alert (notification sink of the dispatcher).

        Returns:
            False when no notify service is available, so the occurrence is
            not reported as dispatched.

        Raises:
            Whatever the notify service raises; the dispatcher isolates it.
        """
        notify_service = self._resolve_service()
        if notify_service is None:
            return False

        const.LOGGER.debug(
            "Sending reminder for task %s (occurrence %s)", task_id, occurrence
        )
        await async_send_notification(
            self.hass,
            notify_service,
            const.NOTIFY_TITLE_REMINDER,
            self.build_reminder_message(task),
            extra_data={const.NOTIFY_TAG: self.build_notification_tag(task_id)},
        )
        return True

    async def _async_notify_safely(
        self, title: str, message: str, extra_data: dict[str, Any] | None = None
    ) -> None:
        """Send a fire-and-forget notification, logging any failure."""
        notify_service = self._resolve_service()
        if notify_service is None:
            return
        try:
            await async_send_notification(
                self.hass, notify_service, title, message, extra_data
            )
        except Exception as err:  # pylint: disable=broad-exception-caught
            # Background task: an escaping error would only surface as
            # "Task exception was never retrieved".
            const.LOGGER.error(
                "Unexpected error sending notification via '%s': %s",
                notify_service,
                err,
            )

    # =========================================================================
    # Event Handlers
    # =========================================================================

    @callback
    def _handle_task_completed(self, payload: dict[str, Any]) -> None:
        """Handle TASK_COMPLETED event - congratulate when permitted.

        Args:
            payload: Event data containing task_id, title
        """
        task_id = payload.get("task_id", "")
        if not task_id:
            return
        if (
            self.coordinator.notification_capability
            != const.NotificationCapability.GRANTED
        ):
            const.LOGGER.debug(
                "DEBUG: Skipping completion notification for %s, permission %s",
                task_id,
                self.coordinator.notification_capability,
            )
            return

        self.hass.async_create_task(
            self._async_notify_safely(
                const.NOTIFY_TITLE_COMPLETED,
                const.NOTIFY_MESSAGE_COMPLETED_FMT.format(
                    title=payload.get("title", "")
                ),
                extra_data={const.NOTIFY_TAG: self.build_notification_tag(task_id)},
            )
        )
