"""Shared plumbing for the Zen Reminders managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .. import const
from ..helpers.entity_helpers import (
    async_connect_entry_signal,
    async_send_entry_signal,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import ZenRemindersCoordinator


class BaseManager(ABC):
    """Common base for managers owned by one config entry.

    Signals sent with emit() and received with listen() are namespaced by
    entry_id, and listeners are dropped automatically when the entry unloads.

    Managers never write task records themselves; reminder edits go through
    the coordinator, which persists and notifies listeners.
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: ZenRemindersCoordinator
    ) -> None:
        """Bind the manager to its coordinator and config entry."""
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Broadcast a signal to the other managers of this entry.

        Args:
            suffix: One of the const.SIGNAL_SUFFIX_* values
            **payload: Keyword data handed to listeners as a single dict

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_REMINDER_DISPATCHED,
                task_id=task_id,
                occurrence="2026-03-02T08:45:00+00:00",
            )
        """
        async_send_entry_signal(self.hass, self.entry_id, suffix, payload)

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Register a handler for a signal of this entry until unload.

        The handler may be a coroutine function or a @callback.
        """
        async_connect_entry_signal(
            self.hass, self.coordinator.config_entry, suffix, callback
        )
        const.LOGGER.debug(
            "%s subscribed to '%s' on entry %s",
            type(self).__name__,
            suffix,
            self.entry_id,
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Hook up listeners and build initial state.

        Runs once per entry, after the coordinator's first refresh.
        """
