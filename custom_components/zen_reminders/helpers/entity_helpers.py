# File: helpers/entity_helpers.py
"""Lookup and signal helpers shared by the coordinator, managers, and services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..coordinator import ZenRemindersCoordinator


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Format: 'zen_reminders_{entry_id}_{suffix}'

    Args:
        entry_id: ConfigEntry.entry_id from coordinator
        suffix: Signal suffix constant from const.py
            (e.g., SIGNAL_SUFFIX_REMINDER_DISPATCHED)

    Returns:
        Fully qualified signal name scoped to this integration instance

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_PERMISSION_CHANGED)
        'zen_reminders_abc123_permission_changed'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


@callback
def async_send_entry_signal(
    hass: HomeAssistant, entry_id: str, suffix: str, payload: dict[str, Any]
) -> None:
    """Send one entry-scoped signal; listeners get the payload as one dict."""
    const.LOGGER.debug(
        "Signal '%s' sent on entry %s (%s)", suffix, entry_id, ", ".join(payload)
    )
    async_dispatcher_send(hass, get_event_signal(entry_id, suffix), payload)


@callback
def async_connect_entry_signal(
    hass: HomeAssistant,
    entry: ConfigEntry,
    suffix: str,
    handler: Callable[..., Any],
) -> None:
    """Connect a handler to an entry-scoped signal until the entry unloads."""
    entry.async_on_unload(
        async_dispatcher_connect(
            hass, get_event_signal(entry.entry_id, suffix), handler
        )
    )


def get_first_entry_id(hass: HomeAssistant) -> str | None:
    """Return the entry_id of the first loaded Zen Reminders entry."""
    entries = hass.data.get(const.DOMAIN, {})
    return next(iter(entries), None)


def get_coordinator(hass: HomeAssistant) -> ZenRemindersCoordinator:
    """Return the coordinator of the loaded entry or raise for services."""
    entry_id = get_first_entry_id(hass)
    if not entry_id:
        const.LOGGER.warning("WARNING: %s", const.ERROR_NO_ENTRY_FOUND)
        raise HomeAssistantError(const.ERROR_NO_ENTRY_FOUND)
    return hass.data[const.DOMAIN][entry_id][const.COORDINATOR]
