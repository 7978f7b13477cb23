# File: __init__.py
"""Zen Reminders: push reminders for one-time and recurring tasks.

Setting up an entry loads the task store, builds the coordinator, and wires
the dispatch manager to the notification manager, which acts as its sink.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import ZenRemindersCoordinator
from .managers import DispatchManager, NotificationManager
from .services import async_setup_services, async_unload_services
from .store import ZenRemindersStore
from .utils.dt_utils import resolve_timezone, set_default_timezone


def _configure_default_timezone(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Use the configured zone (else Home Assistant's) as the viewer's zone."""
    set_default_timezone(dt_util.get_default_time_zone())
    configured = entry.data.get(const.CONF_DEFAULT_TIMEZONE) or hass.config.time_zone
    set_default_timezone(resolve_timezone(configured))


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Load storage, start the managers and register services."""
    const.LOGGER.info("INFO: Starting setup for Zen Reminders entry: %s", entry.entry_id)

    # Must be done before anything computes an occurrence
    _configure_default_timezone(hass, entry)

    store = ZenRemindersStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    coordinator = ZenRemindersCoordinator(hass, entry, store)

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Initial task load failed: %s", e)
        raise ConfigEntryNotReady from e

    notification_manager = NotificationManager(hass, coordinator)
    dispatch_manager = DispatchManager(
        hass, coordinator, sink=notification_manager.async_send_reminder
    )

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
        const.NOTIFICATION_MANAGER: notification_manager,
        const.DISPATCH_MANAGER: dispatch_manager,
    }

    await notification_manager.async_setup()
    await dispatch_manager.async_setup()

    async_setup_services(hass)

    const.LOGGER.info(
        "INFO: Zen Reminders setup complete for entry: %s", entry.entry_id
    )
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Zen Reminders entry: %s", entry.entry_id)

    entry_data = hass.data.get(const.DOMAIN, {}).pop(entry.entry_id, None)
    if entry_data is not None:
        dispatch_manager: DispatchManager = entry_data[const.DISPATCH_MANAGER]
        dispatch_manager.async_teardown()

    if not hass.data.get(const.DOMAIN):
        await async_unload_services(hass)

    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the stored tasks once the entry is removed."""
    const.LOGGER.info("INFO: Removing Zen Reminders entry: %s", entry.entry_id)

    # The entry is already unloaded here, so use a fresh store handle
    store = ZenRemindersStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()

    const.LOGGER.info("INFO: Zen Reminders entry data cleared: %s", entry.entry_id)
