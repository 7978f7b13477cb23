# File: store.py
"""Persistence for Zen Reminders.

Task schedules, the stored next-trigger memo, and the notification
permission are kept in a single Home Assistant storage file so they
survive restarts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class ZenRemindersStore:
    """In-memory copy of the storage file, keyed by task internal_id."""

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Layout written on a fresh install."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_NOTIFICATION_PERMISSION: (
                    const.NotificationCapability.NOT_ASKED.value
                ),
            },
            const.DATA_TASKS: {},
        }

    async def async_initialize(self) -> None:
        """Read the storage file, falling back to the default layout."""
        const.LOGGER.debug("DEBUG: Reading Zen Reminders storage")
        loaded = await self._store.async_load()

        if loaded is None:
            const.LOGGER.info("INFO: Storage is empty, starting with no tasks")
            self._data = self.get_default_structure()
            return

        loaded.setdefault(const.DATA_TASKS, {})
        loaded.setdefault(const.DATA_META, self.get_default_structure()[const.DATA_META])
        self._data = loaded
        const.LOGGER.debug(
            "DEBUG: Storage holds %s tasks", len(self._data[const.DATA_TASKS])
        )

    @property
    def data(self) -> dict[str, Any]:
        """Current cached data."""
        return self._data

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Swap in a new cached structure; call async_save() to persist it."""
        self._data = new_data

    async def async_save(self) -> None:
        """Write the cache to disk, logging instead of raising on failure."""
        try:
            await self._store.async_save(self._data)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Could not write %s, file system error: %s",
                self._store.path,
                err,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Could not write storage, non-serializable data: %s", err
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Could not write storage, invalid data format: %s", err
            )
        else:
            const.LOGGER.debug("DEBUG: Storage written")

    async def async_delete_storage(self) -> None:
        """Reset the cache and delete the file (entry removal)."""
        self._data = self.get_default_structure()
        try:
            await self._store.async_remove()
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Could not delete %s: %s", self._store.path, err
            )
        else:
            const.LOGGER.info("INFO: Deleted storage file %s", self._store.path)
