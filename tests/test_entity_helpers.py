"""Tests for entry-scoped signal helpers shared by coordinator and managers."""

from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant, callback
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.zen_reminders import const
from custom_components.zen_reminders.helpers.entity_helpers import (
    async_connect_entry_signal,
    async_send_entry_signal,
    get_event_signal,
)


def test_event_signal_scoped_by_entry() -> None:
    """Signal names differ per config entry."""
    assert (
        get_event_signal("abc123", const.SIGNAL_SUFFIX_PERMISSION_CHANGED)
        == "zen_reminders_abc123_permission_changed"
    )
    assert get_event_signal("a", "x") != get_event_signal("b", "x")


async def test_signal_reaches_same_entry_only(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """A payload sent on one entry is received as a dict by its listeners."""
    mock_config_entry.add_to_hass(hass)
    received: list[dict[str, Any]] = []

    @callback
    def _handler(payload: dict[str, Any]) -> None:
        received.append(payload)

    async_connect_entry_signal(
        hass, mock_config_entry, const.SIGNAL_SUFFIX_TASK_COMPLETED, _handler
    )

    async_send_entry_signal(
        hass,
        "other_entry",
        const.SIGNAL_SUFFIX_TASK_COMPLETED,
        {"task_id": "ignored"},
    )
    async_send_entry_signal(
        hass,
        mock_config_entry.entry_id,
        const.SIGNAL_SUFFIX_TASK_COMPLETED,
        {"task_id": "abc", "title": "Water the plants"},
    )
    await hass.async_block_till_done()

    assert received == [{"task_id": "abc", "title": "Water the plants"}]


async def test_listener_removed_on_unload(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> None:
    """Handlers are disconnected by the entry's unload callbacks."""
    mock_config_entry.add_to_hass(hass)
    received: list[dict[str, Any]] = []

    @callback
    def _handler(payload: dict[str, Any]) -> None:
        received.append(payload)

    with patch.object(mock_config_entry, "async_on_unload") as mock_on_unload:
        async_connect_entry_signal(
            hass, mock_config_entry, const.SIGNAL_SUFFIX_PERMISSION_CHANGED, _handler
        )
    mock_on_unload.assert_called_once()
    remove = mock_on_unload.call_args.args[0]
    remove()

    async_send_entry_signal(
        hass,
        mock_config_entry.entry_id,
        const.SIGNAL_SUFFIX_PERMISSION_CHANGED,
        {"capability": "granted"},
    )
    await hass.async_block_till_done()

    assert received == []
