"""Shared fixtures for Zen Reminders tests."""

from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import patch

import pytest
from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant, ServiceCall
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_mock_service,
)

from custom_components.zen_reminders.const import (
    CONF_DEFAULT_TIMEZONE,
    CONF_NOTIFY_SERVICE,
    DATA_META,
    DATA_META_NOTIFICATION_PERMISSION,
    DATA_META_SCHEMA_VERSION,
    DATA_TASKS,
    DOMAIN,
    SCHEMA_VERSION,
    ZEN_REMINDERS_TITLE,
    NotificationCapability,
)
from custom_components.zen_reminders.utils import dt_utils

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

TEST_NOTIFY_SERVICE = "notify.mobile_app_phone"
TEST_TIMEZONE = "Europe/Berlin"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None]:
    """Keep the module-level default zone from leaking between tests."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title=ZEN_REMINDERS_TITLE,
        data={
            CONF_NOTIFY_SERVICE: TEST_NOTIFY_SERVICE,
            CONF_DEFAULT_TIMEZONE: TEST_TIMEZONE,
        },
        entry_id="test_entry_id",
    )


@pytest.fixture
def mock_storage_data() -> dict[str, Any]:
    """Return mock storage data with notifications granted."""
    return {
        DATA_META: {
            DATA_META_SCHEMA_VERSION: SCHEMA_VERSION,
            DATA_META_NOTIFICATION_PERMISSION: NotificationCapability.GRANTED.value,
        },
        DATA_TASKS: {},
    }


@pytest.fixture
def notify_calls(hass: HomeAssistant) -> list[ServiceCall]:
    """Register the test notify service and capture its calls."""
    return async_mock_service(hass, "notify", "mobile_app_phone")


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_storage_data: dict[str, Any],  # pylint: disable=redefined-outer-name
    notify_calls: list[ServiceCall],  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[MockConfigEntry]:
    """Set up the Zen Reminders integration with mocked storage.

    The entry is unloaded afterwards so no reminder timer outlives the test.
    """
    mock_config_entry.add_to_hass(hass)

    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    yield mock_config_entry

    if mock_config_entry.state is ConfigEntryState.LOADED:
        assert await hass.config_entries.async_unload(mock_config_entry.entry_id)
        await hass.async_block_till_done()

