"""Tests for Zen Reminders config flow."""

from unittest.mock import patch

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.zen_reminders.config_flow import validate_user_input
from custom_components.zen_reminders.const import (
    CONF_DEFAULT_TIMEZONE,
    CONF_NOTIFY_SERVICE,
    DOMAIN,
    ZEN_REMINDERS_TITLE,
)


async def test_form_shown_with_ha_timezone(hass: HomeAssistant) -> None:
    """Test the user step shows a form defaulting to the HA timezone."""
    await hass.config.async_update(time_zone="Europe/Berlin")

    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.FORM
    assert result.get("step_id") == "user"
    assert result.get("errors") == {}

    schema = result["data_schema"]
    defaults = {
        str(key): key.default() for key in schema.schema if callable(key.default)
    }
    assert defaults[CONF_DEFAULT_TIMEZONE] == "Europe/Berlin"


async def test_form_user_flow_success(hass: HomeAssistant) -> None:
    """Test a valid submission creates the entry."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(
        "custom_components.zen_reminders.async_setup_entry",
        return_value=True,
    ) as mock_setup_entry:
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"),
            user_input={
                CONF_NOTIFY_SERVICE: " notify.mobile_app_phone ",
                CONF_DEFAULT_TIMEZONE: "Europe/Berlin",
            },
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result.get("title") == ZEN_REMINDERS_TITLE
    assert result.get("data") == {
        CONF_NOTIFY_SERVICE: "notify.mobile_app_phone",
        CONF_DEFAULT_TIMEZONE: "Europe/Berlin",
    }
    assert len(mock_setup_entry.mock_calls) == 1


async def test_form_without_notify_service(hass: HomeAssistant) -> None:
    """Test the notify service is optional."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(
        "custom_components.zen_reminders.async_setup_entry",
        return_value=True,
    ):
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"),
            user_input={CONF_DEFAULT_TIMEZONE: "UTC"},
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result["data"][CONF_NOTIFY_SERVICE] == ""


async def test_form_invalid_timezone(hass: HomeAssistant) -> None:
    """Test an unknown timezone re-shows the form with an error."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        result.get("flow_id"),
        user_input={
            CONF_NOTIFY_SERVICE: "notify.mobile_app_phone",
            CONF_DEFAULT_TIMEZONE: "Mars/Olympus_Mons",
        },
    )

    assert result.get("type") == FlowResultType.FORM
    assert result.get("errors") == {CONF_DEFAULT_TIMEZONE: "invalid_timezone"}


async def test_single_instance(hass: HomeAssistant) -> None:
    """Test a second entry is refused."""
    MockConfigEntry(
        domain=DOMAIN,
        title=ZEN_REMINDERS_TITLE,
        data={CONF_NOTIFY_SERVICE: "", CONF_DEFAULT_TIMEZONE: "UTC"},
    ).add_to_hass(hass)

    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.ABORT
    assert result.get("reason") == "single_instance_allowed"


def test_validate_notify_service_names() -> None:
    """Test malformed notify service names are rejected."""
    valid_tz = {CONF_DEFAULT_TIMEZONE: "UTC"}
    assert validate_user_input({**valid_tz, CONF_NOTIFY_SERVICE: "mobile_app"}) == {}
    assert validate_user_input({**valid_tz, CONF_NOTIFY_SERVICE: ""}) == {}
    for bad in ("notify.", ".mobile_app", "notify.mobile app"):
        assert validate_user_input({**valid_tz, CONF_NOTIFY_SERVICE: bad}) == {
            CONF_NOTIFY_SERVICE: "invalid_notify_service"
        }
