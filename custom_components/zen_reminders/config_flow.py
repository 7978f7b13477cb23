# File: config_flow.py
"""Config flow for the Zen Reminders integration.

One step: pick the notify service that receives reminder alerts and the
default timezone used for schedules that do not name one.
"""

from typing import Any, Optional

import voluptuous as vol
from homeassistant import config_entries

from . import const
from .utils.dt_utils import is_valid_timezone


def build_user_schema(
    default_timezone: str, defaults: Optional[dict[str, Any]] = None
) -> vol.Schema:
    """Build the user step schema with the given defaults."""
    defaults = defaults or {}
    return vol.Schema(
        {
            vol.Optional(
                const.CONF_NOTIFY_SERVICE,
                default=defaults.get(const.CONF_NOTIFY_SERVICE, ""),
            ): str,
            vol.Required(
                const.CONF_DEFAULT_TIMEZONE,
                default=defaults.get(const.CONF_DEFAULT_TIMEZONE, default_timezone),
            ): str,
        }
    )


def validate_user_input(user_input: dict[str, Any]) -> dict[str, str]:
    """Return a field -> error key mapping for the user step."""
    errors: dict[str, str] = {}

    if not is_valid_timezone(user_input.get(const.CONF_DEFAULT_TIMEZONE)):
        errors[const.CONF_DEFAULT_TIMEZONE] = const.TRANS_KEY_ERROR_INVALID_TIMEZONE

    notify_service = user_input.get(const.CONF_NOTIFY_SERVICE, "").strip()
    if notify_service and (
        " " in notify_service
        or notify_service.startswith(const.DISPLAY_DOT)
        or notify_service.endswith(const.DISPLAY_DOT)
    ):
        errors[const.CONF_NOTIFY_SERVICE] = const.TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE

    return errors


class ZenRemindersConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Zen Reminders."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Handle the only setup step."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = validate_user_input(user_input)
            if not errors:
                const.LOGGER.debug(
                    "DEBUG: Creating Zen Reminders entry with %s", user_input
                )
                return self.async_create_entry(
                    title=const.ZEN_REMINDERS_TITLE,
                    data={
                        const.CONF_NOTIFY_SERVICE: user_input.get(
                            const.CONF_NOTIFY_SERVICE, ""
                        ).strip(),
                        const.CONF_DEFAULT_TIMEZONE: user_input[
                            const.CONF_DEFAULT_TIMEZONE
                        ],
                    },
                )

        return self.async_show_form(
            step_id=const.CFOF_STEP_USER,
            data_schema=build_user_schema(self.hass.config.time_zone, user_input),
            errors=errors,
        )
