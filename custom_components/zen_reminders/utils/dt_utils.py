# File: utils/dt_utils.py
"""Date and time utilities for Zen Reminders.

Timezone-aware helpers shared by the engines and the notification text.
Nothing here needs a running Home Assistant instance.

UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo.

Functions:
    - set_default_timezone / get_default_timezone: viewer's local zone
    - is_valid_timezone: Check an IANA zone name
    - resolve_timezone: IANA name -> ZoneInfo with fallback to the default zone
    - dt_now_utc: Get current datetime in UTC
    - as_utc / as_local: Timezone conversion
    - dt_parse: Normalize datetime inputs to aware datetimes
    - dt_to_utc: dt_parse followed by as_utc
    - dt_to_iso: Serialize an aware datetime for storage
    - dt_format_short: Format datetime for notifications and previews
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Plain logging; this module stays free of homeassistant imports
_LOGGER = logging.getLogger(__name__)

# Default timezone - overridden during integration setup
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Display constant
DISPLAY_UNKNOWN = "Unknown"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default (viewer's local) timezone for all dt_utils functions.

    Call this during integration setup with the configured zone.

    Args:
        tz: Zone used for naive values and display
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


def is_valid_timezone(tz_name: str | None) -> bool:
    """Return True when `tz_name` is a known IANA zone name."""
    if not tz_name or not isinstance(tz_name, str):
        return False
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def resolve_timezone(tz_name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to the default zone.

    Unknown or empty names never raise; the viewer's local zone is used
    instead so that a reminder keeps firing.

    Args:
        tz_name: IANA zone name such as "Europe/Berlin", or None

    Returns:
        The matching ZoneInfo, or DEFAULT_TIME_ZONE.
    """
    if not tz_name or not isinstance(tz_name, str):
        return DEFAULT_TIME_ZONE

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning(
            "Unknown timezone '%s', falling back to %s", tz_name, DEFAULT_TIME_ZONE
        )
        return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Return `dt_obj` expressed in UTC.

    Naive datetimes are assumed to be in the default timezone.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Return `dt_obj` expressed in `tz` or the default zone.

    Args:
        dt_obj: Datetime object (naive values are treated as UTC)
        tz: Target zone; DEFAULT_TIME_ZONE when omitted

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: ZoneInfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware datetime.

    Accepts ISO 8601 strings (a trailing "Z" is understood), dates (midnight
    local), and datetimes. Naive values get `default_tzinfo` (or the default
    zone).

    Returns:
        Aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15T09:00:00Z")
        datetime.datetime(2025, 4, 15, 9, 0, tzinfo=datetime.timezone.utc)
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        text = dt_input.strip()
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            _LOGGER.debug("Unparseable datetime input: %s", dt_input)
            return None
    elif isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result


def dt_to_utc(dt_input: str | datetime | None) -> datetime | None:
    """Parse a datetime input, apply timezone if naive, and convert to UTC.

    Example:
        "2025-04-07T14:30:00-05:00" → datetime.datetime(2025, 4, 7, 19, 30, tzinfo=UTC)
    """
    result = dt_parse(dt_input)
    if result is None:
        return None
    return as_utc(result)


def dt_to_iso(dt_obj: datetime | None) -> str | None:
    """Serialize a datetime as a UTC ISO 8601 string for storage."""
    if dt_obj is None:
        return None
    return as_utc(dt_obj).isoformat()


# ==============================================================================
# Date/Time Formatting
# ==============================================================================


def dt_format_short(
    dt_obj: datetime | None,
    tz: ZoneInfo | None = None,
    include_time: bool = True,
) -> str:
    """Render a datetime the way reminders and previews show it.

    Converts to the given (or default) timezone and formats as:
    - "Wed, Jan 16 2026, 3:00 PM CET" (with time)
    - "Wed, Jan 16 2026" (without time)

    Returns:
        The rendered text; DISPLAY_UNKNOWN for None.
    """
    if dt_obj is None:
        return DISPLAY_UNKNOWN

    local_dt = as_local(dt_obj, tz)

    if include_time:
        hour = local_dt.strftime("%I").lstrip("0") or "12"
        return (
            f"{local_dt.strftime('%a, %b')} {local_dt.day} {local_dt.year}, "
            f"{hour}:{local_dt.strftime('%M %p %Z')}"
        ).rstrip()

    return f"{local_dt.strftime('%a, %b')} {local_dt.day} {local_dt.year}"
