"""Recurrence rule value types for Zen Reminders.

A recurrence rule is a tagged variant: exactly one of `DailyRule`,
`WeeklyRule`, or `MonthlyRule`. A one-time reminder has no rule at all
(`None`), so a weekly rule can never carry month days and vice versa.

Rules are frozen dataclasses with tuple-valued sets, which gives them value
semantics: they compare structurally, hash, and cannot be changed through a
list the caller still holds.

IMPORTANT: This module must NOT import from coordinator.py or any manager.
Only import from const.py, type_defs.py, utils, and standard libraries.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
import math
from typing import TYPE_CHECKING, Any, ClassVar

from .. import const
from ..utils.dt_utils import as_utc, dt_to_iso, dt_to_utc

if TYPE_CHECKING:
    from ..type_defs import RecurrenceInput

# RFC 5545 weekday codes indexed 0=Sunday ... 6=Saturday
RRULE_WEEKDAY_CODES = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]


# =============================================================================
# Rule variants
# =============================================================================


@dataclass(frozen=True)
class DailyRule:
    """Fire every `interval` days at the anchor's local time-of-day."""

    frequency: ClassVar[str] = const.FREQUENCY_DAILY

    interval: int = const.DEFAULT_INTERVAL
    anchor: datetime | None = None
    until: datetime | None = None


@dataclass(frozen=True)
class WeeklyRule:
    """Fire on each listed weekday (0=Sunday) of every `interval`-th week."""

    frequency: ClassVar[str] = const.FREQUENCY_WEEKLY

    weekdays: tuple[int, ...] = ()
    interval: int = const.DEFAULT_INTERVAL
    anchor: datetime | None = None
    until: datetime | None = None


@dataclass(frozen=True)
class MonthlyRule:
    """Fire on each listed day-of-month of every `interval`-th month.

    Months that lack a listed day (31 in April) contribute nothing.
    """

    frequency: ClassVar[str] = const.FREQUENCY_MONTHLY

    monthdays: tuple[int, ...] = ()
    interval: int = const.DEFAULT_INTERVAL
    anchor: datetime | None = None
    until: datetime | None = None


RecurrenceRule = DailyRule | WeeklyRule | MonthlyRule

RULE_TYPES: tuple[type, ...] = (DailyRule, WeeklyRule, MonthlyRule)


# =============================================================================
# Normalization
# =============================================================================


def coerce_int(value: Any) -> int | None:
    """Return value as an int when it is integral, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def normalize_interval(value: Any) -> int:
    """Floor an interval to a positive integer; invalid input becomes 1."""
    if isinstance(value, int) and not isinstance(value, bool):
        return max(1, value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return const.DEFAULT_INTERVAL
    if not math.isfinite(number):
        return const.DEFAULT_INTERVAL
    return max(1, math.floor(number))


def normalize_weekdays(values: Iterable[Any] | None) -> tuple[int, ...]:
    """Deduplicate and sort weekdays, dropping values outside 0-6."""
    if not values or isinstance(values, str | bytes):
        return ()
    days = {
        day
        for day in (coerce_int(value) for value in values)
        if day is not None and const.WEEKDAY_MIN <= day <= const.WEEKDAY_MAX
    }
    return tuple(sorted(days))


def normalize_monthdays(values: Iterable[Any] | None) -> tuple[int, ...]:
    """Deduplicate and sort days-of-month, clamping into 1-31."""
    if not values or isinstance(values, str | bytes):
        return ()
    days = {
        min(const.MONTHDAY_MAX, max(const.MONTHDAY_MIN, day))
        for day in (coerce_int(value) for value in values)
        if day is not None
    }
    return tuple(sorted(days))


def normalize_recurrence(
    recurrence: RecurrenceRule | Mapping[str, Any] | None,
    anchor: datetime | None = None,
) -> RecurrenceRule | None:
    """Normalize raw recurrence input into a rule, or None for one-time.

    Never raises. Unknown frequencies and `once` yield None. An empty
    weekday/monthday set is kept as-is and simply produces no occurrences.

    Args:
        recurrence: A stored/submitted mapping, an existing rule, or None.
        anchor: Anchor instant used when the input carries no `start_at`.

    Returns:
        A new immutable rule. Passing a rule returns an equal rule, so
        normalization is idempotent.
    """
    if recurrence is None:
        return None

    if isinstance(recurrence, RULE_TYPES):
        if anchor is not None and recurrence.anchor is None:
            return replace(recurrence, anchor=as_utc(anchor).replace(microsecond=0))
        return recurrence

    if not isinstance(recurrence, Mapping):
        const.LOGGER.debug("Ignoring recurrence input of type %s", type(recurrence))
        return None

    frequency = recurrence.get(const.RECURRENCE_FREQUENCY) or const.FREQUENCY_ONCE
    if frequency not in const.FREQUENCY_OPTIONS or frequency == const.FREQUENCY_ONCE:
        return None

    interval = normalize_interval(
        recurrence.get(const.RECURRENCE_INTERVAL, const.DEFAULT_INTERVAL)
    )

    start_at = dt_to_utc(recurrence.get(const.RECURRENCE_START_AT))
    if start_at is None and anchor is not None:
        start_at = as_utc(anchor)
    if start_at is not None:
        start_at = start_at.replace(microsecond=0)
    end_at = dt_to_utc(recurrence.get(const.RECURRENCE_END_AT))

    if frequency == const.FREQUENCY_DAILY:
        return DailyRule(interval=interval, anchor=start_at, until=end_at)

    if frequency == const.FREQUENCY_WEEKLY:
        return WeeklyRule(
            weekdays=normalize_weekdays(recurrence.get(const.RECURRENCE_WEEKDAYS)),
            interval=interval,
            anchor=start_at,
            until=end_at,
        )

    return MonthlyRule(
        monthdays=normalize_monthdays(recurrence.get(const.RECURRENCE_MONTHDAYS)),
        interval=interval,
        anchor=start_at,
        until=end_at,
    )


def rebase_rule(rule: RecurrenceRule | None, anchor: datetime | None):
    """Return the rule with its anchor moved to `anchor` (None stays None)."""
    if rule is None:
        return None
    if anchor is None:
        return replace(rule, anchor=None)
    return replace(rule, anchor=as_utc(anchor).replace(microsecond=0))


def frequency_of(rule: RecurrenceRule | None) -> str:
    """Return the frequency tag of a rule, `once` for None."""
    if rule is None:
        return const.FREQUENCY_ONCE
    return rule.frequency


# =============================================================================
# Serialization
# =============================================================================


def recurrence_to_dict(rule: RecurrenceRule | None) -> RecurrenceInput | None:
    """Convert a rule back into the stored JSON shape."""
    if rule is None:
        return None

    data: dict[str, Any] = {
        const.RECURRENCE_FREQUENCY: rule.frequency,
        const.RECURRENCE_INTERVAL: rule.interval,
    }
    if isinstance(rule, WeeklyRule):
        data[const.RECURRENCE_WEEKDAYS] = list(rule.weekdays)
    elif isinstance(rule, MonthlyRule):
        data[const.RECURRENCE_MONTHDAYS] = list(rule.monthdays)
    if rule.anchor is not None:
        data[const.RECURRENCE_START_AT] = dt_to_iso(rule.anchor)
    if rule.until is not None:
        data[const.RECURRENCE_END_AT] = dt_to_iso(rule.until)
    return data  # type: ignore[return-value]


def to_rrule_string(rule: RecurrenceRule | None) -> str:
    """Generate an RFC 5545 RRULE string for iCal export.

    Returns:
        RRULE string (e.g., "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE")
        or empty string for a one-time reminder.
    """
    if rule is None:
        return ""

    parts = [f"FREQ={rule.frequency.upper()}", f"INTERVAL={rule.interval}"]
    if isinstance(rule, WeeklyRule) and rule.weekdays:
        parts.append("BYDAY=" + ",".join(RRULE_WEEKDAY_CODES[d] for d in rule.weekdays))
    elif isinstance(rule, MonthlyRule) and rule.monthdays:
        parts.append("BYMONTHDAY=" + ",".join(str(d) for d in rule.monthdays))
    if rule.until is not None:
        parts.append(f"UNTIL={as_utc(rule.until).strftime('%Y%m%dT%H%M%SZ')}")
    return ";".join(parts)
