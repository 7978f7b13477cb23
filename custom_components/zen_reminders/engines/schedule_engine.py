"""Schedule Engine for Zen Reminders.

Computes when a task reminder should next fire:
- `dateutil.rrule` enumerates daily/weekly/monthly cadences in the
  schedule's LOCAL wall-clock time, so 09:00 stays 09:00 across DST changes
  and month lengths; RFC 5545 semantics skip months lacking a listed day.
- `dateutil.relativedelta` bounds every enumeration to a fixed number of
  cadence cycles past the reference instant, so pathological rules end with
  None instead of looping.

All functions are pure: no clocks are read unless `as_of` is omitted, and
no state is kept between calls. Safe to call from service previews and the
dispatch manager at the same time.

IMPORTANT: This module must NOT import from coordinator.py or any manager.
Only import from const.py, type_defs.py, utils, and standard libraries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..utils.dt_utils import (
    as_local,
    as_utc,
    dt_now_utc,
    dt_to_iso,
    dt_to_utc,
    resolve_timezone,
)
from .recurrence_rule import (
    DailyRule,
    MonthlyRule,
    RecurrenceRule,
    WeeklyRule,
    coerce_int,
    normalize_recurrence,
    rebase_rule,
    recurrence_to_dict,
)

# rrule weekday constants indexed 0=Sunday ... 6=Saturday
RRULE_WEEKDAYS = [SU, MO, TU, WE, TH, FR, SA]

# Look-behind used when mapping the reference instant into local wall time,
# wide enough to cover any DST fold.
_LOCAL_SEARCH_SLACK = timedelta(days=1)


# =============================================================================
# Schedule value type
# =============================================================================


@dataclass(frozen=True)
class ReminderSchedule:
    """Reminder fields of one task, normalized.

    Read-only from the dispatcher's point of view. Build it from a stored
    task with `ReminderSchedule.from_task`.
    """

    due_at: datetime | None = None
    lead_minutes: int | None = None
    recurrence: RecurrenceRule | None = None
    snoozed_until: datetime | None = None
    timezone: str | None = None
    last_computed_trigger: datetime | None = None

    @classmethod
    def from_task(cls, task: Mapping[str, Any]) -> ReminderSchedule:
        """Build a schedule from a stored task record (never raises)."""
        due_at = dt_to_utc(task.get(const.DATA_TASK_DUE_DATE))
        lead_minutes = normalize_lead_minutes(
            task.get(const.DATA_TASK_REMINDER_MINUTES_BEFORE)
        )
        anchor = _anchor_from(due_at, lead_minutes)
        return cls(
            due_at=due_at,
            lead_minutes=lead_minutes,
            recurrence=normalize_recurrence(
                task.get(const.DATA_TASK_REMINDER_RECURRENCE), anchor=anchor
            ),
            snoozed_until=dt_to_utc(task.get(const.DATA_TASK_REMINDER_SNOOZED_UNTIL)),
            timezone=task.get(const.DATA_TASK_REMINDER_TIMEZONE) or None,
            last_computed_trigger=dt_to_utc(
                task.get(const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT)
            ),
        )

    @property
    def is_active(self) -> bool:
        """True when both due date and lead time are set."""
        return self.due_at is not None and self.lead_minutes is not None

    def to_task_fields(self) -> dict[str, Any]:
        """Serialize the schedule back into task record fields."""
        return {
            const.DATA_TASK_DUE_DATE: dt_to_iso(self.due_at),
            const.DATA_TASK_REMINDER_MINUTES_BEFORE: self.lead_minutes,
            const.DATA_TASK_REMINDER_RECURRENCE: recurrence_to_dict(self.recurrence),
            const.DATA_TASK_REMINDER_SNOOZED_UNTIL: dt_to_iso(self.snoozed_until),
            const.DATA_TASK_REMINDER_TIMEZONE: self.timezone,
            const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT: dt_to_iso(
                self.last_computed_trigger
            ),
        }


def normalize_lead_minutes(value: Any) -> int | None:
    """Return a non-negative integer lead time, or None when unset/invalid."""
    if value is None or value == "":
        return None
    minutes = coerce_int(value)
    if minutes is None or minutes < 0:
        return None
    return minutes


def _anchor_from(due_at: datetime | None, lead_minutes: int | None) -> datetime | None:
    if due_at is None or lead_minutes is None:
        return None
    return (as_utc(due_at) - timedelta(minutes=lead_minutes)).replace(microsecond=0)


def compute_anchor(schedule: ReminderSchedule) -> datetime | None:
    """Return the first occurrence instant: due time minus lead time (UTC)."""
    return _anchor_from(schedule.due_at, schedule.lead_minutes)


# =============================================================================
# Occurrence calculation
# =============================================================================


def _is_after(candidate: datetime, reference: datetime, include_equal: bool) -> bool:
    if include_equal:
        return candidate >= reference
    return candidate > reference


def _cycle_delta(rule: RecurrenceRule, cycles: int) -> relativedelta:
    """Return the span covered by `cycles` cadence cycles of the rule."""
    if isinstance(rule, DailyRule):
        return relativedelta(days=rule.interval * cycles)
    if isinstance(rule, WeeklyRule):
        return relativedelta(weeks=rule.interval * cycles)
    return relativedelta(months=rule.interval * cycles)


def _build_rrule(rule: RecurrenceRule, dtstart: datetime, until: datetime) -> rrule:
    """Build the dateutil rule for a recurrence over naive local wall time."""
    if isinstance(rule, WeeklyRule):
        return rrule(
            WEEKLY,
            dtstart=dtstart,
            interval=rule.interval,
            until=until,
            wkst=SU,
            byweekday=[RRULE_WEEKDAYS[day] for day in rule.weekdays],
        )
    if isinstance(rule, MonthlyRule):
        return rrule(
            MONTHLY,
            dtstart=dtstart,
            interval=rule.interval,
            until=until,
            bymonthday=list(rule.monthdays),
        )
    return rrule(DAILY, dtstart=dtstart, interval=rule.interval, until=until)


def _next_rule_occurrence(
    rule: RecurrenceRule,
    anchor: datetime,
    tz: ZoneInfo,
    reference: datetime,
    include_equal: bool,
) -> datetime | None:
    """Find the first cadence occurrence after `reference` (UTC in, UTC out)."""
    if isinstance(rule, WeeklyRule) and not rule.weekdays:
        const.LOGGER.debug("Weekly recurrence has no weekdays, no occurrences")
        return None
    if isinstance(rule, MonthlyRule) and not rule.monthdays:
        const.LOGGER.debug("Monthly recurrence has no month days, no occurrences")
        return None

    anchor_local = as_local(anchor, tz).replace(tzinfo=None)
    reference_local = as_local(reference, tz).replace(tzinfo=None)

    try:
        horizon = max(anchor_local, reference_local) + _cycle_delta(
            rule, const.MAX_RECURRENCE_CYCLES
        )
    except (OverflowError, ValueError):
        horizon = datetime.max.replace(microsecond=0)

    until = horizon
    if rule.until is not None:
        until = min(horizon, as_local(rule.until, tz).replace(tzinfo=None))
    if until < anchor_local:
        return None

    search_from = max(anchor_local, reference_local - _LOCAL_SEARCH_SLACK)
    schedule_rule = _build_rrule(rule, anchor_local, until)

    for occurrence_local in schedule_rule.xafter(search_from, inc=True):
        candidate = as_utc(occurrence_local.replace(tzinfo=tz))
        if _is_after(candidate, reference, include_equal):
            return candidate

    const.LOGGER.debug(
        "No %s occurrence within %s cycles after %s",
        rule.frequency,
        const.MAX_RECURRENCE_CYCLES,
        reference,
    )
    return None


def _first_slot(
    recurrence: RecurrenceRule | None, anchor: datetime, tz: ZoneInfo
) -> datetime | None:
    """Return the earliest occurrence the schedule produces."""
    if recurrence is None:
        return anchor
    start = recurrence.anchor or anchor
    return _next_rule_occurrence(recurrence, start, tz, start, True)


def _apply_snooze(
    candidate: datetime | None,
    snoozed_until: datetime | None,
    reference: datetime,
    include_equal: bool,
    first_slot: datetime | None,
) -> datetime | None:
    """Let a still-pending snooze take the next slot.

    A snooze displaces the latest cadence occurrence at or before it, so it
    stays pending after that occurrence has gone by. A snooze that precedes
    every occurrence only counts when it is later than the candidate.
    """
    if snoozed_until is None or not _is_after(snoozed_until, reference, include_equal):
        return candidate
    if first_slot is not None and first_slot <= snoozed_until:
        return snoozed_until
    if candidate is None or snoozed_until > candidate:
        return snoozed_until
    return candidate


def next_occurrence(
    schedule: ReminderSchedule,
    as_of: datetime | None = None,
    include_as_of: bool = False,
) -> datetime | None:
    """Calculate the next instant the reminder should fire.

    Args:
        schedule: Normalized reminder schedule.
        as_of: Reference instant. Defaults to now.
        include_as_of: When True an occurrence exactly at `as_of` counts.

    Returns:
        Next occurrence as UTC datetime, or None when the reminder is inert,
        a one-time reminder has already passed, or no occurrence exists
        within the enumeration cap.
    """
    anchor = compute_anchor(schedule)
    if anchor is None:
        return None

    reference = as_utc(as_of) if as_of is not None else dt_now_utc()
    tz = resolve_timezone(schedule.timezone)

    if schedule.recurrence is None:
        candidate = anchor if _is_after(anchor, reference, include_as_of) else None
    else:
        candidate = _next_rule_occurrence(
            schedule.recurrence,
            schedule.recurrence.anchor or anchor,
            tz,
            reference,
            include_as_of,
        )

    snoozed_until = schedule.snoozed_until
    if snoozed_until is None or not _is_after(snoozed_until, reference, include_as_of):
        return candidate
    return _apply_snooze(
        candidate,
        snoozed_until,
        reference,
        include_as_of,
        _first_slot(schedule.recurrence, anchor, tz),
    )


def upcoming_occurrences(
    schedule: ReminderSchedule,
    limit: int = const.DEFAULT_UPCOMING_LIMIT,
    as_of: datetime | None = None,
    include_as_of: bool = False,
) -> list[datetime]:
    """Return up to `limit` strictly increasing future occurrences.

    The first entry equals `next_occurrence` for the same arguments, so a
    pending snooze may take the first slot. Later entries follow the regular
    cadence, each strictly after the previous one.
    """
    if limit <= 0:
        return []

    first = next_occurrence(schedule, as_of=as_of, include_as_of=include_as_of)
    if first is None:
        return []

    occurrences = [first]
    cadence = replace(schedule, snoozed_until=None)
    while len(occurrences) < limit:
        following = next_occurrence(cadence, as_of=occurrences[-1])
        if following is None:
            break
        occurrences.append(following)
    return occurrences


def resolve_next_trigger(
    schedule: ReminderSchedule,
    as_of: datetime | None = None,
    schedule_changed: bool = True,
) -> datetime | None:
    """Return the stored next-trigger memo, recomputing only when needed.

    The memo is reused when the schedule fields did not change and it is
    still in the future, so unrelated edits do not move it.
    """
    reference = as_utc(as_of) if as_of is not None else dt_now_utc()
    memo = schedule.last_computed_trigger
    if not schedule_changed and memo is not None and memo > reference:
        return memo
    return next_occurrence(schedule, as_of=reference)


def rebase_schedule(
    schedule: ReminderSchedule,
    due_at: datetime | None,
    lead_minutes: int | None = None,
) -> ReminderSchedule:
    """Move the due instant (and optionally lead time) of a schedule.

    The recurrence anchor follows the new due time, and any snooze is
    cleared because it targeted the previous instant.
    """
    new_lead = schedule.lead_minutes if lead_minutes is None else lead_minutes
    new_due = as_utc(due_at) if due_at is not None else None
    return replace(
        schedule,
        due_at=new_due,
        lead_minutes=new_lead,
        recurrence=rebase_rule(schedule.recurrence, _anchor_from(new_due, new_lead)),
        snoozed_until=None,
        last_computed_trigger=None,
    )


def should_schedule_reminder(task: Mapping[str, Any] | None) -> bool:
    """Return True when a task should take part in reminder dispatch."""
    if not task or task.get(const.DATA_TASK_COMPLETED):
        return False
    return bool(
        task.get(const.DATA_TASK_REMINDER_MINUTES_BEFORE) is not None
        or task.get(const.DATA_TASK_REMINDER_RECURRENCE)
        or task.get(const.DATA_TASK_REMINDER_NEXT_TRIGGER_AT)
    )
