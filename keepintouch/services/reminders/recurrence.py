"""
Recurrence engine for keep-in-touch reminders.

Pure functions: every call is independent, side-effect free and never
raises for bad frequency data. Month and year arithmetic uses
dateutil's relativedelta, so month-end anchors clamp to the last day of
the target month (Jan 31 + 1 month -> Feb 28/29).
"""

from dataclasses import replace
from datetime import UTC, date, datetime, time

from dateutil.relativedelta import relativedelta

from keepintouch.models.domain.reminder_domain import (
    CustomRecurrence,
    RecurrenceEnds,
    RecurrenceUnit,
    ReminderFrequency,
    ReminderState,
    ReminderStatus,
)

# Reminders behave like all-day items; pinning them to noon keeps the
# calendar date stable across timezone boundaries.
REMINDER_HOUR = 12

DEFAULT_PREVIEW_COUNT = 3

_FIXED_PERIODS: dict[str, relativedelta] = {
    ReminderFrequency.EVERY_WEEK: relativedelta(weeks=1),
    ReminderFrequency.EVERY_2_WEEKS: relativedelta(weeks=2),
    ReminderFrequency.MONTHLY: relativedelta(months=1),
    ReminderFrequency.EVERY_2_MONTHS: relativedelta(months=2),
    ReminderFrequency.EVERY_3_MONTHS: relativedelta(months=3),
}


def _coerce_anchor(anchor: datetime | date | None) -> datetime:
    if anchor is None:
        return datetime.now(UTC)
    if not isinstance(anchor, datetime):
        return datetime.combine(anchor, time(), tzinfo=UTC)
    return anchor


def normalize_to_reminder_hour(value: datetime) -> datetime:
    """Same calendar day, wall-clock time set to the reminder hour."""
    return value.replace(hour=REMINDER_HOUR, minute=0, second=0, microsecond=0)


def unit_delta(unit: RecurrenceUnit | str, amount: int) -> relativedelta:
    """`amount` units of `unit` as a relativedelta."""
    unit = RecurrenceUnit(unit)
    if unit == RecurrenceUnit.DAY:
        return relativedelta(days=amount)
    if unit == RecurrenceUnit.WEEK:
        return relativedelta(weeks=amount)
    if unit == RecurrenceUnit.MONTH:
        return relativedelta(months=amount)
    return relativedelta(years=amount)


def compute_next_reminder(
    frequency: ReminderFrequency | str | None,
    anchor: datetime | date | None = None,
) -> datetime:
    """
    Next reminder for a fixed frequency.

    The anchor (default: now) is moved to noon and advanced by the period
    the frequency implies. Unrecognized frequencies, `Custom` and None
    return the anchor unchanged.

    Args:
        frequency: One of the fixed ReminderFrequency values
        anchor: Date to advance from, usually the previous reminder

    Returns:
        datetime: The next reminder, or the anchor for unknown frequencies
    """
    anchor = _coerce_anchor(anchor)
    if not isinstance(frequency, str):
        return anchor

    period = _FIXED_PERIODS.get(frequency)
    if period is None:
        return anchor

    return normalize_to_reminder_hour(anchor) + period


def align_to_preferred_day(value: datetime, preferred_day: int | None) -> datetime:
    """
    Move forward (0 to 6 days) onto `preferred_day`, counted 0 = Sunday
    to 6 = Saturday. None or an out-of-range day leaves the value as is.
    """
    if preferred_day is None or not 0 <= preferred_day <= 6:
        return value
    current = (value.weekday() + 1) % 7
    return value + relativedelta(days=(preferred_day - current) % 7)


def compute_next_fixed_reminder(
    frequency: ReminderFrequency | str | None,
    anchor: datetime | date | None = None,
    preferred_day: int | None = None,
) -> datetime:
    """compute_next_reminder, then pushed onto the contact's preferred weekday."""
    anchor = _coerce_anchor(anchor)
    if not isinstance(frequency, str) or frequency not in _FIXED_PERIODS:
        return anchor
    return align_to_preferred_day(compute_next_reminder(frequency, anchor), preferred_day)


def compute_next_occurrences(
    recurrence: CustomRecurrence,
    anchor: datetime | date | None = None,
    count: int = DEFAULT_PREVIEW_COUNT,
) -> list[datetime]:
    """
    Preview the next `count` occurrences of a custom recurrence.

    Occurrence k is the anchor advanced by k * interval units, always
    measured from the original anchor, so month-end clamping in one step
    does not leak into the next. `ends` is not applied here.
    """
    anchor = _coerce_anchor(anchor)
    return [
        anchor + unit_delta(recurrence.unit, k * recurrence.interval)
        for k in range(1, count + 1)
    ]


def format_long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def describe_recurrence_end(recurrence: CustomRecurrence) -> str:
    """
    Human-readable end condition.

    Returns an empty string when `ends` names a companion field that is
    not filled in yet, so a recurrence being edited can still be shown.
    """
    if recurrence.ends == RecurrenceEnds.NEVER:
        return "no end date"

    if recurrence.ends == RecurrenceEnds.ON:
        if recurrence.end_date is None:
            return ""
        return f"until {format_long_date(recurrence.end_date)}"

    if recurrence.ends == RecurrenceEnds.AFTER:
        if not recurrence.occurrences:
            return ""
        suffix = "" if recurrence.occurrences == 1 else "s"
        return f"after {recurrence.occurrences} occurrence{suffix}"

    return ""


def describe_recurrence(recurrence: CustomRecurrence) -> str:
    """e.g. "Repeats every 2 weeks, until March 1, 2026"."""
    plural = "s" if recurrence.interval > 1 else ""
    text = f"Repeats every {recurrence.interval} {recurrence.unit.value}{plural}"

    end = describe_recurrence_end(recurrence)
    if end:
        text += f", {end}"
    return text


def compute_next_custom_reminder(
    recurrence: CustomRecurrence,
    anchor: datetime | date | None = None,
    completed_occurrences: int = 0,
) -> datetime | None:
    """
    Next persisted reminder for a custom recurrence, or None once the
    series is over.

    Args:
        recurrence: The custom rule
        anchor: Current reminder (default: now)
        completed_occurrences: Reminders of this series already completed,
            not counting the one being completed now
    """
    if (
        recurrence.ends == RecurrenceEnds.AFTER
        and recurrence.occurrences is not None
        and completed_occurrences + 1 >= recurrence.occurrences
    ):
        return None

    anchor = _coerce_anchor(anchor)
    candidate = normalize_to_reminder_hour(anchor) + unit_delta(
        recurrence.unit, recurrence.interval
    )

    if (
        recurrence.ends == RecurrenceEnds.ON
        and recurrence.end_date is not None
        and candidate.date() > recurrence.end_date
    ):
        return None

    return candidate


def advance_reminder(state: ReminderState, now: datetime | None = None) -> ReminderState:
    """
    Reminder state after the current reminder is marked completed.

    The persisted next_reminder is the anchor, falling back to `now`.
    A finished custom series clears frequency and next_reminder together.
    """
    now = now or datetime.now(UTC)
    completed = replace(state, status=ReminderStatus.COMPLETED)

    if not state.is_active():
        return completed

    anchor = state.next_reminder or now

    if state.frequency == ReminderFrequency.CUSTOM and state.custom_recurrence is not None:
        next_reminder = compute_next_custom_reminder(
            state.custom_recurrence, anchor, state.completed_occurrences
        )
        if next_reminder is None:
            return replace(state.cleared(), status=ReminderStatus.COMPLETED)
        return replace(
            completed,
            next_reminder=next_reminder,
            completed_occurrences=state.completed_occurrences + 1,
        )

    next_reminder = compute_next_fixed_reminder(state.frequency, anchor, state.preferred_day)
    return replace(completed, next_reminder=next_reminder)
