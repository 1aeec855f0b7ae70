# keepintouch/models/domain/reminder_domain.py
"""
Reminder Domain Models
Value objects for reminder frequencies, custom recurrences and per-contact
reminder state. Used by the recurrence engine and the reminder service.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class ReminderFrequency(StrEnum):
    EVERY_WEEK = "Every week"
    EVERY_2_WEEKS = "Every 2 weeks"
    MONTHLY = "Monthly"
    EVERY_2_MONTHS = "Every 2 months"
    EVERY_3_MONTHS = "Every 3 months"
    CUSTOM = "Custom"


FIXED_FREQUENCIES = (
    ReminderFrequency.EVERY_WEEK,
    ReminderFrequency.EVERY_2_WEEKS,
    ReminderFrequency.MONTHLY,
    ReminderFrequency.EVERY_2_MONTHS,
    ReminderFrequency.EVERY_3_MONTHS,
)


class RecurrenceUnit(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class RecurrenceEnds(StrEnum):
    NEVER = "never"
    ON = "on"
    AFTER = "after"


class ReminderStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class CustomRecurrence:
    """User-defined repeat rule: every `interval` `unit`s until `ends`."""

    interval: int
    unit: RecurrenceUnit
    ends: RecurrenceEnds = RecurrenceEnds.NEVER
    end_date: date | None = None
    occurrences: int | None = None

    def __post_init__(self):
        # Accept plain strings from request payloads and rows
        object.__setattr__(self, "unit", RecurrenceUnit(self.unit))
        object.__setattr__(self, "ends", RecurrenceEnds(self.ends))
        if self.interval < 1:
            raise ValueError("Recurrence interval must be a positive integer")
        if self.occurrences is not None and self.occurrences < 1:
            raise ValueError("Recurrence occurrences must be a positive integer")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CustomRecurrence | None":
        """Build from the custom_recurrence_* contact columns, None when unset."""
        interval = row.get("custom_recurrence_interval")
        unit = row.get("custom_recurrence_unit")
        if not interval or not unit:
            return None

        end_date = row.get("custom_recurrence_end_date")
        if isinstance(end_date, str):
            end_date = date.fromisoformat(end_date[:10])
        elif isinstance(end_date, datetime):
            end_date = end_date.date()

        return cls(
            interval=int(interval),
            unit=RecurrenceUnit(unit),
            ends=RecurrenceEnds(row.get("custom_recurrence_ends") or RecurrenceEnds.NEVER),
            end_date=end_date,
            occurrences=row.get("custom_recurrence_occurrences"),
        )

    def to_columns(self) -> dict[str, Any]:
        """Flatten to contact columns; only the field selected by `ends` is kept."""
        return {
            "custom_recurrence_interval": self.interval,
            "custom_recurrence_unit": self.unit.value,
            "custom_recurrence_ends": self.ends.value,
            "custom_recurrence_end_date": (
                self.end_date if self.ends == RecurrenceEnds.ON else None
            ),
            "custom_recurrence_occurrences": (
                self.occurrences if self.ends == RecurrenceEnds.AFTER else None
            ),
        }


EMPTY_RECURRENCE_COLUMNS = {
    "custom_recurrence_interval": None,
    "custom_recurrence_unit": None,
    "custom_recurrence_ends": None,
    "custom_recurrence_end_date": None,
    "custom_recurrence_occurrences": None,
}


def parse_frequency(value: str | None) -> ReminderFrequency | str | None:
    """
    Map a stored frequency string onto the enum.

    Unknown strings are returned as-is so historical values flow through
    the recurrence engine's no-op fallback instead of failing.
    """
    if value is None:
        return None
    try:
        return ReminderFrequency(value)
    except ValueError:
        return value


@dataclass(slots=True)
class ReminderState:
    """Reminder fields of a single contact."""

    frequency: ReminderFrequency | str | None = None
    next_reminder: datetime | None = None
    status: ReminderStatus = ReminderStatus.PENDING
    custom_recurrence: CustomRecurrence | None = None
    completed_occurrences: int = 0
    # 0 = Sunday ... 6 = Saturday; fixed frequencies land on this weekday
    preferred_day: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ReminderState":
        return cls(
            frequency=parse_frequency(row.get("reminder_frequency")),
            next_reminder=row.get("next_reminder"),
            status=ReminderStatus(row.get("reminder_status") or ReminderStatus.PENDING),
            custom_recurrence=CustomRecurrence.from_row(row),
            completed_occurrences=row.get("custom_recurrence_completed") or 0,
            preferred_day=row.get("preferred_reminder_day"),
        )

    def is_active(self) -> bool:
        return self.frequency is not None

    def cleared(self) -> "ReminderState":
        """State of a contact whose reminder series has ended."""
        return replace(
            self,
            frequency=None,
            next_reminder=None,
            custom_recurrence=None,
            completed_occurrences=0,
            preferred_day=None,
        )
