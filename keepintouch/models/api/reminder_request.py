# keepintouch/models/api/reminder_request.py
"""
Reminder API request models.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from keepintouch.models.domain.reminder_domain import (
    CustomRecurrence,
    RecurrenceEnds,
    RecurrenceUnit,
    ReminderFrequency,
    ReminderStatus,
)


class CustomRecurrenceRequest(BaseModel):
    """A user-defined repeat rule."""

    interval: int = Field(..., ge=1, le=365, description="Repeat every N units")
    unit: RecurrenceUnit = Field(..., description="day, week, month or year")
    ends: RecurrenceEnds = Field(default=RecurrenceEnds.NEVER, description="never, on or after")
    end_date: date | None = Field(None, description="Last allowed date when ends is 'on'")
    occurrences: int | None = Field(None, ge=1, description="Series length when ends is 'after'")

    @model_validator(mode="after")
    def check_end_condition(self):
        if self.ends == RecurrenceEnds.ON and self.end_date is None:
            raise ValueError("end_date is required when ends is 'on'")
        if self.ends == RecurrenceEnds.AFTER and self.occurrences is None:
            raise ValueError("occurrences is required when ends is 'after'")
        return self

    def to_domain(self) -> CustomRecurrence:
        return CustomRecurrence(
            interval=self.interval,
            unit=self.unit,
            ends=self.ends,
            end_date=self.end_date if self.ends == RecurrenceEnds.ON else None,
            occurrences=self.occurrences if self.ends == RecurrenceEnds.AFTER else None,
        )


class SetReminderRequest(BaseModel):
    """Request for scheduling a reminder series on a contact."""

    frequency: ReminderFrequency = Field(..., description="Reminder frequency")
    next_reminder: datetime | None = Field(
        None, description="First reminder; computed from the frequency when omitted"
    )
    custom_recurrence: CustomRecurrenceRequest | None = Field(
        None, description="Required when frequency is 'Custom'"
    )
    preferred_day: int | None = Field(
        None, ge=0, le=6, description="Weekday for fixed frequencies, 0 = Sunday"
    )

    @model_validator(mode="after")
    def check_custom_recurrence(self):
        if self.frequency == ReminderFrequency.CUSTOM and self.custom_recurrence is None:
            raise ValueError("custom_recurrence is required for a Custom frequency")
        return self


class ReminderStatusRequest(BaseModel):
    status: ReminderStatus = Field(..., description="pending, completed or skipped")


class RecurrencePreviewRequest(BaseModel):
    """Preview an unsaved custom rule."""

    custom_recurrence: CustomRecurrenceRequest
    anchor: datetime | None = Field(None, description="Start of the series (default: now)")
    count: int = Field(default=3, ge=1, le=24, description="Occurrences to return")
