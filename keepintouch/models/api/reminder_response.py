# keepintouch/models/api/reminder_response.py
"""
Reminder API response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from keepintouch.models.api.contact_response import ContactResponse


class RecurrencePreviewResponse(BaseModel):
    """Upcoming occurrences of a reminder rule."""

    occurrences: list[datetime] = Field(..., description="Next reminder dates")
    description: str = Field(..., description="Human-readable rule")


class DueRemindersResponse(BaseModel):
    contacts: list[ContactResponse]
    total_count: int
    as_of: datetime
