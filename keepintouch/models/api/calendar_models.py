# keepintouch/models/api/calendar_models.py
"""
Calendar action proxy request/response models.
"""

from typing import Any

from pydantic import BaseModel, Field


class CalendarActionRequest(BaseModel):
    """An action tag plus its payload, forwarded to Google Calendar."""

    action: str = Field(
        ...,
        description="createEvent, deleteEvent, listEvents or deleteExistingReminders",
    )
    calendar_id: str | None = Field(None, description="Target calendar (default: configured)")
    event: dict[str, Any] | None = Field(
        None, description="Google event resource, event id or list filters"
    )
    contact_name: str | None = Field(None, description="Contact for deleteExistingReminders")


class CalendarActionResponse(BaseModel):
    action: str
    result: dict[str, Any]
