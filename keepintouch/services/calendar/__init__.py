"""
Google Calendar integration: REST client and the action proxy.
"""

from keepintouch.services.calendar.actions import (
    CalendarAction,
    CalendarActionError,
    dispatch_calendar_action,
)
from keepintouch.services.calendar.google_client import (
    GoogleCalendarError,
    GoogleCalendarService,
    google_calendar_service,
)

__all__ = [
    "CalendarAction",
    "CalendarActionError",
    "GoogleCalendarError",
    "GoogleCalendarService",
    "dispatch_calendar_action",
    "google_calendar_service",
]
