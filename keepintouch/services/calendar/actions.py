"""
Calendar action proxy.

Routes an action tag from the client (createEvent, deleteEvent,
listEvents, deleteExistingReminders) to the Google Calendar client.
GoogleCalendarError is left to propagate to the caller unchanged.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from keepintouch.config import settings
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.services.calendar.google_client import (
    GoogleCalendarService,
    google_calendar_service,
)

logger = get_logger(__name__)


class CalendarAction(StrEnum):
    CREATE_EVENT = "createEvent"
    DELETE_EVENT = "deleteEvent"
    LIST_EVENTS = "listEvents"
    DELETE_EXISTING_REMINDERS = "deleteExistingReminders"


class CalendarActionError(Exception):
    """Unknown action tag or a payload missing what the action needs."""

    def __init__(self, message: str, action: str | None = None):
        super().__init__(message)
        self.action = action


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise CalendarActionError(f"Invalid timestamp: {value}") from e


async def dispatch_calendar_action(
    action: str,
    calendar_id: str | None = None,
    event_data: dict[str, Any] | None = None,
    contact_name: str | None = None,
    service: GoogleCalendarService | None = None,
) -> dict[str, Any]:
    """
    Run one calendar action and return a JSON-ready result.

    Raises:
        CalendarActionError: Unknown action or missing payload fields
        GoogleCalendarError: Google rejected the call
    """
    service = service or google_calendar_service
    calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID
    event_data = event_data or {}

    try:
        action = CalendarAction(action)
    except ValueError as e:
        raise CalendarActionError(f"Unknown calendar action: {action}", action=action) from e

    logger.info("Dispatching calendar action", action=action.value, calendar_id=calendar_id)

    if action == CalendarAction.CREATE_EVENT:
        if not event_data.get("summary") or not event_data.get("start"):
            raise CalendarActionError("createEvent requires summary and start", action=action)
        event = await service.create_event(event_data, calendar_id=calendar_id)
        return {"event": event.to_dict()}

    if action == CalendarAction.DELETE_EVENT:
        event_id = event_data.get("id") or event_data.get("eventId")
        if not event_id:
            raise CalendarActionError("deleteEvent requires an event id", action=action)
        await service.delete_event(event_id, calendar_id=calendar_id)
        return {"deleted": True, "event_id": event_id}

    if action == CalendarAction.LIST_EVENTS:
        events = await service.list_events(
            calendar_id=calendar_id,
            time_min=_parse_time(event_data.get("timeMin")),
            time_max=_parse_time(event_data.get("timeMax")),
            query=event_data.get("q"),
        )
        return {"events": [event.to_dict() for event in events]}

    if not contact_name:
        raise CalendarActionError("deleteExistingReminders requires contact_name", action=action)
    deleted = await service.delete_existing_reminders(contact_name, calendar_id=calendar_id)
    return {"deleted": deleted}
