"""
Calendar API Routes
Action-tag proxy in front of Google Calendar.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from keepintouch.auth.verify import current_user_id
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.api.calendar_models import CalendarActionRequest, CalendarActionResponse
from keepintouch.services.calendar.actions import CalendarActionError, dispatch_calendar_action
from keepintouch.services.calendar.google_client import GoogleCalendarError

logger = get_logger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.post("/actions", response_model=CalendarActionResponse)
async def calendar_action(request: CalendarActionRequest, user_id: str = Depends(current_user_id)):
    """Run createEvent, deleteEvent, listEvents or deleteExistingReminders."""
    try:
        result = await dispatch_calendar_action(
            request.action,
            calendar_id=request.calendar_id,
            event_data=request.event,
            contact_name=request.contact_name,
        )
    except CalendarActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except GoogleCalendarError as e:
        logger.error(
            "Calendar action failed",
            user_id=user_id,
            action=request.action,
            error_code=e.error_code,
            status_code=e.status_code,
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    return CalendarActionResponse(action=request.action, result=result)
