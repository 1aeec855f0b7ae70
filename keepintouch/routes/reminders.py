"""
Reminder API Routes
Schedule, clear and complete keep-in-touch reminders; preview recurrences.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from keepintouch.auth.verify import current_user_id
from keepintouch.db.helpers import DatabaseError
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.api.contact_response import ContactResponse
from keepintouch.models.api.reminder_request import (
    RecurrencePreviewRequest,
    ReminderStatusRequest,
    SetReminderRequest,
)
from keepintouch.models.api.reminder_response import (
    DueRemindersResponse,
    RecurrencePreviewResponse,
)
from keepintouch.models.domain.reminder_domain import ReminderFrequency
from keepintouch.services.contacts import contact_service
from keepintouch.services.contacts.contact_service import ContactNotFoundError
from keepintouch.services.reminders import reminder_service
from keepintouch.services.reminders.recurrence import (
    DEFAULT_PREVIEW_COUNT,
    compute_next_fixed_reminder,
    compute_next_occurrences,
    describe_recurrence,
)
from keepintouch.services.reminders.reminder_service import ReminderValidationError

logger = get_logger(__name__)

router = APIRouter(tags=["reminders"])


@router.put("/contacts/{contact_id}/reminder", response_model=ContactResponse)
async def set_reminder(
    contact_id: str, request: SetReminderRequest, user_id: str = Depends(current_user_id)
):
    """Start (or replace) a contact's reminder series."""
    recurrence = request.custom_recurrence.to_domain() if request.custom_recurrence else None

    next_reminder = request.next_reminder
    if next_reminder is None:
        if recurrence is not None:
            next_reminder = compute_next_occurrences(recurrence, count=1)[0]
        else:
            next_reminder = compute_next_fixed_reminder(
                request.frequency, preferred_day=request.preferred_day
            )

    try:
        contact = await reminder_service.set_reminder(
            user_id,
            contact_id,
            request.frequency,
            next_reminder,
            recurrence,
            preferred_day=request.preferred_day,
        )
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ReminderValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DatabaseError as e:
        logger.error("Failed to set reminder", contact_id=contact_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to set reminder"
        ) from e

    return ContactResponse.from_domain(contact)


@router.delete("/contacts/{contact_id}/reminder", response_model=ContactResponse)
async def clear_reminder(contact_id: str, user_id: str = Depends(current_user_id)):
    try:
        contact = await reminder_service.clear_reminder(user_id, contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return ContactResponse.from_domain(contact)


@router.post("/contacts/{contact_id}/reminder/status", response_model=ContactResponse)
async def update_reminder_status(
    contact_id: str, request: ReminderStatusRequest, user_id: str = Depends(current_user_id)
):
    """Mark the current reminder pending, completed or skipped."""
    try:
        contact = await reminder_service.update_reminder_status(user_id, contact_id, request.status)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DatabaseError as e:
        logger.error("Failed to update reminder status", contact_id=contact_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update reminder status",
        ) from e
    return ContactResponse.from_domain(contact)


@router.get("/contacts/{contact_id}/reminder/preview", response_model=RecurrencePreviewResponse)
async def preview_contact_reminder(
    contact_id: str,
    count: int = Query(default=DEFAULT_PREVIEW_COUNT, ge=1, le=24),
    user_id: str = Depends(current_user_id),
):
    """Upcoming reminders of a contact's saved series."""
    try:
        contact = await contact_service.get_contact(user_id, contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    state = contact.reminder
    if not state.is_active():
        return RecurrencePreviewResponse(occurrences=[], description="No reminder set")

    if state.frequency == ReminderFrequency.CUSTOM and state.custom_recurrence is not None:
        return RecurrencePreviewResponse(
            occurrences=compute_next_occurrences(
                state.custom_recurrence, state.next_reminder, count
            ),
            description=describe_recurrence(state.custom_recurrence),
        )

    occurrences = []
    anchor = state.next_reminder
    for _ in range(count):
        anchor = compute_next_fixed_reminder(state.frequency, anchor, state.preferred_day)
        occurrences.append(anchor)
    return RecurrencePreviewResponse(occurrences=occurrences, description=str(state.frequency))


@router.post("/reminders/preview", response_model=RecurrencePreviewResponse)
async def preview_recurrence(
    request: RecurrencePreviewRequest, user_id: str = Depends(current_user_id)
):
    """Preview a custom rule before saving it."""
    recurrence = request.custom_recurrence.to_domain()
    return RecurrencePreviewResponse(
        occurrences=compute_next_occurrences(recurrence, request.anchor, request.count),
        description=describe_recurrence(recurrence),
    )


@router.get("/reminders/due", response_model=DueRemindersResponse)
async def get_due_reminders(
    as_of: datetime | None = Query(None, description="Cutoff (default: now)"),
    user_id: str = Depends(current_user_id),
):
    as_of = as_of or datetime.now(UTC)
    contacts = await reminder_service.get_due_reminders(user_id, as_of)
    return DueRemindersResponse(
        contacts=[ContactResponse.from_domain(c) for c in contacts],
        total_count=len(contacts),
        as_of=as_of,
    )
