"""
Reminder Service - business logic for keep-in-touch reminders.

Owns the status-transition rule: completing a reminder recomputes
next_reminder from the stored frequency and stamps last contact, under a
row lock so concurrent completions chain instead of racing. Setting or
clearing a reminder mirrors it into Google Calendar when sync is enabled.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime

from keepintouch.config import settings
from keepintouch.db.pool import get_db_transaction
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.calendar_domain import build_reminder_event
from keepintouch.models.domain.contact_domain import Contact, latest_note
from keepintouch.models.domain.reminder_domain import (
    CustomRecurrence,
    ReminderFrequency,
    ReminderState,
    ReminderStatus,
)
from keepintouch.repositories.contact_repository import ContactRepository
from keepintouch.services.calendar.google_client import GoogleCalendarError, google_calendar_service
from keepintouch.services.contacts.contact_service import ContactNotFoundError
from keepintouch.services.reminders.recurrence import advance_reminder

logger = get_logger(__name__)


class ReminderValidationError(Exception):
    """Raised when a reminder request is internally inconsistent."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def update_reminder_status(
    user_id: str,
    contact_id: str,
    status: ReminderStatus | str,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> Contact:
    """
    Transition a contact's reminder status.

    `completed` locks the row, advances next_reminder from the persisted
    anchor and writes everything in one UPDATE inside the same
    transaction. `pending` and `skipped` only write the status.

    Raises:
        ContactNotFoundError: Contact missing for this user
    """
    status = ReminderStatus(status)

    if status != ReminderStatus.COMPLETED:
        contact = await ContactRepository.set_reminder_status(user_id, contact_id, status)
        if contact is None:
            raise ContactNotFoundError(contact_id)
        logger.info("Reminder status updated", contact_id=contact_id, status=status.value)
        return contact

    now = clock()
    async with await get_db_transaction() as conn:
        contact = await ContactRepository.get_contact(
            user_id, contact_id, for_update=True, connection=conn
        )
        if contact is None:
            raise ContactNotFoundError(contact_id)

        next_state = advance_reminder(contact.reminder, now)
        updated = await ContactRepository.save_reminder(
            user_id, contact_id, next_state, completed_at=now, connection=conn
        )

    if updated is None:
        raise ContactNotFoundError(contact_id)

    logger.info(
        "Reminder completed",
        contact_id=contact_id,
        frequency=str(contact.reminder.frequency) if contact.reminder.frequency else None,
        previous_reminder=(
            contact.reminder.next_reminder.isoformat() if contact.reminder.next_reminder else None
        ),
        next_reminder=(
            updated.reminder.next_reminder.isoformat() if updated.reminder.next_reminder else None
        ),
    )
    return updated


async def set_reminder(
    user_id: str,
    contact_id: str,
    frequency: ReminderFrequency | str,
    next_reminder: datetime,
    custom_recurrence: CustomRecurrence | None = None,
    *,
    preferred_day: int | None = None,
) -> Contact:
    """
    Schedule a reminder series for a contact and mirror it to the calendar.

    `preferred_day` (0 = Sunday) only applies to fixed frequencies; later
    completions land on that weekday.

    Raises:
        ReminderValidationError: Custom frequency without a recurrence, or a
            preferred_day outside 0..6
        ContactNotFoundError: Contact missing for this user
    """
    frequency = ReminderFrequency(frequency)
    if frequency == ReminderFrequency.CUSTOM and custom_recurrence is None:
        raise ReminderValidationError("A custom reminder needs a recurrence rule")
    if preferred_day is not None and not 0 <= preferred_day <= 6:
        raise ReminderValidationError("preferred_day must be between 0 (Sunday) and 6")
    if frequency == ReminderFrequency.CUSTOM:
        preferred_day = None
    else:
        custom_recurrence = None

    state = ReminderState(
        frequency=frequency,
        next_reminder=next_reminder,
        status=ReminderStatus.PENDING,
        custom_recurrence=custom_recurrence,
        completed_occurrences=0,
        preferred_day=preferred_day,
    )
    contact = await ContactRepository.save_reminder(user_id, contact_id, state)
    if contact is None:
        raise ContactNotFoundError(contact_id)

    logger.info(
        "Reminder set",
        contact_id=contact_id,
        frequency=frequency.value,
        next_reminder=next_reminder.isoformat(),
    )

    if settings.calendar_sync_configured():
        # Replace any events from a previous series
        await _remove_reminder_events(contact)
        event_id = await _create_reminder_event(contact)
        if event_id:
            await ContactRepository.set_calendar_event_id(user_id, contact_id, event_id)
            contact.calendar_event_id = event_id

    return contact


async def clear_reminder(user_id: str, contact_id: str) -> Contact:
    """
    Remove a contact's reminder series and its calendar events.

    Raises:
        ContactNotFoundError: Contact missing for this user
    """
    existing = await ContactRepository.get_contact(user_id, contact_id)
    if existing is None:
        raise ContactNotFoundError(contact_id)

    state = ReminderState(status=ReminderStatus.PENDING)
    contact = await ContactRepository.save_reminder(user_id, contact_id, state)
    if contact is None:
        raise ContactNotFoundError(contact_id)

    logger.info("Reminder cleared", contact_id=contact_id)

    if settings.calendar_sync_configured():
        await _remove_reminder_events(existing)
        if existing.calendar_event_id:
            await ContactRepository.set_calendar_event_id(user_id, contact_id, None)
            contact.calendar_event_id = None

    return contact


async def get_due_reminders(user_id: str, as_of: datetime | date | None = None) -> list[Contact]:
    """Contacts whose next reminder is at or before `as_of` (default: now)."""
    if as_of is None:
        as_of = _utcnow()
    elif not isinstance(as_of, datetime):
        # Whole day: everything due by the end of that date
        as_of = datetime(as_of.year, as_of.month, as_of.day, 23, 59, 59, tzinfo=UTC)

    contacts = await ContactRepository.get_due_reminders(user_id, as_of)
    logger.info("Due reminders loaded", user_id=user_id, count=len(contacts))
    return contacts


async def _create_reminder_event(contact: Contact) -> str | None:
    """Create the calendar event for a contact's next reminder; None on failure."""
    note = latest_note(contact.notes)
    payload = build_reminder_event(
        contact.full_name,
        contact.reminder.next_reminder,
        note.content if note else None,
        note.timestamp if note else None,
    )
    try:
        event = await google_calendar_service.create_event(
            payload, calendar_id=settings.GOOGLE_CALENDAR_ID
        )
    except GoogleCalendarError as e:
        logger.warning(
            "Failed to create reminder calendar event",
            contact_id=contact.id,
            error=str(e),
            error_code=e.error_code,
        )
        return None
    return event.id


async def _remove_reminder_events(contact: Contact) -> None:
    try:
        await google_calendar_service.delete_existing_reminders(
            contact.full_name, calendar_id=settings.GOOGLE_CALENDAR_ID
        )
    except GoogleCalendarError as e:
        logger.warning(
            "Failed to remove reminder calendar events",
            contact_id=contact.id,
            error=str(e),
            error_code=e.error_code,
        )
