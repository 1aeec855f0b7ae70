# keepintouch/models/api/contact_response.py
"""
Contact API response models.
Used by routes for output formatting.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from keepintouch.models.domain.contact_domain import Contact
from keepintouch.models.domain.reminder_domain import CustomRecurrence, ReminderState


class CustomRecurrenceResponse(BaseModel):
    interval: int
    unit: str
    ends: str
    end_date: date | None = None
    occurrences: int | None = None

    @classmethod
    def from_domain(cls, recurrence: CustomRecurrence) -> "CustomRecurrenceResponse":
        return cls(
            interval=recurrence.interval,
            unit=recurrence.unit.value,
            ends=recurrence.ends.value,
            end_date=recurrence.end_date,
            occurrences=recurrence.occurrences,
        )


class ReminderResponse(BaseModel):
    """Reminder fields of a contact."""

    frequency: str | None = Field(None, description="Reminder frequency label")
    next_reminder: datetime | None = Field(None, description="Next scheduled reminder")
    status: str = Field(..., description="pending, completed or skipped")
    custom_recurrence: CustomRecurrenceResponse | None = None
    completed_occurrences: int = Field(0, description="Completions in the current custom series")
    preferred_day: int | None = Field(None, description="Preferred weekday, 0 = Sunday")

    @classmethod
    def from_domain(cls, state: ReminderState) -> "ReminderResponse":
        return cls(
            frequency=str(state.frequency) if state.frequency is not None else None,
            next_reminder=state.next_reminder,
            status=str(state.status),
            custom_recurrence=(
                CustomRecurrenceResponse.from_domain(state.custom_recurrence)
                if state.custom_recurrence
                else None
            ),
            completed_occurrences=state.completed_occurrences,
            preferred_day=state.preferred_day,
        )


class ContactResponse(BaseModel):
    """Response model for a contact."""

    id: str
    full_name: str
    email: str | None = None
    mobile_phone: str | None = None
    business_phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    linkedin_url: str | None = None
    status: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: list[dict] = Field(default_factory=list)
    related_contacts: list[str] = Field(default_factory=list)
    friendship_score: int | None = None
    gift_ideas: list[str] = Field(default_factory=list)
    scheduled_followup: datetime | None = None
    last_contact: datetime | None = None
    reminder: ReminderResponse
    calendar_event_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, contact: Contact) -> "ContactResponse":
        return cls(
            id=contact.id,
            full_name=contact.full_name,
            email=contact.email,
            mobile_phone=contact.mobile_phone,
            business_phone=contact.business_phone,
            company=contact.company,
            job_title=contact.job_title,
            linkedin_url=contact.linkedin_url,
            status=contact.status,
            tags=contact.tags,
            notes=contact.notes,
            related_contacts=contact.related_contacts,
            friendship_score=contact.friendship_score,
            gift_ideas=contact.gift_ideas,
            scheduled_followup=contact.scheduled_followup,
            last_contact=contact.last_contact,
            reminder=ReminderResponse.from_domain(contact.reminder),
            calendar_event_id=contact.calendar_event_id,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
        )


class ContactsListResponse(BaseModel):
    contacts: list[ContactResponse]
    total_count: int


class TagsResponse(BaseModel):
    tags: list[str]
