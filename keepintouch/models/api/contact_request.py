# keepintouch/models/api/contact_request.py
"""
Contact API request models.
Used by routes for input validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class NoteRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Note text")
    timestamp: datetime = Field(..., description="When the note was written")


class CreateContactRequest(BaseModel):
    """Request for creating a contact."""

    full_name: str = Field(..., min_length=1, max_length=200, description="Contact name")
    email: str | None = Field(None, max_length=320, description="Email address")
    mobile_phone: str | None = Field(None, max_length=50, description="Mobile phone")
    business_phone: str | None = Field(None, max_length=50, description="Business phone")
    company: str | None = Field(None, max_length=200, description="Company")
    job_title: str | None = Field(None, max_length=200, description="Job title")
    linkedin_url: str | None = Field(None, max_length=500, description="LinkedIn profile URL")
    status: str | None = Field(None, description="Relationship status")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    notes: list[NoteRequest] = Field(default_factory=list, description="Notes")
    related_contacts: list[str] = Field(default_factory=list, description="Related contact IDs")
    friendship_score: int | None = Field(None, ge=0, le=100, description="Closeness, 0-100")
    gift_ideas: list[str] = Field(default_factory=list, description="Gift ideas")
    scheduled_followup: datetime | None = Field(None, description="Planned follow-up")
    last_contact: datetime | None = Field(None, description="When the user last reached out")


class UpdateContactRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    full_name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, max_length=320)
    mobile_phone: str | None = Field(None, max_length=50)
    business_phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=200)
    job_title: str | None = Field(None, max_length=200)
    linkedin_url: str | None = Field(None, max_length=500)
    status: str | None = None
    tags: list[str] | None = None
    notes: list[NoteRequest] | None = None
    related_contacts: list[str] | None = None
    friendship_score: int | None = Field(None, ge=0, le=100)
    gift_ideas: list[str] | None = None
    scheduled_followup: datetime | None = None
    last_contact: datetime | None = None


class MarkContactedRequest(BaseModel):
    contacted_at: datetime | None = Field(None, description="When it happened (default: now)")
