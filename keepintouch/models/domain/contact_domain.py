"""
Contact Domain Models

Lightweight dataclasses for persisted contacts and for the candidates the
import parsers produce. Repositories build them from dict rows; services
and routes read them.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from keepintouch.models.domain.reminder_domain import ReminderState


@dataclass(slots=True)
class ContactNote:
    content: str
    timestamp: datetime

    @classmethod
    def from_json(cls, data: Any) -> "ContactNote | None":
        """Parse one `notes` entry; anything that is not a dated note gives None."""
        if not isinstance(data, dict):
            return None
        content = data.get("content")
        timestamp = data.get("timestamp")
        if not content or not timestamp:
            return None
        try:
            parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
        except ValueError:
            return None
        # Notes written without an offset are UTC
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return cls(content=content, timestamp=parsed)


def latest_note(notes: list[dict] | None) -> ContactNote | None:
    """Newest note by timestamp; malformed entries are ignored."""
    parsed = [note for note in (ContactNote.from_json(n) for n in notes or []) if note]
    if not parsed:
        return None
    return max(parsed, key=lambda note: note.timestamp)


@dataclass(slots=True)
class Contact:
    """Represents a contacts row."""

    id: str
    user_id: str
    full_name: str
    email: str | None = None
    mobile_phone: str | None = None
    business_phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    linkedin_url: str | None = None
    status: str | None = None
    tags: list[str] = field(default_factory=list)
    notes: list[dict] = field(default_factory=list)
    related_contacts: list[str] = field(default_factory=list)
    friendship_score: int | None = None
    gift_ideas: list[str] = field(default_factory=list)
    scheduled_followup: datetime | None = None
    last_contact: datetime | None = None
    reminder: ReminderState = field(default_factory=ReminderState)
    calendar_event_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Contact":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            full_name=row["full_name"],
            email=row.get("email"),
            mobile_phone=row.get("mobile_phone"),
            business_phone=row.get("business_phone"),
            company=row.get("company"),
            job_title=row.get("job_title"),
            linkedin_url=row.get("linkedin_url"),
            status=row.get("status"),
            tags=row.get("tags") or [],
            notes=row.get("notes") or [],
            related_contacts=[str(c) for c in row.get("related_contacts") or []],
            friendship_score=row.get("friendship_score"),
            gift_ideas=row.get("gift_ideas") or [],
            scheduled_followup=row.get("scheduled_followup"),
            last_contact=row.get("last_contact"),
            reminder=ReminderState.from_row(row),
            calendar_event_id=row.get("calendar_event_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


@dataclass(slots=True)
class ContactFilters:
    status: list[str] | None = None
    company: list[str] | None = None
    tags: list[str] | None = None
    search_query: str | None = None


@dataclass(slots=True)
class ImportedContactCandidate:
    """
    A contact extracted from an import file, awaiting user review.

    `client_id` only exists so the review list can track selections;
    it is dropped when the candidate is persisted.
    """

    full_name: str | None = None
    email: str | None = None
    mobile_phone: str | None = None
    business_phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    linkedin_url: str | None = None
    client_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_contact_fields(self) -> dict[str, Any]:
        fields = asdict(self)
        fields.pop("client_id")
        return fields
