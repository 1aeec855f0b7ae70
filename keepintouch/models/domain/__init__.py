"""
Domain models shared by repositories, services and routes.
"""

from .activity_domain import Activity, ActivityFilters
from .contact_domain import (
    Contact,
    ContactFilters,
    ContactNote,
    ImportedContactCandidate,
    latest_note,
)
from .reminder_domain import (
    CustomRecurrence,
    RecurrenceEnds,
    RecurrenceUnit,
    ReminderFrequency,
    ReminderState,
    ReminderStatus,
)

__all__ = [
    "Activity",
    "ActivityFilters",
    "Contact",
    "ContactFilters",
    "ContactNote",
    "CustomRecurrence",
    "ImportedContactCandidate",
    "RecurrenceEnds",
    "RecurrenceUnit",
    "ReminderFrequency",
    "ReminderState",
    "ReminderStatus",
    "latest_note",
]
