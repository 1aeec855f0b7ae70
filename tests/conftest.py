import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from keepintouch.auth.verify import auth_dependency
from keepintouch.models.domain.contact_domain import Contact
from keepintouch.models.domain.reminder_domain import ReminderState, ReminderStatus
from keepintouch.repositories.contact_repository import ContactRepository


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "user-123"}

    return _override


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[auth_dependency] = auth_override

    return _apply


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock(datetime(2024, 3, 2, 9, 0, tzinfo=UTC))


def make_contact(contact_id: str = "contact-1", **reminder_fields) -> Contact:
    return Contact(
        id=contact_id,
        user_id="user-123",
        full_name="Jane Doe",
        reminder=ReminderState(**reminder_fields),
    )


class FakeContactStore:
    """
    In-memory stand-in for the contacts table.

    A transaction holds `row_lock` from begin to commit, which mirrors the
    SELECT ... FOR UPDATE row lock for a single contact.
    """

    def __init__(self, *contacts: Contact):
        self.contacts = {c.id: c for c in contacts}
        self.row_lock = asyncio.Lock()
        self.calendar_event_ids: dict[str, str | None] = {}

    def _find(self, user_id: str, contact_id: str) -> Contact | None:
        contact = self.contacts.get(contact_id)
        if contact is None or contact.user_id != user_id:
            return None
        return contact

    async def get_contact(self, user_id, contact_id, *, for_update=False, connection=None):
        contact = self._find(user_id, contact_id)
        # Yield so concurrent callers interleave unless the lock serializes them
        await asyncio.sleep(0)
        return replace(contact) if contact else None

    async def save_reminder(
        self, user_id, contact_id, state, *, completed_at=None, connection=None
    ):
        contact = self._find(user_id, contact_id)
        if contact is None:
            return None
        contact.reminder = state
        if completed_at is not None:
            contact.last_contact = completed_at
        return replace(contact)

    async def set_reminder_status(self, user_id, contact_id, status):
        contact = self._find(user_id, contact_id)
        if contact is None:
            return None
        contact.reminder = replace(contact.reminder, status=ReminderStatus(status))
        return replace(contact)

    async def set_related_contacts(
        self, user_id, contact_id, related_contacts, *, connection=None
    ):
        contact = self._find(user_id, contact_id)
        if contact is None:
            return None
        contact.related_contacts = list(related_contacts)
        return replace(contact)

    async def update_contact(self, user_id, contact_id, fields):
        contact = self._find(user_id, contact_id)
        if contact is None:
            return None
        for name, value in fields.items():
            setattr(contact, name, value)
        return replace(contact)

    async def set_calendar_event_id(self, user_id, contact_id, event_id):
        self.calendar_event_ids[contact_id] = event_id
        contact = self._find(user_id, contact_id)
        if contact is not None:
            contact.calendar_event_id = event_id

    @asynccontextmanager
    async def _transaction(self):
        async with self.row_lock:
            yield object()

    async def get_db_transaction(self):
        return self._transaction()


@pytest.fixture
def install_store(monkeypatch):
    """Route ContactRepository and service transactions to a FakeContactStore."""

    def _install(*contacts: Contact) -> FakeContactStore:
        store = FakeContactStore(*contacts)
        for name in (
            "get_contact",
            "save_reminder",
            "set_reminder_status",
            "set_calendar_event_id",
            "set_related_contacts",
            "update_contact",
        ):
            monkeypatch.setattr(ContactRepository, name, getattr(store, name))
        monkeypatch.setattr(
            "keepintouch.services.reminders.reminder_service.get_db_transaction",
            store.get_db_transaction,
        )
        monkeypatch.setattr(
            "keepintouch.services.contacts.contact_service.get_db_transaction",
            store.get_db_transaction,
        )
        return store

    return _install


@pytest.fixture
def contact_factory():
    return make_contact
