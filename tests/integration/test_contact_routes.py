from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.testclient import TestClient

from keepintouch.db.helpers import DatabaseError
from keepintouch.models.domain.contact_domain import Contact
from keepintouch.models.domain.reminder_domain import (
    CustomRecurrence,
    ReminderFrequency,
    ReminderState,
    ReminderStatus,
)
from keepintouch.routes import contacts, reminders
from keepintouch.services.contacts.contact_service import ContactLinkError, ContactNotFoundError


def _create_app(apply_auth_override) -> FastAPI:
    app = FastAPI()
    app.include_router(contacts.router)
    app.include_router(reminders.router)
    apply_auth_override(app)
    return app


def _contact(**reminder_fields) -> Contact:
    return Contact(
        id="contact-1",
        user_id="user-123",
        full_name="Jane Doe",
        company="Acme",
        tags=["friends"],
        reminder=ReminderState(**reminder_fields),
    )


def test_list_contacts_passes_filters(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_list(user_id, filters):
        captured["user_id"] = user_id
        captured["filters"] = filters
        return [_contact()]

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.list_contacts", fake_list)
    client = TestClient(_create_app(apply_auth_override))

    response = client.get(
        "/contacts", params=[("status", "active"), ("tags", "friends"), ("q", "jane")]
    )

    assert response.status_code == 200
    assert response.json()["total_count"] == 1
    assert captured["user_id"] == "user-123"
    assert captured["filters"].status == ["active"]
    assert captured["filters"].tags == ["friends"]
    assert captured["filters"].search_query == "jane"


def test_list_contacts_database_error(monkeypatch, apply_auth_override):
    async def fake_list(user_id, filters):
        raise DatabaseError("boom", operation="list_contacts")

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.list_contacts", fake_list)
    client = TestClient(_create_app(apply_auth_override))

    assert client.get("/contacts").status_code == 500


def test_create_contact_serializes_notes(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_create(user_id, fields):
        captured.update(fields)
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.create_contact", fake_create)
    client = TestClient(_create_app(apply_auth_override))

    response = client.post(
        "/contacts",
        json={
            "full_name": "Jane Doe",
            "notes": [{"content": "Met at PyCon", "timestamp": "2024-05-01T10:00:00Z"}],
        },
    )

    assert response.status_code == 201
    assert captured["notes"] == [
        {"content": "Met at PyCon", "timestamp": "2024-05-01T10:00:00+00:00"}
    ]
    assert response.json()["reminder"]["status"] == "pending"


def test_get_contact_not_found(monkeypatch, apply_auth_override):
    async def fake_get(user_id, contact_id):
        raise ContactNotFoundError(contact_id)

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.get_contact", fake_get)
    client = TestClient(_create_app(apply_auth_override))

    assert client.get("/contacts/missing").status_code == 404


def test_update_contact_only_sends_present_fields(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_update(user_id, contact_id, fields):
        captured.update(fields)
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.update_contact", fake_update)
    client = TestClient(_create_app(apply_auth_override))

    response = client.patch("/contacts/contact-1", json={"company": "Globex"})

    assert response.status_code == 200
    assert captured == {"company": "Globex"}


def test_set_reminder_computes_first_reminder(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_set(
        user_id, contact_id, frequency, next_reminder, custom_recurrence=None, preferred_day=None
    ):
        captured.update(frequency=frequency, next_reminder=next_reminder)
        return _contact(frequency=frequency, next_reminder=next_reminder)

    monkeypatch.setattr("keepintouch.services.reminders.reminder_service.set_reminder", fake_set)
    client = TestClient(_create_app(apply_auth_override))

    response = client.put("/contacts/contact-1/reminder", json={"frequency": "Every week"})

    assert response.status_code == 200
    assert captured["frequency"] == ReminderFrequency.EVERY_WEEK
    assert captured["next_reminder"].hour == 12
    assert captured["next_reminder"] > datetime.now(UTC)
    assert response.json()["reminder"]["frequency"] == "Every week"


def test_set_reminder_custom_requires_rule(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.put("/contacts/contact-1/reminder", json={"frequency": "Custom"})

    assert response.status_code == 422


def test_set_reminder_custom_rule(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_set(
        user_id, contact_id, frequency, next_reminder, custom_recurrence=None, preferred_day=None
    ):
        captured["recurrence"] = custom_recurrence
        return _contact(
            frequency=frequency, next_reminder=next_reminder, custom_recurrence=custom_recurrence
        )

    monkeypatch.setattr("keepintouch.services.reminders.reminder_service.set_reminder", fake_set)
    client = TestClient(_create_app(apply_auth_override))

    response = client.put(
        "/contacts/contact-1/reminder",
        json={
            "frequency": "Custom",
            "next_reminder": "2024-04-01T12:00:00Z",
            "custom_recurrence": {"interval": 2, "unit": "week", "ends": "after", "occurrences": 4},
        },
    )

    assert response.status_code == 200
    assert captured["recurrence"] == CustomRecurrence(
        interval=2, unit="week", ends="after", occurrences=4
    )
    assert response.json()["reminder"]["custom_recurrence"]["occurrences"] == 4


def test_reminder_status_completed(monkeypatch, apply_auth_override):
    async def fake_update(user_id, contact_id, status):
        assert status == ReminderStatus.COMPLETED
        return _contact(
            frequency="Every week",
            next_reminder=datetime(2024, 3, 8, 12, tzinfo=UTC),
            status=ReminderStatus.COMPLETED,
        )

    monkeypatch.setattr(
        "keepintouch.services.reminders.reminder_service.update_reminder_status", fake_update
    )
    client = TestClient(_create_app(apply_auth_override))

    response = client.post("/contacts/contact-1/reminder/status", json={"status": "completed"})

    assert response.status_code == 200
    assert response.json()["reminder"]["status"] == "completed"


def test_reminder_status_rejects_unknown_value(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.post("/contacts/contact-1/reminder/status", json={"status": "done"})

    assert response.status_code == 422


def test_reminder_status_not_found(monkeypatch, apply_auth_override):
    async def fake_update(user_id, contact_id, status):
        raise ContactNotFoundError(contact_id)

    monkeypatch.setattr(
        "keepintouch.services.reminders.reminder_service.update_reminder_status", fake_update
    )
    client = TestClient(_create_app(apply_auth_override))

    response = client.post("/contacts/missing/reminder/status", json={"status": "skipped"})

    assert response.status_code == 404


def test_contact_preview_for_fixed_frequency(monkeypatch, apply_auth_override):
    async def fake_get(user_id, contact_id):
        return _contact(frequency="Monthly", next_reminder=datetime(2024, 1, 31, 12, tzinfo=UTC))

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.get_contact", fake_get)
    client = TestClient(_create_app(apply_auth_override))

    response = client.get("/contacts/contact-1/reminder/preview", params={"count": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["description"] == "Monthly"
    assert [o[:10] for o in data["occurrences"]] == ["2024-02-29", "2024-03-29"]


def test_contact_preview_without_reminder(monkeypatch, apply_auth_override):
    async def fake_get(user_id, contact_id):
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.get_contact", fake_get)
    client = TestClient(_create_app(apply_auth_override))

    response = client.get("/contacts/contact-1/reminder/preview")

    assert response.json() == {"occurrences": [], "description": "No reminder set"}


def test_preview_unsaved_rule(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.post(
        "/reminders/preview",
        json={
            "custom_recurrence": {
                "interval": 1,
                "unit": "month",
                "ends": "on",
                "end_date": "2026-03-01",
            },
            "anchor": "2024-01-31T12:00:00Z",
            "count": 3,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert [o[:10] for o in data["occurrences"]] == ["2024-02-29", "2024-03-31", "2024-04-30"]
    assert data["description"] == "Repeats every 1 month, until March 1, 2026"


def test_preview_rule_missing_end_date(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.post(
        "/reminders/preview",
        json={"custom_recurrence": {"interval": 1, "unit": "month", "ends": "on"}},
    )

    assert response.status_code == 422


def test_due_reminders(monkeypatch, apply_auth_override):
    async def fake_due(user_id, as_of):
        due = datetime(2024, 3, 1, 12, tzinfo=UTC)
        return [_contact(frequency="Every week", next_reminder=due)]

    monkeypatch.setattr(
        "keepintouch.services.reminders.reminder_service.get_due_reminders", fake_due
    )
    client = TestClient(_create_app(apply_auth_override))

    response = client.get("/reminders/due", params={"as_of": "2024-03-02T00:00:00Z"})

    assert response.status_code == 200
    data = response.json()
    assert data["total_count"] == 1
    assert data["contacts"][0]["full_name"] == "Jane Doe"


def test_create_contact_stores_offsetless_note_as_utc(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_create(user_id, fields):
        captured.update(fields)
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.create_contact", fake_create)
    client = TestClient(_create_app(apply_auth_override))

    response = client.post(
        "/contacts",
        json={
            "full_name": "Jane Doe",
            "notes": [{"content": "Met at PyCon", "timestamp": "2024-05-01T10:00:00"}],
            "friendship_score": 80,
            "gift_ideas": ["Board game"],
        },
    )

    assert response.status_code == 201
    assert captured["notes"][0]["timestamp"] == "2024-05-01T10:00:00+00:00"
    assert captured["friendship_score"] == 80
    assert captured["gift_ideas"] == ["Board game"]


def test_update_rejects_out_of_range_friendship_score(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.patch("/contacts/contact-1", json={"friendship_score": 120})

    assert response.status_code == 422


def test_update_profile_fields(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_update(user_id, contact_id, fields):
        captured.update(fields)
        contact = _contact()
        contact.scheduled_followup = fields["scheduled_followup"]
        contact.gift_ideas = fields["gift_ideas"]
        return contact

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.update_contact", fake_update)
    client = TestClient(_create_app(apply_auth_override))

    response = client.patch(
        "/contacts/contact-1",
        json={"scheduled_followup": "2024-06-01T09:00:00Z", "gift_ideas": ["Tea"]},
    )

    assert response.status_code == 200
    assert captured["scheduled_followup"] == datetime(2024, 6, 1, 9, tzinfo=UTC)
    assert response.json()["gift_ideas"] == ["Tea"]
    assert response.json()["scheduled_followup"].startswith("2024-06-01T09:00:00")


def test_mark_contacted_without_body(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_mark(user_id, contact_id, contacted_at=None):
        captured["contacted_at"] = contacted_at
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.mark_contacted", fake_mark)
    client = TestClient(_create_app(apply_auth_override))

    response = client.post("/contacts/contact-1/contacted")

    assert response.status_code == 200
    assert captured["contacted_at"] is None


def test_mark_contacted_with_date(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_mark(user_id, contact_id, contacted_at=None):
        captured["contacted_at"] = contacted_at
        return _contact()

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.mark_contacted", fake_mark)
    client = TestClient(_create_app(apply_auth_override))

    response = client.post(
        "/contacts/contact-1/contacted", json={"contacted_at": "2024-02-01T18:00:00Z"}
    )

    assert response.status_code == 200
    assert captured["contacted_at"] == datetime(2024, 2, 1, 18, tzinfo=UTC)


def test_link_contacts_route(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_link(user_id, contact_id, other_id):
        captured["pair"] = (contact_id, other_id)
        contact = _contact()
        contact.related_contacts = [other_id]
        return contact

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.link_contacts", fake_link)
    client = TestClient(_create_app(apply_auth_override))

    response = client.put("/contacts/contact-1/related/contact-2")

    assert response.status_code == 200
    assert captured["pair"] == ("contact-1", "contact-2")
    assert response.json()["related_contacts"] == ["contact-2"]


def test_link_contact_to_itself_is_400(monkeypatch, apply_auth_override):
    async def fake_link(user_id, contact_id, other_id):
        raise ContactLinkError("A contact cannot be related to itself")

    monkeypatch.setattr("keepintouch.services.contacts.contact_service.link_contacts", fake_link)
    client = TestClient(_create_app(apply_auth_override))

    assert client.put("/contacts/contact-1/related/contact-1").status_code == 400


def test_unlink_missing_contact_is_404(monkeypatch, apply_auth_override):
    async def fake_unlink(user_id, contact_id, other_id):
        raise ContactNotFoundError(other_id)

    monkeypatch.setattr(
        "keepintouch.services.contacts.contact_service.unlink_contacts", fake_unlink
    )
    client = TestClient(_create_app(apply_auth_override))

    assert client.delete("/contacts/contact-1/related/missing").status_code == 404


def test_set_reminder_passes_preferred_day(monkeypatch, apply_auth_override):
    captured = {}

    async def fake_set(
        user_id, contact_id, frequency, next_reminder, custom_recurrence=None, preferred_day=None
    ):
        captured.update(next_reminder=next_reminder, preferred_day=preferred_day)
        return _contact(
            frequency=frequency, next_reminder=next_reminder, preferred_day=preferred_day
        )

    monkeypatch.setattr("keepintouch.services.reminders.reminder_service.set_reminder", fake_set)
    client = TestClient(_create_app(apply_auth_override))

    response = client.put(
        "/contacts/contact-1/reminder", json={"frequency": "Every week", "preferred_day": 3}
    )

    assert response.status_code == 200
    assert captured["preferred_day"] == 3
    # Sunday-based 3 is Wednesday, which Python numbers 2
    assert captured["next_reminder"].weekday() == 2
    assert response.json()["reminder"]["preferred_day"] == 3


def test_set_reminder_rejects_bad_preferred_day(apply_auth_override):
    client = TestClient(_create_app(apply_auth_override))

    response = client.put(
        "/contacts/contact-1/reminder", json={"frequency": "Monthly", "preferred_day": 7}
    )

    assert response.status_code == 422
