"""
Tests for reminder and calendar domain models.
"""

from datetime import UTC, date, datetime

import pytest

from keepintouch.models.domain.calendar_domain import CalendarEvent, build_reminder_event
from keepintouch.models.domain.contact_domain import Contact
from keepintouch.models.domain.reminder_domain import (
    CustomRecurrence,
    RecurrenceEnds,
    RecurrenceUnit,
    ReminderFrequency,
    ReminderState,
    ReminderStatus,
)
from keepintouch.repositories.contact_repository import ContactRepository


class TestCustomRecurrence:
    def test_strings_are_coerced(self):
        recurrence = CustomRecurrence(interval=2, unit="week", ends="after", occurrences=3)
        assert recurrence.unit is RecurrenceUnit.WEEK
        assert recurrence.ends is RecurrenceEnds.AFTER

    @pytest.mark.parametrize("kwargs", [{"interval": 0}, {"interval": 1, "occurrences": 0}])
    def test_non_positive_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            CustomRecurrence(unit="day", **kwargs)

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValueError):
            CustomRecurrence(interval=1, unit="fortnight")

    def test_columns_keep_only_the_selected_end_field(self):
        recurrence = CustomRecurrence(
            interval=1, unit="month", ends="after", end_date=date(2026, 1, 1), occurrences=4
        )

        columns = recurrence.to_columns()

        assert columns["custom_recurrence_unit"] == "month"
        assert columns["custom_recurrence_ends"] == "after"
        assert columns["custom_recurrence_end_date"] is None
        assert columns["custom_recurrence_occurrences"] == 4

    def test_row_round_trip(self):
        recurrence = CustomRecurrence(interval=3, unit="day", ends="on", end_date=date(2026, 1, 1))
        assert CustomRecurrence.from_row(recurrence.to_columns()) == recurrence

    def test_from_row_without_rule(self):
        assert CustomRecurrence.from_row({"custom_recurrence_interval": None}) is None

    def test_from_row_accepts_timestamp_end_date(self):
        row = {
            "custom_recurrence_interval": 1,
            "custom_recurrence_unit": "week",
            "custom_recurrence_ends": "on",
            "custom_recurrence_end_date": "2026-03-01T00:00:00+00:00",
        }
        assert CustomRecurrence.from_row(row).end_date == date(2026, 3, 1)


class TestReminderState:
    def test_unknown_stored_frequency_is_kept_as_text(self):
        state = ReminderState.from_row({"reminder_frequency": "Every decade"})
        assert state.frequency == "Every decade"
        assert state.is_active()

    def test_contact_row(self):
        contact = Contact.from_row(
            {
                "id": "c1",
                "user_id": "u1",
                "full_name": "Jane Doe",
                "reminder_frequency": "Monthly",
                "reminder_status": "skipped",
                "custom_recurrence_completed": None,
                "tags": None,
            }
        )
        assert contact.reminder.frequency is ReminderFrequency.MONTHLY
        assert contact.reminder.status is ReminderStatus.SKIPPED
        assert contact.reminder.completed_occurrences == 0
        assert contact.tags == []

    def test_contact_row_profile_fields(self):
        contact = Contact.from_row(
            {
                "id": "c1",
                "user_id": "u1",
                "full_name": "Jane Doe",
                "friendship_score": 75,
                "gift_ideas": None,
                "scheduled_followup": datetime(2024, 6, 1, 9, tzinfo=UTC),
                "related_contacts": ["c2"],
                "reminder_frequency": "Every week",
                "preferred_reminder_day": 2,
            }
        )
        assert contact.friendship_score == 75
        assert contact.gift_ideas == []
        assert contact.scheduled_followup == datetime(2024, 6, 1, 9, tzinfo=UTC)
        assert contact.related_contacts == ["c2"]
        assert contact.reminder.preferred_day == 2

    def test_cleared_state_drops_preferred_day(self):
        state = ReminderState(frequency=ReminderFrequency.EVERY_WEEK, preferred_day=4)
        assert state.cleared().preferred_day is None

    def test_repository_columns_use_plain_values(self):
        state = ReminderState(
            frequency=ReminderFrequency.EVERY_2_WEEKS,
            status=ReminderStatus.COMPLETED,
        )

        columns = ContactRepository._reminder_columns(state)

        assert type(columns["reminder_frequency"]) is str
        assert columns["reminder_frequency"] == "Every 2 weeks"
        assert type(columns["reminder_status"]) is str
        assert columns["custom_recurrence_interval"] is None


class TestCalendarPayloads:
    def test_reminder_event_payload(self):
        start = datetime(2024, 4, 1, 12, tzinfo=UTC)

        payload = build_reminder_event(
            "Jane Doe", start, "Talked about hiking", datetime(2024, 3, 5, tzinfo=UTC)
        )

        assert payload["summary"] == "Time to contact Jane Doe"
        assert payload["end"]["dateTime"] == "2024-04-01T13:00:00+00:00"
        assert payload["reminders"]["useDefault"] is False
        assert {o["method"] for o in payload["reminders"]["overrides"]} == {"popup", "email"}
        assert "Latest Note (Mar 5, 2024):\nTalked about hiking" in payload["description"]

    def test_reminder_summary_match_is_exact(self):
        event = CalendarEvent({"id": "e1", "summary": "Time to contact Jane Doe"})
        assert event.is_reminder_for("Jane Doe")
        assert not event.is_reminder_for("Jane")

    def test_all_day_event(self):
        event = CalendarEvent({"id": "e1", "start": {"date": "2024-04-01"}})
        assert event.is_all_day()
        assert event.to_dict()["start_time"] == "2024-04-01T00:00:00+00:00"
