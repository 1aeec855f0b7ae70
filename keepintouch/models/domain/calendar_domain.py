# keepintouch/models/domain/calendar_domain.py
"""
Calendar Domain Models
Google Calendar event views and the payloads sent when mirroring
keep-in-touch reminders into the calendar.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

REMINDER_EVENT_DURATION = timedelta(hours=1)
REMINDER_OVERRIDE_MINUTES = 1440  # one day ahead
REMINDER_SUMMARY_PREFIX = "Time to contact"


class CalendarEvent:
    """Domain model for calendar events returned by the Google Calendar API."""

    def __init__(self, data: dict):
        self.id = data.get("id")
        self.summary = data.get("summary", "")
        self.description = data.get("description", "")
        self.start_time = self._parse_datetime(data.get("start", {}))
        self.end_time = self._parse_datetime(data.get("end", {}))
        self.timezone = data.get("start", {}).get("timeZone", "UTC")
        self.status = data.get("status", "confirmed")
        self.attendees = [a.get("email") for a in data.get("attendees", []) if a.get("email")]
        self.location = data.get("location", "")
        self.html_link = data.get("htmlLink")
        self.raw_data = data

    def _parse_datetime(self, dt_data: dict) -> datetime | None:
        """Parse datetime from Google Calendar format."""
        if not dt_data:
            return None

        # All-day events carry a bare date
        if "date" in dt_data:
            return datetime.strptime(dt_data["date"], "%Y-%m-%d").replace(tzinfo=UTC)

        if "dateTime" in dt_data:
            try:
                return datetime.fromisoformat(dt_data["dateTime"].replace("Z", "+00:00"))
            except ValueError:
                return None

        return None

    def is_all_day(self) -> bool:
        return "date" in self.raw_data.get("start", {})

    def is_reminder_for(self, contact_name: str) -> bool:
        """Whether this event is a keep-in-touch reminder for the named contact."""
        return self.summary == reminder_summary(contact_name)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "summary": self.summary,
            "description": self.description,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "timezone": self.timezone,
            "status": self.status,
            "location": self.location,
            "attendees": self.attendees,
            "is_all_day": self.is_all_day(),
            "html_link": self.html_link,
        }


def reminder_summary(contact_name: str) -> str:
    return f"{REMINDER_SUMMARY_PREFIX} {contact_name}"


def build_event_payload(
    summary: str,
    start_time: datetime,
    end_time: datetime,
    description: str = "",
    location: str = "",
    timezone_str: str = "UTC",
    attendees: list[str] | None = None,
    reminder_overrides: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a Google Calendar event resource."""
    payload: dict[str, Any] = {
        "summary": summary,
        "description": description,
        "start": {"dateTime": start_time.isoformat(), "timeZone": timezone_str},
        "end": {"dateTime": end_time.isoformat(), "timeZone": timezone_str},
    }
    if location:
        payload["location"] = location
    if attendees:
        payload["attendees"] = [{"email": email} for email in attendees]
    if reminder_overrides is not None:
        payload["reminders"] = {"useDefault": False, "overrides": reminder_overrides}
    return payload


def build_reminder_event(
    contact_name: str,
    next_reminder: datetime,
    note_content: str | None = None,
    note_timestamp: datetime | None = None,
) -> dict[str, Any]:
    """
    Event payload for a keep-in-touch reminder: one hour at the reminder
    time, popup and email alerts a day ahead, latest note in the description.
    """
    description = f"Recurring reminder to keep in touch with {contact_name}\n\n"
    if note_content and note_timestamp:
        noted_on = f"{note_timestamp:%b} {note_timestamp.day}, {note_timestamp.year}"
        description += f"Latest Note ({noted_on}):\n{note_content}"

    return build_event_payload(
        summary=reminder_summary(contact_name),
        start_time=next_reminder,
        end_time=next_reminder + REMINDER_EVENT_DURATION,
        description=description,
        reminder_overrides=[
            {"method": "popup", "minutes": REMINDER_OVERRIDE_MINUTES},
            {"method": "email", "minutes": REMINDER_OVERRIDE_MINUTES},
        ],
    )
