"""
Activity Domain Models
Scheduled activities (the `events` table) and their list filters.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class Activity:
    id: str
    user_id: str
    title: str
    start_time: datetime
    end_time: datetime
    description: str | None = None
    location: str | None = None
    meeting_link: str | None = None
    color: str | None = None
    guests: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Activity":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row["title"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            description=row.get("description"),
            location=row.get("location"),
            meeting_link=row.get("meeting_link"),
            color=row.get("color"),
            guests=[str(g) for g in row.get("guests") or []],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() / 60)


@dataclass(slots=True)
class ActivityFilters:
    start_date: datetime | None = None
    end_date: datetime | None = None
    search_query: str | None = None
    participant_id: str | None = None
