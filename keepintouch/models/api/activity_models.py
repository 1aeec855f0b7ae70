# keepintouch/models/api/activity_models.py
"""
Activity API request and response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from keepintouch.models.domain.activity_domain import Activity


class CreateActivityRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Activity title")
    start_time: datetime = Field(..., description="Start time")
    end_time: datetime = Field(..., description="End time")
    description: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=500)
    meeting_link: str | None = Field(None, max_length=500)
    color: str | None = Field(None, max_length=20)
    guests: list[str] = Field(default_factory=list, description="Participant contact IDs")

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class UpdateActivityRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    title: str | None = Field(None, min_length=1, max_length=200)
    start_time: datetime | None = None
    end_time: datetime | None = None
    description: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=500)
    meeting_link: str | None = Field(None, max_length=500)
    color: str | None = Field(None, max_length=20)


class UpdateParticipantsRequest(BaseModel):
    guests: list[str] = Field(..., description="Participant contact IDs")


class RescheduleActivityRequest(BaseModel):
    start_time: datetime
    end_time: datetime


class ActivityResponse(BaseModel):
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    description: str | None = None
    location: str | None = None
    meeting_link: str | None = None
    color: str | None = None
    guests: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, activity: Activity) -> "ActivityResponse":
        return cls(
            id=activity.id,
            title=activity.title,
            start_time=activity.start_time,
            end_time=activity.end_time,
            duration_minutes=activity.duration_minutes(),
            description=activity.description,
            location=activity.location,
            meeting_link=activity.meeting_link,
            color=activity.color,
            guests=activity.guests,
            created_at=activity.created_at,
            updated_at=activity.updated_at,
        )


class ActivitiesListResponse(BaseModel):
    activities: list[ActivityResponse]
    total_count: int
