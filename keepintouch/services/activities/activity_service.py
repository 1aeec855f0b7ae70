"""
Activity service: scheduled activities with contacts as participants.
"""

from datetime import UTC, datetime
from typing import Any

from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.activity_domain import Activity, ActivityFilters
from keepintouch.repositories.activity_repository import ActivityRepository

logger = get_logger(__name__)


class ActivityNotFoundError(Exception):
    """Raised when an activity does not exist for the calling user."""

    def __init__(self, activity_id: str):
        super().__init__(f"Activity not found: {activity_id}")
        self.activity_id = activity_id


class ActivityValidationError(Exception):
    """Raised when an activity would end before it starts."""


def _check_time_range(start_time: datetime | None, end_time: datetime | None) -> None:
    if start_time and end_time and end_time < start_time:
        raise ActivityValidationError("Activity end time must not be before its start time")


async def create_activity(user_id: str, fields: dict[str, Any]) -> Activity:
    _check_time_range(fields.get("start_time"), fields.get("end_time"))
    return await ActivityRepository.create_activity(user_id, fields)


async def get_activity(user_id: str, activity_id: str) -> Activity:
    activity = await ActivityRepository.get_activity(user_id, activity_id)
    if activity is None:
        raise ActivityNotFoundError(activity_id)
    return activity


async def list_activities(user_id: str, filters: ActivityFilters | None = None) -> list[Activity]:
    return await ActivityRepository.list_activities(user_id, filters)


async def list_upcoming_activities(user_id: str, now: datetime | None = None) -> list[Activity]:
    return await ActivityRepository.list_activities(
        user_id, ActivityFilters(start_date=now or datetime.now(UTC))
    )


async def list_past_activities(user_id: str, now: datetime | None = None) -> list[Activity]:
    return await ActivityRepository.list_activities(
        user_id, ActivityFilters(end_date=now or datetime.now(UTC))
    )


async def update_activity(user_id: str, activity_id: str, fields: dict[str, Any]) -> Activity:
    if "start_time" in fields or "end_time" in fields:
        current = await get_activity(user_id, activity_id)
        _check_time_range(
            fields.get("start_time", current.start_time),
            fields.get("end_time", current.end_time),
        )

    activity = await ActivityRepository.update_activity(user_id, activity_id, fields)
    if activity is None:
        raise ActivityNotFoundError(activity_id)
    return activity


async def update_participants(user_id: str, activity_id: str, guests: list[str]) -> Activity:
    activity = await ActivityRepository.update_participants(user_id, activity_id, guests)
    if activity is None:
        raise ActivityNotFoundError(activity_id)
    logger.info("Activity participants updated", activity_id=activity_id, guest_count=len(guests))
    return activity


async def reschedule_activity(
    user_id: str, activity_id: str, start_time: datetime, end_time: datetime
) -> Activity:
    _check_time_range(start_time, end_time)
    activity = await ActivityRepository.reschedule(user_id, activity_id, start_time, end_time)
    if activity is None:
        raise ActivityNotFoundError(activity_id)
    logger.info("Activity rescheduled", activity_id=activity_id, start_time=start_time.isoformat())
    return activity


async def delete_activity(user_id: str, activity_id: str) -> None:
    if not await ActivityRepository.delete_activity(user_id, activity_id):
        raise ActivityNotFoundError(activity_id)
