"""
Activity API Routes
Scheduled activities with contacts as participants.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from keepintouch.auth.verify import current_user_id
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.api.activity_models import (
    ActivitiesListResponse,
    ActivityResponse,
    CreateActivityRequest,
    RescheduleActivityRequest,
    UpdateActivityRequest,
    UpdateParticipantsRequest,
)
from keepintouch.models.domain.activity_domain import ActivityFilters
from keepintouch.services.activities import activity_service
from keepintouch.services.activities.activity_service import (
    ActivityNotFoundError,
    ActivityValidationError,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])


def _not_found(e: ActivityNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _list_response(activities) -> ActivitiesListResponse:
    return ActivitiesListResponse(
        activities=[ActivityResponse.from_domain(a) for a in activities],
        total_count=len(activities),
    )


@router.get("", response_model=ActivitiesListResponse)
async def list_activities(
    user_id: str = Depends(current_user_id),
    start_date: datetime | None = Query(None, description="Activities starting at or after"),
    end_date: datetime | None = Query(None, description="Activities ending at or before"),
    q: str | None = Query(None, max_length=200, description="Title search"),
    participant_id: str | None = Query(None, description="Only activities with this contact"),
):
    filters = ActivityFilters(
        start_date=start_date, end_date=end_date, search_query=q, participant_id=participant_id
    )
    return _list_response(await activity_service.list_activities(user_id, filters))


@router.get("/upcoming", response_model=ActivitiesListResponse)
async def list_upcoming(user_id: str = Depends(current_user_id)):
    return _list_response(await activity_service.list_upcoming_activities(user_id))


@router.get("/past", response_model=ActivitiesListResponse)
async def list_past(user_id: str = Depends(current_user_id)):
    return _list_response(await activity_service.list_past_activities(user_id))


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(request: CreateActivityRequest, user_id: str = Depends(current_user_id)):
    activity = await activity_service.create_activity(user_id, request.model_dump())
    return ActivityResponse.from_domain(activity)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(activity_id: str, user_id: str = Depends(current_user_id)):
    try:
        activity = await activity_service.get_activity(user_id, activity_id)
    except ActivityNotFoundError as e:
        raise _not_found(e) from e
    return ActivityResponse.from_domain(activity)


@router.patch("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: str, request: UpdateActivityRequest, user_id: str = Depends(current_user_id)
):
    try:
        activity = await activity_service.update_activity(
            user_id, activity_id, request.model_dump(exclude_unset=True)
        )
    except ActivityNotFoundError as e:
        raise _not_found(e) from e
    except ActivityValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ActivityResponse.from_domain(activity)


@router.put("/{activity_id}/participants", response_model=ActivityResponse)
async def update_participants(
    activity_id: str, request: UpdateParticipantsRequest, user_id: str = Depends(current_user_id)
):
    try:
        activity = await activity_service.update_participants(user_id, activity_id, request.guests)
    except ActivityNotFoundError as e:
        raise _not_found(e) from e
    return ActivityResponse.from_domain(activity)


@router.post("/{activity_id}/reschedule", response_model=ActivityResponse)
async def reschedule_activity(
    activity_id: str, request: RescheduleActivityRequest, user_id: str = Depends(current_user_id)
):
    try:
        activity = await activity_service.reschedule_activity(
            user_id, activity_id, request.start_time, request.end_time
        )
    except ActivityNotFoundError as e:
        raise _not_found(e) from e
    except ActivityValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ActivityResponse.from_domain(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(activity_id: str, user_id: str = Depends(current_user_id)):
    try:
        await activity_service.delete_activity(user_id, activity_id)
    except ActivityNotFoundError as e:
        raise _not_found(e) from e
