import re
from datetime import UTC, datetime

import pytest

from keepintouch.services.calendar.google_client import (
    GOOGLE_TOKEN_URL,
    GoogleCalendarError,
    GoogleCalendarService,
)

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
EVENTS_URL_PATTERN = re.compile(re.escape(EVENTS_URL) + r"(\?.*)?$")


def make_service() -> GoogleCalendarService:
    return GoogleCalendarService(
        client_id="client-id", client_secret="client-secret", refresh_token="refresh-token"
    )


def add_token_response(httpx_mock, token="access-token"):
    httpx_mock.add_response(
        method="POST",
        url=GOOGLE_TOKEN_URL,
        json={"access_token": token, "expires_in": 3600, "token_type": "Bearer"},
    )


@pytest.mark.asyncio
async def test_list_events_refreshes_token_once(httpx_mock):
    service = make_service()

    add_token_response(httpx_mock)
    for _ in range(2):
        httpx_mock.add_response(
            method="GET",
            url=EVENTS_URL_PATTERN,
            json={
                "items": [
                    {
                        "id": "event-1",
                        "status": "confirmed",
                        "summary": "Time to contact Jane Doe",
                        "start": {"dateTime": "2024-04-01T12:00:00Z"},
                        "end": {"dateTime": "2024-04-01T13:00:00Z"},
                    }
                ]
            },
        )

    events = await service.list_events(query="Time to contact Jane Doe")
    await service.list_events()
    await service.close()

    assert len(events) == 1
    assert events[0].id == "event-1"
    assert events[0].start_time == datetime(2024, 4, 1, 12, tzinfo=UTC)

    requests = httpx_mock.get_requests()
    token_requests = [r for r in requests if str(r.url) == GOOGLE_TOKEN_URL]
    assert len(token_requests) == 1
    assert b"grant_type=refresh_token" in token_requests[0].content

    list_request = requests[1]
    assert list_request.headers["Authorization"] == "Bearer access-token"
    assert list_request.url.params["q"] == "Time to contact Jane Doe"
    assert list_request.url.params["singleEvents"] == "true"
    assert list_request.url.params["orderBy"] == "startTime"


@pytest.mark.asyncio
async def test_create_event_success(httpx_mock):
    service = make_service()

    add_token_response(httpx_mock)
    httpx_mock.add_response(
        method="POST",
        url=EVENTS_URL,
        json={
            "id": "event-2",
            "summary": "Coffee",
            "start": {"dateTime": "2024-04-01T12:00:00Z"},
            "end": {"dateTime": "2024-04-01T13:00:00Z"},
        },
    )

    event = await service.create_event(
        {
            "summary": "Coffee",
            "start": {"dateTime": "2024-04-01T12:00:00Z"},
            "end": {"dateTime": "2024-04-01T13:00:00Z"},
        }
    )
    await service.close()

    assert event.id == "event-2"
    assert event.summary == "Coffee"


@pytest.mark.asyncio
async def test_create_event_error_mapping(httpx_mock):
    service = make_service()

    add_token_response(httpx_mock)
    httpx_mock.add_response(
        method="POST",
        url=EVENTS_URL,
        status_code=403,
        json={"error": {"code": 403, "message": "Insufficient Permission"}},
    )

    with pytest.raises(GoogleCalendarError) as exc:
        await service.create_event({"summary": "Coffee", "start": {}, "end": {}})
    await service.close()

    assert exc.value.status_code == 403
    assert "access denied" in str(exc.value).lower()


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [204, 404, 410])
async def test_delete_event_treats_gone_as_deleted(httpx_mock, status_code):
    service = make_service()

    add_token_response(httpx_mock)
    httpx_mock.add_response(
        method="DELETE", url=f"{EVENTS_URL}/event-1", status_code=status_code
    )

    assert await service.delete_event("event-1") is True
    await service.close()


@pytest.mark.asyncio
async def test_delete_event_unauthorized(httpx_mock):
    service = make_service()

    add_token_response(httpx_mock)
    httpx_mock.add_response(
        method="DELETE",
        url=f"{EVENTS_URL}/event-1",
        status_code=401,
        json={"error": {"code": 401, "message": "Invalid Credentials"}},
    )

    with pytest.raises(GoogleCalendarError) as exc:
        await service.delete_event("event-1")
    await service.close()

    assert "authorization" in str(exc.value).lower()


@pytest.mark.asyncio
async def test_delete_existing_reminders_matches_exact_summary(httpx_mock):
    service = make_service()

    add_token_response(httpx_mock)
    httpx_mock.add_response(
        method="GET",
        url=EVENTS_URL_PATTERN,
        json={
            "items": [
                {"id": "e1", "summary": "Time to contact Jane Doe"},
                {"id": "e2", "summary": "Time to contact Jane Doe Jr"},
            ]
        },
    )
    httpx_mock.add_response(method="DELETE", url=f"{EVENTS_URL}/e1", status_code=204)

    deleted = await service.delete_existing_reminders("Jane Doe")
    await service.close()

    assert deleted == 1
    delete_requests = [r for r in httpx_mock.get_requests() if r.method == "DELETE"]
    assert [r.url.path.rsplit("/", 1)[-1] for r in delete_requests] == ["e1"]


@pytest.mark.asyncio
async def test_token_refresh_rejected(httpx_mock):
    service = make_service()

    httpx_mock.add_response(
        method="POST",
        url=GOOGLE_TOKEN_URL,
        status_code=400,
        json={"error": "invalid_grant", "error_description": "Token has been expired or revoked."},
    )

    with pytest.raises(GoogleCalendarError) as exc:
        await service.get_access_token()
    await service.close()

    assert exc.value.error_code == "invalid_grant"
    assert "reconnect" in str(exc.value).lower()


@pytest.mark.asyncio
async def test_missing_credentials():
    service = make_service()
    service.refresh_token = None

    with pytest.raises(GoogleCalendarError) as exc:
        await service.get_access_token()
    await service.close()

    assert exc.value.error_code == "not_configured"
