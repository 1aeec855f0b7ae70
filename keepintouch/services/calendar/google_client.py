"""
Google Calendar API client used to mirror keep-in-touch reminders.

Authenticates with the account's long-lived refresh token, caches the
short-lived access token, and wraps the events endpoints with retry,
backoff and error mapping.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from keepintouch.config import settings
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.calendar_domain import CalendarEvent, reminder_summary

logger = get_logger(__name__)

# Google Calendar API configuration
CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_PRIMARY = "primary"

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
TOKEN_EXPIRY_MARGIN = timedelta(minutes=5)


class GoogleCalendarError(Exception):
    """Custom exception for Google Calendar API errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data or {}


class GoogleCalendarService:
    """
    Event operations against a single Google account.

    Credentials default to the GOOGLE_* settings; tests and scripts can
    pass their own.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
    ):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.refresh_token = refresh_token or settings.GOOGLE_REFRESH_TOKEN
        self._access_token: str | None = None
        self._token_expires_at: datetime | None = None
        self._token_lock = asyncio.Lock()
        self._client = self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with retry and backoff."""
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(method, url, **kwargs)
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        "Calendar API retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "Calendar API request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError("Calendar API retry loop exhausted")

    # ------------------------------------------------------------------
    # Access token
    # ------------------------------------------------------------------

    def _token_is_fresh(self) -> bool:
        return (
            self._access_token is not None
            and self._token_expires_at is not None
            and datetime.now(UTC) + TOKEN_EXPIRY_MARGIN < self._token_expires_at
        )

    async def get_access_token(self) -> str:
        """
        Current access token, refreshed from the refresh token when missing
        or about to expire.

        Raises:
            GoogleCalendarError: If credentials are missing or Google rejects them
        """
        async with self._token_lock:
            if self._token_is_fresh():
                return self._access_token

            if not (self.client_id and self.client_secret and self.refresh_token):
                raise GoogleCalendarError(
                    "Google Calendar credentials are not configured",
                    error_code="not_configured",
                )

            data = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            }

            try:
                response = await self._request_with_retry("POST", GOOGLE_TOKEN_URL, data=data)
            except httpx.RequestError as e:
                logger.error("Network error during token refresh", error=str(e))
                raise GoogleCalendarError(f"Network error during token refresh: {e}") from e

            if not response.is_success:
                try:
                    error_data = response.json() if response.text else {}
                except ValueError:
                    error_data = {"error_description": response.text[:200]}
                logger.error(
                    "Google token refresh failed",
                    status_code=response.status_code,
                    error_code=error_data.get("error"),
                )
                raise GoogleCalendarError(
                    "Calendar authorization expired. Please reconnect.",
                    error_code=error_data.get("error", "token_refresh_failed"),
                    status_code=response.status_code,
                    response_data=error_data,
                )

            token_data = response.json()
            self._access_token = token_data["access_token"]
            self._token_expires_at = datetime.now(UTC) + timedelta(
                seconds=int(token_data.get("expires_in", 3600))
            )
            logger.info(
                "Google access token refreshed", expires_at=self._token_expires_at.isoformat()
            )
            return self._access_token

    async def _get_auth_headers(self) -> dict:
        access_token = await self.get_access_token()
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Validate a Calendar API response.

        Returns:
            dict: Parsed response data (empty for bodiless success)

        Raises:
            GoogleCalendarError: If response contains errors
        """
        logger.debug(
            "Calendar API response",
            operation=operation,
            status_code=response.status_code,
        )

        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(
                    "Failed to parse Calendar API response", operation=operation, error=str(e)
                )
                raise GoogleCalendarError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            logger.error(
                "Calendar API failed with non-JSON response",
                operation=operation,
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise GoogleCalendarError(
                f"Calendar API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        error_info = error_data.get("error", {})
        error_code = str(error_info.get("code", response.status_code))
        error_message = error_info.get("message", "Unknown Calendar API error")

        logger.error(
            "Calendar API request failed",
            operation=operation,
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message,
        )

        raise GoogleCalendarError(
            self._map_calendar_error(error_code, error_message),
            error_code=error_code,
            status_code=response.status_code,
            response_data=error_data,
        )

    def _map_calendar_error(self, error_code: str, error_message: str) -> str:
        """Map Calendar API error codes to user-friendly messages."""
        error_mappings = {
            "403": "Calendar access denied. Please check permissions.",
            "404": "Calendar or event not found.",
            "400": "Invalid calendar request format.",
            "401": "Calendar authorization expired. Please reconnect.",
            "429": "Too many calendar requests. Please try again later.",
            "500": "Google Calendar service temporarily unavailable.",
        }

        return error_mappings.get(error_code, f"Calendar error: {error_message}")

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        gone_ok: bool = False,
        **kwargs,
    ) -> dict:
        """
        Authenticated Calendar API call returning the parsed body.

        With `gone_ok`, 404 and 410 count as success and return an empty
        dict. Anything other than GoogleCalendarError is wrapped in one.
        """
        try:
            headers = await self._get_auth_headers()
            response = await self._request_with_retry(
                method, f"{CALENDAR_API_BASE_URL}{path}", headers=headers, **kwargs
            )
            if gone_ok and response.status_code in (404, 410):
                logger.info("Calendar resource already gone", operation=operation, path=path)
                return {}
            return self._handle_api_response(response, operation)
        except GoogleCalendarError:
            raise
        except Exception as e:
            logger.error("Unexpected Calendar API error", operation=operation, error=str(e))
            raise GoogleCalendarError(f"Failed to {operation.replace('_', ' ')}: {e}") from e

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def list_events(
        self,
        calendar_id: str = CALENDAR_PRIMARY,
        time_min: datetime | None = None,
        time_max: datetime | None = None,
        query: str | None = None,
        max_results: int = 250,
    ) -> list[CalendarEvent]:
        """
        Single (expanded) events ordered by start time, from `time_min`
        (default now) up to the optional `time_max`. `query` is Google's
        free-text `q` filter.
        """
        params: dict[str, Any] = {
            "maxResults": max_results,
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeMin": (time_min or datetime.now(UTC)).isoformat(),
        }
        if time_max:
            params["timeMax"] = time_max.isoformat()
        if query:
            params["q"] = query

        data = await self._call(
            "list_events", "GET", f"/calendars/{calendar_id}/events", params=params
        )
        events = [CalendarEvent(item) for item in data.get("items", [])]
        logger.info("Calendar events listed", calendar_id=calendar_id, event_count=len(events))
        return events

    async def create_event(
        self, event_data: dict[str, Any], calendar_id: str = CALENDAR_PRIMARY
    ) -> CalendarEvent:
        """Create an event from a resource built by calendar_domain helpers."""
        data = await self._call(
            "create_event", "POST", f"/calendars/{calendar_id}/events", json=event_data
        )
        event = CalendarEvent(data)
        logger.info("Calendar event created", event_id=event.id, summary=event.summary)
        return event

    async def delete_event(self, event_id: str, calendar_id: str = CALENDAR_PRIMARY) -> bool:
        """Delete an event; one Google reports as already gone counts as deleted."""
        await self._call(
            "delete_event",
            "DELETE",
            f"/calendars/{calendar_id}/events/{event_id}",
            gone_ok=True,
        )
        logger.info("Calendar event deleted", event_id=event_id, calendar_id=calendar_id)
        return True

    async def delete_existing_reminders(
        self, contact_name: str, calendar_id: str = CALENDAR_PRIMARY
    ) -> int:
        """Delete every upcoming reminder event for a contact and return how many went."""
        summary = reminder_summary(contact_name)
        events = await self.list_events(calendar_id=calendar_id, query=summary)

        deleted = 0
        for event in events:
            if event.is_reminder_for(contact_name) and event.id:
                await self.delete_event(event.id, calendar_id=calendar_id)
                deleted += 1

        logger.info("Reminder events removed", calendar_id=calendar_id, deleted=deleted)
        return deleted


google_calendar_service = GoogleCalendarService()
