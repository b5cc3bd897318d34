"""
Google Calendar API client for renewal matching.
Lists primary-calendar events over a lookback window with attendee addresses.
"""

from datetime import UTC, datetime, timedelta

from app.features.renewals.domain.models import CommunicationItem
from app.infrastructure.observability.logging import get_logger
from app.services.google.gmail_client import GoogleApiError
from app.services.infrastructure.api_client import BaseApiClient

logger = get_logger(__name__)

CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
CALENDAR_PRIMARY = "primary"
EVENTS_PAGE_SIZE = 250


class GoogleCalendarClient(BaseApiClient):
    service_name = "Calendar"
    error_class = GoogleApiError
    error_mappings = {
        "403": "Calendar access denied. Please check permissions.",
        "404": "Calendar or event not found.",
        "400": "Invalid calendar request format.",
        "401": "Calendar authorization expired. Please reconnect.",
        "429": "Too many calendar requests. Please try again later.",
        "500": "Google Calendar service temporarily unavailable.",
    }

    async def fetch_calendar_events(
        self, lookback_days: int = 90, calendar_id: str = CALENDAR_PRIMARY
    ) -> list[CommunicationItem]:
        """
        Fetch events that started within the lookback window (and later ones).

        Args:
            lookback_days: How far back to look
            calendar_id: Calendar ID (default: primary)

        Returns:
            list[CommunicationItem]: Events ordered by start time

        Raises:
            GoogleApiError: If listing events fails
        """
        url = f"{CALENDAR_API_BASE_URL}/calendars/{calendar_id}/events"
        time_min = datetime.now(UTC) - timedelta(days=lookback_days)
        params = {
            "maxResults": EVENTS_PAGE_SIZE,
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeMin": time_min.isoformat(),
        }

        logger.info("Listing calendar events", calendar_id=calendar_id, lookback_days=lookback_days)
        response = await self._request_with_retry("GET", url, params=params)
        data = self._handle_api_response(response, "list_events")

        events = [
            self.to_communication_item(item)
            for item in data.get("items", [])
            if item.get("status") != "cancelled"
        ]
        logger.info("Events listed successfully", event_count=len(events))
        return events

    @staticmethod
    def to_communication_item(item: dict) -> CommunicationItem:
        start = item.get("start") or {}
        end = item.get("end") or {}
        return CommunicationItem.event(
            id=item.get("id"),
            summary=item.get("summary", ""),
            description=item.get("description", ""),
            start=start.get("dateTime") or start.get("date"),
            end=end.get("dateTime") or end.get("date"),
            attendees=item.get("attendees", []),
        )
