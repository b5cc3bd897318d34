from app.config import settings
from app.infrastructure.observability.logging import get_logger

from .calendar_client import GoogleCalendarClient
from .gmail_client import GmailClient, GoogleApiError

logger = get_logger(__name__)


def google_clients_from_settings() -> tuple[GmailClient | None, GoogleCalendarClient | None]:
    """Build Gmail and Calendar clients from the configured Google token."""
    if not settings.google_connected():
        logger.info("Google not connected, emails and events will be empty")
        return None, None
    token = settings.GOOGLE_ACCESS_TOKEN
    return GmailClient(token), GoogleCalendarClient(token)


__all__ = ["GmailClient", "GoogleApiError", "GoogleCalendarClient", "google_clients_from_settings"]
