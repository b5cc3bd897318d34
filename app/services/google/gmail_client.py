"""
Gmail API client for renewal matching.
Lists recent messages and reads their metadata (From, Subject, snippet, date).
Message bodies are never downloaded; the snippet is enough for matching.
"""

import asyncio

from app.features.renewals.domain.models import CommunicationItem
from app.infrastructure.observability.logging import get_logger
from app.services.infrastructure.api_client import ApiClientError, BaseApiClient

logger = get_logger(__name__)

GMAIL_API_BASE_URL = "https://gmail.googleapis.com/gmail/v1"
GMAIL_USER_ID = "me"
GMAIL_MAX_RESULTS = 500  # Gmail API limit
MAX_CONCURRENT_MESSAGE_FETCHES = 10


class GoogleApiError(ApiClientError):
    """Google (Gmail / Calendar) API error."""


class GmailClient(BaseApiClient):
    service_name = "Gmail"
    error_class = GoogleApiError
    error_mappings = {
        "403": "Gmail access denied. Please check permissions.",
        "404": "Email message not found.",
        "400": "Invalid Gmail request format.",
        "401": "Gmail authorization expired. Please reconnect.",
        "429": "Too many Gmail requests. Please try again later.",
        "500": "Gmail service temporarily unavailable.",
    }

    async def fetch_emails(self, limit: int = 50) -> list[CommunicationItem]:
        """
        Fetch the most recent messages as communication items.

        Message metadata is fetched concurrently, at most
        MAX_CONCURRENT_MESSAGE_FETCHES at a time.

        Args:
            limit: Maximum number of messages to return

        Returns:
            list[CommunicationItem]: Emails in the order Gmail listed them

        Raises:
            GoogleApiError: If listing messages fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/messages"
        params = {"maxResults": min(limit, GMAIL_MAX_RESULTS)}

        logger.info("Listing Gmail messages", max_results=limit)
        response = await self._request_with_retry("GET", url, params=params)
        data = self._handle_api_response(response, "list_messages")

        message_ids = [msg["id"] for msg in data.get("messages", [])]
        if not message_ids:
            logger.info("No messages found")
            return []

        semaphore = asyncio.Semaphore(MAX_CONCURRENT_MESSAGE_FETCHES)
        results = await asyncio.gather(
            *(self._get_email_with_semaphore(semaphore, message_id) for message_id in message_ids),
            return_exceptions=True,
        )

        emails = []
        for message_id, result in zip(message_ids, results):
            if isinstance(result, GoogleApiError):
                logger.warning("Failed to get message", message_id=message_id, error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            emails.append(result)

        logger.info("Messages listed successfully", message_count=len(emails))
        return emails

    async def _get_email_with_semaphore(
        self, semaphore: asyncio.Semaphore, message_id: str
    ) -> CommunicationItem:
        async with semaphore:
            return await self.get_email(message_id)

    async def get_email(self, message_id: str) -> CommunicationItem:
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/messages/{message_id}"
        params = [
            ("format", "metadata"),
            ("metadataHeaders", "From"),
            ("metadataHeaders", "Subject"),
        ]
        response = await self._request_with_retry("GET", url, params=params)
        data = self._handle_api_response(response, "get_message")
        return self.to_communication_item(data)

    @staticmethod
    def to_communication_item(data: dict) -> CommunicationItem:
        headers = {
            h.get("name", "").lower(): h.get("value", "")
            for h in (data.get("payload") or {}).get("headers", [])
        }
        return CommunicationItem.email(
            id=data.get("id"),
            sender=headers.get("from"),
            subject=headers.get("subject", "(No Subject)"),
            snippet=data.get("snippet", ""),
            timestamp_ms=data.get("internalDate"),
            thread_id=data.get("threadId"),
        )
