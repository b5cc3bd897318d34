"""
Shared async HTTP plumbing for the HubSpot and Google connectors.
Handles client creation, retry with backoff, auth headers and error mapping.
"""

import asyncio

import httpx

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class ApiClientError(Exception):
    """Base exception for upstream API errors."""

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


class BaseApiClient:
    """
    Async API client with retry and error mapping.

    Subclasses set ``service_name`` and ``error_class`` and may override
    ``_extract_error`` and ``_map_error`` for their API's error format.
    """

    service_name = "api"
    error_class: type[ApiClientError] = ApiClientError
    error_mappings: dict[str, str] = {}

    def __init__(self, access_token: str, client: httpx.AsyncClient | None = None):
        self._access_token = access_token
        self._client = client or self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with retry and backoff."""
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(
                    method, url, headers=self._get_auth_headers(), **kwargs
                )
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        f"{self.service_name} API retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise self.error_class(f"{self.service_name} request failed: {e}") from e
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    f"{self.service_name} API request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError(f"{self.service_name} API retry loop exhausted")

    def _extract_error(self, error_data: dict) -> tuple[str, str]:
        """Return (error_code, message) from an error payload."""
        error_info = error_data.get("error", {})
        if not isinstance(error_info, dict):
            error_info = {}
        return (
            str(error_info.get("code", "unknown")),
            error_info.get("message", f"Unknown {self.service_name} API error"),
        )

    def _map_error(self, error_code: str, status_code: int, error_message: str) -> str:
        return self.error_mappings.get(
            str(status_code), f"{self.service_name} error: {error_message}"
        )

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Handle and validate an API response.

        Args:
            response: HTTP response
            operation: Operation name for logging

        Returns:
            dict: Parsed response data

        Raises:
            ApiClientError: If response contains errors (as ``error_class``)
        """
        logger.debug(
            f"{self.service_name} API {operation} response",
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(
                    f"Failed to parse {self.service_name} API {operation} response", error=str(e)
                )
                raise self.error_class(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            logger.error(
                f"{self.service_name} API {operation} failed with non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise self.error_class(
                f"{self.service_name} API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        error_code, error_message = self._extract_error(error_data)
        logger.error(
            f"{self.service_name} API {operation} failed",
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message,
        )
        raise self.error_class(
            self._map_error(error_code, response.status_code, error_message),
            error_code=error_code,
            status_code=response.status_code,
            response_data=error_data,
        )
