"""
Renewal sync service - fetches every source, assembles renewals, swaps the cache.

A source that fails or times out contributes an empty collection and the sync
carries on. Only a failure while assembling renewals fails the whole sync,
and in that case the previous cache is left as it was.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from functools import partial
from typing import Protocol

from app.features.renewals.domain.models import (
    CommunicationItem,
    Deal,
    Renewal,
    SyncResult,
    SyncStatus,
)
from app.features.renewals.pipeline.enrichment.service import RenewalAssembler
from app.features.renewals.repository.renewal_store import RenewalStore
from app.infrastructure.observability.logging import get_logger, log_sync_result

logger = get_logger(__name__)


class DealSource(Protocol):
    async def fetch_deals(self) -> list[Deal]: ...


class EmailSource(Protocol):
    async def fetch_emails(self, limit: int) -> list[CommunicationItem]: ...


class CalendarSource(Protocol):
    async def fetch_calendar_events(self, lookback_days: int) -> list[CommunicationItem]: ...


class SyncOrchestrator:
    DEFAULT_EMAIL_LIMIT = 50
    DEFAULT_LOOKBACK_DAYS = 90
    DEFAULT_FETCH_TIMEOUT = 30.0

    def __init__(
        self,
        store: RenewalStore,
        deal_source: DealSource | None = None,
        email_source: EmailSource | None = None,
        calendar_source: CalendarSource | None = None,
        assembler: RenewalAssembler | None = None,
        email_limit: int = DEFAULT_EMAIL_LIMIT,
        calendar_lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self._store = store
        self._deal_source = deal_source
        self._email_source = email_source
        self._calendar_source = calendar_source
        self._assembler = assembler or RenewalAssembler()
        self._email_limit = email_limit
        self._calendar_lookback_days = calendar_lookback_days
        self._fetch_timeout = fetch_timeout

    async def sync(self) -> SyncResult:
        """
        Run one full fetch-match-cache cycle.

        Returns:
            SyncResult with counts and timing, or success=False with the
            assembly error message
        """
        started = time.perf_counter()
        source_errors: dict[str, str] = {}

        logger.info("Renewal sync starting")

        fetch_deals = fetch_emails = fetch_events = None
        if self._deal_source is not None:
            fetch_deals = self._deal_source.fetch_deals
        if self._email_source is not None:
            fetch_emails = partial(self._email_source.fetch_emails, self._email_limit)
        if self._calendar_source is not None:
            fetch_events = partial(
                self._calendar_source.fetch_calendar_events, self._calendar_lookback_days
            )

        deals, emails, events = await asyncio.gather(
            self._fetch_source("hubspot_deals", fetch_deals, source_errors),
            self._fetch_source("gmail_messages", fetch_emails, source_errors),
            self._fetch_source("calendar_events", fetch_events, source_errors),
        )

        logger.info(
            "Sources fetched",
            deal_count=len(deals),
            email_count=len(emails),
            event_count=len(events),
            failed_sources=sorted(source_errors),
        )

        try:
            renewals = self._assembler.assemble(deals, emails, events)
        except Exception as e:
            duration_ms = int((time.perf_counter() - started) * 1000)
            logger.exception("Renewal assembly failed", error=str(e))
            log_sync_result(success=False, duration_ms=duration_ms, error=str(e))
            return SyncResult(success=False, error=str(e), duration_ms=duration_ms)

        synced_at = datetime.now(UTC)
        await self._store.replace(renewals, synced_at)

        duration_ms = int((time.perf_counter() - started) * 1000)
        log_sync_result(
            success=True,
            duration_ms=duration_ms,
            renewal_count=len(renewals),
            emails_analyzed=len(emails),
            meetings_found=len(events),
        )
        return SyncResult(
            success=True,
            renewal_count=len(renewals),
            emails_analyzed=len(emails),
            meetings_found=len(events),
            last_sync=synced_at,
            duration_ms=duration_ms,
            source_errors=source_errors,
        )

    async def _fetch_source(
        self,
        source_name: str,
        fetch: Callable[[], Awaitable[list]] | None,
        source_errors: dict[str, str],
    ) -> list:
        if not fetch:
            logger.info("Source not configured, using empty data", source=source_name)
            return []

        try:
            result = await asyncio.wait_for(fetch(), timeout=self._fetch_timeout)
        except TimeoutError:
            logger.warning(
                "Source fetch timed out, using empty data",
                source=source_name,
                timeout_seconds=self._fetch_timeout,
            )
            source_errors[source_name] = "timeout"
            return []
        except Exception as e:
            logger.warning("Source fetch failed, using empty data", source=source_name, error=str(e))
            source_errors[source_name] = str(e)
            return []

        return list(result or [])

    def get_renewals(self) -> list[Renewal]:
        return self._store.read()

    def get_renewal(self, renewal_id: str) -> Renewal | None:
        return self._store.get(renewal_id)

    def get_sync_status(self) -> SyncStatus:
        return self._store.status()

    def connector_status(self) -> dict[str, bool]:
        return {
            "hubspot": self._deal_source is not None,
            "gmail": self._email_source is not None,
            "calendar": self._calendar_source is not None,
        }
