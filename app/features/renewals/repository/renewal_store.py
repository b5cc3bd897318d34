"""
In-memory store for the renewals produced by the last successful sync.

One instance is created at startup and shared by everything that serves
callers. Replacement is a single critical section so concurrent syncs never
interleave their swaps.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime

from app.features.renewals.domain.models import Renewal, SyncStatus
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RenewalStore:
    def __init__(self):
        self._renewals: tuple[Renewal, ...] = ()
        self._last_sync: datetime | None = None
        self._has_synced = False
        self._lock = asyncio.Lock()

    async def replace(self, renewals: Iterable[Renewal], synced_at: datetime) -> None:
        snapshot = tuple(renewals)
        async with self._lock:
            self._renewals = snapshot
            self._last_sync = synced_at
            self._has_synced = True
        logger.debug("Renewal cache replaced", record_count=len(snapshot))

    def read(self) -> list[Renewal]:
        return list(self._renewals)

    def get(self, renewal_id: str) -> Renewal | None:
        return next((r for r in self._renewals if r.id == renewal_id), None)

    def status(self) -> SyncStatus:
        return SyncStatus(
            last_sync=self._last_sync,
            record_count=len(self._renewals),
            has_synced=self._has_synced,
        )
