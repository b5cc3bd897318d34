from datetime import UTC, datetime

import pytest

from app.features.renewals.pipeline.enrichment.service import RenewalAssembler
from tests.conftest import build_deal


def _renewals(*ids):
    return RenewalAssembler().assemble([build_deal(id=i) for i in ids], [], [])


def test_new_store_has_not_synced(store):
    status = store.status()

    assert status.has_synced is False
    assert status.record_count == 0
    assert status.last_sync is None
    assert store.read() == []


@pytest.mark.asyncio
async def test_replace_swaps_whole_collection(store):
    first = datetime(2026, 10, 1, tzinfo=UTC)
    second = datetime(2026, 10, 2, tzinfo=UTC)

    await store.replace(_renewals("1", "2"), first)
    await store.replace(_renewals("3"), second)

    assert [r.id for r in store.read()] == ["R-3"]
    assert store.status().last_sync == second
    assert store.get("R-1") is None
    assert store.get("R-3").crm_record_id == "3"


@pytest.mark.asyncio
async def test_empty_sync_still_counts_as_synced(store):
    await store.replace([], datetime(2026, 10, 1, tzinfo=UTC))

    assert store.status().has_synced is True
    assert store.status().record_count == 0


@pytest.mark.asyncio
async def test_read_returns_a_copy(store):
    await store.replace(_renewals("1"), datetime(2026, 10, 1, tzinfo=UTC))

    snapshot = store.read()
    snapshot.clear()

    assert len(store.read()) == 1
