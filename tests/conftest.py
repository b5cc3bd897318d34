from datetime import UTC, datetime

import pytest

from app.features.renewals.domain.models import (
    AssociatedCompany,
    CommunicationItem,
    Deal,
    PrimaryContact,
)
from app.features.renewals.repository.renewal_store import RenewalStore


def build_deal(id="101", name="TechCorp Renewal", contact_email=None, **overrides):
    contact = overrides.pop("primary_contact", None)
    if contact is None and contact_email:
        contact = PrimaryContact(
            id="c-1",
            first_name="Dana",
            last_name="Reyes",
            email=contact_email,
            phone="555-0100",
            company="TechCorp",
        )
    fields = {
        "id": id,
        "name": name,
        "amount": 250000.0,
        "coverage_premium": 200000.0,
        "commission_amount": 25000.0,
        "commission_percent": 10.0,
        "policy_limit": 5000000.0,
        "close_date": "2026-12-31",
        "deal_stage": "qualifiedtobuy",
        "primary_contact": contact,
        "associated_company": None,
    }
    fields.update(overrides)
    return Deal(**fields)


def build_email(id="msg-1", sender="someone@example.com", subject="Hello", snippet="", ts=None):
    if ts is None:
        ts = int(datetime(2026, 9, 1, tzinfo=UTC).timestamp() * 1000)
    return CommunicationItem.email(
        id=id,
        sender=sender,
        subject=subject,
        snippet=snippet,
        timestamp_ms=ts,
        thread_id=f"thread-{id}",
    )


def build_event(id="evt-1", summary="Sync", description="", attendees=(), start="2026-09-02T10:00:00Z"):
    return CommunicationItem.event(
        id=id,
        summary=summary,
        description=description,
        start=start,
        end=start,
        attendees=list(attendees),
    )


class FakeDealSource:
    def __init__(self, deals=None, error: Exception | None = None):
        self.deals = deals or []
        self.error = error
        self.calls = 0

    async def fetch_deals(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.deals


class FakeEmailSource:
    def __init__(self, emails=None, error: Exception | None = None):
        self.emails = emails or []
        self.error = error
        self.requested_limit: int | None = None

    async def fetch_emails(self, limit: int):
        self.requested_limit = limit
        if self.error:
            raise self.error
        return self.emails[:limit]


class FakeCalendarSource:
    def __init__(self, events=None, error: Exception | None = None):
        self.events = events or []
        self.error = error
        self.requested_lookback: int | None = None

    async def fetch_calendar_events(self, lookback_days: int):
        self.requested_lookback = lookback_days
        if self.error:
            raise self.error
        return self.events


@pytest.fixture
def store():
    return RenewalStore()


@pytest.fixture
def techcorp_deal():
    return build_deal(
        id="101",
        name="TechCorp Renewal",
        contact_email="ceo@techcorp.com",
        associated_company=AssociatedCompany(id="co-1", name="TechCorp Inc"),
    )
