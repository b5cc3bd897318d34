"""
Domain models for the renewals feature.

Deals come from the CRM, communication items from Gmail and Google Calendar.
The assembler turns one deal plus its matched communications into a
``Renewal``. Everything here is a plain dataclass so repositories, services
and the API layer can share the shapes without pulling in business logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from email.utils import parseaddr
from enum import Enum
from typing import Any


def optional_amount(value: Any) -> float:
    """Parse a possibly-missing CRM numeric field, treating absence as zero."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_domain(address: str | None) -> str | None:
    if not address or "@" not in address:
        return None
    return address.split("@", 1)[1].strip().lower() or None


def parse_event_start(raw: str | None) -> int | None:
    """Convert a Google Calendar start value (dateTime or date) to epoch ms."""
    if not raw:
        return None
    try:
        if "T" not in raw:
            parsed = datetime.strptime(raw, "%Y-%m-%d").replace(tzinfo=UTC)
        else:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
    except ValueError:
        return None
    return int(parsed.timestamp() * 1000)


def ms_to_iso_date(timestamp_ms: int | None) -> str | None:
    if not timestamp_ms:
        return None
    return datetime.fromtimestamp(timestamp_ms / 1000, UTC).date().isoformat()


# =================================================================
# CRM
# =================================================================


@dataclass(frozen=True, slots=True)
class PrimaryContact:
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @classmethod
    def from_hubspot(cls, record: dict) -> PrimaryContact:
        props = record.get("properties") or {}
        return cls(
            id=optional_text(record.get("id")),
            first_name=optional_text(props.get("firstname")),
            last_name=optional_text(props.get("lastname")),
            email=optional_text(props.get("email")),
            phone=optional_text(props.get("phone")),
            company=optional_text(props.get("company")),
        )


@dataclass(frozen=True, slots=True)
class AssociatedCompany:
    id: str | None = None
    name: str | None = None

    @classmethod
    def from_hubspot(cls, record: dict) -> AssociatedCompany:
        props = record.get("properties") or {}
        return cls(id=optional_text(record.get("id")), name=optional_text(props.get("name")))


@dataclass(frozen=True, slots=True)
class Deal:
    """A CRM deal with at most one resolved contact and company."""

    id: str | None
    name: str = ""
    product_line: str | None = None
    carrier_group: str | None = None
    client_name: str | None = None
    amount: float = 0.0
    coverage_premium: float = 0.0
    commission_amount: float = 0.0
    commission_percent: float = 0.0
    policy_limit: float = 0.0
    close_date: str | None = None
    deal_stage: str | None = None
    primary_contact: PrimaryContact | None = None
    associated_company: AssociatedCompany | None = None

    @classmethod
    def from_hubspot(
        cls,
        record: dict,
        primary_contact: PrimaryContact | None = None,
        associated_company: AssociatedCompany | None = None,
    ) -> Deal:
        props = record.get("properties") or {}
        return cls(
            id=optional_text(record.get("id")),
            name=optional_text(props.get("dealname")) or "",
            product_line=optional_text(props.get("product_line")),
            carrier_group=optional_text(props.get("carrier_group")),
            client_name=optional_text(props.get("client_name")),
            amount=optional_amount(props.get("amount")),
            coverage_premium=optional_amount(props.get("coverage_premium")),
            commission_amount=optional_amount(props.get("commission_amount")),
            commission_percent=optional_amount(props.get("commission_percent")),
            policy_limit=optional_amount(props.get("policy_limit")),
            close_date=optional_text(props.get("closedate")),
            deal_stage=optional_text(props.get("dealstage")),
            primary_contact=primary_contact,
            associated_company=associated_company,
        )


@dataclass(frozen=True, slots=True)
class PlacementRecord:
    """One row of the broker's renewals CSV export, keyed by placement name."""

    placement_name: str
    client: str | None = None
    product_line: str | None = None
    carrier_group: str | None = None
    specialist: str | None = None
    total_premium: float = 0.0
    coverage_premium: float = 0.0
    commission_amount: float = 0.0
    policy_limit: float = 0.0
    commission_percent: float = 0.0
    expiry_date: str | None = None

    @classmethod
    def from_csv_row(cls, row: dict[str, str]) -> PlacementRecord:
        # Column spellings follow the export, typos included
        return cls(
            placement_name=(row.get("Placement Name") or "").strip(),
            client=optional_text(row.get("Client")),
            product_line=optional_text(row.get("Product Line")),
            carrier_group=optional_text(row.get("Carrier Group")),
            specialist=optional_text(row.get("Placement Specialist")),
            total_premium=optional_amount(row.get("Total Premium")),
            coverage_premium=optional_amount(row.get("Coverage Premium Amount")),
            commission_amount=optional_amount(row.get("Comission Amount")),
            policy_limit=optional_amount(row.get("Limit")),
            commission_percent=optional_amount(row.get("Comission %")),
            expiry_date=optional_text(row.get("Placement Expiry Date")),
        )


# =================================================================
# COMMUNICATIONS
# =================================================================


class CommunicationKind(str, Enum):
    EMAIL = "email"
    EVENT = "event"


@dataclass(frozen=True, slots=True)
class CommunicationItem:
    """An email or calendar event in the unified shape used for matching."""

    kind: CommunicationKind
    id: str
    timestamp_ms: int | None = None
    subject: str = ""
    body: str = ""
    sender: str | None = None
    domain: str | None = None
    attendees: tuple[str, ...] = ()
    thread_id: str | None = None
    sender_display: str | None = None
    start: str | None = None
    end: str | None = None

    @classmethod
    def email(
        cls,
        id: str,
        sender: str | None,
        subject: str | None = "",
        snippet: str | None = "",
        timestamp_ms: int | str | None = None,
        thread_id: str | None = None,
    ) -> CommunicationItem:
        _, address = parseaddr(sender or "")
        address = address.strip().lower() or None
        return cls(
            kind=CommunicationKind.EMAIL,
            id=id,
            timestamp_ms=int(optional_amount(timestamp_ms)) or None,
            subject=subject or "",
            body=snippet or "",
            sender=address,
            domain=extract_domain(address),
            thread_id=thread_id,
            sender_display=sender,
        )

    @classmethod
    def event(
        cls,
        id: str,
        summary: str | None = "",
        description: str | None = "",
        start: str | None = None,
        end: str | None = None,
        attendees: list[Any] | tuple[Any, ...] = (),
    ) -> CommunicationItem:
        addresses = []
        for attendee in attendees or ():
            if isinstance(attendee, dict):
                address = attendee.get("email") or ""
            else:
                address = str(attendee or "")
            if address:
                addresses.append(address.strip().lower())
        return cls(
            kind=CommunicationKind.EVENT,
            id=id,
            timestamp_ms=parse_event_start(start),
            subject=summary or "",
            body=description or "",
            attendees=tuple(addresses),
            start=start,
            end=end,
        )


class MatchReason(str, Enum):
    EXACT_EMAIL_MATCH = "exact_email_match"
    DOMAIN_MATCH = "domain_match"
    KEYWORD_MATCH = "keyword_match"
    RENEWAL_KEYWORD = "renewal_keyword"
    ATTENDEE_MATCH = "attendee_match"
    COMPANY_MATCH = "company_match"


@dataclass(frozen=True, slots=True)
class Matched:
    reason: MatchReason
    score: int


@dataclass(frozen=True, slots=True)
class NoMatch:
    pass


NO_MATCH = NoMatch()
MatchOutcome = Matched | NoMatch


@dataclass(frozen=True, slots=True)
class Match:
    item: CommunicationItem
    score: int
    reason: MatchReason


# =================================================================
# RENEWALS
# =================================================================


@dataclass(frozen=True, slots=True)
class ContactSnapshot:
    name: str = "Valued Client"
    email: str | None = None
    phone: str | None = None
    hubspot_id: str | None = None


@dataclass(frozen=True, slots=True)
class RecentEmail:
    id: str
    subject: str
    sender: str | None
    date: str | None
    match_score: int
    match_reason: MatchReason


@dataclass(frozen=True, slots=True)
class RecentMeeting:
    id: str
    summary: str
    date: str | None
    match_score: int
    match_reason: MatchReason


@dataclass(frozen=True, slots=True)
class Communications:
    total_touchpoints: int = 0
    email_count: int = 0
    meeting_count: int = 0
    last_contact_date: str | None = None
    recent_emails: tuple[RecentEmail, ...] = ()
    recent_meetings: tuple[RecentMeeting, ...] = ()


@dataclass(frozen=True, slots=True)
class RenewalSources:
    deal_id: str | None = None
    contact_id: str | None = None
    email_thread_ids: tuple[str | None, ...] = ()
    calendar_event_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Renewal:
    id: str
    company_name: str
    deal_name: str
    client_name: str
    policy_number: str
    product_line: str
    carrier: str
    specialist: str
    premium: float
    coverage_premium: float
    commission_amount: float
    policy_limit: float
    commission_percent: float
    expiry_date: str | None
    status: str
    crm_record_id: str | None
    primary_contact: ContactSnapshot
    communications: Communications
    sources: RenewalSources
    source_system: str = "HubSpot"
    last_email_id: str | None = None

    @property
    def recent_touchpoints(self) -> int:
        return self.communications.total_touchpoints

    @property
    def primary_contact_name(self) -> str:
        return self.primary_contact.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        comms = self.communications
        return {
            "id": self.id,
            "company_name": self.company_name,
            "deal_name": self.deal_name,
            "client_name": self.client_name,
            "policy_number": self.policy_number,
            "product_line": self.product_line,
            "carrier": self.carrier,
            "specialist": self.specialist,
            "premium": self.premium,
            "coverage_premium": self.coverage_premium,
            "commission_amount": self.commission_amount,
            "policy_limit": self.policy_limit,
            "commission_percent": self.commission_percent,
            "expiry_date": self.expiry_date,
            "status": self.status,
            "source_system": self.source_system,
            "crm_record_id": self.crm_record_id,
            "primary_contact": {
                "name": self.primary_contact.name,
                "email": self.primary_contact.email,
                "phone": self.primary_contact.phone,
                "hubspot_id": self.primary_contact.hubspot_id,
            },
            "communications": {
                "total_touchpoints": comms.total_touchpoints,
                "email_count": comms.email_count,
                "meeting_count": comms.meeting_count,
                "last_contact_date": comms.last_contact_date,
                "recent_emails": [
                    {
                        "id": email.id,
                        "subject": email.subject,
                        "from": email.sender,
                        "date": email.date,
                        "match_score": email.match_score,
                        "match_reason": email.match_reason.value,
                    }
                    for email in comms.recent_emails
                ],
                "recent_meetings": [
                    {
                        "id": meeting.id,
                        "summary": meeting.summary,
                        "date": meeting.date,
                        "match_score": meeting.match_score,
                        "match_reason": meeting.match_reason.value,
                    }
                    for meeting in comms.recent_meetings
                ],
            },
            "sources": {
                "hubspot": {
                    "deal_id": self.sources.deal_id,
                    "contact_id": self.sources.contact_id,
                },
                "google": {
                    "email_thread_ids": list(self.sources.email_thread_ids),
                    "calendar_event_ids": list(self.sources.calendar_event_ids),
                },
            },
            "recent_touchpoints": self.recent_touchpoints,
            "primary_contact_name": self.primary_contact_name,
            "last_email_id": self.last_email_id,
        }


@dataclass(frozen=True, slots=True)
class SyncStatus:
    last_sync: datetime | None
    record_count: int
    has_synced: bool


@dataclass(slots=True)
class SyncResult:
    success: bool
    renewal_count: int = 0
    emails_analyzed: int = 0
    meetings_found: int = 0
    last_sync: datetime | None = None
    duration_ms: int | None = None
    error: str | None = None
    source_errors: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "renewal_count": self.renewal_count,
            "emails_analyzed": self.emails_analyzed,
            "meetings_found": self.meetings_found,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "duration_ms": self.duration_ms,
            "source_errors": dict(self.source_errors),
        }


def today_utc() -> date:
    return datetime.now(UTC).date()
