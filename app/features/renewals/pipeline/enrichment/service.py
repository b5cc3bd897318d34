"""
Renewal enrichment service.

Turns CRM deals plus the full email and calendar collections into renewal
records. Each deal is matched against every communication item, its display
fields are resolved through ordered fallback chains and the result is frozen
into a ``Renewal``. No I/O happens here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from app.features.renewals.domain.models import (
    AssociatedCompany,
    CommunicationItem,
    Communications,
    ContactSnapshot,
    Deal,
    Match,
    PlacementRecord,
    PrimaryContact,
    RecentEmail,
    RecentMeeting,
    Renewal,
    RenewalSources,
    ms_to_iso_date,
    today_utc,
)
from app.features.renewals.pipeline.matching.service import match_emails, match_events
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RECENT_EMAIL_LIMIT = 5
RECENT_MEETING_LIMIT = 3

DEFAULT_COMPANY_NAME = "Unknown Company"
DEFAULT_CLIENT_NAME = "Unknown Client"
DEFAULT_PRODUCT_LINE = "General Insurance"
DEFAULT_CARRIER = "Unknown Carrier"
DEFAULT_SPECIALIST = "Unassigned"
DEFAULT_CONTACT_NAME = "Valued Client"
DEFAULT_STATUS = "Discovery"

# Checked in order against the lower-cased CRM stage code
STAGE_LABELS: tuple[tuple[str, str], ...] = (
    ("qualify", "Pre-Renewal Review"),
    ("present", "Pricing Discussion"),
    ("decision", "Quote Comparison"),
    ("closed", "Renewed"),
)


@dataclass(frozen=True, slots=True)
class EnrichmentSource:
    deal: Deal
    contact: PrimaryContact | None
    company: AssociatedCompany | None
    placement: PlacementRecord | None


Accessor = Callable[[EnrichmentSource], Any]


def first_present(accessors: Sequence[Accessor], source: EnrichmentSource, default: Any) -> Any:
    """Return the first accessor result that is neither None nor blank."""
    for accessor in accessors:
        value = accessor(source)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        return value
    return default


def _placement_client(s: EnrichmentSource) -> str | None:
    return s.placement.client if s.placement else None


def _company_name(s: EnrichmentSource) -> str | None:
    return s.company.name if s.company else None


def _contact_company(s: EnrichmentSource) -> str | None:
    return s.contact.company if s.contact else None


COMPANY_NAME_ACCESSORS: tuple[Accessor, ...] = (
    _placement_client,
    _company_name,
    _contact_company,
    lambda s: s.deal.client_name,
)
CLIENT_NAME_ACCESSORS: tuple[Accessor, ...] = (
    _placement_client,
    _company_name,
    _contact_company,
)
PRODUCT_LINE_ACCESSORS: tuple[Accessor, ...] = (
    lambda s: s.placement.product_line if s.placement else None,
    lambda s: s.deal.product_line,
)
CARRIER_ACCESSORS: tuple[Accessor, ...] = (
    lambda s: s.placement.carrier_group if s.placement else None,
    lambda s: s.deal.carrier_group,
)
SPECIALIST_ACCESSORS: tuple[Accessor, ...] = (
    lambda s: s.placement.specialist if s.placement else None,
)


def map_deal_stage(stage: str | None) -> str:
    """Classify a CRM pipeline stage code into a renewal lifecycle label."""
    if not stage:
        return DEFAULT_STATUS
    lowered = stage.lower()
    for fragment, label in STAGE_LABELS:
        if fragment in lowered:
            return label
    return DEFAULT_STATUS


def format_placement_date(raw: str | None) -> str | None:
    """Convert DD/MM/YY or DD/MM/YYYY export dates to ISO; other values pass through."""
    if not raw or raw.strip() == "-":
        return None
    value = raw.strip()
    if "/" not in value:
        return value
    parts = value.split("/")
    if len(parts) != 3:
        return value
    day, month, year = (part.strip() for part in parts)
    if len(year) == 2:
        year = f"20{year}"
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


class RenewalAssembler:
    """Builds renewal records from deals and the communications they match."""

    def __init__(
        self,
        placements: Mapping[str, PlacementRecord] | None = None,
        today: Callable[[], date] = today_utc,
    ):
        self._placements = dict(placements or {})
        self._today = today

    def assemble(
        self,
        deals: Iterable[Deal],
        emails: Sequence[CommunicationItem],
        events: Sequence[CommunicationItem],
    ) -> list[Renewal]:
        renewals = [
            self.build_renewal(deal, index, emails, events) for index, deal in enumerate(deals)
        ]
        logger.info(
            "Renewals assembled",
            renewal_count=len(renewals),
            email_count=len(emails),
            event_count=len(events),
        )
        return renewals

    def build_renewal(
        self,
        deal: Deal,
        index: int,
        emails: Sequence[CommunicationItem],
        events: Sequence[CommunicationItem],
    ) -> Renewal:
        contact = deal.primary_contact
        placement = self._placements.get(deal.name) if deal.name else None
        source = EnrichmentSource(
            deal=deal,
            contact=contact,
            company=deal.associated_company,
            placement=placement,
        )

        matched_emails = match_emails(deal, emails)
        matched_meetings = match_events(deal, events)

        record_id = deal.id or str(1000 + index)
        premium, coverage_premium, commission_amount, policy_limit, commission_percent = (
            self._financials(deal, placement)
        )

        return Renewal(
            id=f"R-{record_id}",
            company_name=first_present(COMPANY_NAME_ACCESSORS, source, DEFAULT_COMPANY_NAME),
            deal_name=deal.name or "Unnamed Deal",
            client_name=first_present(CLIENT_NAME_ACCESSORS, source, DEFAULT_CLIENT_NAME),
            policy_number=f"POL-{record_id}",
            product_line=first_present(PRODUCT_LINE_ACCESSORS, source, DEFAULT_PRODUCT_LINE),
            carrier=first_present(CARRIER_ACCESSORS, source, DEFAULT_CARRIER),
            specialist=first_present(SPECIALIST_ACCESSORS, source, DEFAULT_SPECIALIST),
            premium=premium,
            coverage_premium=coverage_premium,
            commission_amount=commission_amount,
            policy_limit=policy_limit,
            commission_percent=commission_percent,
            expiry_date=self._expiry_date(deal, placement, index),
            status=map_deal_stage(deal.deal_stage),
            crm_record_id=deal.id,
            primary_contact=self._contact_snapshot(contact),
            communications=self._communications(matched_emails, matched_meetings),
            sources=RenewalSources(
                deal_id=deal.id,
                contact_id=contact.id if contact else None,
                email_thread_ids=tuple(match.item.thread_id for match in matched_emails),
                calendar_event_ids=tuple(match.item.id for match in matched_meetings),
            ),
            last_email_id=matched_emails[0].item.id if matched_emails else None,
        )

    @staticmethod
    def _financials(
        deal: Deal, placement: PlacementRecord | None
    ) -> tuple[float, float, float, float, float]:
        if placement:
            return (
                round(placement.total_premium),
                round(placement.coverage_premium),
                round(placement.commission_amount),
                round(placement.policy_limit),
                placement.commission_percent,
            )
        return (
            round(deal.amount),
            round(deal.coverage_premium),
            round(deal.commission_amount),
            round(deal.policy_limit),
            deal.commission_percent,
        )

    def _expiry_date(self, deal: Deal, placement: PlacementRecord | None, index: int) -> str | None:
        if placement:
            return format_placement_date(placement.expiry_date)
        if deal.close_date:
            return deal.close_date
        # No close date in the CRM: project one from the deal position
        return (self._today() + timedelta(days=30 + index * 15)).isoformat()

    @staticmethod
    def _contact_snapshot(contact: PrimaryContact | None) -> ContactSnapshot:
        if not contact:
            return ContactSnapshot()
        return ContactSnapshot(
            name=contact.full_name or DEFAULT_CONTACT_NAME,
            email=contact.email,
            phone=contact.phone,
            hubspot_id=contact.id,
        )

    @staticmethod
    def _communications(emails: list[Match], meetings: list[Match]) -> Communications:
        timestamps = [
            match.item.timestamp_ms for match in (*emails, *meetings) if match.item.timestamp_ms
        ]
        return Communications(
            total_touchpoints=len(emails) + len(meetings),
            email_count=len(emails),
            meeting_count=len(meetings),
            last_contact_date=ms_to_iso_date(max(timestamps)) if timestamps else None,
            recent_emails=tuple(
                RecentEmail(
                    id=match.item.id,
                    subject=match.item.subject,
                    sender=match.item.sender_display or match.item.sender,
                    date=ms_to_iso_date(match.item.timestamp_ms),
                    match_score=match.score,
                    match_reason=match.reason,
                )
                for match in emails[:RECENT_EMAIL_LIMIT]
            ),
            recent_meetings=tuple(
                RecentMeeting(
                    id=match.item.id,
                    summary=match.item.subject,
                    date=match.item.start,
                    match_score=match.score,
                    match_reason=match.reason,
                )
                for match in meetings[:RECENT_MEETING_LIMIT]
            ),
        )


def assemble(
    deals: Iterable[Deal],
    emails: Sequence[CommunicationItem],
    events: Sequence[CommunicationItem],
    placements: Mapping[str, PlacementRecord] | None = None,
) -> list[Renewal]:
    """Convenience wrapper around ``RenewalAssembler.assemble``."""
    return RenewalAssembler(placements).assemble(deals, emails, events)
