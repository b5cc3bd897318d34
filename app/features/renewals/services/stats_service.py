"""
Orchestration statistics for the debug endpoints.

Summarizes how the last sync linked communications to deals: which rules
fired, how many deals picked up emails or meetings and how complete the
contact enrichment is.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from app.features.renewals.domain.models import MatchReason, Renewal, SyncStatus

EMAIL_REASON_KEYS = {
    MatchReason.EXACT_EMAIL_MATCH: "exact_email_matches",
    MatchReason.DOMAIN_MATCH: "domain_matches",
    MatchReason.KEYWORD_MATCH: "keyword_matches",
    MatchReason.RENEWAL_KEYWORD: "renewal_keyword_matches",
}

MEETING_REASON_KEYS = {
    MatchReason.ATTENDEE_MATCH: "attendee_matches",
    MatchReason.COMPANY_MATCH: "calendar_company_matches",
    MatchReason.KEYWORD_MATCH: "calendar_keyword_matches",
}


def build_orchestration_stats(renewals: Sequence[Renewal], status: SyncStatus) -> dict[str, Any]:
    matching_stats = {key: 0 for key in (*EMAIL_REASON_KEYS.values(), *MEETING_REASON_KEYS.values())}
    communication_stats = {
        "deals_with_emails": 0,
        "deals_with_meetings": 0,
        "total_email_touchpoints": 0,
        "total_meeting_touchpoints": 0,
        "avg_touchpoints_per_deal": 0.0,
    }
    enrichment_stats = {
        "deals_with_contacts": 0,
        "deals_with_contact_email": 0,
        "deals_with_contact_phone": 0,
        "deals_with_last_contact_date": 0,
        "deals_with_source_tracking": 0,
    }
    email_mapping: list[dict[str, Any]] = []
    meeting_mapping: list[dict[str, Any]] = []

    for renewal in renewals:
        comms = renewal.communications

        if comms.email_count > 0:
            communication_stats["deals_with_emails"] += 1
            communication_stats["total_email_touchpoints"] += comms.email_count
            for email in comms.recent_emails:
                email_mapping.append(
                    {
                        "email_id": email.id,
                        "email_subject": email.subject,
                        "email_from": email.sender,
                        "email_date": email.date,
                        "matched_deal_id": renewal.id,
                        "matched_deal_name": renewal.client_name,
                        "match_score": email.match_score,
                        "match_reason": email.match_reason.value,
                    }
                )
                key = EMAIL_REASON_KEYS.get(email.match_reason)
                if key:
                    matching_stats[key] += 1

        if comms.meeting_count > 0:
            communication_stats["deals_with_meetings"] += 1
            communication_stats["total_meeting_touchpoints"] += comms.meeting_count
            for meeting in comms.recent_meetings:
                meeting_mapping.append(
                    {
                        "meeting_id": meeting.id,
                        "meeting_summary": meeting.summary,
                        "meeting_date": meeting.date,
                        "matched_deal_id": renewal.id,
                        "matched_deal_name": renewal.client_name,
                        "match_score": meeting.match_score,
                        "match_reason": meeting.match_reason.value,
                    }
                )
                key = MEETING_REASON_KEYS.get(meeting.match_reason)
                if key:
                    matching_stats[key] += 1

        contact = renewal.primary_contact
        if contact.hubspot_id:
            enrichment_stats["deals_with_contacts"] += 1
        if contact.email:
            enrichment_stats["deals_with_contact_email"] += 1
        if contact.phone:
            enrichment_stats["deals_with_contact_phone"] += 1
        if comms.last_contact_date:
            enrichment_stats["deals_with_last_contact_date"] += 1
        if renewal.sources.deal_id:
            enrichment_stats["deals_with_source_tracking"] += 1

    if renewals:
        total = (
            communication_stats["total_email_touchpoints"]
            + communication_stats["total_meeting_touchpoints"]
        )
        communication_stats["avg_touchpoints_per_deal"] = round(total / len(renewals), 2)

    return {
        "overview": {
            "total_renewals": len(renewals),
            "last_sync": status.last_sync.isoformat() if status.last_sync else None,
            "has_synced": status.has_synced,
        },
        "matching_stats": matching_stats,
        "communication_stats": communication_stats,
        "enrichment_stats": enrichment_stats,
        "email_to_deal_mapping": email_mapping,
        "meeting_to_deal_mapping": meeting_mapping,
    }
