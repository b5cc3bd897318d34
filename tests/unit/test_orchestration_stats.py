from datetime import UTC, datetime

from app.features.renewals.domain.models import SyncStatus
from app.features.renewals.pipeline.enrichment.service import RenewalAssembler
from app.features.renewals.services.stats_service import build_orchestration_stats
from tests.conftest import build_deal, build_email, build_event


def test_stats_count_match_reasons_and_touchpoints():
    deals = [
        build_deal(id="1", name="TechCorp Renewal", contact_email="ceo@techcorp.com"),
        build_deal(id="2", name="Quiet Deal", primary_contact=None),
    ]
    emails = [
        build_email(id="m1", sender="ceo@techcorp.com"),
        build_email(id="m2", sender="cfo@techcorp.com"),
    ]
    events = [build_event(id="e1", attendees=["ceo@techcorp.com"])]
    renewals = RenewalAssembler().assemble(deals, emails, events)
    synced_at = datetime(2026, 10, 1, tzinfo=UTC)

    stats = build_orchestration_stats(renewals, SyncStatus(synced_at, 2, True))

    assert stats["overview"] == {
        "total_renewals": 2,
        "last_sync": synced_at.isoformat(),
        "has_synced": True,
    }
    assert stats["matching_stats"]["exact_email_matches"] == 1
    assert stats["matching_stats"]["domain_matches"] == 1
    assert stats["matching_stats"]["attendee_matches"] == 1
    assert stats["communication_stats"]["deals_with_emails"] == 1
    assert stats["communication_stats"]["deals_with_meetings"] == 1
    assert stats["communication_stats"]["avg_touchpoints_per_deal"] == 1.5
    assert stats["enrichment_stats"]["deals_with_contacts"] == 1
    assert stats["enrichment_stats"]["deals_with_source_tracking"] == 2
    assert {m["email_id"] for m in stats["email_to_deal_mapping"]} == {"m1", "m2"}
    assert stats["meeting_to_deal_mapping"][0]["matched_deal_id"] == "R-1"


def test_stats_before_first_sync():
    stats = build_orchestration_stats([], SyncStatus(None, 0, False))

    assert stats["overview"]["last_sync"] is None
    assert stats["communication_stats"]["avg_touchpoints_per_deal"] == 0.0
    assert stats["email_to_deal_mapping"] == []
