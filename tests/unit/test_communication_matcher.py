from app.features.renewals.domain.models import (
    CommunicationItem,
    CommunicationKind,
    MatchReason,
    PrimaryContact,
)
from app.features.renewals.pipeline.matching.service import (
    CALENDAR_MATCH_THRESHOLD,
    EMAIL_MATCH_THRESHOLD,
    MatchingMode,
    extract_company_domain,
    match_communications,
    match_emails,
    match_events,
)
from tests.conftest import build_deal, build_email, build_event


def test_exact_sender_match_wins_over_unrelated_email():
    deal = build_deal(contact_email="ceo@techcorp.com")
    emails = [
        build_email(id="m1", sender="ceo@techcorp.com"),
        build_email(id="m2", sender="random@gmail.com"),
    ]

    matches = match_emails(deal, emails)

    assert len(matches) == 1
    assert matches[0].item.id == "m1"
    assert matches[0].reason is MatchReason.EXACT_EMAIL_MATCH
    assert matches[0].score == 100


def test_sender_with_display_name_still_matches_contact():
    deal = build_deal(contact_email="CEO@TechCorp.com")
    emails = [build_email(sender="Chief Exec <ceo@techcorp.com>")]

    matches = match_emails(deal, emails)

    assert [m.reason for m in matches] == [MatchReason.EXACT_EMAIL_MATCH]


def test_domain_derived_from_deal_name():
    deal = build_deal(name="AcmeInc Policy", primary_contact=None)
    emails = [build_email(sender="support@acmeinc.com", subject="Question")]

    matches = match_emails(deal, emails)

    assert len(matches) == 1
    assert matches[0].reason is MatchReason.DOMAIN_MATCH
    assert matches[0].score == 70


def test_attendee_match_on_calendar_event():
    deal = build_deal(contact_email="client@example.com")
    events = [build_event(attendees=["me@broker.com", "client@example.com"])]

    matches = match_events(deal, events)

    assert len(matches) == 1
    assert matches[0].reason is MatchReason.ATTENDEE_MATCH
    assert matches[0].score == 100


def test_attendee_dicts_are_normalized():
    deal = build_deal(contact_email="client@example.com")
    events = [build_event(attendees=[{"email": "Client@Example.com"}])]

    assert match_events(deal, events)[0].reason is MatchReason.ATTENDEE_MATCH


def test_first_applicable_rule_decides_reason():
    # Sender is the contact AND the subject mentions the deal name
    deal = build_deal(name="TechCorp Renewal", contact_email="ceo@techcorp.com")
    email = build_email(sender="ceo@techcorp.com", subject="techcorp renewal documents")

    matches = match_emails(deal, [email])

    assert len(matches) == 1
    assert matches[0].reason is MatchReason.EXACT_EMAIL_MATCH


def test_deal_name_mention_matches_email():
    deal = build_deal(name="Harbor Freight Marine", primary_contact=None)
    email = build_email(sender="broker@other.org", subject="Re: Harbor Freight Marine terms")

    matches = match_emails(deal, [email])

    assert matches[0].reason is MatchReason.KEYWORD_MATCH
    assert matches[0].score == EMAIL_MATCH_THRESHOLD


def test_renewal_keyword_alone_is_below_email_threshold():
    deal = build_deal(name="Harbor Freight Marine", primary_contact=None)
    email = build_email(sender="news@insurer.org", subject="Your policy newsletter")

    assert match_emails(deal, [email]) == []


def test_renewal_keyword_alone_is_below_calendar_threshold():
    deal = build_deal(name="Harbor Freight Marine", primary_contact=None)
    event = build_event(summary="Quarterly insurance review")

    assert match_events(deal, [event]) == []
    assert CALENDAR_MATCH_THRESHOLD > 30


def test_company_mention_matches_event():
    deal = build_deal(name="Harbor Freight Marine", contact_email="ops@harbor.io")
    event = build_event(summary="Call with TechCorp team", attendees=["me@broker.com"])

    matches = match_events(deal, [event])

    assert matches[0].reason is MatchReason.COMPANY_MATCH
    assert matches[0].score == 70


def test_event_mentioning_deal_name_is_keyword_match():
    deal = build_deal(name="Harbor Freight Marine", primary_contact=None)
    event = build_event(summary="harbor freight marine walkthrough")

    matches = match_events(deal, [event])

    assert matches[0].reason is MatchReason.KEYWORD_MATCH
    assert matches[0].score == 70


def test_email_ties_break_by_most_recent():
    deal = build_deal(contact_email="ceo@techcorp.com")
    older = build_email(id="old", sender="ceo@techcorp.com", ts=1_000)
    newer = build_email(id="new", sender="ceo@techcorp.com", ts=2_000)
    domain_only = build_email(id="dom", sender="cfo@techcorp.com", ts=3_000)

    matches = match_emails(deal, [older, domain_only, newer])

    assert [m.item.id for m in matches] == ["new", "old", "dom"]


def test_event_ties_keep_input_order():
    deal = build_deal(contact_email="client@example.com")
    first = build_event(id="e1", attendees=["client@example.com"], start="2026-09-05T10:00:00Z")
    second = build_event(id="e2", attendees=["client@example.com"], start="2026-09-09T10:00:00Z")

    matches = match_events(deal, [first, second])

    assert [m.item.id for m in matches] == ["e1", "e2"]


def test_every_match_clears_threshold_and_appears_once():
    deal = build_deal(name="TechCorp Renewal", contact_email="ceo@techcorp.com")
    emails = [
        build_email(id="a", sender="ceo@techcorp.com"),
        build_email(id="b", sender="x@techcorp.com"),
        build_email(id="c", sender="x@else.com", subject="TechCorp Renewal update"),
        build_email(id="d", sender="x@else.com", subject="premium notice"),
        build_email(id="e", sender="x@else.com", subject="lunch"),
    ]

    matches = match_communications(deal, emails, MatchingMode.EMAIL)

    ids = [m.item.id for m in matches]
    assert ids == ["a", "b", "c"]
    assert len(set(ids)) == len(ids)
    assert all(m.score >= EMAIL_MATCH_THRESHOLD for m in matches)


def test_matching_is_idempotent():
    deal = build_deal(contact_email="ceo@techcorp.com")
    emails = [build_email(id=str(i), sender="ceo@techcorp.com", ts=i) for i in range(5)]

    assert match_emails(deal, emails) == match_emails(deal, emails)


def test_empty_deal_name_disables_name_rules():
    deal = build_deal(name="", primary_contact=PrimaryContact(email=None))
    email = build_email(sender="someone@.com", subject="anything at all")

    assert extract_company_domain("") is None
    assert match_emails(deal, [email]) == []


def test_extract_company_domain_strips_punctuation():
    assert extract_company_domain("Acme-Inc. Property 2026") == "acmeinc.com"
    assert extract_company_domain("--- Policy") is None


def test_attendee_match_ignores_case_on_directly_built_events():
    deal = build_deal(contact_email="client@example.com")
    event = CommunicationItem(
        kind=CommunicationKind.EVENT,
        id="evt-raw",
        subject="Catch-up",
        attendees=("Client@Example.com",),
    )

    matches = match_events(deal, [event])

    assert [m.reason for m in matches] == [MatchReason.ATTENDEE_MATCH]
