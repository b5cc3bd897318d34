"""
Communication matching service - links emails and calendar events to deals.

There is no foreign key between the CRM and the mailbox, so each item is run
through an ordered rule cascade. The first rule that applies decides the
score and reason; items scoring under the mode's threshold are dropped.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from app.features.renewals.domain.models import (
    NO_MATCH,
    CommunicationItem,
    Deal,
    Match,
    Matched,
    MatchOutcome,
    MatchReason,
)

RENEWAL_KEYWORDS = ("renewal", "policy", "insurance", "premium", "quote", "expiry", "coverage")

# Minimum score to keep a match, per mode
EMAIL_MATCH_THRESHOLD = 50
CALENDAR_MATCH_THRESHOLD = 40

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


class MatchingMode(str, Enum):
    EMAIL = "email"
    CALENDAR = "calendar"


@dataclass(frozen=True, slots=True)
class DealMatchContext:
    """Lower-cased deal attributes the rules compare against."""

    deal_name: str
    contact_email: str | None
    company_name: str | None
    company_domain: str | None

    @classmethod
    def for_deal(cls, deal: Deal) -> DealMatchContext:
        contact = deal.primary_contact
        contact_email = (contact.email or "").strip().lower() if contact else ""
        company_name = (contact.company or "").strip().lower() if contact else ""
        return cls(
            deal_name=(deal.name or "").lower(),
            contact_email=contact_email or None,
            company_name=company_name or None,
            company_domain=extract_company_domain(deal.name or ""),
        )


@dataclass(frozen=True, slots=True)
class MatchRule:
    reason: MatchReason
    score: int
    applies: Callable[[DealMatchContext, CommunicationItem], bool]


@dataclass(frozen=True, slots=True)
class MatchProfile:
    rules: tuple[MatchRule, ...]
    threshold: int
    sort_key: Callable[[Match], tuple]


def extract_company_domain(deal_name: str) -> str | None:
    """Guess a company domain from the first word of a deal name ("AcmeInc Policy" -> acmeinc.com)."""
    tokens = deal_name.split()
    if not tokens:
        return None
    first_word = _NON_ALPHANUMERIC.sub("", tokens[0].lower())
    if not first_word:
        return None
    return f"{first_word}.com"


def is_renewal_related(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in RENEWAL_KEYWORDS)


def _mentions(needle: str | None, item: CommunicationItem) -> bool:
    if not needle:
        return False
    return needle in item.subject.lower() or needle in item.body.lower()


# Email rules


def _sender_is_contact(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return bool(ctx.contact_email) and (item.sender or "").lower() == ctx.contact_email


def _sender_domain_matches(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return bool(ctx.company_domain) and (item.domain or "").lower() == ctx.company_domain


def _mentions_deal_name(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return _mentions(ctx.deal_name, item)


def _mentions_renewal_keyword(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return is_renewal_related(item.subject) or is_renewal_related(item.body)


# Calendar rules


def _contact_attends(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return bool(ctx.contact_email) and ctx.contact_email in (a.lower() for a in item.attendees)


def _mentions_company(ctx: DealMatchContext, item: CommunicationItem) -> bool:
    return _mentions(ctx.company_name, item)


EMAIL_RULES = (
    MatchRule(MatchReason.EXACT_EMAIL_MATCH, 100, _sender_is_contact),
    MatchRule(MatchReason.DOMAIN_MATCH, 70, _sender_domain_matches),
    MatchRule(MatchReason.KEYWORD_MATCH, 50, _mentions_deal_name),
    MatchRule(MatchReason.RENEWAL_KEYWORD, 30, _mentions_renewal_keyword),
)

CALENDAR_RULES = (
    MatchRule(MatchReason.ATTENDEE_MATCH, 100, _contact_attends),
    MatchRule(MatchReason.COMPANY_MATCH, 70, _mentions_company),
    MatchRule(MatchReason.KEYWORD_MATCH, 70, _mentions_deal_name),
    MatchRule(MatchReason.RENEWAL_KEYWORD, 30, _mentions_renewal_keyword),
)

MATCH_PROFILES: dict[MatchingMode, MatchProfile] = {
    # Most recent first among equal scores
    MatchingMode.EMAIL: MatchProfile(
        rules=EMAIL_RULES,
        threshold=EMAIL_MATCH_THRESHOLD,
        sort_key=lambda match: (-match.score, -(match.item.timestamp_ms or 0)),
    ),
    # Equal scores stay in encounter order
    MatchingMode.CALENDAR: MatchProfile(
        rules=CALENDAR_RULES,
        threshold=CALENDAR_MATCH_THRESHOLD,
        sort_key=lambda match: (-match.score,),
    ),
}


def evaluate_item(
    ctx: DealMatchContext, item: CommunicationItem, rules: Iterable[MatchRule]
) -> MatchOutcome:
    for rule in rules:
        if rule.applies(ctx, item):
            return Matched(reason=rule.reason, score=rule.score)
    return NO_MATCH


def match_communications(
    deal: Deal, items: Iterable[CommunicationItem], mode: MatchingMode
) -> list[Match]:
    """
    Return the items that plausibly belong to ``deal``, best match first.

    Args:
        deal: Deal whose name and primary contact drive the rules
        items: Emails (EMAIL mode) or calendar events (CALENDAR mode)
        mode: Selects the rule cascade, threshold and tie-break

    Returns:
        Matches scoring at or above the mode's threshold
    """
    profile = MATCH_PROFILES[mode]
    ctx = DealMatchContext.for_deal(deal)

    matches: list[Match] = []
    for item in items:
        outcome = evaluate_item(ctx, item, profile.rules)
        if isinstance(outcome, Matched) and outcome.score >= profile.threshold:
            matches.append(Match(item=item, score=outcome.score, reason=outcome.reason))

    return sorted(matches, key=profile.sort_key)


def match_emails(deal: Deal, emails: Iterable[CommunicationItem]) -> list[Match]:
    return match_communications(deal, emails, MatchingMode.EMAIL)


def match_events(deal: Deal, events: Iterable[CommunicationItem]) -> list[Match]:
    return match_communications(deal, events, MatchingMode.CALENDAR)
