"""
Communication matching package.

Links emails and calendar events to CRM deals through a fixed rule cascade.
"""

from .service import MatchingMode, match_communications, match_emails, match_events

__all__ = ["MatchingMode", "match_communications", "match_emails", "match_events"]
