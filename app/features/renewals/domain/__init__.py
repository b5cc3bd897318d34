"""
Domain subpackage for the renewals feature.
"""

from .models import (
    AssociatedCompany,
    CommunicationItem,
    CommunicationKind,
    Deal,
    Match,
    MatchReason,
    PlacementRecord,
    PrimaryContact,
    Renewal,
    SyncResult,
    SyncStatus,
)

__all__ = [
    "AssociatedCompany",
    "CommunicationItem",
    "CommunicationKind",
    "Deal",
    "Match",
    "MatchReason",
    "PlacementRecord",
    "PrimaryContact",
    "Renewal",
    "SyncResult",
    "SyncStatus",
]
