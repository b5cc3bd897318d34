"""
Services for the renewals feature.

Keeps orchestration logic (source fetching, cache replacement, statistics)
separate from the pure pipeline stages.
"""

from .stats_service import build_orchestration_stats
from .sync_service import SyncOrchestrator

__all__ = ["SyncOrchestrator", "build_orchestration_stats"]
