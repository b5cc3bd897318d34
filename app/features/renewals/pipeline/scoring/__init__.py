"""
Renewal scoring package.

Provides the deterministic priority score used to rank renewals on read.
"""

from .service import PRIORITY_FACTORS, ScoredRenewal, ScoreResult, rank_all, score

__all__ = ["PRIORITY_FACTORS", "ScoredRenewal", "ScoreResult", "rank_all", "score"]
