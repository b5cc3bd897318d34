"""
Renewal priority scoring - ranks renewals by normalized financial weight.

Each factor is min-max normalized against fixed historical bounds, clamped to
[0, 1] and weighted. Weights sum to 1.0, so the score lives on 0-100.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.features.renewals.domain.models import Renewal, optional_amount
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ScoringFactor:
    name: str
    min_value: float
    max_value: float
    weight: float


# Bounds and weights come from the historical placement book analysis
PRIORITY_FACTORS: tuple[ScoringFactor, ...] = (
    ScoringFactor("premium", 0.0, 1.016666e07, 0.0500),
    ScoringFactor("coverage_premium", 0.0, 9.497513e06, 0.0500),
    ScoringFactor("commission_amount", 0.0, 1.595200e06, 0.0500),
    ScoringFactor("policy_limit", 0.0, 3.857328e08, 0.2178),
    ScoringFactor("commission_percent", 1.0, 20.0, 0.6322),
)


@dataclass(frozen=True, slots=True)
class ScoreResult:
    value: float
    breakdown: dict[str, float]


@dataclass(frozen=True, slots=True)
class ScoredRenewal:
    renewal: Renewal
    priority_score: float
    score_breakdown: dict[str, float]


def _raw_value(renewal: Renewal | Mapping[str, Any], field_name: str) -> Any:
    if isinstance(renewal, Mapping):
        return renewal.get(field_name)
    return getattr(renewal, field_name, None)


def normalize(raw: float, factor: ScoringFactor) -> float:
    span = factor.max_value - factor.min_value
    if span == 0:
        return 0.0
    normalized = (raw - factor.min_value) / span
    return max(0.0, min(1.0, normalized))


def score(renewal: Renewal | Mapping[str, Any]) -> ScoreResult:
    """
    Compute the priority score for one renewal.

    Args:
        renewal: Renewal record, or a mapping with the same field names

    Returns:
        ScoreResult with the 0-100 value (3 decimals) and, per factor, the
        weighted contribution and the ``<factor>_normalized`` value
    """
    weighted_total = 0.0
    contributions: dict[str, float] = {}
    normalized_values: dict[str, float] = {}

    for factor in PRIORITY_FACTORS:
        raw = optional_amount(_raw_value(renewal, factor.name))
        normalized = normalize(raw, factor)
        contribution = normalized * factor.weight
        weighted_total += contribution
        contributions[factor.name] = contribution
        normalized_values[f"{factor.name}_normalized"] = normalized

    return ScoreResult(
        value=round(weighted_total * 100, 3),
        breakdown={**contributions, **normalized_values},
    )


def rank_all(renewals: Iterable[Renewal]) -> list[ScoredRenewal]:
    """Score every renewal and order by priority, highest first. Ties keep input order."""
    scored = []
    for renewal in renewals:
        result = score(renewal)
        scored.append(
            ScoredRenewal(
                renewal=renewal,
                priority_score=result.value,
                score_breakdown=result.breakdown,
            )
        )
    scored.sort(key=lambda item: item.priority_score, reverse=True)
    return scored


def missing_factors(renewal: Renewal | Mapping[str, Any]) -> list[str]:
    """List scoring fields the renewal does not carry."""
    missing = [
        factor.name for factor in PRIORITY_FACTORS if _raw_value(renewal, factor.name) is None
    ]
    if missing:
        logger.debug("Renewal missing scoring fields", missing=missing)
    return missing
