import pytest

from app.features.renewals.pipeline.enrichment.service import RenewalAssembler
from app.features.renewals.pipeline.scoring.service import (
    PRIORITY_FACTORS,
    ScoringFactor,
    missing_factors,
    normalize,
    rank_all,
    score,
)
from tests.conftest import build_deal


def _scoring_fields(**overrides):
    fields = {
        "premium": 0,
        "coverage_premium": 0,
        "commission_amount": 0,
        "policy_limit": 0,
        "commission_percent": 1,
    }
    fields.update(overrides)
    return fields


def test_floor_values_score_zero():
    result = score(_scoring_fields())

    assert result.value == 0
    assert all(value == 0 for value in result.breakdown.values())


def test_ceiling_values_score_about_one_hundred():
    result = score(
        _scoring_fields(
            premium=1.0167e7,
            coverage_premium=9.4975e6,
            commission_amount=1.5952e6,
            policy_limit=3.8573e8,
            commission_percent=20,
        )
    )

    assert result.value == pytest.approx(100, abs=0.01)


def test_weights_sum_to_one():
    assert sum(f.weight for f in PRIORITY_FACTORS) == pytest.approx(1.0)


def test_out_of_range_values_are_clamped():
    below = score(_scoring_fields(premium=-500, commission_percent=0))
    above = score(_scoring_fields(policy_limit=1e12, commission_percent=99))

    assert below.value == 0
    assert above.value == pytest.approx(21.78 + 63.22)
    assert above.breakdown["policy_limit_normalized"] == 1.0


def test_missing_and_non_numeric_fields_count_as_zero():
    result = score({"premium": None, "commission_percent": "abc"})

    assert result.value == 0
    assert missing_factors({"premium": None}) == [f.name for f in PRIORITY_FACTORS]


def test_breakdown_has_contribution_and_normalized_per_factor():
    result = score(_scoring_fields(commission_percent=10.5))

    for factor in PRIORITY_FACTORS:
        assert factor.name in result.breakdown
        assert f"{factor.name}_normalized" in result.breakdown
    assert result.breakdown["commission_percent_normalized"] == pytest.approx(0.5)
    assert result.breakdown["commission_percent"] == pytest.approx(0.3161)
    assert result.value == pytest.approx(31.61)


@pytest.mark.parametrize("factor", [f.name for f in PRIORITY_FACTORS])
def test_raising_one_factor_never_lowers_score(factor):
    base = _scoring_fields(
        premium=1e6,
        coverage_premium=1e6,
        commission_amount=1e5,
        policy_limit=1e7,
        commission_percent=5,
    )
    raised = dict(base, **{factor: base[factor] * 2})

    assert score(raised).value >= score(base).value


def test_zero_span_factor_normalizes_to_zero():
    flat = ScoringFactor("flat", 5.0, 5.0, 1.0)

    assert normalize(5.0, flat) == 0.0
    assert normalize(100.0, flat) == 0.0


def test_scores_renewal_records():
    renewal = RenewalAssembler().assemble([build_deal(commission_percent=20)], [], [])[0]

    assert 0 <= score(renewal).value <= 100


def test_rank_all_orders_by_score_and_keeps_ties_stable():
    deals = [
        build_deal(id="low", commission_percent=2),
        build_deal(id="tie-a", commission_percent=10),
        build_deal(id="high", commission_percent=19),
        build_deal(id="tie-b", commission_percent=10),
    ]
    renewals = RenewalAssembler().assemble(deals, [], [])

    ranked = rank_all(renewals)

    assert [item.renewal.id for item in ranked] == ["R-high", "R-tie-a", "R-tie-b", "R-low"]
    assert ranked[0].priority_score >= ranked[-1].priority_score
