"""
Tests for currency rounding and result building.
"""

import math

import pytest

from costcalc.domain.errors import CostOverflowError
from costcalc.utils.rounding import (
    annualize,
    billable,
    build_result,
    mb_to_gb,
    ms_to_seconds,
    per_unit,
    round_currency,
)


def test_round_currency_rounds_half_up():
    """Halves round away from zero as they read in decimal."""
    assert round_currency(1.005) == 1.01
    assert round_currency(2.675) == 2.68
    assert round_currency(0.004) == 0.0


def test_round_currency_is_idempotent():
    """Rounding an already-rounded amount changes nothing."""
    for value in (0.1 + 0.2, 146.0, 1751.2000000001, 87.6):
        once = round_currency(value)
        assert round_currency(once) == once


def test_annualize_uses_rounded_monthly():
    """Annual cost is the monthly cost times twelve, rounded."""
    assert annualize(146.0) == 1752.0
    assert annualize(3.47) == 41.64


def test_build_result_sums_rounded_categories():
    """Monthly is the sum of the rounded categories, not of the raw amounts."""
    result = build_result({'compute': 1.004, 'storage': 1.004})

    assert result.cost_breakdown == {'compute': 1.0, 'storage': 1.0}
    assert result.monthly_cost == 2.0
    assert result.annual_cost == 24.0


def test_build_result_to_dict_shape():
    """Serialized result uses camelCase keys."""
    data = build_result({'compute': 146.0}).to_dict()

    assert data == {
        'costBreakdown': {'compute': 146.0},
        'monthlyCost': 146.0,
        'annualCost': 1752.0,
    }


def test_billable_never_negative():
    """Usage below the free allowance bills nothing."""
    assert billable(5, 10) == 0.0
    assert billable(15, 10) == 5


def test_unit_helpers():
    """Unit conversions used by the models."""
    assert mb_to_gb(512) == 0.5
    assert ms_to_seconds(250) == 0.25
    assert per_unit(2_500_000, 1_000_000) == 2.5


def test_round_currency_handles_large_amounts():
    """Amounts beyond the default decimal precision still round."""
    assert round_currency(1e30) == 1e30
    assert round_currency(1.5e300) == 1.5e300


@pytest.mark.parametrize('value', [math.inf, -math.inf, math.nan])
def test_round_currency_rejects_non_finite(value):
    """Infinite and NaN amounts are a calculation error."""
    with pytest.raises(CostOverflowError):
        round_currency(value)


def test_build_result_names_overflowing_category():
    """The error names the category whose amount overflowed."""
    with pytest.raises(CostOverflowError) as exc_info:
        build_result({'compute': 1.0, 'storage': math.inf})

    assert exc_info.value.category == 'storage'
    assert 'storage' in str(exc_info.value)
