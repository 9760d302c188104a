"""
Shared numeric policy for cost results.

Every category is rounded to cents on its own, the monthly total is the
rounded sum of the rounded categories, and the annual figure is derived
from the rounded monthly total rather than summed independently.
"""
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Dict

from costcalc.core.config import config
from costcalc.domain.cost_models import CalculationResult
from costcalc.domain.errors import CostOverflowError


CENT = Decimal("0.01")

# Enough digits to quantize any finite float to cents
CURRENCY_PRECISION = 400


def round_currency(value: float, category: str = "total") -> float:
    """
    Round a monetary amount to 2 decimals, halves away from zero.

    Goes through the shortest decimal repr of the float so that values
    such as 1.005 round the way they read.

    Raises:
        CostOverflowError: If the amount is infinite or NaN
    """
    value = float(value)
    if not math.isfinite(value):
        raise CostOverflowError(category, value)
    with localcontext() as context:
        context.prec = CURRENCY_PRECISION
        rounded = float(Decimal(repr(value)).quantize(CENT, rounding=ROUND_HALF_UP))
    if not math.isfinite(rounded):
        raise CostOverflowError(category, value)
    return rounded


def annualize(monthly_cost: float) -> float:
    """Annual cost from an already-rounded monthly cost."""
    return round_currency(monthly_cost * config.MONTHS_PER_YEAR, "annual")


def build_result(breakdown: Dict[str, float]) -> CalculationResult:
    """
    Turn raw category amounts into a CalculationResult.

    Args:
        breakdown: Category name -> unrounded monthly amount

    Returns:
        CalculationResult with rounded categories, monthly and annual cost
    """
    rounded = {category: round_currency(amount, category) for category, amount in breakdown.items()}
    monthly = round_currency(sum(rounded.values()), "monthly")
    return CalculationResult(
        cost_breakdown=rounded,
        monthly_cost=monthly,
        annual_cost=annualize(monthly),
    )


def billable(quantity: float, free_allowance: float) -> float:
    """Quantity left after a free allowance, never below zero."""
    return max(0.0, quantity - free_allowance)


def mb_to_gb(megabytes: float) -> float:
    return megabytes / 1024


def ms_to_seconds(milliseconds: float) -> float:
    return milliseconds / 1000


def per_unit(quantity: float, unit_size: float) -> float:
    """Number of billing units, e.g. per_unit(requests, 1_000_000) for per-million rates."""
    return quantity / unit_size
