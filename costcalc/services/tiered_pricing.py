"""
Tiered (progressive) pricing evaluator.

Applies an ordered list of price bands to a consumed quantity. Results
are not rounded here; rounding happens once, on the final result.
"""
from typing import Any, Dict, Iterable, List, Sequence, Union

from costcalc.domain.pricing_models import PriceTier


TierLike = Union[PriceTier, Dict[str, Any]]


def parse_tiers(raw_tiers: Iterable[TierLike]) -> List[PriceTier]:
    """
    Convert JSON tier dictionaries into PriceTier objects.

    Args:
        raw_tiers: Tiers as stored in pricing documents, or PriceTier objects

    Returns:
        List of PriceTier in the given order
    """
    return [
        tier if isinstance(tier, PriceTier) else PriceTier.from_dict(tier)
        for tier in raw_tiers
    ]


def apply_tiered_pricing(quantity: float, tiers: Sequence[TierLike]) -> float:
    """
    Cost of a quantity billed across progressive price bands.

    Each band bills min(remaining, up_to - previous upper bound). The walk
    stops at the first band whose billable amount is not positive or once
    nothing remains, so an exhausted or zero-width band never adds cost.

    Args:
        quantity: Consumed quantity (GB, requests, ...)
        tiers: Bands ascending by upper bound; the last may be unbounded

    Returns:
        Total cost, unrounded
    """
    total = 0.0
    remaining = float(quantity)
    previous_bound = 0.0

    for tier in parse_tiers(tiers):
        if tier.up_to is None:
            amount = remaining
        else:
            amount = min(remaining, tier.up_to - previous_bound)

        if amount <= 0 or remaining <= 0:
            break

        total += amount * tier.unit_price
        remaining -= amount
        if tier.up_to is not None:
            previous_bound = tier.up_to

    return total
