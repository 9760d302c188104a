"""
Domain models for pricing data.
Defines pricing documents as stored and the tier bands inside them.
"""
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
import math


class PricingCategory(Enum):
    """Sub-partitions of a service's rate table."""
    COMPUTE = "compute"
    STORAGE = "storage"
    REQUEST = "request"
    DATA_TRANSFER = "data-transfer"
    OTHER = "other"


def _parse_upper_bound(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in ("infinity", "inf", "unbounded"):
            return None
        value = float(value)
    bound = float(value)
    if math.isinf(bound):
        return None
    return bound


@dataclass(frozen=True)
class PriceTier:
    """A quantity band billed at its own unit price. up_to=None is unbounded."""
    up_to: Optional[float]
    price_per_unit: Optional[float] = None
    price_per_gb: Optional[float] = None

    @property
    def unit_price(self) -> float:
        """Whichever rate field is populated, per GB first."""
        if self.price_per_gb is not None:
            return self.price_per_gb
        if self.price_per_unit is not None:
            return self.price_per_unit
        return 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceTier":
        """Build a tier from its JSON shape ({upTo, pricePerGB | pricePerUnit})."""
        per_unit = data.get("pricePerUnit")
        per_gb = data.get("pricePerGB")
        return cls(
            up_to=_parse_upper_bound(data.get("upTo")),
            price_per_unit=float(per_unit) if per_unit is not None else None,
            price_per_gb=float(per_gb) if per_gb is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {"upTo": self.up_to}
        if self.price_per_gb is not None:
            result["pricePerGB"] = self.price_per_gb
        if self.price_per_unit is not None:
            result["pricePerUnit"] = self.price_per_unit
        return result


@dataclass(frozen=True)
class PricingDocument:
    """
    Rate table for one (service, region, category).

    Read-only once loaded; several versions may exist and the most
    recent effective date wins.
    """
    service_code: str
    region: str
    category: Optional[str]
    pricing_data: Dict[str, Any]
    effective_date: date
    version: str = "1.0"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "serviceCode": self.service_code,
            "region": self.region,
            "pricingType": self.category,
            "pricingData": self.pricing_data,
            "effectiveDate": self.effective_date.isoformat(),
            "version": self.version,
        }


@dataclass
class RegionInfo:
    """AWS region as exposed for discovery."""
    code: str
    name: str
    location: str
    services: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "name": self.name,
            "location": self.location,
            "services": self.services,
        }
