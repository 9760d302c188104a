"""
Rate table helpers shared by the service cost models, and the CostModel
descriptor each model module exports.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type

from costcalc.domain.cost_models import CalculationResult
from costcalc.domain.errors import RateNotFoundError
from costcalc.services.normalizer import ServiceConfiguration, normalize_configuration


@dataclass(frozen=True)
class CostModel:
    """
    A service cost model: metadata, configuration schema and the pure
    calculation function (configuration, pricing accessor) -> result.
    """
    service_code: str
    name: str
    category: str
    description: str
    configuration_class: Type[ServiceConfiguration]
    calculate: Callable[[Any, Any], Awaitable[CalculationResult]]

    def normalize(self, raw: Optional[Dict[str, Any]], region: Optional[str] = None) -> ServiceConfiguration:
        return normalize_configuration(self.service_code, self.configuration_class, raw, region)

    async def run(
        self,
        raw: Optional[Dict[str, Any]],
        pricing,
        region: Optional[str] = None,
    ) -> CalculationResult:
        """Normalize a raw configuration and calculate its cost."""
        configuration = self.normalize(raw, region)
        return await self.calculate(configuration, pricing)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.service_code,
            "name": self.name,
            "category": self.category,
            "description": self.description,
        }


def rate_key(value: Any) -> str:
    """
    Canonical form of an enum selection used as a rate table key.

    'Reserved-1yr-No' -> 'reserved1yrno', 'Dedicated Host' -> 'dedicatedhost'.
    """
    text = str(value).strip().lower()
    for separator in (" ", "-", "_"):
        text = text.replace(separator, "")
    return text


def number_key(value: float) -> str:
    """Rate table key for a numeric option: 0.25 -> '0.25', 2.0 -> '2'."""
    return f"{value:g}"


def lookup(table: Mapping[str, Any], key: str, table_name: str) -> Any:
    """
    Look up a key exactly.

    Raises:
        RateNotFoundError: If the key is absent
    """
    if table is None or key not in table:
        raise RateNotFoundError(table_name, key)
    return table[key]


def lookup_option(table: Mapping[str, Any], selection: Any, table_name: str) -> Any:
    """
    Look up an enum selection, ignoring case, spaces, dashes and underscores.

    Raises:
        RateNotFoundError: If no key matches the selection
    """
    if table:
        if selection in table:
            return table[selection]
        wanted = rate_key(selection)
        for key, value in table.items():
            if rate_key(key) == wanted:
                return value
    raise RateNotFoundError(table_name, str(selection))


def section(pricing: Mapping[str, Any], name: str, service_code: str) -> Any:
    """
    A required sub-table of a pricing document.

    Raises:
        RateNotFoundError: If the document lacks the section
    """
    return lookup(pricing, name, f"{service_code} pricing")


def region_multiplier(pricing: Mapping[str, Any], region: str) -> float:
    """Regional price adjustment from the document, 1.0 when not listed."""
    return float(pricing.get("regionMultipliers", {}).get(region, 1.0))


def volume_monthly_cost(
    rates: Mapping[str, Any],
    size_gb: float,
    iops: Optional[float] = None,
    throughput: Optional[float] = None,
) -> float:
    """
    Monthly cost of one block storage volume.

    Rates hold pricePerGB and optionally pricePerIops / pricePerThroughput
    with baselineIops / baselineThroughput; only usage above a baseline
    is billed.
    """
    cost = size_gb * float(rates.get("pricePerGB", 0.0))
    if iops and "pricePerIops" in rates:
        extra_iops = max(0.0, iops - float(rates.get("baselineIops", 0)))
        cost += extra_iops * float(rates["pricePerIops"])
    if throughput and "pricePerThroughput" in rates:
        extra_throughput = max(0.0, throughput - float(rates.get("baselineThroughput", 0)))
        cost += extra_throughput * float(rates["pricePerThroughput"])
    return cost


def rate(table: Mapping[str, Any], key: str, service_code: str) -> float:
    """
    A required numeric rate from a pricing table.

    Raises:
        RateNotFoundError: If the rate is absent
    """
    return float(lookup(table, key, f"{service_code} pricing"))
