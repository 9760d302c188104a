"""
Pricing calculator facade.

Single entry point used by the API layer: resolves the cost model for a
service code, normalizes the configuration, and runs the model against the
pricing accessor. Also exposes batch calculation and service discovery.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from costcalc.core.config import config
from costcalc.domain.cost_models import BatchResult, CalculationResult
from costcalc.domain.pricing_models import RegionInfo
from costcalc.pricing.accessor import PricingStoreAccessor
from costcalc.pricing.cache import InMemoryPricingCache
from costcalc.pricing.region_map import list_regions
from costcalc.pricing.store import JsonPricingStore
from costcalc.resilience.circuit_breaker import get_circuit_breaker
from costcalc.services.batch import BatchAggregator
from costcalc.services.registry import ModelRegistry, get_model_registry


logger = logging.getLogger(__name__)


class PricingCalculator:
    """Dispatches cost calculations to the registered service models."""

    def __init__(self, registry: ModelRegistry, pricing: PricingStoreAccessor, store: Optional[JsonPricingStore] = None):
        """
        Initialize calculator.

        Args:
            registry: Service code -> cost model registry
            pricing: Accessor the models read their rate tables through
            store: Pricing store, used for region discovery
        """
        self.registry = registry
        self.pricing = pricing
        self.store = store
        self.batch_aggregator = BatchAggregator(self)

    async def calculate(
        self,
        service_code: str,
        configuration: Optional[Dict[str, Any]],
        region: Optional[str] = None,
    ) -> CalculationResult:
        """
        Calculate the cost of one service configuration.

        Args:
            service_code: Service code (case-insensitive)
            configuration: Raw configuration dictionary
            region: Region used when the configuration names none

        Returns:
            CalculationResult with the rounded breakdown, monthly and annual cost

        Raises:
            UnsupportedServiceError: No model for the service code
            InvalidConfigurationError: The configuration failed validation
            PricingNotFoundError: No pricing document for the service/region
            RateNotFoundError: A selection is missing from a rate table
        """
        model = self.registry.resolve(service_code)
        result = await model.run(configuration, self.pricing, region)
        logger.debug(f"Calculated {model.service_code}: ${result.monthly_cost}/month")
        return result

    async def calculate_batch(self, items: Sequence[Dict[str, Any]]) -> BatchResult:
        return await self.batch_aggregator.calculate_batch(items)

    def is_supported(self, service_code: str) -> bool:
        return self.registry.is_supported(service_code)

    def list_supported_services(self) -> List[str]:
        return self.registry.list_supported()

    def list_services(self) -> List[Dict[str, Any]]:
        """Metadata of every supported service, sorted by code."""
        return [model.to_dict() for model in self.registry.list_models()]

    def describe_service(self, service_code: str) -> Dict[str, Any]:
        return self.registry.describe(service_code)

    def list_regions(self) -> List[RegionInfo]:
        """Known regions, each with the services priced there."""
        services_by_region: Dict[str, List[str]] = {}
        if self.store is not None:
            for service_code in self.store.list_services():
                for region in self.store.list_regions(service_code):
                    services_by_region.setdefault(region, []).append(service_code)
        return list_regions(services_by_region)


_calculator: Optional[PricingCalculator] = None


def get_calculator() -> PricingCalculator:
    """
    Get the global calculator instance.

    Wires the JSON pricing store, the in-memory cache (when enabled) and
    the cache circuit breaker according to Config.

    Returns:
        PricingCalculator instance
    """
    global _calculator
    if _calculator is None:
        store = JsonPricingStore(config.PRICING_DATA_DIR)
        cache = InMemoryPricingCache() if config.PRICING_CACHE_ENABLED else None
        accessor = PricingStoreAccessor(
            store,
            cache=cache,
            cache_ttl_seconds=config.PRICING_CACHE_TTL_SECONDS,
            circuit_breaker=get_circuit_breaker("pricing_cache"),
        )
        _calculator = PricingCalculator(get_model_registry(), accessor, store)
        logger.info(
            f"Pricing calculator ready: {len(_calculator.list_supported_services())} services, "
            f"cache {'enabled' if cache else 'disabled'}"
        )
    return _calculator
