"""
Pricing store accessor.

Resolves (service, region, category) to a rate table: cache first, then
the durable store, then a best-effort write back into the cache. The
cache is optional and its failures never fail a calculation.
"""
import copy
import logging
from typing import Any, Dict, Optional

from costcalc.core.config import config
from costcalc.domain.errors import PricingNotFoundError
from costcalc.resilience.circuit_breaker import CircuitBreaker


logger = logging.getLogger(__name__)


def build_cache_key(service_code: str, region: str, category: Optional[str] = None) -> str:
    """
    Cache key for a pricing lookup.

    Format: pricing:{service}:{region}[:{category}], region lowercased.
    """
    key = f"pricing:{service_code}:{region.strip().lower()}"
    if category:
        return f"{key}:{category}"
    return key


class PricingStoreAccessor:
    """Cache-aside reader over the pricing store."""

    def __init__(
        self,
        store,
        cache=None,
        cache_ttl_seconds: int = config.PRICING_CACHE_TTL_SECONDS,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Initialize accessor.

        Args:
            store: Durable store exposing async find_latest(service, region, category)
            cache: Optional cache exposing async get / set_with_expiry
            cache_ttl_seconds: Expiry for entries written back to the cache
            circuit_breaker: Optional breaker that skips a failing cache
        """
        self.store = store
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.circuit_breaker = circuit_breaker

    def _cache_available(self) -> bool:
        if self.cache is None:
            return False
        if self.circuit_breaker is not None and not self.circuit_breaker.allow_request():
            return False
        return True

    def _release_trial(self) -> None:
        if self.circuit_breaker is not None:
            self.circuit_breaker.release_trial()

    def _record_cache_result(self, ok: bool) -> None:
        if self.circuit_breaker is None:
            return
        if ok:
            self.circuit_breaker.record_success()
        else:
            self.circuit_breaker.record_failure()

    async def _read_cache(self, cache_key: str) -> Optional[Dict[str, Any]]:
        if not self._cache_available():
            return None
        try:
            cached = await self.cache.get(cache_key)
        except Exception as error:
            logger.warning(f"Pricing cache read failed for {cache_key}: {error}")
            self._record_cache_result(False)
            return None
        finally:
            self._release_trial()
        self._record_cache_result(True)
        return cached

    async def _write_cache(self, cache_key: str, pricing_data: Dict[str, Any]) -> None:
        if not self._cache_available():
            return
        try:
            await self.cache.set_with_expiry(cache_key, pricing_data, self.cache_ttl_seconds)
        except Exception as error:
            logger.warning(f"Pricing cache write failed for {cache_key}: {error}")
            self._record_cache_result(False)
            return
        finally:
            self._release_trial()
        self._record_cache_result(True)

    async def get(
        self,
        service_code: str,
        region: str,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get the pricing data for a service in a region.

        Args:
            service_code: Service code (e.g., 'ec2')
            region: Region code; lowercased before lookup
            category: Optional pricing category (e.g., 'compute', 'data-transfer')

        Returns:
            Rate table of the most recently effective document

        Raises:
            PricingNotFoundError: If the store has no matching document
        """
        region = region.strip().lower()
        cache_key = build_cache_key(service_code, region, category)

        cached = await self._read_cache(cache_key)
        if cached is not None:
            logger.debug(f"Pricing cache hit: {cache_key}")
            return cached

        document = await self.store.find_latest(service_code, region, category)
        if document is None:
            raise PricingNotFoundError(service_code, region, category)

        logger.debug(
            f"Loaded pricing {cache_key} (effective {document.effective_date.isoformat()}, "
            f"version {document.version})"
        )
        await self._write_cache(cache_key, document.pricing_data)
        # Callers get their own copy; the store index is shared
        return copy.deepcopy(document.pricing_data)
