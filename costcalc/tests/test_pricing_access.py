"""
Tests for pricing storage, caching and cache-aside access.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, Mock

import pytest

from costcalc.domain.errors import PricingNotFoundError, PricingStoreError
from costcalc.domain.pricing_models import PricingDocument
from costcalc.pricing.accessor import PricingStoreAccessor, build_cache_key
from costcalc.pricing.cache import InMemoryPricingCache
from costcalc.pricing.store import JsonPricingStore
from costcalc.resilience.circuit_breaker import CircuitBreaker, CircuitState
from costcalc.services.calculator import PricingCalculator
from costcalc.services.registry import get_model_registry


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _document(pricing_data, effective, region='us-east-1', category='compute'):
    return PricingDocument(
        service_code='ec2',
        region=region,
        category=category,
        pricing_data=pricing_data,
        effective_date=effective,
    )


def _store_returning(document):
    store = Mock()
    store.find_latest = AsyncMock(return_value=document)
    return store


def test_build_cache_key_format():
    """Keys follow pricing:{service}:{region}[:{category}]."""
    assert build_cache_key('ec2', 'US-East-1') == 'pricing:ec2:us-east-1'
    assert build_cache_key('s3', 'eu-west-1', 'storage') == 'pricing:s3:eu-west-1:storage'


@pytest.mark.asyncio
async def test_store_loads_seed_documents(pricing_store):
    """Seed files are indexed per service and region."""
    document = await pricing_store.find_latest('ec2', 'us-east-1', 'compute')

    assert document is not None
    assert document.category == 'compute'
    assert 'instanceTypes' in document.pricing_data
    assert 'ec2' in pricing_store.list_services()
    assert 'us-east-1' in pricing_store.list_regions('ec2')


@pytest.mark.asyncio
async def test_store_region_is_case_insensitive(pricing_store):
    """Region lookups ignore case and surrounding spaces."""
    document = await pricing_store.find_latest('ec2', ' US-EAST-1 ', 'compute')
    assert document is not None


@pytest.mark.asyncio
async def test_store_latest_effective_date_wins(pricing_store):
    """A newer document supersedes the seed for the same key."""
    newer = _document({'marker': 'newer'}, date(2030, 1, 1))
    older = _document({'marker': 'older'}, date(2000, 1, 1))
    pricing_store.add_document(newer)
    pricing_store.add_document(older)

    document = await pricing_store.find_latest('ec2', 'us-east-1', 'compute')

    assert document.pricing_data == {'marker': 'newer'}


@pytest.mark.asyncio
async def test_store_unknown_service_returns_none(pricing_store):
    """Missing documents come back as None, not an error."""
    assert await pricing_store.find_latest('nope', 'us-east-1') is None


def test_store_missing_directory_raises(tmp_path):
    """A data directory that does not exist is rejected up front."""
    with pytest.raises(PricingStoreError):
        JsonPricingStore(str(tmp_path / 'missing'))


@pytest.mark.asyncio
async def test_store_rejects_unknown_category(tmp_path):
    """Seed documents must use a known pricing category."""
    (tmp_path / 'bad.json').write_text(
        '{"serviceCode": "bad", "documents": [{"pricingType": "misc", '
        '"regions": ["us-east-1"], "pricingData": {}}]}'
    )
    store = JsonPricingStore(str(tmp_path))

    with pytest.raises(PricingStoreError):
        await store.find_latest('bad', 'us-east-1')


@pytest.mark.asyncio
async def test_cache_entry_expires():
    """Entries disappear once their TTL has passed."""
    clock = FakeClock()
    cache = InMemoryPricingCache(clock=clock)
    await cache.set_with_expiry('k', {'rate': 1}, 60)

    assert await cache.get('k') == {'rate': 1}
    clock.now += 61
    assert await cache.get('k') is None
    assert cache.stats() == {'entries': 0, 'hits': 1, 'misses': 1}


@pytest.mark.asyncio
async def test_cache_returns_copies():
    """Mutating a cached value does not change the cache."""
    cache = InMemoryPricingCache()
    await cache.set_with_expiry('k', {'rates': {'a': 1}}, 60)

    value = await cache.get('k')
    value['rates']['a'] = 99

    assert await cache.get('k') == {'rates': {'a': 1}}


@pytest.mark.asyncio
async def test_accessor_reads_store_and_writes_cache():
    """A cache miss loads from the store and fills the cache."""
    store = _store_returning(_document({'rate': 1}, date(2024, 1, 1)))
    cache = InMemoryPricingCache()
    accessor = PricingStoreAccessor(store, cache=cache, cache_ttl_seconds=60)

    assert await accessor.get('ec2', 'US-EAST-1', 'compute') == {'rate': 1}
    assert await cache.get('pricing:ec2:us-east-1:compute') == {'rate': 1}
    store.find_latest.assert_awaited_once_with('ec2', 'us-east-1', 'compute')


@pytest.mark.asyncio
async def test_accessor_cache_hit_skips_store():
    """A cached table is returned without touching the store."""
    store = _store_returning(None)
    cache = Mock()
    cache.get = AsyncMock(return_value={'rate': 2})
    cache.set_with_expiry = AsyncMock()
    accessor = PricingStoreAccessor(store, cache=cache)

    assert await accessor.get('ec2', 'us-east-1', 'compute') == {'rate': 2}
    store.find_latest.assert_not_called()


@pytest.mark.asyncio
async def test_accessor_falls_back_when_cache_fails():
    """Cache errors never fail the lookup."""
    store = _store_returning(_document({'rate': 3}, date(2024, 1, 1)))
    cache = Mock()
    cache.get = AsyncMock(side_effect=ConnectionError("cache down"))
    cache.set_with_expiry = AsyncMock(side_effect=ConnectionError("cache down"))
    accessor = PricingStoreAccessor(store, cache=cache)

    assert await accessor.get('ec2', 'us-east-1', 'compute') == {'rate': 3}


@pytest.mark.asyncio
async def test_accessor_opens_breaker_after_repeated_cache_failures():
    """Once the breaker opens the cache is no longer called."""
    store = _store_returning(_document({'rate': 4}, date(2024, 1, 1)))
    cache = Mock()
    cache.get = AsyncMock(side_effect=ConnectionError("cache down"))
    cache.set_with_expiry = AsyncMock()
    breaker = CircuitBreaker('test_cache', failure_threshold=2, open_seconds=30, clock=FakeClock())
    accessor = PricingStoreAccessor(store, cache=cache, circuit_breaker=breaker)

    # First lookup: read fails, write succeeds and resets the count
    await accessor.get('ec2', 'us-east-1', 'compute')
    cache.set_with_expiry = AsyncMock(side_effect=ConnectionError("cache down"))
    # Second lookup: read and write both fail
    await accessor.get('ec2', 'us-east-1', 'compute')

    assert breaker.state == CircuitState.OPEN
    calls_before = cache.get.await_count
    assert await accessor.get('ec2', 'us-east-1', 'compute') == {'rate': 4}
    assert cache.get.await_count == calls_before


@pytest.mark.asyncio
async def test_accessor_missing_document_raises():
    """No document for the key is a PricingNotFoundError."""
    accessor = PricingStoreAccessor(_store_returning(None))

    with pytest.raises(PricingNotFoundError) as exc_info:
        await accessor.get('ec2', 'mars-north-1', 'compute')

    assert exc_info.value.service_code == 'ec2'
    assert exc_info.value.region == 'mars-north-1'


def test_circuit_breaker_half_open_recovery():
    """After the open period one trial call is allowed and success closes it."""
    clock = FakeClock()
    breaker = CircuitBreaker('trial', failure_threshold=1, open_seconds=10, clock=clock)

    breaker.record_failure()
    assert breaker.allow_request() is False

    clock.now += 10
    assert breaker.allow_request() is True
    assert breaker.state == CircuitState.HALF_OPEN
    assert breaker.allow_request() is False

    breaker.record_success()
    assert breaker.state == CircuitState.CLOSED
    assert breaker.allow_request() is True


def test_circuit_breaker_half_open_failure_reopens():
    """A failed trial call reopens the breaker."""
    clock = FakeClock()
    breaker = CircuitBreaker('trial', failure_threshold=1, open_seconds=10, clock=clock)
    breaker.record_failure()
    clock.now += 10
    breaker.allow_request()

    breaker.record_failure()

    assert breaker.state == CircuitState.OPEN
    assert breaker.to_dict()['state'] == 'open'


@pytest.mark.asyncio
async def test_store_tables_are_copied_per_caller():
    """Changing a returned table does not touch the store's document."""
    document = _document({'instanceTypes': {'m5.large': {'onDemand': {'linux': 0.096}}}}, date(2024, 1, 1))
    accessor = PricingStoreAccessor(_store_returning(document))

    table = await accessor.get('ec2', 'us-east-1', 'compute')
    table['instanceTypes']['m5.large']['onDemand']['linux'] = 99.0

    assert document.pricing_data['instanceTypes']['m5.large']['onDemand']['linux'] == 0.096
    again = await accessor.get('ec2', 'us-east-1', 'compute')
    assert again['instanceTypes']['m5.large']['onDemand']['linux'] == 0.096


@pytest.mark.asyncio
async def test_calculation_same_with_cache_hit_or_cache_failure(pricing_store):
    """A full calculation does not depend on whether the cache works."""
    configuration = {
        'instanceType': 'm5.large',
        'quantity': 2,
        'ebsVolumes': [{'type': 'gp3', 'size': 100}],
        'dataTransferOut': 500,
    }

    cached = PricingStoreAccessor(pricing_store, cache=InMemoryPricingCache())
    await PricingCalculator(get_model_registry(), cached).calculate('ec2', configuration)
    # Every table is now cached; a store lookup would raise
    cached.store = _store_returning(None)
    from_cache = await PricingCalculator(get_model_registry(), cached).calculate('ec2', configuration)

    broken_cache = Mock()
    broken_cache.get = AsyncMock(side_effect=ConnectionError("cache down"))
    broken_cache.set_with_expiry = AsyncMock(side_effect=ConnectionError("cache down"))
    failing = PricingStoreAccessor(pricing_store, cache=broken_cache)
    from_store = await PricingCalculator(get_model_registry(), failing).calculate('ec2', configuration)

    assert from_cache == from_store
    assert from_store.monthly_cost > 0
    assert set(from_store.cost_breakdown) == {'compute', 'storage', 'dataTransfer'}


@pytest.mark.asyncio
async def test_cancelled_trial_does_not_lock_out_cache():
    """A half-open trial that is cancelled lets the next lookup try again."""
    clock = FakeClock()
    breaker = CircuitBreaker('test_cache', failure_threshold=1, open_seconds=30, clock=clock)
    breaker.record_failure()
    clock.now += 31

    cache = Mock()
    cache.get = AsyncMock(side_effect=asyncio.CancelledError())
    cache.set_with_expiry = AsyncMock()
    accessor = PricingStoreAccessor(_store_returning(None), cache=cache, circuit_breaker=breaker)

    with pytest.raises(asyncio.CancelledError):
        await accessor.get('ec2', 'us-east-1', 'compute')
    assert breaker.state == CircuitState.HALF_OPEN

    cache.get = AsyncMock(return_value={'rate': 5})
    assert await accessor.get('ec2', 'us-east-1', 'compute') == {'rate': 5}
    assert breaker.state == CircuitState.CLOSED
