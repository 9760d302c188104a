"""
Shared pytest fixtures for calculator tests.
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Set minimal environment variables for testing
os.environ.setdefault('DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('LOG_LEVEL', 'INFO')

import pytest
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient

from costcalc.core.config import config
from costcalc.domain.errors import PricingNotFoundError
from costcalc.main import app
from costcalc.pricing.accessor import PricingStoreAccessor
from costcalc.pricing.store import JsonPricingStore
from costcalc.services.calculator import PricingCalculator
from costcalc.services.registry import get_model_registry


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def pricing_store():
    """Store over the bundled seed pricing documents."""
    return JsonPricingStore(config.PRICING_DATA_DIR)


@pytest.fixture
def pricing(pricing_store):
    """Accessor over the seed documents, no cache."""
    return PricingStoreAccessor(pricing_store)


@pytest.fixture
def calculator(pricing, pricing_store):
    """Calculator wired to the seed documents."""
    return PricingCalculator(get_model_registry(), pricing, pricing_store)


@pytest.fixture
def static_pricing():
    """
    Factory for an accessor stand-in serving fixed rate tables.

    Usage: static_pricing({('ec2', 'compute'): {...}}); lookups for any
    other (service, category) raise PricingNotFoundError.
    """
    def build(tables):
        async def get(service_code, region, category=None):
            if (service_code, category) not in tables:
                raise PricingNotFoundError(service_code, region, category)
            return tables[(service_code, category)]

        mock = Mock()
        mock.get = AsyncMock(side_effect=get)
        return mock

    return build


@pytest.fixture
def ec2_rates():
    """Minimal EC2 compute rate table."""
    return {
        'instanceTypes': {
            't3.test': {'onDemand': {'linux': 0.10}},
            'm5.test': {'onDemand': {'linux': 0.20, 'windows': 0.38}},
        },
        'operatingSystems': {'linux': 1.0, 'windows': 1.6},
        'tenancy': {'shared': 1.0, 'dedicatedinstance': 2.0, 'dedicatedhost': 2.5},
        'pricingModels': {'ondemand': 0.0, 'reserved1yrno': 0.40, 'spot': 0.70},
        'ebs': {
            'gp3': {'pricePerGB': 0.08, 'baselineIops': 3000, 'pricePerIops': 0.005,
                    'baselineThroughput': 125, 'pricePerThroughput': 0.04},
            'gp2': {'pricePerGB': 0.10},
        },
    }
