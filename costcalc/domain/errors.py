"""
Exception taxonomy for the pricing calculation core.

Callers can tell an unsupported service apart from missing pricing data
and from a bad enum selection inside an otherwise valid configuration.
"""
from typing import List, Optional


class CostCalculatorError(Exception):
    """Base class for errors raised while calculating a service cost."""
    pass


class UnsupportedServiceError(CostCalculatorError):
    """Raised when no cost model is registered for a service code."""

    def __init__(self, service_code: str):
        self.service_code = service_code
        super().__init__(f"Calculator not implemented for service: {service_code}")


class PricingNotFoundError(CostCalculatorError):
    """Raised when the pricing store holds no document for a service/region."""

    def __init__(self, service_code: str, region: str, category: Optional[str] = None):
        self.service_code = service_code
        self.region = region
        self.category = category
        message = f"Pricing data not found for {service_code} in region {region}"
        if category:
            message += f" (category: {category})"
        super().__init__(message)


class RateNotFoundError(CostCalculatorError):
    """Raised when a configuration names a key missing from a rate table."""

    def __init__(self, rate_table: str, key: str):
        self.rate_table = rate_table
        self.key = key
        super().__init__(f"No rate found for '{key}' in {rate_table}")


class InvalidConfigurationError(CostCalculatorError):
    """Raised when a service configuration fails validation."""

    def __init__(self, service_code: str, details: List[str]):
        self.service_code = service_code
        self.details = details
        super().__init__(
            f"Invalid configuration for {service_code}: " + "; ".join(details)
        )


class CostOverflowError(CostCalculatorError):
    """Raised when a computed amount is not a finite number."""

    def __init__(self, category: str, value: float):
        self.category = category
        self.value = value
        super().__init__(f"Cost for {category} is out of range: {value}")


class PricingStoreError(Exception):
    """Raised when pricing seed files cannot be read."""
    pass


class PricingCacheError(Exception):
    """Raised by cache backends on I/O failure."""
    pass
