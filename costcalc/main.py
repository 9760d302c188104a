"""
Main FastAPI application bootstrap.
Configures logging and middleware and includes routers.
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI

from costcalc.api.calculator import router as calculator_router
from costcalc.core.config import config
from costcalc.middleware.request_size_limiter import RequestSizeLimiterMiddleware
from costcalc.resilience.circuit_breaker import get_circuit_breaker
from costcalc.services.registry import get_model_registry


# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    # Fail fast with a clear message
    raise RuntimeError(f"Configuration error: {error}") from error

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

logger.info(
    "Pricing data from %s, cache %s (ttl=%ss), default region %s",
    config.PRICING_DATA_DIR,
    "enabled" if config.PRICING_CACHE_ENABLED else "disabled",
    config.PRICING_CACHE_TTL_SECONDS,
    config.DEFAULT_REGION,
)


app = FastAPI(
    title="Cloud Cost Calculator",
    description="Monthly and annual cost estimates for cloud service configurations",
)

app.add_middleware(RequestSizeLimiterMiddleware, max_bytes=config.MAX_REQUEST_BYTES)

app.include_router(calculator_router)


@app.get("/health")
async def health() -> Dict[str, Any]:
    """
    Liveness endpoint.

    Returns:
        Service status, number of supported services and the pricing
        cache circuit state
    """
    return {
        "status": "ok",
        "services": len(get_model_registry().list_supported()),
        "pricingCache": get_circuit_breaker("pricing_cache").to_dict(),
    }
