"""
Configuration module for loading environment variables.
Pricing store, cache and calculation settings are read once at import time.
"""
import os
from pathlib import Path


DEFAULT_PRICING_DATA_DIR = Path(__file__).resolve().parent.parent / "pricing" / "data"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Pricing store
    PRICING_DATA_DIR: str = os.getenv("PRICING_DATA_DIR", str(DEFAULT_PRICING_DATA_DIR))
    DEFAULT_REGION: str = os.getenv("DEFAULT_REGION", "us-east-1").strip().lower()

    # Pricing cache
    PRICING_CACHE_ENABLED: bool = _env_flag("PRICING_CACHE_ENABLED", "true")
    PRICING_CACHE_TTL_SECONDS: int = int(os.getenv("PRICING_CACHE_TTL_SECONDS", "3600"))  # 1 hour
    CACHE_FAILURE_THRESHOLD: int = int(os.getenv("CACHE_FAILURE_THRESHOLD", "3"))
    CACHE_OPEN_SECONDS: int = int(os.getenv("CACHE_OPEN_SECONDS", "60"))

    # Calculation constants
    HOURS_PER_MONTH: int = 730  # Standard assumption: 24/7 operation
    MONTHS_PER_YEAR: int = 12

    # Request limits
    BATCH_MAX_ITEMS: int = int(os.getenv("BATCH_MAX_ITEMS", "50"))
    MAX_REQUEST_BYTES: int = int(os.getenv("MAX_REQUEST_BYTES", str(256 * 1024)))  # 256 KB

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if not cls.PRICING_DATA_DIR:
            raise ValueError("PRICING_DATA_DIR is required")
        if not Path(cls.PRICING_DATA_DIR).is_dir():
            raise ValueError(
                f"PRICING_DATA_DIR must be an existing directory (got: {cls.PRICING_DATA_DIR})"
            )
        if not cls.DEFAULT_REGION:
            raise ValueError("DEFAULT_REGION is required")
        if cls.PRICING_CACHE_TTL_SECONDS <= 0:
            raise ValueError("PRICING_CACHE_TTL_SECONDS must be positive")
        if cls.CACHE_FAILURE_THRESHOLD < 1:
            raise ValueError("CACHE_FAILURE_THRESHOLD must be at least 1")
        if cls.BATCH_MAX_ITEMS < 1:
            raise ValueError("BATCH_MAX_ITEMS must be at least 1")
        if cls.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL is not a valid logging level (got: {cls.LOG_LEVEL})")


config = Config()
