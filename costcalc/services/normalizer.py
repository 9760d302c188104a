"""
Configuration normalizer.

Every cost model declares a pydantic configuration class. Field defaults
are the documented defaults for each optional input, numeric inputs carry
a lower bound of zero, and keys are accepted in camelCase (as sent by the
UI) or snake_case. This module turns a raw configuration dictionary into
that object, or raises InvalidConfigurationError.
"""
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from costcalc.core.config import config
from costcalc.domain.errors import InvalidConfigurationError


logger = logging.getLogger(__name__)

ConfigurationT = TypeVar("ConfigurationT", bound="ServiceConfiguration")


class ServiceConfiguration(BaseModel):
    """Base class for per-service usage inputs."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        allow_inf_nan=False,
    )

    region: str = Field(
        default_factory=lambda: config.DEFAULT_REGION,
        description="Region code; pricing documents are looked up per region",
    )

    @field_validator("region")
    @classmethod
    def _lowercase_region(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("region must not be empty")
        return value


def _format_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "configuration"
    return f"{location}: {error.get('msg', 'invalid value')}"


def normalize_configuration(
    service_code: str,
    configuration_class: Type[ConfigurationT],
    raw: Optional[Dict[str, Any]],
    region: Optional[str] = None,
) -> ConfigurationT:
    """
    Validate a raw configuration and fill in defaults.

    Args:
        service_code: Service the configuration belongs to (for error messages)
        configuration_class: The model's ServiceConfiguration subclass
        raw: Configuration as received from the caller
        region: Region given next to the configuration; used when the
                configuration itself names none

    Returns:
        Validated, immutable configuration object

    Raises:
        InvalidConfigurationError: If the configuration is not an object
            or any field fails validation
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidConfigurationError(service_code, ["configuration must be an object"])

    if region and "region" not in raw:
        raw = {**raw, "region": region}

    try:
        return configuration_class.model_validate(raw)
    except ValidationError as error:
        details = [_format_error(item) for item in error.errors()]
        logger.info(f"Rejected {service_code} configuration: {details}")
        raise InvalidConfigurationError(service_code, details) from error


def configuration_defaults(configuration_class: Type[ServiceConfiguration]) -> Dict[str, Any]:
    """Default value of every optional field, keyed by its camelCase name."""
    defaults: Dict[str, Any] = {}
    for name, field in configuration_class.model_fields.items():
        if field.is_required() or name == "region":
            continue
        value = field.get_default(call_default_factory=True)
        if isinstance(value, BaseModel):
            value = value.model_dump(by_alias=True)
        defaults[field.alias or to_camel(name)] = value
    return defaults
