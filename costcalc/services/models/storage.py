"""
Cost model for object storage (S3).
"""
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, Field

from costcalc.domain.cost_models import CalculationResult
from costcalc.services.models.common import CostModel, lookup_option, rate, region_multiplier, section
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.services.tiered_pricing import apply_tiered_pricing
from costcalc.utils.rounding import build_result, per_unit


class S3Configuration(ServiceConfiguration):
    """Usage inputs for an S3 bucket."""

    storage_class: str = Field(
        default="STANDARD",
        description=(
            "STANDARD, INTELLIGENT_TIERING, STANDARD_IA, ONE_ZONE_IA, GLACIER_INSTANT, "
            "GLACIER_FLEXIBLE or GLACIER_DEEP_ARCHIVE"
        ),
    )
    storage_amount: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("storageAmount", "storage", "storage_amount"),
        description="Average data stored, GB/month",
    )
    put_requests: float = Field(default=0, ge=0, description="PUT, COPY, POST and LIST requests per month")
    get_requests: float = Field(default=0, ge=0, description="GET, SELECT and other requests per month")
    data_retrieved: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("dataRetrieved", "dataRetrieval", "data_retrieved"),
        description="Data retrieved from infrequent access or archive classes, GB/month",
    )
    retrieval_tier: str = Field(default="standard", description="Archive retrieval speed: expedited, standard or bulk")
    data_transfer_out: float = Field(default=0, ge=0, description="Data transferred out to the internet, GB/month")
    enable_replication: bool = Field(default=False, description="Replicate objects to another region")
    replication_amount: Optional[float] = Field(
        default=None, ge=0, description="Data replicated, GB/month; defaults to the stored amount"
    )
    number_of_objects: float = Field(
        default=0, ge=0, description="Objects monitored by Intelligent-Tiering"
    )


def _retrieval_rate(storage_class: Mapping[str, Any], retrieval_tier: str, class_name: str) -> float:
    # Archive classes price retrieval per speed tier
    retrieval = storage_class.get("retrievalPerGB", 0.0)
    if isinstance(retrieval, Mapping):
        return float(lookup_option(retrieval, retrieval_tier, f"s3 retrieval tiers for {class_name}"))
    return float(retrieval)


async def calculate_s3(configuration: S3Configuration, pricing) -> CalculationResult:
    """Storage by class, requests per 1 000, retrieval, monitoring, replication and egress."""
    rates = await pricing.get("s3", configuration.region, "storage")
    multiplier = region_multiplier(rates, configuration.region)
    storage_class = lookup_option(section(rates, "storageClasses", "s3"), configuration.storage_class, "s3 storageClasses")

    if "tiers" in storage_class:
        storage_cost = apply_tiered_pricing(configuration.storage_amount, storage_class["tiers"])
    else:
        storage_cost = configuration.storage_amount * rate(storage_class, "pricePerGB", "s3")
    storage_cost *= multiplier

    request_cost = (
        per_unit(configuration.put_requests, 1000) * float(storage_class.get("putPer1000", 0))
        + per_unit(configuration.get_requests, 1000) * float(storage_class.get("getPer1000", 0))
    ) * multiplier

    retrieval_cost = 0.0
    if configuration.data_retrieved > 0:
        retrieval_cost = (
            configuration.data_retrieved
            * _retrieval_rate(storage_class, configuration.retrieval_tier, configuration.storage_class)
            * multiplier
        )

    monitoring_cost = per_unit(configuration.number_of_objects, 1000) * float(
        storage_class.get("monitoringPer1000Objects", 0)
    )

    replication_cost = 0.0
    if configuration.enable_replication:
        replicated = configuration.replication_amount
        if replicated is None:
            replicated = configuration.storage_amount
        replication_cost = replicated * rate(rates, "replicationPricePerGB", "s3")

    transfer_cost = 0.0
    if configuration.data_transfer_out > 0:
        transfer_pricing = await pricing.get("s3", configuration.region, "data-transfer")
        transfer_cost = apply_tiered_pricing(configuration.data_transfer_out, section(transfer_pricing, "tiers", "s3"))

    return build_result({
        "storage": storage_cost,
        "requests": request_cost,
        "retrieval": retrieval_cost,
        "dataTransfer": transfer_cost,
        "monitoring": monitoring_cost,
        "replication": replication_cost,
    })


MODELS = [
    CostModel(
        service_code="s3",
        name="S3",
        category="Storage",
        description="Object storage billed by class, requests, retrieval and egress",
        configuration_class=S3Configuration,
        calculate=calculate_s3,
    ),
]
