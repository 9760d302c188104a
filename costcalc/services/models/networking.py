"""
Cost models for networking and content delivery: CloudFront, Route 53 and
API Gateway.

Request volumes are priced per million through tier tables whose bounds are
expressed in millions.
"""
from pydantic import AliasChoices, Field

from costcalc.core.config import config
from costcalc.domain.cost_models import CalculationResult
from costcalc.domain.errors import RateNotFoundError
from costcalc.services.models.common import (
    CostModel,
    lookup,
    lookup_option,
    rate,
    rate_key,
    region_multiplier,
    section,
)
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.services.tiered_pricing import apply_tiered_pricing
from costcalc.utils.rounding import billable, build_result, per_unit


# ---------------------------------------------------------------------------
# CloudFront
# ---------------------------------------------------------------------------

class CloudFrontConfiguration(ServiceConfiguration):
    """Usage inputs for a CloudFront distribution."""

    price_class: str = Field(default="PriceClass_All", description="PriceClass_All, PriceClass_200 or PriceClass_100")
    data_transfer_out_gb: float = Field(
        default=1000,
        ge=0,
        validation_alias=AliasChoices("dataTransferOutGB", "dataTransferOut", "data_transfer_out_gb"),
        description="Data transferred to viewers, GB/month",
    )
    http_requests: float = Field(default=1_000_000, ge=0, description="HTTP requests per month")
    https_requests: float = Field(default=9_000_000, ge=0, description="HTTPS requests per month")
    invalidation_paths: float = Field(default=0, ge=0, description="Invalidation paths per month")


async def calculate_cloudfront(configuration: CloudFrontConfiguration, pricing) -> CalculationResult:
    """Tiered egress by price class, requests per 10 000, invalidations beyond the free paths."""
    rates = await pricing.get("cloudfront", configuration.region, "data-transfer")
    price_class = lookup_option(
        section(rates, "priceClasses", "cloudfront"), configuration.price_class, "cloudfront priceClasses"
    )
    transfer_cost = apply_tiered_pricing(configuration.data_transfer_out_gb, section(price_class, "tiers", "cloudfront"))

    requests = section(rates, "requests", "cloudfront")
    http_cost = per_unit(configuration.http_requests, 10_000) * rate(requests, "httpPer10k", "cloudfront")
    https_cost = per_unit(configuration.https_requests, 10_000) * rate(requests, "httpsPer10k", "cloudfront")

    invalidation = section(rates, "invalidation", "cloudfront")
    chargeable_paths = billable(configuration.invalidation_paths, float(invalidation.get("freePaths", 0)))
    invalidation_cost = chargeable_paths * rate(invalidation, "pricePerPath", "cloudfront")

    return build_result({
        "dataTransfer": transfer_cost,
        "httpRequests": http_cost,
        "httpsRequests": https_cost,
        "invalidations": invalidation_cost,
    })


# ---------------------------------------------------------------------------
# Route 53
# ---------------------------------------------------------------------------

class Route53Configuration(ServiceConfiguration):
    """Usage inputs for Route 53 DNS."""

    hosted_zones: int = Field(default=1, ge=0, description="Hosted zones")
    standard_queries: float = Field(default=10_000_000, ge=0, description="Simple routing queries per month")
    latency_queries: float = Field(default=0, ge=0, description="Latency based routing queries per month")
    geo_queries: float = Field(default=0, ge=0, description="Geo DNS and geoproximity queries per month")
    aws_health_checks: int = Field(default=0, ge=0, description="Health checks on AWS endpoints")
    non_aws_health_checks: int = Field(default=0, ge=0, description="Health checks on non-AWS endpoints")
    health_checks_with_metrics: int = Field(default=0, ge=0, description="Health checks with CloudWatch metrics")
    traffic_flow_policy_records: int = Field(default=0, ge=0, description="Traffic flow policy records")
    traffic_flow_queries: float = Field(default=0, ge=0, description="Traffic flow queries per month")
    domain_registrations: int = Field(default=0, ge=0, description="Registered domains")
    domain_registration_type: str = Field(default=".com", description="Top-level domain, e.g. .com or .io")


async def calculate_route53(configuration: Route53Configuration, pricing) -> CalculationResult:
    """Hosted zones, queries per routing type, health checks, traffic flow and domains."""
    rates = await pricing.get("route53", configuration.region, "other")

    hosted_zone_cost = apply_tiered_pricing(configuration.hosted_zones, section(rates, "hostedZoneTiers", "route53"))

    query_tiers = section(rates, "queryTiers", "route53")
    query_costs = {}
    for routing_type, queries in (
        ("standard", configuration.standard_queries),
        ("latency", configuration.latency_queries),
        ("geo", configuration.geo_queries),
    ):
        tiers = lookup(query_tiers, routing_type, "route53 queryTiers")
        query_costs[routing_type] = apply_tiered_pricing(per_unit(queries, 1_000_000), tiers)

    health = section(rates, "healthChecks", "route53")
    health_check_cost = (
        configuration.aws_health_checks * rate(health, "awsEndpoint", "route53")
        + configuration.non_aws_health_checks * rate(health, "nonAwsEndpoint", "route53")
        + configuration.health_checks_with_metrics * rate(health, "withMetrics", "route53")
    )

    traffic_flow = section(rates, "trafficFlow", "route53")
    traffic_flow_cost = (
        configuration.traffic_flow_policy_records * rate(traffic_flow, "pricePerPolicyRecord", "route53")
        + per_unit(configuration.traffic_flow_queries, 1_000_000) * rate(traffic_flow, "queriesPerMillion", "route53")
    )

    domain_cost = 0.0
    if configuration.domain_registrations:
        annual_fee = lookup(
            section(rates, "domainRegistration", "route53"),
            configuration.domain_registration_type.strip().lower(),
            "route53 domainRegistration",
        )
        # Registration is billed yearly
        domain_cost = configuration.domain_registrations * float(annual_fee) / config.MONTHS_PER_YEAR

    return build_result({
        "hostedZones": hosted_zone_cost,
        "standardQueries": query_costs["standard"],
        "latencyQueries": query_costs["latency"],
        "geoQueries": query_costs["geo"],
        "healthChecks": health_check_cost,
        "trafficFlow": traffic_flow_cost,
        "domainRegistration": domain_cost,
    })


# ---------------------------------------------------------------------------
# API Gateway
# ---------------------------------------------------------------------------

class ApiGatewayConfiguration(ServiceConfiguration):
    """Usage inputs for an API Gateway API."""

    api_type: str = Field(default="REST", description="REST, HTTP or WebSocket")
    requests: float = Field(default=10_000_000, ge=0, description="API calls per month (REST, HTTP)")
    connection_minutes: float = Field(default=0, ge=0, description="Connection minutes per month (WebSocket)")
    messages: float = Field(default=0, ge=0, description="Messages per month (WebSocket)")
    caching_enabled: bool = Field(default=False, description="Provision a REST API cache")
    cache_size: str = Field(default="0.5GB", description="Cache size, 0.5GB to 237GB")
    cache_hours_per_month: float = Field(
        default=config.HOURS_PER_MONTH, ge=0, le=744, description="Hours per month the cache is provisioned"
    )


async def calculate_apigateway(configuration: ApiGatewayConfiguration, pricing) -> CalculationResult:
    """Tiered per-million requests or WebSocket messages and minutes, plus the hourly cache."""
    rates = await pricing.get("apigateway", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)

    api_type = rate_key(configuration.api_type)
    request_cost = 0.0
    message_cost = 0.0
    connection_cost = 0.0
    if api_type == "rest":
        request_cost = apply_tiered_pricing(
            per_unit(configuration.requests, 1_000_000), section(rates, "restTiers", "apigateway")
        )
    elif api_type == "http":
        request_cost = apply_tiered_pricing(
            per_unit(configuration.requests, 1_000_000), section(rates, "httpTiers", "apigateway")
        )
    elif api_type == "websocket":
        websocket = section(rates, "websocket", "apigateway")
        message_cost = apply_tiered_pricing(
            per_unit(configuration.messages, 1_000_000), section(websocket, "messageTiers", "apigateway")
        )
        connection_cost = per_unit(configuration.connection_minutes, 1_000_000) * rate(
            websocket, "connectionMinutesPerMillion", "apigateway"
        )
    else:
        raise RateNotFoundError("apigateway apiTypes", configuration.api_type)

    cache_cost = 0.0
    if configuration.caching_enabled:
        cache_rate = lookup_option(section(rates, "cacheSizes", "apigateway"), configuration.cache_size, "apigateway cacheSizes")
        cache_cost = float(cache_rate) * configuration.cache_hours_per_month

    return build_result({
        "requests": request_cost * multiplier,
        "messages": message_cost * multiplier,
        "connections": connection_cost * multiplier,
        "cache": cache_cost * multiplier,
    })


MODELS = [
    CostModel(
        service_code="cloudfront",
        name="CloudFront",
        category="Networking",
        description="Content delivery network billed by egress and requests",
        configuration_class=CloudFrontConfiguration,
        calculate=calculate_cloudfront,
    ),
    CostModel(
        service_code="route53",
        name="Route 53",
        category="Networking",
        description="DNS hosted zones, queries, health checks and domains",
        configuration_class=Route53Configuration,
        calculate=calculate_route53,
    ),
    CostModel(
        service_code="apigateway",
        name="API Gateway",
        category="Networking",
        description="REST, HTTP and WebSocket APIs billed per request",
        configuration_class=ApiGatewayConfiguration,
        calculate=calculate_apigateway,
    ),
]
