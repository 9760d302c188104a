"""
Cost models for management and security services: CloudWatch, Systems
Manager, Secrets Manager and WAF.
"""
from pydantic import AliasChoices, Field

from costcalc.domain.cost_models import CalculationResult
from costcalc.services.models.common import CostModel, rate, region_multiplier
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.utils.rounding import billable, build_result, per_unit


class CloudWatchConfiguration(ServiceConfiguration):
    """Usage inputs for CloudWatch metrics, logs and dashboards."""

    metrics: int = Field(default=50, ge=0, description="Custom metrics")
    logs_ingestion_gb: float = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("logsIngestionGB", "logsIngestionGb", "logs_ingestion_gb"),
        description="Log data ingested, GB/month",
    )
    logs_storage_gb: float = Field(
        default=50,
        ge=0,
        validation_alias=AliasChoices("logsStorageGB", "logsStorageGb", "logs_storage_gb"),
        description="Log data archived, GB",
    )
    dashboards: int = Field(default=1, ge=0, description="Dashboards")


async def calculate_cloudwatch(configuration: CloudWatchConfiguration, pricing) -> CalculationResult:
    """Metrics beyond the free allowance, log ingestion and storage, dashboards."""
    rates = await pricing.get("cloudwatch", configuration.region, "other")
    multiplier = region_multiplier(rates, configuration.region)

    billable_metrics = billable(configuration.metrics, float(rates.get("freeMetrics", 0)))
    metric_cost = billable_metrics * rate(rates, "pricePerMetric", "cloudwatch")
    ingestion_cost = configuration.logs_ingestion_gb * rate(rates, "logsIngestionPerGB", "cloudwatch")
    storage_cost = configuration.logs_storage_gb * rate(rates, "logsStoragePerGB", "cloudwatch")
    dashboard_cost = configuration.dashboards * rate(rates, "pricePerDashboard", "cloudwatch")

    return build_result({
        "metrics": metric_cost * multiplier,
        "logsIngestion": ingestion_cost * multiplier,
        "logsStorage": storage_cost * multiplier,
        "dashboards": dashboard_cost * multiplier,
    })


class SystemsManagerConfiguration(ServiceConfiguration):
    """Usage inputs for Systems Manager."""

    ops_items: float = Field(default=100, ge=0, description="OpsCenter OpsItems per month")
    parameter_store_api_calls: float = Field(
        default=100_000,
        ge=0,
        validation_alias=AliasChoices("parameterStoreAPICalls", "parameterStoreApiCalls", "parameter_store_api_calls"),
        description="Parameter Store API interactions per month",
    )
    automation_steps: float = Field(default=10_000, ge=0, description="Automation steps per month")


async def calculate_systemsmanager(configuration: SystemsManagerConfiguration, pricing) -> CalculationResult:
    rates = await pricing.get("systemsmanager", configuration.region, "other")
    multiplier = region_multiplier(rates, configuration.region)

    ops_center_cost = configuration.ops_items * rate(rates, "pricePerOpsItem", "systemsmanager")
    parameter_store_cost = per_unit(configuration.parameter_store_api_calls, 10_000) * rate(
        rates, "parameterStorePer10kCalls", "systemsmanager"
    )
    automation_cost = configuration.automation_steps * rate(rates, "pricePerAutomationStep", "systemsmanager")

    return build_result({
        "opsCenter": ops_center_cost * multiplier,
        "parameterStore": parameter_store_cost * multiplier,
        "automation": automation_cost * multiplier,
    })


class SecretsManagerConfiguration(ServiceConfiguration):
    """Usage inputs for Secrets Manager."""

    secrets: int = Field(default=10, ge=0, description="Secrets stored")
    api_calls: float = Field(default=100_000, ge=0, description="API calls per month")


async def calculate_secretsmanager(configuration: SecretsManagerConfiguration, pricing) -> CalculationResult:
    rates = await pricing.get("secretsmanager", configuration.region, "other")
    multiplier = region_multiplier(rates, configuration.region)

    secret_cost = configuration.secrets * rate(rates, "pricePerSecret", "secretsmanager")
    api_cost = per_unit(configuration.api_calls, 10_000) * rate(rates, "apiCallsPer10k", "secretsmanager")

    return build_result({
        "secrets": secret_cost * multiplier,
        "apiCalls": api_cost * multiplier,
    })


class WafConfiguration(ServiceConfiguration):
    """Usage inputs for a WAF deployment."""

    web_acls: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("webACLs", "webAcls", "web_acls"),
        description="Web ACLs",
    )
    rules: int = Field(default=10, ge=0, description="Rules across all web ACLs")
    requests_per_month: float = Field(default=10_000_000, ge=0, description="Web requests inspected per month")


async def calculate_waf(configuration: WafConfiguration, pricing) -> CalculationResult:
    """Web ACLs, rules and inspected requests per million."""
    rates = await pricing.get("waf", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)

    acl_cost = configuration.web_acls * rate(rates, "pricePerWebAcl", "waf")
    rule_cost = configuration.rules * rate(rates, "pricePerRule", "waf")
    request_cost = per_unit(configuration.requests_per_month, 1_000_000) * rate(rates, "requestsPerMillion", "waf")

    return build_result({
        "webAcls": acl_cost * multiplier,
        "rules": rule_cost * multiplier,
        "requests": request_cost * multiplier,
    })


MODELS = [
    CostModel(
        service_code="cloudwatch",
        name="CloudWatch",
        category="Management",
        description="Metrics, logs and dashboards",
        configuration_class=CloudWatchConfiguration,
        calculate=calculate_cloudwatch,
    ),
    CostModel(
        service_code="systemsmanager",
        name="Systems Manager",
        category="Management",
        description="OpsCenter, Parameter Store and Automation",
        configuration_class=SystemsManagerConfiguration,
        calculate=calculate_systemsmanager,
    ),
    CostModel(
        service_code="secretsmanager",
        name="Secrets Manager",
        category="Security",
        description="Secret storage billed per secret and per API call",
        configuration_class=SecretsManagerConfiguration,
        calculate=calculate_secretsmanager,
    ),
    CostModel(
        service_code="waf",
        name="WAF",
        category="Security",
        description="Web application firewall billed by ACLs, rules and requests",
        configuration_class=WafConfiguration,
        calculate=calculate_waf,
    ),
]
