"""
Cost models for compute services: EC2, Lambda, ECS (Fargate) and EKS.
"""
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from costcalc.core.config import config
from costcalc.domain.cost_models import CalculationResult
from costcalc.domain.errors import InvalidConfigurationError, RateNotFoundError
from costcalc.services.models.common import (
    CostModel,
    lookup,
    lookup_option,
    number_key,
    rate,
    rate_key,
    region_multiplier,
    section,
    volume_monthly_cost,
)
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.services.tiered_pricing import apply_tiered_pricing
from costcalc.utils.rounding import billable, build_result, mb_to_gb, ms_to_seconds, per_unit


# ---------------------------------------------------------------------------
# EC2
# ---------------------------------------------------------------------------

class EbsVolume(BaseModel):
    """Block storage volume attached to each instance."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True, allow_inf_nan=False
    )

    volume_type: str = Field(
        default="gp3",
        validation_alias=AliasChoices("type", "volumeType", "volume_type"),
        description="EBS volume type (gp2, gp3, io1, io2, st1, sc1)",
    )
    size: float = Field(default=0, ge=0, description="Volume size in GB")
    iops: Optional[float] = Field(default=None, ge=0, description="Provisioned IOPS")
    throughput: Optional[float] = Field(default=None, ge=0, description="Provisioned throughput in MB/s")


class Ec2Configuration(ServiceConfiguration):
    """Usage inputs for EC2 instances."""

    instance_type: str = Field(..., description="Instance type, e.g. m5.large")
    operating_system: str = Field(default="Linux", description="Linux, Windows, RHEL, SUSE or Ubuntu Pro")
    pricing_model: str = Field(
        default="On-Demand",
        description="On-Demand, Reserved-1yr-No/Partial/All, Reserved-3yr-No/Partial/All, Savings Plan or Spot",
    )
    tenancy: str = Field(default="Shared", description="Shared, Dedicated Instance or Dedicated Host")
    quantity: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("quantity", "instances"),
        description="Number of instances",
    )
    hours_per_month: float = Field(
        default=config.HOURS_PER_MONTH,
        ge=0,
        le=744,
        validation_alias=AliasChoices("hoursPerMonth", "usage", "hours_per_month"),
        description="Running hours per instance per month",
    )
    ebs_volumes: List[EbsVolume] = Field(default_factory=list, description="Volumes attached to each instance")
    data_transfer_out: float = Field(default=0, ge=0, description="Data transferred out to the internet, GB/month")

    @model_validator(mode="before")
    @classmethod
    def _single_volume(cls, data: Any) -> Any:
        # A single "ebsVolume" object is accepted as a one-element list
        if isinstance(data, dict) and data.get("ebsVolume") and not data.get("ebsVolumes"):
            data = {**data, "ebsVolumes": [data["ebsVolume"]]}
        return data


def _ec2_hourly_rate(pricing: Dict[str, Any], configuration: Ec2Configuration) -> float:
    """
    Effective hourly rate after the OS, tenancy and commitment adjustments.

    An explicit per-OS rate in the instance's onDemand table wins over the
    Linux rate times the OS multiplier.
    """
    instance = lookup(section(pricing, "instanceTypes", "ec2"), configuration.instance_type, "ec2 instanceTypes")
    on_demand = instance.get("onDemand", {})

    os_key = rate_key(configuration.operating_system)
    if os_key in on_demand:
        hourly = float(on_demand[os_key])
    else:
        linux_rate = float(lookup(on_demand, "linux", f"ec2 onDemand rates for {configuration.instance_type}"))
        os_multiplier = lookup_option(
            section(pricing, "operatingSystems", "ec2"), configuration.operating_system, "ec2 operatingSystems"
        )
        hourly = linux_rate * float(os_multiplier)

    hourly *= float(lookup_option(section(pricing, "tenancy", "ec2"), configuration.tenancy, "ec2 tenancy"))

    discounts = instance.get("discounts", {})
    model_key = rate_key(configuration.pricing_model)
    if model_key in discounts:
        discount = float(discounts[model_key])
    else:
        discount = float(
            lookup_option(section(pricing, "pricingModels", "ec2"), configuration.pricing_model, "ec2 pricingModels")
        )
    return hourly * (1 - discount)


async def calculate_ec2(configuration: Ec2Configuration, pricing) -> CalculationResult:
    """Instances x hours at the adjusted hourly rate, attached volumes, tiered egress."""
    compute_pricing = await pricing.get("ec2", configuration.region, "compute")
    multiplier = region_multiplier(compute_pricing, configuration.region)

    hourly = _ec2_hourly_rate(compute_pricing, configuration) * multiplier
    compute_cost = hourly * configuration.hours_per_month * configuration.quantity

    storage_cost = 0.0
    if configuration.ebs_volumes:
        volume_rates = section(compute_pricing, "ebs", "ec2")
        for volume in configuration.ebs_volumes:
            rates = lookup_option(volume_rates, volume.volume_type, "ec2 ebs")
            storage_cost += volume_monthly_cost(rates, volume.size, volume.iops, volume.throughput)
        storage_cost *= configuration.quantity * multiplier

    transfer_cost = 0.0
    if configuration.data_transfer_out > 0:
        transfer_pricing = await pricing.get("ec2", configuration.region, "data-transfer")
        transfer_cost = apply_tiered_pricing(
            configuration.data_transfer_out, section(transfer_pricing, "tiers", "ec2")
        )

    return build_result({
        "compute": compute_cost,
        "storage": storage_cost,
        "dataTransfer": transfer_cost,
    })


# ---------------------------------------------------------------------------
# Lambda
# ---------------------------------------------------------------------------

class LambdaConfiguration(ServiceConfiguration):
    """Usage inputs for Lambda functions."""

    architecture: str = Field(default="x86_64", description="x86_64 or arm64")
    memory_mb: float = Field(
        default=1024,
        ge=128,
        le=10240,
        validation_alias=AliasChoices("memory", "memoryMB", "memoryMb", "memory_mb"),
        description="Allocated memory in MB",
    )
    avg_duration_ms: float = Field(
        default=200,
        ge=0,
        validation_alias=AliasChoices("avgDuration", "avgDurationMs", "avg_duration_ms"),
        description="Average execution time per invocation in milliseconds",
    )
    requests_per_month: float = Field(
        default=1_000_000,
        ge=0,
        validation_alias=AliasChoices("requestsPerMonth", "requests", "requests_per_month"),
        description="Invocations per month",
    )
    ephemeral_storage_mb: float = Field(
        default=512,
        ge=512,
        le=10240,
        validation_alias=AliasChoices("ephemeralStorage", "ephemeralStorageMB", "ephemeral_storage_mb"),
        description="/tmp storage in MB; 512 MB is included",
    )
    apply_free_tier: bool = Field(default=True, description="Deduct the monthly free tier")
    use_provisioned_concurrency: bool = Field(default=False, description="Keep instances initialized")
    provisioned_concurrency: int = Field(default=0, ge=0, description="Provisioned concurrent executions")
    provisioned_concurrency_hours: float = Field(
        default=config.HOURS_PER_MONTH, ge=0, le=744, description="Hours per month provisioned concurrency is enabled"
    )

    @property
    def memory_gb(self) -> float:
        return mb_to_gb(self.memory_mb)

    @property
    def duration_seconds(self) -> float:
        return ms_to_seconds(self.avg_duration_ms)


async def calculate_lambda(configuration: LambdaConfiguration, pricing) -> CalculationResult:
    """Requests and GB-seconds after the free tier, extra /tmp storage, provisioned concurrency."""
    rates = await pricing.get("lambda", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    architecture = lookup_option(section(rates, "architectures", "lambda"), configuration.architecture, "lambda architectures")

    free_tier = rates.get("freeTier", {}) if configuration.apply_free_tier else {}
    requests = configuration.requests_per_month
    billable_requests = billable(requests, float(free_tier.get("requests", 0)))
    request_cost = per_unit(billable_requests, 1_000_000) * rate(rates, "requestPricePerMillion", "lambda") * multiplier

    gb_seconds = configuration.memory_gb * configuration.duration_seconds * requests
    billable_gb_seconds = billable(gb_seconds, float(free_tier.get("gbSeconds", 0)))
    compute_cost = billable_gb_seconds * rate(architecture, "pricePerGBSecond", "lambda") * multiplier

    storage_cost = 0.0
    storage_rates = rates.get("ephemeralStorage", {})
    extra_storage_gb = mb_to_gb(billable(configuration.ephemeral_storage_mb, float(storage_rates.get("includedMB", 512))))
    if extra_storage_gb > 0:
        storage_gb_seconds = extra_storage_gb * configuration.duration_seconds * requests
        storage_cost = storage_gb_seconds * rate(storage_rates, "pricePerGBSecond", "lambda") * multiplier

    provisioned_cost = 0.0
    if configuration.use_provisioned_concurrency and configuration.provisioned_concurrency > 0:
        provisioned_rates = section(rates, "provisionedConcurrency", "lambda")
        gb_hours = configuration.memory_gb * configuration.provisioned_concurrency * configuration.provisioned_concurrency_hours
        provisioned_cost = (
            gb_hours * rate(provisioned_rates, "pricePerGBHour", "lambda")
            + requests * rate(provisioned_rates, "pricePerRequest", "lambda")
        ) * multiplier

    return build_result({
        "requests": request_cost,
        "compute": compute_cost,
        "storage": storage_cost,
        "provisionedConcurrency": provisioned_cost,
    })


# ---------------------------------------------------------------------------
# ECS
# ---------------------------------------------------------------------------

class EcsConfiguration(ServiceConfiguration):
    """Usage inputs for ECS tasks."""

    launch_type: str = Field(default="fargate", description="fargate or ec2")
    cpu: float = Field(default=1, gt=0, description="vCPU per task")
    memory: float = Field(default=2, gt=0, description="Memory per task in GB")
    number_of_tasks: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("numberOfTasks", "tasks", "number_of_tasks"),
        description="Tasks running concurrently",
    )
    hours_per_month: float = Field(default=config.HOURS_PER_MONTH, ge=0, le=744, description="Running hours per task")
    operating_system: str = Field(default="linux", description="linux or windows")
    architecture: str = Field(default="x86_64", description="x86_64 or arm64")
    use_fargate_spot: bool = Field(default=False, description="Run on Fargate Spot capacity")
    ephemeral_storage: float = Field(default=20, ge=20, le=200, description="Ephemeral storage per task in GB")
    data_transfer_out: float = Field(default=0, ge=0, description="Data transferred out to the internet, GB/month")


async def calculate_ecs(configuration: EcsConfiguration, pricing) -> CalculationResult:
    """Fargate vCPU and memory hours with OS, architecture, region and Spot adjustments."""
    if rate_key(configuration.launch_type) == "ec2":
        # Tasks run on the caller's own EC2 instances, priced separately
        return build_result({"compute": 0.0, "storage": 0.0, "dataTransfer": 0.0})
    if rate_key(configuration.launch_type) != "fargate":
        raise RateNotFoundError("ecs launchTypes", configuration.launch_type)

    rates = await pricing.get("ecs", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)

    memory_options = lookup(
        section(rates, "cpuMemoryOptions", "ecs"), number_key(configuration.cpu), "ecs cpuMemoryOptions"
    )
    if configuration.memory not in memory_options:
        raise InvalidConfigurationError(
            "ecs",
            [f"memory: {number_key(configuration.memory)} GB is not valid for {number_key(configuration.cpu)} vCPU"],
        )

    hourly = (
        configuration.cpu * rate(rates, "pricePerVCPUHour", "ecs")
        + configuration.memory * rate(rates, "pricePerGBHour", "ecs")
    )
    hourly *= float(lookup_option(section(rates, "operatingSystems", "ecs"), configuration.operating_system, "ecs operatingSystems"))
    hourly *= float(lookup_option(section(rates, "architectures", "ecs"), configuration.architecture, "ecs architectures"))
    hourly *= multiplier
    if configuration.use_fargate_spot:
        hourly *= 1 - float(rates.get("spotDiscount", 0))

    task_hours = configuration.hours_per_month * configuration.number_of_tasks
    compute_cost = hourly * task_hours

    storage_rates = rates.get("ephemeralStorage", {})
    extra_storage = billable(configuration.ephemeral_storage, float(storage_rates.get("freeGB", 20)))
    storage_cost = extra_storage * float(storage_rates.get("pricePerGBHour", 0)) * task_hours * multiplier

    transfer_cost = 0.0
    if configuration.data_transfer_out > 0:
        transfer_pricing = await pricing.get("ecs", configuration.region, "data-transfer")
        transfer_cost = apply_tiered_pricing(
            configuration.data_transfer_out, section(transfer_pricing, "tiers", "ecs")
        )

    return build_result({
        "compute": compute_cost,
        "storage": storage_cost,
        "dataTransfer": transfer_cost,
    })


# ---------------------------------------------------------------------------
# EKS
# ---------------------------------------------------------------------------

class EksConfiguration(ServiceConfiguration):
    """Usage inputs for EKS clusters."""

    cluster_count: int = Field(default=1, ge=0, description="Number of clusters")
    compute_type: str = Field(default="ec2", description="ec2, fargate or hybrid")
    ec2_node_count: int = Field(default=3, ge=0, description="Nodes in the EC2 node group")
    ec2_instance_type: str = Field(default="t3.medium", description="Node instance type")
    ec2_volume_size: float = Field(default=20, ge=0, description="Root volume per node in GB")
    ec2_volume_type: str = Field(default="gp3", description="gp3, gp2 or io2")
    fargate_pod_count: int = Field(default=0, ge=0, description="Fargate pods (fargate compute type)")
    fargate_pod_vcpu: float = Field(
        default=0.25,
        ge=0,
        validation_alias=AliasChoices("fargatePodVCPU", "fargatePodVcpu", "fargate_pod_vcpu"),
        description="vCPU per Fargate pod",
    )
    fargate_pod_memory: float = Field(default=0.5, ge=0, description="Memory per Fargate pod in GB")
    hybrid_ec2_nodes: int = Field(default=2, ge=0, description="EC2 nodes (hybrid compute type)")
    hybrid_fargate_pods: int = Field(default=5, ge=0, description="Fargate pods (hybrid compute type)")


async def calculate_eks(configuration: EksConfiguration, pricing) -> CalculationResult:
    """Control plane per cluster plus EC2 node groups, Fargate pods, or both."""
    rates = await pricing.get("eks", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    hours = config.HOURS_PER_MONTH

    compute_type = rate_key(configuration.compute_type)
    if compute_type not in rates.get("computeTypes", []):
        raise RateNotFoundError("eks computeTypes", configuration.compute_type)

    cluster_cost = rate(rates, "clusterPricePerHour", "eks") * hours * configuration.cluster_count * multiplier

    if compute_type == "hybrid":
        node_count = configuration.hybrid_ec2_nodes
        pod_count = configuration.hybrid_fargate_pods
    elif compute_type == "ec2":
        node_count = configuration.ec2_node_count
        pod_count = 0
    else:
        node_count = 0
        pod_count = configuration.fargate_pod_count

    node_cost = 0.0
    storage_cost = 0.0
    if node_count:
        node_rate = lookup(section(rates, "nodeInstanceTypes", "eks"), configuration.ec2_instance_type, "eks nodeInstanceTypes")
        node_cost = float(node_rate) * hours * multiplier * node_count
        volume_rates = lookup_option(section(rates, "volumeTypes", "eks"), configuration.ec2_volume_type, "eks volumeTypes")
        storage_cost = volume_monthly_cost(volume_rates, configuration.ec2_volume_size) * node_count * multiplier

    pod_cost = 0.0
    if pod_count:
        fargate = section(rates, "fargate", "eks")
        pod_hourly = (
            configuration.fargate_pod_vcpu * rate(fargate, "pricePerVCPUHour", "eks")
            + configuration.fargate_pod_memory * rate(fargate, "pricePerGBHour", "eks")
        ) * multiplier
        pod_cost = pod_hourly * hours * pod_count

    return build_result({
        "cluster": cluster_cost,
        "compute": node_cost + pod_cost,
        "storage": storage_cost,
    })


MODELS = [
    CostModel(
        service_code="ec2",
        name="EC2",
        category="Compute",
        description="Virtual servers with attached block storage and internet egress",
        configuration_class=Ec2Configuration,
        calculate=calculate_ec2,
    ),
    CostModel(
        service_code="lambda",
        name="Lambda",
        category="Compute",
        description="Serverless functions billed per request and GB-second",
        configuration_class=LambdaConfiguration,
        calculate=calculate_lambda,
    ),
    CostModel(
        service_code="ecs",
        name="ECS",
        category="Compute",
        description="Containers on AWS Fargate or self-managed EC2 capacity",
        configuration_class=EcsConfiguration,
        calculate=calculate_ecs,
    ),
    CostModel(
        service_code="eks",
        name="EKS",
        category="Compute",
        description="Managed Kubernetes control plane with EC2 or Fargate workers",
        configuration_class=EksConfiguration,
        calculate=calculate_eks,
    ),
]
