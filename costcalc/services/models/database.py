"""
Cost models for database services: RDS, Aurora, DynamoDB, ElastiCache,
DocumentDB and Neptune.

Instance based engines bill an hourly rate for every running instance plus
storage, I/O and backup by volume. DynamoDB bills capacity either per
request or per provisioned unit-hour.
"""
from typing import Any, Dict, Optional

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
    volume_monthly_cost,
)
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.services.tiered_pricing import apply_tiered_pricing
from costcalc.utils.rounding import billable, build_result, per_unit


# ---------------------------------------------------------------------------
# RDS
# ---------------------------------------------------------------------------

class RdsConfiguration(ServiceConfiguration):
    """Usage inputs for an RDS database instance."""

    engine: str = Field(
        default="mysql",
        description="mysql, postgres, mariadb, oracle-se2, oracle-ee, sqlserver-ex/web/se/ee",
    )
    instance_class: str = Field(
        ...,
        validation_alias=AliasChoices("instanceClass", "instanceType", "instance_class"),
        description="Instance class, e.g. db.t3.medium",
    )
    deployment: str = Field(
        default="single-az",
        validation_alias=AliasChoices("deployment", "deploymentOption"),
        description="single-az, multi-az or multi-az-cluster",
    )
    pricing_model: str = Field(default="On-Demand", description="On-Demand, Reserved 1-year or Reserved 3-year")
    hours_per_month: float = Field(
        default=config.HOURS_PER_MONTH,
        ge=0,
        le=744,
        validation_alias=AliasChoices("hoursPerMonth", "usage", "hours_per_month"),
        description="Running hours per month",
    )
    storage_type: str = Field(default="gp3", description="gp2, gp3, io1 or magnetic")
    storage_amount: float = Field(default=20, ge=0, description="Provisioned storage in GB")
    provisioned_iops: Optional[float] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("provisionedIops", "provisionedIOPS", "provisioned_iops"),
        description="Provisioned IOPS (gp3 above the baseline, io1)",
    )
    backup_storage: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("backupStorage", "backupStorageAmount", "backup_storage"),
        description="Total backup storage in GB; backups up to the provisioned storage are free",
    )


def _rds_hourly_rate(rates: Dict[str, Any], configuration: RdsConfiguration) -> float:
    """
    Instance hourly rate under the selected pricing model, plus the license
    rate of commercial engines.

    A reserved rate listed on the instance class wins over the On-Demand rate
    less the pricing model's discount.
    """
    instance = lookup(section(rates, "instanceClasses", "rds"), configuration.instance_class, "rds instanceClasses")
    pricing_model = lookup_option(section(rates, "pricingModels", "rds"), configuration.pricing_model, "rds pricingModels")

    term = pricing_model.get("term")
    if term and "noUpfront" in instance.get(term, {}):
        hourly = float(instance[term]["noUpfront"])
    else:
        on_demand = rate(instance, "onDemand", "rds")
        hourly = on_demand * (1 - float(pricing_model.get("discount", 0)))

    license_rate = lookup_option(section(rates, "engines", "rds"), configuration.engine, "rds engines")
    return hourly + float(license_rate)


async def calculate_rds(configuration: RdsConfiguration, pricing) -> CalculationResult:
    """Instance hours times the deployment's instance count, storage, backup beyond the free allowance."""
    rates = await pricing.get("rds", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    deployment = lookup_option(section(rates, "deployments", "rds"), configuration.deployment, "rds deployments")

    compute_cost = (
        _rds_hourly_rate(rates, configuration)
        * configuration.hours_per_month
        * float(deployment.get("instances", 1))
        * multiplier
    )

    storage_rates = lookup_option(section(rates, "storageTypes", "rds"), configuration.storage_type, "rds storageTypes")
    storage_cost = volume_monthly_cost(storage_rates, configuration.storage_amount, configuration.provisioned_iops)
    storage_cost *= float(deployment.get("storage", 1)) * multiplier

    billable_backup = billable(configuration.backup_storage, configuration.storage_amount)
    backup_cost = billable_backup * rate(rates, "backupPricePerGB", "rds") * multiplier

    return build_result({
        "compute": compute_cost,
        "storage": storage_cost,
        "backup": backup_cost,
    })


# ---------------------------------------------------------------------------
# Aurora
# ---------------------------------------------------------------------------

class AuroraConfiguration(ServiceConfiguration):
    """Usage inputs for an Aurora cluster."""

    compatibility: str = Field(default="mysql", description="mysql or postgresql")
    config_type: str = Field(default="serverless-v2", description="serverless-v2, provisioned or global-database")
    serverless_avg_acu: float = Field(
        default=1,
        ge=0,
        le=128,
        validation_alias=AliasChoices("serverlessAvgACU", "serverlessAvgAcu", "serverless_avg_acu"),
        description="Average Aurora capacity units (serverless-v2)",
    )
    instance_class: str = Field(
        default="db.r6g.large",
        validation_alias=AliasChoices("provisionedInstanceType", "instanceClass", "instance_class"),
        description="Writer instance class (provisioned, global-database)",
    )
    instance_count: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("provisionedInstanceCount", "instanceCount", "instance_count"),
        description="Writer instances per cluster",
    )
    read_replica_count: int = Field(default=0, ge=0, description="Read replicas (provisioned)")
    global_primary_region: str = Field(default="us-east-1", description="Primary region (global-database)")
    global_secondary_regions: int = Field(default=0, ge=0, description="Secondary regions (global-database)")
    global_replication_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("globalReplicationGB", "globalReplicationGb", "global_replication_gb"),
        description="Data replicated to secondary regions, GB/month",
    )
    storage_gb: float = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("storageGB", "storageGb", "storage_gb"),
        description="Cluster storage in GB",
    )
    storage_type: str = Field(default="standard", description="standard or ioOptimized")
    io_requests_per_month: float = Field(default=0, ge=0, description="I/O requests in millions (standard storage)")
    backup_storage_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("backupStorageGB", "backupStorageGb", "backup_storage_gb"),
        description="Backup storage in GB",
    )
    enable_backtrack: bool = Field(default=False, description="Enable backtrack (MySQL compatible)")
    backtrack_change_records: float = Field(default=0, ge=0, description="Change records in millions")


async def calculate_aurora(configuration: AuroraConfiguration, pricing) -> CalculationResult:
    """Serverless ACU-hours or writer and replica instances, storage, I/O, backup and backtrack."""
    rates = await pricing.get("aurora", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    hours = config.HOURS_PER_MONTH

    if rate_key(configuration.compatibility) not in rates.get("compatibilities", []):
        raise RateNotFoundError("aurora compatibilities", configuration.compatibility)

    config_type = rate_key(configuration.config_type)
    replication_cost = 0.0
    if config_type == "serverlessv2":
        acu_hours = configuration.serverless_avg_acu * hours
        compute_cost = acu_hours * rate(section(rates, "serverlessV2", "aurora"), "pricePerACUHour", "aurora") * multiplier
    elif config_type in ("provisioned", "globaldatabase"):
        instance_rate = float(
            lookup(section(rates, "instanceClasses", "aurora"), configuration.instance_class, "aurora instanceClasses")
        )
        instance_hours = instance_rate * hours * configuration.instance_count
        if config_type == "provisioned":
            compute_cost = (instance_hours + instance_rate * hours * configuration.read_replica_count) * multiplier
        else:
            primary_multiplier = region_multiplier(rates, configuration.global_primary_region.strip().lower())
            secondary_cost = instance_hours * configuration.global_secondary_regions * multiplier
            compute_cost = instance_hours * primary_multiplier + secondary_cost
            replication_cost = configuration.global_replication_gb * rate(
                rates, "globalReplicationPricePerGB", "aurora"
            )
    else:
        raise RateNotFoundError("aurora configTypes", configuration.config_type)

    storage_rates = lookup_option(section(rates, "storage", "aurora"), configuration.storage_type, "aurora storage")
    storage_cost = configuration.storage_gb * rate(storage_rates, "pricePerGB", "aurora") * multiplier
    io_cost = (
        configuration.io_requests_per_month * float(storage_rates.get("ioPricePerMillion", 0)) * multiplier
    )

    backup_cost = configuration.backup_storage_gb * rate(rates, "backupPricePerGB", "aurora") * multiplier

    backtrack_cost = 0.0
    if configuration.enable_backtrack:
        backtrack_cost = (
            configuration.backtrack_change_records
            * rate(rates, "backtrackPricePerMillion", "aurora")
            * multiplier
        )

    return build_result({
        "compute": compute_cost,
        "storage": storage_cost,
        "io": io_cost,
        "backup": backup_cost,
        "backtrack": backtrack_cost,
        "globalReplication": replication_cost,
    })


# ---------------------------------------------------------------------------
# DynamoDB
# ---------------------------------------------------------------------------

class DynamoDbConfiguration(ServiceConfiguration):
    """Usage inputs for a DynamoDB table."""

    capacity_mode: str = Field(default="onDemand", description="onDemand or provisioned")
    write_requests: float = Field(default=10_000_000, ge=0, description="Write request units per month (onDemand)")
    read_requests: float = Field(default=50_000_000, ge=0, description="Read request units per month (onDemand)")
    provisioned_write_capacity: float = Field(default=100, ge=0, description="Provisioned WCUs")
    provisioned_read_capacity: float = Field(default=500, ge=0, description="Provisioned RCUs")
    storage_gb: float = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("storageGB", "storageGb", "storage_gb"),
        description="Standard table class storage in GB",
    )
    infrequent_access_storage_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices(
            "infrequentAccessStorageGB", "infrequentAccessStorageGb", "infrequent_access_storage_gb"
        ),
        description="Standard-IA table class storage in GB",
    )
    continuous_backup_enabled: bool = Field(default=False, description="Point-in-time recovery")
    on_demand_backups_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("onDemandBackupsGB", "onDemandBackupsGb", "on_demand_backups_gb"),
        description="On-demand backup size in GB",
    )
    global_tables_enabled: bool = Field(default=False, description="Replicate writes with global tables")
    streams_enabled: bool = Field(default=False, description="DynamoDB Streams")
    streams_read_requests: float = Field(default=0, ge=0, description="Stream read request units per month")


async def calculate_dynamodb(configuration: DynamoDbConfiguration, pricing) -> CalculationResult:
    """Request or provisioned capacity, table storage, backups, global tables and streams."""
    rates = await pricing.get("dynamodb", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)

    capacity_mode = rate_key(configuration.capacity_mode)
    if capacity_mode == "ondemand":
        on_demand = section(rates, "onDemand", "dynamodb")
        capacity_cost = (
            per_unit(configuration.write_requests, 1_000_000) * rate(on_demand, "writePerMillion", "dynamodb")
            + per_unit(configuration.read_requests, 1_000_000) * rate(on_demand, "readPerMillion", "dynamodb")
        )
    elif capacity_mode == "provisioned":
        provisioned = section(rates, "provisioned", "dynamodb")
        capacity_cost = (
            configuration.provisioned_write_capacity * rate(provisioned, "wcuPerHour", "dynamodb")
            + configuration.provisioned_read_capacity * rate(provisioned, "rcuPerHour", "dynamodb")
        ) * config.HOURS_PER_MONTH
    else:
        raise RateNotFoundError("dynamodb capacityModes", configuration.capacity_mode)

    storage = section(rates, "storage", "dynamodb")
    storage_cost = (
        configuration.storage_gb * rate(storage, "standard", "dynamodb")
        + configuration.infrequent_access_storage_gb * rate(storage, "infrequentAccess", "dynamodb")
    )

    backup = section(rates, "backup", "dynamodb")
    backup_cost = configuration.on_demand_backups_gb * rate(backup, "onDemandPerGB", "dynamodb")
    if configuration.continuous_backup_enabled:
        backup_cost += configuration.storage_gb * rate(backup, "continuousPerGB", "dynamodb")

    global_tables_cost = 0.0
    if configuration.global_tables_enabled:
        global_tables_cost = per_unit(configuration.write_requests, 1_000_000) * rate(
            rates, "replicatedWritePerMillion", "dynamodb"
        )

    streams_cost = 0.0
    if configuration.streams_enabled:
        streams_cost = per_unit(configuration.streams_read_requests, 100_000) * rate(
            rates, "streamsReadPer100k", "dynamodb"
        )

    return build_result({
        "capacity": capacity_cost * multiplier,
        "storage": storage_cost * multiplier,
        "backup": backup_cost * multiplier,
        "globalTables": global_tables_cost * multiplier,
        "streams": streams_cost * multiplier,
    })


# ---------------------------------------------------------------------------
# ElastiCache
# ---------------------------------------------------------------------------

class ElastiCacheConfiguration(ServiceConfiguration):
    """Usage inputs for an ElastiCache cluster."""

    engine: str = Field(default="redis", description="redis or memcached")
    node_type: str = Field(default="r6g.large", description="Cache node type")
    number_of_nodes: int = Field(default=2, ge=0, description="Nodes in the cluster")
    backup_storage_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("backupStorageGB", "backupStorageGb", "backup_storage_gb"),
        description="Snapshot storage in GB",
    )
    data_transfer_out_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("dataTransferOutGB", "dataTransferOut", "data_transfer_out_gb"),
        description="Data transferred out, GB/month",
    )


async def calculate_elasticache(configuration: ElastiCacheConfiguration, pricing) -> CalculationResult:
    """Node hours, snapshot storage and egress beyond the first GB."""
    rates = await pricing.get("elasticache", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)

    if rate_key(configuration.engine) not in rates.get("engines", []):
        raise RateNotFoundError("elasticache engines", configuration.engine)

    node_rate = float(lookup(section(rates, "nodeTypes", "elasticache"), configuration.node_type, "elasticache nodeTypes"))
    node_cost = node_rate * config.HOURS_PER_MONTH * configuration.number_of_nodes * multiplier
    backup_cost = configuration.backup_storage_gb * rate(rates, "backupPricePerGB", "elasticache") * multiplier
    transfer_cost = apply_tiered_pricing(
        configuration.data_transfer_out_gb, section(rates, "dataTransferTiers", "elasticache")
    )

    return build_result({
        "nodes": node_cost,
        "backup": backup_cost,
        "dataTransfer": transfer_cost,
    })


# ---------------------------------------------------------------------------
# DocumentDB and Neptune
# ---------------------------------------------------------------------------

class ClusterDatabaseConfiguration(ServiceConfiguration):
    """Usage inputs for an instance based document or graph cluster."""

    instance_type: str = Field(default="db.r6g.large", description="Instance class")
    number_of_instances: int = Field(default=1, ge=0, description="Instances in the cluster")
    storage_gb: float = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("storageGB", "storageGb", "storage_gb"),
        description="Cluster storage in GB",
    )
    io_requests_per_month: float = Field(default=0, ge=0, description="I/O requests per month")
    backup_storage_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("backupStorageGB", "backupStorageGb", "backup_storage_gb"),
        description="Backup storage in GB",
    )


async def _calculate_cluster(
    service_code: str,
    configuration: ClusterDatabaseConfiguration,
    pricing,
) -> CalculationResult:
    rates = await pricing.get(service_code, configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)

    instance_rate = float(
        lookup(section(rates, "instanceTypes", service_code), configuration.instance_type, f"{service_code} instanceTypes")
    )
    instance_cost = instance_rate * config.HOURS_PER_MONTH * configuration.number_of_instances * multiplier
    storage_cost = configuration.storage_gb * rate(rates, "storagePricePerGB", service_code) * multiplier
    io_cost = (
        per_unit(configuration.io_requests_per_month, 1_000_000)
        * rate(rates, "ioPricePerMillion", service_code)
        * multiplier
    )
    backup_cost = configuration.backup_storage_gb * rate(rates, "backupPricePerGB", service_code) * multiplier

    return build_result({
        "instances": instance_cost,
        "storage": storage_cost,
        "io": io_cost,
        "backup": backup_cost,
    })


async def calculate_documentdb(configuration: ClusterDatabaseConfiguration, pricing) -> CalculationResult:
    """Instance hours, storage, I/O per million and backup."""
    return await _calculate_cluster("documentdb", configuration, pricing)


async def calculate_neptune(configuration: ClusterDatabaseConfiguration, pricing) -> CalculationResult:
    """Instance hours, storage, I/O per million and backup."""
    return await _calculate_cluster("neptune", configuration, pricing)


MODELS = [
    CostModel(
        service_code="rds",
        name="RDS",
        category="Database",
        description="Managed relational database instances with storage and backups",
        configuration_class=RdsConfiguration,
        calculate=calculate_rds,
    ),
    CostModel(
        service_code="aurora",
        name="Aurora",
        category="Database",
        description="Cloud-native MySQL and PostgreSQL compatible clusters",
        configuration_class=AuroraConfiguration,
        calculate=calculate_aurora,
    ),
    CostModel(
        service_code="dynamodb",
        name="DynamoDB",
        category="Database",
        description="Key-value and document tables billed by capacity and storage",
        configuration_class=DynamoDbConfiguration,
        calculate=calculate_dynamodb,
    ),
    CostModel(
        service_code="elasticache",
        name="ElastiCache",
        category="Database",
        description="Managed Redis and Memcached cache nodes",
        configuration_class=ElastiCacheConfiguration,
        calculate=calculate_elasticache,
    ),
    CostModel(
        service_code="documentdb",
        name="DocumentDB",
        category="Database",
        description="MongoDB compatible document database clusters",
        configuration_class=ClusterDatabaseConfiguration,
        calculate=calculate_documentdb,
    ),
    CostModel(
        service_code="neptune",
        name="Neptune",
        category="Database",
        description="Managed graph database clusters",
        configuration_class=ClusterDatabaseConfiguration,
        calculate=calculate_neptune,
    ),
]
