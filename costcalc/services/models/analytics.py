"""
Cost models for analytics services: Redshift, Athena, Glue and EMR.
"""
from pydantic import AliasChoices, Field

from costcalc.core.config import config
from costcalc.domain.cost_models import CalculationResult
from costcalc.services.models.common import CostModel, lookup, rate, region_multiplier, section
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.utils.rounding import billable, build_result, per_unit


SECONDS_PER_HOUR = 3600


class RedshiftConfiguration(ServiceConfiguration):
    """Usage inputs for a provisioned Redshift cluster."""

    node_type: str = Field(default="ra3.4xlarge", description="dc2.large, dc2.8xlarge or ra3.*")
    number_of_nodes: int = Field(default=2, ge=0, description="Nodes in the cluster")
    managed_storage_gb: float = Field(
        default=1000,
        ge=0,
        validation_alias=AliasChoices("managedStorageGB", "managedStorageGb", "managed_storage_gb"),
        description="Redshift managed storage in GB (RA3 nodes)",
    )
    spectrum_data_scanned_tb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("spectrumDataScannedTB", "spectrumDataScannedTb", "spectrum_data_scanned_tb"),
        description="Data scanned by Spectrum queries, TB/month",
    )
    concurrency_scaling_seconds: float = Field(default=0, ge=0, description="Billed concurrency scaling seconds")


async def calculate_redshift(configuration: RedshiftConfiguration, pricing) -> CalculationResult:
    """Node hours, managed storage for RA3 nodes, Spectrum scans and concurrency scaling."""
    rates = await pricing.get("redshift", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    node = lookup(section(rates, "nodeTypes", "redshift"), configuration.node_type, "redshift nodeTypes")

    node_cost = rate(node, "hourly", "redshift") * config.HOURS_PER_MONTH * configuration.number_of_nodes
    storage_cost = 0.0
    # Only RA3 nodes bill managed storage separately
    if node.get("managedStorage"):
        storage_cost = configuration.managed_storage_gb * rate(rates, "managedStoragePerGB", "redshift")
    spectrum_cost = configuration.spectrum_data_scanned_tb * rate(rates, "spectrumPerTB", "redshift")
    scaling_cost = per_unit(configuration.concurrency_scaling_seconds, SECONDS_PER_HOUR) * rate(
        rates, "concurrencyScalingPerHour", "redshift"
    )

    return build_result({
        "nodes": node_cost * multiplier,
        "storage": storage_cost * multiplier,
        "spectrum": spectrum_cost * multiplier,
        "concurrencyScaling": scaling_cost * multiplier,
    })


class AthenaConfiguration(ServiceConfiguration):
    """Usage inputs for Athena queries."""

    data_scanned_tb: float = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("dataScannedTB", "dataScannedTb", "data_scanned_tb"),
        description="Data scanned by queries, TB/month",
    )


async def calculate_athena(configuration: AthenaConfiguration, pricing) -> CalculationResult:
    rates = await pricing.get("athena", configuration.region, "other")
    multiplier = region_multiplier(rates, configuration.region)
    query_cost = configuration.data_scanned_tb * rate(rates, "pricePerTBScanned", "athena") * multiplier
    return build_result({"queries": query_cost})


class GlueConfiguration(ServiceConfiguration):
    """Usage inputs for Glue ETL jobs, crawlers and the Data Catalog."""

    dpu_hours: float = Field(default=100, ge=0, description="ETL job DPU-hours per month")
    crawler_dpu_hours: float = Field(default=10, ge=0, description="Crawler DPU-hours per month")
    catalog_objects: float = Field(default=0, ge=0, description="Objects stored in the Data Catalog")
    catalog_requests: float = Field(default=1_000_000, ge=0, description="Data Catalog requests per month")


async def calculate_glue(configuration: GlueConfiguration, pricing) -> CalculationResult:
    """DPU-hours for jobs and crawlers, catalog storage beyond the free objects, catalog requests."""
    rates = await pricing.get("glue", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    catalog = section(rates, "dataCatalog", "glue")

    job_cost = configuration.dpu_hours * rate(rates, "dpuHour", "glue")
    crawler_cost = configuration.crawler_dpu_hours * rate(rates, "crawlerDpuHour", "glue")
    stored = billable(configuration.catalog_objects, float(catalog.get("freeObjects", 0)))
    catalog_storage_cost = per_unit(stored, 100_000) * rate(catalog, "storagePer100kObjects", "glue")
    catalog_request_cost = per_unit(configuration.catalog_requests, 1_000_000) * rate(
        catalog, "requestsPerMillion", "glue"
    )

    return build_result({
        "etlJobs": job_cost * multiplier,
        "crawlers": crawler_cost * multiplier,
        "catalogStorage": catalog_storage_cost * multiplier,
        "catalogRequests": catalog_request_cost * multiplier,
    })


class EmrConfiguration(ServiceConfiguration):
    """Usage inputs for an EMR cluster on EC2."""

    instance_type: str = Field(default="m5.xlarge", description="Cluster instance type")
    number_of_instances: int = Field(default=5, ge=0, description="Instances in the cluster")
    hours_per_month: float = Field(default=config.HOURS_PER_MONTH, ge=0, le=744, description="Cluster hours per month")
    ebs_storage_gb: float = Field(
        default=500,
        ge=0,
        validation_alias=AliasChoices("ebsStorageGB", "ebsStorageGb", "ebs_storage_gb"),
        description="Attached EBS storage in GB",
    )


async def calculate_emr(configuration: EmrConfiguration, pricing) -> CalculationResult:
    """EC2 instance hours plus the EMR surcharge, and attached storage."""
    rates = await pricing.get("emr", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    instance = lookup(section(rates, "instanceTypes", "emr"), configuration.instance_type, "emr instanceTypes")

    instance_hours = configuration.number_of_instances * configuration.hours_per_month
    compute_cost = instance_hours * rate(instance, "ec2", "emr")
    emr_cost = instance_hours * rate(instance, "emr", "emr")
    storage_cost = configuration.ebs_storage_gb * rate(rates, "ebsPricePerGB", "emr")

    return build_result({
        "compute": compute_cost * multiplier,
        "emr": emr_cost * multiplier,
        "storage": storage_cost * multiplier,
    })


MODELS = [
    CostModel(
        service_code="redshift",
        name="Redshift",
        category="Analytics",
        description="Data warehouse clusters billed per node-hour and managed storage",
        configuration_class=RedshiftConfiguration,
        calculate=calculate_redshift,
    ),
    CostModel(
        service_code="athena",
        name="Athena",
        category="Analytics",
        description="Serverless SQL queries billed per TB scanned",
        configuration_class=AthenaConfiguration,
        calculate=calculate_athena,
    ),
    CostModel(
        service_code="glue",
        name="Glue",
        category="Analytics",
        description="Serverless ETL billed per DPU-hour plus the Data Catalog",
        configuration_class=GlueConfiguration,
        calculate=calculate_glue,
    ),
    CostModel(
        service_code="emr",
        name="EMR",
        category="Analytics",
        description="Managed Hadoop and Spark clusters on EC2",
        configuration_class=EmrConfiguration,
        calculate=calculate_emr,
    ),
]
