"""
Cost models for application integration: SQS, SNS, EventBridge,
Step Functions and Kinesis Data Streams.
"""
from pydantic import AliasChoices, Field

from costcalc.core.config import config
from costcalc.domain.cost_models import CalculationResult
from costcalc.domain.errors import RateNotFoundError
from costcalc.services.models.common import CostModel, lookup_option, rate, rate_key, region_multiplier, section
from costcalc.services.normalizer import ServiceConfiguration
from costcalc.services.tiered_pricing import apply_tiered_pricing
from costcalc.utils.rounding import billable, build_result, per_unit


class SqsConfiguration(ServiceConfiguration):
    """Usage inputs for SQS queues."""

    queue_type: str = Field(default="standard", description="standard or fifo")
    requests: float = Field(default=10_000_000, ge=0, description="API requests per month")
    data_transfer_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("dataTransferGB", "dataTransferGb", "data_transfer_gb"),
        description="Data transferred out, GB/month",
    )


async def calculate_sqs(configuration: SqsConfiguration, pricing) -> CalculationResult:
    """Requests beyond the free tier at the queue type's per-million rate, tiered egress."""
    rates = await pricing.get("sqs", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)

    per_million = lookup_option(section(rates, "queueTypes", "sqs"), configuration.queue_type, "sqs queueTypes")
    chargeable = billable(configuration.requests, float(rates.get("freeRequests", 0)))
    request_cost = per_unit(chargeable, 1_000_000) * float(per_million) * multiplier
    transfer_cost = apply_tiered_pricing(configuration.data_transfer_gb, section(rates, "dataTransferTiers", "sqs"))

    return build_result({
        "requests": request_cost,
        "dataTransfer": transfer_cost,
    })


class SnsConfiguration(ServiceConfiguration):
    """Usage inputs for SNS topics."""

    publish_requests: float = Field(default=1_000_000, ge=0, description="Publish API requests per month")
    standard_notifications: float = Field(default=1_000_000, ge=0, description="Standard deliveries per month")
    sms_notifications: float = Field(default=0, ge=0, description="SMS messages per month")
    email_notifications: float = Field(default=0, ge=0, description="Email deliveries per month")
    mobile_notifications: float = Field(default=0, ge=0, description="Mobile push deliveries per month")
    http_notifications: float = Field(default=0, ge=0, description="HTTP/S deliveries per month")
    sqs_notifications: float = Field(default=0, ge=0, description="Deliveries to SQS queues (free)")
    lambda_notifications: float = Field(default=0, ge=0, description="Deliveries to Lambda functions (free)")
    data_transfer_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("dataTransferGB", "dataTransferGb", "data_transfer_gb"),
        description="Data transferred out, GB/month",
    )


async def calculate_sns(configuration: SnsConfiguration, pricing) -> CalculationResult:
    """Publishes, deliveries per endpoint type and tiered egress."""
    rates = await pricing.get("sns", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)
    delivery = section(rates, "deliveries", "sns")

    publish_cost = per_unit(configuration.publish_requests, 1_000_000) * rate(rates, "publishPerMillion", "sns")
    notification_cost = (
        per_unit(configuration.standard_notifications, 1_000_000) * rate(delivery, "standardPerMillion", "sns")
        + configuration.sms_notifications * rate(delivery, "smsPerMessage", "sns")
        + per_unit(configuration.email_notifications, 100_000) * rate(delivery, "emailPer100k", "sns")
        + per_unit(configuration.mobile_notifications, 1_000_000) * rate(delivery, "mobilePerMillion", "sns")
        + per_unit(configuration.http_notifications, 100_000) * rate(delivery, "httpPer100k", "sns")
        + per_unit(configuration.sqs_notifications, 1_000_000) * float(delivery.get("sqsPerMillion", 0))
        + per_unit(configuration.lambda_notifications, 1_000_000) * float(delivery.get("lambdaPerMillion", 0))
    )
    transfer_cost = apply_tiered_pricing(configuration.data_transfer_gb, section(rates, "dataTransferTiers", "sns"))

    return build_result({
        "publish": publish_cost * multiplier,
        "notifications": notification_cost * multiplier,
        "dataTransfer": transfer_cost,
    })


class EventBridgeConfiguration(ServiceConfiguration):
    """Usage inputs for EventBridge buses."""

    custom_events: float = Field(default=1_000_000, ge=0, description="Custom events published per month")
    schemas: int = Field(default=0, ge=0, description="Schemas in the registry")


async def calculate_eventbridge(configuration: EventBridgeConfiguration, pricing) -> CalculationResult:
    """Custom events per million and schema registry entries."""
    rates = await pricing.get("eventbridge", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)

    event_cost = per_unit(configuration.custom_events, 1_000_000) * rate(rates, "customEventsPerMillion", "eventbridge")
    schema_cost = configuration.schemas * rate(rates, "schemaPricePerMonth", "eventbridge")

    return build_result({
        "events": event_cost * multiplier,
        "schemas": schema_cost * multiplier,
    })


class StepFunctionsConfiguration(ServiceConfiguration):
    """Usage inputs for Step Functions state machines."""

    workflow_type: str = Field(default="standard", description="standard or express")
    state_transitions: float = Field(default=1_000_000, ge=0, description="State transitions per month (standard)")
    express_requests: float = Field(default=0, ge=0, description="Workflow executions per month (express)")
    express_gb_seconds: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("expressGBSeconds", "expressGbSeconds", "express_gb_seconds"),
        description="Execution duration in GB-seconds (express)",
    )


async def calculate_stepfunctions(configuration: StepFunctionsConfiguration, pricing) -> CalculationResult:
    """Standard workflows per 1 000 transitions, express per request and GB-second."""
    rates = await pricing.get("stepfunctions", configuration.region, "request")
    multiplier = region_multiplier(rates, configuration.region)

    workflow_type = rate_key(configuration.workflow_type)
    transition_cost = 0.0
    request_cost = 0.0
    duration_cost = 0.0
    if workflow_type == "standard":
        transition_cost = per_unit(configuration.state_transitions, 1000) * rate(
            rates, "standardPer1000Transitions", "stepfunctions"
        )
    elif workflow_type == "express":
        express = section(rates, "express", "stepfunctions")
        request_cost = per_unit(configuration.express_requests, 1_000_000) * rate(
            express, "requestsPerMillion", "stepfunctions"
        )
        duration_cost = configuration.express_gb_seconds * rate(express, "pricePerGBSecond", "stepfunctions")
    else:
        raise RateNotFoundError("stepfunctions workflowTypes", configuration.workflow_type)

    return build_result({
        "stateTransitions": transition_cost * multiplier,
        "requests": request_cost * multiplier,
        "duration": duration_cost * multiplier,
    })


class KinesisConfiguration(ServiceConfiguration):
    """Usage inputs for a Kinesis data stream in provisioned mode."""

    shards: int = Field(default=10, ge=0, description="Provisioned shards")
    put_payload_units: float = Field(default=100_000_000, ge=0, description="25 KB PUT payload units per month")
    extended_retention_hours: float = Field(
        default=0, ge=0, description="Hours per month each shard keeps data beyond 24 hours"
    )
    enhanced_fanout_consumers: int = Field(default=0, ge=0, description="Enhanced fan-out consumers")
    enhanced_fanout_data_gb: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("enhancedFanoutDataGB", "enhancedFanoutDataGb", "enhanced_fanout_data_gb"),
        description="Data read by enhanced fan-out consumers, GB/month",
    )


async def calculate_kinesis(configuration: KinesisConfiguration, pricing) -> CalculationResult:
    """Shard hours, PUT payload units, extended retention and enhanced fan-out."""
    rates = await pricing.get("kinesis", configuration.region, "compute")
    multiplier = region_multiplier(rates, configuration.region)
    hours = config.HOURS_PER_MONTH
    shard_hour = rate(rates, "shardHour", "kinesis")

    shard_cost = configuration.shards * shard_hour * hours
    put_cost = per_unit(configuration.put_payload_units, 1_000_000) * rate(rates, "putPayloadUnitsPerMillion", "kinesis")
    retention_cost = (
        configuration.shards
        * configuration.extended_retention_hours
        * rate(rates, "extendedRetentionShardHour", "kinesis")
    )
    fanout = section(rates, "enhancedFanout", "kinesis")
    fanout_cost = (
        configuration.enhanced_fanout_consumers * configuration.shards * rate(fanout, "consumerShardHour", "kinesis") * hours
        + configuration.enhanced_fanout_data_gb * rate(fanout, "dataPerGB", "kinesis")
    )

    return build_result({
        "shards": shard_cost * multiplier,
        "putPayloadUnits": put_cost * multiplier,
        "extendedRetention": retention_cost * multiplier,
        "enhancedFanout": fanout_cost * multiplier,
    })


MODELS = [
    CostModel(
        service_code="sqs",
        name="SQS",
        category="Application Integration",
        description="Message queues billed per million requests",
        configuration_class=SqsConfiguration,
        calculate=calculate_sqs,
    ),
    CostModel(
        service_code="sns",
        name="SNS",
        category="Application Integration",
        description="Pub/sub topics billed by publishes and deliveries",
        configuration_class=SnsConfiguration,
        calculate=calculate_sns,
    ),
    CostModel(
        service_code="eventbridge",
        name="EventBridge",
        category="Application Integration",
        description="Event buses billed per custom event",
        configuration_class=EventBridgeConfiguration,
        calculate=calculate_eventbridge,
    ),
    CostModel(
        service_code="stepfunctions",
        name="Step Functions",
        category="Application Integration",
        description="Workflow orchestration billed by transitions or executions",
        configuration_class=StepFunctionsConfiguration,
        calculate=calculate_stepfunctions,
    ),
    CostModel(
        service_code="kinesis",
        name="Kinesis Data Streams",
        category="Application Integration",
        description="Real-time data streams billed per shard-hour and payload unit",
        configuration_class=KinesisConfiguration,
        calculate=calculate_kinesis,
    ),
]
