"""
API routes for cost calculation and service discovery.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from costcalc.domain.errors import (
    CostCalculatorError,
    InvalidConfigurationError,
    PricingNotFoundError,
    RateNotFoundError,
    UnsupportedServiceError,
)
from costcalc.services.calculator import get_calculator


logger = logging.getLogger(__name__)
router = APIRouter()


class CalculateRequest(BaseModel):
    """Request model for a single service calculation."""
    model_config = ConfigDict(populate_by_name=True)

    service_code: str = Field(..., alias="serviceCode", description="Service code, e.g. ec2")
    region: Optional[str] = Field(None, description="Region used when the configuration names none")
    configuration: Optional[Dict[str, Any]] = Field(
        default_factory=dict, description="Service usage inputs; omitted fields take their defaults"
    )


class BatchRequest(BaseModel):
    """Request model for batch calculation."""
    services: List[Any] = Field(default_factory=list, description="List of {serviceCode, configuration} items")


def _http_error(error: CostCalculatorError) -> HTTPException:
    """Map a calculation error to its HTTP status."""
    if isinstance(error, UnsupportedServiceError):
        return HTTPException(status_code=501, detail=str(error))
    if isinstance(error, PricingNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, RateNotFoundError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, InvalidConfigurationError):
        return HTTPException(status_code=422, detail={"message": str(error), "errors": error.details})
    return HTTPException(status_code=400, detail=str(error))


@router.post("/api/calculator/calculate")
async def calculate_cost(calculate_request: CalculateRequest) -> Dict[str, Any]:
    """
    Calculate the monthly and annual cost of one service configuration.

    Args:
        calculate_request: Request body with serviceCode, optional region and configuration

    Returns:
        JSON response with the cost breakdown, monthly and annual cost

    Raises:
        HTTPException: 501 unsupported service, 404 pricing not found,
                       400 unknown rate, 422 invalid configuration
    """
    calculator = get_calculator()
    try:
        result = await calculator.calculate(
            calculate_request.service_code,
            calculate_request.configuration,
            region=calculate_request.region,
        )
    except CostCalculatorError as error:
        logger.info(f"Calculation failed for {calculate_request.service_code}: {error}")
        raise _http_error(error) from error

    return {"success": True, "data": result.to_dict()}


@router.post("/api/calculator/batch")
async def calculate_batch(batch_request: BatchRequest) -> Dict[str, Any]:
    """
    Calculate several services at once.

    Items fail independently; totals cover the successful items.

    Raises:
        HTTPException: 400 if the list is empty or exceeds the batch limit
    """
    calculator = get_calculator()
    try:
        batch = await calculator.calculate_batch(batch_request.services)
    except ValueError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    except CostCalculatorError as error:
        raise _http_error(error) from error

    return {"success": True, "data": batch.to_dict()}


@router.get("/api/calculator/services")
async def list_services() -> Dict[str, Any]:
    """List every service with a cost model."""
    services = get_calculator().list_services()
    return {"success": True, "count": len(services), "data": services}


@router.get("/api/calculator/services/{service_code}")
async def describe_service(service_code: str) -> Dict[str, Any]:
    """
    Describe one service: metadata, configuration schema and defaults.

    Raises:
        HTTPException: 404 if no cost model exists for the code
    """
    try:
        description = get_calculator().describe_service(service_code)
    except UnsupportedServiceError as error:
        raise HTTPException(status_code=404, detail=str(error)) from error
    return {"success": True, "data": description}


@router.get("/api/calculator/regions")
async def list_regions() -> Dict[str, Any]:
    """List known regions and the services priced in each."""
    regions = [region.to_dict() for region in get_calculator().list_regions()]
    return {"success": True, "count": len(regions), "data": regions}
