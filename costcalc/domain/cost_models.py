"""
Domain models for cost calculation.
Defines the structure of single-service results and batch results.
"""
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class CalculationResult:
    """Cost of one service configuration, broken down by category."""
    cost_breakdown: Dict[str, float]
    monthly_cost: float
    annual_cost: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "costBreakdown": {
                category: round(amount, 2)
                for category, amount in self.cost_breakdown.items()
            },
            "monthlyCost": round(self.monthly_cost, 2),
            "annualCost": round(self.annual_cost, 2),
        }


@dataclass
class BatchItem:
    """One (service, configuration) pair submitted for batch calculation."""
    service_code: Optional[str]
    configuration: Optional[Dict[str, Any]]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchItem":
        """Accept both camelCase and snake_case keys."""
        service_code = data.get("serviceCode", data.get("service_code"))
        configuration = data.get("configuration")
        return cls(service_code=service_code, configuration=configuration)


@dataclass
class BatchItemResult:
    """Either a result or an error, tagged with the service code."""
    service_code: Optional[str]
    result: Optional[CalculationResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if self.succeeded:
            return {"serviceCode": self.service_code, "result": self.result.to_dict()}
        return {"serviceCode": self.service_code, "error": self.error}


@dataclass
class BatchResult:
    """Ordered per-item results plus totals over the successful items."""
    items: List[BatchItemResult] = field(default_factory=list)
    total_monthly_cost: float = 0.0
    total_annual_cost: float = 0.0

    @property
    def succeeded_count(self) -> int:
        return sum(1 for item in self.items if item.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.items) - self.succeeded_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "results": [item.to_dict() for item in self.items],
            "totalMonthlyCost": round(self.total_monthly_cost, 2),
            "totalAnnualCost": round(self.total_annual_cost, 2),
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
        }
