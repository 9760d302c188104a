"""
Batch aggregator.

Evaluates several (service, configuration) items concurrently. A failure
in one item becomes that item's error and never aborts the batch; totals
cover the successful items only.
"""
import asyncio
import logging
from typing import Any, Dict, List, Sequence, Union

from costcalc.core.config import config
from costcalc.domain.cost_models import BatchItem, BatchItemResult, BatchResult
from costcalc.domain.errors import CostCalculatorError
from costcalc.utils.rounding import round_currency


logger = logging.getLogger(__name__)

INVALID_ITEM_ERROR = "Invalid service configuration"


class BatchAggregator:
    """Runs many single-service calculations and sums the results."""

    def __init__(self, calculator, max_items: int = config.BATCH_MAX_ITEMS):
        """
        Initialize aggregator.

        Args:
            calculator: Object exposing async calculate(service_code, configuration)
            max_items: Largest batch accepted
        """
        self.calculator = calculator
        self.max_items = max_items

    async def _calculate_item(self, index: int, item: BatchItem) -> BatchItemResult:
        if not isinstance(item.service_code, str) or not item.service_code or item.configuration is None:
            return BatchItemResult(service_code=item.service_code, error=INVALID_ITEM_ERROR)

        try:
            result = await self.calculator.calculate(item.service_code, item.configuration)
        except CostCalculatorError as error:
            logger.info(f"Batch item {index} ({item.service_code}) failed: {error}")
            return BatchItemResult(service_code=item.service_code, error=str(error))

        return BatchItemResult(service_code=item.service_code, result=result)

    async def calculate_batch(
        self,
        items: Sequence[Union[BatchItem, Dict[str, Any]]],
    ) -> BatchResult:
        """
        Calculate every item and aggregate the totals.

        Args:
            items: BatchItems or raw {serviceCode, configuration} dictionaries

        Returns:
            BatchResult with one entry per item, in input order

        Raises:
            ValueError: If the batch is empty or larger than max_items
            CostOverflowError: If the totals of the successful items overflow
        """
        if not items:
            raise ValueError("services array is required")
        if len(items) > self.max_items:
            raise ValueError(f"A batch may contain at most {self.max_items} services, got {len(items)}")

        batch_items: List[BatchItem] = []
        for item in items:
            if isinstance(item, BatchItem):
                batch_items.append(item)
            elif isinstance(item, dict):
                batch_items.append(BatchItem.from_dict(item))
            else:
                batch_items.append(BatchItem(service_code=None, configuration=None))

        # gather preserves input order
        results = await asyncio.gather(
            *(self._calculate_item(index, item) for index, item in enumerate(batch_items))
        )

        total_monthly = sum(item.result.monthly_cost for item in results if item.succeeded)
        total_annual = sum(item.result.annual_cost for item in results if item.succeeded)

        batch = BatchResult(
            items=list(results),
            total_monthly_cost=round_currency(total_monthly),
            total_annual_cost=round_currency(total_annual),
        )
        logger.info(
            f"Batch of {len(batch.items)} services: {batch.succeeded_count} succeeded, "
            f"{batch.failed_count} failed, total ${batch.total_monthly_cost}/month"
        )
        return batch
