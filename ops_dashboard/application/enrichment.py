import asyncio
import logging
from typing import List, Optional, Sequence

from ops_dashboard.domain.models import EnrichedOrder, OrderDetail, OrderSummary
from ops_dashboard.domain.status import derive
from ops_dashboard.interfaces.IOrderFeed import IOrderFeed

logger = logging.getLogger(__name__)


def build_enriched(summary: OrderSummary, detail: Optional[OrderDetail]) -> EnrichedOrder:
    status = derive(summary)
    return EnrichedOrder(
        **summary.model_dump(include=set(OrderSummary.model_fields)),
        detail=detail,
        actual_amount=detail.sub_order_cost if detail is not None else 0,
        status=status.status,
        status_text=status.label,
    )


class EnrichmentPipeline:
    """Fans out one detail request per order and fans the results back in.

    A failed detail fetch only costs its own row (no detail, zero amount);
    the batch always resolves with one enriched order per summary, in input
    order. Only a failed summary fetch in ``load`` is fatal.
    """

    def __init__(self, order_feed: IOrderFeed, max_concurrency: Optional[int] = None):
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.order_feed = order_feed
        self.max_concurrency = max_concurrency

    async def load(self) -> List[EnrichedOrder]:
        summaries = await self.order_feed.fetch_order_summaries()
        logger.info("Fetched %d order summaries, enriching...", len(summaries))
        return await self.enrich(summaries)

    async def enrich(self, summaries: Sequence[OrderSummary]) -> List[EnrichedOrder]:
        if not summaries:
            return []

        gate = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        # gather keeps positional order regardless of completion order
        enriched = await asyncio.gather(*(self._enrich_one(s, gate) for s in summaries))

        failed = sum(1 for order in enriched if order.detail is None)
        if failed:
            logger.warning("Enriched %d orders, %d without details", len(enriched), failed)
        return list(enriched)

    async def _enrich_one(self, summary: OrderSummary, gate: Optional[asyncio.Semaphore]) -> EnrichedOrder:
        detail = None
        try:
            if gate is None:
                detail = await self.order_feed.fetch_order_detail(summary.order_id)
            else:
                async with gate:
                    detail = await self.order_feed.fetch_order_detail(summary.order_id)
        except Exception as e:
            # Isolated per item: the row falls back to an absent detail.
            logger.warning("Failed to fetch details for order %s: %s", summary.order_id, e)
        return build_enriched(summary, detail)
