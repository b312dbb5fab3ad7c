import logging
from typing import List, Optional

from ops_dashboard.application.enrichment import EnrichmentPipeline
from ops_dashboard.application.metrics import Metrics, aggregate
from ops_dashboard.domain.models import EnrichedOrder

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load orders. Please try again."


class OrdersBoard:
    """Page-level state of the orders screen.

    Each ``refresh`` is an independent enrichment pass. When passes overlap,
    only the most recently started one may publish its results.
    """

    def __init__(self, pipeline: EnrichmentPipeline):
        self.pipeline = pipeline
        self.orders: List[EnrichedOrder] = []
        self.metrics: Metrics = aggregate([])
        self.loading = False
        self.loaded = False
        self.error: Optional[str] = None
        self._generation = 0

    async def refresh(self) -> bool:
        """Run one pass. Returns True when its results were published."""
        self._generation += 1
        generation = self._generation
        self.loading = True

        try:
            try:
                orders = await self.pipeline.load()
            except Exception:
                if generation != self._generation:
                    logger.info("Discarding failure of superseded refresh #%d", generation)
                    return False
                logger.exception("❌ Failed to fetch orders (refresh #%d)", generation)
                # Previous rows stay visible behind the error banner.
                self.error = LOAD_FAILED_MESSAGE
                return False

            if generation != self._generation:
                logger.info("Discarding results of superseded refresh #%d", generation)
                return False

            self.orders = orders
            self.metrics = aggregate(orders)
            self.error = None
            self.loaded = True
            logger.info("✅ Orders refreshed: %d orders (refresh #%d)", len(orders), generation)
            return True
        finally:
            # Cancellation lands here too; a newer pass owns the flag otherwise.
            if generation == self._generation:
                self.loading = False

    def find(self, order_id: str) -> Optional[EnrichedOrder]:
        for order in self.orders:
            if order.order_id == order_id:
                return order
        return None
