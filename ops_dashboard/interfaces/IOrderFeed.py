from abc import ABC, abstractmethod
from typing import List

from ops_dashboard.domain.models import OrderDetail, OrderSummary


class TransportError(Exception):
    """Raised by a feed when the backend cannot be reached or answers badly."""

    def __init__(self, endpoint: str, reason: str, status_code: int | None = None):
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code


class IOrderFeed(ABC):
    @abstractmethod
    async def fetch_order_summaries(self) -> List[OrderSummary]:
        pass

    @abstractmethod
    async def fetch_order_detail(self, order_id: str) -> OrderDetail:
        pass
