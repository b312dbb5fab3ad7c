"""Summary cards for the dashboard pages.

``aggregate`` is the orders page reduction over enriched orders. The other
reducers back the overview, shop, product and coupon pages.
"""
import math
from typing import Iterable, List, Sequence

from pydantic import BaseModel

from ops_dashboard.domain.models import Coupon, EnrichedOrder, Listing, OrderSummary, Shop


class Metrics(BaseModel):
    total: int = 0
    pending: int = 0
    in_transit: int = 0
    completed: int = 0
    cancelled: int = 0
    total_revenue: float = 0
    average_order_value: float = 0
    completion_rate: int = 0


class OverviewMetrics(BaseModel):
    total: int = 0
    pending: int = 0
    completed: int = 0
    cancelled: int = 0
    total_revenue: float = 0
    completion_rate: int = 0


class ShopStats(BaseModel):
    total: int = 0
    open: int = 0
    verified: int = 0
    average_rating: float = 0.0


class ListingStats(BaseModel):
    total: int = 0
    active: int = 0
    discounted: int = 0
    average_price: float = 0


class CouponStats(BaseModel):
    total: int = 0
    active: int = 0
    total_discount_value: float = 0


COUPON_STATUS_FILTERS = ("all", "active", "inactive")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_rate(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return _round_half_up(completed / total * 100)


def aggregate(orders: Iterable[EnrichedOrder]) -> Metrics:
    total = pending = in_transit = completed = cancelled = 0
    revenue: List[float] = []

    for o in orders:
        total += 1
        if o.placed and not o.confirmed and not o.cancelled:
            pending += 1
        if o.shipped and not o.delivered and not o.cancelled:
            in_transit += 1
        # Delivered counts as completed even when also cancelled.
        if o.delivered:
            completed += 1
        if o.cancelled:
            cancelled += 1
        else:
            revenue.append(o.actual_amount or 0)

    # fsum is exact, so the total does not depend on input order
    total_revenue = math.fsum(revenue)
    return Metrics(
        total=total,
        pending=pending,
        in_transit=in_transit,
        completed=completed,
        cancelled=cancelled,
        total_revenue=total_revenue,
        average_order_value=total_revenue / total if total > 0 else 0,
        completion_rate=completion_rate(completed, total),
    )


def overview(summaries: Iterable[OrderSummary]) -> OverviewMetrics:
    """Landing-page cards. Revenue here is delivery fees of delivered orders."""
    total = pending = completed = cancelled = 0
    fees: List[float] = []
    for o in summaries:
        total += 1
        if o.placed and not o.confirmed:
            pending += 1
        if o.delivered:
            completed += 1
        if o.cancelled:
            cancelled += 1
        if o.delivered and not o.cancelled:
            fees.append(o.delivery_fee)

    return OverviewMetrics(
        total=total,
        pending=pending,
        completed=completed,
        cancelled=cancelled,
        total_revenue=math.fsum(fees),
        completion_rate=completion_rate(completed, total),
    )


def shop_stats(shops: Sequence[Shop]) -> ShopStats:
    average = round(math.fsum(s.rating for s in shops) / len(shops), 1) if shops else 0.0
    return ShopStats(
        total=len(shops),
        open=sum(1 for s in shops if s.is_open),
        verified=sum(1 for s in shops if s.verify),
        average_rating=average,
    )


def listing_stats(listings: Sequence[Listing]) -> ListingStats:
    return ListingStats(
        total=len(listings),
        active=sum(1 for item in listings if item.is_active),
        discounted=sum(1 for item in listings if item.discount != "0%"),
        average_price=math.fsum(item.final_price for item in listings) / len(listings) if listings else 0,
    )


def coupon_stats(coupons: Sequence[Coupon]) -> CouponStats:
    active = [c for c in coupons if c.active]
    return CouponStats(
        total=len(coupons),
        active=len(active),
        total_discount_value=math.fsum(c.discount_amount for c in active),
    )


def filter_coupons(coupons: Sequence[Coupon], status: str = "all") -> List[Coupon]:
    if status == "active":
        return [c for c in coupons if c.active]
    if status == "inactive":
        return [c for c in coupons if not c.active]
    return list(coupons)
