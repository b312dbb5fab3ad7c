"""Column sets and cell renderers for the dashboard tables.

Renderers return ``Markup`` when they emit HTML so Jinja2 autoescaping leaves
them alone; everything else is plain text.
"""
from datetime import datetime
from typing import List

import pytz
from markupsafe import Markup, escape

from ops_dashboard.application.table import Column
from ops_dashboard.core.config import settings
from ops_dashboard.domain.models import Coupon, EnrichedOrder, Listing, OrderSummary, Shop
from ops_dashboard.domain.status import StatusKind, derive

BADGE_TONES = {
    StatusKind.COMPLETED: "success",
    "active": "success",
    StatusKind.PENDING: "warning",
    StatusKind.PROCESSING: "primary",
    StatusKind.CANCELLED: "destructive",
    StatusKind.INACTIVE: "destructive",
}


def badge_tone(status) -> str:
    return BADGE_TONES.get(status, "muted")


def status_badge(status, label) -> Markup:
    return Markup('<span class="badge badge-{}">{}</span>').format(badge_tone(status), label)


def format_amount(amount, decimals: int | None = None) -> str:
    value = float(amount or 0)
    if decimals is None:
        decimals = 0 if value.is_integer() else 2
    return f"{settings.CURRENCY_SYMBOL}{value:,.{decimals}f}"


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed.astimezone(pytz.timezone(settings.DISPLAY_TIMEZONE))


def format_date(value: str | None) -> str:
    parsed = _parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%d/%m/%Y")


def format_datetime(value: str | None) -> Markup:
    parsed = _parse_timestamp(value)
    if parsed is None:
        return Markup(escape(value or ""))
    return Markup('{}<div class="muted small">{}</div>').format(
        parsed.strftime("%d/%m/%Y"), parsed.strftime("%H:%M:%S"))


# --- Orders ---

def order_columns() -> List[Column[EnrichedOrder]]:
    return [
        Column("order_id", "Order ID", lambda v, o: Markup('<span class="mono">{}</span>').format(v)),
        Column("customer_uid", "Customer"),
        Column("payment_status", "Payment",
               lambda v, o: status_badge(StatusKind.PENDING if v == "COD" else StatusKind.COMPLETED, v or "")),
        Column("actual_amount", "Amount", lambda v, o: format_amount(o.actual_amount)),
        Column("created_at", "Date", lambda v, o: format_datetime(v)),
        # Re-derived from the flags rather than trusting status_text
        Column("status_text", "Status", lambda v, o: status_badge(*derive(o))),
        Column("order_id", "Actions",
               lambda v, o: Markup('<a class="button" href="/admin/orders/{}">View Details</a>').format(v)),
    ]


def recent_order_columns() -> List[Column[OrderSummary]]:
    return [
        Column("order_id", "Order ID"),
        Column("customer_uid", "Customer"),
        Column("payment_status", "Payment Status",
               lambda v, o: status_badge(StatusKind.COMPLETED if v == "paid" else StatusKind.PENDING, v or "")),
        Column("delivery_fee", "Amount", lambda v, o: format_amount(v)),
        Column("created_at", "Date", lambda v, o: format_date(v)),
    ]


# --- Catalog ---

def _active_badge(active: bool) -> Markup:
    return status_badge("active" if active else StatusKind.INACTIVE, "Active" if active else "Inactive")


def _price(v, item: Listing):
    if item.discount != "0%":
        return Markup('{} <s class="muted">{}</s> <span class="success">{} off</span>').format(
            format_amount(item.final_price), format_amount(item.actual_price), item.discount)
    return format_amount(item.final_price)


def recommendation_columns(removable: bool = False) -> List[Column[Listing]]:
    columns = [
        Column("item_name", "Product"),
        Column("shop_name", "Shop"),
        Column("category", "Category"),
        Column("final_price", "Price", _price if removable else lambda v, item: format_amount(v)),
        Column("is_active", "Status", lambda v, item: _active_badge(v)),
    ]
    if removable:
        columns.append(Column("id", "Actions", lambda v, item: Markup(
            '<form method="post" action="/admin/recommendations/{}/remove">'
            '<button type="submit">Remove</button></form>'
        ).format(v)))
    return columns


def product_columns() -> List[Column[Listing]]:
    def action(v, item: Listing):
        return Markup(
            '<form method="post" action="/admin/products/{}/recommendation">'
            '<button type="submit">Toggle Recommendation</button></form>'
        ).format(v)

    return [
        Column("item_name", "Product"),
        Column("shop_name", "Shop"),
        Column("category", "Category"),
        Column("final_price", "Price", _price),
        Column("is_active", "Status", lambda v, item: _active_badge(v)),
        Column("id", "Actions", action),
    ]


def shop_columns() -> List[Column[Shop]]:
    def toggle(v, shop: Shop):
        return Markup(
            '<form method="post" action="/admin/shops/{}/status?is_open={}">'
            '<button type="submit">{}</button></form>'
        ).format(shop.uid, str(not shop.is_open).lower(), "Close" if shop.is_open else "Open")

    return [
        Column("shop_name", "Shop", lambda v, s: Markup("{}<div class=\"muted small\">{}</div>").format(v, s.name or "")),
        Column("category", "Category"),
        Column("phone_number", "Phone"),
        Column("city", "Location", lambda v, s: ", ".join(p for p in (s.city, s.state) if p)),
        Column("rating", "Rating", lambda v, s: f"{float(v or 0):.1f} ★"),
        Column("verify", "Verified",
               lambda v, s: status_badge(StatusKind.COMPLETED if v else StatusKind.PENDING,
                                         "Verified" if v else "Unverified")),
        Column("is_open", "Status", toggle),
    ]


# --- Coupons ---

def coupon_columns() -> List[Column[Coupon]]:
    def action(v, coupon: Coupon):
        if not coupon.active:
            return ""
        return Markup(
            '<form method="post" action="/admin/coupons/{}/deactivate">'
            '<button type="submit">Deactivate</button></form>'
        ).format(v)

    return [
        Column("coupon_code", "Coupon Code", lambda v, c: Markup('<span class="mono">{}</span>').format(v)),
        Column("discount_amount", "Discount Amount", lambda v, c: format_amount(v, decimals=2)),
        Column("active", "Status", lambda v, c: _active_badge(v)),
        Column("created_at", "Created Date", lambda v, c: format_date(v)),
        Column("id", "Actions", action),
    ]
