import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from ops_dashboard.application.metrics import (
    COUPON_STATUS_FILTERS,
    coupon_stats,
    filter_coupons,
    listing_stats,
    overview,
    shop_stats,
)
from ops_dashboard.application.table import build_view
from ops_dashboard.core.config import settings
from ops_dashboard.domain.models import CreateCouponRequest
from ops_dashboard.domain.status import derive_progress
from ops_dashboard.interfaces.columns import (
    coupon_columns,
    format_amount,
    order_columns,
    product_columns,
    recent_order_columns,
    recommendation_columns,
    shop_columns,
)
from ops_dashboard.interfaces.IOrderFeed import TransportError
from ops_dashboard.interfaces.web import (
    get_api,
    get_board,
    pager,
    require_admin,
    same_origin_referer,
    templates,
    wants_html,
)

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)

OVERVIEW_FAILED_MESSAGE = "Unable to connect to the server. Showing dashboard with no data."


def _view_json(view) -> dict:
    return {
        "search_term": view.search_term,
        "state": view.state,
        "total_records": view.total_records,
        "page_size": view.page_size,
        **pager(view),
    }


def _server_pager(page: int, fetched: int, size: int) -> dict:
    # A short page means the backend has nothing further.
    return {
        "page_index": page,
        "page_count": None,
        "has_next_page": fetched >= size,
        "has_previous_page": page > 0,
    }


def _back(request: Request, fallback: str, payload: dict, status_code: int = 200):
    if wants_html(request):
        return RedirectResponse(same_origin_referer(request) or fallback, status_code=303)
    if status_code != 200:
        raise HTTPException(status_code=status_code, detail=payload.get("error"))
    return payload


# ---------------------------------------------------------
# OVERVIEW
# ---------------------------------------------------------

@router.get("/")
async def overview_page(request: Request, orders_q: str = "", recs_q: str = ""):
    api = get_api(request)
    error = None
    try:
        orders, recommendations = await asyncio.gather(
            api.fetch_order_summaries(),
            api.get_recent_recommendations(0, settings.RECOMMENDATIONS_PAGE_SIZE),
        )
    except TransportError as e:
        logger.error("Failed to fetch dashboard data: %s", e)
        orders, recommendations = [], []
        error = OVERVIEW_FAILED_MESSAGE

    metrics = overview(orders)
    recent = build_view(orders[:settings.RECENT_ORDERS_LIMIT], recent_order_columns(),
                        search_key="order_id", search_term=orders_q, paginate=False)
    recs = build_view(recommendations, recommendation_columns(),
                      search_key="item_name", search_term=recs_q, paginate=False)

    if wants_html(request):
        return templates.TemplateResponse(request, "overview.html", {
            "metrics": metrics, "recent": recent, "recs": recs, "error": error,
        })
    return {
        "metrics": metrics.model_dump(),
        "recent_orders": [o.model_dump(mode="json") for o in recent.rows],
        "recommendations": [r.model_dump(mode="json") for r in recs.rows],
        "error": error,
    }


# ---------------------------------------------------------
# ORDERS
# ---------------------------------------------------------

@router.get("/admin/orders")
async def orders_page(request: Request, q: str = "", page: int = Query(0, ge=0)):
    board = get_board(request)
    if not board.loaded and not board.loading:
        await board.refresh()

    view = build_view(board.orders, order_columns(), search_key="order_id",
                      page_size=settings.DEFAULT_PAGE_SIZE, loading=board.loading,
                      search_term=q, page_index=page)

    if wants_html(request):
        return templates.TemplateResponse(request, "orders.html", {
            "metrics": board.metrics, "view": view, "pager": pager(view), "error": board.error, "q": view.search_term,
        })

    if board.error and not board.loaded:
        raise HTTPException(status_code=502, detail=board.error)
    return {
        "orders": [o.model_dump(mode="json") for o in view.rows],
        "metrics": board.metrics.model_dump(),
        "table": _view_json(view),
        "error": board.error,
    }


@router.post("/admin/orders/refresh")
async def refresh_orders(request: Request):
    board = get_board(request)
    refreshed = await board.refresh()
    payload = {"refreshed": refreshed, "error": board.error}
    return _back(request, "/admin/orders", payload, 502 if board.error else 200)


@router.get("/admin/orders/{order_id}")
async def order_detail_page(request: Request, order_id: str):
    board = get_board(request)
    if not board.loaded and not board.loading:
        await board.refresh()

    order = board.find(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    progress = derive_progress(order)

    if wants_html(request):
        return templates.TemplateResponse(request, "order_detail.html", {"order": order, "progress": progress})
    return {
        "order": order.model_dump(mode="json"),
        "progress": [step._asdict() for step in progress],
    }


# ---------------------------------------------------------
# SHOPS
# ---------------------------------------------------------

@router.get("/admin/shops")
async def shops_page(request: Request, category: str = "all", q: str = "", page: int = Query(0, ge=0)):
    error = None
    try:
        shops = await get_api(request).get_shops_by_category(category)
    except TransportError as e:
        logger.error("Failed to fetch shops: %s", e)
        shops, error = [], "Failed to load shops. Please try again."

    view = build_view(shops, shop_columns(), search_key="shop_name",
                      page_size=settings.DEFAULT_PAGE_SIZE, search_term=q, page_index=page)
    stats = shop_stats(shops)

    if wants_html(request):
        return templates.TemplateResponse(request, "listing.html", {
            "title": "Shop Management", "view": view, "pager": pager(view), "error": error, "q": view.search_term,
            "filters": {"category": category},
            "cards": [("Total Shops", stats.total), ("Open Shops", stats.open),
                      ("Verified Shops", stats.verified), ("Average Rating", f"{stats.average_rating:.1f}")],
        })
    if error:
        raise HTTPException(status_code=502, detail=error)
    return {"shops": [s.model_dump(mode="json") for s in view.rows], "stats": stats.model_dump(), "table": _view_json(view)}


@router.post("/admin/shops/{uid}/status")
async def update_shop_status(request: Request, uid: str, is_open: bool):
    try:
        result = await get_api(request).update_shop_status(uid, is_open)
    except TransportError as e:
        logger.error("Failed to update shop %s: %s", uid, e)
        return _back(request, "/admin/shops", {"error": "Failed to update shop status."}, 502)
    logger.info("Shop %s is now %s", uid, "open" if is_open else "closed")
    return _back(request, "/admin/shops", {"uid": uid, "is_open": is_open, "result": result})


# ---------------------------------------------------------
# PRODUCTS
# ---------------------------------------------------------

@router.get("/admin/products")
async def products_page(request: Request, category: str = "electronics", q: str = "", page: int = Query(0, ge=0)):
    # Products are paged by the backend; the table only filters the fetched page.
    size = settings.DEFAULT_PAGE_SIZE
    error = None
    try:
        products = await get_api(request).get_products_by_category(category, page, size)
    except TransportError as e:
        logger.error("Failed to fetch products: %s", e)
        products, error = [], "Failed to load products. Please try again."

    view = build_view(products, product_columns(), search_key="item_name", search_term=q, paginate=False)
    stats = listing_stats(products)
    server_pager = _server_pager(page, len(products), size)

    if wants_html(request):
        return templates.TemplateResponse(request, "listing.html", {
            "title": "Product Listings", "view": view, "pager": server_pager, "error": error, "q": view.search_term,
            "filters": {"category": category},
            "cards": [("Products", stats.total), ("Active Products", stats.active),
                      ("Discounted", stats.discounted)],
        })
    if error:
        raise HTTPException(status_code=502, detail=error)
    return {
        "products": [p.model_dump(mode="json") for p in view.rows],
        "stats": stats.model_dump(),
        "table": {**_view_json(view), **server_pager},
    }


@router.post("/admin/products/{product_id}/recommendation")
async def toggle_recommendation(request: Request, product_id: int):
    try:
        result = await get_api(request).update_recommendation_status(product_id)
    except TransportError as e:
        logger.error("Failed to update recommendation for product %s: %s", product_id, e)
        return _back(request, "/admin/products", {"error": "Failed to update recommendation status."}, 502)
    return _back(request, "/admin/products", {"product_id": product_id, "result": result})


# ---------------------------------------------------------
# RECOMMENDATIONS
# ---------------------------------------------------------

@router.get("/admin/recommendations")
async def recommendations_page(request: Request, q: str = "", page: int = Query(0, ge=0)):
    size = settings.DEFAULT_PAGE_SIZE
    error = None
    try:
        items = await get_api(request).get_recent_recommendations(page, size)
    except TransportError as e:
        logger.error("Failed to fetch recommendations: %s", e)
        items, error = [], "Failed to load recommendations. Please try again."

    view = build_view(items, recommendation_columns(removable=True), search_key="item_name",
                      search_term=q, paginate=False)
    stats = listing_stats(items)
    server_pager = _server_pager(page, len(items), size)

    if wants_html(request):
        return templates.TemplateResponse(request, "listing.html", {
            "title": "Recommendations", "view": view, "pager": server_pager, "error": error, "q": view.search_term,
            "filters": {"page": page},
            "cards": [("Total Recommendations", stats.total), ("Active Products", stats.active),
                      ("Average Price", format_amount(stats.average_price, decimals=0)),
                      ("With Discounts", stats.discounted)],
        })
    if error:
        raise HTTPException(status_code=502, detail=error)
    return {
        "recommendations": [r.model_dump(mode="json") for r in view.rows],
        "stats": stats.model_dump(),
        "table": {**_view_json(view), **server_pager},
    }


@router.post("/admin/recommendations/{product_id}/remove")
async def remove_recommendation(request: Request, product_id: int):
    try:
        await get_api(request).update_recommendation_status(product_id)
    except TransportError as e:
        logger.error("Failed to remove recommendation %s: %s", product_id, e)
        return _back(request, "/admin/recommendations", {"error": "Failed to remove recommendation. Please try again."}, 502)
    logger.info("Product %s removed from recommendations", product_id)
    return _back(request, "/admin/recommendations", {"product_id": product_id, "removed": True})


# ---------------------------------------------------------
# COUPONS
# ---------------------------------------------------------

@router.get("/admin/coupons")
async def coupons_page(request: Request, status: str = "all", q: str = "", page: int = Query(0, ge=0)):
    if status not in COUPON_STATUS_FILTERS:
        status = "all"
    error = None
    try:
        coupons = await get_api(request).get_all_coupons()
    except TransportError as e:
        logger.error("Failed to fetch coupons: %s", e)
        coupons, error = [], "Failed to load coupons. Please try again."

    stats = coupon_stats(coupons)
    view = build_view(filter_coupons(coupons, status), coupon_columns(), search_key="coupon_code",
                      page_size=settings.DEFAULT_PAGE_SIZE, search_term=q, page_index=page)

    if wants_html(request):
        return templates.TemplateResponse(request, "listing.html", {
            "title": "Coupons", "view": view, "pager": pager(view), "error": error, "q": view.search_term,
            "filters": {"status": status}, "coupon_form": True,
            "cards": [("Total Coupons", stats.total), ("Active Coupons", stats.active),
                      ("Total Discount Value", f"{settings.CURRENCY_SYMBOL}{stats.total_discount_value:,.2f}")],
        })
    if error:
        raise HTTPException(status_code=502, detail=error)
    return {"coupons": [c.model_dump(mode="json") for c in view.rows], "stats": stats.model_dump(), "table": _view_json(view)}


@router.post("/admin/coupons")
async def create_coupon(request: Request, coupon_code: str = Form(...), discount_amount: float = Form(...)):
    payload = CreateCouponRequest(coupon_code=coupon_code.strip(), discount_amount=discount_amount)
    try:
        coupon = await get_api(request).create_coupon(payload)
    except TransportError as e:
        logger.error("Failed to create coupon %s: %s", payload.coupon_code, e)
        return _back(request, "/admin/coupons", {"error": "Failed to create coupon."}, 502)
    logger.info("Coupon %s created", coupon.coupon_code)
    return _back(request, "/admin/coupons", {"coupon": coupon.model_dump(mode="json")})


@router.post("/admin/coupons/{coupon_id}/deactivate")
async def deactivate_coupon(request: Request, coupon_id: int):
    try:
        coupon = await get_api(request).deactivate_coupon(coupon_id)
    except TransportError as e:
        logger.error("Failed to deactivate coupon %s: %s", coupon_id, e)
        return _back(request, "/admin/coupons", {"error": "Failed to deactivate coupon."}, 502)
    return _back(request, "/admin/coupons", {"coupon": coupon.model_dump(mode="json")})


@router.get("/admin/coupons/history/{user_id}")
async def coupon_history(request: Request, user_id: str):
    try:
        history = await get_api(request).get_coupon_usage_history(user_id)
    except TransportError as e:
        logger.error("Failed to fetch coupon history for %s: %s", user_id, e)
        raise HTTPException(status_code=502, detail="Failed to load coupon history.")
    return {"user_id": user_id, "history": history}


# ---------------------------------------------------------
# LOCATIONS
# ---------------------------------------------------------

LOCATION_ID_REQUIRED = "Please enter a location ID."
LOCATION_FAILED = "Failed to load location. Please check the ID and try again."


@router.get("/admin/locations")
async def locations_page(request: Request, location_id: Optional[str] = Query(None, alias="id")):
    location, error, status_code = None, None, 200
    if location_id is not None:
        location_id = location_id.strip()
        if not location_id:
            error, status_code = LOCATION_ID_REQUIRED, 400
        elif not location_id.isdigit():
            error, status_code = LOCATION_FAILED, 400
        else:
            try:
                location = await get_api(request).get_user_location(int(location_id))
            except TransportError as e:
                logger.error("Failed to fetch location %s: %s", location_id, e)
                error, status_code = LOCATION_FAILED, 404 if e.status_code == 404 else 502

    if wants_html(request):
        return templates.TemplateResponse(request, "locations.html", {
            "location_id": location_id or "", "location": location, "error": error,
        })
    if error:
        raise HTTPException(status_code=status_code, detail=error)
    return {"location": location.model_dump(mode="json") if location else None}
