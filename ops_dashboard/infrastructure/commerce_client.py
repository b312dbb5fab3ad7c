import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ops_dashboard.core.config import settings
from ops_dashboard.domain.models import (
    Coupon,
    CreateCouponRequest,
    Listing,
    OrderDetail,
    OrderSummary,
    OtpVerification,
    Shop,
    UserLocation,
)
from ops_dashboard.interfaces.ICommerceApi import ICommerceApi
from ops_dashboard.interfaces.IOrderFeed import TransportError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_HEADERS = {
    "ngrok-skip-browser-warning": "true",
    "Content-Type": "application/json",
}


class CommerceApiClient(ICommerceApi):
    """REST client for the commerce backend.

    Every failure (network, non-2xx status, unreadable body) surfaces as a
    ``TransportError`` naming the endpoint.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers=DEFAULT_HEADERS,
            timeout=timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("API request failed for %s: HTTP %s", endpoint, e.response.status_code)
            raise TransportError(endpoint, f"HTTP error! status: {e.response.status_code}",
                                 status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("API request failed for %s: %s", endpoint, e)
            raise TransportError(endpoint, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            logger.error("API request failed for %s: invalid JSON (%s)", endpoint, e)
            raise TransportError(endpoint, "invalid JSON body") from e

    def _parse(self, model: Type[M], data: Any, endpoint: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected payload from %s: %s", endpoint, e)
            raise TransportError(endpoint, "unexpected payload") from e

    def _parse_list(self, model: Type[M], data: Any, endpoint: str) -> List[M]:
        if not isinstance(data, list):
            logger.warning("Expected a list from %s, got %s", endpoint, type(data).__name__)
            return []
        return [self._parse(model, row, endpoint) for row in data]

    # --- Orders ---

    async def fetch_order_summaries(self) -> List[OrderSummary]:
        endpoint = "/api/owner/orders/get"
        return self._parse_list(OrderSummary, await self._request("GET", endpoint), endpoint)

    async def fetch_order_detail(self, order_id: str) -> OrderDetail:
        endpoint = f"/api/order_status/get/subOrders/{order_id}"
        return self._parse(OrderDetail, await self._request("GET", endpoint), endpoint)

    # --- Catalog ---

    async def get_recent_recommendations(self, page: int = 0, size: int = 5) -> List[Listing]:
        endpoint = "/Api/v3/get/recommendation"
        data = await self._request("GET", endpoint, params={"page": page, "size": size})
        return self._parse_list(Listing, data, endpoint)

    async def get_shops_by_category(self, category: str) -> List[Shop]:
        endpoint = f"/Api/v3/get/shops/{category}"
        return self._parse_list(Shop, await self._request("GET", endpoint), endpoint)

    async def update_shop_status(self, uid: str, is_open: bool) -> Dict[str, Any]:
        endpoint = f"/Api/v1/update/shopStatus/{uid}/{str(is_open).lower()}"
        return await self._request("PUT", endpoint)

    async def get_products_by_category(self, category: str, page: int = 0, size: int = 10) -> List[Listing]:
        endpoint = f"/Api/v3/get/posts/data/{category}"
        data = await self._request("GET", endpoint, params={"page": page, "size": size})
        return self._parse_list(Listing, data, endpoint)

    async def update_recommendation_status(self, product_id: int) -> Dict[str, Any]:
        return await self._request("PUT", f"/Api/v3/delete/recommend/{product_id}")

    # --- Locations ---

    async def get_user_location(self, location_id: int) -> UserLocation:
        endpoint = f"/Api/location/idd/{location_id}"
        return self._parse(UserLocation, await self._request("GET", endpoint), endpoint)

    # --- Admin Auth ---

    async def send_otp(self) -> Dict[str, Any]:
        return await self._request("POST", "/Api/v1/otp_send")

    async def verify_otp(self, email: str, otp: str) -> OtpVerification:
        endpoint = "/Api/v1/otp_verify"
        data = await self._request(
            "POST",
            endpoint,
            data={"email": email, "otp": otp},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        return self._parse(OtpVerification, data, endpoint)

    # --- Coupons ---

    async def get_all_coupons(self) -> List[Coupon]:
        endpoint = "/api/coupons"
        return self._parse_list(Coupon, await self._request("GET", endpoint), endpoint)

    async def create_coupon(self, request: CreateCouponRequest) -> Coupon:
        endpoint = "/api/coupons"
        data = await self._request("POST", endpoint, json=request.model_dump(by_alias=True))
        return self._parse(Coupon, data, endpoint)

    async def deactivate_coupon(self, coupon_id: int) -> Coupon:
        endpoint = f"/api/coupons/{coupon_id}/deactivate"
        return self._parse(Coupon, await self._request("PATCH", endpoint), endpoint)

    async def get_coupon_usage_history(self, user_id: str) -> List[Dict[str, Any]]:
        endpoint = f"/api/coupons/history/{user_id}"
        data = await self._request("GET", endpoint)
        if not isinstance(data, list):
            logger.warning("Expected a list from %s, got %s", endpoint, type(data).__name__)
            return []
        return data
