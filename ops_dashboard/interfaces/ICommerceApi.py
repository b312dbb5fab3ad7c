from abc import abstractmethod
from typing import Any, Dict, List

from ops_dashboard.domain.models import Coupon, CreateCouponRequest, Listing, OtpVerification, Shop, UserLocation
from ops_dashboard.interfaces.IOrderFeed import IOrderFeed


class ICommerceApi(IOrderFeed):
    """Everything the dashboard pages read from or send to the commerce backend."""

    @abstractmethod
    async def get_recent_recommendations(self, page: int = 0, size: int = 5) -> List[Listing]:
        pass

    @abstractmethod
    async def get_shops_by_category(self, category: str) -> List[Shop]:
        pass

    @abstractmethod
    async def update_shop_status(self, uid: str, is_open: bool) -> dict:
        pass

    @abstractmethod
    async def get_products_by_category(self, category: str, page: int = 0, size: int = 10) -> List[Listing]:
        pass

    @abstractmethod
    async def update_recommendation_status(self, product_id: int) -> dict:
        pass

    @abstractmethod
    async def get_user_location(self, location_id: int) -> UserLocation:
        pass

    @abstractmethod
    async def send_otp(self) -> dict:
        pass

    @abstractmethod
    async def verify_otp(self, email: str, otp: str) -> OtpVerification:
        pass

    @abstractmethod
    async def get_all_coupons(self) -> List[Coupon]:
        pass

    @abstractmethod
    async def create_coupon(self, request: CreateCouponRequest) -> Coupon:
        pass

    @abstractmethod
    async def deactivate_coupon(self, coupon_id: int) -> Coupon:
        pass

    @abstractmethod
    async def get_coupon_usage_history(self, user_id: str) -> List[Dict[str, Any]]:
        pass
