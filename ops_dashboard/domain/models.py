from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ops_dashboard.domain.status import StatusKind


class WireModel(BaseModel):
    # The backend speaks camelCase with a few legacy spellings; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


# --- Orders ---

class OrderSummary(WireModel):
    id: Optional[int] = None
    order_id: str = Field(alias="orderId")
    owner_uid: Optional[str] = Field(None, alias="ownerUid")
    customer_uid: Optional[str] = Field(None, alias="customerUid")
    driver_uid: Optional[str] = Field(None, alias="driverUid")
    payment_status: Optional[str] = None

    placed: bool = False
    confirmed: bool = Field(False, alias="confirmedd")
    processed: bool = False
    shipped: bool = False
    delivered: bool = False
    cancelled: bool = Field(False, alias="cancelOrder")

    delivery_fee: float = Field(0, alias="deliveryFee", ge=0)
    driver_payment: Optional[str] = None
    otp: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")


class OrderItem(WireModel):
    id: Optional[int] = None
    owner_uid: Optional[str] = Field(None, alias="ownerUid")
    category: Optional[str] = None
    item_name: str = Field("", alias="itemName")
    shop_name: Optional[str] = Field(None, alias="shopName")
    price: str | float | None = None
    discount: str = "0%"
    count: int = 0
    final_price: float = Field(0, alias="finalPrice")
    item_id: Optional[str] = Field(None, alias="itemId")
    image: Optional[str] = None

    @property
    def has_discount(self) -> bool:
        return bool(self.discount) and self.discount != "0%"


class OrderDetail(WireModel):
    id: Optional[int] = None
    sub_order_id: Optional[str] = Field(None, alias="subOrderId")
    address_id: Optional[int] = Field(None, alias="addressId")
    owner_uid: Optional[str] = Field(None, alias="ownerUid")
    sub_order_cost: float = Field(0, alias="subOrderCost")
    otp: Optional[str] = None
    total_items: int = Field(0, alias="totalItems")
    items: List[OrderItem] = Field(default_factory=list)


class EnrichedOrder(OrderSummary):
    """A summary merged with its (optional) detail and derived status."""

    detail: Optional[OrderDetail] = None
    actual_amount: float = 0
    status: StatusKind = StatusKind.INACTIVE
    status_text: str = "Unknown"


# --- Catalog ---

class Shop(WireModel):
    id: Optional[int] = None
    uid: str
    name: Optional[str] = None
    phone_number: Optional[str] = None
    shop_name: str = ""
    category: Optional[str] = None
    rating: float = 0
    likes_count: int = 0
    is_open: bool = False
    verify: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None


class Listing(WireModel):
    id: int
    uid: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    item_name: str = ""
    units: Optional[str] = None
    actual_price: float = 0
    discount: str = "0%"
    final_price: float = 0
    shop_name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = Field(False, alias="isActive")
    urls: List[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# --- Locations ---

class UserLocation(WireModel):
    id: int
    uid: Optional[str] = None
    name: str = ""
    phone_number: str | int | None = None
    alternate_number: str | int | None = None
    state: Optional[str] = None
    city: Optional[str] = None
    pin_code: str | int | None = Field(None, alias="pinCode")
    street: Optional[str] = None
    landmark: Optional[str] = None
    verify: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def map_url(self) -> Optional[str]:
        if self.latitude is None or self.longitude is None:
            return None
        return f"https://www.google.com/maps?q={self.latitude},{self.longitude}"


# --- Coupons ---

class Coupon(WireModel):
    id: int
    coupon_code: str = Field(alias="couponCode")
    discount_amount: float = Field(0, alias="discountAmount")
    active: bool = False
    created_at: Optional[str] = Field(None, alias="createdAt")


class CreateCouponRequest(WireModel):
    coupon_code: str = Field(alias="couponCode")
    discount_amount: float = Field(alias="discountAmount")


# --- Auth ---

class OtpVerification(WireModel):
    message: str = ""
    status: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success" or "success" in (self.message or "").lower()
