from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ops_dashboard.core.config import settings
from ops_dashboard.domain.models import (
    Coupon,
    Listing,
    OrderDetail,
    OrderSummary,
    OtpVerification,
    Shop,
    UserLocation,
)
from ops_dashboard.infrastructure.session_store import AdminSessionStore
from ops_dashboard.interfaces.ICommerceApi import ICommerceApi
from ops_dashboard.interfaces.IOrderFeed import TransportError
from ops_dashboard.interfaces.web import require_admin
from ops_dashboard.main import create_app

HTML = {"accept": "text/html"}


def _api(summaries=None, details=None):
    details = details or {}

    async def fetch_detail(order_id):
        if order_id not in details:
            raise TransportError(f"/subOrders/{order_id}", "HTTP error! status: 404", 404)
        return details[order_id]

    api = AsyncMock(spec=ICommerceApi)
    api.fetch_order_summaries.return_value = summaries or []
    api.fetch_order_detail.side_effect = fetch_detail
    api.get_recent_recommendations.return_value = [Listing(id=1, item_name="Lamp", final_price=250, is_active=True)]
    api.get_shops_by_category.return_value = [
        Shop(uid="s1", shop_name="Corner Store", rating=4.5, is_open=True, verify=True),
        Shop(uid="s2", shop_name="Book Nook", rating=3.5),
    ]
    api.get_products_by_category.return_value = [Listing(id=5, item_name="Desk Lamp", discount="10%", final_price=90, actual_price=100)]
    api.get_all_coupons.return_value = [
        Coupon(id=1, coupon_code="WELCOME", discount_amount=50, active=True),
        Coupon(id=2, coupon_code="OLD10", discount_amount=10, active=False),
    ]
    return api


SCENARIO = [
    OrderSummary(order_id="A", placed=True, cancelled=True, delivery_fee=50, payment_status="COD"),
    OrderSummary(order_id="B", delivered=True, delivery_fee=100, payment_status="paid",
                 created_at="2024-05-01T10:00:00Z"),
]


@pytest.fixture
def make_client():
    def build(api, authenticated=True):
        app = create_app(api=api, session_store=AdminSessionStore(settings.ADMIN_EMAIL))
        if authenticated:
            app.dependency_overrides[require_admin] = lambda: None
        return TestClient(app)
    return build


def test_orders_json(make_client):
    client = make_client(_api(SCENARIO, {"B": OrderDetail(sub_order_cost=120)}))

    res = client.get("/admin/orders")
    assert res.status_code == 200
    body = res.json()
    assert [(o["order_id"], o["status"], o["actual_amount"]) for o in body["orders"]] == [
        ("A", "cancelled", 0), ("B", "completed", 120),
    ]
    assert body["metrics"]["total"] == 2
    assert body["metrics"]["total_revenue"] == 120
    assert body["metrics"]["average_order_value"] == 60
    assert body["table"]["state"] == "ready"


def test_orders_search_and_paging(make_client):
    summaries = [OrderSummary(order_id=f"ORD-{i:02d}", placed=True) for i in range(23)]
    client = make_client(_api(summaries))

    res = client.get("/admin/orders", params={"page": 2})
    assert len(res.json()["orders"]) == 3
    assert res.json()["table"]["has_next_page"] is False

    res = client.get("/admin/orders", params={"q": "ord-1"})
    table = res.json()["table"]
    assert table["total_records"] == 10
    assert table["page_index"] == 0


def test_orders_fatal_failure_is_502(make_client):
    api = _api()
    api.fetch_order_summaries.side_effect = TransportError("/api/owner/orders/get", "HTTP error! status: 500", 500)
    client = make_client(api)

    res = client.get("/admin/orders")
    assert res.status_code == 502
    assert res.json()["detail"] == "Failed to load orders. Please try again."


def test_orders_html_shows_error_banner_with_retry(make_client):
    api = _api()
    api.fetch_order_summaries.side_effect = TransportError("/api/owner/orders/get", "timeout")
    client = make_client(api)

    res = client.get("/admin/orders", headers=HTML)
    assert res.status_code == 200
    assert "Failed to load orders. Please try again." in res.text
    assert "Retry" in res.text
    assert "No results." in res.text


def test_orders_html_renders_table(make_client):
    summaries = SCENARIO + [OrderSummary(order_id=f"X{i}", placed=True) for i in range(12)]
    client = make_client(_api(summaries, {"B": OrderDetail(sub_order_cost=120)}))

    res = client.get("/admin/orders", headers=HTML)
    assert res.status_code == 200
    assert "Orders Management" in res.text
    assert 'badge badge-destructive">Cancelled' in res.text
    assert 'badge badge-success">Delivered' in res.text
    assert "Next" in res.text


def test_refresh_refetches(make_client):
    api = _api(SCENARIO)
    client = make_client(api)
    client.get("/admin/orders")

    res = client.post("/admin/orders/refresh")
    assert res.status_code == 200
    assert res.json()["refreshed"] is True
    assert api.fetch_order_summaries.await_count == 2


def test_order_detail_with_progress(make_client):
    summaries = [OrderSummary(order_id="S1", placed=True, confirmed=True, processed=True, shipped=True)]
    client = make_client(_api(summaries, {"S1": OrderDetail(sub_order_cost=75, total_items=1)}))

    body = client.get("/admin/orders/S1").json()
    assert body["order"]["status_text"] == "Shipped"
    assert [s["completed"] for s in body["progress"]] == [True, True, True, True, False]

    assert client.get("/admin/orders/S1", headers=HTML).status_code == 200
    assert client.get("/admin/orders/missing").status_code == 404


def test_overview(make_client):
    client = make_client(_api(SCENARIO))
    body = client.get("/").json()
    assert body["metrics"]["total"] == 2
    assert body["metrics"]["total_revenue"] == 100
    assert [o["order_id"] for o in body["recent_orders"]] == ["A", "B"]
    assert body["recommendations"][0]["item_name"] == "Lamp"

    assert "Dashboard Overview" in client.get("/", headers=HTML).text


def test_overview_degrades_to_empty(make_client):
    api = _api()
    api.get_recent_recommendations.side_effect = TransportError("/Api/v3/get/recommendation", "down")
    body = make_client(api).get("/").json()
    assert body["metrics"]["total"] == 0
    assert body["error"].startswith("Unable to connect")


def test_shops_products_coupons(make_client):
    api = _api()
    client = make_client(api)

    shops = client.get("/admin/shops", params={"q": "corner"}).json()
    assert [s["uid"] for s in shops["shops"]] == ["s1"]
    assert shops["stats"]["average_rating"] == 4.0

    products = client.get("/admin/products", params={"category": "lighting", "page": 1}).json()
    api.get_products_by_category.assert_awaited_with("lighting", 1, settings.DEFAULT_PAGE_SIZE)
    assert products["stats"]["discounted"] == 1
    assert products["table"]["has_previous_page"] is True

    coupons = client.get("/admin/coupons", params={"status": "active"}).json()
    assert [c["coupon_code"] for c in coupons["coupons"]] == ["WELCOME"]
    assert coupons["stats"]["total_discount_value"] == 50

    for path in ("/admin/shops", "/admin/products", "/admin/coupons"):
        assert client.get(path, headers=HTML).status_code == 200


def test_coupon_actions(make_client):
    api = _api()
    api.create_coupon.return_value = Coupon(id=9, coupon_code="NEW", discount_amount=5, active=True)
    api.deactivate_coupon.return_value = Coupon(id=1, coupon_code="WELCOME", discount_amount=50, active=False)
    client = make_client(api)

    res = client.post("/admin/coupons", data={"coupon_code": " NEW ", "discount_amount": "5"})
    assert res.json()["coupon"]["id"] == 9
    sent = api.create_coupon.await_args.args[0]
    assert sent.coupon_code == "NEW"

    res = client.post("/admin/coupons/1/deactivate")
    assert res.json()["coupon"]["active"] is False


def test_admin_pages_require_session(make_client):
    client = make_client(_api(SCENARIO), authenticated=False)
    assert client.get("/admin/orders").status_code == 401

    res = client.get("/admin/orders", headers=HTML, follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/admin/login"


def test_otp_login_flow(make_client):
    api = _api(SCENARIO)
    api.send_otp.return_value = {"message": "sent"}
    api.verify_otp.return_value = OtpVerification(message="Invalid OTP", status="failed")
    client = make_client(api, authenticated=False)

    assert client.post("/admin/login/otp").json()["otp_sent"] is True
    assert client.post("/admin/login/verify", data={"otp": "  "}).status_code == 400
    assert client.post("/admin/login/verify", data={"otp": "000"}).status_code == 401

    api.verify_otp.return_value = OtpVerification(message="OTP verified", status="success")
    res = client.post("/admin/login/verify", data={"otp": "123456"})
    assert res.json() == {"authenticated": True}
    api.verify_otp.assert_awaited_with(settings.ADMIN_EMAIL, "123456")

    assert client.get("/admin/orders").status_code == 200

    client.post("/admin/logout")
    assert client.get("/admin/orders").status_code == 401


def test_login_page_renders(make_client):
    client = make_client(_api(), authenticated=False)
    res = client.get("/admin/login", headers=HTML)
    assert res.status_code == 200
    assert "Send OTP" in res.text


def test_recommendations_are_paged_by_the_backend(make_client):
    api = _api()
    api.get_recent_recommendations.return_value = [
        Listing(id=i, item_name=f"Item {i}", final_price=100 + i, is_active=i % 2 == 0,
                discount="5%" if i < 3 else "0%")
        for i in range(10)
    ]
    client = make_client(api)

    body = client.get("/admin/recommendations", params={"page": 2}).json()
    api.get_recent_recommendations.assert_awaited_with(2, settings.DEFAULT_PAGE_SIZE)
    assert len(body["recommendations"]) == 10
    assert body["table"]["has_next_page"] is True
    assert body["table"]["has_previous_page"] is True
    assert body["stats"] == {"total": 10, "active": 5, "discounted": 3, "average_price": 104.5}

    api.get_recent_recommendations.return_value = [Listing(id=1, item_name="Lamp")]
    body = client.get("/admin/recommendations").json()
    assert body["table"]["has_next_page"] is False

    res = client.get("/admin/recommendations", headers=HTML)
    assert "Total Recommendations" in res.text
    assert "/admin/recommendations/1/remove" in res.text


def test_remove_recommendation(make_client):
    api = _api()
    api.update_recommendation_status.return_value = {"status": "ok"}
    client = make_client(api)

    assert client.post("/admin/recommendations/7/remove").json() == {"product_id": 7, "removed": True}
    api.update_recommendation_status.assert_awaited_with(7)

    api.update_recommendation_status.side_effect = TransportError("/Api/v3/delete/recommend/7", "down")
    res = client.post("/admin/recommendations/7/remove")
    assert res.status_code == 502
    assert res.json()["detail"] == "Failed to remove recommendation. Please try again."


def test_html_actions_only_redirect_within_the_dashboard(make_client):
    api = _api()
    api.update_recommendation_status.return_value = {}
    client = make_client(api)

    def location(referer):
        headers = dict(HTML, referer=referer) if referer else HTML
        res = client.post("/admin/recommendations/7/remove", headers=headers, follow_redirects=False)
        assert res.status_code == 303
        return res.headers["location"]

    assert location("http://testserver/admin/recommendations?page=2") == "/admin/recommendations?page=2"
    assert location("/admin/products") == "/admin/products"
    assert location("https://evil.example/phish") == "/admin/recommendations"
    assert location("//evil.example/phish") == "/admin/recommendations"
    assert location("javascript:alert(1)") == "/admin/recommendations"
    assert location(None) == "/admin/recommendations"


def test_location_lookup(make_client):
    api = _api()
    api.get_user_location.return_value = UserLocation(
        id=42, uid="user-1", name="Asha", city="Pune", state="MH", pin_code="411001",
        verify=True, latitude=18.52, longitude=73.85,
    )
    client = make_client(api)

    assert client.get("/admin/locations").json() == {"location": None}
    api.get_user_location.assert_not_awaited()

    body = client.get("/admin/locations", params={"id": " 42 "}).json()
    api.get_user_location.assert_awaited_with(42)
    assert body["location"]["name"] == "Asha"

    res = client.get("/admin/locations", params={"id": "42"}, headers=HTML)
    assert "View on Google Maps" in res.text
    assert "https://www.google.com/maps?q=18.52,73.85" in res.text


def test_location_lookup_errors(make_client):
    api = _api()
    api.get_user_location.side_effect = TransportError("/Api/location/idd/9", "HTTP error! status: 404", 404)
    client = make_client(api)

    res = client.get("/admin/locations", params={"id": "  "})
    assert res.status_code == 400
    assert res.json()["detail"] == "Please enter a location ID."

    assert client.get("/admin/locations", params={"id": "abc"}).status_code == 400

    res = client.get("/admin/locations", params={"id": "9"})
    assert res.status_code == 404
    assert res.json()["detail"] == "Failed to load location. Please check the ID and try again."

    res = client.get("/admin/locations", params={"id": "9"}, headers=HTML)
    assert res.status_code == 200
    assert "Failed to load location" in res.text


def test_coupon_usage_history(make_client):
    api = _api()
    api.get_coupon_usage_history.return_value = [{"couponCode": "WELCOME", "usedAt": "2024-05-01"}]
    client = make_client(api)

    body = client.get("/admin/coupons/history/user-1").json()
    assert body == {"user_id": "user-1", "history": [{"couponCode": "WELCOME", "usedAt": "2024-05-01"}]}
    api.get_coupon_usage_history.assert_awaited_with("user-1")

    api.get_coupon_usage_history.side_effect = TransportError("/api/coupons/history/user-1", "down")
    assert client.get("/admin/coupons/history/user-1").status_code == 502
