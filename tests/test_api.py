"""
End-to-end tests for the HTTP API.

Requests go through the FastAPI app with the test database and the mock
e-mail service, so the whole signup -> order -> kitchen flow is exercised.
"""
import pytest
from sqlalchemy import func, select

from bakery_api.models import User, UserRole

API = "/api/v1"

SIGNUP = {
    "name": "Asha Verma",
    "email": "asha@gmail.com",
    "password": "secret1",
    "phone": "9876543210",
}

ORDER = {
    "items": [
        {"productId": 1, "name": "Veg Puff", "price": 100, "quantity": 2, "image": "🥟"},
        {"productId": 2, "name": "Cold Coffee", "price": 50, "quantity": 1, "image": "🥤"},
    ],
    "totalAmount": 250,
    "address": "Dine-In",
    "tableNo": "4",
}

PRODUCT = {
    "name": "Black Forest Cake",
    "price": 450,
    "category": "Cake",
    "image": "🎂",
    "description": "Half kg",
}


@pytest.fixture
async def admin_headers(create_user, login):
    await create_user(email="owner@bakery.in", role=UserRole.ADMIN)
    return await login("owner@bakery.in")


@pytest.fixture
async def customer_headers(create_user, login):
    await create_user(email="c@x.com", role=UserRole.CUSTOMER, name="Ravi")
    return await login("c@x.com")


async def place(client, headers, body=ORDER) -> int:
    resp = await client.post(f"{API}/user/place-order", json=body, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["orderId"]


class TestSystem:

    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["health"] == "/health"

    async def test_health(self, client):
        resp = await client.get("/health")
        body = resp.json()

        assert resp.status_code == 200
        assert body["status"] == "operational"
        assert body["database"] == "healthy"
        assert body["notification_service"] == "healthy"


class TestSignupFlow:

    async def test_signup_verify_signin_order(self, client, notifier):
        resp = await client.post(f"{API}/user/signup", json=SIGNUP)
        assert resp.status_code == 201, resp.text
        assert resp.json()["email"] == "asha@gmail.com"
        assert "expiresAt" in resp.json()

        code = notifier.last_code_for("asha@gmail.com")
        wrong = "000000" if code != "000000" else "111111"

        resp = await client.post(
            f"{API}/user/verify-otp", json={"email": "asha@gmail.com", "otp": wrong}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid OTP"

        resp = await client.post(
            f"{API}/user/verify-otp", json={"email": "asha@gmail.com", "otp": code}
        )
        assert resp.status_code == 200, resp.text

        resp = await client.post(
            f"{API}/user/signin", json={"email": "asha@gmail.com", "password": "secret1"}
        )
        assert resp.status_code == 200, resp.text
        signin = resp.json()
        assert signin["user"]["role"] == "customer"
        assert signin["user"]["name"] == "Asha Verma"
        assert "passwordHash" not in signin["user"]
        headers = {"x-auth-token": signin["token"]}

        order_id = await place(client, headers)

        resp = await client.get(f"{API}/user/orders", headers=headers)
        assert resp.status_code == 200
        orders = resp.json()["orders"]
        assert len(orders) == 1
        assert orders[0]["id"] == order_id
        assert orders[0]["status"] == "Order Placed"
        assert orders[0]["totalAmount"] == 250
        assert orders[0]["tableNo"] == "4"
        assert orders[0]["items"][0]["productId"] == 1

    async def test_unverified_signin_looks_like_bad_password(self, client, create_user):
        await client.post(f"{API}/user/signup", json=SIGNUP)
        await create_user(email="real@x.com", role=UserRole.CUSTOMER)

        pending = await client.post(
            f"{API}/user/signin", json={"email": SIGNUP["email"], "password": "secret1"}
        )
        wrong = await client.post(
            f"{API}/user/signin", json={"email": "real@x.com", "password": "nope-nope"}
        )

        assert pending.status_code == wrong.status_code == 400
        assert pending.json() == wrong.json()

    async def test_duplicate_verified_signup(self, client, create_user):
        await create_user(email=SIGNUP["email"], role=UserRole.CUSTOMER)

        resp = await client.post(f"{API}/user/signup", json=SIGNUP)

        assert resp.status_code == 409
        assert resp.json()["success"] is False

    async def test_failed_delivery_leaves_no_record(self, client, notifier, session_maker):
        notifier.failure_rate = 1.0

        resp = await client.post(f"{API}/user/signup", json=SIGNUP)

        assert resp.status_code == 502
        async with session_maker() as session:
            count = (await session.execute(select(func.count(User.id)))).scalar_one()
        assert count == 0

    async def test_verify_without_signup(self, client):
        resp = await client.post(
            f"{API}/user/verify-otp", json={"email": "ghost@x.com", "otp": "123456"}
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("field,value", [
        ("email", "not-an-email"),
        ("password", "123"),
        ("phone", "12345"),
        ("phone", "5876543210"),
        ("name", " "),
    ])
    async def test_signup_validation(self, client, field, value):
        resp = await client.post(f"{API}/user/signup", json={**SIGNUP, field: value})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Validation Error"
        assert resp.json()["msg"] == resp.json()["detail"]

    async def test_malformed_otp(self, client):
        resp = await client.post(
            f"{API}/user/verify-otp", json={"email": "a@x.com", "otp": "12ab56"}
        )
        assert resp.status_code == 400


class TestAccessControl:

    async def test_missing_token(self, client):
        resp = await client.get(f"{API}/user/orders")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "No token, access denied"
        assert resp.json()["msg"] == "No token, access denied"

    async def test_invalid_token(self, client):
        resp = await client.get(f"{API}/user/orders", headers={"x-auth-token": "garbage"})
        assert resp.status_code == 401

    @pytest.mark.parametrize("method,path", [
        ("get", "/admin/orders"),
        ("get", "/admin/analytics"),
        ("put", "/admin/toggle-stock/1"),
        ("delete", "/admin/remove-product/1"),
    ])
    async def test_customer_cannot_use_admin_routes(self, client, customer_headers, method, path):
        resp = await client.request(method.upper(), f"{API}{path}", headers=customer_headers)
        assert resp.status_code == 403

    async def test_admin_routes_need_a_token(self, client):
        resp = await client.get(f"{API}/admin/orders")
        assert resp.status_code == 401

    async def test_menu_is_public(self, client):
        resp = await client.get(f"{API}/user/menu")
        assert resp.status_code == 200
        assert resp.json() == {"products": []}


class TestOrders:

    async def test_total_must_match_items(self, client, customer_headers):
        resp = await client.post(
            f"{API}/user/place-order",
            json={**ORDER, "totalAmount": 999},
            headers=customer_headers,
        )
        assert resp.status_code == 400

    async def test_empty_cart(self, client, customer_headers):
        resp = await client.post(
            f"{API}/user/place-order", json={**ORDER, "items": []}, headers=customer_headers
        )
        assert resp.status_code == 400

    async def test_admin_sees_all_orders_with_customer(self, client, customer_headers, admin_headers):
        await place(client, customer_headers)

        resp = await client.get(f"{API}/admin/orders", headers=admin_headers)

        orders = resp.json()["orders"]
        assert len(orders) == 1
        assert orders[0]["user"] == {"name": "Ravi", "phone": "9876543210", "email": "c@x.com"}

    async def test_status_can_jump_to_delivered(self, client, customer_headers, admin_headers):
        order_id = await place(client, customer_headers)

        resp = await client.put(
            f"{API}/admin/order-status/{order_id}",
            json={"status": "Delivered"},
            headers=admin_headers,
        )

        assert resp.status_code == 200, resp.text
        assert resp.json()["order"]["status"] == "Delivered"

        board = await client.get(f"{API}/admin/orders?active=true", headers=admin_headers)
        assert board.json()["orders"] == []

    async def test_unknown_status(self, client, customer_headers, admin_headers):
        order_id = await place(client, customer_headers)

        resp = await client.put(
            f"{API}/admin/order-status/{order_id}",
            json={"status": "Teleported"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_missing_order_beats_bad_status(self, client, admin_headers):
        resp = await client.put(
            f"{API}/admin/order-status/9999",
            json={"status": "Teleported"},
            headers=admin_headers,
        )
        assert resp.status_code == 404


class TestMenuAdmin:

    async def test_add_toggle_remove(self, client, admin_headers):
        resp = await client.post(f"{API}/admin/add_product", json=PRODUCT, headers=admin_headers)
        assert resp.status_code == 200, resp.text
        product = resp.json()["product"]
        assert product["isAvailable"] is True

        resp = await client.put(
            f"{API}/admin/toggle-stock/{product['id']}", headers=admin_headers
        )
        assert resp.json()["product"]["isAvailable"] is False

        menu = (await client.get(f"{API}/user/menu")).json()["products"]
        assert [p["isAvailable"] for p in menu] == [False]

        resp = await client.delete(
            f"{API}/admin/remove-product/{product['id']}", headers=admin_headers
        )
        assert resp.status_code == 200
        assert (await client.get(f"{API}/user/menu")).json()["products"] == []

    async def test_bulk_upload(self, client, admin_headers):
        menu = [PRODUCT, {**PRODUCT, "name": "Veg Puff", "price": 25, "category": "Snacks"}]

        resp = await client.post(f"{API}/admin/add-bulk-products", json=menu, headers=admin_headers)

        assert resp.status_code == 200, resp.text
        assert resp.json()["count"] == 2
        listed = await client.get(f"{API}/admin/products", headers=admin_headers)
        assert len(listed.json()["products"]) == 2

    async def test_bulk_upload_rejects_empty_menu(self, client, admin_headers):
        resp = await client.post(f"{API}/admin/add-bulk-products", json=[], headers=admin_headers)
        assert resp.status_code == 400

    async def test_non_positive_price(self, client, admin_headers):
        resp = await client.post(
            f"{API}/admin/add_product", json={**PRODUCT, "price": 0}, headers=admin_headers
        )
        assert resp.status_code == 400

    async def test_missing_product(self, client, admin_headers):
        resp = await client.put(f"{API}/admin/toggle-stock/404", headers=admin_headers)
        assert resp.status_code == 404


class TestAnalytics:

    async def test_shape(self, client, customer_headers, admin_headers):
        order_id = await place(client, customer_headers)
        await client.put(
            f"{API}/admin/order-status/{order_id}",
            json={"status": "Delivered"},
            headers=admin_headers,
        )

        resp = await client.get(f"{API}/admin/analytics", headers=admin_headers)

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["total"] == {"totalRevenue": 250, "totalOrders": 1}
        assert body["today"] == {"todayRevenue": 250, "todayOrders": 1}
        assert [p["dailyRevenue"] for p in body["trend"]] == [250]
        assert body["history"][0]["id"] == order_id
        assert body["history"][0]["user"]["name"] == "Ravi"
