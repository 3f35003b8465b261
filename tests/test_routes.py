import json

import httpx
import pytest
from fastapi.testclient import TestClient

from payfast import generate_signature
from storefront.core.config import PAYFAST_SANDBOX_URL
from storefront.main import create_app
from storefront.services.bobgo_client import BobGoClient
from storefront.services.payments import PaymentAdapter
from storefront.services.woocommerce_client import WooCommerceClient

WOO_PREFIX = "/wp-json/wc/v3"

CATALOG = {
    1: {"id": 1, "name": "Gold Standard Whey", "price": "100.00", "stock_status": "instock",
        "categories": [{"id": 5, "name": "Protein"}]},
    2: {"id": 2, "name": "Creatine Monohydrate", "price": "50.00", "stock_status": "instock",
        "categories": [{"id": 6, "name": "Creatine"}]},
    3: {"id": 3, "name": "Sold Out Pre-Workout", "price": "80.00", "stock_status": "outofstock"},
}

ADDRESS = {
    "street_address": "12 Main Road",
    "local_area": "Rosebank",
    "city": "Johannesburg",
    "zone": "GP",
    "country": "ZA",
    "code": "2196",
}

FORM = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane@example.com",
    "phone": "082 555 1234",
    "address": "12 Main Road",
    "city": "Johannesburg",
    "province": "Gauteng",
    "postal_code": "2196",
    "country": "ZA",
}


class FakeStore:
    """WooCommerce and Bob Go behind one mock transport"""

    def __init__(self, rates=None, rates_status: int = 200):
        self.rates = rates if rates is not None else [
            {"service_code": "ECO", "service_name": "Economy", "price": 50},
            {"service_code": "EXP", "service_name": "Express", "price": 80},
        ]
        self.rates_status = rates_status
        self.orders = []
        self.status_updates = []

    def woocommerce(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len(WOO_PREFIX):]

        if path == "/products":
            return httpx.Response(200, json=list(CATALOG.values()))
        if path.startswith("/products/"):
            product = CATALOG.get(int(path.rsplit("/", 1)[1]))
            if product is None:
                return httpx.Response(404, json={"message": "Invalid ID."})
            return httpx.Response(200, json=product)
        if path == "/orders/create":
            self.orders.append(json.loads(request.content))
            order_id = 1000 + len(self.orders)
            return httpx.Response(200, json={"success": True, "order_id": order_id, "order_number": str(order_id)})
        if request.method == "PUT" and path.startswith("/orders/"):
            status = json.loads(request.content)["status"]
            self.status_updates.append((int(path.rsplit("/", 1)[1]), status))
            return httpx.Response(200, json={"status": status})
        return httpx.Response(404)

    def bobgo(self, request: httpx.Request) -> httpx.Response:
        if self.rates_status >= 400:
            return httpx.Response(self.rates_status, text="unavailable")
        return httpx.Response(200, json={"rates": self.rates})


def build_client(settings, store: FakeStore) -> TestClient:
    woocommerce = WooCommerceClient(
        base_url="https://shop.test",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(store.woocommerce)),
    )
    bobgo = BobGoClient(
        api_key="bobgo-key",
        origin=settings.shipping_origin,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(store.bobgo)),
    )
    app = create_app(settings, woocommerce=woocommerce, bobgo=bobgo, payments=PaymentAdapter.from_settings(settings))
    return TestClient(app)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(settings, store):
    return build_client(settings, store)


def start_session(client: TestClient) -> dict:
    response = client.post("/api/session")
    assert response.status_code == 200
    return {"X-Session-Token": response.json()["token"]}


def checkout_ready(client: TestClient, headers: dict) -> dict:
    client.post("/api/cart/items", json={"product_id": 1, "quantity": 2}, headers=headers)
    client.post("/api/shipping/rates", json={"address": ADDRESS}, headers=headers)
    response = client.post("/api/checkout/orders", json={"form": FORM}, headers=headers)
    assert response.status_code == 200
    return response.json()["order"]


def start_payment(client: TestClient, headers: dict, order: dict) -> dict:
    response = client.post(
        "/api/checkout/payment",
        json={
            "order_id": order["id"],
            "order_number": order["number"],
            "customer": {
                "first_name": "Jane",
                "last_name": "Doe",
                "email": "jane@example.com",
                "phone": "0825551234",
            },
        },
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()


class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["payfast_configured"] is True
        assert data["active_sessions"] == 0


class TestSession:
    def test_create_and_read(self, client):
        headers = start_session(client)

        data = client.get("/api/session", headers=headers).json()

        assert data["item_count"] == 0
        assert data["checkout_state"] == "idle"

    def test_token_required(self, settings, store):
        fresh = build_client(settings, store)

        response = fresh.get("/api/cart")

        assert response.status_code == 401

    def test_invalid_token(self, settings, store):
        fresh = build_client(settings, store)

        response = fresh.get("/api/cart", headers={"X-Session-Token": "bogus"})

        assert response.status_code == 404

    def test_cookie_identifies_session(self, client):
        client.post("/api/session")

        response = client.get("/api/session")

        assert response.status_code == 200


class TestProducts:
    def test_listing(self, client):
        data = client.get("/api/products").json()

        assert data["total"] == 3
        assert data["query"] is None

    def test_ranked_search(self, client):
        data = client.get("/api/products", params={"q": "whey"}).json()

        assert [product["id"] for product in data["products"]] == [1]
        assert data["query"] == "whey"

    def test_missing_product(self, client):
        response = client.get("/api/products/99")

        assert response.status_code == 404
        assert response.json()["detail"]["message"] == "Product not found."


class TestCart:
    def test_add_merges_lines(self, client):
        headers = start_session(client)

        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)
        response = client.post("/api/cart/items", json={"product_id": 1}, headers=headers)

        cart = response.json()["cart"]
        assert len(cart["items"]) == 1
        assert cart["items"][0]["productId"] == 1
        assert cart["items"][0]["quantity"] == 2
        assert cart["itemCount"] == 2
        assert cart["total"] == 200.0

    def test_out_of_stock(self, client):
        headers = start_session(client)

        response = client.post("/api/cart/items", json={"product_id": 3}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["retryable"] is False

    def test_update_and_remove(self, client):
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)
        client.post("/api/cart/items", json={"product_id": 2}, headers=headers)

        client.put("/api/cart/items/1", json={"quantity": 3}, headers=headers)
        cart = client.delete("/api/cart/items/2", headers=headers).json()["cart"]

        assert cart["itemCount"] == 3
        assert cart["total"] == 300.0

    def test_update_missing_item(self, client):
        headers = start_session(client)

        response = client.put("/api/cart/items/1", json={"quantity": 3}, headers=headers)

        assert response.status_code == 400


class TestShipping:
    def test_quote_selects_first_rate(self, client):
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)

        data = client.post("/api/shipping/rates", json={"address": ADDRESS}, headers=headers).json()

        assert [option["id"] for option in data["options"]] == ["ECO", "EXP"]
        assert data["selected_option"]["id"] == "ECO"
        assert data["from_fallback"] is False

    def test_select(self, client):
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)
        client.post("/api/shipping/rates", json={"address": ADDRESS}, headers=headers)

        data = client.post("/api/shipping/select", json={"option_id": "EXP"}, headers=headers).json()

        assert data["selected_option"]["price"] == 80.0

    def test_carrier_outage_uses_fallback(self, settings):
        client = build_client(settings, FakeStore(rates_status=503))
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)

        response = client.post("/api/shipping/rates", json={"address": ADDRESS}, headers=headers)

        data = response.json()
        assert response.status_code == 200
        assert data["selected_option"]["id"] == "standard-shipping"
        assert data["selected_option"]["price"] == 74.0
        assert data["warning"]

    def test_bad_address(self, client):
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)

        response = client.post("/api/shipping/rates", json={"address": {**ADDRESS, "code": "21"}}, headers=headers)

        assert response.status_code == 400
        assert "code" in response.json()["detail"]["errors"]


class TestCheckout:
    def test_create_order(self, client, store):
        headers = start_session(client)

        order = checkout_ready(client, headers)

        assert order["total"] == 250.0
        assert order["shipping_total"] == 50.0
        assert store.orders[0]["shipping_lines"][0]["method_id"] == "ECO"
        assert client.get("/api/cart", headers=headers).json()["cart"]["itemCount"] == 2

    def test_invalid_form(self, client, store):
        headers = start_session(client)
        client.post("/api/cart/items", json={"product_id": 1}, headers=headers)

        response = client.post("/api/checkout/orders", json={"form": {**FORM, "email": "nope"}}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == {"email": "Valid email is required"}
        assert store.orders == []

        state = client.get("/api/checkout", headers=headers).json()
        assert state["state"] == "failed"
        assert state["success"] is False

        cleared = client.delete("/api/checkout/error", headers=headers).json()
        assert cleared["error_message"] is None

    def test_empty_cart(self, client):
        headers = start_session(client)

        response = client.post("/api/checkout/orders", json={"form": FORM}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Your cart is empty."

    def test_payment_hand_off(self, client, store):
        headers = start_session(client)
        order = checkout_ready(client, headers)

        data = start_payment(client, headers, order)

        assert data["state"] == "payment_redirected"
        assert data["payment"]["redirect_url"] == PAYFAST_SANDBOX_URL
        assert data["payment"]["fields"]["amount"] == "250.00"
        assert store.status_updates == [(order["id"], "processing")]

    def test_payment_for_another_order_is_refused(self, client, store):
        headers = start_session(client)
        order = checkout_ready(client, headers)

        response = client.post(
            "/api/checkout/payment",
            json={
                "order_id": 999,
                "order_number": "999",
                "customer": {"first_name": "Jane", "email": "jane@example.com", "total": 1.0},
            },
            headers=headers,
        )

        assert response.status_code == 409
        assert store.status_updates == []

        data = start_payment(client, headers, order)
        assert data["payment"]["fields"]["amount"] == "250.00"

    def test_payment_without_order(self, client, store):
        headers = start_session(client)

        response = client.post(
            "/api/checkout/payment",
            json={"order_id": 1001, "order_number": "1001", "customer": {"first_name": "Jane", "email": "jane@example.com"}},
            headers=headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "No order is awaiting payment. Please place your order again."
        assert store.status_updates == []

    def test_reset(self, client):
        headers = start_session(client)
        checkout_ready(client, headers)

        data = client.post("/api/checkout/reset", headers=headers).json()

        assert data["state"] == "idle"
        assert data["order"] is None


class TestPaymentPages:
    def test_redirect_page_posts_signed_fields(self, client):
        headers = start_session(client)
        start_payment(client, headers, checkout_ready(client, headers))

        response = client.get("/payment/redirect", headers=headers)

        assert response.status_code == 200
        assert f'action="{PAYFAST_SANDBOX_URL}"' in response.text
        assert 'name="signature"' in response.text
        assert 'name="custom_str1" value="1001"' in response.text

    def test_redirect_without_payment(self, client):
        headers = start_session(client)

        assert client.get("/payment/redirect", headers=headers).status_code == 404

    def test_success_clears_cart(self, client):
        headers = start_session(client)
        start_payment(client, headers, checkout_ready(client, headers))

        response = client.get("/payment/success", headers=headers)

        assert response.status_code == 200
        assert "Order #1001" in response.text
        assert client.get("/api/cart", headers=headers).json()["cart"]["itemCount"] == 0
        assert client.get("/api/shipping", headers=headers).json()["options"] == []

    def test_cancel_keeps_cart(self, client):
        headers = start_session(client)
        start_payment(client, headers, checkout_ready(client, headers))

        response = client.get("/payment/cancel", params={"order_id": "1001"}, headers=headers)

        assert response.status_code == 200
        assert client.get("/api/cart", headers=headers).json()["cart"]["itemCount"] == 2
        assert client.get("/api/checkout", headers=headers).json()["state"] == "idle"

    def test_success_without_session(self, settings, store):
        fresh = build_client(settings, store)

        response = fresh.get("/payment/success", params={"order_id": "1001"})

        assert response.status_code == 200
        assert "Order #1001" in response.text


class TestNotify:
    def itn(self, **overrides):
        payload = {
            "pf_payment_id": "1089250",
            "payment_status": "COMPLETE",
            "item_name": "Order #1001",
            "amount_gross": "250.00",
            "custom_str1": "1001",
            "email_address": "jane@example.com",
        }
        payload.update(overrides)
        return payload

    @pytest.mark.parametrize(
        "payment_status,expected",
        [
            ("COMPLETE", [(1001, "completed")]),
            ("FAILED", [(1001, "failed")]),
            ("CANCELLED", [(1001, "cancelled")]),
            ("PENDING", []),
        ],
    )
    def test_status_mapping(self, client, store, payment_status, expected):
        response = client.post("/payment/notify", data=self.itn(payment_status=payment_status))

        assert response.status_code == 200
        assert response.text == "OK"
        assert store.status_updates == expected

    def test_missing_required_field(self, client, store):
        payload = self.itn()
        del payload["amount_gross"]

        response = client.post("/payment/notify", data=payload)

        assert response.status_code == 400
        assert store.status_updates == []

    def test_without_order_id(self, client, store):
        payload = self.itn()
        del payload["custom_str1"]

        response = client.post("/payment/notify", data=payload)

        assert response.status_code == 200
        assert store.status_updates == []

    def test_signature_checked_when_enabled(self, settings, store):
        strict = settings.model_copy(update={"payfast_verify_itn_signature": True})
        client = build_client(strict, store)

        forged = client.post("/payment/notify", data={**self.itn(), "signature": "forged"})

        payload = self.itn()
        payload["signature"] = generate_signature(payload, settings.payfast_passphrase)
        signed = client.post("/payment/notify", data=payload)

        assert forged.status_code == 400
        assert signed.status_code == 200
        assert store.status_updates == [(1001, "completed")]
