import json

import httpx
import pytest

from storefront.core.errors import NetworkError, RequestTimeout, ShippingRatesUnavailable
from storefront.models.cart import CartLineItem
from storefront.services.bobgo_client import BobGoClient

ORIGIN = {"company": "Invictus Nutrition", "city": "Sandton", "code": "2065"}


def make_client(handler) -> BobGoClient:
    return BobGoClient(
        api_key="bobgo-key",
        base_url="https://api.bobgo.test/v2",
        origin=ORIGIN,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def items():
    return [
        CartLineItem(id="a", product_id=1, name="Whey", price=100.0, quantity=2),
        CartLineItem(id="b", product_id=2, name="Creatine", price=50.0, quantity=1, weight_kg=0.3, length_cm=12),
    ]


class TestRequest:
    async def test_posts_quote_request(self, address, items):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"rates": []})

        await make_client(handler).get_checkout_rates(address, items, 250.0)

        assert captured["url"] == "https://api.bobgo.test/v2/rates-at-checkout"
        assert captured["auth"] == "Bearer bobgo-key"

        body = captured["body"]
        assert body["collection_address"] == ORIGIN
        assert body["delivery_address"]["code"] == "2196"
        assert body["delivery_address"]["company"] == ""
        assert body["declared_value"] == 250.0
        assert body["handling_time"] == 1

    async def test_items_use_default_dimensions_scaled_by_quantity(self, address, items):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"rates": []})

        await make_client(handler).get_checkout_rates(address, items, 250.0)

        whey, creatine = captured["body"]["items"]
        assert whey["weight_kg"] == 1.0
        assert (whey["length_cm"], whey["width_cm"], whey["height_cm"]) == (20.0, 15.0, 10.0)
        assert creatine["weight_kg"] == 0.3
        assert creatine["length_cm"] == 12

    async def test_local_area_and_zone_defaults(self, address, items):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        bare = address.model_copy(update={"local_area": "", "zone": ""})
        await make_client(handler).get_checkout_rates(bare, items, 250.0)

        delivery = captured["body"]["delivery_address"]
        assert delivery["local_area"] == "Johannesburg"
        assert delivery["zone"] == "GP"


class TestResponseParsing:
    @pytest.mark.parametrize(
        "payload",
        [
            {"rates": [{"service_code": "ECO", "service_name": "Economy", "price": 55}]},
            {"data": {"rates": [{"service_code": "ECO", "service_name": "Economy", "price": 55}]}},
            [{"service_code": "ECO", "service_name": "Economy", "price": 55}],
        ],
    )
    async def test_rate_locations(self, address, items, payload):
        client = make_client(lambda request: httpx.Response(200, json=payload))

        options = await client.get_checkout_rates(address, items, 250.0)

        assert len(options) == 1
        assert options[0].id == "ECO"
        assert options[0].price == 55.0
        assert options[0].description == "Delivery via Economy"
        assert options[0].currency == "ZAR"

    @pytest.mark.parametrize(
        "rate,price",
        [
            ({"total_price": "61.50"}, 61.5),
            ({"cost": 70}, 70.0),
            ({"amount": 80}, 80.0),
            ({"rate": 90}, 90.0),
            ({"pricing": {"total": 99.99}}, 99.99),
            ({"service_name": "Express Courier"}, 120.0),
            ({"price": 0, "pricing": {"total": 65}}, 65.0),
            ({"cost": 0, "service_name": "Standard Road"}, 74.0),
            ({}, 0.0),
        ],
    )
    async def test_price_fields(self, address, items, rate, price):
        client = make_client(lambda request: httpx.Response(200, json={"rates": [rate]}))

        options = await client.get_checkout_rates(address, items, 250.0)

        assert options[0].price == pytest.approx(price)

    async def test_missing_names_get_defaults(self, address, items):
        client = make_client(lambda request: httpx.Response(200, json={"rates": [{"price": 1}, {"price": 2}]}))

        options = await client.get_checkout_rates(address, items, 250.0)

        assert [option.id for option in options] == ["shipping-0", "shipping-1"]
        assert options[0].name == "Standard Shipping"

    async def test_carrier_default_flag(self, address, items):
        rates = [{"service_code": "A", "price": 1}, {"service_code": "B", "price": 2, "default": True}]
        client = make_client(lambda request: httpx.Response(200, json={"rates": rates}))

        options = await client.get_checkout_rates(address, items, 250.0)

        assert [option.selected for option in options] == [False, True]

    async def test_rates_with_unreadable_prices_are_skipped(self, address, items):
        rates = [
            {"service_code": "BAD", "price": "N/A"},
            {"service_code": "ODD", "price": {"value": 55}},
            {"service_code": "ECO", "price": "55"},
        ]
        client = make_client(lambda request: httpx.Response(200, json={"rates": rates}))

        options = await client.get_checkout_rates(address, items, 250.0)

        assert [option.id for option in options] == ["ECO"]

    async def test_non_string_fields_are_coerced(self, address, items):
        rate = {"service_code": 7, "service_name": 42, "price": 55, "delivery_time": 3, "description": 9}
        client = make_client(lambda request: httpx.Response(200, json={"rates": [rate]}))

        option = (await client.get_checkout_rates(address, items, 250.0))[0]

        assert option.id == "7"
        assert option.name == "42"
        assert option.delivery_time == "3"
        assert option.description == "9"


class TestErrors:
    async def test_http_error(self, address, items):
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(ShippingRatesUnavailable):
            await client.get_checkout_rates(address, items, 250.0)

    async def test_unrecognised_payload(self, address, items):
        client = make_client(lambda request: httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(ShippingRatesUnavailable):
            await client.get_checkout_rates(address, items, 250.0)

    async def test_non_json_payload(self, address, items):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ShippingRatesUnavailable):
            await client.get_checkout_rates(address, items, 250.0)

    async def test_parse_failure_is_unavailable(self, address, items, monkeypatch):
        client = make_client(lambda request: httpx.Response(200, json={"rates": [{"price": 1}]}))

        def broken(rates):
            raise ValueError("bad rate")

        monkeypatch.setattr(client, "transform_rates", broken)

        with pytest.raises(ShippingRatesUnavailable):
            await client.get_checkout_rates(address, items, 250.0)

    async def test_timeout(self, address, items):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RequestTimeout):
            await make_client(handler).get_checkout_rates(address, items, 250.0)

    async def test_connection_error(self, address, items):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            await make_client(handler).get_checkout_rates(address, items, 250.0)

        assert not isinstance(exc_info.value, RequestTimeout)
        assert exc_info.value.retryable
