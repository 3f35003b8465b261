import pytest

from storefront.core.config import Settings
from storefront.core.errors import NetworkError
from storefront.models.product import Product, StockStatus
from storefront.models.shipping import ShippingAddress, ShippingOption
from storefront.models.checkout import CheckoutForm, OrderStatus
from storefront.services.cart import CartService
from storefront.services.payments import PaymentAdapter
from storefront.storage.cart_storage import MemoryCartStorage


def make_product(
    id: int = 1,
    name: str = "Whey Protein",
    price: float = 100.0,
    stock_status: StockStatus = StockStatus.IN_STOCK,
    stock_quantity=None,
    **kwargs,
) -> Product:
    return Product(
        id=id,
        name=name,
        price=price,
        stock_status=stock_status,
        stock_quantity=stock_quantity,
        **kwargs,
    )


class FakeOrderBackend:
    """Order backend double that records every call"""

    def __init__(self, fail_with: Exception = None, first_order_id: int = 1001):
        self.fail_with = fail_with
        self.next_order_id = first_order_id
        self.created = []
        self.status_updates = []

    async def create_order(self, payload: dict) -> dict:
        self.created.append(payload)
        if self.fail_with:
            raise self.fail_with
        order_id = self.next_order_id
        self.next_order_id += 1
        return {"order_id": order_id, "order_number": str(order_id)}

    async def update_order_status(self, order_id: int, status: OrderStatus) -> dict:
        self.status_updates.append((order_id, status))
        return {"id": order_id, "status": status.value}


class FakeCarrier:
    """Carrier double returning canned options or raising"""

    def __init__(self, options=None, fail_with: Exception = None):
        self.options = options or []
        self.fail_with = fail_with
        self.calls = []

    async def get_checkout_rates(self, address, items, declared_value):
        self.calls.append((address, items, declared_value))
        if self.fail_with:
            raise self.fail_with
        return [option.model_copy() for option in self.options]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        session_secret="test-session-secret-0123456789abcdef",
        public_base_url="http://testserver",
        payfast_merchant_id="10000100",
        payfast_merchant_key="46f0cd694581a",
        payfast_passphrase="jt7NOE43FZPn",
        payfast_return_url="http://testserver/payment/success",
        payfast_cancel_url="http://testserver/payment/cancel",
        payfast_notify_url="http://testserver/payment/notify",
    )


@pytest.fixture
def cart():
    return CartService(MemoryCartStorage())


@pytest.fixture
def payments(settings):
    return PaymentAdapter.from_settings(settings)


@pytest.fixture
def backend():
    return FakeOrderBackend()


@pytest.fixture
def address():
    return ShippingAddress(
        street_address="12 Main Road",
        local_area="Rosebank",
        city="Johannesburg",
        zone="GP",
        country="ZA",
        code="2196",
    )


@pytest.fixture
def checkout_form():
    return CheckoutForm(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="082 555 1234",
        address="12 Main Road",
        city="Johannesburg",
        province="Gauteng",
        postal_code="2196",
        country="ZA",
    )


@pytest.fixture
def two_rates():
    return [
        ShippingOption(id="economy", name="Economy", price=50.0),
        ShippingOption(id="express", name="Express", price=80.0),
    ]


@pytest.fixture
def failing_carrier():
    return FakeCarrier(fail_with=NetworkError("connection refused"))
