"""
Checkout orchestration

Drives one checkout attempt: validate the customer's details, create the
order against the store, then start the payment. Every failure lands in
the single `error` channel the storefront shows to the customer.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from ..core.errors import (
    CheckoutInProgress,
    EmptyCart,
    OrderNotPayable,
    PaymentFailed,
    StorefrontError,
    ValidationFailed,
)
from ..models.cart import CartLineItem
from ..models.checkout import (
    Address,
    CheckoutForm,
    CheckoutState,
    CustomerDetails,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentResult,
    ShippingLine,
)
from ..models.shipping import ShippingOption
from .payments import PaymentAdapter
from .woocommerce_client import WooCommerceClient

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FORM_FIELDS = {
    "first_name": "First name is required",
    "last_name": "Last name is required",
    "email": "Email is required",
    "phone": "Phone number is required",
    "address": "Address is required",
    "city": "City is required",
    "postal_code": "Postal code is required",
    "country": "Country is required",
}

FREE_SHIPPING_LINE = ShippingLine(method_id="free_shipping", method_title="Free Shipping", total=0.0)

_IN_FLIGHT = (CheckoutState.ORDER_CREATING, CheckoutState.PAYMENT_STARTING)
_PAYABLE = (CheckoutState.ORDER_CREATED, CheckoutState.FAILED)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    """10 or 11 digits once formatting is stripped"""
    digits = re.sub(r"\D", "", phone or "")
    return 10 <= len(digits) <= 11


def validate_checkout_form(form: CheckoutForm) -> dict[str, str]:
    """Field -> message for every problem with the form; empty when valid"""
    errors = {}
    for name, message in REQUIRED_FORM_FIELDS.items():
        if not getattr(form, name).strip():
            errors[name] = message

    if "email" not in errors and not is_valid_email(form.email.strip()):
        errors["email"] = "Valid email is required"
    if "phone" not in errors and not is_valid_phone(form.phone):
        errors["phone"] = "Valid phone number is required"

    return errors


def _address_from_form(form: CheckoutForm, with_contact: bool) -> Address:
    return Address(
        first_name=form.first_name.strip(),
        last_name=form.last_name.strip(),
        company=form.company.strip(),
        address_1=form.address.strip(),
        city=form.city.strip(),
        state=form.province.strip(),
        postcode=form.postal_code.strip(),
        country=form.country.strip(),
        email=form.email.strip() if with_contact else "",
        phone=form.phone.strip() if with_contact else "",
    )


class CheckoutOrchestrator:
    """
    Checkout state machine for one session.

    idle -> order_creating -> order_created -> payment_starting ->
    payment_redirected, with failed reachable from either in-flight
    state. Nothing leaves failed on its own; callers retry, and every
    retry of create_order creates a new order at the store.
    """

    def __init__(
        self,
        backend: WooCommerceClient,
        payments: PaymentAdapter,
        store_name: str = "Invictus Nutrition",
        currency: str = "ZAR",
    ):
        self.backend = backend
        self.payments = payments
        self.store_name = store_name
        self.currency = currency

        self.state = CheckoutState.IDLE
        self.error: Optional[str] = None
        self.errors: Optional[dict[str, str]] = None
        self.order: Optional[Order] = None
        self.payment_url: Optional[str] = None
        self.payment: Optional[PaymentResult] = None

    @property
    def order_id(self) -> Optional[int]:
        return self.order.id if self.order else None

    @property
    def in_flight(self) -> bool:
        return self.state in _IN_FLIGHT

    def _fail(self, error: StorefrontError) -> None:
        self.state = CheckoutState.FAILED
        self.error = error.message
        self.errors = getattr(error, "errors", None)

    def build_order_payload(
        self,
        items: list[CartLineItem],
        form: CheckoutForm,
        shipping_line: ShippingLine,
        total: float,
    ) -> dict:
        """Order body for the store's create endpoint"""
        return {
            "payment_method": "payfast",
            "payment_method_title": "PayFast",
            "set_paid": False,
            "billing": _address_from_form(form, with_contact=True).model_dump(),
            "shipping": _address_from_form(form, with_contact=False).model_dump(exclude={"email", "phone"}),
            "line_items": [
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "name": item.name,
                    "price": str(item.price),
                }
                for item in items
            ],
            "shipping_lines": [
                {
                    "method_id": shipping_line.method_id,
                    "method_title": shipping_line.method_title,
                    "total": f"{shipping_line.total:.2f}",
                }
            ],
            "total": f"{total:.2f}",
            "status": OrderStatus.PENDING.value,
            "customer_note": form.order_notes.strip(),
        }

    async def create_order(
        self,
        items: list[CartLineItem],
        form: CheckoutForm,
        shipping_option: Optional[ShippingOption] = None,
    ) -> Order:
        """
        Create a pending order from a snapshot of the cart.

        Raises:
            CheckoutInProgress: another order creation or payment start is running
            ValidationFailed: form problems, before any network call
            EmptyCart: nothing to order
            OrderCreationFailed, NetworkError, RequestTimeout: store failures
        """
        if self.in_flight:
            raise CheckoutInProgress()

        self.state = CheckoutState.ORDER_CREATING
        self.error = None
        self.errors = None
        self.order = None
        self.payment_url = None
        self.payment = None

        try:
            errors = validate_checkout_form(form)
            if errors:
                logger.info(f"Checkout form rejected: {sorted(errors)}")
                raise ValidationFailed(errors)
            if not items:
                raise EmptyCart()

            # Freeze the cart so later edits cannot change this order
            snapshot = [item.model_copy() for item in items]
            subtotal = round(sum(item.price * item.quantity for item in snapshot), 2)

            if shipping_option:
                shipping_line = ShippingLine(
                    method_id=shipping_option.id,
                    method_title=shipping_option.name,
                    total=shipping_option.price,
                )
            else:
                shipping_line = FREE_SHIPPING_LINE

            total = round(subtotal + shipping_line.total, 2)
            payload = self.build_order_payload(snapshot, form, shipping_line, total)

            created = await self.backend.create_order(payload)

            self.order = Order(
                id=created["order_id"],
                number=created["order_number"],
                status=OrderStatus.PENDING,
                billing=_address_from_form(form, with_contact=True),
                shipping=_address_from_form(form, with_contact=False),
                line_items=[
                    OrderLineItem(
                        product_id=item.product_id,
                        name=item.name,
                        quantity=item.quantity,
                        price=item.price,
                        total=round(item.price * item.quantity, 2),
                    )
                    for item in snapshot
                ],
                shipping_lines=[shipping_line],
                subtotal=subtotal,
                shipping_total=shipping_line.total,
                total=total,
                currency=self.currency,
                customer_note=payload["customer_note"],
                created_at=datetime.now(timezone.utc),
            )
            self.state = CheckoutState.ORDER_CREATED
            logger.info(f"Order {self.order.id} created, total {self.currency} {total:.2f}")
            return self.order

        except StorefrontError as e:
            self._fail(e)
            if not isinstance(e, ValidationFailed):
                logger.error(f"Order creation failed: {e.message}")
            raise
        finally:
            if self.state == CheckoutState.ORDER_CREATING:
                self._fail(StorefrontError())

    async def process_payment(
        self,
        order_id: int,
        order_number: str,
        customer: CustomerDetails,
    ) -> PaymentResult:
        """
        Start payment for the order this checkout created.

        The amount comes from the order itself, never from the caller.
        On a successful hand-off the order is moved to processing. The
        cart is left alone; it is cleared on the payment success page.

        Raises:
            CheckoutInProgress: another order creation or payment start is running
            OrderNotPayable: no matching order awaits payment
            PaymentFailed: the gateway refused the request
            OrderUpdateFailed, NetworkError, RequestTimeout: store failures
        """
        if self.in_flight:
            raise CheckoutInProgress()
        order = self.order
        if (
            self.state not in _PAYABLE
            or order is None
            or (order_id, order_number) != (order.id, order.number)
        ):
            logger.warning(f"Refusing payment for order {order_id} in state {self.state.value}")
            error = OrderNotPayable()
            self.error = error.message
            raise error

        self.state = CheckoutState.PAYMENT_STARTING
        self.error = None
        self.errors = None

        try:
            request = self.payments.build_request(
                order_id=order.id,
                order_number=order.number,
                customer_name=f"{customer.first_name} {customer.last_name}",
                email=customer.email,
                phone=customer.phone,
                amount=order.total,
                item_name=f"Order #{order.number}",
                item_description=f"{self.store_name} Order #{order.number}",
            )

            submission = self.payments.submit(request)
            if not submission.success:
                raise PaymentFailed(submission.error)

            await self.backend.update_order_status(order_id, OrderStatus.PROCESSING)

            self.payment_url = submission.url
            self.state = CheckoutState.PAYMENT_REDIRECTED
            self.payment = PaymentResult(
                success=True,
                order_id=order_id,
                payment_id=submission.payment_id,
                redirect_url=submission.url,
                method=submission.method.value,
                fields=submission.fields,
                message=submission.message,
            )
            return self.payment

        except StorefrontError as e:
            self._fail(e)
            logger.error(f"Payment for order {order_id} failed: {e.message}")
            raise
        finally:
            if self.state == CheckoutState.PAYMENT_STARTING:
                self._fail(PaymentFailed())

    def clear_error(self) -> None:
        self.error = None
        self.errors = None

    def reset(self) -> None:
        """Back to idle, forgetting the current order"""
        self.state = CheckoutState.IDLE
        self.error = None
        self.errors = None
        self.order = None
        self.payment_url = None
        self.payment = None
