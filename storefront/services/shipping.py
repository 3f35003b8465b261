"""
Shipping-rate resolution

Quotes the cart against the carrier and always hands checkout one
selected option: carrier failures degrade to a fallback rate with a
warning instead of blocking the order.
"""

import logging
import re
from typing import Callable, Optional

from ..core.errors import EmptyCart, InvalidAddress, StorefrontError
from ..models.cart import CartLineItem
from ..models.shipping import RateResult, ShippingAddress, ShippingOption
from .bobgo_client import BobGoClient

logger = logging.getLogger(__name__)

REQUIRED_ADDRESS_FIELDS = {
    "street_address": "Street address is required",
    "city": "City is required",
    "code": "Postal code is required",
    "country": "Country is required",
}

ZA_POSTAL_CODE = re.compile(r"^\d{4}$")
GENERIC_POSTAL_CODE = re.compile(r"^[A-Za-z0-9 -]{3,10}$")

FallbackPolicy = Callable[[float], ShippingOption]


class FlatRateFallback:
    """
    Flat standard rate used when the carrier cannot quote.

    When `free_shipping_threshold` is set and the declared value reaches
    it, the fallback is free instead.
    """

    def __init__(
        self,
        price: float = 74.00,
        free_shipping_threshold: Optional[float] = None,
        currency: str = "ZAR",
    ):
        self.price = price
        self.free_shipping_threshold = free_shipping_threshold
        self.currency = currency

    def __call__(self, declared_value: float) -> ShippingOption:
        if self.free_shipping_threshold is not None and declared_value >= self.free_shipping_threshold:
            return ShippingOption(
                id="free-shipping",
                name="Free Shipping",
                description=f"Free delivery on orders over {self.currency} {self.free_shipping_threshold:.2f}",
                price=0.0,
                currency=self.currency,
                delivery_time="2-3 business days",
                selected=True,
            )

        return ShippingOption(
            id="standard-shipping",
            name="Standard Shipping 2-3 days",
            description="Standard delivery service within 2-3 business days",
            price=self.price,
            currency=self.currency,
            delivery_time="2-3 business days",
            selected=True,
        )


def validate_address(address: ShippingAddress) -> dict[str, str]:
    """Field -> message for every problem with the address; empty when valid"""
    errors = {}
    for name, message in REQUIRED_ADDRESS_FIELDS.items():
        if not (getattr(address, name) or "").strip():
            errors[name] = message

    code = (address.code or "").strip()
    if code and "code" not in errors:
        pattern = ZA_POSTAL_CODE if (address.country or "ZA").upper() == "ZA" else GENERIC_POSTAL_CODE
        if not pattern.match(code):
            errors["code"] = "Please enter a valid postal code"

    return errors


def _with_selection(options: list[ShippingOption], index: int) -> list[ShippingOption]:
    """Copy of `options` with only `options[index]` selected"""
    return [option.model_copy(update={"selected": i == index}) for i, option in enumerate(options)]


class ShippingRateResolver:
    """Rate quoting and option selection for one session"""

    def __init__(self, client: BobGoClient, fallback_policy: Optional[FallbackPolicy] = None):
        self.client = client
        self.fallback_policy = fallback_policy or FlatRateFallback()
        self._result = RateResult()

    @property
    def result(self) -> RateResult:
        return self._result

    @property
    def options(self) -> list[ShippingOption]:
        return list(self._result.options)

    @property
    def selected_option(self) -> Optional[ShippingOption]:
        return self._result.selected_option

    @property
    def selected_cost(self) -> float:
        option = self.selected_option
        return option.price if option else 0.0

    def validate_address(self, address: ShippingAddress) -> dict[str, str]:
        return validate_address(address)

    async def resolve(
        self,
        address: ShippingAddress,
        items: list[CartLineItem],
        declared_value: Optional[float] = None,
    ) -> RateResult:
        """
        Quote shipping for the cart and select one option.

        Raises:
            InvalidAddress: address failed validation (nothing is sent)
            EmptyCart: there is nothing to ship
        """
        errors = self.validate_address(address)
        if errors:
            raise InvalidAddress(errors)
        if not items:
            raise EmptyCart()

        if declared_value is None:
            declared_value = sum(item.price * item.quantity for item in items)

        warning = None
        try:
            options = await self.client.get_checkout_rates(address, items, declared_value)
            if not options:
                warning = "No shipping rates available for this address"
        except StorefrontError as e:
            options = []
            warning = e.message

        if options:
            default = next((i for i, option in enumerate(options) if option.selected), 0)
            result = RateResult(options=_with_selection(options, default))
            logger.info(f"Resolved {len(options)} shipping options for {address.city} {address.code}")
        else:
            fallback = self.fallback_policy(declared_value)
            logger.warning(f"Using fallback shipping rate: {warning}")
            result = RateResult(
                options=_with_selection([fallback], 0),
                warning=f"{warning}. Using standard shipping rate.",
                from_fallback=True,
            )

        self._result = result
        return result

    def select_option(self, option_id: str) -> Optional[ShippingOption]:
        """Select an option by id; unknown ids leave the selection unchanged"""
        options = self._result.options
        index = next((i for i, option in enumerate(options) if option.id == option_id), None)
        if index is None:
            logger.debug(f"Ignoring selection of unknown shipping option {option_id}")
            return self.selected_option

        self._result = self._result.model_copy(update={"options": _with_selection(options, index)})
        return self.selected_option

    def clear(self) -> None:
        self._result = RateResult()
