"""
Bob Go API Client

HTTP client for the Bob Go carrier-aggregation API (rates at checkout).
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..core.errors import NetworkError, RequestTimeout, ShippingRatesUnavailable
from ..models.cart import CartLineItem
from ..models.shipping import ParcelItem, ShippingAddress, ShippingOption

logger = logging.getLogger(__name__)

# Typical supplement tub, used when a product has no dimensions
DEFAULT_PARCEL = {
    "weight_kg": 0.5,
    "length_cm": 20.0,
    "width_cm": 15.0,
    "height_cm": 10.0,
}

# Rates Bob Go is configured with, used when a quote comes back without a price
SERVICE_PRICE_DEFAULTS = {
    "standard": 74.00,
    "express": 120.00,
}

_PRICE_FIELDS = ("price", "total_price", "cost", "amount", "rate")
_NESTED_PRICE_FIELDS = ("price", "total", "amount")


class BobGoClient:
    """
    Client for Bob Go shipping rates.

    Raises NetworkError/RequestTimeout for transport failures and
    ShippingRatesUnavailable when Bob Go answers with an error or an
    unrecognised payload. An empty list is a valid answer.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.sandbox.bobgo.co.za/v2",
        origin: Optional[dict[str, str]] = None,
        timeout: float = 10.0,
        handling_time: int = 1,
        currency: str = "ZAR",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Bob Go client.

        Args:
            api_key: Bob Go API key (bearer token)
            base_url: Base URL of the Bob Go API
            origin: Collection address for every quote
            timeout: Seconds before a quote request is abandoned
            handling_time: Business days before the parcel is collected
            currency: Currency assumed when a rate omits it
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.origin = origin or {}
        self.handling_time = handling_time
        self.currency = currency
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

        if not api_key:
            logger.warning("No Bob Go API key configured - rate requests will be rejected")

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key or ''}",
        }

    @staticmethod
    def build_parcel_items(items: list[CartLineItem]) -> list[ParcelItem]:
        """Cart lines as carrier items, weight scaled by quantity"""
        return [
            ParcelItem(
                description=item.name,
                price=item.price,
                quantity=item.quantity,
                length_cm=item.length_cm or DEFAULT_PARCEL["length_cm"],
                width_cm=item.width_cm or DEFAULT_PARCEL["width_cm"],
                height_cm=item.height_cm or DEFAULT_PARCEL["height_cm"],
                weight_kg=(item.weight_kg or DEFAULT_PARCEL["weight_kg"]) * item.quantity,
            )
            for item in items
        ]

    def build_request_body(
        self,
        delivery_address: ShippingAddress,
        items: list[CartLineItem],
        declared_value: float,
    ) -> dict[str, Any]:
        return {
            "collection_address": self.origin,
            "delivery_address": {
                "company": delivery_address.company or "",
                "street_address": delivery_address.street_address,
                "local_area": delivery_address.local_area or delivery_address.city,
                "city": delivery_address.city,
                "zone": delivery_address.zone or "GP",
                "country": delivery_address.country or "ZA",
                "code": delivery_address.code,
            },
            "items": [parcel.model_dump() for parcel in self.build_parcel_items(items)],
            "declared_value": declared_value,
            "handling_time": self.handling_time,
        }

    async def get_checkout_rates(
        self,
        delivery_address: ShippingAddress,
        items: list[CartLineItem],
        declared_value: float,
    ) -> list[ShippingOption]:
        """
        Quote shipping for a parcel set.

        Returns:
            Options in the carrier's ranking, none selected
        """
        url = f"{self.base_url}/rates-at-checkout"
        body = self.build_request_body(delivery_address, items, declared_value)

        try:
            response = await self._http_client.post(url, json=body, headers=self._headers())
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Bob Go rates request timed out: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Bob Go rates request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Bob Go request failed: {response.status_code} - {response.text}")
            raise ShippingRatesUnavailable(
                f"Bob Go API error: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ShippingRatesUnavailable("Bob Go returned a non-JSON response") from e

        rates = self._extract_rates(data)
        if rates is None:
            raise ShippingRatesUnavailable("Unexpected response structure from Bob Go")

        try:
            return self.transform_rates(rates)
        except (TypeError, ValueError, ValidationError) as e:
            logger.error(f"Unreadable Bob Go rates: {e}")
            raise ShippingRatesUnavailable("Unreadable rates from Bob Go") from e

    @staticmethod
    def _extract_rates(data: Any) -> Optional[list]:
        """Rates may sit under `rates`, `data.rates` or be the whole body"""
        if isinstance(data, list):
            return data
        if not isinstance(data, dict):
            return None
        if isinstance(data.get("rates"), list):
            return data["rates"]
        nested = data.get("data")
        if isinstance(nested, dict) and isinstance(nested.get("rates"), list):
            return nested["rates"]
        return None

    @staticmethod
    def _rate_price(rate: dict) -> float:
        """
        First price field present; a zero price counts as missing.

        Raises:
            TypeError, ValueError: the price field holds something that is not a number
        """
        price = 0.0
        for name in _PRICE_FIELDS:
            if rate.get(name) is not None:
                price = float(rate[name])
                break

        pricing = rate.get("pricing")
        if price == 0 and isinstance(pricing, dict):
            for name in _NESTED_PRICE_FIELDS:
                if pricing.get(name) is not None:
                    price = float(pricing[name])
                    break

        if price == 0:
            service_name = str(rate.get("service_name") or "").lower()
            for service, default in SERVICE_PRICE_DEFAULTS.items():
                if service in service_name:
                    return default
        return price

    def transform_rates(self, rates: list) -> list[ShippingOption]:
        """Bob Go rates as ShippingOptions; rates without a usable price are skipped"""
        options = []
        for index, rate in enumerate(rates):
            if not isinstance(rate, dict):
                continue

            try:
                price = self._rate_price(rate)
            except (TypeError, ValueError):
                logger.warning(f"Skipping rate with unreadable price: {rate}")
                continue
            if not price >= 0:
                logger.warning(f"Skipping rate with negative price: {rate}")
                continue

            service_name = str(rate.get("service_name") or "Standard Shipping")
            delivery_time = rate.get("delivery_time")

            options.append(
                ShippingOption(
                    id=str(rate.get("service_code") or f"shipping-{index}"),
                    name=service_name,
                    description=str(rate.get("description") or f"Delivery via {service_name}"),
                    price=price,
                    currency=str(rate.get("currency") or self.currency),
                    delivery_time=str(delivery_time) if delivery_time is not None else None,
                    selected=bool(rate.get("default") or rate.get("is_default")),
                )
            )
        return options
