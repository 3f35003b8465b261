"""
WooCommerce API Client

HTTP client for the WooCommerce store that holds the catalog and
receives orders. Consumer key/secret authenticate every request.
"""

import logging
import re
from typing import Any, Optional

import httpx

from ..core.errors import (
    NetworkError,
    OrderCreationFailed,
    OrderUpdateFailed,
    ProductNotFound,
    RequestTimeout,
    StorefrontError,
)
from ..models.checkout import OrderStatus
from ..models.product import Brand, Category, Product, StockStatus

logger = logging.getLogger(__name__)

# Attribute id WooCommerce assigns to the brand taxonomy on this store
BRAND_ATTRIBUTE_ID = 3
BRAND_ATTRIBUTE_NAMES = ("brand", "manufacturer", "make")
KNOWN_BRANDS = (
    "Optimum Nutrition",
    "MyProtein",
    "Muscletech",
    "Pharmafreak",
    "Applied Nutrition",
)

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(value: Optional[str]) -> str:
    return _TAG_RE.sub("", value or "").strip()


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    """Stock count; None means the store does not track stock"""
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _stock_status(value: Any) -> StockStatus:
    if value in (None, ""):
        return StockStatus.IN_STOCK
    try:
        return StockStatus(value)
    except ValueError:
        logger.warning(f"Unknown stock status {value!r}, treating as in stock")
        return StockStatus.IN_STOCK


def extract_brand(data: dict) -> Optional[str]:
    """Brand attribute by id, then by name, then a known brand in the product name"""
    attributes = data.get("attributes") or []

    for attribute in attributes:
        if attribute.get("id") == BRAND_ATTRIBUTE_ID and attribute.get("options"):
            return attribute["options"][0]

    for attribute in attributes:
        if (attribute.get("name") or "").lower() in BRAND_ATTRIBUTE_NAMES and attribute.get("options"):
            return attribute["options"][0]

    name = (data.get("name") or "").lower()
    for brand in KNOWN_BRANDS:
        if brand.lower() in name:
            return brand

    return None


def transform_product(data: dict) -> Product:
    """WooCommerce product payload as a storefront Product"""
    dimensions = data.get("dimensions") or {}

    return Product(
        id=data["id"],
        name=data.get("name", ""),
        price=_to_float(data.get("price")) or 0.0,
        stock_status=_stock_status(data.get("stock_status")),
        stock_quantity=_to_int(data.get("stock_quantity")),
        categories=[category["name"] for category in data.get("categories") or []],
        brand=extract_brand(data),
        short_description=strip_html(data.get("short_description")),
        description=data.get("description") or "",
        images=[image["src"] for image in data.get("images") or [] if image.get("src")],
        slug=data.get("slug"),
        permalink=data.get("permalink"),
        weight_kg=_to_float(data.get("weight")),
        length_cm=_to_float(dimensions.get("length")),
        width_cm=_to_float(dimensions.get("width")),
        height_cm=_to_float(dimensions.get("height")),
    )


class WooCommerceClient:
    """
    Client for the WooCommerce REST API.

    Transport failures surface as NetworkError/RequestTimeout. HTTP error
    responses surface as the StorefrontError subclass the caller names.
    """

    def __init__(
        self,
        base_url: str,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        timeout: float = 10.0,
        per_page: int = 12,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize WooCommerce client.

        Args:
            base_url: Store URL; the REST prefix is appended
            consumer_key: WooCommerce REST consumer key
            consumer_secret: WooCommerce REST consumer secret
            timeout: Seconds before any request is abandoned
            per_page: Default page size for product listings
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.base_url = f"{base_url.rstrip('/')}/wp-json/wc/v3"
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.per_page = per_page
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

        if not (consumer_key and consumer_secret):
            logger.warning("No WooCommerce credentials configured - requests will not be authenticated")

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _auth_params(self) -> dict[str, str]:
        if not (self.consumer_key and self.consumer_secret):
            return {}
        return {
            "consumer_key": self.consumer_key,
            "consumer_secret": self.consumer_secret,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
        error: type[StorefrontError] = StorefrontError,
        not_found: Optional[type[StorefrontError]] = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body"""
        url = f"{self.base_url}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query.update(self._auth_params())

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                params=query,
                json=body,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise RequestTimeout() from e
        except httpx.TransportError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise NetworkError() from e

        if response.status_code == 404 and not_found is not None:
            raise not_found()
        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            raise error(self._error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise error("Invalid response from store") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            return data.get("error") or data.get("message")
        return None

    # ==================== Catalog APIs ====================

    async def get_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> list[Product]:
        """List published products, optionally filtered"""
        data = await self._request(
            "GET",
            "/products",
            params={
                "status": "publish",
                "search": search,
                "category": category,
                "page": page,
                "per_page": per_page or self.per_page,
            },
        )

        # Store plugins wrap listings as {success, data, total}
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            data = data["data"]
        if not isinstance(data, list):
            raise StorefrontError("Invalid product listing from store")

        return [transform_product(item) for item in data]

    async def get_product(self, product_id: int) -> Product:
        """Get product details"""
        data = await self._request("GET", f"/products/{product_id}", not_found=ProductNotFound)
        return transform_product(data)

    async def get_categories(self) -> list[Category]:
        """Get non-empty product categories"""
        data = await self._request("GET", "/products/categories", params={"per_page": 100, "hide_empty": "true"})
        return [
            Category(id=item["id"], name=item["name"], slug=item.get("slug"), count=item.get("count") or 0)
            for item in data
        ]

    async def get_brands(self) -> list[Brand]:
        """Get brands sorted by name"""
        data = await self._request("GET", "/products/brands", params={"per_page": 100})
        brands = [Brand(id=item["id"], name=item["name"], slug=item.get("slug")) for item in data]
        return sorted(brands, key=lambda brand: brand.name.lower())

    # ==================== Order APIs ====================

    async def create_order(self, payload: dict) -> dict:
        """
        Create an order.

        Returns:
            {"order_id": int, "order_number": str}
        """
        data = await self._request("POST", "/orders/create", body=payload, error=OrderCreationFailed)

        if not isinstance(data, dict) or not data.get("success"):
            message = data.get("error") if isinstance(data, dict) else None
            raise OrderCreationFailed(message or "Order creation failed on the store")

        try:
            order_id = int(data.get("order_id"))
        except (TypeError, ValueError) as e:
            logger.error(f"Order created without a usable id: {data}")
            raise OrderCreationFailed("Invalid response from store") from e

        logger.info(f"Created order {order_id} (#{data.get('order_number')})")
        return {
            "order_id": order_id,
            "order_number": str(data.get("order_number") or order_id),
        }

    async def update_order_status(self, order_id: int, status: OrderStatus) -> dict:
        """Move an order to a new status"""
        logger.info(f"Updating order {order_id} to {status.value}")
        return await self._request(
            "PUT",
            f"/orders/{order_id}",
            body={"status": status.value},
            error=OrderUpdateFailed,
        )

    async def get_order(self, order_id: int) -> dict:
        """Get order details"""
        return await self._request("GET", f"/orders/{order_id}")
