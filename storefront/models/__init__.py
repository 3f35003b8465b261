# Storefront Models

from .product import Product, StockStatus, ProductSearchResponse, Category, Brand
from .cart import Cart, CartLineItem, AddToCartRequest, UpdateCartItemRequest, CartResponse
from .shipping import (
    ShippingAddress,
    ShippingOption,
    RateResult,
    ParcelItem,
    ShippingRatesRequest,
    SelectShippingRequest,
    ShippingRatesResponse,
)
from .checkout import (
    Order,
    OrderStatus,
    OrderLineItem,
    ShippingLine,
    Address,
    CheckoutForm,
    CheckoutState,
    CustomerDetails,
    PaymentResult,
    CreateOrderRequest,
    ProcessPaymentRequest,
    CheckoutResponse,
)

__all__ = [
    "Product",
    "StockStatus",
    "ProductSearchResponse",
    "Category",
    "Brand",
    "Cart",
    "CartLineItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartResponse",
    "ShippingAddress",
    "ShippingOption",
    "RateResult",
    "ParcelItem",
    "ShippingRatesRequest",
    "SelectShippingRequest",
    "ShippingRatesResponse",
    "Order",
    "OrderStatus",
    "OrderLineItem",
    "ShippingLine",
    "Address",
    "CheckoutForm",
    "CheckoutState",
    "CustomerDetails",
    "PaymentResult",
    "CreateOrderRequest",
    "ProcessPaymentRequest",
    "CheckoutResponse",
]
