# Storefront services

from .cart import CartService
from .shipping import ShippingRateResolver, FlatRateFallback
from .checkout import CheckoutOrchestrator
from .payments import PaymentAdapter
from .bobgo_client import BobGoClient
from .woocommerce_client import WooCommerceClient

__all__ = [
    "CartService",
    "ShippingRateResolver",
    "FlatRateFallback",
    "CheckoutOrchestrator",
    "PaymentAdapter",
    "BobGoClient",
    "WooCommerceClient",
]
