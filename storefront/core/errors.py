"""Storefront error taxonomy"""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for cart, shipping and checkout errors"""

    default_message = "Something went wrong. Please try again."
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(StorefrontError):
    """Checkout form failed field validation"""

    default_message = "Please correct the highlighted fields."

    def __init__(self, errors: dict[str, str], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message or ", ".join(errors.values()) or None)


# ==================== Cart ====================

class CartError(StorefrontError):
    pass


class OutOfStock(CartError):
    default_message = "This product is out of stock."


class InvalidQuantity(CartError):
    default_message = "Please enter a valid quantity."


class CartItemNotFound(CartError):
    default_message = "Item not found in cart."


class ProductNotFound(StorefrontError):
    default_message = "Product not found."


class EmptyCart(StorefrontError):
    default_message = "Your cart is empty."


CartEmpty = EmptyCart


# ==================== Shipping ====================

class InvalidAddress(StorefrontError):
    """Delivery address failed carrier validation"""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(f"Invalid delivery address: {', '.join(errors.values())}")


class ShippingRatesUnavailable(StorefrontError):
    default_message = "No shipping rates available."


# ==================== Checkout ====================

class OrderCreationFailed(StorefrontError):
    default_message = "Failed to create order. Please try again."


class OrderUpdateFailed(StorefrontError):
    default_message = "Failed to update order."


class PaymentFailed(StorefrontError):
    default_message = "Payment failed. Please try again."


class OrderNotPayable(PaymentFailed):
    """Payment asked for an order this checkout is not waiting to pay"""
    default_message = "No order is awaiting payment. Please place your order again."


class CheckoutInProgress(StorefrontError):
    default_message = "Your order is already being submitted."


# ==================== Transport ====================

class NetworkError(StorefrontError):
    """Transport-level failure; the same request may succeed on retry"""

    default_message = "Network error. Please check your connection."
    retryable = True


class RequestTimeout(NetworkError):
    default_message = "Request timed out. Please try again."


# ==================== Sessions ====================

class SessionNotFound(StorefrontError):
    default_message = "Session not found or expired."
