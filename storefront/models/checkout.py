"""Checkout models"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


class CheckoutState(str, Enum):
    """Progress of one checkout attempt"""
    IDLE = "idle"
    ORDER_CREATING = "order_creating"
    ORDER_CREATED = "order_created"
    PAYMENT_STARTING = "payment_starting"
    PAYMENT_REDIRECTED = "payment_redirected"
    FAILED = "failed"


class CheckoutForm(BaseModel):
    """Customer details entered at checkout"""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = "ZA"
    company: str = ""
    order_notes: str = ""


class Address(BaseModel):
    """Billing or shipping address snapshot"""
    first_name: str
    last_name: str
    company: str = ""
    address_1: str
    address_2: str = ""
    city: str
    state: str = ""
    postcode: str
    country: str
    email: str = ""
    phone: str = ""


class OrderLineItem(BaseModel):
    """Line item frozen into an order"""
    product_id: int
    name: str
    quantity: int
    price: float
    total: float


class ShippingLine(BaseModel):
    method_id: str
    method_title: str
    total: float


class Order(BaseModel):
    """Order as created against the backend"""
    id: int
    number: str
    status: OrderStatus = OrderStatus.PENDING
    billing: Address
    shipping: Address
    line_items: list[OrderLineItem]
    shipping_lines: list[ShippingLine] = []
    subtotal: float
    shipping_total: float
    total: float
    currency: str = "ZAR"
    payment_method: str = "payfast"
    payment_method_title: str = "PayFast"
    customer_note: str = ""
    created_at: datetime


class CustomerDetails(BaseModel):
    """Customer data needed to start a payment"""
    first_name: str
    last_name: str = ""
    email: str
    phone: Optional[str] = None


class PaymentResult(BaseModel):
    """Result of starting a payment for an order"""
    success: bool
    order_id: int
    payment_id: Optional[str] = None
    redirect_url: Optional[str] = None
    method: Optional[str] = None
    fields: dict[str, str] = {}
    message: Optional[str] = None


class CreateOrderRequest(BaseModel):
    """Create an order from the session's cart and selected shipping"""
    form: CheckoutForm


class ProcessPaymentRequest(BaseModel):
    order_id: int
    order_number: str
    customer: CustomerDetails


class CheckoutResponse(BaseModel):
    """Response from checkout endpoints"""
    success: bool
    state: CheckoutState
    order: Optional[Order] = None
    payment: Optional[PaymentResult] = None
    error_message: Optional[str] = None
    errors: Optional[dict[str, str]] = None
