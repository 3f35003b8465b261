"""Checkout API routes"""

from fastapi import APIRouter, Depends

from ..core.errors import StorefrontError
from ..core.session import ShopSession
from ..models.checkout import (
    CheckoutResponse,
    CreateOrderRequest,
    ProcessPaymentRequest,
)
from .deps import get_shop_session, http_error

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


def _response(session: ShopSession, success: bool = True) -> CheckoutResponse:
    checkout = session.checkout
    return CheckoutResponse(
        success=success,
        state=checkout.state,
        order=checkout.order,
        payment=checkout.payment,
        error_message=checkout.error,
        errors=checkout.errors,
    )


@router.get("", response_model=CheckoutResponse)
async def get_checkout(session: ShopSession = Depends(get_shop_session)):
    """Current checkout state, including the last error shown to the shopper"""
    return _response(session, success=session.checkout.error is None)


@router.post("/orders", response_model=CheckoutResponse)
async def create_order(
    request: CreateOrderRequest,
    session: ShopSession = Depends(get_shop_session),
):
    """
    Create a pending order from the cart and the selected shipping option.

    The cart is not cleared here; that happens once the gateway returns
    the shopper to the success page.
    """
    try:
        await session.checkout.create_order(
            session.cart.items,
            request.form,
            session.shipping.selected_option,
        )
    except StorefrontError as e:
        raise http_error(e)
    return _response(session)


@router.post("/payment", response_model=CheckoutResponse)
async def process_payment(
    request: ProcessPaymentRequest,
    session: ShopSession = Depends(get_shop_session),
):
    """
    Start payment for a created order.

    For PayFast the response carries the process URL and signed fields;
    browsers are sent to /payment/redirect, which posts them.
    """
    try:
        await session.checkout.process_payment(
            request.order_id,
            request.order_number,
            request.customer,
        )
    except StorefrontError as e:
        raise http_error(e)
    return _response(session)


@router.delete("/error", response_model=CheckoutResponse)
async def clear_error(session: ShopSession = Depends(get_shop_session)):
    """Dismiss the current checkout error"""
    session.checkout.clear_error()
    return _response(session)


@router.post("/reset", response_model=CheckoutResponse)
async def reset_checkout(session: ShopSession = Depends(get_shop_session)):
    """Start over with a fresh checkout attempt"""
    session.checkout.reset()
    return _response(session)
