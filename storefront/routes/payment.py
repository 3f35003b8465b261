"""
Payment gateway routes

Browser hand-off to PayFast, the return and cancel landing pages, and
the server-to-server notify (ITN) endpoint.
"""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from payfast import PaymentStatus, SubmissionMethod

from ..core.config import Settings
from ..core.errors import StorefrontError
from ..core.session import ShopSession
from ..models.checkout import OrderStatus
from ..services.payments import PaymentAdapter
from ..services.woocommerce_client import WooCommerceClient
from .deps import get_app_settings, get_payments, get_woocommerce, http_error, optional_shop_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["Payment"])

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(__file__), "..", "templates"))

# Gateway status -> order status; PENDING leaves the order alone
NOTIFY_STATUS_MAP = {
    PaymentStatus.COMPLETE.value: OrderStatus.COMPLETED,
    PaymentStatus.FAILED.value: OrderStatus.FAILED,
    PaymentStatus.CANCELLED.value: OrderStatus.CANCELLED,
}


def _result_page(
    request: Request,
    title: str,
    message: str,
    success: bool,
    order_id: Optional[int] = None,
    status_code: int = 200,
):
    settings: Settings = request.app.state.settings
    return templates.TemplateResponse(
        request,
        "payment_result.html",
        {
            "title": title,
            "message": message,
            "success": success,
            "order_id": order_id,
            "store_name": settings.store_name,
        },
        status_code=status_code,
    )


@router.get("/redirect")
async def payment_redirect(
    request: Request,
    session: Optional[ShopSession] = Depends(optional_shop_session),
):
    """
    Hand the browser to the gateway.

    Form-post payments render a page that posts the signed fields to
    PayFast; redirect payments (the mock gateway) are a plain redirect.
    """
    payment = session.checkout.payment if session else None
    if payment is None or not payment.redirect_url:
        return _result_page(
            request,
            "Payment not started",
            "There is no payment waiting for this session. Please return to checkout.",
            success=False,
            status_code=404,
        )

    if payment.method == SubmissionMethod.REDIRECT_URL.value:
        return RedirectResponse(payment.redirect_url, status_code=303)

    return templates.TemplateResponse(
        request,
        "payfast_redirect.html",
        {
            "action": payment.redirect_url,
            "fields": payment.fields,
            "order_id": payment.order_id,
        },
    )


@router.get("/success")
async def payment_success(
    request: Request,
    order_id: Optional[str] = Query(None),
    session: Optional[ShopSession] = Depends(optional_shop_session),
):
    """Gateway return page; the only place the cart is emptied automatically"""
    if session:
        session.cart.clear()
        session.shipping.clear()
        logger.info(f"Payment success landing for session {session.session_id}, cart cleared")

    parsed_order_id = int(order_id) if order_id and order_id.isdigit() else None
    if parsed_order_id is None and session and session.checkout.order_id:
        parsed_order_id = session.checkout.order_id

    return _result_page(
        request,
        "Payment successful",
        "Thank you for your order! A confirmation email is on its way.",
        success=True,
        order_id=parsed_order_id,
    )


@router.get("/cancel")
async def payment_cancel(
    request: Request,
    order_id: Optional[str] = Query(None),
    session: Optional[ShopSession] = Depends(optional_shop_session),
):
    """Gateway cancel page; the cart is kept so the shopper can try again"""
    if session:
        session.checkout.reset()

    return _result_page(
        request,
        "Payment cancelled",
        "Payment was cancelled. Your cart has been kept so you can try again.",
        success=False,
        order_id=int(order_id) if order_id and order_id.isdigit() else None,
    )


@router.post("/notify", response_class=PlainTextResponse)
async def payment_notify(
    request: Request,
    payments: PaymentAdapter = Depends(get_payments),
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_app_settings),
):
    """
    PayFast ITN.

    PayFast retries until it gets a 200, so store failures answer 5xx.
    The gateway signature is only checked when
    PAYFAST_VERIFY_ITN_SIGNATURE is enabled.
    """
    form = await request.form()
    payload = {key: str(value) for key, value in form.items()}

    if settings.payfast_verify_itn_signature and not payments.verify_signature(payload):
        logger.warning(f"Rejected PayFast notify with bad signature for {payload.get('custom_str1')}")
        raise HTTPException(status_code=400, detail="Invalid signature")

    result = payments.interpret_callback(payload)
    if not result.is_valid:
        logger.warning(f"Rejected PayFast notify: {result.error_message}")
        raise HTTPException(status_code=400, detail=result.error_message)

    if result.order_id is None:
        logger.warning("PayFast notify without an order id; nothing to update")
        return "OK"

    new_status = NOTIFY_STATUS_MAP.get(result.status)
    if new_status is None:
        logger.info(f"PayFast notify for order {result.order_id}: {result.status}, no change")
        return "OK"

    try:
        await woocommerce.update_order_status(result.order_id, new_status)
    except StorefrontError as e:
        raise http_error(e)

    logger.info(f"Order {result.order_id} marked {new_status.value} by PayFast ({result.payment_id})")
    return "OK"
