"""Shared route dependencies and error translation"""

from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Request

from ..core.errors import (
    CartError,
    CheckoutInProgress,
    EmptyCart,
    InvalidAddress,
    OrderNotPayable,
    ProductNotFound,
    RequestTimeout,
    SessionNotFound,
    StorefrontError,
    ValidationFailed,
)
from ..core.config import Settings
from ..core.session import SessionManager, ShopSession
from ..services.payments import PaymentAdapter
from ..services.woocommerce_client import WooCommerceClient

SESSION_COOKIE = "session_token"

_BAD_REQUEST = (ValidationFailed, CartError, InvalidAddress, EmptyCart)


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_woocommerce(request: Request) -> WooCommerceClient:
    return request.app.state.woocommerce


def get_payments(request: Request) -> PaymentAdapter:
    return request.app.state.payments


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _resolve(
    manager: SessionManager,
    header_token: Optional[str],
    cookie_token: Optional[str],
) -> Optional[ShopSession]:
    token = header_token or cookie_token
    if not token:
        return None
    try:
        return manager.resolve_token(token)
    except SessionNotFound as e:
        raise http_error(e)


def get_shop_session(
    x_session_token: Optional[str] = Header(None),
    session_token: Optional[str] = Cookie(None),
    manager: SessionManager = Depends(get_session_manager),
) -> ShopSession:
    """Session named by the X-Session-Token header (or the session cookie)"""
    session = _resolve(manager, x_session_token, session_token)
    if session is None:
        raise HTTPException(status_code=401, detail={"message": "Session token required"})
    return session


def optional_shop_session(
    x_session_token: Optional[str] = Header(None),
    session_token: Optional[str] = Cookie(None),
    manager: SessionManager = Depends(get_session_manager),
) -> Optional[ShopSession]:
    """Like get_shop_session, but pages reached from the gateway render without one"""
    try:
        return _resolve(manager, x_session_token, session_token)
    except HTTPException:
        return None


def status_for(error: StorefrontError) -> int:
    if isinstance(error, _BAD_REQUEST):
        return 400
    if isinstance(error, (CheckoutInProgress, OrderNotPayable)):
        return 409
    if isinstance(error, (SessionNotFound, ProductNotFound)):
        return 404
    if isinstance(error, RequestTimeout):
        return 504
    # Network errors and failures reported by the store or gateway
    return 502


def http_error(error: StorefrontError) -> HTTPException:
    """HTTPException carrying the customer-facing message"""
    detail = {"message": error.message, "retryable": error.retryable}
    errors = getattr(error, "errors", None)
    if errors:
        detail["errors"] = errors
    return HTTPException(status_code=status_for(error), detail=detail)
