"""Shopper session routes"""

from fastapi import APIRouter, Depends, Response

from ..core.session import SessionManager, ShopSession
from .deps import SESSION_COOKIE, get_session_manager, get_shop_session

router = APIRouter(prefix="/api/session", tags=["Session"])


def _summary(session: ShopSession) -> dict:
    cart = session.cart.cart
    return {
        "session_id": session.session_id,
        "item_count": cart.item_count,
        "total": cart.total,
        "checkout_state": session.checkout.state.value,
        "created_at": session.created_at.isoformat(),
    }


@router.post("")
async def create_session(
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Start a shopper session.

    The token is returned in the body for API clients and set as a
    cookie so gateway redirects back to the store find the same cart.
    """
    manager.cleanup_old_sessions()
    session = manager.create_session()
    token = manager.issue_token(session)
    response.set_cookie(SESSION_COOKIE, token, httponly=True, samesite="lax")
    return {"token": token, **_summary(session)}


@router.get("")
async def get_session(session: ShopSession = Depends(get_shop_session)):
    """Current session summary"""
    return _summary(session)


@router.delete("")
async def end_session(
    response: Response,
    session: ShopSession = Depends(get_shop_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """Forget the session (the persisted cart is left in storage)"""
    manager.delete_session(session.session_id)
    response.delete_cookie(SESSION_COOKIE)
    return {"deleted": True}
