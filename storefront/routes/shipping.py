"""Shipping rate routes"""

from fastapi import APIRouter, Depends

from ..core.errors import StorefrontError
from ..core.session import ShopSession
from ..models.shipping import (
    RateResult,
    SelectShippingRequest,
    ShippingRatesRequest,
    ShippingRatesResponse,
)
from .deps import get_shop_session, http_error

router = APIRouter(prefix="/api/shipping", tags=["Shipping"])


def _response(result: RateResult) -> ShippingRatesResponse:
    return ShippingRatesResponse(
        options=result.options,
        selected_option=result.selected_option,
        warning=result.warning,
        from_fallback=result.from_fallback,
    )


@router.get("", response_model=ShippingRatesResponse)
async def get_rates(session: ShopSession = Depends(get_shop_session)):
    """Last quote for the session"""
    return _response(session.shipping.result)


@router.post("/rates", response_model=ShippingRatesResponse)
async def quote_rates(
    request: ShippingRatesRequest,
    session: ShopSession = Depends(get_shop_session),
):
    """
    Quote shipping for the session's cart.

    Carrier outages still answer 200 with a fallback rate and a warning;
    only a bad address or an empty cart is rejected.
    """
    try:
        result = await session.shipping.resolve(
            request.address,
            session.cart.items,
            declared_value=request.declared_value,
        )
    except StorefrontError as e:
        raise http_error(e)
    return _response(result)


@router.post("/select", response_model=ShippingRatesResponse)
async def select_rate(
    request: SelectShippingRequest,
    session: ShopSession = Depends(get_shop_session),
):
    """Select a quoted option; unknown ids keep the current selection"""
    session.shipping.select_option(request.option_id)
    return _response(session.shipping.result)


@router.delete("", response_model=ShippingRatesResponse)
async def clear_rates(session: ShopSession = Depends(get_shop_session)):
    """Forget the current quote"""
    session.shipping.clear()
    return _response(session.shipping.result)
