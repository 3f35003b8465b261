"""Cart API routes"""

from fastapi import APIRouter, Depends

from ..core.errors import StorefrontError
from ..core.session import ShopSession
from ..models.cart import AddToCartRequest, CartResponse, UpdateCartItemRequest
from ..services.woocommerce_client import WooCommerceClient
from .deps import get_shop_session, get_woocommerce, http_error

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(session: ShopSession = Depends(get_shop_session)):
    """Get the session's cart"""
    return CartResponse(cart=session.cart.cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    session: ShopSession = Depends(get_shop_session),
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
):
    """Add a product to the cart, checking stock against the store"""
    try:
        product = await woocommerce.get_product(request.product_id)
        cart = session.cart.add(product, request.quantity)
    except StorefrontError as e:
        raise http_error(e)

    return CartResponse(cart=cart, message=f"Added {request.quantity}x {product.name} to cart")


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: int,
    request: UpdateCartItemRequest,
    session: ShopSession = Depends(get_shop_session),
):
    """Set an item's quantity; zero removes it"""
    try:
        cart = session.cart.update(product_id, request.quantity)
    except StorefrontError as e:
        raise http_error(e)
    return CartResponse(cart=cart, message="Cart updated")


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: int,
    session: ShopSession = Depends(get_shop_session),
):
    """Remove an item from the cart"""
    return CartResponse(cart=session.cart.remove(product_id), message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(session: ShopSession = Depends(get_shop_session)):
    """Clear all items from cart"""
    return CartResponse(cart=session.cart.clear(), message="Cart cleared")
