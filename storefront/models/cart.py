"""Cart models"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional

from .product import StockStatus


class CartLineItem(BaseModel):
    """One product-and-quantity entry in a cart"""
    id: str
    product_id: int
    name: str
    price: float
    quantity: int = Field(ge=1)
    image: str = ""
    stock_status: StockStatus = StockStatus.IN_STOCK
    stock_quantity: Optional[int] = None
    weight_kg: Optional[float] = None
    length_cm: Optional[float] = None
    width_cm: Optional[float] = None
    height_cm: Optional[float] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Cart(BaseModel):
    """
    Shopping cart.

    Persisted as `{items, total, itemCount}`. Totals are derived from the
    items; build carts through `from_items` so they never drift.
    """
    items: list[CartLineItem] = []
    total: float = 0.0
    item_count: int = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def from_items(cls, items: list[CartLineItem]) -> "Cart":
        return cls(
            items=items,
            total=sum(item.price * item.quantity for item in items),
            item_count=sum(item.quantity for item in items),
        )

    @classmethod
    def empty(cls) -> "Cart":
        return cls.from_items([])

    def find(self, product_id: int) -> Optional[CartLineItem]:
        return next((item for item in self.items if item.product_id == product_id), None)


class AddToCartRequest(BaseModel):
    """Request to add a catalog product to the cart"""
    product_id: int
    quantity: int = 1


class UpdateCartItemRequest(BaseModel):
    """Request to change a line's quantity (0 or less removes it)"""
    quantity: int


class CartResponse(BaseModel):
    """Cart API response"""
    cart: Cart
    message: Optional[str] = None
