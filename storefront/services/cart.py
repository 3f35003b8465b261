"""Cart aggregate for one shopping session"""

import logging
import uuid
from typing import Optional

from pydantic import ValidationError

from ..core.errors import CartItemNotFound, InvalidQuantity, OutOfStock
from ..models.cart import Cart, CartLineItem
from ..models.product import Product
from ..storage.cart_storage import CartStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "invictus-cart"


class CartService:
    """
    Session cart with write-through persistence.

    Every mutation builds the next Cart from the current one and swaps it
    in whole, then writes it to storage. Mutations never await, so two
    handlers on the same event loop cannot interleave on a stale cart.
    """

    def __init__(self, storage: CartStorage, storage_key: str = DEFAULT_STORAGE_KEY):
        self.storage = storage
        self.storage_key = storage_key
        self._cart = self._hydrate()

    def _hydrate(self) -> Cart:
        """Load the persisted cart, or start empty"""
        saved = self.storage.get(self.storage_key)
        if not saved:
            return Cart.empty()

        try:
            restored = Cart.model_validate(saved)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable persisted cart: {e}")
            return Cart.empty()

        return Cart.from_items(restored.items)

    def _commit(self, items: list[CartLineItem]) -> Cart:
        self._cart = Cart.from_items(items)
        self.storage.set(self.storage_key, self._cart.model_dump(mode="json", by_alias=True))
        return self._cart

    # ==================== Queries ====================

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def items(self) -> list[CartLineItem]:
        return list(self._cart.items)

    def get(self, product_id: int) -> Optional[CartLineItem]:
        return self._cart.find(product_id)

    def has(self, product_id: int) -> bool:
        return self._cart.find(product_id) is not None

    def quantity_of(self, product_id: int) -> int:
        item = self._cart.find(product_id)
        return item.quantity if item else 0

    # ==================== Mutations ====================

    def add(self, product: Product, quantity: int = 1) -> Cart:
        """
        Add a product, merging into its existing line if present.

        Raises:
            OutOfStock: product cannot be purchased
            InvalidQuantity: quantity < 1 or above the known stock ceiling
        """
        if not product.is_purchasable:
            raise OutOfStock()
        if quantity < 1:
            raise InvalidQuantity()

        current = self._cart
        existing = current.find(product.id)
        new_quantity = (existing.quantity if existing else 0) + quantity

        if product.stock_quantity is not None and new_quantity > product.stock_quantity:
            raise InvalidQuantity(
                f"Only {product.stock_quantity} of {product.name} available."
            )

        if existing:
            items = [
                item.model_copy(update={"quantity": new_quantity})
                if item.product_id == product.id
                else item
                for item in current.items
            ]
        else:
            items = [
                *current.items,
                CartLineItem(
                    id=uuid.uuid4().hex,
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    image=product.images[0] if product.images else "",
                    stock_status=product.stock_status,
                    stock_quantity=product.stock_quantity,
                    weight_kg=product.weight_kg,
                    length_cm=product.length_cm,
                    width_cm=product.width_cm,
                    height_cm=product.height_cm,
                ),
            ]

        logger.debug(f"Cart add: product={product.id} quantity={quantity}")
        return self._commit(items)

    def update(self, product_id: int, quantity: int) -> Cart:
        """
        Set a line's quantity; zero or less removes the line.

        Raises:
            CartItemNotFound: product is not in the cart
            InvalidQuantity: quantity above the line's stock ceiling
        """
        if quantity <= 0:
            return self.remove(product_id)

        current = self._cart
        item = current.find(product_id)
        if item is None:
            raise CartItemNotFound()

        if item.stock_quantity is not None and quantity > item.stock_quantity:
            raise InvalidQuantity(f"Only {item.stock_quantity} of {item.name} available.")

        items = [
            i.model_copy(update={"quantity": quantity}) if i.product_id == product_id else i
            for i in current.items
        ]
        return self._commit(items)

    def remove(self, product_id: int) -> Cart:
        """Remove a line; absent products are ignored"""
        items = [item for item in self._cart.items if item.product_id != product_id]
        return self._commit(items)

    def clear(self) -> Cart:
        """Empty the cart"""
        logger.debug("Cart cleared")
        return self._commit([])
