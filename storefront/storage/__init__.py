# Cart persistence backends

from .cart_storage import CartStorage, MemoryCartStorage, JsonFileCartStorage

__all__ = [
    "CartStorage",
    "MemoryCartStorage",
    "JsonFileCartStorage",
]
