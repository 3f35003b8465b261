"""Catalog product models"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class StockStatus(str, Enum):
    IN_STOCK = "instock"
    OUT_OF_STOCK = "outofstock"
    ON_BACKORDER = "onbackorder"


class Product(BaseModel):
    """Product as the storefront sees it"""
    id: int
    name: str
    price: float = Field(ge=0)
    stock_status: StockStatus = StockStatus.IN_STOCK
    stock_quantity: Optional[int] = None
    categories: list[str] = []
    brand: Optional[str] = None
    short_description: str = ""
    description: str = ""
    images: list[str] = []
    slug: Optional[str] = None
    permalink: Optional[str] = None

    # Parcel dimensions for carrier quotes
    weight_kg: Optional[float] = None
    length_cm: Optional[float] = None
    width_cm: Optional[float] = None
    height_cm: Optional[float] = None

    class Config:
        from_attributes = True

    @property
    def is_purchasable(self) -> bool:
        return self.stock_status != StockStatus.OUT_OF_STOCK


class ProductSearchResponse(BaseModel):
    """Ranked product search results"""
    products: list[Product]
    total: int
    query: Optional[str] = None


class Category(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
    count: int = 0


class Brand(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
