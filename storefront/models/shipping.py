"""Shipping models"""

from pydantic import BaseModel, Field
from typing import Optional


class ShippingAddress(BaseModel):
    """Delivery address in the carrier's shape"""
    street_address: str = ""
    local_area: str = ""
    city: str = ""
    zone: str = ""
    country: str = "ZA"
    code: str = ""
    company: Optional[str] = None


class ShippingOption(BaseModel):
    """One quoted shipping service"""
    id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    currency: str = "ZAR"
    delivery_time: Optional[str] = None
    selected: bool = False


class RateResult(BaseModel):
    """
    Ranked shipping options for one address.

    `warning` carries the carrier failure, if any, when the options came
    from the fallback policy.
    """
    options: list[ShippingOption] = []
    warning: Optional[str] = None
    from_fallback: bool = False

    @property
    def selected_option(self) -> Optional[ShippingOption]:
        return next((option for option in self.options if option.selected), None)


class ParcelItem(BaseModel):
    """Line item as sent to the carrier"""
    description: str
    price: float
    quantity: int
    length_cm: float
    width_cm: float
    height_cm: float
    weight_kg: float


class ShippingRatesRequest(BaseModel):
    """Request to quote shipping for the session's cart"""
    address: ShippingAddress
    declared_value: Optional[float] = None


class SelectShippingRequest(BaseModel):
    option_id: str


class ShippingRatesResponse(BaseModel):
    options: list[ShippingOption]
    selected_option: Optional[ShippingOption] = None
    warning: Optional[str] = None
    from_fallback: bool = False
