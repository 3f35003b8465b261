"""Storefront Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


PAYFAST_SANDBOX_URL = "https://sandbox.payfast.co.za/eng/process"
PAYFAST_PRODUCTION_URL = "https://www.payfast.co.za/eng/process"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Invictus Nutrition"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    public_base_url: str = "http://localhost:8000"

    # Store
    store_name: str = "Invictus Nutrition"
    currency: str = "ZAR"

    # Sessions and cart persistence
    session_secret: str = "change-me"
    session_ttl_hours: int = 24
    storage_dir: Optional[str] = None  # in-memory carts when unset
    cart_storage_key: str = "invictus-cart"

    # WooCommerce (catalog + order backend)
    woocommerce_base_url: str = "http://localhost:8080"
    woocommerce_consumer_key: Optional[str] = None
    woocommerce_consumer_secret: Optional[str] = None
    woocommerce_timeout_seconds: float = 10.0
    products_per_page: int = 12

    # Bob Go (carrier rates)
    bobgo_api_key: Optional[str] = None
    bobgo_base_url: str = "https://api.sandbox.bobgo.co.za/v2"
    bobgo_timeout_seconds: float = 10.0
    bobgo_handling_time: int = 1

    # Shipping origin
    shipping_origin_company: str = "Invictus Nutrition"
    shipping_origin_address: str = "70 3rd road, Linbro Park"
    shipping_origin_local_area: str = "Linbro Park"
    shipping_origin_city: str = "Sandton"
    shipping_origin_zone: str = "GP"
    shipping_origin_country: str = "ZA"
    shipping_origin_postal_code: str = "2065"

    # Fallback shipping when carrier rates are unavailable
    fallback_shipping_price: float = 74.00
    free_shipping_threshold: Optional[float] = None

    # PayFast
    payfast_merchant_id: Optional[str] = None
    payfast_merchant_key: Optional[str] = None
    payfast_passphrase: Optional[str] = None
    payfast_return_url: Optional[str] = None
    payfast_cancel_url: Optional[str] = None
    payfast_notify_url: Optional[str] = None
    payfast_test_mode: bool = True
    payfast_verify_itn_signature: bool = False

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def payfast_configured(self) -> bool:
        """Check if PayFast credentials and return URLs are configured"""
        return all([
            self.payfast_merchant_id,
            self.payfast_merchant_key,
            self.payfast_return_url,
            self.payfast_cancel_url,
        ])

    @property
    def payfast_process_url(self) -> str:
        return PAYFAST_SANDBOX_URL if self.payfast_test_mode else PAYFAST_PRODUCTION_URL

    @property
    def shipping_origin(self) -> dict[str, str]:
        """Collection address sent to the carrier"""
        return {
            "company": self.shipping_origin_company,
            "street_address": self.shipping_origin_address,
            "local_area": self.shipping_origin_local_area,
            "city": self.shipping_origin_city,
            "zone": self.shipping_origin_zone,
            "country": self.shipping_origin_country,
            "code": self.shipping_origin_postal_code,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
