"""
Storefront Application

Cart, shipping and checkout service for the Invictus Nutrition store.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .core.config import Settings, get_settings
from .core.session import SessionManager
from .routes import (
    session_router,
    products_router,
    cart_router,
    shipping_router,
    checkout_router,
    payment_router,
)
from .services.bobgo_client import BobGoClient
from .services.payments import PaymentAdapter
from .services.woocommerce_client import WooCommerceClient

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    app_settings: Settings = app.state.settings
    logger.info(f"{app_settings.app_name} storefront starting up...")
    logger.info(f"WooCommerce URL: {app_settings.woocommerce_base_url}")
    logger.info(f"Bob Go configured: {bool(app_settings.bobgo_api_key)}")
    logger.info(f"PayFast configured: {app_settings.payfast_configured}")

    yield

    logger.info("Storefront shutting down...")
    await app.state.woocommerce.close()
    await app.state.bobgo.close()


def create_app(
    app_settings: Optional[Settings] = None,
    woocommerce: Optional[WooCommerceClient] = None,
    bobgo: Optional[BobGoClient] = None,
    payments: Optional[PaymentAdapter] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to ones built from settings; tests pass their own.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title=app_settings.app_name,
        description="Cart, shipping and checkout API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    woocommerce = woocommerce or WooCommerceClient(
        base_url=app_settings.woocommerce_base_url,
        consumer_key=app_settings.woocommerce_consumer_key,
        consumer_secret=app_settings.woocommerce_consumer_secret,
        timeout=app_settings.woocommerce_timeout_seconds,
        per_page=app_settings.products_per_page,
    )
    bobgo = bobgo or BobGoClient(
        api_key=app_settings.bobgo_api_key,
        base_url=app_settings.bobgo_base_url,
        origin=app_settings.shipping_origin,
        timeout=app_settings.bobgo_timeout_seconds,
        handling_time=app_settings.bobgo_handling_time,
        currency=app_settings.currency,
    )
    payments = payments or PaymentAdapter.from_settings(app_settings)

    app.state.settings = app_settings
    app.state.woocommerce = woocommerce
    app.state.bobgo = bobgo
    app.state.payments = payments
    app.state.session_manager = SessionManager(app_settings, woocommerce, bobgo, payments)

    # Include routers
    app.include_router(session_router)
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(shipping_router)
    app.include_router(checkout_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "storefront",
            "woocommerce_configured": bool(app_settings.woocommerce_consumer_key),
            "bobgo_configured": bool(app_settings.bobgo_api_key),
            "payfast_configured": app_settings.payfast_configured,
            "active_sessions": len(app.state.session_manager.sessions),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
