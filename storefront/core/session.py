"""Session management for storefront shoppers"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import jwt

from ..services.bobgo_client import BobGoClient
from ..services.cart import CartService
from ..services.checkout import CheckoutOrchestrator
from ..services.payments import PaymentAdapter
from ..services.shipping import FlatRateFallback, ShippingRateResolver
from ..services.woocommerce_client import WooCommerceClient
from ..storage.cart_storage import CartStorage, JsonFileCartStorage, MemoryCartStorage
from .config import Settings
from .errors import SessionNotFound

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ShopSession:
    """One shopper's cart, shipping quote and checkout attempt"""
    session_id: str
    cart: CartService
    shipping: ShippingRateResolver
    checkout: CheckoutOrchestrator
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()


class SessionManager:
    """
    Builds and tracks ShopSessions.

    Shoppers hold a signed token naming their session. With a storage
    directory configured, a valid token for a session this process has
    not seen (after a restart, say) rebuilds the session around the cart
    persisted on disk.
    """

    def __init__(
        self,
        settings: Settings,
        woocommerce: WooCommerceClient,
        bobgo: BobGoClient,
        payments: PaymentAdapter,
    ):
        self.settings = settings
        self.woocommerce = woocommerce
        self.bobgo = bobgo
        self.payments = payments
        self.sessions: dict[str, ShopSession] = {}
        self._fallback = FlatRateFallback(
            price=settings.fallback_shipping_price,
            free_shipping_threshold=settings.free_shipping_threshold,
            currency=settings.currency,
        )

    def _storage_for(self, session_id: str) -> CartStorage:
        if self.settings.storage_dir:
            return JsonFileCartStorage(Path(self.settings.storage_dir) / session_id)
        return MemoryCartStorage()

    def _build_session(self, session_id: str) -> ShopSession:
        return ShopSession(
            session_id=session_id,
            cart=CartService(self._storage_for(session_id), self.settings.cart_storage_key),
            shipping=ShippingRateResolver(self.bobgo, self._fallback),
            checkout=CheckoutOrchestrator(
                self.woocommerce,
                self.payments,
                store_name=self.settings.store_name,
                currency=self.settings.currency,
            ),
        )

    def create_session(self) -> ShopSession:
        """Create a new session"""
        session = self._build_session(str(uuid.uuid4()))
        self.sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[ShopSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        max_age = timedelta(hours=max_age_hours or self.settings.session_ttl_hours)
        now = _utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if now - session.updated_at > max_age
        ]
        for sid in old_sessions:
            del self.sessions[sid]

        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} idle sessions")
        return len(old_sessions)

    # ==================== Tokens ====================

    def issue_token(self, session: ShopSession) -> str:
        """Signed token identifying the session"""
        now = _utcnow()
        payload = {
            "sid": session.session_id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=self.settings.session_ttl_hours)).timestamp()),
        }
        return jwt.encode(payload, self.settings.session_secret, algorithm=TOKEN_ALGORITHM)

    def resolve_token(self, token: str) -> ShopSession:
        """
        Session named by a token.

        Raises:
            SessionNotFound: the token is invalid or expired, or its session is gone
        """
        try:
            payload = jwt.decode(token, self.settings.session_secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise SessionNotFound("Session expired. Please start a new session.") from e
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected session token: {e}")
            raise SessionNotFound("Invalid session token.") from e

        session_id = payload.get("sid")
        if not session_id:
            raise SessionNotFound("Invalid session token.")

        session = self.sessions.get(session_id)
        if session is None:
            if not self.settings.storage_dir:
                raise SessionNotFound()
            session = self._build_session(session_id)
            self.sessions[session_id] = session
            logger.info(f"Restored session {session_id} from storage")

        session.touch()
        return session
