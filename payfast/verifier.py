"""
PayFast Callback Verifier

Normalizes the payloads PayFast sends back to the store: the browser
return/cancel redirects and the server-to-server notify (ITN) post.
"""

import hmac
import logging
from typing import Mapping, Optional

from .models import CallbackResult
from .signer import SIGNATURE_FIELD, generate_signature

logger = logging.getLogger(__name__)

REQUIRED_CALLBACK_FIELDS = ("payment_status", "amount_gross", "email_address")

# Custom field carrying the store's order id
ORDER_ID_FIELD = "custom_str1"


def _parse_order_id(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else None


def _parse_amount(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


class PayFastVerifier:
    """
    Interprets PayFast callbacks.

    Usage:
        verifier = PayFastVerifier(passphrase="jt7NOE43FZPn")

        result = verifier.interpret_callback(form_data)
        if result.is_complete:
            print(f"Order {result.order_id} paid {result.amount}")

    `interpret_callback` checks field presence only. Call
    `verify_signature` as well before trusting a notify payload.
    """

    def __init__(self, passphrase: Optional[str] = None):
        self.passphrase = passphrase or None

    def interpret_callback(self, payload: Mapping[str, str]) -> CallbackResult:
        """
        Parse a return/notify payload into a CallbackResult.

        Args:
            payload: Form or query fields exactly as received

        Returns:
            CallbackResult; `is_valid` is False when required fields are missing
        """
        missing = [name for name in REQUIRED_CALLBACK_FIELDS if not payload.get(name)]
        order_id = _parse_order_id(payload.get(ORDER_ID_FIELD))

        if missing:
            return CallbackResult(
                is_valid=False,
                order_id=order_id,
                error_message=f"Missing callback fields: {', '.join(missing)}",
            )

        amount = _parse_amount(payload.get("amount_gross"))
        if amount is None:
            return CallbackResult(
                is_valid=False,
                order_id=order_id,
                error_message="Invalid amount_gross in callback",
            )

        return CallbackResult(
            is_valid=True,
            order_id=order_id,
            status=payload["payment_status"].upper(),
            amount=amount,
            email=payload["email_address"],
            payment_id=payload.get("pf_payment_id"),
        )

    def verify_signature(self, payload: Mapping[str, str]) -> bool:
        """Recompute the gateway signature over the payload in received order"""
        received = payload.get(SIGNATURE_FIELD)
        if not received:
            logger.warning("PayFast callback has no signature")
            return False

        expected = generate_signature(payload, self.passphrase)
        return hmac.compare_digest(received.lower(), expected)
