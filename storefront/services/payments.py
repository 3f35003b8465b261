"""
Payment adapter

Builds signed PayFast payment requests for orders, hands them to a
gateway and interprets what the gateway sends back.
"""

import logging
import time
from typing import Mapping, Optional

from payfast import (
    CallbackResult,
    PayFastSigner,
    PayFastVerifier,
    PaymentRequest,
    PaymentSubmission,
    SubmissionMethod,
)

from ..core.config import Settings

logger = logging.getLogger(__name__)


def split_name(full_name: str) -> tuple[str, str]:
    """First word and the rest; a blank name becomes 'Customer'"""
    parts = full_name.split()
    if not parts:
        return "Customer", ""
    return parts[0], " ".join(parts[1:])


class PaymentGateway:
    """Hands a signed request over to a payment provider"""

    name = "gateway"

    def submit(self, request: PaymentRequest) -> PaymentSubmission:
        raise NotImplementedError


class PayFastGateway(PaymentGateway):
    """
    PayFast hosted payment page.

    PayFast is reached by a browser form post, so submitting only
    produces the URL and fields the HTTP layer renders into an
    auto-submitting form.
    """

    name = "payfast"

    def __init__(self, process_url: str):
        self.process_url = process_url

    def submit(self, request: PaymentRequest) -> PaymentSubmission:
        if not request.signature:
            return PaymentSubmission(success=False, error="Payment request is not signed")

        return PaymentSubmission(
            success=True,
            method=SubmissionMethod.FORM_POST,
            url=self.process_url,
            fields=request.to_form_fields(),
            message="Redirecting to PayFast",
        )


class MockPaymentGateway(PaymentGateway):
    """Simulated gateway for stores without PayFast credentials"""

    name = "mock"

    def __init__(self, success_path: str = "/payment/success", simulate_error: Optional[str] = None):
        self.success_path = success_path
        self.simulate_error = simulate_error

    def submit(self, request: PaymentRequest) -> PaymentSubmission:
        if self.simulate_error:
            return PaymentSubmission(success=False, error=self.simulate_error)

        payment_id = f"mock_{int(time.time() * 1000)}"
        logger.info(f"Mock payment {payment_id} accepted for order {request.order_id}")

        return PaymentSubmission(
            success=True,
            method=SubmissionMethod.REDIRECT_URL,
            url=f"{self.success_path}?order_id={request.order_id}",
            payment_id=payment_id,
            message="Payment processed successfully",
        )


class PaymentAdapter:
    """
    PayFast payment requests for storefront orders.

    Usage:
        adapter = PaymentAdapter.from_settings(get_settings())

        request = adapter.build_request(
            order_id=1001,
            order_number="1001",
            customer_name="Jane Doe",
            email="jane@example.com",
            amount=250.0,
        )
        submission = adapter.submit(request)
    """

    def __init__(
        self,
        merchant_id: str,
        merchant_key: str,
        return_url: str,
        cancel_url: str,
        notify_url: Optional[str] = None,
        passphrase: Optional[str] = None,
        gateway: Optional[PaymentGateway] = None,
        store_name: str = "Invictus Nutrition",
        payment_method: str = "eft",
    ):
        self.merchant_id = merchant_id
        self.merchant_key = merchant_key
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.notify_url = notify_url
        self.store_name = store_name
        self.payment_method = payment_method
        self.signer = PayFastSigner(passphrase)
        self.verifier = PayFastVerifier(passphrase)
        self.gateway = gateway or MockPaymentGateway()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentAdapter":
        """Adapter for the configured account, or a mock gateway when PayFast is not set up"""
        base_url = settings.public_base_url.rstrip("/")

        if settings.payfast_configured:
            gateway = PayFastGateway(settings.payfast_process_url)
            logger.info(f"PayFast gateway enabled ({'sandbox' if settings.payfast_test_mode else 'live'})")
        else:
            gateway = MockPaymentGateway()
            logger.warning("PayFast not configured - using mock payment gateway")

        return cls(
            merchant_id=settings.payfast_merchant_id or "",
            merchant_key=settings.payfast_merchant_key or "",
            return_url=settings.payfast_return_url or f"{base_url}/payment/success",
            cancel_url=settings.payfast_cancel_url or f"{base_url}/payment/cancel",
            notify_url=settings.payfast_notify_url or f"{base_url}/payment/notify",
            passphrase=settings.payfast_passphrase,
            gateway=gateway,
            store_name=settings.store_name,
        )

    def build_request(
        self,
        order_id: int,
        order_number: str,
        customer_name: str,
        email: str,
        amount: float,
        phone: Optional[str] = None,
        item_name: Optional[str] = None,
        item_description: Optional[str] = None,
    ) -> PaymentRequest:
        """
        Build the signed request for one payment attempt.

        Fields are assigned in the order PayFast documents; the
        signature is computed over that order.
        """
        first_name, last_name = split_name(customer_name)
        item_name = item_name or f"Order #{order_number}"

        fields: dict[str, Optional[str]] = {}
        fields["merchant_id"] = self.merchant_id
        fields["merchant_key"] = self.merchant_key
        fields["return_url"] = self.return_url
        fields["cancel_url"] = self.cancel_url
        fields["notify_url"] = self.notify_url
        fields["name_first"] = first_name
        fields["name_last"] = last_name
        fields["email_address"] = email
        if phone:
            fields["cell_number"] = phone
        fields["amount"] = f"{amount:.2f}"
        fields["item_name"] = item_name
        fields["item_description"] = item_description or item_name
        fields["custom_str1"] = str(order_id)
        fields["custom_str2"] = order_number
        fields["custom_str3"] = self.store_name
        fields["email_confirmation"] = "1"
        fields["confirmation_address"] = email
        fields["payment_method"] = self.payment_method

        return self.signer.sign(fields)

    def submit(self, request: PaymentRequest) -> PaymentSubmission:
        """Hand a signed request to the gateway"""
        logger.info(f"Submitting payment for order {request.order_id} via {self.gateway.name}")
        return self.gateway.submit(request)

    def interpret_callback(self, payload: Mapping[str, str]) -> CallbackResult:
        """Normalize a return/notify payload; the gateway signature is not checked"""
        return self.verifier.interpret_callback(payload)

    def verify_signature(self, payload: Mapping[str, str]) -> bool:
        return self.verifier.verify_signature(payload)
