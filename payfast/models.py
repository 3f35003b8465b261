"""PayFast Data Models"""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


class PaymentStatus(str, Enum):
    """Payment status reported by the gateway"""
    COMPLETE = "COMPLETE"
    PENDING = "PENDING"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class SubmissionMethod(str, Enum):
    """How the browser is handed over to the gateway"""
    FORM_POST = "form-post"
    REDIRECT_URL = "redirect-url"


@dataclass
class PaymentRequest:
    """
    Signed payment request.

    `fields` keeps the order in which the fields were assigned; the
    signature depends on that order.
    """
    fields: dict[str, str] = field(default_factory=dict)
    signature: Optional[str] = None

    @property
    def order_id(self) -> Optional[str]:
        return self.fields.get("custom_str1")

    @property
    def amount(self) -> float:
        return float(self.fields.get("amount") or 0)

    def to_form_fields(self) -> dict[str, str]:
        """Fields to post to the gateway, signature last"""
        form = dict(self.fields)
        if self.signature:
            form["signature"] = self.signature
        return form


@dataclass
class PaymentSubmission:
    """Outcome of handing a request to the gateway (not of the payment itself)"""
    success: bool
    method: SubmissionMethod = SubmissionMethod.FORM_POST
    url: Optional[str] = None
    fields: dict[str, str] = field(default_factory=dict)
    payment_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass
class CallbackResult:
    """Normalized gateway return/notify payload"""
    is_valid: bool
    order_id: Optional[int] = None
    status: Optional[str] = None
    amount: Optional[float] = None
    email: Optional[str] = None
    payment_id: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.is_valid and self.status == PaymentStatus.COMPLETE.value
