# PayFast payment gateway support
# Ordered-field MD5 request signing and callback interpretation

from .signer import PayFastSigner, generate_signature, build_parameter_string
from .verifier import PayFastVerifier
from .models import PaymentRequest, PaymentSubmission, CallbackResult, PaymentStatus, SubmissionMethod

__all__ = [
    "PayFastSigner",
    "PayFastVerifier",
    "generate_signature",
    "build_parameter_string",
    "PaymentRequest",
    "PaymentSubmission",
    "CallbackResult",
    "PaymentStatus",
    "SubmissionMethod",
]
