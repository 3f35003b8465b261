"""
PayFast Signature Generator

Builds the MD5 signature PayFast uses to authenticate a payment form.
The parameter string keeps the fields in the order they were assigned;
PayFast's alphabetical signature variant is a different algorithm and
must not be used here.
"""

import hashlib
from typing import Mapping, Optional
from urllib.parse import quote_plus

from .models import PaymentRequest

SIGNATURE_FIELD = "signature"

# Characters encodeURIComponent leaves untouched on top of quote_plus' defaults
_UNRESERVED = "!*'()"


def encode_value(value: str) -> str:
    """URL-encode a field value, spaces as '+'"""
    return quote_plus(value.strip(), safe=_UNRESERVED)


def build_parameter_string(
    data: Mapping[str, Optional[str]],
    passphrase: Optional[str] = None,
) -> str:
    """
    Build the string that gets hashed.

    Args:
        data: Field name -> value, iterated in insertion order
        passphrase: Optional merchant passphrase appended last

    Returns:
        `key=value` pairs joined with '&'
    """
    pairs = []
    for key, value in data.items():
        if key == SIGNATURE_FIELD:
            continue
        if value is None or value == "":
            continue
        pairs.append(f"{key}={encode_value(str(value))}")

    if passphrase and passphrase.strip():
        pairs.append(f"passphrase={encode_value(passphrase)}")

    return "&".join(pairs)


def generate_signature(
    data: Mapping[str, Optional[str]],
    passphrase: Optional[str] = None,
) -> str:
    """MD5 of the ordered parameter string, lower-case hex"""
    parameter_string = build_parameter_string(data, passphrase)
    return hashlib.md5(parameter_string.encode()).hexdigest().lower()


class PayFastSigner:
    """
    Signs PayFast payment requests.

    Usage:
        signer = PayFastSigner(passphrase="jt7NOE43FZPn")

        request = signer.sign({
            "merchant_id": "10000100",
            "merchant_key": "46f0cd694581a",
            "amount": "100.00",
            "item_name": "Order #1001",
        })

        form = request.to_form_fields()
    """

    def __init__(self, passphrase: Optional[str] = None):
        """
        Args:
            passphrase: Merchant passphrase configured on the PayFast account
        """
        self.passphrase = passphrase or None

    def signature_for(self, data: Mapping[str, Optional[str]]) -> str:
        return generate_signature(data, self.passphrase)

    def sign(self, fields: Mapping[str, Optional[str]]) -> PaymentRequest:
        """Drop empty fields and attach the signature"""
        cleaned = {
            key: str(value)
            for key, value in fields.items()
            if key != SIGNATURE_FIELD and value is not None and value != ""
        }
        return PaymentRequest(fields=cleaned, signature=self.signature_for(cleaned))
