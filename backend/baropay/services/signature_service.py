"""
Signature Service for Order Identifiers

Implements the truncated HMAC-SHA256 tag that binds amount, order name,
timestamp and nonce into an order identifier.
"""
import hmac
import hashlib
from typing import Any, Sequence

SIGNATURE_HEX_LENGTH = 24  # 96 bits
FIELD_SEPARATOR = "|"


def create_payload(fields: Sequence[Any]) -> str:
    """
    Join order fields into the signed message.

    Example:
        create_payload([1000, "Widget", 1760000000000, "9f86d081884c7d65"])
        -> "1000|Widget|1760000000000|9f86d081884c7d65"
    """
    return FIELD_SEPARATOR.join(str(field) for field in fields)


class Signer:
    """
    Keyed signer holding the order signing secret for the process lifetime.

    The tag is the first 24 hex characters of HMAC-SHA256(secret, payload).
    It is an integrity tag for order identifiers, not a general-purpose MAC.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Order signing secret is not configured")
        self._key = secret.encode("utf-8")

    def sign(self, fields: Sequence[Any]) -> str:
        """
        Compute the truncated tag for an ordered list of fields.

        Args:
            fields: Values to bind, in order (amount, order_name, timestamp, nonce)

        Returns:
            24-character lowercase hexadecimal tag
        """
        digest = hmac.new(
            self._key,
            create_payload(fields).encode("utf-8"),
            hashlib.sha256
        ).hexdigest()
        return digest[:SIGNATURE_HEX_LENGTH]

    def verify(self, fields: Sequence[Any], signature: str) -> bool:
        """Constant-time comparison of the expected tag against signature."""
        return hmac.compare_digest(self.sign(fields), signature)
