"""
Pydantic Order Models

OrderRecord is what the server remembers about an issued order.
OrderId is the parsed form of the client-visible identifier token.
"""
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

ORDER_ID_SEPARATOR = "_"

_TIMESTAMP_RE = re.compile(r"[0-9]+")
_NONCE_RE = re.compile(r"[0-9a-f]+")
_SIGNATURE_RE = re.compile(r"[0-9a-f]{24}")


def redact_order_id(order_id: str) -> str:
    """Identifier without its signature segment, for logs."""
    return str(order_id).rsplit(ORDER_ID_SEPARATOR, 1)[0]


class OrderRecord(BaseModel):
    """
    Server-side order state bound to an identifier.

    amount and order_name are the signed values and never change
    after issuance; the model is frozen.
    """

    amount: int = Field(gt=0)
    order_name: str
    created_at: int = Field(description="Issuance time in epoch milliseconds")
    client_ip: str = ""
    client_agent: str = ""

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "amount": 1000,
                "order_name": "Widget",
                "created_at": 1760000000000,
                "client_ip": "203.0.113.7",
                "client_agent": "Mozilla/5.0"
            }
        }
    }


class OrderId(BaseModel):
    """
    Parsed order identifier: PREFIX_<timestamp>_<nonce>_<signature>.
    """

    prefix: str
    timestamp: str
    nonce: str
    signature: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return ORDER_ID_SEPARATOR.join(
            [self.prefix, self.timestamp, self.nonce, self.signature]
        )

    @classmethod
    def parse(cls, value: str, prefix: str) -> Optional["OrderId"]:
        """
        Split an identifier into its four segments.

        Returns None when the segment count, prefix or any segment's
        character set does not match the issued format.
        """
        parts = str(value).split(ORDER_ID_SEPARATOR)
        if len(parts) != 4 or parts[0] != prefix:
            return None

        _, timestamp, nonce, signature = parts
        if not _TIMESTAMP_RE.fullmatch(timestamp):
            return None
        if not _NONCE_RE.fullmatch(nonce):
            return None
        if not _SIGNATURE_RE.fullmatch(signature):
            return None

        return cls(prefix=prefix, timestamp=timestamp, nonce=nonce, signature=signature)


class IssuedOrder(BaseModel):
    """Result of a successful order issuance."""

    order_id: str
    amount: int
    order_name: str
    max_amount: int
    ttl_ms: int

    def to_response(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "orderId": self.order_id,
            "amount": self.amount,
            "orderName": self.order_name,
            "maxAmount": self.max_amount,
            "ttlMs": self.ttl_ms,
        }


class AuthorizedOrder(BaseModel):
    """An order that passed every verification step and may be confirmed."""

    order_id: str
    amount: int
    record: OrderRecord


class ConfirmationResult(BaseModel):
    """Processor response for a successful confirmation."""

    status_code: int
    order_id: str
    amount: int
    body: Any = None

    def to_response(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "order": {"orderId": self.order_id, "amount": self.amount},
            "toss": self.body,
        }
