"""
Order Service

Issues signed order identifiers and verifies them at confirmation time.

Integrity model:
- The identifier carries timestamp, nonce and a truncated HMAC over
  (amount, order_name, timestamp, nonce)
- The store holds the amount and order_name the identifier was signed for
- Verification re-signs with the stored values, so neither the token nor
  the store alone is enough to confirm a different amount
"""
import logging
import math
import re
import secrets
from typing import Any, Callable, Optional

from ..exceptions import (
    AmountExceedsMaxError,
    AmountMismatchError,
    InvalidAmountError,
    InvalidOrderIdError,
    MissingFieldsError,
    OrderNotFoundError,
    OrderTamperedError,
)
from ..models.orders import (
    AuthorizedOrder,
    IssuedOrder,
    OrderId,
    OrderRecord,
)
from .order_store import OrderStore
from .signature_service import Signer

logger = logging.getLogger(__name__)

NONCE_BYTES = 8  # 64 bits

_INTEGER_RE = re.compile(r"-?[0-9]+")

NonceSource = Callable[[], str]


def random_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


# ============================================================================
# Input Normalization
# ============================================================================

def to_int_amount(value: Any) -> Optional[int]:
    """
    Coerce a request amount to an integer.

    Accepts ints, finite integral floats (1000.0) and ASCII decimal
    strings (" 1000", "-5"). Returns None for anything else, including
    bools, "+1000", "1_000" and non-ASCII digits.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not _INTEGER_RE.fullmatch(text):
            return None
        return int(text, 10)
    return None


def safe_text(value: Any, max_length: int) -> str:
    """Trim a string and cap its length; non-strings become ''."""
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]


# ============================================================================
# Order Issuer
# ============================================================================

class OrderIssuer:
    """
    Validates order requests and mints signed identifiers.

    This is the only place an amount and name are bound to a signature.
    """

    def __init__(
        self,
        store: OrderStore,
        signer: Signer,
        max_amount: int,
        prefix: str = "BARO",
        default_order_name: str = "바로정산",
        order_name_max_length: int = 40,
        nonce_source: NonceSource = random_nonce,
    ):
        self.store = store
        self.signer = signer
        self.max_amount = max_amount
        self.prefix = prefix
        self.default_order_name = default_order_name
        self.order_name_max_length = order_name_max_length
        self._nonce_source = nonce_source

    def normalize_order_name(self, order_name: Any) -> str:
        name = safe_text(order_name, self.order_name_max_length)
        return name or self.default_order_name[:self.order_name_max_length]

    def create_order(
        self,
        amount: Any,
        order_name: Any = None,
        client_ip: str = "",
        client_agent: str = "",
    ) -> IssuedOrder:
        """
        Issue a new order.

        Args:
            amount: Requested amount (int, integral float, or integer string)
            order_name: Display name; blank or missing uses the default
            client_ip: Requesting client address (diagnostic only)
            client_agent: Requesting User-Agent (diagnostic only)

        Returns:
            IssuedOrder with the identifier and echoed limits

        Raises:
            InvalidAmountError: amount is not a positive integer
            AmountExceedsMaxError: amount is above max_amount
        """
        self.store.sweep()

        parsed_amount = to_int_amount(amount)
        if parsed_amount is None or parsed_amount <= 0:
            raise InvalidAmountError()
        if parsed_amount > self.max_amount:
            raise AmountExceedsMaxError(self.max_amount)

        name = self.normalize_order_name(order_name)

        timestamp = self.store.now()
        nonce = self._nonce_source()
        signature = self.signer.sign([parsed_amount, name, timestamp, nonce])
        order_id = str(OrderId(
            prefix=self.prefix,
            timestamp=str(timestamp),
            nonce=nonce,
            signature=signature,
        ))

        self.store.put(order_id, OrderRecord(
            amount=parsed_amount,
            order_name=name,
            created_at=timestamp,
            client_ip=client_ip,
            client_agent=client_agent,
        ))

        # Signature segment stays out of the logs
        logger.info(
            f"Issued order: ts={timestamp}, nonce={nonce}, "
            f"amount={parsed_amount}, ip={client_ip or '-'}"
        )

        return IssuedOrder(
            order_id=order_id,
            amount=parsed_amount,
            order_name=name,
            max_amount=self.max_amount,
            ttl_ms=self.store.ttl_ms,
        )


# ============================================================================
# Order Verifier
# ============================================================================

class OrderVerifier:
    """
    Checks a returned identifier against the stored order before confirmation.

    Each step has its own error so callers can tell malformed input from
    integrity failures. The record is left in place; the confirmation relay
    consumes it once the processor accepts the payment.
    """

    def __init__(self, store: OrderStore, signer: Signer, prefix: str = "BARO"):
        self.store = store
        self.signer = signer
        self.prefix = prefix

    def verify_and_authorize(
        self,
        order_id: Any,
        claimed_amount: Any,
        payment_key: Any,
    ) -> AuthorizedOrder:
        """
        Authorize a confirmation request.

        Args:
            order_id: Identifier returned by /create-order
            claimed_amount: Amount from the processor's success redirect
            payment_key: Processor payment handle

        Returns:
            AuthorizedOrder carrying the stored record

        Raises:
            MissingFieldsError: payment_key/order_id empty or amount unparseable
            InvalidOrderIdError: identifier is malformed
            OrderNotFoundError: no live record (expired, consumed, never issued)
            OrderTamperedError: signature does not match the stored fields
            AmountMismatchError: claimed amount differs from the issued amount
        """
        self.store.sweep()

        amount = to_int_amount(claimed_amount)
        if not payment_key or not order_id or amount is None:
            raise MissingFieldsError()

        parsed = OrderId.parse(order_id, self.prefix)
        if parsed is None:
            raise InvalidOrderIdError()

        key = str(parsed)
        saved = self.store.get(key)
        if saved is None:
            raise OrderNotFoundError()

        fields = [saved.amount, saved.order_name, parsed.timestamp, parsed.nonce]
        if not self.signer.verify(fields, parsed.signature):
            raise OrderTamperedError()

        if amount != saved.amount:
            raise AmountMismatchError(saved.amount, amount)

        return AuthorizedOrder(order_id=key, amount=saved.amount, record=saved)
