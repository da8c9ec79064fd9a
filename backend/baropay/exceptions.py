"""
Order Exception Hierarchy

Stable machine-readable error codes returned by /create-order and /confirm.
Every error renders as {"ok": false, "code": ..., "message": ..., ...details}.
"""
from typing import Optional, Dict, Any


class OrderError(Exception):
    """
    Base exception for all order issuance and confirmation errors.

    Subclasses fix the error code and HTTP status; details are merged
    into the top level of the JSON response body.
    """

    code = "ORDER_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format."""
        return {
            "ok": False,
            "code": self.code,
            "message": self.message,
            **self.details
        }


# ==================== Client Input Errors ====================

class InvalidAmountError(OrderError):
    """
    Requested amount is not a positive integer.

    Examples:
    - "abc", 3.5, NaN
    - 0 or negative values
    """

    code = "INVALID_AMOUNT"

    def __init__(self, message: str = "amount가 올바르지 않습니다."):
        super().__init__(message)


class AmountExceedsMaxError(OrderError):
    """Requested amount is above the configured per-order ceiling."""

    code = "AMOUNT_EXCEEDS_MAX"

    def __init__(self, max_amount: int):
        self.max_amount = max_amount
        super().__init__(
            "amount가 최대 결제금액을 초과합니다.",
            {"maxAmount": max_amount}
        )


class MissingFieldsError(OrderError):
    """paymentKey, orderId or amount absent from a confirmation request."""

    code = "MISSING_FIELDS"

    def __init__(self, message: str = "paymentKey/orderId/amount가 필요합니다."):
        super().__init__(message)


class InvalidOrderIdError(OrderError):
    """
    Order identifier is not of the form PREFIX_<ts>_<nonce>_<sig>.

    Examples:
    - Wrong prefix or segment count
    - Non-numeric timestamp, non-hex nonce, signature of the wrong length
    """

    code = "INVALID_ORDER_ID"

    def __init__(self, message: str = "orderId 형식이 올바르지 않습니다."):
        super().__init__(message)


# ==================== Lookup Errors ====================

class OrderNotFoundError(OrderError):
    """
    No live order record for the identifier.

    Expired, never issued, already consumed and "server restarted" are
    reported identically.
    """

    code = "ORDER_NOT_FOUND"

    def __init__(self, message: str = "주문 정보를 찾을 수 없습니다. (만료/재시작/미발급 가능)"):
        super().__init__(message)


# ==================== Integrity Errors ====================

class OrderTamperedError(OrderError):
    """Embedded signature does not match the stored order fields."""

    code = "ORDER_TAMPERED"

    def __init__(self, message: str = "주문 서명 검증 실패(변조 의심)"):
        super().__init__(message)


class AmountMismatchError(OrderError):
    """Amount reported by the processor redirect differs from the issued amount."""

    code = "AMOUNT_MISMATCH"

    def __init__(self, expected_amount: int, received_amount: int):
        self.expected_amount = expected_amount
        self.received_amount = received_amount
        super().__init__(
            "결제 금액이 주문 금액과 일치하지 않습니다.",
            {"expectedAmount": expected_amount, "receivedAmount": received_amount}
        )


# ==================== Upstream Errors ====================

class TossConfirmFailedError(OrderError):
    """
    Toss Payments rejected the confirmation or could not be reached.

    The processor's status code and body are passed through unchanged.
    """

    code = "TOSS_CONFIRM_FAILED"

    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        message = body.get("message", "") if isinstance(body, dict) else ""
        super().__init__(message or "Toss payment confirmation failed")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "code": self.code,
            "toss": self.body
        }
