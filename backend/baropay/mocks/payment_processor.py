"""
Mock Toss Payments Processor

Simulates POST /v1/payments/confirm as an httpx transport, for demo mode
(TOSS_MOCK_MODE=true) and tests. No network access.

Mock Behavior:
- Special payment keys (pay_decline*) trigger specific Toss error responses
- Requests without "Basic <base64(secret:)>" authorization are rejected
- Everything else is confirmed with a DONE payment object
"""
import base64
import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import httpx

CONFIRM_PATH = "/v1/payments/confirm"

# Test payment keys that trigger specific Toss error responses
DECLINE_PAYMENT_KEYS: Dict[str, Dict[str, Any]] = {
    "pay_decline": {
        "status_code": 400,
        "code": "REJECT_CARD_PAYMENT",
        "message": "한도초과 혹은 잔액부족으로 결제에 실패했습니다.",
    },
    "pay_decline_stolen": {
        "status_code": 403,
        "code": "REJECT_CARD_COMPANY",
        "message": "결제 승인이 거절되었습니다.",
    },
    "pay_decline_expired": {
        "status_code": 404,
        "code": "NOT_FOUND_PAYMENT_SESSION",
        "message": "결제 시간이 만료되어 결제 진행 데이터가 존재하지 않습니다.",
    },
    "pay_processor_error": {
        "status_code": 500,
        "code": "FAILED_INTERNAL_SYSTEM_PROCESSING",
        "message": "내부 시스템 처리 작업이 실패했습니다. 잠시 후 다시 시도해주세요.",
    },
}


def _error_response(status_code: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"code": code, "message": message})


def _authorized(request: httpx.Request, secret_key: Optional[str]) -> bool:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return False
    if secret_key is None:
        return True
    expected = base64.b64encode(f"{secret_key}:".encode("utf-8")).decode("ascii")
    return header[len("Basic "):] == expected


def confirm_payment(
    payment_key: str,
    order_id: str,
    amount: int,
) -> Dict[str, Any]:
    """
    Build the Toss payment object returned for an approved confirmation.

    Args:
        payment_key: Processor payment handle
        order_id: Merchant order identifier
        amount: Confirmed amount

    Returns:
        Payment object subset (paymentKey, orderId, status, totalAmount, ...)
    """
    approved_at = datetime.now(timezone.utc).isoformat()
    transaction_key = hashlib.sha256(f"{payment_key}:{order_id}".encode()).hexdigest()[:32]

    return {
        "mId": "tosspayments",
        "version": "2022-11-16",
        "paymentKey": payment_key,
        "orderId": order_id,
        "status": "DONE",
        "method": "카드",
        "totalAmount": amount,
        "balanceAmount": amount,
        "currency": "KRW",
        "lastTransactionKey": transaction_key,
        "approvedAt": approved_at,
    }


def create_confirm_handler(
    secret_key: Optional[str] = None
) -> Callable[[httpx.Request], httpx.Response]:
    """
    Create a request handler that answers like the Toss confirm API.

    Args:
        secret_key: If given, the Basic credentials must match this key
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method != "POST" or request.url.path != CONFIRM_PATH:
            return _error_response(404, "NOT_FOUND", "요청한 리소스를 찾을 수 없습니다.")

        if not _authorized(request, secret_key):
            return _error_response(401, "UNAUTHORIZED_KEY", "인증되지 않은 시크릿 키 혹은 클라이언트 키 입니다.")

        try:
            payload = json.loads(request.content or b"{}")
        except ValueError:
            return _error_response(400, "INVALID_REQUEST", "잘못된 요청입니다.")
        if not isinstance(payload, dict):
            return _error_response(400, "INVALID_REQUEST", "잘못된 요청입니다.")

        payment_key = payload.get("paymentKey")
        order_id = payload.get("orderId")
        amount = payload.get("amount")
        if not payment_key or not order_id or not isinstance(amount, int):
            return _error_response(400, "INVALID_REQUEST", "잘못된 요청입니다.")

        decline = DECLINE_PAYMENT_KEYS.get(payment_key)
        if decline:
            return _error_response(decline["status_code"], decline["code"], decline["message"])

        return httpx.Response(200, json=confirm_payment(payment_key, order_id, amount))

    return handler


def create_mock_transport(secret_key: Optional[str] = None) -> httpx.MockTransport:
    """httpx transport usable with httpx.AsyncClient(transport=...)."""
    return httpx.MockTransport(create_confirm_handler(secret_key))
