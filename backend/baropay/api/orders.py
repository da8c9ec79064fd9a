"""
Order API Endpoints

Issues signed order identifiers and confirms Toss payments against them.

Flow:
- POST /create-order binds amount and name to a fresh identifier
- The browser hands the identifier to the Toss checkout widget
- Toss redirects to /success with paymentKey, orderId and amount
- POST /confirm verifies the order and relays the confirmation to Toss
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..services.confirmation_service import ConfirmationRelay
from ..services.order_service import OrderIssuer, OrderVerifier
from .dependencies import (
    get_client_ip,
    get_confirmation_relay,
    get_order_issuer,
    get_order_verifier,
    read_body,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-order")
async def create_order_endpoint(
    request: Request,
    issuer: OrderIssuer = Depends(get_order_issuer),
) -> Dict[str, Any]:
    """
    Create a payment order.

    Request Body:
        {
            "amount": int,  # 0 < amount <= MAX_AMOUNT
            "orderName": str  # optional, trimmed to 40 characters
        }

    Returns:
        {
            "ok": true,
            "orderId": "BARO_<ts>_<nonce>_<sig>",
            "amount": int,
            "orderName": str,
            "maxAmount": int,
            "ttlMs": int
        }

    Errors:
        400 INVALID_AMOUNT, 400 AMOUNT_EXCEEDS_MAX (with maxAmount)
    """
    body = await read_body(request)

    issued = issuer.create_order(
        body.get("amount"),
        body.get("orderName"),
        client_ip=get_client_ip(request),
        client_agent=request.headers.get("user-agent", ""),
    )

    return issued.to_response()


@router.post("/confirm")
async def confirm_endpoint(
    request: Request,
    verifier: OrderVerifier = Depends(get_order_verifier),
    relay: ConfirmationRelay = Depends(get_confirmation_relay),
) -> JSONResponse:
    """
    Confirm a payment after the Toss success redirect.

    Request Body:
        {
            "paymentKey": str,
            "orderId": str,
            "amount": int
        }

    Returns:
        Toss status code with
        {"ok": true, "order": {"orderId", "amount"}, "toss": <Toss payment object>}

    Errors:
        400 MISSING_FIELDS, INVALID_ORDER_ID, ORDER_NOT_FOUND,
            ORDER_TAMPERED, AMOUNT_MISMATCH (with expectedAmount/receivedAmount)
        Toss status TOSS_CONFIRM_FAILED (with the Toss error body)
    """
    body = await read_body(request)
    payment_key = body.get("paymentKey")

    authorized = verifier.verify_and_authorize(
        body.get("orderId"),
        body.get("amount"),
        payment_key,
    )

    result = await relay.confirm(authorized, str(payment_key))

    return JSONResponse(status_code=result.status_code, content=result.to_response())
