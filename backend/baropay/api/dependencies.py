"""
FastAPI dependencies for order endpoints.

Services are created once per application in create_app() and kept on
app.state; these helpers hand them to route functions.
"""
import json
import logging
from typing import Any, Dict

from fastapi import Request

from ..services.confirmation_service import ConfirmationRelay
from ..services.order_service import OrderIssuer, OrderVerifier

logger = logging.getLogger(__name__)


def get_order_issuer(request: Request) -> OrderIssuer:
    return request.app.state.order_issuer


def get_order_verifier(request: Request) -> OrderVerifier:
    return request.app.state.order_verifier


def get_confirmation_relay(request: Request) -> ConfirmationRelay:
    return request.app.state.confirmation_relay


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop if present, otherwise the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


async def read_body(request: Request) -> Dict[str, Any]:
    """
    Parse a JSON or form-encoded request body.

    Malformed or non-object bodies are treated as empty, so validation
    reports the missing fields with the usual error codes.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/x-www-form-urlencoded") or content_type.startswith("multipart/form-data"):
        form = await request.form()
        return dict(form)

    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Ignoring malformed JSON body")
        return {}
    return data if isinstance(data, dict) else {}
