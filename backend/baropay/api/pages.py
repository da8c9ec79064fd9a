"""
Checkout Pages

Serves the static checkout, success and fail pages used with the Toss
payment widget.
"""
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _page(request: Request, filename: str) -> FileResponse:
    path = request.app.state.settings.public_dir / filename
    if not path.is_file():
        logger.error(f"Static page missing: {path}")
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path)


@router.get("/", include_in_schema=False)
async def checkout_page(request: Request) -> FileResponse:
    return _page(request, "checkout.html")


@router.get("/success", include_in_schema=False)
async def success_page(request: Request) -> FileResponse:
    """Toss successUrl: the page posts paymentKey/orderId/amount to /confirm."""
    return _page(request, "success.html")


@router.get("/fail", include_in_schema=False)
async def fail_page(request: Request) -> FileResponse:
    return _page(request, "fail.html")
