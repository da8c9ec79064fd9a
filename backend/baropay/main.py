"""
BaroPay Backend - FastAPI Application

Issues tamper-evident payment orders and confirms Toss Payments against them.
Order state lives in process memory; nothing is persisted.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings, settings as default_settings
from .exceptions import OrderError
from .mocks.payment_processor import create_mock_transport
from .services.confirmation_service import ConfirmationRelay
from .services.order_service import NonceSource, OrderIssuer, OrderVerifier, random_nonce
from .services.order_store import Clock, OrderStore, now_ms
from .services.scheduler import SweepScheduler
from .services.signature_service import Signer
from .api.orders import router as orders_router
from .api.pages import router as pages_router

__version__ = "0.1.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Report signing configuration, start optional sweep scheduler
    - Shutdown: Stop scheduler, close the Toss HTTP client
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("Starting BaroPay order server...")
    logger.info(f"Max amount: {settings.max_amount}, order TTL: {settings.order_ttl_ms}ms")
    if settings.signing_secret_is_fallback:
        logger.warning(
            "ORDER_SIGNING_SECRET is not set; order signatures use TOSS_SECRET_KEY. "
            "Set a dedicated signing secret in production."
        )
    if settings.toss_mock_mode:
        logger.warning("TOSS_MOCK_MODE enabled: confirmations are answered by the in-process mock processor")

    sweep_scheduler: Optional[SweepScheduler] = None
    if settings.order_sweep_interval_seconds > 0:
        sweep_scheduler = SweepScheduler(app.state.order_store, settings.order_sweep_interval_seconds)
        sweep_scheduler.start()
    app.state.sweep_scheduler = sweep_scheduler

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("Shutting down BaroPay order server...")

    if sweep_scheduler is not None:
        try:
            sweep_scheduler.shutdown(wait=False)
        except Exception as e:
            logger.error(f"Error during scheduler shutdown: {e}")

    await app.state.http_client.aclose()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError):
        """
        Handle order errors with the standard {ok, code, message} format.

        Client and integrity errors return 400; Toss failures pass the
        processor's status code through.
        """
        logger.warning(
            f"Order error on {request.url.path}: {exc.code} - {exc.message}",
            extra={"details": exc.details}
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unexpected errors.

        Logs full exception for debugging but returns generic message to client.
        """
        logger.error(f"Unexpected error: {str(exc)}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Clock = now_ms,
    nonce_source: NonceSource = random_nonce,
) -> FastAPI:
    """
    Build the FastAPI application and its order services.

    Args:
        settings: Configuration (defaults to environment-loaded settings)
        transport: httpx transport for Toss calls (tests and mock mode)
        clock: Epoch-millisecond clock shared by store and issuer
        nonce_source: Nonce generator for new order identifiers

    Returns:
        FastAPI app with store, signer, issuer, verifier and relay on app.state
    """
    settings = settings or default_settings

    if transport is None and settings.toss_mock_mode:
        transport = create_mock_transport(settings.toss_secret_key)

    app = FastAPI(
        title="BaroPay API",
        description="Signed payment orders with Toss Payments confirmation",
        version=__version__,
        lifespan=lifespan,
    )

    store = OrderStore(ttl_ms=settings.order_ttl_ms, clock=clock)
    signer = Signer(settings.signing_secret)
    http_client = httpx.AsyncClient(
        base_url=settings.toss_api_base_url,
        timeout=settings.toss_confirm_timeout_seconds,
        transport=transport,
    )

    app.state.settings = settings
    app.state.order_store = store
    app.state.http_client = http_client
    app.state.order_issuer = OrderIssuer(
        store,
        signer,
        max_amount=settings.max_amount,
        prefix=settings.order_id_prefix,
        default_order_name=settings.default_order_name,
        order_name_max_length=settings.order_name_max_length,
        nonce_source=nonce_source,
    )
    app.state.order_verifier = OrderVerifier(store, signer, prefix=settings.order_id_prefix)
    app.state.confirmation_relay = ConfirmationRelay(
        http_client,
        store,
        settings.toss_secret_key,
        delete_on_failure=settings.delete_order_on_confirm_failure,
    )

    register_exception_handlers(app)

    @app.get("/api/health")
    async def health_check():
        """
        Health check endpoint for monitoring and load balancers.

        Returns:
            Server status, order policy and in-memory order count
        """
        return {
            "status": "healthy",
            "version": __version__,
            "maxAmount": settings.max_amount,
            "ttlMs": settings.order_ttl_ms,
            "ordersInMemory": len(store),
            "signingSecretIsFallback": settings.signing_secret_is_fallback,
        }

    app.include_router(orders_router, tags=["Orders"])
    app.include_router(pages_router, tags=["Pages"])

    if settings.public_dir.is_dir():
        app.mount("/public", StaticFiles(directory=str(settings.public_dir)), name="public")

    return app


# Initialize FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "baropay.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower()
    )
