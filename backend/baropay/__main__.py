"""
Entry point for the BaroPay order server.

Usage:
    python -m baropay

Reads HOST, PORT and LOG_LEVEL from the environment (see baropay.config).
"""
import uvicorn

from .config import settings

if __name__ == "__main__":
    uvicorn.run(
        "baropay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
