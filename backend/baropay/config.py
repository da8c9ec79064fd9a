"""
BaroPay Configuration Module

Loads environment variables for the order issuance and confirmation server.
"""
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Security Notes:
    - ORDER_SIGNING_SECRET should be set and kept distinct from TOSS_SECRET_KEY
    - Without it, order signatures fall back to the Toss secret key (logged at startup)
    """

    # Toss Payments
    toss_secret_key: str = "test_gsk_docs_OaPz8L5KdmQXkzRz3y47BMw6"  # Public docs test key
    toss_api_base_url: str = "https://api.tosspayments.com"
    toss_confirm_timeout_seconds: float = 10.0
    toss_mock_mode: bool = False

    # Order signing
    order_signing_secret: Optional[str] = None
    order_id_prefix: str = "BARO"

    # Order policy
    max_amount: int = 500000
    order_ttl_ms: int = 30 * 60 * 1000
    default_order_name: str = "바로정산"
    order_name_max_length: int = 40
    delete_order_on_confirm_failure: bool = False
    order_sweep_interval_seconds: float = 0

    # Static pages
    public_dir: Path = BASE_DIR / "public"

    # Server
    host: str = "0.0.0.0"
    port: int = 4242
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def signing_secret(self) -> str:
        """Key used for order signatures (dedicated secret, else the Toss key)."""
        return self.order_signing_secret or self.toss_secret_key

    @property
    def signing_secret_is_fallback(self) -> bool:
        return not self.order_signing_secret


# Global settings instance
settings = Settings()
