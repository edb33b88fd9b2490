"""
Application configuration.

Everything is read from the environment (or a .env file),
with defaults suited to a single-node SQLite deployment.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "VPN Sales Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./vpn_sales.db"
    )

    # Payment windows
    PAYMENT_WINDOW_MINUTES: int = int(os.getenv("PAYMENT_WINDOW_MINUTES", "15"))
    CHARGE_WINDOW_MINUTES: int = int(os.getenv("CHARGE_WINDOW_MINUTES", "15"))
    REVIEW_WINDOW_HOURS: int = int(os.getenv("REVIEW_WINDOW_HOURS", "24"))

    # Wallet top-up limits
    MIN_CHARGE_AMOUNT: Decimal = Decimal(os.getenv("MIN_CHARGE_AMOUNT", "10000"))
    MAX_CHARGE_AMOUNT: Decimal = Decimal(os.getenv("MAX_CHARGE_AMOUNT", "10000000"))

    # Provisioning
    USERNAME_PREFIX: str = os.getenv("USERNAME_PREFIX", "VPN")
    SUBSCRIPTION_BASE_URL: str = os.getenv(
        "SUBSCRIPTION_BASE_URL",
        "https://panel.example.com/sub"
    )
    PROVISION_MAX_ATTEMPTS: int = int(os.getenv("PROVISION_MAX_ATTEMPTS", "3"))
    PROVISION_RETRY_DELAY: float = float(os.getenv("PROVISION_RETRY_DELAY", "1.0"))

    # Sweep
    EXPIRY_WARNING_HOURS: int = int(os.getenv("EXPIRY_WARNING_HOURS", "24"))
    SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "600"))

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
