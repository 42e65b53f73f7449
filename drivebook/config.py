"""
Centralized configuration with environment variable overrides.

API location, payment keys, and booking fallbacks are configurable here.
Nothing is hardcoded in workflow or API logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _optional_float(env_var: str) -> Optional[float]:
    """Parse an optional float; unset or blank means 'use the library default'."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return None
    return _safe_float(env_var, raw)


@dataclass(frozen=True)
class ApiConfig:
    """Backend REST API location."""

    base_url: str = os.getenv("API_BASE_URL", "http://localhost:5000/api")
    timeout_sec: Optional[float] = _optional_float("API_TIMEOUT")


@dataclass(frozen=True)
class PaymentConfig:
    """Third-party payment provider settings."""

    publishable_key: str = os.getenv("PAYMENT_PUBLISHABLE_KEY", "")

    @property
    def enabled(self) -> bool:
        return bool(self.publishable_key.strip())


@dataclass(frozen=True)
class BookingConfig:
    """Booking form rules and display fallbacks."""

    fallback_slot_price: float = _safe_float("FALLBACK_SLOT_PRICE", "25")
    min_password_length: int = _safe_int("MIN_PASSWORD_LENGTH", "6")
    default_location: str = os.getenv("DEFAULT_LOCATION", "Driving School")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    api: ApiConfig = field(default_factory=ApiConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "drivebook")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.api.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"API_BASE_URL must be an http(s) URL, got {config.api.base_url!r}"
        )
    if config.api.timeout_sec is not None and config.api.timeout_sec <= 0:
        raise ValueError(
            f"API_TIMEOUT must be > 0, got {config.api.timeout_sec}"
        )
    if config.booking.fallback_slot_price < 0:
        raise ValueError(
            f"FALLBACK_SLOT_PRICE must be >= 0, got {config.booking.fallback_slot_price}"
        )
    if config.booking.min_password_length < 1:
        raise ValueError(
            f"MIN_PASSWORD_LENGTH must be >= 1, got {config.booking.min_password_length}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if not config.payment.enabled:
        logger.warning("PAYMENT_PUBLISHABLE_KEY not set; payment features are disabled")
    logger.info("Configuration loaded for API at %s", config.api.base_url)
    return config


# Singleton instance
settings = load_config()
