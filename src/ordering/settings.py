"""Application settings for checkout and reconciliation, read from the environment.

Protean's own configuration (databases, brokers, event store) lives in
``domain.toml``; this module covers the knobs the domain code reads directly.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    payment_gateway: str = "fake"
    stripe_api_key: str = ""
    webhook_secret: str = "whsec_development"
    currency: str = "USD"

    gateway_timeout_seconds: float = 10.0
    gateway_max_attempts: int = 3
    gateway_backoff_seconds: float = 0.5

    resolution_max_attempts: int = 4
    resolution_backoff_seconds: float = 0.25

    compensation_max_attempts: int = 3
    compensation_backoff_seconds: float = 0.5

    placement_max_attempts: int = 3


def load_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults."""
    return Settings(
        environment=(os.getenv("PROTEAN_ENV") or "development").lower(),
        payment_gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
        stripe_api_key=os.getenv("STRIPE_API_KEY", ""),
        webhook_secret=os.getenv("PAYMENT_WEBHOOK_SECRET", "whsec_development"),
        currency=os.getenv("STORE_CURRENCY", "USD").upper(),
        gateway_timeout_seconds=_env_float("GATEWAY_TIMEOUT_SECONDS", 10.0),
        gateway_max_attempts=_env_int("GATEWAY_MAX_ATTEMPTS", 3),
        gateway_backoff_seconds=_env_float("GATEWAY_BACKOFF_SECONDS", 0.5),
        resolution_max_attempts=_env_int("WEBHOOK_RESOLUTION_ATTEMPTS", 4),
        resolution_backoff_seconds=_env_float("WEBHOOK_RESOLUTION_BACKOFF_SECONDS", 0.25),
        compensation_max_attempts=_env_int("COMPENSATION_MAX_ATTEMPTS", 3),
        compensation_backoff_seconds=_env_float("COMPENSATION_BACKOFF_SECONDS", 0.5),
        placement_max_attempts=_env_int("PLACEMENT_MAX_ATTEMPTS", 3),
    )
