import os
from decimal import Decimal
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_SEED_ACCOUNTS = {1: Decimal("5000"), 2: Decimal("0")}

class Settings(BaseSettings):
    gateway_url: str = os.getenv("PAYMENT_GATEWAY_URL", "https://api.payment-gateway.com/v1/payments")
    gateway_timeout_seconds: float = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "30"))
    gateway_max_workers: int = int(os.getenv("GATEWAY_MAX_WORKERS", "16"))

    retry_max_attempts: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    retry_max_delay: float = float(os.getenv("RETRY_MAX_DELAY", "30.0"))
    retry_backoff: str = os.getenv("RETRY_BACKOFF", "linear")  # linear|exponential

    circuit_failure_threshold: int = int(os.getenv("CIRCUIT_FAILURE_THRESHOLD", "3"))
    circuit_cooldown_seconds: float = float(os.getenv("CIRCUIT_COOLDOWN_SECONDS", "60"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    seed_accounts: Dict[int, Decimal] = Field(default_factory=lambda: dict(DEFAULT_SEED_ACCOUNTS))

settings = Settings()
