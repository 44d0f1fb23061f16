"""
Retry utilities for handling transient failures
"""
import random
from typing import Optional

BACKOFF_LINEAR = "linear"
BACKOFF_EXPONENTIAL = "exponential"

class RetryConfig:
    """Configuration for retry behavior"""
    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        backoff: str = BACKOFF_LINEAR,
        exponential_base: float = 2.0,
        jitter: bool = False,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff not in (BACKOFF_LINEAR, BACKOFF_EXPONENTIAL):
            raise ValueError(f"Unknown backoff strategy: {backoff}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff = backoff
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            backoff=settings.retry_backoff,
        )

def calculate_delay(attempt: int, config: RetryConfig, rng: Optional[random.Random] = None) -> float:
    """Delay to wait after the given (1-based) failed attempt"""
    if config.backoff == BACKOFF_EXPONENTIAL:
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    else:
        delay = config.base_delay * attempt
    delay = min(delay, config.max_delay)

    if config.jitter:
        # Spread retries of concurrent callers
        delay *= (0.5 + (rng or random).random() * 0.5)

    return delay

# Reference gateway policy: three attempts, one second times attempt number
PAYMENT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=30.0,
    backoff=BACKOFF_LINEAR,
)
