"""
Circuit Breaker guarding calls to an unreliable upstream dependency
"""
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

class CircuitState(Enum):
    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"      # Failing fast until the cool-down elapses

class Admission(Enum):
    ALLOWED = "ALLOWED"
    REJECTED = "REJECTED"

@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker"""
    failure_threshold: int = 3   # Consecutive failures before opening
    cooldown: float = 60.0       # Seconds to stay open after the last failure

def is_open(failure_count: int, last_failure_time: Optional[float], now: float,
            config: CircuitBreakerConfig) -> bool:
    """Open/closed decision as a pure function of the breaker state and the clock"""
    if failure_count < config.failure_threshold or last_failure_time is None:
        return False
    return now - last_failure_time < config.cooldown

class CircuitBreaker:
    """Two-state circuit breaker.

    An open breaker closes lazily: the first admission check after the
    cool-down resets the failure count and lets the call through. All
    state transitions happen under a single lock, so concurrent callers
    never observe a half-applied reset.
    """

    def __init__(self, name: str, config: CircuitBreakerConfig,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None

    @property
    def status(self) -> CircuitState:
        with self._lock:
            if is_open(self.failure_count, self.last_failure_time, self._clock(), self.config):
                return CircuitState.OPEN
            return CircuitState.CLOSED

    def admit(self) -> Admission:
        """Decide whether a new upstream call may be attempted"""
        with self._lock:
            now = self._clock()
            if is_open(self.failure_count, self.last_failure_time, now, self.config):
                logger.warning(
                    f"Circuit breaker {self.name} is open. Failures: {self.failure_count}, "
                    f"time since last failure: {now - self.last_failure_time:.1f}s"
                )
                return Admission.REJECTED
            if self.failure_count >= self.config.failure_threshold:
                logger.info(f"Circuit breaker {self.name} cool-down expired, closing")
                self._reset()
            return Admission.ALLOWED

    def record_success(self):
        """Record a conclusive upstream answer"""
        with self._lock:
            if self.failure_count:
                self._reset()

    def record_failure(self):
        """Record a failed upstream call"""
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = self._clock()
            logger.warning(f"Circuit breaker {self.name} recorded failure. Consecutive failures: {self.failure_count}")
            if self.failure_count == self.config.failure_threshold:
                logger.warning(f"Circuit breaker {self.name} opened after {self.failure_count} failures")

    def _reset(self):
        self.failure_count = 0
        self.last_failure_time = None
        logger.debug(f"Circuit breaker {self.name} reset failure counter")

    def get_state(self) -> dict:
        """Get current circuit breaker state"""
        with self._lock:
            now = self._clock()
            state = CircuitState.OPEN if is_open(
                self.failure_count, self.last_failure_time, now, self.config
            ) else CircuitState.CLOSED
            return {
                "name": self.name,
                "state": state.value,
                "failure_count": self.failure_count,
                "failure_threshold": self.config.failure_threshold,
                "cooldown_seconds": self.config.cooldown,
                "last_failure_time": self.last_failure_time,
                "seconds_since_last_failure": (
                    None if self.last_failure_time is None else now - self.last_failure_time
                ),
            }
