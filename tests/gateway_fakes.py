"""
Test doubles for the payment gateway seam
"""
import json
import threading
import time
from decimal import Decimal
from typing import Dict, List, Optional

import requests

from common.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from common.retry import RetryConfig
from payment_service.gateway_client import GatewayClient
from payment_service.ledger import AccountLedger
from payment_service.processor import PaymentProcessor
from payment_service.retry_policy import GatewayRetryPolicy

def make_response(status_code: int = 200, body: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response

def gateway_body(success: bool, message: str = "OK") -> str:
    return json.dumps({"success": success, "message": message})

def accepted() -> requests.Response:
    return make_response(200, gateway_body(True, "OK"))

def declined(message: str) -> requests.Response:
    return make_response(200, gateway_body(False, message))

class Hang:
    """Scripted step that blocks the calling thread before answering"""
    def __init__(self, seconds: float, then: Optional[requests.Response] = None):
        self.seconds = seconds
        self.then = then or accepted()

class FakeSession:
    """Stands in for requests.Session, replaying scripted steps.

    A step is a Response to return, an exception to raise, or a Hang. Once
    the script runs out the last step repeats.
    """

    def __init__(self, *steps):
        self.steps = list(steps) or [accepted()]
        self.calls: List[Dict] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def post(self, url, data=None, headers=None, timeout=None):
        with self._lock:
            index = min(len(self.calls), len(self.steps) - 1)
            self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
            step = self.steps[index]
        if isinstance(step, Hang):
            time.sleep(step.seconds)
            return step.then
        if isinstance(step, BaseException):
            raise step
        return step

    def close(self):
        pass

class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

class RecordingSleep:
    """Async sleep replacement that records requested delays without waiting"""
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)

GATEWAY_URL = "https://gateway.test/v1/payments"

def make_processor(
    session: FakeSession,
    balances: Optional[Dict[int, Decimal]] = None,
    clock: Optional[FakeClock] = None,
    sleep: Optional[RecordingSleep] = None,
    retry_config: Optional[RetryConfig] = None,
    attempt_timeout: float = 30.0,
) -> PaymentProcessor:
    ledger = AccountLedger(balances if balances is not None else {1: Decimal("5000"), 2: Decimal("0")})
    breaker = CircuitBreaker(
        "payment-gateway",
        CircuitBreakerConfig(failure_threshold=3, cooldown=60.0),
        clock=clock or FakeClock(),
    )
    policy = GatewayRetryPolicy(
        GatewayClient(GATEWAY_URL, session=session),
        config=retry_config or RetryConfig(max_attempts=3, base_delay=1.0),
        attempt_timeout=attempt_timeout,
        sleep=sleep or RecordingSleep(),
    )
    return PaymentProcessor(ledger, breaker, policy)
