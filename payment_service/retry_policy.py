"""
Bounded retries with per-attempt timeouts around the payment gateway
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, Optional
import logging

from pydantic import ValidationError

from common.retry import PAYMENT_RETRY_CONFIG, RetryConfig, calculate_delay
from common.schemas import GatewayResponse, PaymentRequest
from common.tracing import get_trace_headers
from payment_service.gateway_client import GatewayClient
from payment_service.models import (
    Accepted,
    Declined,
    Exhausted,
    GatewayCallResult,
    GatewayOutcome,
    RetryOutcome,
    TransientFailure,
    TransportError,
)

logger = logging.getLogger(__name__)

def parse_gateway_response(body: str) -> GatewayOutcome:
    """Turn a 2xx response body into a conclusive outcome, or a transient failure if it is unusable"""
    if not body or not body.strip():
        return TransientFailure("empty response body")
    try:
        response = GatewayResponse.model_validate_json(body)
    except ValidationError as e:
        return TransientFailure(f"malformed response body: {e.errors()[0]['msg']}")
    if response.success:
        return Accepted(response.message or "")
    return Declined(response.message or "")

def classify(result: GatewayCallResult) -> GatewayOutcome:
    if isinstance(result, TransportError):
        return TransientFailure(result.cause)
    if not result.is_success_status:
        return TransientFailure(f"gateway returned status {result.status_code}")
    return parse_gateway_response(result.body)

class GatewayRetryPolicy:
    """Drives sequential gateway attempts until a conclusive answer or the budget runs out.

    Each attempt runs the blocking client call on the policy's own bounded
    thread pool and is abandoned once ``attempt_timeout`` expires; a hung
    gateway can therefore hold at most ``max_workers`` threads. An optional
    overall deadline (``timeout`` on ``execute``) bounds the whole loop: no
    attempt or backoff sleep is started that could not finish before it, and
    an attempt cut short by it ends the loop as cancelled.
    """

    def __init__(
        self,
        client: GatewayClient,
        config: RetryConfig = PAYMENT_RETRY_CONFIG,
        attempt_timeout: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_workers: int = 16,
    ):
        self.client = client
        self.config = config
        self.attempt_timeout = attempt_timeout
        self.max_workers = max_workers
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gateway")

    async def execute(self, request: PaymentRequest, timeout: Optional[float] = None) -> RetryOutcome:
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        last_failure = TransientFailure("no attempt made")

        for attempt in range(1, self.config.max_attempts + 1):
            attempt_timeout = self.attempt_timeout
            deadline_bound = False
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    return self._cancelled(attempt - 1, last_failure)
                if remaining < attempt_timeout:
                    attempt_timeout = remaining
                    deadline_bound = True

            logger.debug(f"Attempt {attempt} of {self.config.max_attempts} to send payment request")
            outcome = await self._attempt(request, attempt_timeout)
            if not isinstance(outcome, TransientFailure):
                return outcome

            last_failure = outcome
            logger.warning(f"Gateway attempt {attempt} failed: {outcome.cause}", extra={
                "account_id": request.account_id,
                "attempt": attempt,
            })
            if deadline is not None and (
                (outcome.timed_out and deadline_bound) or loop.time() >= deadline
            ):
                return self._cancelled(attempt, last_failure)
            if attempt == self.config.max_attempts:
                break

            delay = calculate_delay(attempt, self.config)
            if deadline is not None and loop.time() + delay >= deadline:
                return self._cancelled(attempt, last_failure)
            await self._sleep(delay)

        logger.error(f"Max retry attempts ({self.config.max_attempts}) reached for payment gateway: {last_failure.cause}")
        return Exhausted(attempts=self.config.max_attempts, cause=last_failure.cause)

    async def _attempt(self, request: PaymentRequest, attempt_timeout: float) -> GatewayOutcome:
        loop = asyncio.get_running_loop()
        headers = get_trace_headers()
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.client.call, request, attempt_timeout, headers),
                timeout=attempt_timeout,
            )
        except asyncio.TimeoutError:
            return TransientFailure(f"request timed out after {attempt_timeout:.2f}s", timed_out=True)
        return classify(result)

    def _cancelled(self, attempts: int, last_failure: TransientFailure) -> Exhausted:
        logger.warning(f"Caller deadline reached after {attempts} gateway attempt(s)")
        return Exhausted(attempts=attempts, cause=last_failure.cause, cancelled=True)

    def close(self):
        """Stop accepting attempts; threads still blocked on the gateway finish on their own"""
        self._executor.shutdown(wait=False)
        self.client.close()
