"""
Payment processing: ledger, circuit breaker and gateway retries composed behind one entry point
"""
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
import logging

from common.circuit_breaker import Admission, CircuitBreaker, CircuitBreakerConfig
from common.error_handling import BusinessLogicError, ErrorCodes
from common.retry import RetryConfig
from common.schemas import PaymentRequest, PaymentResult
from common.tracing import Tracer, payment_tracer
from payment_service.gateway_client import GatewayClient
from payment_service.ledger import AccountLedger
from payment_service.models import Declined, Exhausted
from payment_service.retry_policy import GatewayRetryPolicy

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, float, str]

def to_decimal(amount: Amount) -> Optional[Decimal]:
    """Coerce an amount to a finite Decimal, or None if it is not a number"""
    if isinstance(amount, bool):
        return None
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None

class PaymentProcessor:
    def __init__(
        self,
        ledger: AccountLedger,
        circuit_breaker: CircuitBreaker,
        retry_policy: GatewayRetryPolicy,
        tracer: Tracer = payment_tracer,
    ):
        self.ledger = ledger
        self.circuit_breaker = circuit_breaker
        self.retry_policy = retry_policy
        self.tracer = tracer

    async def process(self, account_id: int, amount: Amount, timeout: Optional[float] = None) -> PaymentResult:
        """Debit `amount` from the account once the gateway accepts the payment.

        Never raises for business or upstream failures: every outcome comes back
        as a PaymentResult. An unexpected internal fault is counted as a breaker
        failure and reported as "Internal service error".
        """
        logger.info(f"Start processing payment for account {account_id}, amount {amount}")

        with self.tracer.start_span("process_payment") as span:
            span.add_tag("account_id", account_id)
            try:
                result = await self._process(account_id, amount, timeout)
            except Exception as e:
                span.set_error(e)
                result = self._internal_fault(account_id, e)
            span.add_tag("result.code", result.error_code or "OK")
            return result

    async def _process(self, account_id: int, amount: Amount, timeout: Optional[float]) -> PaymentResult:
        value = to_decimal(amount)
        if value is None:
            logger.warning(f"Non-numeric payment amount: {amount!r}")
            return PaymentResult.failed(ErrorCodes.VALIDATION_ERROR, "Amount must be a finite number")
        if value < 0:
            logger.warning(f"Negative payment amount: {value}")
            return PaymentResult.failed(ErrorCodes.VALIDATION_ERROR, "Amount must be non-negative")

        try:
            self.ledger.lookup(account_id)
        except BusinessLogicError as e:
            logger.warning(f"Account {account_id} not found")
            return PaymentResult.failed(e.code, e.message)

        if self.circuit_breaker.admit() is Admission.REJECTED:
            logger.warning(f"Circuit breaker is open, rejecting payment request for account {account_id}")
            return PaymentResult.failed(ErrorCodes.CIRCUIT_BREAKER_OPEN, "Service temporarily unavailable")

        outcome = await self.retry_policy.execute(PaymentRequest(account_id=account_id, amount=value), timeout=timeout)

        if isinstance(outcome, Exhausted):
            # A caller deadline says nothing about upstream health
            if not outcome.cancelled:
                self.circuit_breaker.record_failure()
            return PaymentResult.failed(ErrorCodes.GATEWAY_COMMUNICATION_FAILED, "Gateway communication failed")

        self.circuit_breaker.record_success()

        if isinstance(outcome, Declined):
            logger.warning(f"Payment gateway declined payment for account {account_id}: {outcome.message}")
            return PaymentResult.failed(ErrorCodes.GATEWAY_DECLINED, "Gateway failure: " + outcome.message)

        try:
            new_balance = self.ledger.debit(account_id, value)
        except BusinessLogicError as e:
            return PaymentResult.failed(e.code, e.message)

        logger.info(f"Payment successful. New balance: {new_balance}")
        return PaymentResult.success(new_balance)

    def _internal_fault(self, account_id: int, error: Exception) -> PaymentResult:
        logger.exception(f"Unexpected error processing payment for account {account_id}: {error}")
        self.circuit_breaker.record_failure()
        return PaymentResult.failed(ErrorCodes.INTERNAL_SERVER_ERROR, "Internal service error")

def build_processor(settings, session=None) -> PaymentProcessor:
    """Wire a processor with its own ledger, breaker and gateway client"""
    client = GatewayClient(settings.gateway_url, session=session)
    retry_policy = GatewayRetryPolicy(
        client,
        config=RetryConfig.from_settings(settings),
        attempt_timeout=settings.gateway_timeout_seconds,
        max_workers=settings.gateway_max_workers,
    )
    circuit_breaker = CircuitBreaker(
        "payment-gateway",
        CircuitBreakerConfig(
            failure_threshold=settings.circuit_failure_threshold,
            cooldown=settings.circuit_cooldown_seconds,
        ),
    )
    return PaymentProcessor(AccountLedger(settings.seed_accounts), circuit_breaker, retry_policy)
