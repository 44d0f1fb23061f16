"""
Error taxonomy for the payment core and standardized HTTP error responses
"""
from typing import Optional, Dict, Any
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
import logging
import time

from common.tracing import get_current_trace_id

logger = logging.getLogger(__name__)

class ErrorDetail(BaseModel):
    """Detailed error information"""
    code: str
    message: str
    field: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

class StandardErrorResponse(BaseModel):
    """Standard error response format"""
    success: bool = False
    error: ErrorDetail
    timestamp: float
    trace_id: Optional[str] = None

class ErrorCodes:
    """Standard error codes"""
    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # Business Logic
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    GATEWAY_DECLINED = "GATEWAY_DECLINED"

    # Upstream / capacity
    CIRCUIT_BREAKER_OPEN = "CIRCUIT_BREAKER_OPEN"
    GATEWAY_COMMUNICATION_FAILED = "GATEWAY_COMMUNICATION_FAILED"

    # System Errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

ERROR_STATUS_CODES = {
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.INVALID_AMOUNT: 400,
    ErrorCodes.INSUFFICIENT_FUNDS: 400,
    ErrorCodes.GATEWAY_DECLINED: 402,
    ErrorCodes.ACCOUNT_NOT_FOUND: 404,
    ErrorCodes.GATEWAY_COMMUNICATION_FAILED: 502,
    ErrorCodes.CIRCUIT_BREAKER_OPEN: 503,
    ErrorCodes.INTERNAL_SERVER_ERROR: 500,
}

class BusinessLogicError(Exception):
    """Custom exception for business logic errors"""
    def __init__(self, code: str, message: str, field: str = None, context: Dict[str, Any] = None):
        self.code = code
        self.message = message
        self.field = field
        self.context = context or {}
        super().__init__(message)

class AccountNotFoundError(BusinessLogicError):
    def __init__(self, account_id: int):
        super().__init__(ErrorCodes.ACCOUNT_NOT_FOUND, "Account not found",
                         field="account_id", context={"account_id": account_id})

class InsufficientFundsError(BusinessLogicError):
    def __init__(self, account_id: int):
        super().__init__(ErrorCodes.INSUFFICIENT_FUNDS, "Insufficient funds",
                         field="amount", context={"account_id": account_id})

class InvalidAmountError(BusinessLogicError):
    def __init__(self, message: str = "Amount must be non-negative"):
        super().__init__(ErrorCodes.INVALID_AMOUNT, message, field="amount")

def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    field: str = None,
    context: Dict[str, Any] = None,
    trace_id: str = None,
) -> JSONResponse:
    """Create standardized error response"""

    error_detail = ErrorDetail(
        code=error_code,
        message=message,
        field=field,
        context=context
    )

    error_response = StandardErrorResponse(
        error=error_detail,
        timestamp=time.time(),
        trace_id=trace_id or get_current_trace_id(),
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump()
    )

def payment_failure_response(result) -> JSONResponse:
    """Render a failed PaymentResult with the status code of its error code"""
    code = result.error_code or ErrorCodes.INTERNAL_SERVER_ERROR
    return create_error_response(
        error_code=code,
        message=result.error_message,
        status_code=ERROR_STATUS_CODES.get(code, 500),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body validation exceptions"""

    first_error = exc.errors()[0]
    field = ".".join(str(loc) for loc in first_error.get("loc", []))
    message = first_error.get("msg", "Validation error")

    logger.warning(f"Validation error: {message} on field {field}", extra={
        "path": request.url.path,
    })

    return create_error_response(
        error_code=ErrorCodes.VALIDATION_ERROR,
        message=f"Validation error on field '{field}': {message}",
        status_code=400,
        field=field,
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""

    logger.exception(f"Unexpected error on {request.url.path}: {exc}")

    # Internal details stay in the log
    return create_error_response(
        error_code=ErrorCodes.INTERNAL_SERVER_ERROR,
        message="Internal service error",
        status_code=500,
    )

def add_error_handlers(app):
    """Add error handlers to FastAPI app"""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
