#!/usr/bin/env python3
"""
Payment Service
Debits local accounts after the upstream payment gateway accepts the payment
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.error_handling import ErrorCodes, add_error_handlers, create_error_response, payment_failure_response
from common.schemas import PaymentRequest
from common.settings import settings
from common.tracing import payment_tracer, tracing_middleware
from payment_service.processor import PaymentProcessor, build_processor

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

def create_app(processor: Optional[PaymentProcessor] = None) -> FastAPI:
    app = FastAPI(title="Payment Service", version="1.0.0")
    app.state.processor = processor or build_processor(settings)
    add_error_handlers(app)

    @app.middleware("http")
    async def add_tracing(request: Request, call_next):
        return await tracing_middleware(request, call_next, payment_tracer)

    @app.post("/payments")
    async def create_payment(payment: PaymentRequest, request: Request):
        result = await request.app.state.processor.process(payment.account_id, payment.amount)
        if not result.is_success:
            return payment_failure_response(result)
        return JSONResponse(content=result.model_dump(mode="json"))

    @app.get("/accounts/{account_id}")
    async def get_account(account_id: int, request: Request):
        balances = request.app.state.processor.ledger.balances()
        if account_id not in balances:
            return create_error_response(ErrorCodes.ACCOUNT_NOT_FOUND, "Account not found", status_code=404)
        return {"account_id": account_id, "balance": str(balances[account_id])}

    @app.get("/circuit-breaker")
    async def circuit_breaker_state(request: Request):
        return request.app.state.processor.circuit_breaker.get_state()

    @app.get("/health")
    async def health(request: Request):
        state = request.app.state.processor.circuit_breaker.get_state()
        return {"ok": True, "service": "payment", "gateway_circuit": state["state"]}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8009)
