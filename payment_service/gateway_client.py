"""
HTTP client for the upstream payment gateway
"""
from typing import Dict, Optional
import logging

import requests

from common.schemas import PaymentRequest
from payment_service.models import GatewayCallResult, RawResponse, TransportError

logger = logging.getLogger(__name__)

class GatewayClient:
    """Issues one POST per call and reports what came back, without interpreting it.

    Transport problems (connection errors, read timeouts, invalid URLs...) are
    returned as ``TransportError`` values rather than raised, so the caller can
    treat them the same way as unusable responses.
    """

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        self.url = url
        self.session = session or requests.Session()

    def call(self, request: PaymentRequest, deadline: float,
             headers: Optional[Dict[str, str]] = None) -> GatewayCallResult:
        """POST the request, giving up on the socket after `deadline` seconds"""
        try:
            response = self.session.post(
                self.url,
                data=request.model_dump_json(by_alias=True),
                headers={"Content-Type": "application/json", **(headers or {})},
                timeout=deadline,
            )
        except requests.RequestException as e:
            return TransportError(cause=f"{type(e).__name__}: {e}")

        logger.debug(f"Gateway responded with status {response.status_code}: {response.text!r}")
        return RawResponse(status_code=response.status_code, body=response.text)

    def close(self):
        self.session.close()
