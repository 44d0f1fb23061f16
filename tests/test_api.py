"""
HTTP surface tests for the payment service
"""
import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from payment_service.main import create_app
from gateway_fakes import FakeSession, accepted, declined, make_response, make_processor


class TestPaymentAPI(unittest.TestCase):

    def client(self, *steps):
        self.session = FakeSession(*steps)
        self.processor = make_processor(self.session)
        return TestClient(create_app(self.processor))

    def test_health(self):
        response = self.client().get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True, "service": "payment", "gateway_circuit": "CLOSED"})

    def test_successful_payment(self):
        client = self.client(accepted())

        response = client.post("/payments", json={"accountId": 1, "amount": 100})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["is_success"])
        self.assertEqual(Decimal(body["new_balance"]), Decimal("4900"))
        self.assertIn("X-Trace-ID", response.headers)

        balance = client.get("/accounts/1").json()
        self.assertEqual(balance, {"account_id": 1, "balance": "4900"})

    def test_trace_id_is_forwarded_to_gateway(self):
        client = self.client(accepted())

        response = client.post(
            "/payments", json={"account_id": 1, "amount": "5"}, headers={"X-Trace-ID": "trace-123"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-Trace-ID"], "trace-123")
        self.assertEqual(self.session.calls[0]["headers"]["X-Trace-ID"], "trace-123")

    def test_failures_map_to_status_codes(self):
        cases = [
            ({"accountId": 1, "amount": -5}, accepted(), 400, "VALIDATION_ERROR", "Amount must be non-negative"),
            ({"accountId": 999, "amount": 5}, accepted(), 404, "ACCOUNT_NOT_FOUND", "Account not found"),
            ({"accountId": 2, "amount": 5}, accepted(), 400, "INSUFFICIENT_FUNDS", "Insufficient funds"),
            ({"accountId": 1, "amount": 5}, declined("Card blocked"), 402, "GATEWAY_DECLINED", "Gateway failure: Card blocked"),
            ({"accountId": 1, "amount": 5}, make_response(500, ""), 502, "GATEWAY_COMMUNICATION_FAILED", "Gateway communication failed"),
        ]
        for payload, step, status, code, message in cases:
            with self.subTest(code=code):
                response = self.client(step).post("/payments", json=payload)
                self.assertEqual(response.status_code, status)
                body = response.json()
                self.assertFalse(body["success"])
                self.assertEqual(body["error"]["code"], code)
                self.assertEqual(body["error"]["message"], message)

    def test_open_breaker_returns_503(self):
        client = self.client(make_response(500, ""))
        for _ in range(3):
            client.post("/payments", json={"accountId": 1, "amount": 1})

        response = client.post("/payments", json={"accountId": 1, "amount": 1})

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"]["code"], "CIRCUIT_BREAKER_OPEN")
        self.assertEqual(client.get("/circuit-breaker").json()["state"], "OPEN")
        self.assertEqual(self.session.call_count, 9)

    def test_invalid_body_is_rejected(self):
        response = self.client().post("/payments", json={"accountId": "one", "amount": 5})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")
        self.assertEqual(self.session.call_count, 0)

    def test_unknown_account_balance(self):
        response = self.client().get("/accounts/404")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "ACCOUNT_NOT_FOUND")


if __name__ == "__main__":
    unittest.main()
