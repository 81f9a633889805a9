"""Integration tests for Payment API endpoints via TestClient."""

import json

from ordering.order.order import Order
from payments.gateway.fake_adapter import TEST_SIGNATURE
from payments.gateway.port import PAYMENT_SUCCEEDED
from protean import current_domain


def _intent(client, order_id, headers):
    return client.post("/payments/create-payment-intent", json={"orderId": order_id}, headers=headers)


def _pay(client, order_id, headers):
    intent_id = _intent(client, order_id, headers).json()["data"]["paymentIntentId"]
    return client.post(
        "/payments/confirm-payment",
        json={"orderId": order_id, "paymentIntentId": intent_id},
        headers=headers,
    )


class TestPaymentIntent:
    def test_create_intent(self, client, auth_headers, order_id):
        response = _intent(client, order_id, auth_headers())

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["clientSecret"].startswith(data["paymentIntentId"])
        assert current_domain.repository_for(Order).get(order_id).payment_intent_id == data["paymentIntentId"]

    def test_requires_authentication(self, client, order_id):
        assert _intent(client, order_id, {}).status_code == 401

    def test_other_customers_order(self, client, auth_headers, order_id):
        response = _intent(client, order_id, auth_headers("user-002"))

        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_provider_failure(self, client, auth_headers, order_id):
        client.app.state.gateway.configure(should_succeed=False, failure_reason="Card declined")

        response = _intent(client, order_id, auth_headers())

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert response.json()["message"] == "Card declined"


class TestConfirmPayment:
    def test_confirm_marks_order_paid(self, client, auth_headers, order_id):
        response = _pay(client, order_id, auth_headers())

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment succeeded"
        assert body["data"]["paymentStatus"] == "paid"
        assert body["data"]["orderStatus"] == "confirmed"
        assert body["data"]["amount"] == 76.0

    def test_confirm_without_intent(self, client, auth_headers, order_id):
        response = client.post(
            "/payments/confirm-payment",
            json={"orderId": order_id, "paymentIntentId": "pi_fake_stranger"},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No payment intent found for this order"
        assert current_domain.repository_for(Order).get(order_id).payment_status == "pending"

    def test_status(self, client, auth_headers, order_id):
        _pay(client, order_id, auth_headers())

        response = client.get(f"/payments/status/{order_id}", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["data"]["paymentStatus"] == "paid"
        assert response.json()["data"]["paidAt"] is not None

    def test_admin_sees_any_status(self, client, auth_headers, order_id):
        response = client.get(f"/payments/status/{order_id}", headers=auth_headers("admin-001", role="admin"))

        assert response.status_code == 200
        assert response.json()["data"]["orderId"] == order_id


class TestRefund:
    def test_refund_paid_order(self, client, auth_headers, order_id):
        _pay(client, order_id, auth_headers())

        response = client.post(
            "/payments/refund",
            json={"orderId": order_id, "reason": "Changed my mind"},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Refund processed successfully"
        assert response.json()["data"]["amount"] == 76.0
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_status == "refunded"
        assert order.order_status == "cancelled"

    def test_refund_of_unpaid_order(self, client, auth_headers, order_id):
        response = client.post("/payments/refund", json={"orderId": order_id}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["message"] == "Order is not paid"

    def test_non_positive_amount(self, client, auth_headers, order_id):
        response = client.post("/payments/refund", json={"orderId": order_id, "amount": 0}, headers=auth_headers())

        assert response.status_code == 400


class TestWebhook:
    def _deliver(self, client, payload, signature=TEST_SIGNATURE):
        return client.post(
            "/payments/webhook",
            content=json.dumps(payload).encode(),
            headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
        )

    def test_acknowledges_and_applies(self, client, auth_headers, order_id):
        intent_id = _intent(client, order_id, auth_headers()).json()["data"]["paymentIntentId"]

        response = self._deliver(
            client,
            {"id": "evt_001", "type": PAYMENT_SUCCEEDED, "intent_id": intent_id, "order_id": order_id},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert current_domain.repository_for(Order).get(order_id).payment_status == "paid"

    def test_unknown_order_is_acknowledged(self, client):
        response = self._deliver(client, {"id": "evt_002", "type": PAYMENT_SUCCEEDED, "order_id": "ord-404"})

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_bad_signature(self, client, order_id):
        response = self._deliver(
            client,
            {"id": "evt_003", "type": PAYMENT_SUCCEEDED, "order_id": order_id},
            signature="forged",
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Webhook signature verification failed"
        assert current_domain.repository_for(Order).get(order_id).payment_status == "pending"
