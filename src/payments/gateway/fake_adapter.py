"""Configurable fake payment gateway for development and testing.

Simulates a payment provider without any external calls. It can be told at
runtime to fail, and which status intent confirmations report, which makes
it useful for:
- Automated tests with predictable outcomes
- Development without real provider credentials

Webhook payloads are plain JSON ``{"id", "type", "intent_id", "order_id"}``
signed with the literal signature ``test-signature``, in the spirit of
Stripe's test mode.
"""

import json
from uuid import uuid4

from ordering.exceptions import PaymentProviderError, SignatureInvalid
from payments.gateway.port import (
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
    RefundResult,
    WebhookEvent,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.intent_status: str = "succeeded"
        self.calls: list[dict] = []
        self._amounts: dict[str, float] = {}

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        intent_status: str = "succeeded",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.intent_status = intent_status

    def create_intent(self, amount: float, currency: str, metadata: dict) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "metadata": dict(metadata),
            }
        )
        self._fail_if_configured()

        intent_id = f"pi_fake_{uuid4().hex[:12]}"
        self._amounts[intent_id] = amount
        return IntentResult(intent_id=intent_id, client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}")

    def confirm_intent(self, intent_id: str) -> ConfirmationResult:
        self.calls.append({"method": "confirm_intent", "intent_id": intent_id})
        self._fail_if_configured()

        return ConfirmationResult(status=self.intent_status, amount=self._amounts.get(intent_id, 0.0))

    def refund(self, intent_id: str, amount: float | None = None) -> RefundResult:
        self.calls.append({"method": "refund", "intent_id": intent_id, "amount": amount})
        self._fail_if_configured()

        captured = self._amounts.get(intent_id)
        if amount is not None and captured is not None and amount > captured:
            raise PaymentProviderError(
                "Refund amount exceeds the captured amount",
                intent_id=intent_id,
            )
        return RefundResult(
            refund_id=f"re_fake_{uuid4().hex[:12]}",
            amount=amount if amount is not None else (captured or 0.0),
            status="succeeded",
        )

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        self.calls.append({"method": "verify_webhook", "signature": signature})
        if signature != TEST_SIGNATURE:
            raise SignatureInvalid("Webhook signature verification failed")

        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise SignatureInvalid("Webhook payload is not valid JSON") from exc

        return WebhookEvent(
            event_id=body.get("id") or f"evt_fake_{uuid4().hex[:12]}",
            type=body.get("type", ""),
            intent_id=body.get("intent_id"),
            order_id=body.get("order_id"),
        )

    def _fail_if_configured(self) -> None:
        if not self.should_succeed:
            raise PaymentProviderError(self.failure_reason)
