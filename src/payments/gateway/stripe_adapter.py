"""Stripe payment gateway adapter.

Uses the stripe-python SDK to:
- Create PaymentIntents (amounts converted to cents)
- Retrieve PaymentIntents to confirm their status
- Refund captured PaymentIntents
- Verify webhook signatures with the endpoint's signing secret

Every SDK failure, including network timeouts, is re-raised as
``PaymentProviderError``; nothing is retried beyond the SDK's own network
retries, which are disabled unless configured.
"""

import stripe

from ordering.domain import logger
from ordering.exceptions import PaymentProviderError, SignatureInvalid
from payments.gateway.port import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
    RefundResult,
    WebhookEvent,
)

_EVENT_TYPES = {
    "payment_intent.succeeded": PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": PAYMENT_FAILED,
}


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def from_cents(amount: int | None) -> float:
    return round((amount or 0) / 100, 2)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: float = 10,
        max_network_retries: int = 0,
        client: stripe.StripeClient | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.client = client or stripe.StripeClient(
            api_key,
            max_network_retries=max_network_retries,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    def create_intent(self, amount: float, currency: str, metadata: dict) -> IntentResult:
        try:
            intent = self.client.v1.payment_intents.create(
                params={
                    "amount": to_cents(amount),
                    "currency": currency,
                    "metadata": {key: str(value) for key, value in metadata.items()},
                    "automatic_payment_methods": {"enabled": True},
                }
            )
        except stripe.StripeError as exc:
            raise self._provider_error("create_intent", exc) from exc

        return IntentResult(intent_id=intent.id, client_secret=intent.client_secret)

    def confirm_intent(self, intent_id: str) -> ConfirmationResult:
        try:
            intent = self.client.v1.payment_intents.retrieve(intent_id)
        except stripe.StripeError as exc:
            raise self._provider_error("confirm_intent", exc) from exc

        return ConfirmationResult(status=intent.status, amount=from_cents(intent.amount))

    def refund(self, intent_id: str, amount: float | None = None) -> RefundResult:
        params = {"payment_intent": intent_id}
        if amount is not None:
            params["amount"] = to_cents(amount)

        try:
            refund = self.client.v1.refunds.create(params=params)
        except stripe.StripeError as exc:
            raise self._provider_error("refund", exc) from exc

        return RefundResult(refund_id=refund.id, amount=from_cents(refund.amount), status=refund.status)

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        try:
            event = self.client.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalid("Webhook signature verification failed") from exc
        except ValueError as exc:
            raise SignatureInvalid("Webhook payload is not valid JSON") from exc

        obj = event.data.object.to_dict()
        intent_id = obj.get("id") if event.type.startswith("payment_intent.") else None
        return WebhookEvent(
            event_id=event.id,
            type=_EVENT_TYPES.get(event.type, event.type),
            intent_id=intent_id,
            order_id=(obj.get("metadata") or {}).get("orderId"),
        )

    def _provider_error(self, operation: str, exc: stripe.StripeError) -> PaymentProviderError:
        logger.error(
            "stripe_request_failed",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
            request_id=getattr(exc, "request_id", None),
        )
        return PaymentProviderError(
            exc.user_message or "Payment provider request failed",
            operation=operation,
        )
