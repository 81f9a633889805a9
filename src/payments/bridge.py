"""Payment bridge: connects orders to the payment provider.

The provider is called outside any unit of work; what it reports is then
recorded on the order through the ordering commands. Intent confirmation
and webhook notifications converge on the same ``MarkOrderPaid`` /
``MarkOrderPaymentFailed`` commands, which are idempotent, so a redelivered
or late notification never applies twice.
"""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.exceptions import InvalidTransition
from ordering.order.order import Order, PaymentStatus
from ordering.order.payment import (
    MarkOrderPaid,
    MarkOrderPaymentFailed,
    RecordPaymentIntent,
    RefundOrder,
)
from ordering.shared.totals import round_money
from payments.gateway.port import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
    RefundResult,
    WebhookEvent,
)

INTENT_SUCCEEDED = "succeeded"
INTENT_REQUIRES_PAYMENT_METHOD = "requires_payment_method"


class PaymentBridge:
    def __init__(self, gateway: PaymentGateway, currency: str = "usd") -> None:
        self.gateway = gateway
        self.currency = currency

    @property
    def orders(self):
        return current_domain.repository_for(Order)

    def create_intent(self, order_id, requested_by=None) -> IntentResult:
        """Open a payment intent for the order's total and remember it on the order."""
        order = self.orders.get_for(order_id, user_id=requested_by)
        if PaymentStatus(order.payment_status) != PaymentStatus.PENDING:
            raise InvalidTransition("Order payment is not pending")

        intent = self.gateway.create_intent(
            amount=order.totals.total,
            currency=self.currency,
            metadata={
                "orderId": str(order.id),
                "orderNumber": order.order_number,
                "userId": str(order.user_id),
            },
        )
        current_domain.process(
            RecordPaymentIntent(order_id=str(order.id), payment_intent_id=intent.intent_id),
            asynchronous=False,
        )
        logger.info("payment_intent_created", order_id=str(order.id), payment_intent_id=intent.intent_id)
        return intent

    def confirm_payment(self, order_id, payment_intent_id, requested_by=None) -> ConfirmationResult:
        """Ask the provider how the intent ended and record the outcome on the order."""
        order = self.orders.get_for(order_id, user_id=requested_by)
        if not order.payment_intent_id:
            raise InvalidTransition("No payment intent found for this order")
        if order.payment_intent_id != payment_intent_id:
            raise ValidationError({"payment_intent_id": ["Payment intent does not belong to this order"]})

        confirmation = self.gateway.confirm_intent(payment_intent_id)
        if confirmation.status == INTENT_SUCCEEDED:
            if round_money(confirmation.amount) != round_money(order.totals.total):
                logger.warning(
                    "payment_amount_mismatch",
                    order_id=str(order.id),
                    captured=confirmation.amount,
                    total=order.totals.total,
                )
                raise ValidationError({"amount": ["Payment amount does not match the order total"]})
            current_domain.process(MarkOrderPaid(order_id=str(order.id)), asynchronous=False)
        elif confirmation.status == INTENT_REQUIRES_PAYMENT_METHOD:
            current_domain.process(MarkOrderPaymentFailed(order_id=str(order.id)), asynchronous=False)
        else:
            logger.info("payment_still_in_progress", order_id=str(order.id), status=confirmation.status)
        return confirmation

    def refund(self, order_id, amount=None, reason=None, requested_by=None) -> RefundResult:
        """Refund a paid order at the provider, then cancel it and release its stock."""
        order = self.orders.get_for(order_id, user_id=requested_by)
        order.ensure_refundable()

        result = self.gateway.refund(order.payment_intent_id, amount)
        current_domain.process(
            RefundOrder(
                order_id=str(order.id),
                refund_id=result.refund_id,
                amount=result.amount,
                reason=reason,
            ),
            asynchronous=False,
        )
        return result

    def status(self, order_id, requested_by=None) -> Order:
        return self.orders.get_for(order_id, user_id=requested_by)

    def handle_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify a provider notification and apply it to its order.

        Notifications of other types, or for orders this store does not know,
        are acknowledged without effect.
        """
        event = self.gateway.verify_webhook(payload, signature)
        log = logger.bind(event_id=event.event_id, event_type=event.type)

        if event.type not in (PAYMENT_SUCCEEDED, PAYMENT_FAILED):
            log.info("webhook_ignored")
            return event

        order = self._order_for(event)
        if order is None:
            log.warning("webhook_order_not_found", order_id=event.order_id, intent_id=event.intent_id)
            return event

        command_cls = MarkOrderPaid if event.type == PAYMENT_SUCCEEDED else MarkOrderPaymentFailed
        try:
            applied = current_domain.process(command_cls(order_id=str(order.id)), asynchronous=False)
        except InvalidTransition as exc:
            # Provider state the order can no longer accept, e.g. payment for a cancelled order
            log.warning("webhook_rejected_by_order", order_id=str(order.id), reason=exc.message)
            return event

        log.info("webhook_processed", order_id=str(order.id), applied=bool(applied))
        return event

    def _order_for(self, event: WebhookEvent) -> Order | None:
        if event.order_id:
            order = self.orders.get_or_none(event.order_id)
            if order is not None:
                return order
        if event.intent_id:
            return self.orders.find_by_payment_intent(event.intent_id)
        return None
