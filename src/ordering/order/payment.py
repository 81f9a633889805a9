"""Order payment lifecycle: commands and handler.

These commands record what the payment provider has already done; the
provider itself is only ever called by the payment bridge, outside any
unit of work. Confirmation and webhook notifications both end up here, so
``MarkOrderPaid`` and ``MarkOrderPaymentFailed`` must be safe to repeat.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.inventory.ledger import InventoryLedger, load_products
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPaymentIntent:
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)


@ordering.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkOrderPaymentFailed:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class RefundOrder:
    """Record a refund the payment provider has completed."""

    order_id = Identifier(required=True)
    refund_id = String(max_length=255)
    amount = Float(required=True, min_value=0.0)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordPaymentIntent)
    def record_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id)
        order.record_payment_intent(command.payment_intent_id)
        repo.add(order)

    @handle(MarkOrderPaid)
    def mark_order_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id)
        if not order.mark_paid():
            logger.info("payment_already_settled", order_id=str(order.id), payment_status=order.payment_status)
            return False

        repo.add(order)
        logger.info("order_paid", order_id=str(order.id), amount=order.totals.total)
        return True

    @handle(MarkOrderPaymentFailed)
    def mark_order_payment_failed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id)
        if not order.mark_failed():
            return False

        repo.add(order)
        logger.warning("payment_failed", order_id=str(order.id))
        return True

    @handle(RefundOrder)
    def refund_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id)

        restock = order.holds_stock
        order.refund(refund_id=command.refund_id, amount=command.amount, reason=command.reason)

        if restock:
            ledger = InventoryLedger(order, load_products(i.product_id for i in order.items))
            ledger.restore()
            ledger.persist()

        repo.add(order)
        logger.info("order_refunded", order_id=str(order.id), amount=command.amount, restocked=restock)
        return str(order.id)
