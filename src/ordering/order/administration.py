"""Administrative order status changes: command and handler."""

from protean import handle
from protean.fields import Date, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.inventory.ledger import InventoryLedger, load_products
from ordering.order.order import Order, OrderStatus, PaymentStatus


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    order_status = String(choices=OrderStatus)
    payment_status = String(choices=PaymentStatus)
    tracking_number = String(max_length=255)
    estimated_delivery = Date()


@ordering.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id)

        cancelling = (
            command.order_status == OrderStatus.CANCELLED.value
            and order.order_status != OrderStatus.CANCELLED.value
        )

        order.set_status(
            order_status=command.order_status,
            payment_status=command.payment_status,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
        )

        if cancelling:
            ledger = InventoryLedger(order, load_products(i.product_id for i in order.items))
            ledger.restore()
            ledger.persist()

        repo.add(order)
        logger.info(
            "order_status_updated",
            order_id=str(order.id),
            order_status=order.order_status,
            payment_status=order.payment_status,
        )
        return str(order.id)
