"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.inventory.ledger import InventoryLedger, load_products
from ordering.order.order import Order


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier()  # Omitted for administrators


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for(command.order_id, user_id=command.requested_by)

        order.cancel()

        ledger = InventoryLedger(order, load_products(i.product_id for i in order.items))
        ledger.restore()
        ledger.persist()

        repo.add(order)
        logger.info("order_cancelled", order_id=str(order.id), order_number=order.order_number)
        return str(order.id)
