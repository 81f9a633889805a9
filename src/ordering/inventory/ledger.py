"""Inventory ledger: moves stock and sales analytics between products and an order.

Checkout withdraws each line's quantity from its product and books the line
as revenue; cancellation and refunds of unshipped orders restore exactly
what was withdrawn. Untracked products keep their stock level but still
record the sale.

The ledger mutates the loaded aggregates only. The caller persists the
products in the same unit of work as the order, so the stock movement and
the order change commit together or not at all.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.catalog.product import Product
from ordering.domain import logger, ordering
from ordering.order.order import Order


def load_products(product_ids) -> list[Product]:
    repo = current_domain.repository_for(Product)
    return [repo.get(product_id) for product_id in dict.fromkeys(str(pid) for pid in product_ids)]


@ordering.domain_service(part_of=[Order, Product])
class InventoryLedger:
    def __init__(self, order, products):
        super().__init__(order, *products)
        self.order = order
        self.products = {str(product.id): product for product in products}

    @invariant.post
    def tracked_stock_cannot_go_negative(self):
        for product in self.products.values():
            if product.inventory.track_quantity and product.inventory.quantity < 0:
                raise ValidationError({"inventory": [f"Stock of {product.name} cannot go negative"]})

    def withdraw(self):
        """Take every order line out of stock and book it as a sale."""
        for item in self.order.items:
            product = self.products[str(item.product_id)]
            product.withdraw(item.quantity, item.line_total)

            if product.is_low_stock:
                logger.warning(
                    "low_stock",
                    product_id=str(product.id),
                    sku=product.sku,
                    quantity=product.inventory.quantity,
                    threshold=product.inventory.low_stock_threshold,
                )

    def restore(self):
        """Return every order line to stock and reverse its booked sale."""
        for item in self.order.items:
            self.products[str(item.product_id)].restore(item.quantity, item.line_total)

        logger.info("inventory_restored", order_id=str(self.order.id), lines=len(self.order.items))

    def persist(self):
        repo = current_domain.repository_for(Product)
        for product in self.products.values():
            repo.add(product)
