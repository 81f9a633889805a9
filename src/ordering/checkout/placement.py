"""Checkout: turns the customer's cart into a pending order.

Everything happens inside the single unit of work wrapping the handler:
the order is created, tracked stock is withdrawn and the cart is retired.
If another checkout commits a change to one of the same products first, the
commit fails its version check and the handler is re-run against fresh
state, where the stock check then fails for a product that ran out.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Dict, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.catalog.product import Product
from ordering.domain import logger, ordering
from ordering.exceptions import EmptyCart, ProductUnavailable
from ordering.inventory.ledger import InventoryLedger
from ordering.order.order import Address, Order, PaymentMethod


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_address = Dict(required=True)
    billing_address = Dict()
    payment_method = String(required=True, choices=PaymentMethod)
    notes = Text()


@ordering.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        if not command.shipping_address:
            raise ValidationError({"shipping_address": ["Shipping address and payment method are required"]})

        carts = current_domain.repository_for(ShoppingCart)
        cart = carts.active_for_user(command.user_id)
        if cart is None or not cart.items:
            raise EmptyCart("Cart is empty")

        # Re-validate every line against the live catalog
        product_repo = current_domain.repository_for(Product)
        products = []
        lines = []
        for item in cart.items:
            product = product_repo.get_or_none(item.product_id)
            if product is None:
                raise ProductUnavailable(f"Product {item.product_id} not found", product_id=str(item.product_id))
            if not product.is_active:
                raise ProductUnavailable(
                    f"Product {product.name} is no longer available",
                    product_id=str(product.id),
                )
            product.ensure_available(item.quantity)

            products.append(product)
            lines.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "unit_price": item.unit_price,
                    "quantity": item.quantity,
                }
            )

        shipping_address = Address.build(**command.shipping_address)
        billing_address = Address.build(**command.billing_address) if command.billing_address else None

        order = Order.place(
            user_id=command.user_id,
            lines=lines,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=command.payment_method,
            notes=command.notes,
        )

        ledger = InventoryLedger(order, products)
        ledger.withdraw()
        ledger.persist()

        cart.check_out()
        carts.add(cart)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(command.user_id),
            total=order.totals.total,
        )
        return str(order.id)
