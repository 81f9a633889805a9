"""Tests for the InventoryLedger domain service."""

import pytest
from ordering.catalog.product import Product
from ordering.exceptions import InsufficientInventory
from ordering.inventory.ledger import InventoryLedger
from ordering.order.order import Address, Order


def _product(name, quantity, track_quantity=True):
    return Product.create(
        name=name,
        sku=f"SKU-{name.upper()}",
        regular_price=25.0,
        quantity=quantity,
        track_quantity=track_quantity,
        low_stock_threshold=1,
    )


def _order(*lines):
    return Order.place(
        user_id="user-001",
        lines=[
            {"product_id": str(product.id), "name": product.name, "unit_price": 25.0, "quantity": quantity}
            for product, quantity in lines
        ],
        shipping_address=Address.build(
            first_name="Ada",
            last_name="Lovelace",
            address="12 Analytical Row",
            city="Springfield",
            state="IL",
            zip_code="62701",
        ),
        payment_method="credit_card",
    )


class TestWithdraw:
    def test_withdraws_every_line(self):
        lamp, bulb = _product("lamp", 5), _product("bulb", 10)
        order = _order((lamp, 2), (bulb, 4))

        InventoryLedger(order, [lamp, bulb]).withdraw()

        assert lamp.inventory.quantity == 3
        assert bulb.inventory.quantity == 6
        assert lamp.analytics.purchases == 2
        assert lamp.analytics.revenue == 50.0
        assert bulb.analytics.revenue == 100.0

    def test_untracked_products_only_book_the_sale(self):
        ebook = _product("ebook", 0, track_quantity=False)
        order = _order((ebook, 3))

        InventoryLedger(order, [ebook]).withdraw()

        assert ebook.inventory.quantity == 0
        assert ebook.analytics.purchases == 3

    def test_stock_never_goes_negative(self):
        lamp = _product("lamp", 1)
        order = _order((lamp, 2))

        with pytest.raises(InsufficientInventory):
            InventoryLedger(order, [lamp]).withdraw()
        assert lamp.inventory.quantity == 1


class TestRestore:
    def test_restore_reverses_withdraw(self):
        lamp, bulb = _product("lamp", 5), _product("bulb", 10)
        order = _order((lamp, 2), (bulb, 4))
        ledger = InventoryLedger(order, [lamp, bulb])

        ledger.withdraw()
        ledger.restore()

        assert lamp.inventory.quantity == 5
        assert bulb.inventory.quantity == 10
        assert lamp.analytics.purchases == 0
        assert bulb.analytics.revenue == 0.0
