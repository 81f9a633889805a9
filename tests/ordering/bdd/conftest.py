"""Shared BDD fixtures and step definitions for carts, checkout and orders."""

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart
from ordering.catalog.product import Product
from ordering.checkout.placement import PlaceOrder
from ordering.exceptions import StorefrontError
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then

CUSTOMER = "user-001"


class Outcome:
    """Result of the last When step, or the business error it raised."""

    def __init__(self):
        self.result = None
        self.error = None

    def attempt(self, command):
        try:
            self.result = current_domain.process(command, asynchronous=False)
        except StorefrontError as exc:
            self.error = exc


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Product ids by name."""
    return {}


@pytest.fixture()
def outcome():
    return Outcome()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with {quantity:d} in stock'))
def _(products, register_product, name, price, quantity):
    products[name] = register_product(name=name, price=price, quantity=quantity)


@given(parsers.cfparse('the customer has {quantity:d} "{name}" in the cart'))
def _(products, name, quantity):
    current_domain.process(AddToCart(user_id=CUSTOMER, product_id=products[name], quantity=quantity), asynchronous=False)


@given(parsers.cfparse('the customer has placed an order for {quantity:d} "{name}"'), target_fixture="order_id")
def _(products, shipping_address, name, quantity):
    current_domain.process(AddToCart(user_id=CUSTOMER, product_id=products[name], quantity=quantity), asynchronous=False)
    return current_domain.process(
        PlaceOrder(user_id=CUSTOMER, shipping_address=shipping_address, payment_method="credit_card"),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" has {quantity:d} in stock'))
def _(products, name, quantity):
    assert current_domain.repository_for(Product).get(products[name]).inventory.quantity == quantity


@then(parsers.cfparse('the request fails with "{message}"'))
def _(outcome, message):
    assert outcome.error is not None
    assert outcome.error.message == message


@then(parsers.cfparse('the order is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).order_status == status


@then(parsers.cfparse('the payment is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).payment_status == status


@then("the customer has no active cart")
def _():
    assert current_domain.repository_for(ShoppingCart).active_for_user(CUSTOMER) is None


@then("the customer still has an active cart")
def _():
    assert current_domain.repository_for(ShoppingCart).active_for_user(CUSTOMER) is not None
