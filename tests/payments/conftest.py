import pytest
from ordering.cart.items import AddToCart
from ordering.checkout.placement import PlaceOrder
from payments.gateway.fake_adapter import FakeGateway
from protean import current_domain


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def lamp(register_product):
    return register_product(name="Desk Lamp", price=30.0, quantity=5)


@pytest.fixture()
def order_id(lamp, shipping_address):
    """A pending order for two lamps placed by ``user-001`` (total 76.00)."""
    current_domain.process(AddToCart(user_id="user-001", product_id=lamp, quantity=2), asynchronous=False)
    return current_domain.process(
        PlaceOrder(user_id="user-001", shipping_address=shipping_address, payment_method="stripe"),
        asynchronous=False,
    )
