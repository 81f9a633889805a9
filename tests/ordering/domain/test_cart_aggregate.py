"""Tests for the ShoppingCart aggregate: ownership, line items, totals and retirement."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.cart import CART_TTL, CartStatus, ShoppingCart
from ordering.cart.events import (
    CartCleared,
    CartExpired,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CartsMerged,
)
from ordering.exceptions import InvalidQuantity, NotFound
from protean.exceptions import ValidationError


def _cart(**owner):
    cart = ShoppingCart.create(**(owner or {"user_id": "user-001"}))
    cart._events.clear()
    return cart


class TestCartCreation:
    def test_create_user_cart(self):
        cart = ShoppingCart.create(user_id="user-001")
        assert str(cart.user_id) == "user-001"
        assert cart.session_id is None
        assert cart.status == CartStatus.ACTIVE.value
        assert len(cart.items) == 0
        assert cart.totals.total == 0.0

    def test_create_guest_cart(self):
        cart = ShoppingCart.create(session_id="sess-001")
        assert cart.session_id == "sess-001"
        assert cart.user_id is None

    def test_expires_a_week_after_creation(self):
        cart = ShoppingCart.create(user_id="user-001")
        assert cart.expires_at - cart.created_at == CART_TTL

    def test_needs_an_owner(self):
        with pytest.raises(ValidationError) as exc:
            ShoppingCart.create()
        assert "owner" in exc.value.messages

    def test_cannot_have_two_owners(self):
        with pytest.raises(ValidationError):
            ShoppingCart.create(user_id="user-001", session_id="sess-001")


class TestAddItem:
    def test_add_new_line(self):
        cart = _cart()
        cart.add_item("prod-001", 2, 60.0)

        assert len(cart.items) == 1
        item = cart.items[0]
        assert item.quantity == 2
        assert item.unit_price == 60.0
        assert item.line_total == 120.0

    def test_totals_follow_every_mutation(self):
        cart = _cart()
        cart.add_item("prod-001", 2, 60.0)
        assert cart.totals.to_dict() == {"subtotal": 120.0, "tax": 12.0, "shipping": 0.0, "total": 132.0}

        cart.update_item_quantity("prod-001", 1)
        assert cart.totals.to_dict() == {"subtotal": 60.0, "tax": 6.0, "shipping": 10.0, "total": 76.0}

    def test_same_product_twice_makes_one_line(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 20.0)
        cart.add_item("prod-001", 1, 20.0)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2
        assert cart.totals.to_dict() == {"subtotal": 40.0, "tax": 4.0, "shipping": 10.0, "total": 54.0}

    def test_existing_line_keeps_its_snapshot_price(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 20.0)
        cart.add_item("prod-001", 2, 25.0)

        assert cart.items[0].unit_price == 20.0
        assert cart.items[0].line_total == 60.0

    def test_quantity_must_be_positive(self):
        cart = _cart()
        with pytest.raises(InvalidQuantity):
            cart.add_item("prod-001", 0, 20.0)
        assert len(cart.items) == 0

    def test_raises_item_added_event(self):
        cart = _cart()
        cart.add_item("prod-001", 3, 10.0)

        assert len(cart._events) == 1
        event = cart._events[0]
        assert isinstance(event, CartItemAdded)
        assert event.quantity == 3
        assert event.cart_total == cart.totals.total

    def test_adding_pushes_expiry_forward(self):
        cart = _cart()
        cart.expires_at = datetime.now(UTC) + timedelta(hours=1)
        cart.add_item("prod-001", 1, 10.0)
        assert cart.expires_at > datetime.now(UTC) + timedelta(days=6)


class TestUpdateAndRemove:
    def test_update_quantity(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 15.0)
        cart._events.clear()

        cart.update_item_quantity("prod-001", 4)

        assert cart.items[0].quantity == 4
        assert cart.items[0].line_total == 60.0
        assert isinstance(cart._events[0], CartItemQuantityUpdated)
        assert cart._events[0].previous_quantity == 1

    def test_update_missing_item(self):
        cart = _cart()
        with pytest.raises(NotFound) as exc:
            cart.update_item_quantity("prod-404", 1)
        assert exc.value.message == "Item not found in cart"

    def test_update_to_zero_is_rejected(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 15.0)
        with pytest.raises(InvalidQuantity):
            cart.update_item_quantity("prod-001", 0)

    def test_remove_item(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 15.0)
        cart.add_item("prod-002", 1, 5.0)
        cart._events.clear()

        cart.remove_item("prod-001")

        assert [str(i.product_id) for i in cart.items] == ["prod-002"]
        assert cart.totals.subtotal == 5.0
        assert isinstance(cart._events[0], CartItemRemoved)

    def test_remove_absent_product_is_a_no_op(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 15.0)
        cart._events.clear()

        cart.remove_item("prod-404")

        assert len(cart.items) == 1
        assert cart._events == []

    def test_clear(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 15.0)
        cart.add_item("prod-002", 2, 5.0)
        cart._events.clear()

        cart.clear()

        assert len(cart.items) == 0
        assert cart.totals.total == 0.0
        assert isinstance(cart._events[0], CartCleared)


class TestMerge:
    def test_absorb_sums_shared_lines_and_copies_others(self):
        user_cart = _cart(user_id="user-001")
        user_cart.add_item("prod-001", 1, 20.0)
        guest_cart = _cart(session_id="sess-001")
        guest_cart.add_item("prod-001", 2, 18.0)
        guest_cart.add_item("prod-002", 1, 5.0)
        user_cart._events.clear()

        user_cart.absorb(guest_cart)

        lines = {str(i.product_id): i for i in user_cart.items}
        assert lines["prod-001"].quantity == 3
        assert lines["prod-001"].unit_price == 20.0
        assert lines["prod-001"].line_total == 60.0
        assert lines["prod-002"].quantity == 1
        assert user_cart.totals.subtotal == 65.0

        assert guest_cart.status == CartStatus.MERGED.value
        assert isinstance(user_cart._events[0], CartsMerged)
        assert user_cart._events[0].items_merged_count == 2

    def test_retired_cart_cannot_be_absorbed(self):
        user_cart = _cart(user_id="user-001")
        guest_cart = _cart(session_id="sess-001")
        guest_cart.add_item("prod-001", 1, 10.0)
        guest_cart.check_out()

        with pytest.raises(NotFound):
            user_cart.absorb(guest_cart)


class TestRetirement:
    def test_checked_out_cart_is_no_longer_live(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 10.0)
        cart.check_out()

        assert cart.status == CartStatus.CHECKED_OUT.value
        assert cart.is_live is False
        with pytest.raises(NotFound) as exc:
            cart.add_item("prod-001", 1, 10.0)
        assert exc.value.message == "Cart not found"

    def test_expired_cart_is_not_live(self):
        cart = _cart()
        cart.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        assert cart.is_expired is True
        assert cart.is_live is False
        with pytest.raises(NotFound):
            cart.add_item("prod-001", 1, 10.0)

    def test_expire(self):
        cart = _cart()
        cart.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        cart.expire()

        assert cart.status == CartStatus.EXPIRED.value
        assert isinstance(cart._events[-1], CartExpired)

    def test_cart_within_ttl_cannot_expire(self):
        with pytest.raises(ValidationError):
            _cart().expire()

    def test_retired_cart_cannot_expire(self):
        cart = _cart()
        cart.check_out()
        cart.expires_at = datetime.now(UTC) - timedelta(seconds=1)
        with pytest.raises(ValidationError):
            cart.expire()


class TestTotalsInvariant:
    def test_totals_cannot_be_set_independently_of_items(self):
        cart = _cart()
        cart.add_item("prod-001", 1, 10.0)
        with pytest.raises(ValidationError) as exc:
            cart.totals = cart.totals.__class__(subtotal=0.0, tax=0.0, shipping=0.0, total=0.0)
        assert "totals" in exc.value.messages
