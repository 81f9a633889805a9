"""Shopping Cart aggregate: a mutable set of line items owned by a user or a guest session.

Each line snapshots the product's unit price when it is first added; adding
the same product again only increases the quantity. Totals are derived from
the lines after every mutation and cannot be set directly.

A cart lives for seven days after its last change. Checkout, merging into a
user cart and expiry retire the cart; a retired cart is invisible to every
cart operation.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.cart.events import (
    CartCleared,
    CartExpired,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CartsMerged,
)
from ordering.domain import ordering
from ordering.exceptions import InvalidQuantity, NotFound
from ordering.shared.totals import Totals, compute_totals, round_money

CART_TTL = timedelta(days=7)


class CartStatus(Enum):
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"
    MERGED = "merged"
    EXPIRED = "expired"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    items = HasMany(CartItem)
    totals = ValueObject(Totals)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to either a user or a guest session"]})

    @invariant.post
    def totals_must_be_derived_from_items(self):
        if self.totals is not None and self.totals != compute_totals(i.line_total for i in self.items):
            raise ValidationError({"totals": ["Cart totals must be derived from its items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            session_id=session_id,
            totals=compute_totals([]),
            status=CartStatus.ACTIVE.value,
            expires_at=now + CART_TTL,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= datetime.now(UTC)

    @property
    def is_live(self) -> bool:
        return CartStatus(self.status) == CartStatus.ACTIVE and not self.is_expired

    def item_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price):
        """Add a product, or increase the quantity of an existing line.

        An existing line keeps the price it was first added at; ``unit_price``
        only applies to new lines.
        """
        self._assert_live()
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

        now = datetime.now(UTC)
        existing = self.item_for(product_id)

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                existing.line_total = round_money(existing.quantity * existing.unit_price)
                line_price = existing.unit_price
            else:
                self.add_items(
                    CartItem(
                        product_id=product_id,
                        quantity=quantity,
                        unit_price=unit_price,
                        line_total=round_money(quantity * unit_price),
                        added_at=now,
                    )
                )
                line_price = unit_price
            self._touch(now)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity=quantity,
                unit_price=line_price,
                cart_total=self.totals.total,
            )
        )

    def update_item_quantity(self, product_id, quantity):
        """Set the quantity of an existing line, keeping its snapshot price."""
        self._assert_live()
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

        item = self.item_for(product_id)
        if item is None:
            raise NotFound("Item not found in cart")

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            item.line_total = round_money(quantity * item.unit_price)
            self._touch(datetime.now(UTC))

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                cart_total=self.totals.total,
            )
        )

    def remove_item(self, product_id):
        """Remove a product's line. Removing an absent product changes nothing."""
        self._assert_live()

        item = self.item_for(product_id)
        if item is None:
            return

        with atomic_change(self):
            self.remove_items(item)
            self._touch(datetime.now(UTC))

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                cart_total=self.totals.total,
            )
        )

    def clear(self):
        self._assert_live()

        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self._touch(datetime.now(UTC))

        self.raise_(CartCleared(cart_id=str(self.id)))

    # -------------------------------------------------------------------
    # Merging (guest -> authenticated)
    # -------------------------------------------------------------------
    def absorb(self, session_cart):
        """Fold a guest cart's lines into this cart and retire the guest cart.

        Lines for products already present have their quantities summed at
        this cart's snapshot price; other lines are copied as they are.
        """
        self._assert_live()
        session_cart._assert_live()

        now = datetime.now(UTC)
        with atomic_change(self):
            for line in session_cart.items:
                existing = self.item_for(line.product_id)
                if existing:
                    existing.quantity += line.quantity
                    existing.line_total = round_money(existing.quantity * existing.unit_price)
                else:
                    self.add_items(
                        CartItem(
                            product_id=line.product_id,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            line_total=line.line_total,
                            added_at=line.added_at or now,
                        )
                    )
            self._touch(now)

        session_cart._retire(CartStatus.MERGED, now)

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                source_cart_id=str(session_cart.id),
                source_session_id=session_cart.session_id,
                items_merged_count=len(session_cart.items),
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def check_out(self):
        """Retire the cart once its items have become an order."""
        self._assert_live()
        self._retire(CartStatus.CHECKED_OUT, datetime.now(UTC))

    def expire(self):
        """Retire a cart whose time-to-live has elapsed."""
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Only active carts can expire"]})
        if not self.is_expired:
            raise ValidationError({"expires_at": ["Cart has not reached its expiry time"]})

        now = datetime.now(UTC)
        self._retire(CartStatus.EXPIRED, now)
        self.raise_(CartExpired(cart_id=str(self.id), expired_at=now))

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _assert_live(self):
        if not self.is_live:
            raise NotFound("Cart not found")

    def _touch(self, now):
        self.totals = compute_totals(i.line_total for i in self.items)
        self.updated_at = now
        self.expires_at = now + CART_TTL

    def _retire(self, status, now):
        self.status = status.value
        self.updated_at = now
