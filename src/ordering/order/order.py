"""Order aggregate: the immutable snapshot of a cart at checkout, moved along by a state machine.

Two status fields evolve independently, each through its own legality table:

    order_status:   pending -> confirmed -> processing -> shipped -> delivered
                    pending | confirmed -> cancelled
    payment_status: pending -> paid | failed
                    failed -> paid | failed
                    paid -> refunded

Lines, prices and totals never change after placement. Every lifecycle
change stamps the matching timestamp and raises an audit event.
"""

import secrets
import string
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderPaid,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    PaymentFailed,
    PaymentIntentRecorded,
)
from ordering.shared.totals import Totals, compute_totals, round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CASH_ON_DELIVERY = "cash_on_delivery"


# State machine transition maps
_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # Terminal
}

# States from which cancellation is allowed; stock is still held in these
_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

_SETTLED_PAYMENTS = {PaymentStatus.PAID, PaymentStatus.REFUNDED}

_ORDER_NUMBER_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_number(now=None) -> str:
    """``ORD-<epoch millis>-<4 base36 chars>``, e.g. ``ORD-1718000000000-7QK2``."""
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_ORDER_NUMBER_ALPHABET) for _ in range(4))
    return f"ORD-{int(now.timestamp() * 1000)}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A shipping or billing address captured at checkout time.

    Once recorded on an Order the address never changes, whatever happens to
    the customer's address book later.
    """

    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100, default="United States")
    phone = String(max_length=30)

    @classmethod
    def build(cls, **values):
        """Construct an address from user input, trimming surrounding whitespace."""
        cleaned = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in values.items()
            if value is not None
        }
        if not cleaned.get("country"):
            cleaned.pop("country", None)
        if not cleaned.get("phone"):
            cleaned.pop("phone", None)
        return cls(**cleaned)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item copied from the cart: the cart's price and the product's name at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    line_total = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    totals = ValueObject(Totals)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_intent_id = String(max_length=255)
    refund_id = String(max_length=255)
    refund_reason = String(max_length=500)
    notes = Text()
    tracking_number = String(max_length=255)
    estimated_delivery = Date()
    paid_at = DateTime()
    refunded_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_must_be_derived_from_items(self):
        if self.totals is not None and self.totals != compute_totals(i.line_total for i in self.items):
            raise ValidationError({"totals": ["Order totals must be derived from its items"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        shipping_address,
        payment_method,
        billing_address=None,
        notes=None,
    ):
        """Create a pending order from checked-out cart lines.

        Args:
            user_id: The customer placing the order.
            lines: Dicts with product_id, name, unit_price, quantity.
            shipping_address: An ``Address``.
            payment_method: A ``PaymentMethod`` value.
            billing_address: Defaults to the shipping address.
            notes: Free-text delivery notes.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=line["product_id"],
                name=line["name"],
                unit_price=line["unit_price"],
                quantity=line["quantity"],
                line_total=round_money(line["unit_price"] * line["quantity"]),
            )
            for line in lines
        ]

        order = cls(
            order_number=generate_order_number(now),
            user_id=user_id,
            items=items,
            totals=compute_totals(i.line_total for i in items),
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment_method=payment_method,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                item_count=sum(i.quantity for i in items),
                total=order.totals.total,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    @property
    def holds_stock(self) -> bool:
        """True while the ordered units are still withdrawn from inventory and not yet shipped."""
        return OrderStatus(self.order_status) in _CANCELLABLE_STATES

    def ensure_refundable(self):
        if PaymentStatus(self.payment_status) != PaymentStatus.PAID:
            raise InvalidTransition("Order is not paid")
        if not self.payment_intent_id:
            raise InvalidTransition("No payment intent found for this order")

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_order_transition(self, target):
        current = OrderStatus(self.order_status)
        if target not in _ORDER_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Cannot change order status from {current.value} to {target.value}",
                current=current.value,
                target=target.value,
            )

    def _assert_payment_transition(self, target):
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Cannot change payment status from {current.value} to {target.value}",
                current=current.value,
                target=target.value,
            )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self):
        """Cancel a pending or confirmed order.

        The caller is responsible for returning the items to stock through
        the inventory ledger in the same unit of work.
        """
        current = OrderStatus(self.order_status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidTransition(
                "Order cannot be cancelled at this stage",
                current=current.value,
                target=OrderStatus.CANCELLED.value,
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.order_status = OrderStatus.CANCELLED.value
            self.cancelled_at = now
            self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_intent(self, payment_intent_id):
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            raise InvalidTransition("Order payment is not pending")

        self.payment_intent_id = payment_intent_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentIntentRecorded(
                order_id=str(self.id),
                payment_intent_id=payment_intent_id,
            )
        )

    def mark_paid(self) -> bool:
        """Record a captured payment and confirm a pending order.

        Returns False without changing anything when the payment has already
        settled, so redelivered notifications apply once.
        """
        if PaymentStatus(self.payment_status) in _SETTLED_PAYMENTS:
            return False
        if OrderStatus(self.order_status) == OrderStatus.CANCELLED:
            raise InvalidTransition("Cannot accept payment for a cancelled order")
        self._assert_payment_transition(PaymentStatus.PAID)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.PAID.value
            self.paid_at = now
            if OrderStatus(self.order_status) == OrderStatus.PENDING:
                self.order_status = OrderStatus.CONFIRMED.value
            self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                amount=self.totals.total,
                paid_at=now,
            )
        )
        return True

    def mark_failed(self) -> bool:
        """Record a failed payment attempt; the order status is left alone.

        A failure reported after the payment settled is ignored.
        """
        current = PaymentStatus(self.payment_status)
        if current in _SETTLED_PAYMENTS or current == PaymentStatus.FAILED:
            return False
        self._assert_payment_transition(PaymentStatus.FAILED)

        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                payment_intent_id=self.payment_intent_id,
            )
        )
        return True

    def refund(self, refund_id, amount, reason=None):
        """Record a completed refund: the payment is refunded and the order cancelled."""
        self.ensure_refundable()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.REFUNDED.value
            self.order_status = OrderStatus.CANCELLED.value
            self.refund_id = refund_id
            self.refund_reason = reason
            self.refunded_at = now
            if self.cancelled_at is None:
                self.cancelled_at = now
            self.updated_at = now

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                refund_id=refund_id,
                amount=amount,
                reason=reason,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def set_status(
        self,
        order_status=None,
        payment_status=None,
        tracking_number=None,
        estimated_delivery=None,
    ):
        """Move the order and/or its payment along the lifecycle on an administrator's behalf.

        Both moves go through the same legality tables as every other
        transition; re-asserting the current value changes nothing.
        Cancelling goes through ``cancel``, so the caller must restore stock.
        """
        if order_status is not None and order_status != self.order_status:
            target = OrderStatus(order_status)
            if target == OrderStatus.CANCELLED:
                self.cancel()
            else:
                self._change_order_status(target)

        if payment_status is not None and payment_status != self.payment_status:
            target = PaymentStatus(payment_status)
            if target == PaymentStatus.PAID:
                self.mark_paid()
            else:
                self._change_payment_status(target)

        if tracking_number is not None:
            self.tracking_number = tracking_number
        if estimated_delivery is not None:
            self.estimated_delivery = estimated_delivery
        self.updated_at = datetime.now(UTC)

    def _change_order_status(self, target):
        self._assert_order_transition(target)
        previous = self.order_status

        now = datetime.now(UTC)
        with atomic_change(self):
            self.order_status = target.value
            if target == OrderStatus.DELIVERED:
                self.delivered_at = now
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                field="order_status",
                previous_value=previous,
                new_value=target.value,
                changed_at=now,
            )
        )

    def _change_payment_status(self, target):
        self._assert_payment_transition(target)
        previous = self.payment_status

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = target.value
            if target == PaymentStatus.REFUNDED:
                self.refunded_at = now
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                field="payment_status",
                previous_value=previous,
                new_value=target.value,
                changed_at=now,
            )
        )
