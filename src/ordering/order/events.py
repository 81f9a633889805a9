"""Domain events for the Order aggregate.

Orders are state-stored; these events are an audit trail of every lifecycle
change and are appended to the event store alongside the order itself.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    payment_method = String(required=True, max_length=50)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    previous_status = String(required=True, max_length=50)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentIntentRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)


@ordering.event(part_of="Order")
class OrderPaid:
    """Payment for the order was captured."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(max_length=255)


@ordering.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    refund_id = String(max_length=255)
    amount = Float(required=True)
    reason = String(max_length=500)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An administrator moved the order or its payment along the lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    field = String(required=True, max_length=20)
    previous_value = String(required=True, max_length=50)
    new_value = String(required=True, max_length=50)
    changed_at = DateTime(required=True)
