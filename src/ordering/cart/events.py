"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartsMerged:
    """A guest session cart was folded into a user's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    source_cart_id = Identifier(required=True)
    source_session_id = String(max_length=255)
    items_merged_count = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartExpired:
    __version__ = 1

    cart_id = Identifier(required=True)
    expired_at = DateTime(required=True)
