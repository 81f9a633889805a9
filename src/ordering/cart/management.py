"""Cart management: commands and handler.

Handles folding a guest cart into a user's cart on sign-in, and retiring
carts whose time-to-live has elapsed.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.serialization import serialized_per_owner
from ordering.domain import logger, ordering


@ordering.command(part_of="ShoppingCart")
class MergeCarts:
    """Merge a guest session's cart into the signed-in user's cart."""

    user_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)


@ordering.command(part_of="ShoppingCart")
class PurgeExpiredCarts:
    """Retire active carts that have not changed within their time-to-live."""

    batch_size = Integer(default=500, min_value=1)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @serialized_per_owner
    @handle(MergeCarts)
    def merge_carts(self, command):
        repo = current_domain.repository_for(ShoppingCart)

        session_cart = repo.active_for_session(command.session_id)
        if session_cart is None or not session_cart.items:
            return None

        user_cart = repo.active_for_user(command.user_id)
        if user_cart is None:
            user_cart = ShoppingCart.create(user_id=command.user_id)

        user_cart.absorb(session_cart)
        repo.add(session_cart)
        repo.add(user_cart)

        logger.info(
            "carts_merged",
            cart_id=str(user_cart.id),
            source_cart_id=str(session_cart.id),
            user_id=str(command.user_id),
        )
        return str(user_cart.id)

    @handle(PurgeExpiredCarts)
    def purge_expired_carts(self, command):
        repo = current_domain.repository_for(ShoppingCart)

        expired = repo.expired(limit=command.batch_size)
        for cart in expired:
            cart.expire()
            repo.add(cart)

        if expired:
            logger.info("expired_carts_purged", count=len(expired))
        return len(expired)
