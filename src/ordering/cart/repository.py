"""Repository for the ShoppingCart aggregate."""

from datetime import UTC, datetime

from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.domain import ordering


@ordering.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    """Lookups by owner.

    Only active, unexpired carts are returned by the owner lookups; a cart
    past its expiry time is treated as absent even before it is purged.
    """

    def active_for(self, user_id=None, session_id=None) -> ShoppingCart | None:
        """The cart of the authenticated user if there is one, else the guest session's."""
        if user_id:
            return self.active_for_user(user_id)
        if session_id:
            return self.active_for_session(session_id)
        return None

    def active_for_user(self, user_id) -> ShoppingCart | None:
        return self._live(user_id=str(user_id))

    def active_for_session(self, session_id) -> ShoppingCart | None:
        return self._live(session_id=session_id)

    def expired(self, limit=None) -> list[ShoppingCart]:
        """Active carts whose time-to-live has elapsed."""
        return (
            self.query.filter(status=CartStatus.ACTIVE.value, expires_at__lte=datetime.now(UTC))
            .order_by("expires_at")
            .limit(limit)
            .all()
            .items
        )

    def _live(self, **owner) -> ShoppingCart | None:
        carts = (
            self.query.filter(status=CartStatus.ACTIVE.value, **owner)
            .order_by("-updated_at")
            .all()
            .items
        )
        return next((cart for cart in carts if not cart.is_expired), None)
