"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.exceptions import NotFound
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    """Paginated order listings, newest first."""

    def for_user(self, user_id, page=1, limit=10, status=None):
        """A page of one customer's orders, optionally narrowed to an order status."""
        filters = {"user_id": str(user_id)}
        if status:
            filters["order_status"] = status
        return self._page(filters, page, limit)

    def listing(self, page=1, limit=20, status=None, payment_status=None):
        """A page of every order, for administrators."""
        filters = {}
        if status:
            filters["order_status"] = status
        if payment_status:
            filters["payment_status"] = payment_status
        return self._page(filters, page, limit)

    def get_for(self, order_id, user_id=None) -> Order:
        """Load an order, hiding orders that belong to someone else when ``user_id`` is given."""
        order = self.get_or_none(order_id)
        if order is None or (user_id is not None and not order.is_owned_by(user_id)):
            raise NotFound("Order not found")
        return order

    def find_by_payment_intent(self, payment_intent_id) -> Order | None:
        return self.query.filter(payment_intent_id=payment_intent_id).all().first

    def _page(self, filters, page, limit):
        query = self.query.filter(**filters) if filters else self.query
        return query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
