"""Ordering bounded context: shopping carts, checkout and the order lifecycle.

Carts accumulate line items for a user or an anonymous session, checkout
converts a cart into an immutable Order while adjusting product stock, and
the order state machine reacts to customer, admin and payment-provider
actions.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")
