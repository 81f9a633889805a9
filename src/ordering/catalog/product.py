"""Product aggregate as seen by ordering.

The catalog owns product content; ordering keeps the part it needs to sell:
price, stock, availability and sales analytics. Stock and analytics are only
ever changed through the inventory ledger, in the same unit of work as the
order that caused the change.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.exceptions import InsufficientInventory
from ordering.shared.totals import round_money


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Product")
class Price:
    """Regular price with an optional sale price."""

    regular = Float(required=True, min_value=0.0)
    sale = Float(min_value=0.0)

    @invariant.post
    def sale_price_must_be_below_regular_price(self):
        if self.sale and self.sale >= self.regular:
            raise ValidationError({"sale": ["Sale price must be less than regular price"]})

    @property
    def effective(self) -> float:
        return self.sale or self.regular


@ordering.value_object(part_of="Product")
class StockLevel:
    quantity = Integer(default=0, min_value=0)
    track_quantity = Boolean(default=True)
    low_stock_threshold = Integer(default=10, min_value=0)


@ordering.value_object(part_of="Product")
class SalesAnalytics:
    purchases = Integer(default=0)
    revenue = Float(default=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Product:
    name = String(required=True, max_length=200)
    sku = String(required=True, max_length=50, unique=True)
    price = ValueObject(Price, required=True)
    inventory = ValueObject(StockLevel)
    analytics = ValueObject(SalesAnalytics)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        sku,
        regular_price,
        sale_price=None,
        quantity=0,
        track_quantity=True,
        low_stock_threshold=10,
        is_active=True,
    ):
        now = datetime.now(UTC)
        return cls(
            name=name,
            sku=sku,
            price=Price(regular=regular_price, sale=sale_price),
            inventory=StockLevel(
                quantity=quantity,
                track_quantity=track_quantity,
                low_stock_threshold=low_stock_threshold,
            ),
            analytics=SalesAnalytics(purchases=0, revenue=0.0),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    @property
    def unit_price(self) -> float:
        """Price a new cart line is snapshotted at."""
        return self.price.effective

    @property
    def is_low_stock(self) -> bool:
        return self.inventory.track_quantity and self.inventory.quantity <= self.inventory.low_stock_threshold

    # -------------------------------------------------------------------
    # Stock checks and movements
    # -------------------------------------------------------------------
    def ensure_available(self, quantity):
        """Raise ``InsufficientInventory`` if a tracked stock cannot cover ``quantity``."""
        if self.inventory.track_quantity and self.inventory.quantity < quantity:
            raise InsufficientInventory(
                product_id=str(self.id),
                product_name=self.name,
                available=self.inventory.quantity,
                requested=quantity,
            )

    def withdraw(self, quantity, revenue):
        """Take ``quantity`` units out of stock and book the sale.

        The check and the decrement happen on the same loaded version of the
        product; the repository's version check turns a concurrent withdrawal
        into a conflict instead of a negative stock level.
        """
        self.ensure_available(quantity)
        self._move_stock(-quantity)
        self.analytics = SalesAnalytics(
            purchases=self.analytics.purchases + quantity,
            revenue=round_money(self.analytics.revenue + revenue),
        )
        self.updated_at = datetime.now(UTC)

    def restore(self, quantity, revenue):
        """Return ``quantity`` units to stock and reverse the booked sale."""
        self._move_stock(quantity)
        self.analytics = SalesAnalytics(
            purchases=self.analytics.purchases - quantity,
            revenue=round_money(self.analytics.revenue - revenue),
        )
        self.updated_at = datetime.now(UTC)

    def restock(self, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self._move_stock(quantity)
        self.updated_at = datetime.now(UTC)

    def _move_stock(self, delta):
        if not self.inventory.track_quantity:
            return
        self.inventory = StockLevel(
            quantity=self.inventory.quantity + delta,
            track_quantity=self.inventory.track_quantity,
            low_stock_threshold=self.inventory.low_stock_threshold,
        )

    # -------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------
    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)

    def activate(self):
        self.is_active = True
        self.updated_at = datetime.now(UTC)
