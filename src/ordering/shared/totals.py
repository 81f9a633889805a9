"""Totals value object shared by carts and orders.

Both aggregates derive their totals from their line items with the same
formula; nothing else may set them.
"""

from collections.abc import Iterable

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float

from ordering.domain import ordering

TAX_RATE = 0.10
FREE_SHIPPING_THRESHOLD = 100.0
FLAT_SHIPPING_FEE = 10.0


def round_money(amount: float) -> float:
    return round(float(amount), 2)


@ordering.value_object
class Totals:
    """Subtotal, tax, shipping and grand total of a set of line items."""

    subtotal = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)

    @invariant.post
    def total_must_add_up(self):
        if round_money(self.subtotal + self.tax + self.shipping) != self.total:
            raise ValidationError({"total": ["Total must equal subtotal + tax + shipping"]})

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }


def compute_totals(line_totals: Iterable[float]) -> Totals:
    """Derive totals from line totals.

    A flat tax rate applies to the subtotal, and shipping is free from
    ``FREE_SHIPPING_THRESHOLD`` upwards. An empty collection yields zero
    totals with shipping waived.
    """
    line_totals = list(line_totals)
    if not line_totals:
        return Totals(subtotal=0.0, tax=0.0, shipping=0.0, total=0.0)

    subtotal = round_money(sum(line_totals))
    tax = round_money(subtotal * TAX_RATE)
    shipping = 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
    return Totals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=round_money(subtotal + tax + shipping),
    )


def empty_totals() -> Totals:
    return compute_totals([])
