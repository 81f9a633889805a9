"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Field names are camelCase on the wire and
snake_case in Python. Every response is wrapped in the
``{success, data?, message?, error?}`` envelope.
"""

from datetime import date, datetime
from math import ceil

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = "United States"
    phone: str | None = None


class TotalsSchema(CamelModel):
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(CamelModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    session_id: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "productId": "0b5c7a52-6f0e-4c1e-9a3b-8f2d1e4c5a6b",
                    "quantity": 2,
                    "sessionId": "guest-4f9d",
                }
            ]
        }
    )


class UpdateCartItemRequest(CamelModel):
    product_id: str
    quantity: int
    session_id: str | None = None


class RemoveFromCartRequest(CamelModel):
    product_id: str
    session_id: str | None = None


class ClearCartRequest(CamelModel):
    session_id: str | None = None


class MergeCartRequest(CamelModel):
    session_id: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(CamelModel):
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    payment_method: str | None = None
    notes: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "shippingAddress": {
                        "firstName": "Ada",
                        "lastName": "Lovelace",
                        "address": "12 Analytical Row",
                        "city": "Springfield",
                        "state": "IL",
                        "zipCode": "62701",
                    },
                    "paymentMethod": "stripe",
                    "notes": "Leave at the door",
                }
            ]
        }
    )


class UpdateOrderStatusRequest(CamelModel):
    order_status: str | None = None
    payment_status: str | None = None
    tracking_number: str | None = None
    estimated_delivery: date | None = None


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------
class CartItemView(CamelModel):
    product_id: str
    quantity: int
    unit_price: float
    line_total: float
    added_at: datetime | None = None


class CartView(CamelModel):
    id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    items: list[CartItemView] = []
    totals: TotalsSchema = TotalsSchema()
    expires_at: datetime | None = None

    @classmethod
    def from_cart(cls, cart) -> "CartView":
        if cart is None:
            return cls()
        return cls(
            id=str(cart.id),
            user_id=str(cart.user_id) if cart.user_id else None,
            session_id=cart.session_id,
            items=[
                CartItemView(
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                    added_at=item.added_at,
                )
                for item in cart.items
            ],
            totals=TotalsSchema(**cart.totals.to_dict()),
            expires_at=cart.expires_at,
        )


class OrderItemView(CamelModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    line_total: float


class OrderView(CamelModel):
    id: str
    order_number: str
    user_id: str
    items: list[OrderItemView]
    totals: TotalsSchema
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: str
    payment_status: str
    order_status: str
    payment_intent_id: str | None = None
    refund_reason: str | None = None
    notes: str | None = None
    tracking_number: str | None = None
    estimated_delivery: date | None = None
    paid_at: datetime | None = None
    refunded_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderView":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            items=[
                OrderItemView(
                    product_id=str(item.product_id),
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            totals=TotalsSchema(**order.totals.to_dict()),
            shipping_address=AddressSchema(**order.shipping_address.to_dict()),
            billing_address=AddressSchema(**order.billing_address.to_dict()) if order.billing_address else None,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            order_status=order.order_status,
            payment_intent_id=order.payment_intent_id,
            refund_reason=order.refund_reason,
            notes=order.notes,
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            paid_at=order.paid_at,
            refunded_at=order.refunded_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------
class Envelope(CamelModel):
    success: bool = True
    message: str | None = None


class CartResponse(Envelope):
    data: CartView


class OrderResponse(Envelope):
    data: OrderView


class OrderListResponse(Envelope):
    count: int
    total: int
    pages: int
    current_page: int
    data: list[OrderView]

    @classmethod
    def from_page(cls, results, page, limit) -> "OrderListResponse":
        return cls(
            count=len(results.items),
            total=results.total,
            pages=ceil(results.total / limit) if limit else 0,
            current_page=page,
            data=[OrderView.from_order(order) for order in results.items],
        )


class ErrorResponse(Envelope):
    success: bool = False
    error: dict | None = None
