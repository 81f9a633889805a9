"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import Field

from ordering.api.schemas import CamelModel, Envelope


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(CamelModel):
    order_id: str


class ConfirmPaymentRequest(CamelModel):
    order_id: str
    payment_intent_id: str


class RefundRequest(CamelModel):
    order_id: str
    amount: float | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class PaymentIntentView(CamelModel):
    client_secret: str
    payment_intent_id: str


class PaymentIntentResponse(Envelope):
    data: PaymentIntentView


class PaymentStatusView(CamelModel):
    order_id: str
    order_number: str
    payment_status: str
    order_status: str
    payment_intent_id: str | None = None
    amount: float
    paid_at: datetime | None = None
    refunded_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "PaymentStatusView":
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            payment_status=order.payment_status,
            order_status=order.order_status,
            payment_intent_id=order.payment_intent_id,
            amount=order.totals.total,
            paid_at=order.paid_at,
            refunded_at=order.refunded_at,
        )


class PaymentStatusResponse(Envelope):
    data: PaymentStatusView


class RefundView(CamelModel):
    refund_id: str
    amount: float
    status: str


class RefundResponse(Envelope):
    data: RefundView


class WebhookAck(CamelModel):
    received: bool = True
