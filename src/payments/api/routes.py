"""FastAPI routes for payments: intents, confirmation, refunds and provider webhooks."""

from fastapi import APIRouter, Depends, Header, Request

from identity.auth import Identity
from identity.dependencies import current_identity
from payments.api.schemas import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    PaymentIntentResponse,
    PaymentIntentView,
    PaymentStatusResponse,
    PaymentStatusView,
    RefundRequest,
    RefundResponse,
    RefundView,
    WebhookAck,
)
from payments.bridge import PaymentBridge


def get_payment_bridge(request: Request) -> PaymentBridge:
    return PaymentBridge(request.app.state.gateway, currency=request.app.state.currency)


def _owner_scope(identity: Identity) -> str | None:
    """Administrators may act on any order; customers only on their own."""
    return None if identity.is_admin else identity.user_id


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    identity: Identity = Depends(current_identity),
    bridge: PaymentBridge = Depends(get_payment_bridge),
) -> PaymentIntentResponse:
    intent = bridge.create_intent(body.order_id, requested_by=identity.user_id)
    return PaymentIntentResponse(
        data=PaymentIntentView(client_secret=intent.client_secret, payment_intent_id=intent.intent_id),
    )


@payment_router.post("/confirm-payment", response_model=PaymentStatusResponse)
async def confirm_payment(
    body: ConfirmPaymentRequest,
    identity: Identity = Depends(current_identity),
    bridge: PaymentBridge = Depends(get_payment_bridge),
) -> PaymentStatusResponse:
    confirmation = bridge.confirm_payment(body.order_id, body.payment_intent_id, requested_by=identity.user_id)
    order = bridge.status(body.order_id)
    return PaymentStatusResponse(
        message=f"Payment {confirmation.status}",
        data=PaymentStatusView.from_order(order),
    )


@payment_router.post("/refund", response_model=RefundResponse)
async def refund_payment(
    body: RefundRequest,
    identity: Identity = Depends(current_identity),
    bridge: PaymentBridge = Depends(get_payment_bridge),
) -> RefundResponse:
    refund = bridge.refund(
        body.order_id,
        amount=body.amount,
        reason=body.reason,
        requested_by=_owner_scope(identity),
    )
    return RefundResponse(
        message="Refund processed successfully",
        data=RefundView(refund_id=refund.refund_id, amount=refund.amount, status=refund.status),
    )


@payment_router.get("/status/{order_id}", response_model=PaymentStatusResponse)
async def payment_status(
    order_id: str,
    identity: Identity = Depends(current_identity),
    bridge: PaymentBridge = Depends(get_payment_bridge),
) -> PaymentStatusResponse:
    order = bridge.status(order_id, requested_by=_owner_scope(identity))
    return PaymentStatusResponse(data=PaymentStatusView.from_order(order))


@payment_router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: str = Header(default=""),
    bridge: PaymentBridge = Depends(get_payment_bridge),
) -> WebhookAck:
    """Provider notifications; the raw body is needed to verify the signature."""
    payload = await request.body()
    bridge.handle_webhook(payload, stripe_signature)
    return WebhookAck()
