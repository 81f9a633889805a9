"""FastAPI routes for the ordering domain: carts and orders."""

from fastapi import APIRouter, Depends, Query
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from identity.auth import Identity
from identity.dependencies import admin_identity, current_identity, optional_identity
from ordering.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CartView,
    CheckoutRequest,
    ClearCartRequest,
    MergeCartRequest,
    OrderListResponse,
    OrderResponse,
    OrderView,
    RemoveFromCartRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from ordering.cart.management import MergeCarts
from ordering.checkout.placement import PlaceOrder
from ordering.order.administration import UpdateOrderStatus
from ordering.order.cancellation import CancelOrder
from ordering.order.order import Order


def _owner(identity: Identity | None, session_id: str | None) -> dict:
    """The signed-in user's cart takes precedence over a guest session's."""
    if identity is not None:
        return {"user_id": identity.user_id}
    if session_id:
        return {"session_id": session_id}
    raise ValidationError({"owner": ["Authentication or session ID required"]})


def _cart_view(owner: dict) -> CartView:
    return CartView.from_cart(current_domain.repository_for(ShoppingCart).active_for(**owner))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(
    session_id: str | None = Query(default=None, alias="sessionId"),
    identity: Identity | None = Depends(optional_identity),
) -> CartResponse:
    return CartResponse(data=_cart_view(_owner(identity, session_id)))


@cart_router.post("/add", status_code=201, response_model=CartResponse)
async def add_to_cart(
    body: AddToCartRequest,
    identity: Identity | None = Depends(optional_identity),
) -> CartResponse:
    owner = _owner(identity, body.session_id)
    current_domain.process(
        AddToCart(product_id=body.product_id, quantity=body.quantity, **owner),
        asynchronous=False,
    )
    return CartResponse(message="Item added to cart successfully", data=_cart_view(owner))


@cart_router.put("/update", response_model=CartResponse)
async def update_cart_item(
    body: UpdateCartItemRequest,
    identity: Identity | None = Depends(optional_identity),
) -> CartResponse:
    owner = _owner(identity, body.session_id)
    current_domain.process(
        UpdateCartItem(product_id=body.product_id, quantity=body.quantity, **owner),
        asynchronous=False,
    )
    return CartResponse(message="Cart updated successfully", data=_cart_view(owner))


@cart_router.delete("/remove", response_model=CartResponse)
async def remove_from_cart(
    body: RemoveFromCartRequest,
    identity: Identity | None = Depends(optional_identity),
) -> CartResponse:
    owner = _owner(identity, body.session_id)
    current_domain.process(RemoveFromCart(product_id=body.product_id, **owner), asynchronous=False)
    return CartResponse(message="Item removed from cart successfully", data=_cart_view(owner))


@cart_router.delete("/clear", response_model=CartResponse)
async def clear_cart(
    body: ClearCartRequest | None = None,
    identity: Identity | None = Depends(optional_identity),
) -> CartResponse:
    owner = _owner(identity, body.session_id if body else None)
    current_domain.process(ClearCart(**owner), asynchronous=False)
    return CartResponse(message="Cart cleared successfully", data=_cart_view(owner))


@cart_router.post("/merge", response_model=CartResponse)
async def merge_carts(
    body: MergeCartRequest,
    identity: Identity = Depends(current_identity),
) -> CartResponse:
    current_domain.process(
        MergeCarts(user_id=identity.user_id, session_id=body.session_id),
        asynchronous=False,
    )
    return CartResponse(message="Cart merged successfully", data=_cart_view({"user_id": identity.user_id}))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_view(order_id: str) -> OrderView:
    return OrderView.from_order(current_domain.repository_for(Order).get_for(order_id))


@order_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(
    body: CheckoutRequest,
    identity: Identity = Depends(current_identity),
) -> OrderResponse:
    if body.shipping_address is None or not body.payment_method:
        raise ValidationError({"checkout": ["Shipping address and payment method are required"]})

    # An omitted billing address is left out; the order then bills the shipping address
    billing = {"billing_address": body.billing_address.model_dump()} if body.billing_address else {}
    order_id = current_domain.process(
        PlaceOrder(
            user_id=identity.user_id,
            shipping_address=body.shipping_address.model_dump(),
            payment_method=body.payment_method,
            notes=body.notes,
            **billing,
        ),
        asynchronous=False,
    )
    return OrderResponse(message="Order created successfully", data=_order_view(order_id))


@order_router.get("/my-orders", response_model=OrderListResponse)
async def my_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: str | None = None,
    identity: Identity = Depends(current_identity),
) -> OrderListResponse:
    results = current_domain.repository_for(Order).for_user(identity.user_id, page=page, limit=limit, status=status)
    return OrderListResponse.from_page(results, page, limit)


@order_router.get("/admin/all", response_model=OrderListResponse)
async def all_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status: str | None = None,
    payment_status: str | None = Query(default=None, alias="paymentStatus"),
    identity: Identity = Depends(admin_identity),
) -> OrderListResponse:
    results = current_domain.repository_for(Order).listing(
        page=page,
        limit=limit,
        status=status,
        payment_status=payment_status,
    )
    return OrderListResponse.from_page(results, page, limit)


@order_router.patch("/admin/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    identity: Identity = Depends(admin_identity),
) -> OrderResponse:
    current_domain.process(
        UpdateOrderStatus(
            order_id=order_id,
            order_status=body.order_status,
            payment_status=body.payment_status,
            tracking_number=body.tracking_number,
            estimated_delivery=body.estimated_delivery,
        ),
        asynchronous=False,
    )
    return OrderResponse(message="Order updated successfully", data=_order_view(order_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
) -> OrderResponse:
    order = current_domain.repository_for(Order).get_for(order_id, user_id=identity.user_id)
    return OrderResponse(data=OrderView.from_order(order))


@order_router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
) -> OrderResponse:
    current_domain.process(CancelOrder(order_id=order_id, requested_by=identity.user_id), asynchronous=False)
    return OrderResponse(message="Order cancelled successfully", data=_order_view(order_id))
