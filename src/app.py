"""Storefront FastAPI application.

Web server that processes commands synchronously via HTTP. Each request is
wrapped in the ordering domain context and tagged with a request id for
logging.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identity.auth import Authenticator, JWTAuthenticator
from ordering.api.errors import register_exception_handlers
from ordering.api.routes import cart_router, order_router
from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context
from payments.api.routes import payment_router
from payments.gateway import build_gateway
from payments.gateway.port import PaymentGateway

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from ordering/domain.toml:
#   - "test"       → in-memory stores
#   - "production" → PostgreSQL and the Stripe gateway
ordering.init()

# Paths served without a domain context
_PASSTHROUGH_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


def create_app(
    gateway: PaymentGateway | None = None,
    authenticator: Authenticator | None = None,
) -> FastAPI:
    """Build the API. The gateway and authenticator default to the configured ones."""
    with ordering.domain_context():
        gateway = gateway or build_gateway(ordering)
        authenticator = authenticator or JWTAuthenticator.from_domain(ordering)
        currency = getattr(ordering, "CURRENCY", None) or "usd"

    app = FastAPI(
        title="Storefront API",
        description="Carts, checkout, order lifecycle and payments",
    )
    app.state.gateway = gateway
    app.state.authenticator = authenticator
    app.state.currency = currency

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and bind request details for logging."""
        if request.url.path.startswith(_PASSTHROUGH_PATHS):
            return await call_next(request)

        clear_context()
        add_context(
            request_id=request.headers.get("x-request-id") or uuid4().hex,
            method=request.method,
            path=request.url.path,
        )
        try:
            with ordering.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    register_exception_handlers(app)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domain": ordering.name,
                "gateway": type(app.state.gateway).__name__,
            }
        )

    return app


app = create_app()
