"""Payment gateway factory.

``build_gateway()`` picks the implementation from the domain's
``PAYMENT_GATEWAY`` setting:
- ``fake``: FakeGateway for development and testing
- ``stripe``: StripeGateway for production

The application builds one gateway at startup and hands it to the payment
bridge; there is no process-wide gateway.
"""

from protean.exceptions import ConfigurationError

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.stripe_adapter import StripeGateway


def build_gateway(domain) -> PaymentGateway:
    kind = (getattr(domain, "PAYMENT_GATEWAY", None) or "fake").lower()

    if kind == "fake":
        return FakeGateway()

    if kind == "stripe":
        api_key = getattr(domain, "STRIPE_SECRET_KEY", None)
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY must be set to use the Stripe gateway")
        return StripeGateway(
            api_key=api_key,
            webhook_secret=getattr(domain, "STRIPE_WEBHOOK_SECRET", None) or "",
            timeout=float(getattr(domain, "PAYMENT_TIMEOUT_SECONDS", 10)),
        )

    raise ConfigurationError(f"Unknown payment gateway `{kind}`")
