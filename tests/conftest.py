import os
from pathlib import Path
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_configure(config):
    """Select the config overlay before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = config.getoption("--env")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # API tests go through the whole HTTP stack
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


# ---------------------------------------------------------------------------
# Domain test bed
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def storefront_bed():
    # Importing the application initializes the domain, which must not happen again mid-test
    import app  # noqa: F401
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping_address():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "address": "12 Analytical Row",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
    }


@pytest.fixture()
def register_product():
    """Register a product in the catalog and return its id."""
    from ordering.catalog.management import DeactivateProduct, RegisterProduct
    from protean import current_domain

    def _register(
        name="Desk Lamp",
        price=20.0,
        sale_price=None,
        quantity=10,
        track_quantity=True,
        low_stock_threshold=2,
        is_active=True,
    ):
        product_id = current_domain.process(
            RegisterProduct(
                name=name,
                sku=f"SKU-{uuid4().hex[:8].upper()}",
                regular_price=price,
                sale_price=sale_price,
                quantity=quantity,
                track_quantity=track_quantity,
                low_stock_threshold=low_stock_threshold,
            ),
            asynchronous=False,
        )
        if not is_active:
            current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        return product_id

    return _register


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------
@pytest.fixture()
def authenticator():
    from identity.auth import JWTAuthenticator

    return JWTAuthenticator(secret="test-secret")


@pytest.fixture()
def client(authenticator):
    """TestClient over the full application with a fake payment gateway."""
    from app import create_app
    from fastapi.testclient import TestClient
    from payments.gateway.fake_adapter import FakeGateway

    return TestClient(create_app(gateway=FakeGateway(), authenticator=authenticator))


@pytest.fixture()
def auth_headers(authenticator):
    """Build an ``Authorization`` header for a customer, or an administrator with ``role="admin"``."""
    from identity.auth import Identity

    def _headers(user_id="user-001", role="customer"):
        token = authenticator.issue_token(Identity(user_id=user_id, email=f"{user_id}@example.com", role=role))
        return {"Authorization": f"Bearer {token}"}

    return _headers
