"""Integration tests for the application shell: health, error envelope and request context."""

import pytest
from app import create_app
from fastapi.testclient import TestClient
from payments.gateway.fake_adapter import FakeGateway
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError


@pytest.fixture()
def failing_client(authenticator):
    app = create_app(gateway=FakeGateway(), authenticator=authenticator)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/conflict")
    async def conflict():
        raise ExpectedVersionError("Wrong expected version: 3 (Aggregate: Product)")

    @app.get("/missing")
    async def missing():
        raise ObjectNotFoundError("Product with id prod-404 does not exist")

    return TestClient(app, raise_server_exceptions=False)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "domain": "ordering", "gateway": "FakeGateway"}


def test_unexpected_error_is_hidden(failing_client):
    response = failing_client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}


def test_version_conflict(failing_client):
    response = failing_client.get("/conflict")

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_object_not_found(failing_client):
    response = failing_client.get("/missing")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Resource not found"}


def test_request_validation_uses_envelope(client, auth_headers):
    response = client.post("/cart/add", json={"quantity": 1}, headers=auth_headers())

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["error"]["fields"][0]["loc"] == ["body", "productId"]
