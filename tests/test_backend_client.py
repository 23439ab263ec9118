"""Tests for the storefront backend client"""

import httpx
import pytest

from checkout.core.errors import AuthFailure, TransportFailure
from checkout.core.session import TokenSession
from checkout.services.backend_client import StorefrontClient

from conftest import BASE_URL, envelope, make_token


@pytest.fixture
async def client_for(backend):
    http_clients = []

    def factory(token="default"):
        auth = TokenSession(make_token() if token == "default" else token)
        http_client = httpx.AsyncClient(transport=backend.transport())
        http_clients.append(http_client)
        return StorefrontClient(BASE_URL, session=auth, http_client=http_client), auth

    yield factory

    for http_client in http_clients:
        await http_client.aclose()


async def test_unwraps_envelope(backend, client_for):
    backend.on("GET", "/coupons", (200, envelope([{"code": "SAVE50"}], message="ok")))
    client, _ = client_for()

    response = await client.list_coupons()

    assert response.accepted
    assert response.data == [{"code": "SAVE50"}]
    assert response.message == "ok"
    request = backend.calls("GET", "/coupons")[0]
    assert request.headers["Authorization"].startswith("Bearer ")


async def test_non_json_body(backend, client_for):
    backend.on("GET", "/cart/", (502, b"<html>upstream down</html>"))
    client, _ = client_for()

    response = await client.get_cart()

    assert response.parsed is False
    assert response.success is False
    assert response.message == "Server returned invalid response. Status: 502"


async def test_unauthorized_invalidates_token(backend, client_for):
    backend.on("GET", "/cart/", (401, {"detail": "Invalid token"}))
    client, auth = client_for()

    with pytest.raises(AuthFailure):
        await client.get_cart()

    assert auth.invalidated
    assert auth.token is None


async def test_missing_token_is_not_sent(backend, client_for):
    client, _ = client_for(token=None)

    with pytest.raises(AuthFailure):
        await client.create_order({"orderId": "ORD-1"})

    assert backend.requests == []


async def test_expired_token_is_dropped_locally(backend, client_for):
    client, auth = client_for(token=make_token(expires_in=-60))

    with pytest.raises(AuthFailure):
        await client.get_cart()

    assert auth.invalidated
    assert backend.requests == []


async def test_transport_error(backend, client_for):
    backend.on("POST", "/orders", httpx.ConnectError("refused"))
    client, _ = client_for()

    with pytest.raises(TransportFailure):
        await client.create_order({"orderId": "ORD-1"})


async def test_gateway_error_description(backend, client_for):
    backend.on("POST", "/payment-intents/verify", (400, {
        "success": False,
        "message": "Payment verification failed",
        "error": {"code": "BAD_REQUEST_ERROR", "description": "Invalid payment signature"},
    }))
    client, _ = client_for()

    response = await client.verify_payment("ORD-1", "order_1", "pay_1", "sig")

    assert response.rejected
    assert response.error_message("fallback") == "Invalid payment signature"
