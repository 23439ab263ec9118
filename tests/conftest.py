"""Shared fixtures: scripted backend, in-memory cart and scripted payment widget"""

import json
import time
import asyncio
from typing import Any, Callable, Optional, Union

import httpx
import jwt
import pytest

from checkout.core.config import Settings
from checkout.core.session import CheckoutSession, SessionManager, TokenSession
from checkout.database.addresses import AddressBook
from checkout.database.orders import OrderRecordDatabase
from checkout.models.cart import CartLine, CartValidation
from checkout.models.checkout import ContactInfo, ShippingAddress
from checkout.services.backend_client import StorefrontClient
from checkout.services.checkout import CheckoutService
from checkout.services.gateway import GatewayCancelled, GatewayOptions, GatewayOutcome

BASE_URL = "http://backend.test/api/v2"
TOKEN_SECRET = "test-secret-that-is-long-enough-for-hs256"

Scripted = Union[tuple, Callable[[httpx.Request], httpx.Response], Exception, list]


def make_token(sub: str = "user-1", expires_in: int = 3600) -> str:
    return jwt.encode(
        {"sub": sub, "exp": int(time.time()) + expires_in},
        TOKEN_SECRET,
        algorithm="HS256",
    )


def envelope(data: Any = None, success: bool = True, message: Optional[str] = None) -> dict:
    body = {"success": success, "data": data}
    if message is not None:
        body["message"] = message
    return body


class ScriptedBackend:
    """
    Storefront backend answering from a route table.

    A route maps ``(method, path)`` to a ``(status, json)`` tuple, a callable
    taking the request, an exception to raise, or a list consumed in order.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Scripted] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response: Scripted) -> None:
        self.routes[(method.upper(), path)] = response

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and self._path(r) == path
        ]

    def body(self, request: httpx.Request) -> dict:
        return json.loads(request.content or b"{}")

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path[len("/api/v2"):]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, self._path(request))
        scripted = self.routes.get(key)
        if isinstance(scripted, list):
            scripted = scripted.pop(0) if len(scripted) > 1 else scripted[0]

        if scripted is None:
            return httpx.Response(404, json=envelope(success=False, message="Not scripted"))
        if isinstance(scripted, Exception):
            raise scripted
        if callable(scripted):
            return scripted(request)
        status, payload = scripted
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status, content=payload)
        return httpx.Response(status, json=payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class InMemoryCart:
    """Cart collaborator with scripted validation"""

    def __init__(self, lines: Optional[list[CartLine]] = None):
        self._lines = list(lines or [])
        self.validation = CartValidation(valid=True)
        self.cleared = False

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def total(self) -> float:
        return sum(line.line_total for line in self._lines)

    def count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def remove(self, product_id: str) -> bool:
        before = len(self._lines)
        self._lines = [line for line in self._lines if line.product_id != product_id]
        return len(self._lines) != before

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        for i, line in enumerate(self._lines):
            if line.product_id == product_id:
                self._lines[i] = line.model_copy(update={"quantity": quantity})
                return True
        return False

    async def clear(self) -> None:
        self._lines = []
        self.cleared = True

    async def sync(self) -> bool:
        return True

    async def validate(self) -> CartValidation:
        return self.validation


class ScriptedWidget:
    """Payment widget returning a preset outcome"""

    def __init__(
        self,
        outcome: Optional[GatewayOutcome] = None,
        hang_on_open: bool = False,
        open_error: Optional[Exception] = None,
    ):
        self._outcome = outcome or GatewayCancelled()
        self.hang_on_open = hang_on_open
        self.open_error = open_error
        self.opened: list[GatewayOptions] = []
        self.outcomes: list[GatewayOutcome] = []

    def queue(self, outcome: GatewayOutcome) -> None:
        self._outcome = outcome

    async def open(self, options: GatewayOptions) -> None:
        if self.open_error is not None:
            raise self.open_error
        if self.hang_on_open:
            await asyncio.Event().wait()
        self.opened.append(options)

    async def outcome(self) -> GatewayOutcome:
        self.outcomes.append(self._outcome)
        return self._outcome


def line(
    product_id: str = "p1",
    price: float = 300.0,
    quantity: int = 1,
    unit_price: Optional[float] = None,
    **extra: Any,
) -> CartLine:
    return CartLine(
        product_id=product_id,
        name=extra.pop("name", f"Product {product_id}"),
        price=price,
        unit_price=unit_price,
        quantity=quantity,
        sku=extra.pop("sku", f"SKU-{product_id}"),
        **extra,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        razorpay_key_id="rzp_test_fallback",
        gateway_init_timeout=0.2,
        gateway_grace_timeout=0.01,
    )


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def addresses() -> AddressBook:
    return AddressBook()


@pytest.fixture
def records() -> OrderRecordDatabase:
    return OrderRecordDatabase()


@pytest.fixture
def service(addresses, records, settings) -> CheckoutService:
    return CheckoutService(addresses=addresses, records=records, settings=settings)


@pytest.fixture
async def make_session(backend):
    """Factory for checkout sessions wired to the scripted backend"""
    manager = SessionManager()
    http_clients: list[httpx.AsyncClient] = []

    def factory(
        lines: Optional[list[CartLine]] = None,
        widget: Optional[ScriptedWidget] = None,
        token: Optional[str] = "default",
    ) -> CheckoutSession:
        auth = TokenSession(make_token() if token == "default" else token)
        http_client = httpx.AsyncClient(transport=backend.transport())
        http_clients.append(http_client)
        client = StorefrontClient(BASE_URL, session=auth, http_client=http_client)
        return manager.create_session(
            auth=auth,
            client=client,
            cart=InMemoryCart(lines if lines is not None else [line()]),
            widget=widget or ScriptedWidget(),
        )

    yield factory

    for http_client in http_clients:
        await http_client.aclose()


def fill_checkout(session: CheckoutSession, addresses: AddressBook, pincode: str = "560001") -> None:
    """Complete the contact and address steps with a saved address"""
    state = session.state
    state.contact = ContactInfo(full_name="Asha Rao", email="asha@example.com", phone="9876543210")
    saved = addresses.save_address(
        session.auth.shopper_id,
        ShippingAddress(address="12 MG Road", city="Bengaluru", state="Karnataka", pincode=pincode),
    )
    state.address = saved
    state.selected_address_id = saved.id
    state.completed_steps.update({1, 2})
    state.current_step = 3
