"""End-to-end checkout against the mock storefront backend"""

import uuid

import httpx
import pytest

from checkout.core.session import Completed, Idle, PaymentUnreconciled, SessionManager, TokenSession
from checkout.models.checkout import PaymentMethod
from checkout.services.backend_client import StorefrontClient
from checkout.services.cart import BackendCart
from checkout.services.gateway import GatewaySuccess
from mock_backend.database.carts import cart_db
from mock_backend.database.orders import order_db
from mock_backend.main import app as storefront_app
from mock_backend.models.order import OrderStatus
from mock_backend.security.signatures import get_gateway_key_id, sign_payment

from conftest import ScriptedWidget

STOREFRONT_URL = "http://storefront.test/api/v2"


class SigningWidget(ScriptedWidget):
    """Completes the payment with a signature for the published gateway order"""

    def __init__(self, payment_id: str = "pay_test_1", signature: str = None):
        super().__init__()
        self.payment_id = payment_id
        self.signature = signature

    async def outcome(self):
        gateway_order_id = self.opened[-1].order_id
        return GatewaySuccess(
            payment_id=self.payment_id,
            order_id=gateway_order_id,
            signature=self.signature or sign_payment(gateway_order_id, self.payment_id),
        )


@pytest.fixture
async def storefront():
    transport = httpx.ASGITransport(app=storefront_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://storefront.test") as client:
        yield client


@pytest.fixture
async def shopper(storefront):
    """A freshly logged-in shopper with two steel bottles in the cart"""
    login = await storefront.post(
        "/api/v2/auth/login",
        json={"email": f"{uuid.uuid4().hex[:8]}@example.com", "name": "Asha Rao"},
    )
    data = login.json()["data"]
    headers = {"Authorization": f"Bearer {data['token']}"}
    added = await storefront.post(
        "/api/v2/cart/", json={"productId": "prod-003", "qty": 2}, headers=headers
    )
    assert added.json()["success"] is True
    return data


@pytest.fixture
def open_checkout(storefront, shopper, service):
    manager = SessionManager()

    async def factory(widget=None):
        auth = TokenSession(shopper["token"], user=shopper["user"])
        client = StorefrontClient(STOREFRONT_URL, session=auth, http_client=storefront)
        session = manager.create_session(
            auth=auth,
            client=client,
            cart=BackendCart(client),
            widget=widget or SigningWidget(),
        )
        await service.load(session)
        return session

    return factory


async def complete_steps(service, session, pincode="560001"):
    service.update_contact(session, phone="9876543210")
    service.continue_to_address(session)
    await service.update_address(
        session, address="12 MG Road", city="Bengaluru", state="Karnataka", pincode=pincode
    )
    service.continue_to_payment(session)


async def test_load_prefills_from_backend(open_checkout):
    session = await open_checkout()

    assert [(line.product_id, line.quantity) for line in session.cart.lines] == [("prod-003", 2)]
    assert session.cart.lines[0].sku == "HOME-BOTTLE-1L"
    assert session.state.contact.full_name == "Asha Rao"
    assert session.state.adding_new_address is True


async def test_online_payment(open_checkout, service, shopper):
    widget = SigningWidget()
    session = await open_checkout(widget)
    await complete_steps(service, session)

    assert session.state.delivery.shipping_charge == 99
    assert session.state.delivery.estimate.delivery_partner == "Express Delivery"

    result = await service.place_order(session)

    assert isinstance(result, Completed)
    order = order_db.get_order(result.order_id)
    assert order.status == OrderStatus.PAID
    assert order.total == 399
    assert order.payment_id == "pay_test_1"
    assert order.shipment_id is not None
    assert widget.opened[0].amount == 39900
    assert widget.opened[0].key == get_gateway_key_id()
    assert cart_db.get_cart(shopper["user"]["id"]).items == []
    assert service.records.get_record(result.order_id).status == "completed"


async def test_cod_with_coupon(open_checkout, service):
    session = await open_checkout()
    await complete_steps(service, session)

    await service.apply_coupon(session, "save50")
    await service.set_payment_method(session, PaymentMethod.COD)

    assert session.state.delivery.shipping_charge == 129
    assert service.pricing(session).total == 379

    result = await service.place_order(session)

    assert isinstance(result, Completed)
    order = order_db.get_order(result.order_id)
    assert order.status == OrderStatus.CONFIRMED
    assert order.discount == 50
    assert order.total == 379


async def test_forged_signature_is_unreconciled(open_checkout, service):
    session = await open_checkout(SigningWidget(signature="forged"))
    await complete_steps(service, session)

    result = await service.place_order(session)

    assert isinstance(result, PaymentUnreconciled)
    assert result.message == "Invalid payment signature"
    assert order_db.get_order(result.order_id).status == OrderStatus.PENDING_PAYMENT
    assert len(session.cart.lines) == 1


async def test_unserviceable_pincode_blocks_order(open_checkout, service):
    session = await open_checkout()
    await complete_steps(service, session, pincode="990001")

    assert session.state.delivery.available is False

    result = await service.place_order(session)

    assert isinstance(result, Idle)
    assert result.reason == "Delivery not available for pincode 990001"


async def test_north_east_pincode_switches_cod_off(open_checkout, service):
    session = await open_checkout()
    session.state.payment.method = PaymentMethod.COD

    await complete_steps(service, session, pincode="781001")

    assert session.state.payment.method == PaymentMethod.ONLINE
    assert not service.cod_available(session)
