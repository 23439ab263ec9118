"""Tests for gateway options, error mapping and the deferred widget"""

import asyncio

import pytest

from checkout.core.errors import GatewayFailure
from checkout.models.checkout import ContactInfo, GatewayOrder, PaymentInstrument
from checkout.services.gateway import (
    DEFAULT_GATEWAY_ERROR_MESSAGE,
    INSUFFICIENT_BALANCE_MESSAGE,
    DeferredPaymentWidget,
    GatewayCancelled,
    GatewayError,
    GatewayOptions,
    GatewaySuccess,
    build_options,
    describe_gateway_error,
)

CONTACT = ContactInfo(full_name="Asha Rao", email="asha@example.com", phone="9876543210")


@pytest.mark.parametrize("error, expected", [
    (GatewayError(code="BAD_REQUEST_ERROR"), "Invalid payment details. Please check and try again."),
    (GatewayError(code="SERVER_ERROR"), "Server error. Please try again after some time."),
    (GatewayError(description="Insufficient funds in account"), INSUFFICIENT_BALANCE_MESSAGE),
    (GatewayError(description="Transaction declined"),
     "Payment declined by bank. Please contact your bank or try another method."),
    (GatewayError(reason="network_error"), "Network error. Please check your connection and try again."),
    (GatewayError(reason="payment_timeout"), "Payment timed out. Please try again."),
    (GatewayError(reason="modal_closed"), "Payment was cancelled."),
    (GatewayError(code="UNKNOWN", description="???"), DEFAULT_GATEWAY_ERROR_MESSAGE),
])
def test_describe_gateway_error(error, expected):
    assert describe_gateway_error(error) == expected


class TestBuildOptions:
    def test_card_options(self, settings):
        gateway = GatewayOrder(order_id="order_1", amount=39900, key="rzp_live_backend")

        options = build_options(
            gateway, CONTACT, PaymentInstrument.CARD, card_holder="A RAO", settings=settings
        )

        assert options.key == "rzp_live_backend"
        assert options.prefill == {
            "name": "A RAO",
            "email": "asha@example.com",
            "contact": "9876543210",
        }
        assert options.method == {
            "card": True,
            "netbanking": False,
            "upi": False,
            "wallet": False,
            "emi": False,
            "paylater": False,
        }

    def test_falls_back_to_configured_key(self, settings):
        gateway = GatewayOrder(order_id="order_1", amount=100)

        options = build_options(gateway, CONTACT, PaymentInstrument.UPI, upi_id="asha@upi", settings=settings)

        assert options.key == "rzp_test_fallback"
        assert options.prefill["vpa"] == "asha@upi"
        assert options.method["upi"] is True

    def test_to_dict(self, settings):
        options = build_options(
            GatewayOrder(order_id="order_1", amount=100),
            CONTACT,
            PaymentInstrument.NETBANKING,
            settings=settings,
        )

        data = options.to_dict()

        assert data["order_id"] == "order_1"
        assert data["currency"] == "INR"
        assert data["description"] == "Order Payment"
        assert data["theme"] == {"color": settings.theme_color}
        assert data["method"]["netbanking"] is True


class TestDeferredPaymentWidget:
    async def test_open_waits_for_browser(self):
        widget = DeferredPaymentWidget()
        options = GatewayOptions(key="k", amount=100, currency="INR", order_id="order_1", name="Store")

        opening = asyncio.create_task(widget.open(options))
        await widget.published.wait()

        assert widget.options is options
        assert widget.awaiting_open
        assert not opening.done()

        assert widget.mark_opened() is True
        await opening
        assert widget.mark_opened() is False

        outcome = asyncio.create_task(widget.outcome())
        success = GatewaySuccess(payment_id="pay_1", order_id="order_1", signature="sig")
        assert widget.resolve(success) is True
        assert await outcome == success
        assert not widget.published.is_set()

    async def test_resolve_before_open_acknowledged(self):
        widget = DeferredPaymentWidget()
        options = GatewayOptions(key="k", amount=100, currency="INR", order_id="order_1", name="Store")

        opening = asyncio.create_task(widget.open(options))
        await widget.published.wait()
        widget.resolve(GatewayCancelled())
        await opening

        assert await widget.outcome() == GatewayCancelled()

    async def test_error_before_open_fails_open(self):
        widget = DeferredPaymentWidget()
        options = GatewayOptions(key="k", amount=100, currency="INR", order_id="order_1", name="Store")

        opening = asyncio.create_task(widget.open(options))
        await widget.published.wait()
        assert widget.resolve(GatewayError(code="GATEWAY_ERROR", reason="script_load_failed")) is True

        with pytest.raises(GatewayFailure) as exc_info:
            await opening

        assert exc_info.value.code == "GATEWAY_ERROR"
        assert exc_info.value.message.startswith("Payment gateway error")
        assert widget.options is None
        assert not widget.awaiting_outcome

    async def test_resolve_without_open(self):
        widget = DeferredPaymentWidget()
        assert widget.resolve(GatewayCancelled()) is False

    async def test_cancelled_open_resets(self):
        widget = DeferredPaymentWidget()
        options = GatewayOptions(key="k", amount=100, currency="INR", order_id="order_1", name="Store")

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(widget.open(options), timeout=0.05)

        assert widget.options is None
        assert not widget.published.is_set()
        assert not widget.awaiting_open
