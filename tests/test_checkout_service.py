"""Tests for the checkout facade: edits and the recomputations they trigger"""

import pytest

from checkout.core.errors import ValidationError
from checkout.models.checkout import AppliedCoupon, PaymentInstrument, PaymentMethod, ShippingAddress

from conftest import envelope, fill_checkout, line

CALCULATE = "/delivery/calculate-shipping"


def bengaluru(**extra) -> ShippingAddress:
    return ShippingAddress(address="12 MG Road", city="Bengaluru", state="Karnataka", pincode="560001", **extra)


def script_delivery(backend, cod_available=True, total_shipping=99):
    backend.on("GET", "/delivery/check/560001", (200, envelope({
        "isServiceable": True,
        "codAvailable": cod_available,
        "delivery": {"message": "Express Delivery"},
        "estimatedDelivery": {"minDays": 2, "maxDays": 3},
    })))
    backend.on("POST", CALCULATE, (200, envelope({
        "totalShipping": total_shipping,
        "codAvailable": cod_available,
    })))


class TestLoad:
    async def test_prefills_contact_and_default_address(self, make_session, backend, addresses, service):
        script_delivery(backend)
        session = make_session()
        session.auth.user = {"fullName": "Asha Rao", "email": "asha@example.com", "phone": "9876543210"}
        saved = addresses.save_address(session.auth.shopper_id, bengaluru())

        await service.load(session)

        assert session.state.contact.full_name == "Asha Rao"
        assert session.state.selected_address_id == saved.id
        assert session.state.adding_new_address is False
        assert session.state.delivery.pincode_info["isServiceable"] is True
        assert len(backend.calls("POST", CALCULATE)) == 1

    async def test_without_saved_address_starts_new(self, make_session, backend, service):
        session = make_session()

        await service.load(session)

        assert session.state.adding_new_address is True
        assert backend.requests == []


class TestAddresses:
    async def test_editing_saved_address_starts_new_one(self, make_session, backend, addresses, service):
        script_delivery(backend)
        session = make_session()
        fill_checkout(session, addresses)

        address = await service.update_address(session, city="Bangalore")

        assert address.id is None
        assert address.city == "Bangalore"
        assert address.pincode == "560001"
        assert session.state.selected_address_id is None
        assert session.state.adding_new_address is True
        assert backend.requests == []

    async def test_pincode_change_refreshes_delivery(self, make_session, backend, service):
        script_delivery(backend, total_shipping=49)
        session = make_session()
        session.state.adding_new_address = True

        await service.update_address(session, pincode="560001")

        assert session.state.delivery.shipping_charge == 49
        assert len(backend.calls("GET", "/delivery/check/560001")) == 1

    async def test_save_address_validates(self, make_session, service):
        session = make_session()
        session.state.address = ShippingAddress(address="12 MG Road", pincode="5600")

        with pytest.raises(ValidationError) as exc_info:
            await service.save_address(session)

        assert exc_info.value.errors["pincode"] == "Pincode must be 6 digits"

    async def test_deleting_selected_address_falls_back_to_default(
        self, make_session, backend, addresses, service
    ):
        script_delivery(backend)
        session = make_session()
        shopper_id = session.auth.shopper_id
        home = addresses.save_address(shopper_id, bengaluru())
        office = addresses.save_address(shopper_id, bengaluru(label="Office"))
        await service.select_address(session, office.id)

        await service.delete_address(session, office.id)

        assert session.state.selected_address_id == home.id

    async def test_deleting_last_address_starts_new(self, make_session, backend, addresses, service):
        script_delivery(backend)
        session = make_session()
        only = addresses.save_address(session.auth.shopper_id, bengaluru())
        await service.select_address(session, only.id)

        await service.delete_address(session, only.id)

        assert session.state.adding_new_address is True
        assert session.state.address.pincode == ""

    async def test_select_unknown_address(self, make_session, service):
        with pytest.raises(ValidationError):
            await service.select_address(make_session(), "missing")


class TestPaymentMethod:
    async def test_cod_rejected_when_unavailable(self, make_session, service):
        session = make_session()
        session.state.delivery.pincode_info = {"isServiceable": True, "codAvailable": False}

        with pytest.raises(ValidationError):
            await service.set_payment_method(session, PaymentMethod.COD)

        assert session.state.payment.method == PaymentMethod.ONLINE

    async def test_invalid_upi_id(self, make_session, service):
        with pytest.raises(ValidationError):
            await service.set_payment_method(
                make_session(), PaymentMethod.ONLINE, PaymentInstrument.UPI, upi_id="asha@"
            )

    async def test_switch_to_cod_requotes_shipping(self, make_session, backend, addresses, service):
        backend.on("POST", CALCULATE, (200, envelope({"totalShipping": 129})))
        session = make_session()
        fill_checkout(session, addresses)

        await service.set_payment_method(session, PaymentMethod.COD)

        assert session.state.delivery.shipping_charge == 129
        assert backend.body(backend.calls("POST", CALCULATE)[0])["cod"] is True

    async def test_instrument_change_alone_does_not_requote(self, make_session, backend, service):
        session = make_session()

        await service.set_payment_method(
            session, PaymentMethod.ONLINE, PaymentInstrument.UPI, upi_id=" asha@okicici "
        )

        assert session.state.payment.upi_id == "asha@okicici"
        assert backend.requests == []


class TestCartEdits:
    async def test_emptying_cart_redirects(self, make_session, backend, service):
        session = make_session()
        session.state.coupon = AppliedCoupon(code="SAVE50", discount=50)

        await service.update_quantity(session, "p1", 0)

        assert session.cart.count() == 0
        assert session.state.coupon is None
        assert session.navigation.redirect == "/cart"
        assert backend.requests == []

    async def test_cart_change_reprices_coupon(self, make_session, backend, service):
        backend.on("POST", "/coupons/apply", (200, envelope({
            "couponCode": "WELCOME10", "discountAmount": 30, "discountType": "percent", "newTotal": 270,
        })))
        session = make_session(lines=[line("p1", price=300), line("p2", price=200)])
        session.state.coupon = AppliedCoupon(code="WELCOME10", discount=50)

        await service.remove_line(session, "p2")

        sent = backend.body(backend.calls("POST", "/coupons/apply")[0])
        assert sent == {"code": "WELCOME10", "cartValue": 300}
        assert session.state.coupon.discount == 30
        assert session.state.cart_total_override == 270

    async def test_unknown_line(self, make_session, service):
        with pytest.raises(ValidationError, match="Item not found in cart"):
            await service.update_quantity(make_session(), "nope", 2)


class TestSnapshot:
    async def test_snapshot_drains_toasts_and_redirect(self, make_session, service):
        session = make_session()
        session.notifier.warning("heads up")
        session.navigation.to_cart()

        first = service.snapshot(session)
        second = service.snapshot(session)

        assert first["toasts"] == [{"message": "heads up", "level": "warning"}]
        assert first["redirect"] == "/cart"
        assert second["toasts"] == []
        assert second["redirect"] is None
        assert first["attempt"] == {"phase": "idle", "reason": None}
        assert first["pricing"]["total"] == 399
        assert first["payment"]["cod_available"] is True
