"""Tests for the coupon manager"""

import math

import httpx
import pytest

from checkout.core.errors import ServiceRejection, TransportFailure, ValidationError
from checkout.core.notifications import ToastLevel
from checkout.models.checkout import AppliedCoupon, DiscountKind
from checkout.services.coupons import CouponManager, describe_discount

from conftest import envelope, line

APPLY = "/coupons/apply"


@pytest.fixture
def coupons():
    return CouponManager()


def test_describe_discount():
    assert describe_discount(10, DiscountKind.PERCENTAGE) == "10% off"
    assert describe_discount(50, DiscountKind.FIXED) == "₹50 off"


class TestApply:
    @pytest.mark.parametrize("code", ["", "   ", None])
    async def test_blank_code_is_rejected_locally(self, make_session, backend, coupons, code):
        session = make_session()

        with pytest.raises(ValidationError) as exc_info:
            await coupons.apply(session, code)

        assert "coupon" in exc_info.value.errors
        assert backend.requests == []

    async def test_fixed_coupon(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (200, envelope({
            "couponCode": "SAVE50",
            "discountAmount": 50,
            "discountType": "fixed",
        })))
        session = make_session(lines=[line(price=300)])

        coupon = await coupons.apply(session, "save50")

        assert coupon.code == "SAVE50"
        assert coupon.discount == 50
        assert coupon.kind == DiscountKind.FIXED
        assert coupon.description == "₹50 off"
        assert session.state.coupon == coupon
        assert session.state.cart_total_override is None
        assert backend.body(backend.calls("POST", APPLY)[0]) == {"code": "SAVE50", "cartValue": 300}
        assert session.notifier.count(ToastLevel.SUCCESS) == 1

    async def test_percentage_coupon_with_new_total(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (200, envelope({
            "couponCode": "WELCOME10",
            "discountAmount": 60,
            "discountType": "percent",
            "description": "10% off up to ₹150",
            "newTotal": 540,
        })))
        session = make_session(lines=[line(price=600)])

        coupon = await coupons.apply(session, "WELCOME10")

        assert coupon.kind == DiscountKind.PERCENTAGE
        assert coupon.description == "10% off up to ₹150"
        assert session.state.cart_total_override == 540

    async def test_nan_discount_becomes_zero(self, make_session, backend, coupons):
        backend.on("POST", APPLY, lambda request: httpx.Response(
            200,
            content=b'{"success": true, "data": {"couponCode": "ODD", "discountAmount": NaN, "newTotal": NaN}}',
        ))
        session = make_session()

        coupon = await coupons.apply(session, "odd")

        assert coupon.discount == 0
        assert session.state.cart_total_override is None
        assert not math.isnan(coupon.discount)

    async def test_rejection_keeps_existing_coupon(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (400, envelope(success=False, message="Coupon has expired")))
        session = make_session()
        existing = AppliedCoupon(code="SAVE50", discount=50)
        session.state.coupon = existing

        with pytest.raises(ServiceRejection) as exc_info:
            await coupons.apply(session, "DIWALI100")

        assert exc_info.value.message == "Coupon has expired"
        assert session.state.coupon == existing
        assert session.notifier.toasts[-1].message == "Coupon has expired"

    async def test_transport_failure(self, make_session, backend, coupons):
        backend.on("POST", APPLY, httpx.ConnectTimeout("timed out"))
        session = make_session()

        with pytest.raises(TransportFailure):
            await coupons.apply(session, "SAVE50")

        assert session.state.coupon is None
        assert session.notifier.toasts[-1].message == "Failed to apply coupon"


class TestRemoveAndReprice:
    async def test_remove_clears_override(self, make_session, coupons):
        session = make_session()
        session.state.coupon = AppliedCoupon(code="WELCOME10", discount=60)
        session.state.cart_total_override = 540

        coupons.remove(session)

        assert session.state.coupon is None
        assert session.state.cart_total_override is None

    async def test_reprice_drops_coupon_no_longer_valid(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (400, envelope(
            success=False, message="Minimum cart value of ₹200 required"
        )))
        session = make_session(lines=[line(price=150)])
        session.state.coupon = AppliedCoupon(code="SAVE50", discount=50)

        await coupons.reprice(session)

        assert session.state.coupon is None
        assert [t.level for t in session.notifier.toasts] == [ToastLevel.WARNING]

    async def test_reprice_is_quiet_when_accepted(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (200, envelope({
            "couponCode": "SAVE50", "discountAmount": 50, "discountType": "fixed",
        })))
        session = make_session(lines=[line(price=300)])
        session.state.coupon = AppliedCoupon(code="SAVE50", discount=50)

        await coupons.reprice(session)

        assert session.state.coupon.code == "SAVE50"
        assert session.notifier.count() == 0

    async def test_negative_new_total_is_floored(self, make_session, backend, coupons):
        backend.on("POST", APPLY, (200, envelope({
            "couponCode": "FLAT500", "discountAmount": 500, "discountType": "percent", "newTotal": -200,
        })))
        session = make_session(lines=[line(price=300)])

        await coupons.apply(session, "FLAT500")

        assert session.state.cart_total_override == 0

    async def test_reprice_without_coupon_is_noop(self, make_session, backend, coupons):
        await coupons.reprice(make_session())
        assert backend.requests == []

    async def test_available_lists_active_coupons(self, make_session, backend, coupons):
        backend.on("GET", "/coupons", (200, envelope([
            {"code": "SAVE50", "status": "active"},
            {"code": "DIWALI100", "status": "expired"},
        ])))

        available = await coupons.available(make_session())

        assert [c["code"] for c in available] == ["SAVE50"]
