"""Tests for the pricing calculator"""

import math

import pytest

from checkout.models.checkout import AppliedCoupon, DeliveryEstimate, DiscountKind
from checkout.services import pricing

from conftest import line


def coupon(discount: float) -> AppliedCoupon:
    return AppliedCoupon(code="SAVE", discount=discount, kind=DiscountKind.FIXED)


class TestFiniteOrNone:
    @pytest.mark.parametrize("value", [None, "12", math.nan, math.inf, -math.inf, True])
    def test_rejects_non_finite_values(self, value):
        assert pricing.finite_or_none(value) is None

    def test_accepts_numbers(self):
        assert pricing.finite_or_none(3) == 3.0
        assert pricing.finite_or_none(2.5) == 2.5


class TestTotals:
    def test_subtotal_uses_discounted_unit_price(self):
        lines = [line(price=500, unit_price=400, quantity=2), line("p2", price=100)]
        assert pricing.subtotal(lines) == 900
        assert pricing.product_discount(lines) == 200

    def test_final_total_without_coupon(self):
        assert pricing.final_total([line(price=300)], None, None, 99) == 399

    def test_final_total_never_negative(self):
        total = pricing.final_total([line(price=100)], coupon(250), None, 0)
        assert total == 0

    def test_override_plus_shipping(self):
        total = pricing.final_total([line(price=1000)], coupon(100), 850, 99)
        assert total == 949

    def test_negative_override_never_negative(self):
        assert pricing.final_total([], None, -80.0, 0.0) == 0
        assert pricing.final_total([line(price=300)], coupon(400), -80.0, 50) == 0

    def test_nan_override_is_ignored(self):
        total = pricing.final_total([line(price=300)], coupon(50), math.nan, 99)
        assert total == 349

    def test_scenario_free_shipping_above_threshold(self):
        # 600 cart, shipping resolved free
        assert pricing.final_total([line(price=600)], None, None, 0) == 600

    def test_scenario_fixed_coupon_with_default_shipping(self):
        assert pricing.final_total([line(price=300)], coupon(50), None, 99) == 349

    def test_removing_coupon_restores_total(self):
        lines = [line(price=300)]
        before = pricing.final_total(lines, None, None, 99)
        with_coupon = pricing.final_total(lines, coupon(50), None, 99)
        after = pricing.final_total(lines, None, None, 99)
        assert with_coupon < before
        assert after == before


class TestShippingHints:
    def test_delivery_savings_from_estimate(self, settings):
        estimate = DeliveryEstimate(shipping_charges=79, is_free_shipping=True)
        savings = pricing.delivery_savings([line(price=600)], None, None, 0, estimate, settings)
        assert savings == 79

    def test_delivery_savings_from_threshold(self, settings):
        savings = pricing.delivery_savings([line(price=600)], None, None, 0, None, settings)
        assert savings == settings.delivery_charge

    def test_no_savings_below_threshold(self, settings):
        savings = pricing.delivery_savings([line(price=300)], None, None, 99, None, settings)
        assert savings == 0

    def test_amount_for_free_shipping_uses_effective_value(self, settings):
        remaining = pricing.amount_for_free_shipping([line(price=300)], coupon(50), None, None, settings)
        assert remaining == 249

    def test_amount_for_free_shipping_prefers_estimate(self, settings):
        estimate = DeliveryEstimate(amount_for_free_shipping=12)
        assert pricing.amount_for_free_shipping([line()], None, None, estimate, settings) == 12

    def test_breakdown(self, settings):
        result = pricing.breakdown(
            [line(price=400, unit_price=300)], coupon(50), None, 99, None, settings
        )
        assert result.subtotal == 300
        assert result.product_discount == 100
        assert result.coupon_discount == 50
        assert result.total == 349
        assert result.amount_for_free_shipping == 249
