"""Coupon catalogue for the mock storefront"""

from dataclasses import dataclass
from typing import Optional

from ..models.coupon import Coupon, CouponStatus, DiscountType

COUPONS: dict[str, Coupon] = {
    "SAVE50": Coupon(
        code="SAVE50",
        discount_type=DiscountType.FIXED,
        discount_value=50,
        min_cart_value=200,
        description="₹50 off on orders above ₹200",
    ),
    "WELCOME10": Coupon(
        code="WELCOME10",
        discount_type=DiscountType.PERCENT,
        discount_value=10,
        max_discount=150,
        description="10% off up to ₹150",
    ),
    "DIWALI100": Coupon(
        code="DIWALI100",
        discount_type=DiscountType.FIXED,
        discount_value=100,
        status=CouponStatus.EXPIRED,
        description="₹100 off",
    ),
}


class CouponError(Exception):
    """Coupon cannot be applied"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class CouponQuote:
    coupon: Coupon
    discount: float
    new_total: float


class CouponDatabase:
    """In-memory coupon storage"""

    def __init__(self):
        self.coupons = COUPONS.copy()

    def get_coupon(self, code: str) -> Optional[Coupon]:
        return self.coupons.get(code.upper())

    def list_coupons(self) -> list[Coupon]:
        return list(self.coupons.values())

    def quote(self, code: str, cart_value: float) -> CouponQuote:
        """
        Price a coupon against a cart value.

        Raises:
            CouponError: unknown, expired or below the minimum cart value
        """
        coupon = self.get_coupon(code)
        if coupon is None:
            raise CouponError("Invalid coupon code", status_code=404)
        if coupon.status != CouponStatus.ACTIVE:
            raise CouponError("Coupon has expired")
        if cart_value < coupon.min_cart_value:
            raise CouponError(f"Minimum cart value of ₹{coupon.min_cart_value:g} required")

        if coupon.discount_type == DiscountType.PERCENT:
            discount = round(cart_value * coupon.discount_value / 100, 2)
            if coupon.max_discount is not None:
                discount = min(discount, coupon.max_discount)
        else:
            discount = coupon.discount_value
        discount = min(discount, cart_value)

        return CouponQuote(coupon=coupon, discount=discount, new_total=round(cart_value - discount, 2))


# Singleton instance
coupon_db = CouponDatabase()
