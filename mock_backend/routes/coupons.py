"""Coupon API routes for the mock storefront"""

from fastapi import APIRouter, Depends

from ..models.coupon import ApplyCouponRequest, DiscountType
from ..database.coupons import coupon_db, CouponError
from ..security.auth import Shopper, require_user
from .envelope import ok, fail

router = APIRouter(prefix="/api/v2/coupons", tags=["Coupons"])


@router.get("")
async def list_coupons(shopper: Shopper = Depends(require_user)):
    """List coupons, including expired ones"""
    return ok([c.to_api() for c in coupon_db.list_coupons()])


@router.post("/apply")
async def apply_coupon(
    request: ApplyCouponRequest,
    shopper: Shopper = Depends(require_user),
):
    """
    Validate and price a coupon.

    Percentage coupons also return ``newTotal`` since their cap is applied
    server-side.
    """
    try:
        quote = coupon_db.quote(request.code, request.cart_value)
    except CouponError as e:
        return fail(e.message, status_code=e.status_code)

    coupon = quote.coupon
    data = {
        "couponCode": coupon.code,
        "discountAmount": quote.discount,
        "discountType": coupon.discount_type.value,
        "description": coupon.description,
        "maxDiscount": coupon.max_discount,
    }
    if coupon.discount_type == DiscountType.PERCENT:
        data["newTotal"] = quote.new_total
    return ok(data, message="Coupon applied")
