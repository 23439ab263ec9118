"""Coupon models for the mock storefront"""

from pydantic import Field
from typing import Optional
from enum import Enum

from .base import ApiModel


class DiscountType(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class CouponStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class Coupon(ApiModel):
    code: str
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    max_discount: Optional[float] = None
    min_cart_value: float = 0.0
    status: CouponStatus = CouponStatus.ACTIVE
    description: str = ""


class ApplyCouponRequest(ApiModel):
    code: str
    cart_value: float = Field(ge=0)
