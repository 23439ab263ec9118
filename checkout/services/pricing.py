"""
Pricing Calculator

Pure derivations of the payable amount from cart lines, the applied coupon,
the cart-total override and the resolved shipping charge. Nothing here is
cached; callers recompute on every read.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..core.config import Settings, settings as default_settings
from ..models.cart import CartLine
from ..models.checkout import AppliedCoupon, DeliveryEstimate


def finite_or_none(value: Any) -> Optional[float]:
    """Return ``value`` as a float when it is a finite number, else None"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def subtotal(lines: Iterable[CartLine]) -> float:
    return sum(line.effective_price * line.quantity for line in lines)


def product_discount(lines: Iterable[CartLine]) -> float:
    """Savings from discounted unit prices below list price"""
    total = 0.0
    for line in lines:
        if line.unit_price is not None and line.unit_price < line.price:
            total += (line.price - line.unit_price) * line.quantity
    return total


def coupon_discount(coupon: Optional[AppliedCoupon]) -> float:
    if coupon is None:
        return 0.0
    return finite_or_none(coupon.discount) or 0.0


def effective_cart_value(
    lines: Iterable[CartLine],
    coupon: Optional[AppliedCoupon],
    override: Optional[float],
) -> float:
    """Cart value after the coupon; the server override wins when present"""
    override = finite_or_none(override)
    if override is not None:
        return override
    return subtotal(lines) - coupon_discount(coupon)


def final_total(
    lines: Iterable[CartLine],
    coupon: Optional[AppliedCoupon],
    override: Optional[float],
    shipping_charge: float,
) -> float:
    override = finite_or_none(override)
    if override is not None:
        return max(override + shipping_charge, 0.0)
    return max(subtotal(lines) - coupon_discount(coupon) + shipping_charge, 0.0)


def delivery_savings(
    lines: Iterable[CartLine],
    coupon: Optional[AppliedCoupon],
    override: Optional[float],
    shipping_charge: float,
    estimate: Optional[DeliveryEstimate],
    settings: Settings = default_settings,
) -> float:
    """Shipping fee waived because the order qualifies for free shipping"""
    if estimate is not None and estimate.is_free_shipping and estimate.shipping_charges > 0:
        return estimate.shipping_charges

    value = effective_cart_value(lines, coupon, override)
    if value >= settings.free_delivery_threshold and shipping_charge == 0:
        return settings.delivery_charge
    return 0.0


def amount_for_free_shipping(
    lines: Iterable[CartLine],
    coupon: Optional[AppliedCoupon],
    override: Optional[float],
    estimate: Optional[DeliveryEstimate],
    settings: Settings = default_settings,
) -> float:
    if estimate is not None and estimate.amount_for_free_shipping is not None:
        return estimate.amount_for_free_shipping

    threshold = settings.free_delivery_threshold
    if estimate is not None and estimate.free_shipping_threshold:
        threshold = estimate.free_shipping_threshold
    return max(threshold - effective_cart_value(lines, coupon, override), 0.0)


@dataclass(frozen=True)
class PriceBreakdown:
    """Everything the order summary shows"""
    subtotal: float
    product_discount: float
    coupon_discount: float
    shipping_charge: float
    delivery_savings: float
    amount_for_free_shipping: float
    total: float


def breakdown(
    lines: Iterable[CartLine],
    coupon: Optional[AppliedCoupon],
    override: Optional[float],
    shipping_charge: float,
    estimate: Optional[DeliveryEstimate] = None,
    settings: Settings = default_settings,
) -> PriceBreakdown:
    lines = list(lines)
    return PriceBreakdown(
        subtotal=subtotal(lines),
        product_discount=product_discount(lines),
        coupon_discount=coupon_discount(coupon),
        shipping_charge=shipping_charge,
        delivery_savings=delivery_savings(
            lines, coupon, override, shipping_charge, estimate, settings
        ),
        amount_for_free_shipping=amount_for_free_shipping(
            lines, coupon, override, estimate, settings
        ),
        total=final_total(lines, coupon, override, shipping_charge),
    )
