"""Coupon Manager: at most one server-priced coupon per checkout"""

import logging
from typing import Any

from ..core.errors import CheckoutError, ServiceRejection, TransportFailure, ValidationError
from ..core.session import CheckoutSession
from ..models.checkout import AppliedCoupon, DiscountKind
from .pricing import finite_or_none

logger = logging.getLogger(__name__)


def describe_discount(amount: float, kind: DiscountKind) -> str:
    shown = f"{amount:g}"
    if kind == DiscountKind.PERCENTAGE:
        return f"{shown}% off"
    return f"₹{shown} off"


def coupon_from_response(data: dict[str, Any], requested_code: str) -> AppliedCoupon:
    """Build the applied coupon from the coupon service payload"""
    discount = finite_or_none(data.get("discountAmount")) or 0.0
    kind = (
        DiscountKind.PERCENTAGE
        if data.get("discountType") in ("percent", "percentage")
        else DiscountKind.FIXED
    )
    max_discount = finite_or_none(data.get("maxDiscount"))
    return AppliedCoupon(
        code=str(data.get("couponCode") or requested_code).upper(),
        discount=max(discount, 0.0),
        kind=kind,
        description=data.get("description") or describe_discount(discount, kind),
        max_discount=max_discount,
    )


class CouponManager:
    """Applies and removes the checkout coupon"""

    async def apply(
        self, session: CheckoutSession, code: str, notify: bool = True
    ) -> AppliedCoupon:
        """
        Apply a coupon code against the current cart value.

        The existing coupon is only replaced once the service accepts the new
        code. With ``notify`` off no toasts are raised.

        Raises:
            ValidationError: code is blank
            ServiceRejection: coupon service refused the code
            TransportFailure: coupon service unreachable
        """
        code = (code or "").strip()
        if not code:
            raise ValidationError({"coupon": "Please enter a coupon code"})

        code = code.upper()
        cart_value = session.cart.total()

        try:
            response = await session.client.apply_coupon(code, cart_value)
        except TransportFailure:
            if notify:
                session.notifier.error("Failed to apply coupon")
            raise
        except CheckoutError as e:
            if notify:
                session.notifier.error(e.message)
            raise

        if not response.accepted or not isinstance(response.data, dict):
            message = response.error_message("Invalid coupon code")
            logger.info(f"Coupon {code} rejected: {message}")
            if notify:
                session.notifier.error(message)
            raise ServiceRejection(message, status_code=response.status_code)

        coupon = coupon_from_response(response.data, code)
        session.state.coupon = coupon
        override = finite_or_none(response.data.get("newTotal"))
        session.state.cart_total_override = max(override, 0.0) if override is not None else None
        if notify:
            session.notifier.success(f'Coupon "{coupon.code}" applied successfully!')
        logger.info(
            f"Coupon {coupon.code} applied: discount={coupon.discount}, "
            f"override={session.state.cart_total_override}"
        )
        return coupon

    def remove(self, session: CheckoutSession, notify: bool = True) -> None:
        """Clear the coupon and any override, without contacting the service"""
        session.state.coupon = None
        session.state.cart_total_override = None
        if notify:
            session.notifier.success("Coupon removed")

    async def reprice(self, session: CheckoutSession) -> None:
        """Re-apply the active coupon after the cart changed"""
        coupon = session.state.coupon
        if coupon is None:
            return
        try:
            await self.apply(session, coupon.code, notify=False)
        except ServiceRejection as e:
            self.remove(session, notify=False)
            session.notifier.warning(f'Coupon "{coupon.code}" was removed: {e.message}')
        except CheckoutError as e:
            logger.warning(f"Could not re-price coupon {coupon.code}: {e.message}")

    async def available(self, session: CheckoutSession) -> list[dict[str, Any]]:
        """Active coupons the shopper can pick from"""
        try:
            response = await session.client.list_coupons()
        except CheckoutError as e:
            logger.warning(f"Coupon list unavailable: {e.message}")
            return []
        if not response.accepted or not isinstance(response.data, list):
            return []
        return [c for c in response.data if isinstance(c, dict) and c.get("status") == "active"]
