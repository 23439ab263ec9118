"""
Shipping Resolver

Resolves the shipping charge and deliverability for the address pincode.

- Incomplete pincode or empty cart: static default charge, no remote call.
- ``success: true``: adopt the server quote.
- ``success: false``: delivery unavailable, charge 0.
- Transport failure: static free-shipping threshold rule, deliverability
  left optimistic so a flaky network never blocks checkout.

Each state slice carries a request generation; a response that arrives after
a newer request has started is discarded.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings, settings as default_settings
from ..core.errors import CheckoutError
from ..core.session import CheckoutSession
from ..models.cart import CartLine
from ..models.checkout import DeliveryEstimate, PaymentMethod
from . import pricing

logger = logging.getLogger(__name__)

COD_UNAVAILABLE_MESSAGE = (
    "Cash on Delivery is not available for this pincode. Switched to online payment."
)
UNDELIVERABLE_MESSAGE = "Delivery not available for this pincode"


def parse_estimate(data: dict[str, Any]) -> Optional[DeliveryEstimate]:
    """Build an estimate from a backend payload, ignoring null fields"""
    try:
        return DeliveryEstimate.model_validate(
            {k: v for k, v in data.items() if v is not None}
        )
    except PydanticValidationError as e:
        logger.warning(f"Unusable delivery estimate from backend: {e}")
        return None


class ShippingResolver:
    """Resolves shipping charge and deliverability for a checkout session"""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    def parcel_weight(self, lines: list[CartLine]) -> float:
        """Approximate parcel weight from unit quantities"""
        weight = sum(line.quantity * self.settings.parcel_weight_per_unit for line in lines)
        return max(weight, self.settings.min_parcel_weight)

    def fallback_charge(self, effective_total: float) -> float:
        if effective_total >= self.settings.free_delivery_threshold:
            return 0.0
        return self.settings.delivery_charge

    def _switch_off_cod(self, session: CheckoutSession) -> None:
        payment = session.state.payment
        if payment.method == PaymentMethod.COD:
            payment.method = PaymentMethod.ONLINE
            session.notifier.warning(COD_UNAVAILABLE_MESSAGE)

    async def resolve(self, session: CheckoutSession) -> None:
        """Run the full shipping resolution for the current inputs"""
        state = session.state
        delivery = state.delivery
        ticket = delivery.shipping_generation.begin()
        lines = session.cart.lines

        if not state.address.has_valid_pincode:
            delivery.shipping_charge = self.settings.delivery_charge
            delivery.mark_available()
            return

        if not lines or pricing.subtotal(lines) <= 0:
            delivery.shipping_charge = self.settings.delivery_charge
            delivery.mark_available()
            return

        effective_total = pricing.effective_cart_value(
            lines, state.coupon, state.cart_total_override
        )
        delivery.calculating = True
        try:
            response = await session.client.calculate_shipping(
                pincode=state.address.pincode,
                cart_total=max(effective_total, self.settings.min_shipping_cart_total),
                weight=self.parcel_weight(lines),
                cod=state.payment.method == PaymentMethod.COD,
            )
        except CheckoutError as e:
            if delivery.shipping_generation.is_current(ticket):
                logger.warning(f"Shipping calculation unavailable, using fallback: {e.message}")
                delivery.shipping_charge = self.fallback_charge(effective_total)
                delivery.estimate = None
                delivery.calculating = False
            return

        if not delivery.shipping_generation.is_current(ticket):
            logger.debug(f"Discarding stale shipping quote for {state.address.pincode}")
            return
        delivery.calculating = False

        if response.accepted and isinstance(response.data, dict):
            data = response.data
            delivery.mark_available()
            delivery.shipping_charge = pricing.finite_or_none(data.get("totalShipping")) or 0.0
            delivery.estimate = parse_estimate(data)
            if data.get("codAvailable") is False:
                self._switch_off_cod(session)
        elif response.parsed and (response.ok or not response.success):
            message = response.error_message(UNDELIVERABLE_MESSAGE)
            delivery.mark_unavailable(message)
            session.notifier.error(message)
            delivery.shipping_charge = 0.0
            delivery.estimate = None
        else:
            logger.warning(
                f"Shipping calculation returned {response.status_code}, using fallback"
            )
            delivery.shipping_charge = self.fallback_charge(effective_total)
            delivery.estimate = None

    async def check_availability(self, session: CheckoutSession) -> None:
        """Quick serviceability check run whenever the pincode is complete"""
        state = session.state
        delivery = state.delivery
        ticket = delivery.check_generation.begin()

        if not state.address.has_valid_pincode:
            delivery.pincode_info = None
            delivery.estimate = None
            delivery.mark_available()
            return

        delivery.checking = True
        try:
            response = await session.client.check_delivery(state.address.pincode)
        except CheckoutError as e:
            if delivery.check_generation.is_current(ticket):
                logger.warning(f"Delivery check failed: {e.message}")
                delivery.checking = False
            return

        if not delivery.check_generation.is_current(ticket):
            logger.debug(f"Discarding stale delivery check for {state.address.pincode}")
            return
        delivery.checking = False

        if response.accepted and isinstance(response.data, dict):
            data = response.data
            delivery.pincode_info = data

            if data.get("isServiceable") is False:
                message = data.get("message") or UNDELIVERABLE_MESSAGE
                delivery.mark_unavailable(message)
                session.notifier.error(message)
            else:
                delivery.mark_available()

            if data.get("codAvailable") is False:
                self._switch_off_cod(session)

            if data.get("estimatedDelivery") or data.get("shippingCharges") is not None:
                partner = data.get("delivery")
                merged = delivery.estimate.to_wire() if delivery.estimate else {}
                merged.update(data)
                merged["deliveryPartner"] = (
                    partner.get("message") if isinstance(partner, dict) else None
                ) or "Standard Delivery"
                delivery.estimate = parse_estimate(merged) or delivery.estimate
        elif response.rejected:
            message = response.error_message(UNDELIVERABLE_MESSAGE)
            delivery.mark_unavailable(message)
            session.notifier.error(message)
