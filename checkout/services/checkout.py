"""
Checkout Service

Facade the HTTP routes talk to. Applies shopper edits to a checkout session
and re-runs the dependent recomputations (shipping resolution, delivery
check, coupon re-pricing) that each edit triggers.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Optional

from ..core.config import Settings, settings as default_settings
from ..core.errors import ValidationError
from ..core.session import AttemptState, CheckoutSession, CheckoutStep, Completed, Idle
from ..database.addresses import AddressBook, address_book
from ..database.orders import OrderRecordDatabase, order_records
from ..models.checkout import (
    AppliedCoupon,
    ContactInfo,
    PaymentInstrument,
    PaymentMethod,
    ShippingAddress,
)
from . import pricing
from .coupons import CouponManager
from .orchestrator import OrderPaymentOrchestrator
from .shipping import ShippingResolver
from .steps import StepController, address_errors, is_valid_upi_id

logger = logging.getLogger(__name__)

COD_NOT_AVAILABLE = "Cash on Delivery is not available for this pincode"


class CheckoutService:
    """Checkout operations for a single shopper session"""

    def __init__(
        self,
        addresses: AddressBook = address_book,
        records: OrderRecordDatabase = order_records,
        settings: Settings = default_settings,
    ):
        self.settings = settings
        self.addresses = addresses
        self.records = records
        self.steps = StepController(addresses)
        self.shipping = ShippingResolver(settings)
        self.coupons = CouponManager()
        self.orchestrator = OrderPaymentOrchestrator(self.steps, records, settings)

    # ==================== Session lifecycle ====================

    async def load(self, session: CheckoutSession) -> None:
        """Sync the cart and preselect the shopper's default address"""
        await session.cart.sync()

        user = getattr(session.auth, "user", None) or {}
        if user:
            session.state.contact = ContactInfo(
                full_name=user.get("name") or user.get("fullName") or "",
                email=user.get("email") or "",
                phone=user.get("phone") or "",
            )

        default = self.addresses.get_default(session.auth.shopper_id)
        if default is not None:
            session.state.address = default
            session.state.selected_address_id = default.id
            session.state.adding_new_address = False
        else:
            session.state.adding_new_address = True

        await self._refresh_delivery(session, check=True)

    async def _refresh_delivery(self, session: CheckoutSession, check: bool = False) -> None:
        method = session.state.payment.method
        if check:
            await asyncio.gather(
                self.shipping.check_availability(session),
                self.shipping.resolve(session),
            )
        else:
            await self.shipping.resolve(session)

        # COD auto-switch changes the quote inputs
        if session.state.payment.method != method:
            await self.shipping.resolve(session)

    # ==================== Contact & steps ====================

    def update_contact(self, session: CheckoutSession, **fields: Optional[str]) -> ContactInfo:
        updates = {k: v for k, v in fields.items() if v is not None}
        session.state.contact = session.state.contact.model_copy(update=updates)
        return session.state.contact

    def continue_to_address(self, session: CheckoutSession) -> None:
        self.steps.continue_to_address(session)

    def continue_to_payment(self, session: CheckoutSession) -> None:
        self.steps.continue_to_payment(session)

    def edit_step(self, session: CheckoutSession, step: int) -> None:
        self.steps.edit(session, step)

    # ==================== Addresses ====================

    async def update_address(self, session: CheckoutSession, **fields: Optional[str]) -> ShippingAddress:
        """Edit the in-progress address; editing always starts a new address"""
        state = session.state
        previous_pincode = state.address.pincode
        updates = {k: v for k, v in fields.items() if v is not None}

        if not state.adding_new_address:
            state.adding_new_address = True
            state.selected_address_id = None
            updates.setdefault("id", None)
            updates.setdefault("is_default", False)
        state.address = state.address.model_copy(update=updates)

        if state.address.pincode != previous_pincode:
            await self._refresh_delivery(session, check=True)
        return state.address

    async def select_address(self, session: CheckoutSession, address_id: str) -> ShippingAddress:
        address = self.addresses.get_address(session.auth.shopper_id, address_id)
        if address is None:
            raise ValidationError({"address": "Address not found"})

        state = session.state
        previous_pincode = state.address.pincode
        state.address = address
        state.selected_address_id = address.id
        state.adding_new_address = False

        if address.pincode != previous_pincode:
            await self._refresh_delivery(session, check=True)
        return address

    async def start_new_address(self, session: CheckoutSession) -> None:
        state = session.state
        state.address = ShippingAddress()
        state.selected_address_id = None
        state.adding_new_address = True
        await self._refresh_delivery(session, check=True)

    async def save_address(self, session: CheckoutSession) -> ShippingAddress:
        """Save the in-progress address and select it"""
        state = session.state
        errors = address_errors(state.address)
        if errors:
            raise ValidationError(errors)
        saved = self.addresses.save_address(session.auth.shopper_id, state.address)
        state.address = saved
        state.selected_address_id = saved.id
        state.adding_new_address = False
        return saved

    async def delete_address(self, session: CheckoutSession, address_id: str) -> None:
        shopper_id = session.auth.shopper_id
        if not self.addresses.delete_address(shopper_id, address_id):
            raise ValidationError({"address": "Address not found"})

        if session.state.selected_address_id != address_id:
            return
        fallback = self.addresses.get_default(shopper_id)
        if fallback is not None:
            await self.select_address(session, fallback.id)
        else:
            await self.start_new_address(session)

    # ==================== Payment method ====================

    def cod_available(self, session: CheckoutSession) -> bool:
        delivery = session.state.delivery
        if delivery.estimate is not None and not delivery.estimate.cod_available:
            return False
        if delivery.pincode_info and delivery.pincode_info.get("codAvailable") is False:
            return False
        return True

    async def set_payment_method(
        self,
        session: CheckoutSession,
        method: PaymentMethod,
        instrument: Optional[PaymentInstrument] = None,
        upi_id: Optional[str] = None,
        card_holder: Optional[str] = None,
    ) -> None:
        if method == PaymentMethod.COD and not self.cod_available(session):
            raise ValidationError({"payment": COD_NOT_AVAILABLE})
        if upi_id and not is_valid_upi_id(upi_id.strip()):
            raise ValidationError({"upi_id": "Please enter a valid UPI ID (e.g., 9876543210@paytm)"})

        payment = session.state.payment
        previous = payment.method
        payment.method = method
        if instrument is not None:
            payment.instrument = instrument
        if upi_id is not None:
            payment.upi_id = upi_id.strip()
        if card_holder is not None:
            payment.card_holder = card_holder.strip()

        if method != previous:
            await self._refresh_delivery(session)

    # ==================== Coupons ====================

    async def apply_coupon(self, session: CheckoutSession, code: str) -> AppliedCoupon:
        coupon = await self.coupons.apply(session, code)
        await self._refresh_delivery(session)
        return coupon

    async def remove_coupon(self, session: CheckoutSession) -> None:
        self.coupons.remove(session)
        await self._refresh_delivery(session)

    async def available_coupons(self, session: CheckoutSession) -> list[dict[str, Any]]:
        return await self.coupons.available(session)

    # ==================== Cart ====================

    async def update_quantity(self, session: CheckoutSession, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            await self.remove_line(session, product_id)
            return
        if not session.cart.update_quantity(product_id, quantity):
            raise ValidationError({"cart": "Item not found in cart"})
        await self._after_cart_change(session)

    async def remove_line(self, session: CheckoutSession, product_id: str) -> None:
        if not session.cart.remove(product_id):
            raise ValidationError({"cart": "Item not found in cart"})
        await self._after_cart_change(session)

    def _order_in_flight(self, session: CheckoutSession) -> bool:
        return session.processing or not isinstance(session.attempt, (Idle, Completed))

    async def _after_cart_change(self, session: CheckoutSession) -> None:
        if session.cart.count() == 0:
            if not self._order_in_flight(session):
                logger.info(f"Cart emptied in session {session.session_id}, redirecting to cart")
                self.coupons.remove(session, notify=False)
                session.navigation.to_cart()
            return
        await self.coupons.reprice(session)
        await self._refresh_delivery(session)

    # ==================== Orders ====================

    def pricing(self, session: CheckoutSession) -> pricing.PriceBreakdown:
        state = session.state
        return pricing.breakdown(
            session.cart.lines,
            state.coupon,
            state.cart_total_override,
            state.delivery.shipping_charge,
            state.delivery.estimate,
            self.settings,
        )

    async def place_order(self, session: CheckoutSession) -> AttemptState:
        return await self.orchestrator.place_order(session)

    async def retry_payment(self, session: CheckoutSession) -> AttemptState:
        return await self.orchestrator.retry_payment(session)

    # ==================== Snapshot ====================

    def snapshot(self, session: CheckoutSession, drain: bool = True) -> dict[str, Any]:
        """Serializable view of the session for the storefront UI"""
        state = session.state
        delivery = state.delivery
        attempt = {"phase": session.attempt.phase, **asdict(session.attempt)}
        toasts = session.notifier.drain() if drain else list(session.notifier.toasts)
        redirect = session.navigation.take() if drain else session.navigation.redirect
        options = getattr(session.widget, "options", None)

        return {
            "session_id": session.session_id,
            "current_step": int(state.current_step),
            "completed_steps": sorted(state.completed_steps),
            "can_place_order": state.current_step == CheckoutStep.PAYMENT,
            "contact": state.contact.model_dump(),
            "address": state.address.model_dump(),
            "selected_address_id": state.selected_address_id,
            "adding_new_address": state.adding_new_address,
            "saved_addresses": [
                a.model_dump() for a in self.addresses.list_addresses(session.auth.shopper_id)
            ],
            "payment": {
                "method": state.payment.method.value if state.payment.method else None,
                "instrument": state.payment.instrument.value if state.payment.instrument else None,
                "upi_id": state.payment.upi_id,
                "cod_available": self.cod_available(session),
            },
            "coupon": state.coupon.model_dump() if state.coupon else None,
            "cart_total_override": state.cart_total_override,
            "delivery": {
                "available": delivery.available,
                "message": delivery.message,
                "shipping_charge": delivery.shipping_charge,
                "estimate": delivery.estimate.to_wire() if delivery.estimate else None,
                "pincode_info": delivery.pincode_info,
                "checking": delivery.checking,
                "calculating": delivery.calculating,
            },
            "cart": [line.model_dump() for line in session.cart.lines],
            "pricing": asdict(self.pricing(session)),
            "attempt": attempt,
            "pending_order": session.pending_order.model_dump() if session.pending_order else None,
            "processing": session.processing,
            "gateway_options": options.to_dict() if options is not None else None,
            "toasts": [
                {"message": t.message, "level": t.level.value} for t in toasts
            ],
            "redirect": redirect,
        }
