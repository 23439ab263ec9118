"""
Order & Payment Orchestrator

Drives a single placement attempt through an explicit state value:

    Idle -> ValidatingCart -> CreatingOrder -> Completed                (cod)
    Idle -> ValidatingCart -> CreatingOrder -> AwaitingGateway
         -> VerifyingPayment -> Completed | PaymentUnreconciled      (online)

Every step is awaited strictly before the next one starts. A created order is
never cancelled; dismissals and gateway errors leave it pending so payment can
be retried against the same order id.
"""

import re
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings, settings as default_settings
from ..core.errors import (
    AuthFailure,
    CheckoutError,
    GatewayFailure,
    ServiceRejection,
    UnreconciledPayment,
    ValidationError,
)
from ..core.session import (
    AttemptState,
    AwaitingGateway,
    CheckoutSession,
    Completed,
    CreatingOrder,
    Idle,
    PaymentUnreconciled,
    ValidatingCart,
    VerifyingPayment,
)
from ..database.orders import OrderRecordDatabase
from ..models.cart import CartLine
from ..models.checkout import (
    GatewayOrder,
    OrderAddress,
    OrderItem,
    OrderPayload,
    PaymentInstrument,
    PaymentMethod,
    PaymentProvider,
    PendingOrder,
)
from . import pricing
from .backend_client import ApiResponse
from .gateway import (
    GatewayCancelled,
    GatewayError,
    GatewaySuccess,
    build_options,
    describe_gateway_error,
)
from .steps import StepController

logger = logging.getLogger(__name__)

VERIFICATION_FAILED_MESSAGE = "Payment verification failed. Please contact support."


def generate_order_id(now: Optional[datetime] = None) -> str:
    """``ORD-YYYYMMDD-NNNN`` where NNNN are the last digits of the epoch millis"""
    now = now or datetime.now(timezone.utc)
    millis = str(int(now.timestamp() * 1000))
    return f"ORD-{now:%Y%m%d}-{millis[-4:]}"


def placeholder_sku(name: str) -> str:
    slug = re.sub(r"\s+", "-", name).upper()
    return f"{slug}-DEFAULT"


def sku_from_product(product: dict[str, Any]) -> Optional[str]:
    """Product SKU, or the first variant's"""
    if product.get("sku"):
        return product["sku"]
    variants = product.get("variants") or []
    if variants and isinstance(variants[0], dict):
        return variants[0].get("sku")
    return None


def gateway_order_from(response: ApiResponse) -> Optional[GatewayOrder]:
    """Gateway block from ``data.razorpay`` or a top-level ``razorpay``"""
    block = None
    if isinstance(response.data, dict):
        block = response.data.get("razorpay")
    if block is None and isinstance(response.body, dict):
        block = response.body.get("razorpay")
    if not isinstance(block, dict) or not block.get("orderId"):
        return None
    try:
        return GatewayOrder.model_validate(block)
    except PydanticValidationError as e:
        logger.warning(f"Unusable gateway order block: {e}")
        return None


class OrderPaymentOrchestrator:
    """Places orders and runs the gateway payment round-trip"""

    def __init__(
        self,
        steps: StepController,
        records: OrderRecordDatabase,
        settings: Settings = default_settings,
    ):
        self.steps = steps
        self.records = records
        self.settings = settings

    # ==================== Entry points ====================

    async def place_order(self, session: CheckoutSession) -> AttemptState:
        """
        Place the order for the session's current checkout state.

        Raises:
            ValidationError: the final gate failed or an attempt is in flight
            UnreconciledPayment: an earlier payment awaits manual reconciliation

        Every other failure is reported as a toast and a return to Idle.
        """
        self._ensure_not_unreconciled(session)
        if session.processing or not isinstance(session.attempt, (Idle, Completed)):
            raise ValidationError({"order": "Your order is already being processed"})

        self.steps.ensure_ready(session)

        method = session.state.payment.method
        pending = session.pending_order
        if (
            method == PaymentMethod.ONLINE
            and pending is not None
            and pending.payment_provider == PaymentProvider.RAZORPAY
            and pending.gateway is not None
        ):
            logger.info(f"Reusing unpaid order {pending.order_id} for payment")
            return await self.retry_payment(session)

        session.processing = True
        try:
            await self._run_placement(session, method)
        except Exception:
            self._recover(session)
            raise
        finally:
            session.processing = False
        return session.attempt

    async def retry_payment(self, session: CheckoutSession) -> AttemptState:
        """Re-open the gateway for the pending unpaid order"""
        self._ensure_not_unreconciled(session)
        pending = session.pending_order
        if (
            not isinstance(session.attempt, Idle)
            or pending is None
            or pending.payment_provider != PaymentProvider.RAZORPAY
        ):
            raise ValidationError({"payment": "There is no unpaid order to retry"})

        session.processing = True
        try:
            await self._pay(session, pending)
        except Exception:
            self._recover(session)
            raise
        finally:
            session.processing = False
        return session.attempt

    # ==================== Placement ====================

    async def _run_placement(self, session: CheckoutSession, method: PaymentMethod) -> None:
        session.transition(ValidatingCart())
        validation = await session.cart.validate()
        if not validation.valid:
            message = validation.message or "Failed to verify cart with server. Please try again."
            logger.info(f"Cart validation failed for session {session.session_id}: {message}")
            session.notifier.error(message)
            session.transition(Idle(reason=message))
            return

        delivery = session.state.delivery
        if not delivery.available:
            message = delivery.message or "Delivery not available for this pincode"
            session.notifier.error(message)
            session.transition(Idle(reason=message))
            return

        session.transition(CreatingOrder(method=method))
        try:
            pending = await self._create_order(session, method)
        except AuthFailure as e:
            session.notifier.error(e.message)
            session.navigation.to_login(self.settings.checkout_path)
            session.transition(Idle(reason=e.message))
            return
        except CheckoutError as e:
            session.notifier.error(e.message)
            session.transition(Idle(reason=e.message))
            return

        session.pending_order = pending
        await self._create_shipment(session, pending)

        if method == PaymentMethod.COD:
            await self._finalize_cod(session, pending)
        else:
            await self._pay(session, pending)

    async def _resolve_sku(self, session: CheckoutSession, line: CartLine) -> str:
        sku = line.variant_sku or line.sku
        if not sku and line.slug:
            try:
                response = await session.client.get_product_by_slug(line.slug)
            except CheckoutError as e:
                logger.warning(f"SKU lookup failed for {line.name}: {e.message}")
            else:
                if response.ok and isinstance(response.data, dict):
                    sku = sku_from_product(response.data)
        if not sku:
            sku = placeholder_sku(line.name)
            logger.warning(f"No SKU for product {line.product_id}, using placeholder {sku}")
        return sku

    def build_payload(
        self,
        session: CheckoutSession,
        order_id: str,
        items: list[OrderItem],
        method: PaymentMethod,
    ) -> OrderPayload:
        state = session.state
        contact = state.contact
        address = state.address
        if state.selected_address_id and not state.adding_new_address:
            address = self.steps.addresses.get_address(
                session.auth.shopper_id, state.selected_address_id
            ) or address

        return OrderPayload(
            order_id=order_id,
            items=items,
            discount=pricing.coupon_discount(state.coupon),
            shipping_charges=state.delivery.shipping_charge,
            tax=0.0,
            address=OrderAddress(
                label=address.label or "Home",
                name=contact.full_name,
                line1=address.address,
                city=address.city,
                state=address.state,
                country=address.country or "India",
                pincode=address.pincode,
                phone=contact.phone,
                email=contact.email,
            ),
            payment_provider=(
                PaymentProvider.RAZORPAY if method == PaymentMethod.ONLINE else PaymentProvider.COD
            ),
        )

    async def _create_order(self, session: CheckoutSession, method: PaymentMethod) -> PendingOrder:
        lines = session.cart.lines
        skus = await asyncio.gather(*(self._resolve_sku(session, line) for line in lines))
        items = [
            OrderItem(product_id=line.product_id, sku=sku, qty=line.quantity)
            for line, sku in zip(lines, skus)
        ]

        order_id = generate_order_id()
        payload = self.build_payload(session, order_id, items, method)
        logger.info(f"Creating order {order_id} ({payload.payment_provider.value}, {len(items)} items)")

        response = await session.client.create_order(payload.to_wire())
        if not response.ok or response.rejected:
            message = response.error_message(f"Server error: {response.status_code}")
            logger.error(f"Order {order_id} rejected: {message}")
            raise ServiceRejection(message, status_code=response.status_code)

        session.notifier.success(f"Order {order_id} created successfully!")
        return PendingOrder(
            order_id=order_id,
            payment_provider=payload.payment_provider,
            gateway=gateway_order_from(response),
        )

    async def _create_shipment(self, session: CheckoutSession, pending: PendingOrder) -> None:
        try:
            response = await session.client.create_shipment(pending.order_id)
        except CheckoutError as e:
            logger.warning(f"Shipment creation failed for {pending.order_id}: {e.message}")
            return
        if response.ok and isinstance(response.data, dict) and response.data.get("shipmentId"):
            pending.shipment_id = str(response.data["shipmentId"])
        else:
            logger.warning(f"Shipment not created for {pending.order_id}: {response.status_code}")

    async def _finalize_cod(self, session: CheckoutSession, pending: PendingOrder) -> None:
        self.records.record_completion(pending.order_id, "confirmed", {"method": "cod"})
        session.notifier.success(f"COD Order {pending.order_id} placed successfully!")
        session.navigation.to_confirmation(pending.order_id)
        await session.cart.clear()
        session.pending_order = None
        session.transition(Completed(order_id=pending.order_id, method=PaymentMethod.COD))

    # ==================== Gateway ====================

    def _clear_processing(self, session: CheckoutSession) -> None:
        session.processing = False

    async def _pay(self, session: CheckoutSession, pending: PendingOrder) -> None:
        gateway = pending.gateway
        if gateway is None:
            message = "Payment order not created. Please try again."
            logger.error(f"Order {pending.order_id} has no gateway order, discarding it")
            session.pending_order = None
            session.notifier.error(message)
            session.transition(Idle(reason=message))
            return

        payment = session.state.payment
        options = build_options(
            gateway,
            session.state.contact,
            payment.instrument,
            upi_id=payment.upi_id.strip(),
            card_holder=payment.card_holder.strip(),
            settings=self.settings,
        )
        session.transition(AwaitingGateway(order_id=pending.order_id, gateway_order_id=gateway.order_id))

        try:
            await asyncio.wait_for(
                session.widget.open(options),
                timeout=self.settings.gateway_init_timeout,
            )
        except asyncio.TimeoutError:
            message = "Payment initialization timeout. Please try again."
            logger.warning(f"Payment widget for {pending.order_id} did not open in time")
            session.notifier.warning(message)
            session.transition(Idle(reason=message))
            return
        except GatewayFailure as e:
            logger.warning(
                f"Payment widget for {pending.order_id} failed to initialise: {e.reason or e.code}"
            )
            session.notifier.error(e.message)
            session.transition(Idle(reason=e.message))
            return

        if payment.instrument == PaymentInstrument.UPI:
            session.notifier.success("Opening UPI payment gateway...")

        grace = asyncio.get_running_loop().call_later(
            self.settings.gateway_grace_timeout, self._clear_processing, session
        )
        try:
            outcome = await session.widget.outcome()
        finally:
            grace.cancel()

        if isinstance(outcome, GatewayCancelled):
            session.notifier.warning("Payment cancelled")
            session.transition(Idle(reason="Payment cancelled"))
        elif isinstance(outcome, GatewayError):
            message = describe_gateway_error(outcome)
            logger.info(
                f"Gateway error for {pending.order_id}: code={outcome.code} reason={outcome.reason}"
            )
            session.notifier.error(message)
            session.transition(Idle(reason=message))
        else:
            await self._verify(session, pending, gateway, outcome)

    async def _verify(
        self,
        session: CheckoutSession,
        pending: PendingOrder,
        gateway: GatewayOrder,
        success: GatewaySuccess,
    ) -> None:
        session.transition(VerifyingPayment(order_id=pending.order_id, payment_id=success.payment_id))

        failure: Optional[str] = None
        verification: Any = None
        try:
            response = await session.client.verify_payment(
                order_id=pending.order_id,
                gateway_order_id=success.order_id or gateway.order_id,
                payment_id=success.payment_id,
                signature=success.signature,
            )
        except CheckoutError as e:
            logger.error(f"Verification of payment {success.payment_id} failed: {e.message}")
            failure = "Payment verification failed due to technical issue. Please contact support."
        else:
            if response.ok and response.success:
                verification = response.data
            else:
                failure = response.error_message(VERIFICATION_FAILED_MESSAGE)
                logger.error(
                    f"Payment {success.payment_id} for {pending.order_id} not verified: "
                    f"{response.status_code} {failure}"
                )

        if failure is not None:
            session.notifier.error(failure)
            session.notifier.warning(f"Payment ID for support: {success.payment_id}")
            session.transition(
                PaymentUnreconciled(
                    order_id=pending.order_id,
                    payment_id=success.payment_id,
                    message=failure,
                )
            )
            return

        await self._finalize_online(session, pending, gateway, success, verification)

    async def _finalize_online(
        self,
        session: CheckoutSession,
        pending: PendingOrder,
        gateway: GatewayOrder,
        success: GatewaySuccess,
        verification: Any,
    ) -> None:
        state = session.state
        amount = pricing.final_total(
            session.cart.lines,
            state.coupon,
            state.cart_total_override,
            state.delivery.shipping_charge,
        )
        try:
            intent = await session.client.record_payment_intent(pending.order_id, amount)
            intent_ok = intent.ok
        except CheckoutError as e:
            logger.warning(f"Payment intent for {pending.order_id} not recorded: {e.message}")
            intent_ok = False
        if not intent_ok:
            session.notifier.warning("Payment completed but processing failed. Please contact support.")

        instrument = state.payment.instrument
        details = {
            "razorpay_payment_id": success.payment_id,
            "razorpay_order_id": success.order_id or gateway.order_id,
            "razorpay_signature": success.signature,
            "payment_method": instrument.value if instrument else None,
            "verification_status": "verified",
            "verification_data": verification,
        }
        if instrument == PaymentInstrument.UPI and state.payment.upi_id:
            details["upi_id"] = state.payment.upi_id.strip()
        self.records.record_completion(pending.order_id, "completed", details)

        session.notifier.success("Payment successful! Order completed.")
        session.navigation.to_confirmation(pending.order_id)
        await session.cart.clear()
        session.pending_order = None
        session.transition(Completed(order_id=pending.order_id, method=PaymentMethod.ONLINE))

    # ==================== Guards ====================

    @staticmethod
    def _ensure_not_unreconciled(session: CheckoutSession) -> None:
        attempt = session.attempt
        if isinstance(attempt, PaymentUnreconciled):
            raise UnreconciledPayment(
                attempt.message or VERIFICATION_FAILED_MESSAGE,
                payment_id=attempt.payment_id,
                order_id=attempt.order_id,
            )

    @staticmethod
    def _recover(session: CheckoutSession) -> None:
        """Leave a safe state after an unexpected error"""
        attempt = session.attempt
        logger.error(f"Unexpected error during {attempt.phase} for session {session.session_id}", exc_info=True)
        if isinstance(attempt, VerifyingPayment):
            message = "Payment verification failed due to technical issue. Please contact support."
            session.notifier.error(message)
            session.notifier.warning(f"Payment ID for support: {attempt.payment_id}")
            session.transition(
                PaymentUnreconciled(order_id=attempt.order_id, payment_id=attempt.payment_id, message=message)
            )
        elif not isinstance(attempt, (Idle, Completed, PaymentUnreconciled)):
            message = "Failed to process order. Please try again."
            session.notifier.error(message)
            session.transition(Idle(reason=message))
