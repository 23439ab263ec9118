"""Checkout API routes"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Literal, Optional

import httpx
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, Header, HTTPException

from ..core.config import settings
from ..core.errors import ValidationError
from ..core.session import CheckoutSession, TokenSession, session_manager
from ..models.checkout import PaymentInstrument, PaymentMethod
from ..services.backend_client import StorefrontClient
from ..services.cart import BackendCart
from ..services.checkout import CheckoutService
from ..services.gateway import (
    DeferredPaymentWidget,
    GatewayCancelled,
    GatewayError,
    GatewaySuccess,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])

# Shared across sessions, closed by the app lifespan
http_client: Optional[httpx.AsyncClient] = None
checkout_service: Optional[CheckoutService] = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared backend HTTP client"""
    global http_client
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.backend_timeout)
    return http_client


def get_checkout_service() -> CheckoutService:
    """Get or create checkout service"""
    global checkout_service
    if checkout_service is None:
        checkout_service = CheckoutService()
    return checkout_service


def get_checkout_session(session_id: str) -> CheckoutSession:
    session = session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ==================== Request models ====================


class CreateSessionRequest(BaseModel):
    """Start a checkout for a shopper"""
    token: Optional[str] = None
    user: Optional[dict[str, Any]] = None


class ContactRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AddressRequest(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    label: Optional[str] = None


class SelectAddressRequest(BaseModel):
    address_id: str


class EditStepRequest(BaseModel):
    step: int = Field(ge=1, le=3)


class PaymentMethodRequest(BaseModel):
    method: PaymentMethod
    instrument: Optional[PaymentInstrument] = None
    upi_id: Optional[str] = None
    card_holder: Optional[str] = None


class CouponRequest(BaseModel):
    code: str


class QuantityRequest(BaseModel):
    quantity: int


class PaymentResultRequest(BaseModel):
    """Gateway outcome reported by the browser"""
    status: Literal["success", "cancelled", "error"]
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    reason: Optional[str] = None

    def to_outcome(self):
        if self.status == "success":
            if not self.razorpay_payment_id or not self.razorpay_signature:
                raise ValidationError({"payment": "Payment response is missing its payment id or signature"})
            return GatewaySuccess(
                payment_id=self.razorpay_payment_id,
                order_id=self.razorpay_order_id or "",
                signature=self.razorpay_signature,
            )
        if self.status == "cancelled":
            return GatewayCancelled()
        return GatewayError(code=self.code, description=self.description or "", reason=self.reason)


# ==================== Attempt tasks ====================


def _log_task_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Checkout attempt failed: {task.exception()!r}")


async def _run_attempt(
    session: CheckoutSession,
    attempt: Callable[[CheckoutSession], Awaitable[Any]],
) -> None:
    """
    Run a placement or payment retry as a background task.

    Returns when the attempt finished or the payment widget options are
    published for the browser, whichever comes first.
    """
    if session.task is not None and not session.task.done():
        raise ValidationError({"order": "Your order is already being processed"})

    widget = session.widget
    task = asyncio.create_task(attempt(session))
    task.add_done_callback(_log_task_failure)
    session.task = task

    published = asyncio.create_task(widget.published.wait())
    await asyncio.wait({task, published}, return_when=asyncio.FIRST_COMPLETED)
    if not published.done():
        published.cancel()

    if task.done():
        task.result()


# ==================== Session ====================


@router.post("/session")
async def create_session(
    request: CreateSessionRequest,
    authorization: Optional[str] = Header(None),
    service: CheckoutService = Depends(get_checkout_service),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Start a checkout session.

    The bearer token comes from the body or the ``Authorization`` header.
    """
    token = request.token
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:]

    auth = TokenSession(token, request.user)
    backend = StorefrontClient(settings.backend_base_url, session=auth, http_client=client)
    session = session_manager.create_session(
        auth=auth,
        client=backend,
        cart=BackendCart(backend),
        widget=DeferredPaymentWidget(),
    )
    await service.load(session)
    logger.info(f"Checkout session {session.session_id} started for {auth.shopper_id}")
    return service.snapshot(session)


@router.get("/session/{session_id}")
async def get_session(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Get the checkout snapshot, draining pending toasts"""
    return service.snapshot(session)


@router.delete("/session/{session_id}")
async def delete_session(session_id: str):
    """Delete a session"""
    if session_manager.delete_session(session_id):
        return {"message": "Session deleted"}
    raise HTTPException(status_code=404, detail="Session not found")


# ==================== Contact & steps ====================


@router.put("/session/{session_id}/contact")
async def update_contact(
    request: ContactRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    service.update_contact(session, **request.model_dump())
    return service.snapshot(session)


@router.post("/session/{session_id}/steps/address")
async def continue_to_address(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Complete the contact step"""
    service.continue_to_address(session)
    return service.snapshot(session)


@router.post("/session/{session_id}/steps/payment")
async def continue_to_payment(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Complete the address step, saving a new address first"""
    service.continue_to_payment(session)
    return service.snapshot(session)


@router.post("/session/{session_id}/steps/edit")
async def edit_step(
    request: EditStepRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    service.edit_step(session, request.step)
    return service.snapshot(session)


# ==================== Addresses ====================


@router.put("/session/{session_id}/address")
async def update_address(
    request: AddressRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.update_address(session, **request.model_dump())
    return service.snapshot(session)


@router.post("/session/{session_id}/address/new")
async def start_new_address(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.start_new_address(session)
    return service.snapshot(session)


@router.post("/session/{session_id}/address/save")
async def save_address(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.save_address(session)
    return service.snapshot(session)


@router.post("/session/{session_id}/address/select")
async def select_address(
    request: SelectAddressRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.select_address(session, request.address_id)
    return service.snapshot(session)


@router.delete("/session/{session_id}/addresses/{address_id}")
async def delete_address(
    address_id: str,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.delete_address(session, address_id)
    return service.snapshot(session)


# ==================== Payment method & coupons ====================


@router.put("/session/{session_id}/payment-method")
async def set_payment_method(
    request: PaymentMethodRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.set_payment_method(
        session,
        request.method,
        instrument=request.instrument,
        upi_id=request.upi_id,
        card_holder=request.card_holder,
    )
    return service.snapshot(session)


@router.get("/session/{session_id}/coupons")
async def list_coupons(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Active coupons for the coupon picker"""
    return {"coupons": await service.available_coupons(session)}


@router.post("/session/{session_id}/coupon")
async def apply_coupon(
    request: CouponRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.apply_coupon(session, request.code)
    return service.snapshot(session)


@router.delete("/session/{session_id}/coupon")
async def remove_coupon(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.remove_coupon(session)
    return service.snapshot(session)


# ==================== Cart ====================


@router.put("/session/{session_id}/cart/{product_id}")
async def update_cart_line(
    product_id: str,
    request: QuantityRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.update_quantity(session, product_id, request.quantity)
    return service.snapshot(session)


@router.delete("/session/{session_id}/cart/{product_id}")
async def remove_cart_line(
    product_id: str,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    await service.remove_line(session, product_id)
    return service.snapshot(session)


# ==================== Orders & payment ====================


@router.post("/session/{session_id}/orders")
async def place_order(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Place the order.

    COD orders complete within the request. Online orders return as soon as
    the gateway options are published in ``gateway_options``; the browser
    then reports ``payment/opened`` and ``payment/result``.
    """
    await _run_attempt(session, service.place_order)
    return service.snapshot(session)


@router.post("/session/{session_id}/payment/opened")
async def payment_opened(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Browser confirms the gateway modal is showing"""
    if not session.widget.mark_opened():
        raise ValidationError({"payment": "No payment window is waiting to open"})
    return service.snapshot(session)


@router.post("/session/{session_id}/payment/result")
async def payment_result(
    request: PaymentResultRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Browser reports the gateway outcome; waits for verification to finish"""
    if not session.widget.resolve(request.to_outcome()):
        raise ValidationError({"payment": "No payment is awaiting a result"})
    if session.task is not None:
        await asyncio.wait({session.task})
        session.task.result()
    return service.snapshot(session)


@router.post("/session/{session_id}/payment/retry")
async def retry_payment(
    session: CheckoutSession = Depends(get_checkout_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Re-open the gateway for the pending unpaid order"""
    await _run_attempt(session, service.retry_payment)
    return service.snapshot(session)
