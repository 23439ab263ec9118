"""Payment verification routes for the mock storefront"""

import logging

from fastapi import APIRouter, Depends

from ..models.order import OrderStatus, PaymentIntentRequest, VerifyPaymentRequest
from ..database.orders import order_db
from ..security.auth import Shopper, require_user
from ..security.signatures import verify_payment_signature
from .envelope import ok, fail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v2/payment-intents", tags=["Payments"])


@router.post("/verify")
async def verify_payment(
    request: VerifyPaymentRequest,
    shopper: Shopper = Depends(require_user),
):
    """Verify a gateway payment signature and mark the order paid"""
    order = order_db.get_order(request.order_id)
    if not order or order.user_id != shopper.user_id:
        return fail("Order not found", status_code=404)

    if order.razorpay_order_id != request.razorpay_order_id:
        return fail("Gateway order does not match this order")

    if not verify_payment_signature(
        request.razorpay_order_id,
        request.razorpay_payment_id,
        request.razorpay_signature,
    ):
        logger.warning(f"Signature mismatch for payment {request.razorpay_payment_id}")
        return fail(
            "Payment verification failed",
            error={"code": "BAD_REQUEST_ERROR", "description": "Invalid payment signature"},
        )

    if order.status != OrderStatus.PAID:
        order_db.mark_paid(order.order_id, request.razorpay_payment_id)

    return ok(
        {
            "orderId": order.order_id,
            "paymentId": request.razorpay_payment_id,
            "verified": True,
        },
        message="Payment verified",
    )


@router.post("")
async def record_payment_intent(
    request: PaymentIntentRequest,
    shopper: Shopper = Depends(require_user),
):
    """Bookkeeping record after a verified payment"""
    order = order_db.get_order(request.order_id)
    if not order or order.user_id != shopper.user_id:
        return fail("Order not found", status_code=404)

    intent = order_db.record_intent(
        order.order_id,
        request.amount,
        details={"paymentId": order.payment_id, "status": order.status.value},
    )
    return ok(intent.to_api(), status_code=201)
