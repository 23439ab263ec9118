"""Order API routes for the mock storefront"""

import logging

from fastapi import APIRouter, Depends

from ..models.order import CreateOrderRequest, PaymentProvider
from ..database.orders import order_db
from ..database.products import product_db
from ..security.auth import Shopper, require_user
from ..security.signatures import get_gateway_key_id
from .envelope import ok, fail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v2/orders", tags=["Orders"])


@router.post("")
async def create_order(
    request: CreateOrderRequest,
    shopper: Shopper = Depends(require_user),
):
    """
    Create an order.

    COD orders are confirmed immediately. Razorpay orders are created
    pending payment and carry a ``razorpay`` block for the gateway widget.
    """
    if order_db.get_order(request.order_id):
        return fail(f"Order {request.order_id} already exists", status_code=409)

    subtotal = 0.0
    for line in request.items:
        product = product_db.get_product(line.product_id)
        if not product:
            return fail(f"Product {line.product_id} not found", status_code=404)
        if line.sku not in product.known_skus():
            return fail(f"Invalid SKU {line.sku} for product {line.product_id}")
        if line.qty > product.stock_quantity:
            return fail(f"Insufficient stock for {product.name}")
        subtotal += product.sale_price * line.qty

    order = order_db.create_order(shopper.user_id, request, subtotal)
    logger.info(f"Order {order.order_id} created for {shopper.user_id}: total={order.total}")

    data = {
        "orderId": order.order_id,
        "status": order.status.value,
        "total": order.total,
    }
    if order.payment_provider == PaymentProvider.RAZORPAY:
        data["razorpay"] = {
            "orderId": order.razorpay_order_id,
            "amount": int(round(order.total * 100)),
            "currency": order.currency,
            "key": get_gateway_key_id(),
        }
    return ok(data, message="Order created", status_code=201)


@router.get("")
async def list_orders(shopper: Shopper = Depends(require_user)):
    """List the shopper's orders"""
    return ok([o.to_api() for o in order_db.list_orders(user_id=shopper.user_id)])


@router.get("/{order_id}")
async def get_order(order_id: str, shopper: Shopper = Depends(require_user)):
    """Get an order by ID"""
    order = order_db.get_order(order_id)
    if not order or order.user_id != shopper.user_id:
        return fail("Order not found", status_code=404)
    return ok(order.to_api())
