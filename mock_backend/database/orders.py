"""Order storage for the mock storefront"""

import uuid
from datetime import datetime
from typing import Any, Optional

from ..models.order import (
    CreateOrderRequest,
    Order,
    OrderStatus,
    PaymentIntent,
    PaymentProvider,
)


class OrderDatabase:
    """In-memory orders, payment intents and shipments"""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.intents: dict[str, PaymentIntent] = {}

    def create_order(self, user_id: str, request: CreateOrderRequest, subtotal: float) -> Order:
        """Create an order from a checkout submission"""
        now = datetime.utcnow()
        total = max(subtotal - request.discount + request.shipping_charges + request.tax, 0.0)

        online = request.payment_provider == PaymentProvider.RAZORPAY
        order = Order(
            order_id=request.order_id,
            user_id=user_id,
            items=request.items,
            subtotal=subtotal,
            discount=request.discount,
            shipping_charges=request.shipping_charges,
            tax=request.tax,
            total=round(total, 2),
            address=request.address,
            payment_provider=request.payment_provider,
            status=OrderStatus.PENDING_PAYMENT if online else OrderStatus.CONFIRMED,
            razorpay_order_id=f"order_{uuid.uuid4().hex[:14]}" if online else None,
            created_at=now,
            updated_at=now,
        )

        self.orders[order.order_id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def mark_paid(self, order_id: str, payment_id: str) -> Optional[Order]:
        order = self.get_order(order_id)
        if not order:
            return None

        order.status = OrderStatus.PAID
        order.payment_id = payment_id
        order.updated_at = datetime.utcnow()
        return order

    def create_shipment(self, order_id: str) -> Optional[str]:
        order = self.get_order(order_id)
        if not order:
            return None
        if not order.shipment_id:
            order.shipment_id = f"SHP-{uuid.uuid4().hex[:10].upper()}"
            order.updated_at = datetime.utcnow()
        return order.shipment_id

    def record_intent(
        self,
        order_id: str,
        amount: float,
        details: Optional[dict[str, Any]] = None,
    ) -> PaymentIntent:
        intent = PaymentIntent(
            intent_id=f"pi_{uuid.uuid4().hex[:16]}",
            order_id=order_id,
            amount=amount,
            created_at=datetime.utcnow(),
            details=details or {},
        )
        self.intents[intent.intent_id] = intent
        return intent

    def list_orders(self, user_id: Optional[str] = None, limit: int = 50) -> list[Order]:
        """List recent orders"""
        orders = [o for o in self.orders.values() if user_id is None or o.user_id == user_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit]


# Singleton instance
order_db = OrderDatabase()
