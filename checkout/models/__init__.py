# Checkout Models

from .cart import CartLine, CartValidation
from .checkout import (
    AppliedCoupon,
    ContactInfo,
    DeliveryEstimate,
    DiscountKind,
    GatewayOrder,
    OrderAddress,
    OrderCompletion,
    OrderItem,
    OrderPayload,
    PaymentInstrument,
    PaymentMethod,
    PaymentProvider,
    PendingOrder,
    ShippingAddress,
)

__all__ = [
    "CartLine",
    "CartValidation",
    "AppliedCoupon",
    "ContactInfo",
    "DeliveryEstimate",
    "DiscountKind",
    "GatewayOrder",
    "OrderAddress",
    "OrderCompletion",
    "OrderItem",
    "OrderPayload",
    "PaymentInstrument",
    "PaymentMethod",
    "PaymentProvider",
    "PendingOrder",
    "ShippingAddress",
]
