# Mock Storefront Models

from .base import ApiModel
from .product import Product, ProductCategory, ProductVariant
from .cart import Cart, CartItem, AddToCartRequest, UpdateCartItemRequest
from .coupon import Coupon, CouponStatus, DiscountType, ApplyCouponRequest
from .order import (
    CreateOrderRequest,
    Order,
    OrderAddress,
    OrderLine,
    OrderStatus,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentProvider,
    ShipmentRequest,
    ShippingRequest,
    VerifyPaymentRequest,
)

__all__ = [
    "ApiModel",
    "Product",
    "ProductCategory",
    "ProductVariant",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "Coupon",
    "CouponStatus",
    "DiscountType",
    "ApplyCouponRequest",
    "CreateOrderRequest",
    "Order",
    "OrderAddress",
    "OrderLine",
    "OrderStatus",
    "PaymentIntent",
    "PaymentIntentRequest",
    "PaymentProvider",
    "ShipmentRequest",
    "ShippingRequest",
    "VerifyPaymentRequest",
]
