"""Order, delivery and payment models for the mock storefront"""

from pydantic import Field
from typing import Optional, Any
from datetime import datetime
from enum import Enum

from .base import ApiModel


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    PAID = "paid"


class PaymentProvider(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"


class OrderLine(ApiModel):
    product_id: str
    sku: str
    qty: int = Field(gt=0)


class OrderAddress(ApiModel):
    label: str = "Home"
    name: str
    line1: str
    line2: str = ""
    city: str
    state: str
    country: str = "India"
    pincode: str
    phone: str
    email: str


class CreateOrderRequest(ApiModel):
    """Draft order as submitted by the checkout"""
    order_id: str
    items: list[OrderLine] = Field(min_length=1)
    discount: float = Field(default=0.0, ge=0)
    shipping_charges: float = Field(default=0.0, ge=0)
    tax: float = Field(default=0.0, ge=0)
    address: OrderAddress
    payment_provider: PaymentProvider


class Order(ApiModel):
    """Stored order"""
    order_id: str
    user_id: str
    items: list[OrderLine]
    subtotal: float
    discount: float
    shipping_charges: float
    tax: float
    total: float
    currency: str = "INR"
    address: OrderAddress
    payment_provider: PaymentProvider
    status: OrderStatus
    razorpay_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    shipment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VerifyPaymentRequest(ApiModel):
    """Gateway payment confirmation; gateway fields keep their snake_case names"""
    order_id: str
    razorpay_order_id: str = Field(alias="razorpay_order_id")
    razorpay_payment_id: str = Field(alias="razorpay_payment_id")
    razorpay_signature: str = Field(alias="razorpay_signature")


class PaymentIntentRequest(ApiModel):
    order_id: str
    amount: float = Field(ge=0)


class ShipmentRequest(ApiModel):
    order_id: str


class ShippingRequest(ApiModel):
    pincode: str
    cart_total: float = Field(ge=0)
    weight: float = Field(default=0.5, gt=0)
    cod: bool = False


class PaymentIntent(ApiModel):
    intent_id: str
    order_id: str
    amount: float
    status: str = "recorded"
    created_at: datetime
    details: dict[str, Any] = {}
