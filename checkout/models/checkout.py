"""Checkout models: addresses, coupons, delivery estimates and orders"""

import re
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Any
from enum import Enum

PINCODE_PATTERN = re.compile(r"^\d{6}$")


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"


class PaymentInstrument(str, Enum):
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"


class PaymentProvider(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class WireModel(BaseModel):
    """Model exchanged with the storefront backend in camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class ContactInfo(BaseModel):
    """Shopper contact details"""
    full_name: str = ""
    email: str = ""
    phone: str = ""


class ShippingAddress(BaseModel):
    """Shipping address, saved once it carries an id"""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = "India"
    label: Optional[str] = None
    is_default: bool = False
    id: Optional[str] = None

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    @property
    def has_valid_pincode(self) -> bool:
        return bool(PINCODE_PATTERN.match(self.pincode))


class AppliedCoupon(BaseModel):
    """Coupon accepted by the coupon service"""
    code: str
    discount: float = Field(default=0.0, ge=0)
    kind: DiscountKind = DiscountKind.FIXED
    description: Optional[str] = None
    max_discount: Optional[float] = None


class DeliveryEstimate(WireModel):
    """Shipping quote for a pincode"""
    shipping_charges: float = 0.0
    total_shipping: Optional[float] = None
    is_free_shipping: bool = False
    cod_available: bool = True
    cod_charges: Optional[float] = None
    estimated_delivery: Optional[Any] = None
    delivery_partner: Optional[str] = None
    free_shipping_threshold: Optional[float] = None
    amount_for_free_shipping: Optional[float] = None


class OrderItem(WireModel):
    """Order line as the order API expects it"""
    product_id: str
    sku: str
    qty: int


class OrderAddress(WireModel):
    """Address snapshot attached to an order"""
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


class OrderPayload(WireModel):
    """Draft order submitted to the backend"""
    order_id: str
    items: list[OrderItem]
    discount: float
    shipping_charges: float
    tax: float = 0.0
    address: OrderAddress
    payment_provider: PaymentProvider


class GatewayOrder(WireModel):
    """Gateway order block returned by the order API for online payments"""
    order_id: str
    amount: float
    currency: str = "INR"
    key: Optional[str] = None


class PendingOrder(BaseModel):
    """Order created on the backend, possibly still unpaid"""
    order_id: str
    payment_provider: PaymentProvider
    gateway: Optional[GatewayOrder] = None
    shipment_id: Optional[str] = None


class OrderCompletion(BaseModel):
    """Local completion record kept as a backup of the backend state"""
    order_id: str
    status: str
    payment_details: dict[str, Any] = {}
    completed_at: str
