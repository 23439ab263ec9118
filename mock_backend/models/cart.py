"""Cart models for the mock storefront"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from .base import ApiModel


class CartItem(ApiModel):
    """Item in a shopper's cart"""
    product_id: str
    title: str
    slug: str
    sku: Optional[str] = None
    variant_sku: Optional[str] = None
    mrp: float
    unit_price: float
    qty: int = Field(gt=0)


class Cart(ApiModel):
    """Shopper's cart"""
    user_id: str
    items: list[CartItem] = []
    updated_at: datetime

    @property
    def subtotal(self) -> float:
        return sum(item.unit_price * item.qty for item in self.items)

    @property
    def total_items(self) -> int:
        return sum(item.qty for item in self.items)


class AddToCartRequest(ApiModel):
    """Request to add item to cart"""
    product_id: str
    qty: int = Field(default=1, gt=0)
    variant_sku: Optional[str] = None


class UpdateCartItemRequest(ApiModel):
    """Request to update cart item quantity"""
    qty: int = Field(gt=0)
