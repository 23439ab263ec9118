"""Product models for the mock storefront"""

from pydantic import Field
from typing import Optional
from enum import Enum

from .base import ApiModel


class ProductCategory(str, Enum):
    ELECTRONICS = "electronics"
    FASHION = "fashion"
    HOME = "home"
    BOOKS = "books"


class ProductVariant(ApiModel):
    """Sellable variant of a product"""
    sku: str
    name: str


class Product(ApiModel):
    """Product in the catalog"""
    id: str
    name: str
    slug: str
    description: str = ""
    category: ProductCategory
    mrp: float = Field(gt=0)
    sale_price: float = Field(gt=0)
    sku: Optional[str] = None
    variants: list[ProductVariant] = []
    weight: float = 0.5
    stock_quantity: int = Field(ge=0, default=100)

    def known_skus(self) -> set[str]:
        skus = {v.sku for v in self.variants}
        if self.sku:
            skus.add(self.sku)
        return skus
