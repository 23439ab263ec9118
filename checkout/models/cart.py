"""Cart models consumed by the checkout"""

from pydantic import BaseModel, Field
from typing import Optional, Any


class CartLine(BaseModel):
    """Item in the shopper's cart"""
    product_id: str
    name: str
    price: float  # list price (MRP)
    unit_price: Optional[float] = None  # discounted selling price
    quantity: int = Field(ge=1)
    weight: Optional[float] = None
    sku: Optional[str] = None
    variant_sku: Optional[str] = None
    slug: Optional[str] = None

    @property
    def effective_price(self) -> float:
        """Per-unit price the shopper actually pays"""
        return self.unit_price if self.unit_price is not None else self.price

    @property
    def line_total(self) -> float:
        return self.effective_price * self.quantity

    @classmethod
    def from_backend(cls, item: dict[str, Any]) -> "CartLine":
        """Build a cart line from a backend cart item"""
        mrp = item.get("mrp") or item.get("price") or item.get("currentPrice") or 0
        sale = (
            item.get("unitPrice")
            or item.get("salePrice")
            or item.get("currentSalePrice")
            or mrp
        )
        return cls(
            product_id=str(item.get("productId") or item.get("_id")),
            name=item.get("title") or item.get("name") or "",
            price=float(mrp),
            unit_price=float(sale),
            quantity=int(item.get("qty") or item.get("quantity") or 1),
            weight=item.get("weight"),
            sku=item.get("sku") or item.get("productSku"),
            variant_sku=item.get("variantSku"),
            slug=item.get("slug"),
        )


class CartValidation(BaseModel):
    """Result of revalidating the local cart against the backend"""
    valid: bool
    backend_total: float = 0.0
    frontend_total: float = 0.0
    message: Optional[str] = None
