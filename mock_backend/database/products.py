"""Mock product database"""

from typing import Optional
from ..models.product import Product, ProductCategory, ProductVariant

# Mock product catalog, prices in INR
PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        name="boAt Rockerz 450 Headphones",
        slug="boat-rockerz-450",
        description="Wireless on-ear headphones with 15 hours of playback.",
        category=ProductCategory.ELECTRONICS,
        mrp=2990.0,
        sale_price=1499.0,
        sku="BOAT-RKZ450-BLK",
        weight=0.4,
    ),
    "prod-002": Product(
        id="prod-002",
        name="Cotton Crew Neck T-Shirt",
        slug="cotton-crew-tshirt",
        description="Regular fit, 100% cotton.",
        category=ProductCategory.FASHION,
        mrp=799.0,
        sale_price=399.0,
        variants=[
            ProductVariant(sku="TEE-CREW-WHT-M", name="White / M"),
            ProductVariant(sku="TEE-CREW-WHT-L", name="White / L"),
        ],
        weight=0.2,
    ),
    "prod-003": Product(
        id="prod-003",
        name="Steel Water Bottle 1L",
        slug="steel-water-bottle-1l",
        description="Double-wall insulated, keeps water cold for 24 hours.",
        category=ProductCategory.HOME,
        mrp=150.0,
        sale_price=150.0,
        sku="HOME-BOTTLE-1L",
        weight=0.35,
    ),
    "prod-004": Product(
        id="prod-004",
        name="Ceramic Coffee Mug",
        slug="ceramic-coffee-mug",
        description="350 ml, microwave safe.",
        category=ProductCategory.HOME,
        mrp=349.0,
        sale_price=299.0,
        sku="HOME-MUG-350",
        weight=0.3,
    ),
    "prod-005": Product(
        id="prod-005",
        name="The Psychology of Money",
        slug="psychology-of-money",
        description="Paperback.",
        category=ProductCategory.BOOKS,
        mrp=399.0,
        sale_price=299.0,
        sku="BOOK-PSYMONEY-PB",
        weight=0.25,
    ),
    "prod-006": Product(
        id="prod-006",
        name="Smart LED Bulb 9W",
        slug="smart-led-bulb-9w",
        description="Wi-Fi enabled, 16 million colours.",
        category=ProductCategory.ELECTRONICS,
        mrp=999.0,
        sale_price=600.0,
        sku="ELEC-BULB-9W",
        weight=0.15,
    ),
}


class ProductDatabase:
    """In-memory product database for the mock storefront"""

    def __init__(self):
        self.products = PRODUCTS.copy()

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return self.products.get(product_id)

    def get_by_slug(self, slug: str) -> Optional[Product]:
        """Get a product by its URL slug"""
        return next((p for p in self.products.values() if p.slug == slug), None)

    def list_products(
        self,
        category: Optional[ProductCategory] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Product], int]:
        """
        List products, optionally filtered by category.

        Returns:
            Tuple of (products page, total count)
        """
        results = list(self.products.values())
        if category:
            results = [p for p in results if p.category == category]
        total = len(results)
        return results[offset:offset + limit], total


# Singleton instance
product_db = ProductDatabase()
