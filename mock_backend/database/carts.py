"""Cart storage for the mock storefront"""

from datetime import datetime
from typing import Optional

from ..models.cart import Cart, CartItem
from ..models.product import Product


class CartDatabase:
    """In-memory carts, one per shopper"""

    def __init__(self):
        self.carts: dict[str, Cart] = {}

    def get_cart(self, user_id: str) -> Cart:
        """Get the shopper's cart, creating an empty one"""
        if user_id not in self.carts:
            self.carts[user_id] = Cart(user_id=user_id, items=[], updated_at=datetime.utcnow())
        return self.carts[user_id]

    def add_item(
        self,
        user_id: str,
        product: Product,
        qty: int = 1,
        variant_sku: Optional[str] = None,
    ) -> Cart:
        """Add an item to the cart"""
        cart = self.get_cart(user_id)

        existing_item = next(
            (item for item in cart.items if item.product_id == product.id),
            None,
        )
        if existing_item:
            existing_item.qty += qty
        else:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    title=product.name,
                    slug=product.slug,
                    sku=product.sku,
                    variant_sku=variant_sku,
                    mrp=product.mrp,
                    unit_price=product.sale_price,
                    qty=qty,
                )
            )

        cart.updated_at = datetime.utcnow()
        return cart

    def update_item_quantity(self, user_id: str, product_id: str, qty: int) -> Optional[Cart]:
        """Update item quantity; zero removes the item"""
        cart = self.get_cart(user_id)
        item = next((i for i in cart.items if i.product_id == product_id), None)
        if not item:
            return None

        if qty <= 0:
            cart.items = [i for i in cart.items if i.product_id != product_id]
        else:
            item.qty = qty

        cart.updated_at = datetime.utcnow()
        return cart

    def remove_item(self, user_id: str, product_id: str) -> Optional[Cart]:
        """Remove an item from the cart"""
        return self.update_item_quantity(user_id, product_id, 0)

    def set_price(self, product_id: str, unit_price: float) -> int:
        """Reprice a product in every cart; returns the number of lines touched"""
        touched = 0
        for cart in self.carts.values():
            for item in cart.items:
                if item.product_id == product_id:
                    item.unit_price = unit_price
                    touched += 1
        return touched

    def clear_cart(self, user_id: str) -> Cart:
        """Clear all items from cart"""
        cart = self.get_cart(user_id)
        cart.items = []
        cart.updated_at = datetime.utcnow()
        return cart


# Singleton instance
cart_db = CartDatabase()
