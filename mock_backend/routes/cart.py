"""Cart API routes for the mock storefront"""

from fastapi import APIRouter, Depends

from ..models.cart import Cart, AddToCartRequest, UpdateCartItemRequest
from ..database.carts import cart_db
from ..database.products import product_db
from ..security.auth import Shopper, require_user
from .envelope import ok, fail

router = APIRouter(prefix="/api/v2/cart", tags=["Cart"])


def cart_payload(cart: Cart) -> dict:
    return {
        "items": [item.to_api() for item in cart.items],
        "totalItems": cart.total_items,
        "subtotal": cart.subtotal,
    }


@router.get("/")
async def get_cart(shopper: Shopper = Depends(require_user)):
    """Get the shopper's cart"""
    return ok(cart_payload(cart_db.get_cart(shopper.user_id)))


@router.post("/")
async def add_to_cart(
    request: AddToCartRequest,
    shopper: Shopper = Depends(require_user),
):
    """Add an item to the cart"""
    product = product_db.get_product(request.product_id)
    if not product:
        return fail("Product not found", status_code=404)

    if product.stock_quantity < request.qty:
        return fail(f"Insufficient stock. Available: {product.stock_quantity}")

    if request.variant_sku and request.variant_sku not in product.known_skus():
        return fail(f"Unknown variant {request.variant_sku}")

    cart = cart_db.add_item(shopper.user_id, product, request.qty, request.variant_sku)
    return ok(cart_payload(cart), message=f"Added {request.qty}x {product.name} to cart")


@router.put("/{product_id}")
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    shopper: Shopper = Depends(require_user),
):
    """Update item quantity in cart"""
    product = product_db.get_product(product_id)
    if not product:
        return fail("Product not found", status_code=404)

    if request.qty > product.stock_quantity:
        return fail(f"Insufficient stock. Available: {product.stock_quantity}")

    cart = cart_db.update_item_quantity(shopper.user_id, product_id, request.qty)
    if not cart:
        return fail("Item not in cart", status_code=404)
    return ok(cart_payload(cart), message="Cart updated")


@router.delete("/{product_id}")
async def remove_from_cart(product_id: str, shopper: Shopper = Depends(require_user)):
    """Remove an item from the cart"""
    cart = cart_db.remove_item(shopper.user_id, product_id)
    if not cart:
        return fail("Item not in cart", status_code=404)
    return ok(cart_payload(cart), message="Item removed")


@router.delete("/")
async def clear_cart(shopper: Shopper = Depends(require_user)):
    """Clear all items from cart"""
    cart = cart_db.clear_cart(shopper.user_id)
    return ok(cart_payload(cart), message="Cart cleared")
