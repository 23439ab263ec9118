# Mock Storefront Routes

from .auth import router as auth_router
from .products import router as products_router
from .cart import router as cart_router
from .coupons import router as coupons_router
from .delivery import router as delivery_router
from .orders import router as orders_router
from .payments import router as payments_router

__all__ = [
    "auth_router",
    "products_router",
    "cart_router",
    "coupons_router",
    "delivery_router",
    "orders_router",
    "payments_router",
]
