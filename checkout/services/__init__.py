# Checkout services

from .backend_client import ApiResponse, StorefrontClient
from .cart import BackendCart, CartProvider
from .checkout import CheckoutService
from .gateway import (
    DeferredPaymentWidget,
    GatewayCancelled,
    GatewayError,
    GatewaySuccess,
    PaymentWidget,
)
from .orchestrator import OrderPaymentOrchestrator

__all__ = [
    "ApiResponse",
    "StorefrontClient",
    "BackendCart",
    "CartProvider",
    "CheckoutService",
    "DeferredPaymentWidget",
    "GatewayCancelled",
    "GatewayError",
    "GatewaySuccess",
    "PaymentWidget",
    "OrderPaymentOrchestrator",
]
