"""
Mock Storefront Backend

A simulated storefront REST API (catalog, carts, coupons, delivery, orders
and Razorpay-style payment verification) for exercising the checkout
service locally.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import (
    auth_router,
    products_router,
    cart_router,
    coupons_router,
    delivery_router,
    orders_router,
    payments_router,
)
from .security.signatures import get_gateway_key_id

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Mock storefront starting up...")
    logger.info(f"Gateway key: {get_gateway_key_id()}")
    yield
    logger.info("Mock storefront shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Mock Storefront",
    description="Simulated storefront backend for checkout testing",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(cart_router)
app.include_router(coupons_router)
app.include_router(delivery_router)
app.include_router(orders_router)
app.include_router(payments_router)


@app.get("/")
async def home():
    return {
        "message": "Mock Storefront API",
        "docs": "/docs",
        "endpoints": {
            "products": "/api/v2/products",
            "cart": "/api/v2/cart/",
            "coupons": "/api/v2/coupons",
            "delivery": "/api/v2/delivery",
            "orders": "/api/v2/orders",
            "payments": "/api/v2/payment-intents",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mock-storefront"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mock_backend.main:app",
        host="0.0.0.0",
        port=4000,
        reload=True,
    )
