"""
Checkout Service Application

Checkout pricing and order/payment orchestration for the storefront.
"""

import os
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .routes import checkout_router
from .core.config import settings
from .core.session import session_manager
from .core.errors import (
    AuthFailure,
    CheckoutError,
    ServiceRejection,
    TransportFailure,
    UnreconciledPayment,
    ValidationError,
)

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def sweep_sessions(interval: float, max_age_hours: float) -> None:
    """Periodically drop idle checkout sessions"""
    while True:
        await asyncio.sleep(interval)
        removed = session_manager.cleanup_old_sessions(max_age_hours)
        if removed:
            logger.info(f"Removed {removed} idle checkout sessions")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Checkout service starting up...")
    logger.info(f"Backend URL: {settings.backend_base_url}")
    logger.info(f"Gateway key configured: {settings.gateway_configured}")
    sweeper = asyncio.create_task(
        sweep_sessions(settings.session_cleanup_interval, settings.session_max_age_hours)
    )

    yield

    logger.info("Checkout service shutting down...")
    sweeper.cancel()
    # Cleanup shared backend client
    from .routes import checkout as checkout_routes
    if checkout_routes.http_client:
        await checkout_routes.http_client.aclose()
        checkout_routes.http_client = None


# Create FastAPI app
app = FastAPI(
    title="Storefront Checkout",
    description="Checkout pricing and order/payment orchestration",
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

app.include_router(checkout_router)


def _error_body(error: CheckoutError, **extra) -> dict:
    return {"success": False, "message": error.message, **extra}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=_error_body(exc, errors=exc.errors))


@app.exception_handler(ServiceRejection)
async def rejection_handler(request: Request, exc: ServiceRejection):
    return JSONResponse(status_code=400, content=_error_body(exc))


@app.exception_handler(AuthFailure)
async def auth_failure_handler(request: Request, exc: AuthFailure):
    return JSONResponse(
        status_code=401,
        content=_error_body(exc, redirect=f"{settings.login_path}?returnUrl={settings.checkout_path}"),
    )


@app.exception_handler(TransportFailure)
async def transport_failure_handler(request: Request, exc: TransportFailure):
    return JSONResponse(status_code=502, content=_error_body(exc))


@app.exception_handler(UnreconciledPayment)
async def unreconciled_payment_handler(request: Request, exc: UnreconciledPayment):
    return JSONResponse(
        status_code=409,
        content=_error_body(exc, payment_id=exc.payment_id, order_id=exc.order_id),
    )


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    return JSONResponse(status_code=400, content=_error_body(exc))


@app.get("/")
async def home():
    return {
        "message": "Storefront Checkout API",
        "docs": "/docs",
        "endpoints": {
            "checkout": "/api/checkout",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront-checkout",
        "backend_configured": bool(settings.backend_base_url),
        "gateway_configured": settings.gateway_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "checkout.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
