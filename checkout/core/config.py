"""Checkout Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront Checkout"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Storefront backend
    backend_base_url: str = "http://localhost:4000/api/v2"
    backend_timeout: float = 30.0

    # Delivery rules (static fallback when the shipping service is unreachable)
    delivery_charge: float = 99.0
    free_delivery_threshold: float = 499.0
    parcel_weight_per_unit: float = 0.5
    min_parcel_weight: float = 0.1
    min_shipping_cart_total: float = 1.0

    # Cart revalidation
    cart_total_tolerance: float = 1.0

    # Payment gateway
    razorpay_key_id: Optional[str] = None
    currency: str = "INR"
    store_name: str = "Storefront"
    theme_color: str = "#184979"
    gateway_init_timeout: float = 30.0
    gateway_grace_timeout: float = 2.0

    # Navigation targets handed to the browser
    login_path: str = "/login"
    cart_path: str = "/cart"
    checkout_path: str = "/checkout"
    confirmation_path: str = "/order-confirmation"

    # Session housekeeping
    session_max_age_hours: float = 24.0
    session_cleanup_interval: float = 3600.0

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def gateway_configured(self) -> bool:
        """Check if a fallback gateway key is configured"""
        return bool(self.razorpay_key_id)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
