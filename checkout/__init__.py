"""Storefront checkout: pricing, shipping, coupons and order/payment orchestration."""

__version__ = "1.0.0"
