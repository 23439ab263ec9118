"""Razorpay-style payment signatures"""

import os
import hmac
import hashlib
from typing import Optional


def get_gateway_key_id() -> str:
    return os.getenv("MOCK_RAZORPAY_KEY_ID", "rzp_test_mock")


def get_gateway_secret() -> str:
    return os.getenv("MOCK_RAZORPAY_KEY_SECRET", "mock_secret")


def sign_payment(gateway_order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """HMAC-SHA256 of ``"{order_id}|{payment_id}"``, hex encoded"""
    message = f"{gateway_order_id}|{payment_id}".encode()
    key = (secret or get_gateway_secret()).encode()
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    gateway_order_id: str,
    payment_id: str,
    signature: str,
    secret: Optional[str] = None,
) -> bool:
    expected = sign_payment(gateway_order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature)
