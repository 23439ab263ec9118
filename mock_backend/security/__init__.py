# Security modules

from .auth import Shopper, issue_token, decode_token, require_user, optional_user
from .signatures import sign_payment, verify_payment_signature, get_gateway_key_id

__all__ = [
    "Shopper",
    "issue_token",
    "decode_token",
    "require_user",
    "optional_user",
    "sign_payment",
    "verify_payment_signature",
    "get_gateway_key_id",
]
