"""Checkout error taxonomy"""

from typing import Optional


class CheckoutError(Exception):
    """Base exception for checkout errors.

    ``message`` is always safe to show to the shopper.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CheckoutError):
    """Malformed or missing shopper input, never sent to the backend"""

    def __init__(self, errors: dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message or next(iter(self.errors.values()), "Invalid input"))


class ServiceRejection(CheckoutError):
    """Backend answered with ``success: false`` or a non-2xx status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(CheckoutError):
    """Network error or timeout, no verdict from the server"""
    pass


class AuthFailure(CheckoutError):
    """Session token missing, expired or refused by the backend"""
    pass


class GatewayFailure(CheckoutError):
    """The payment widget reported an error"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.reason = reason


class UnreconciledPayment(CheckoutError):
    """Gateway reported success but server-side verification failed"""

    def __init__(self, message: str, payment_id: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.payment_id = payment_id
        self.order_id = order_id
