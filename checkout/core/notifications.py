"""Toast sink and navigation requests handed back to the storefront UI"""

import logging
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ToastLevel(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Toast:
    """A user-facing notification"""
    message: str
    level: ToastLevel = ToastLevel.SUCCESS
    created_at: datetime = field(default_factory=datetime.utcnow)


class Notifier:
    """Collects toasts until the UI drains them"""

    def __init__(self):
        self.toasts: list[Toast] = []

    def notify(self, message: str, level: ToastLevel = ToastLevel.SUCCESS) -> None:
        self.toasts.append(Toast(message=message, level=level))
        if level == ToastLevel.ERROR:
            logger.info(f"Toast [error]: {message}")
        else:
            logger.debug(f"Toast [{level.value}]: {message}")

    def success(self, message: str) -> None:
        self.notify(message, ToastLevel.SUCCESS)

    def warning(self, message: str) -> None:
        self.notify(message, ToastLevel.WARNING)

    def error(self, message: str) -> None:
        self.notify(message, ToastLevel.ERROR)

    def drain(self) -> list[Toast]:
        """Return and forget pending toasts"""
        toasts, self.toasts = self.toasts, []
        return toasts

    def count(self, level: Optional[ToastLevel] = None) -> int:
        if level is None:
            return len(self.toasts)
        return sum(1 for t in self.toasts if t.level == level)


class Navigation:
    """Last navigation the checkout asked the surrounding app to perform"""

    def __init__(self, login_path: str = "/login", cart_path: str = "/cart",
                 confirmation_path: str = "/order-confirmation"):
        self.login_path = login_path
        self.cart_path = cart_path
        self.confirmation_path = confirmation_path
        self.redirect: Optional[str] = None

    def to_login(self, return_url: str) -> None:
        self.redirect = f"{self.login_path}?returnUrl={return_url}"

    def to_cart(self) -> None:
        self.redirect = self.cart_path

    def to_confirmation(self, order_id: str) -> None:
        self.redirect = f"{self.confirmation_path}?orderId={order_id}"

    def take(self) -> Optional[str]:
        redirect, self.redirect = self.redirect, None
        return redirect
