# Core modules

from .config import settings
from .session import CheckoutSession, SessionManager, TokenSession

__all__ = ["settings", "CheckoutSession", "SessionManager", "TokenSession"]
