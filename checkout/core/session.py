"""Session context and checkout state"""

import time
import uuid
import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar, Optional, Protocol, Union
from dataclasses import dataclass, field
from enum import IntEnum

import jwt

from .config import settings
from .errors import ValidationError
from .notifications import Notifier, Navigation
from ..models.checkout import (
    AppliedCoupon,
    ContactInfo,
    DeliveryEstimate,
    PaymentInstrument,
    PaymentMethod,
    PendingOrder,
    ShippingAddress,
)

if TYPE_CHECKING:
    from ..services.backend_client import StorefrontClient
    from ..services.cart import CartProvider
    from ..services.gateway import PaymentWidget

logger = logging.getLogger(__name__)


# ==================== Session context ====================


class SessionContext(Protocol):
    """Shopper identity and bearer token"""

    @property
    def token(self) -> Optional[str]: ...

    @property
    def shopper_id(self) -> str: ...

    def invalidate(self) -> None: ...


class TokenSession:
    """Session backed by a bearer token, JWT expiry checked locally"""

    def __init__(self, token: Optional[str], user: Optional[dict] = None):
        self._token = token
        self.user = user or {}
        self.invalidated = False

    @property
    def token(self) -> Optional[str]:
        if self._token and self._is_expired(self._token):
            logger.info("Session token expired, invalidating")
            self.invalidate()
        return self._token

    @property
    def shopper_id(self) -> str:
        if self.user.get("id"):
            return str(self.user["id"])
        claims = self._claims(self._token) if self._token else {}
        return str(claims.get("sub") or "guest")

    def invalidate(self) -> None:
        self._token = None
        self.invalidated = True

    @staticmethod
    def _claims(token: str) -> dict:
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            # Opaque tokens are judged by the backend
            return {}

    @classmethod
    def _is_expired(cls, token: str) -> bool:
        exp = cls._claims(token).get("exp")
        return exp is not None and float(exp) < time.time()


# ==================== Background recompute guard ====================


class RequestGeneration:
    """Monotonic counter; only the latest request may write its result"""

    def __init__(self):
        self._current = 0

    def begin(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, ticket: int) -> bool:
        return ticket == self._current


# ==================== Checkout state ====================


class CheckoutStep(IntEnum):
    CONTACT = 1
    ADDRESS = 2
    PAYMENT = 3


@dataclass
class DeliveryState:
    """Deliverability verdict and resolved shipping charge"""
    available: bool = True
    message: str = ""
    shipping_charge: float = field(default_factory=lambda: settings.delivery_charge)
    estimate: Optional[DeliveryEstimate] = None
    pincode_info: Optional[dict] = None
    checking: bool = False
    calculating: bool = False
    shipping_generation: RequestGeneration = field(default_factory=RequestGeneration, repr=False)
    check_generation: RequestGeneration = field(default_factory=RequestGeneration, repr=False)

    def mark_available(self) -> None:
        self.available = True
        self.message = ""

    def mark_unavailable(self, message: str) -> None:
        self.available = False
        self.message = message


@dataclass
class PaymentSelection:
    """Selected payment method and, for online payments, the instrument"""
    method: Optional[PaymentMethod] = PaymentMethod.ONLINE
    instrument: Optional[PaymentInstrument] = PaymentInstrument.CARD
    upi_id: str = ""
    card_holder: str = ""


@dataclass
class CheckoutState:
    """Everything the shopper has entered or the checkout has derived"""
    contact: ContactInfo = field(default_factory=ContactInfo)
    address: ShippingAddress = field(default_factory=ShippingAddress)
    selected_address_id: Optional[str] = None
    adding_new_address: bool = False
    payment: PaymentSelection = field(default_factory=PaymentSelection)
    coupon: Optional[AppliedCoupon] = None
    cart_total_override: Optional[float] = None
    delivery: DeliveryState = field(default_factory=DeliveryState)
    completed_steps: set[int] = field(default_factory=set)
    _step: CheckoutStep = field(default=CheckoutStep.CONTACT, repr=False)

    @property
    def current_step(self) -> CheckoutStep:
        return self._step

    @current_step.setter
    def current_step(self, step: int) -> None:
        step = CheckoutStep(step)
        for earlier in range(CheckoutStep.CONTACT, step):
            if earlier not in self.completed_steps:
                raise ValidationError(
                    {"step": f"Complete step {earlier} before continuing"}
                )
        self._step = step

    @property
    def pincode(self) -> str:
        return self.address.pincode


# ==================== Order/payment attempt ====================


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[str] = "idle"
    reason: Optional[str] = None


@dataclass(frozen=True)
class ValidatingCart:
    phase: ClassVar[str] = "validating_cart"


@dataclass(frozen=True)
class CreatingOrder:
    phase: ClassVar[str] = "creating_order"
    method: PaymentMethod = PaymentMethod.ONLINE


@dataclass(frozen=True)
class AwaitingGateway:
    phase: ClassVar[str] = "awaiting_gateway"
    order_id: str = ""
    gateway_order_id: str = ""


@dataclass(frozen=True)
class VerifyingPayment:
    phase: ClassVar[str] = "verifying_payment"
    order_id: str = ""
    payment_id: str = ""


@dataclass(frozen=True)
class Completed:
    phase: ClassVar[str] = "completed"
    order_id: str = ""
    method: PaymentMethod = PaymentMethod.ONLINE


@dataclass(frozen=True)
class PaymentUnreconciled:
    phase: ClassVar[str] = "payment_unreconciled"
    order_id: str = ""
    payment_id: str = ""
    message: str = ""


AttemptState = Union[
    Idle,
    ValidatingCart,
    CreatingOrder,
    AwaitingGateway,
    VerifyingPayment,
    Completed,
    PaymentUnreconciled,
]


@dataclass
class CheckoutSession:
    """One shopper's checkout, including its collaborators"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    auth: SessionContext
    client: "StorefrontClient"
    cart: "CartProvider"
    widget: "PaymentWidget"
    state: CheckoutState = field(default_factory=CheckoutState)
    attempt: AttemptState = field(default_factory=Idle)
    pending_order: Optional[PendingOrder] = None
    processing: bool = False
    notifier: Notifier = field(default_factory=Notifier)
    navigation: Navigation = field(
        default_factory=lambda: Navigation(
            login_path=settings.login_path,
            cart_path=settings.cart_path,
            confirmation_path=settings.confirmation_path,
        )
    )
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def transition(self, attempt: AttemptState) -> None:
        """Move the order/payment attempt to a new state"""
        logger.debug(
            f"Session {self.session_id}: {self.attempt.phase} -> {attempt.phase}"
        )
        self.attempt = attempt
        self.updated_at = datetime.utcnow()


class SessionManager:
    """Manages checkout sessions"""

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}

    def create_session(
        self,
        auth: SessionContext,
        client: "StorefrontClient",
        cart: "CartProvider",
        widget: "PaymentWidget",
    ) -> CheckoutSession:
        """Create a new session"""
        now = datetime.utcnow()
        session = CheckoutSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            auth=auth,
            client=client,
            cart=cart,
            widget=widget,
        )
        self.sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        """Get session by ID, marking it as recently used"""
        session = self.sessions.get(session_id)
        if session is not None:
            session.updated_at = datetime.utcnow()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: float = 24) -> int:
        """Remove sessions idle for more than max_age_hours, unless an attempt is running"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
            and (session.task is None or session.task.done())
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        return len(old_sessions)


# Singleton instance
session_manager = SessionManager()
