"""
Payment Widget

The third-party payment widget is modelled as a bounded awaited operation:
``open(options)`` returns once the modal is showing and ``outcome()`` yields
exactly one of success, cancellation or gateway error.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

from ..core.config import Settings, settings as default_settings
from ..core.errors import GatewayFailure
from ..models.checkout import ContactInfo, GatewayOrder, PaymentInstrument

logger = logging.getLogger(__name__)

GATEWAY_METHODS = ("card", "netbanking", "upi", "wallet", "emi", "paylater")


# ==================== Outcomes ====================


@dataclass(frozen=True)
class GatewaySuccess:
    payment_id: str
    order_id: str
    signature: str


@dataclass(frozen=True)
class GatewayCancelled:
    pass


@dataclass(frozen=True)
class GatewayError:
    code: Optional[str] = None
    description: str = ""
    reason: Optional[str] = None


GatewayOutcome = Union[GatewaySuccess, GatewayCancelled, GatewayError]


_ERROR_CODE_MESSAGES = {
    "BAD_REQUEST_ERROR": "Invalid payment details. Please check and try again.",
    "GATEWAY_ERROR": "Payment gateway error. Please try again or use another payment method.",
    "SERVER_ERROR": "Server error. Please try again after some time.",
}
INSUFFICIENT_BALANCE_MESSAGE = "Insufficient balance. Please try another payment method."
DEFAULT_GATEWAY_ERROR_MESSAGE = "Payment failed. Please try again."


def describe_gateway_error(error: GatewayError) -> str:
    """Map a gateway error code or reason to a shopper-friendly message"""
    if error.code in _ERROR_CODE_MESSAGES:
        return _ERROR_CODE_MESSAGES[error.code]

    description = (error.description or "").lower()
    if "insufficient" in description:
        return INSUFFICIENT_BALANCE_MESSAGE
    if "declined" in description:
        return "Payment declined by bank. Please contact your bank or try another method."

    reason = (error.reason or "").lower()
    if "network" in reason:
        return "Network error. Please check your connection and try again."
    if "cancelled" in reason or "closed" in reason:
        return "Payment was cancelled."
    if "timeout" in reason:
        return "Payment timed out. Please try again."
    if "insufficient" in reason:
        return INSUFFICIENT_BALANCE_MESSAGE

    return DEFAULT_GATEWAY_ERROR_MESSAGE


# ==================== Options ====================


@dataclass
class GatewayOptions:
    """Options the browser hands to the gateway checkout widget"""
    key: Optional[str]
    amount: float
    currency: str
    order_id: str
    name: str
    description: str = "Order Payment"
    prefill: dict[str, str] = field(default_factory=dict)
    method: dict[str, bool] = field(default_factory=dict)
    theme_color: str = "#184979"
    remember_customer: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "amount": self.amount,
            "currency": self.currency,
            "name": self.name,
            "description": self.description,
            "order_id": self.order_id,
            "prefill": dict(self.prefill),
            "theme": {"color": self.theme_color},
            "method": dict(self.method),
            "remember_customer": self.remember_customer,
        }


def method_map(instrument: Optional[PaymentInstrument]) -> dict[str, bool]:
    """Enable only the selected instrument so the widget skips method selection"""
    selected = instrument.value if instrument else None
    return {name: name == selected for name in GATEWAY_METHODS}


def build_options(
    gateway: GatewayOrder,
    contact: ContactInfo,
    instrument: Optional[PaymentInstrument],
    upi_id: str = "",
    card_holder: str = "",
    settings: Settings = default_settings,
) -> GatewayOptions:
    prefill = {
        "name": contact.full_name,
        "email": contact.email,
        "contact": contact.phone,
    }
    if instrument == PaymentInstrument.UPI and upi_id:
        prefill["vpa"] = upi_id
    if instrument == PaymentInstrument.CARD and card_holder:
        prefill["name"] = card_holder

    return GatewayOptions(
        key=gateway.key or settings.razorpay_key_id,
        amount=gateway.amount,
        currency=gateway.currency or settings.currency,
        order_id=gateway.order_id,
        name=settings.store_name,
        prefill=prefill,
        method=method_map(instrument),
        theme_color=settings.theme_color,
    )


# ==================== Widget ====================


class PaymentWidget(Protocol):
    """Gateway checkout widget driven by the orchestrator"""

    async def open(self, options: GatewayOptions) -> None:
        """Show the widget; raises GatewayFailure when it cannot initialise"""
        ...

    async def outcome(self) -> GatewayOutcome: ...


class DeferredPaymentWidget:
    """
    Widget whose open and outcome are reported by the browser.

    ``open`` publishes the options and suspends until the browser calls
    ``mark_opened``; ``outcome`` suspends until ``resolve`` is called.
    A gateway error reported before the modal opened fails ``open`` with
    GatewayFailure.
    """

    def __init__(self):
        self.options: Optional[GatewayOptions] = None
        self.published = asyncio.Event()
        self._opened: Optional[asyncio.Future] = None
        self._outcome: Optional[asyncio.Future] = None

    @property
    def awaiting_open(self) -> bool:
        return self._opened is not None and not self._opened.done()

    @property
    def awaiting_outcome(self) -> bool:
        return self._outcome is not None and not self._outcome.done()

    async def open(self, options: GatewayOptions) -> None:
        loop = asyncio.get_running_loop()
        self.options = options
        self._opened = loop.create_future()
        self._outcome = loop.create_future()
        self.published.set()
        logger.info(f"Payment widget published for gateway order {options.order_id}")
        try:
            await self._opened
        except asyncio.CancelledError:
            self.reset()
            raise

    def mark_opened(self) -> bool:
        if not self.awaiting_open:
            return False
        self._opened.set_result(None)
        return True

    async def outcome(self) -> GatewayOutcome:
        if self._outcome is None:
            raise RuntimeError("Payment widget was never opened")
        return await self._outcome

    def resolve(self, outcome: GatewayOutcome) -> bool:
        """Deliver the browser-reported outcome; False when nothing awaits one"""
        if not self.awaiting_outcome:
            return False
        if isinstance(outcome, GatewayError) and self.awaiting_open:
            opened = self._opened
            self.reset()
            opened.set_exception(GatewayFailure(
                describe_gateway_error(outcome), code=outcome.code, reason=outcome.reason
            ))
            return True
        self.mark_opened()
        self._outcome.set_result(outcome)
        self.published.clear()
        return True

    def reset(self) -> None:
        self.options = None
        self.published.clear()
        self._opened = None
        self._outcome = None
