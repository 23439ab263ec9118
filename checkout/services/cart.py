"""Cart collaborator used by the checkout"""

import logging
from typing import Optional, Protocol

from ..core.config import settings
from ..core.errors import AuthFailure, CheckoutError
from ..models.cart import CartLine, CartValidation
from .backend_client import StorefrontClient

logger = logging.getLogger(__name__)


class CartProvider(Protocol):
    """What the checkout needs from the shopper's cart"""

    @property
    def lines(self) -> list[CartLine]: ...

    def total(self) -> float: ...

    def count(self) -> int: ...

    def remove(self, product_id: str) -> bool: ...

    def update_quantity(self, product_id: str, quantity: int) -> bool: ...

    async def clear(self) -> None: ...

    async def sync(self) -> bool: ...

    async def validate(self) -> CartValidation: ...


class BackendCart:
    """Local mirror of the backend cart"""

    def __init__(
        self,
        client: StorefrontClient,
        lines: Optional[list[CartLine]] = None,
        tolerance: Optional[float] = None,
    ):
        self.client = client
        self._lines: list[CartLine] = list(lines or [])
        self.tolerance = settings.cart_total_tolerance if tolerance is None else tolerance

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def total(self) -> float:
        return sum(line.line_total for line in self._lines)

    def count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def remove(self, product_id: str) -> bool:
        before = len(self._lines)
        self._lines = [line for line in self._lines if line.product_id != product_id]
        return len(self._lines) != before

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            return False
        for i, line in enumerate(self._lines):
            if line.product_id == product_id:
                self._lines[i] = line.model_copy(update={"quantity": quantity})
                return True
        return False

    async def clear(self) -> None:
        """Clear local lines, then the backend cart on a best-effort basis"""
        self._lines = []
        try:
            await self.client.clear_cart()
        except CheckoutError as e:
            logger.warning(f"Backend cart clear failed: {e.message}")

    async def _fetch_backend_lines(self) -> Optional[list[CartLine]]:
        response = await self.client.get_cart()
        if not response.accepted or not isinstance(response.data, dict):
            return None
        items = response.data.get("items")
        if items is None:
            return None
        return [CartLine.from_backend(item) for item in items]

    async def sync(self) -> bool:
        """Replace local lines with the backend's view of the cart"""
        try:
            backend_lines = await self._fetch_backend_lines()
        except CheckoutError as e:
            logger.warning(f"Cart sync failed: {e.message}")
            return False
        if backend_lines is None:
            return False
        self._lines = backend_lines
        return True

    async def validate(self) -> CartValidation:
        """Revalidate prices and quantities against the backend before ordering"""
        frontend_total = self.total()

        try:
            backend_lines = await self._fetch_backend_lines()
        except AuthFailure:
            return CartValidation(
                valid=False,
                frontend_total=frontend_total,
                message="Please login to proceed with checkout",
            )
        except CheckoutError:
            return CartValidation(
                valid=False,
                frontend_total=frontend_total,
                message="Failed to verify cart with server. Please try again.",
            )

        if backend_lines is None:
            return CartValidation(
                valid=False,
                frontend_total=frontend_total,
                message="Invalid cart data from server",
            )

        backend_total = sum(line.line_total for line in backend_lines)
        backend_count = sum(line.quantity for line in backend_lines)
        frontend_count = self.count()

        if backend_count != frontend_count:
            self._lines = backend_lines
            return CartValidation(
                valid=False,
                backend_total=backend_total,
                frontend_total=frontend_total,
                message=(
                    f"Cart item count mismatch. Backend: {backend_count}, "
                    f"Frontend: {frontend_count}. Cart has been synced. "
                    "Please review and try again."
                ),
            )

        if abs(backend_total - frontend_total) > self.tolerance:
            self._lines = backend_lines
            return CartValidation(
                valid=False,
                backend_total=backend_total,
                frontend_total=frontend_total,
                message=(
                    f"Cart total mismatch detected (₹{frontend_total:,.2f} vs "
                    f"₹{backend_total:,.2f}). Cart has been synced with latest prices. "
                    "Please review and try again."
                ),
            )

        self._lines = backend_lines
        return CartValidation(
            valid=True,
            backend_total=backend_total,
            frontend_total=frontend_total,
        )
