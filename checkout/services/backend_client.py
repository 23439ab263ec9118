"""
Storefront Backend Client

HTTP client for the storefront REST backend (coupons, delivery, cart,
orders, payment intents). Every response is unwrapped from the
``{success, data, message}`` envelope; transport problems and 401s are
converted into checkout errors here so callers only reason about verdicts.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..core.errors import AuthFailure, TransportFailure
from ..core.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Unwrapped backend envelope"""
    status_code: int
    success: bool
    data: Any = None
    message: Optional[str] = None
    body: Any = None
    parsed: bool = True

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def accepted(self) -> bool:
        """2xx with ``success: true`` and a payload"""
        return self.ok and self.success and self.data is not None

    @property
    def rejected(self) -> bool:
        """An explicit ``success: false`` verdict from the server"""
        return self.parsed and not self.success

    def error_message(self, default: str) -> str:
        """Best human-readable reason carried by the response"""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if isinstance(error, dict) and error.get("description"):
                return error["description"]
        return self.message or default


class StorefrontClient:
    """
    Client for the storefront backend.

    Authenticated calls carry the bearer token of the injected session
    context; a 401 invalidates that token and raises ``AuthFailure``.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionContext] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Base URL of the storefront API (e.g. ``.../api/v2``)
            session: Session context providing the bearer token
            http_client: Shared HTTP client; one is created when omitted
            timeout: Request timeout for an owned HTTP client
        """
        self.base_url = base_url.rstrip("/")
        self.session = session
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client if this instance created it"""
        if self._owns_client:
            await self._http_client.aclose()

    def _headers(self, auth: bool) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if auth:
            token = self.session.token if self.session else None
            if not token:
                raise AuthFailure("Authentication token not found. Please login again.")
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        auth: bool = True,
    ) -> ApiResponse:
        """Make an HTTP request and unwrap the response envelope"""
        url = f"{self.base_url}{path}"
        headers = self._headers(auth)

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers=headers,
                json=body,
            )
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise TransportFailure("Cannot connect to server. Please try again.") from e

        if response.status_code == 401 and auth:
            logger.warning(f"{method} {path} rejected with 401, invalidating session token")
            if self.session:
                self.session.invalidate()
            raise AuthFailure("Authentication failed. Please login again.")

        try:
            payload = response.json()
        except ValueError:
            logger.error(f"Invalid response from {method} {path}: {response.status_code}")
            return ApiResponse(
                status_code=response.status_code,
                success=False,
                message=f"Server returned invalid response. Status: {response.status_code}",
                parsed=False,
            )

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")

        if not isinstance(payload, dict):
            return ApiResponse(
                status_code=response.status_code,
                success=response.is_success,
                data=payload,
                body=payload,
            )

        return ApiResponse(
            status_code=response.status_code,
            success=bool(payload.get("success", response.is_success)),
            data=payload.get("data"),
            message=payload.get("message"),
            body=payload,
        )

    # ==================== Coupon APIs ====================

    async def list_coupons(self) -> ApiResponse:
        """List coupons configured on the storefront"""
        return await self._request("GET", "/coupons")

    async def apply_coupon(self, code: str, cart_value: float) -> ApiResponse:
        """Validate and price a coupon against the current cart value"""
        return await self._request(
            "POST",
            "/coupons/apply",
            body={"code": code, "cartValue": cart_value},
        )

    # ==================== Delivery APIs ====================

    async def check_delivery(self, pincode: str) -> ApiResponse:
        """Quick serviceability check for a pincode"""
        return await self._request("GET", f"/delivery/check/{pincode}", auth=False)

    async def calculate_shipping(
        self,
        pincode: str,
        cart_total: float,
        weight: float,
        cod: bool,
    ) -> ApiResponse:
        """Priced shipping quote for a pincode"""
        return await self._request(
            "POST",
            "/delivery/calculate-shipping",
            body={
                "pincode": pincode,
                "cartTotal": cart_total,
                "weight": weight,
                "cod": cod,
            },
            auth=False,
        )

    async def create_shipment(self, order_id: str) -> ApiResponse:
        """Create the shipment record for an order"""
        return await self._request(
            "POST",
            "/delivery/shipment",
            body={"orderId": order_id},
        )

    # ==================== Cart & Catalog APIs ====================

    async def get_cart(self) -> ApiResponse:
        """Get the shopper's cart as the backend sees it"""
        return await self._request("GET", "/cart/")

    async def clear_cart(self) -> ApiResponse:
        """Clear the shopper's backend cart"""
        return await self._request("DELETE", "/cart/")

    async def get_product_by_slug(self, slug: str) -> ApiResponse:
        """Get product details by slug"""
        return await self._request("GET", f"/products/slug/{slug}", auth=False)

    # ==================== Order & Payment APIs ====================

    async def create_order(self, payload: dict) -> ApiResponse:
        """Create a draft order"""
        return await self._request("POST", "/orders", body=payload)

    async def verify_payment(
        self,
        order_id: str,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> ApiResponse:
        """Authoritative server-side verification of a gateway payment"""
        return await self._request(
            "POST",
            "/payment-intents/verify",
            body={
                "orderId": order_id,
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            },
        )

    async def record_payment_intent(self, order_id: str, amount: float) -> ApiResponse:
        """Bookkeeping record after a verified payment"""
        return await self._request(
            "POST",
            "/payment-intents",
            body={"orderId": order_id, "amount": amount},
        )
