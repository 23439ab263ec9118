"""Pincode serviceability and shipping rates for the mock storefront"""

import re
from dataclasses import dataclass
from typing import Optional

PINCODE_RE = re.compile(r"^\d{6}$")

STANDARD_CHARGE = 99.0
FREE_SHIPPING_THRESHOLD = 499.0
COD_CHARGE = 30.0
EXTRA_WEIGHT_CHARGE = 20.0  # per kg above the first 2 kg


@dataclass(frozen=True)
class Zone:
    """Delivery zone selected by pincode prefix"""
    name: str
    serviceable: bool = True
    cod_available: bool = True
    min_days: int = 3
    max_days: int = 6
    partner: str = "Standard Delivery"


# Longest matching prefix wins
ZONES: dict[str, Zone] = {
    "99": Zone(name="unserviceable", serviceable=False, cod_available=False),
    "7": Zone(name="north-east", cod_available=False, min_days=6, max_days=9, partner="India Post"),
    "11": Zone(name="delhi", min_days=1, max_days=2, partner="Express Delivery"),
    "40": Zone(name="mumbai", min_days=1, max_days=2, partner="Express Delivery"),
    "56": Zone(name="bengaluru", min_days=2, max_days=3, partner="Express Delivery"),
}
DEFAULT_ZONE = Zone(name="rest-of-india")


@dataclass
class ShippingQuote:
    shipping_charges: float
    cod_charges: float
    is_free_shipping: bool
    zone: Zone

    @property
    def total_shipping(self) -> float:
        return self.shipping_charges + self.cod_charges


class DeliveryRates:
    """Zone lookup and shipping price rules"""

    def __init__(self, zones: Optional[dict[str, Zone]] = None):
        self.zones = zones if zones is not None else ZONES

    @staticmethod
    def is_valid_pincode(pincode: str) -> bool:
        return bool(PINCODE_RE.match(pincode))

    def zone_for(self, pincode: str) -> Zone:
        matches = [prefix for prefix in self.zones if pincode.startswith(prefix)]
        if not matches:
            return DEFAULT_ZONE
        return self.zones[max(matches, key=len)]

    def quote(self, pincode: str, cart_total: float, weight: float, cod: bool) -> ShippingQuote:
        zone = self.zone_for(pincode)
        is_free = cart_total >= FREE_SHIPPING_THRESHOLD

        charge = 0.0 if is_free else STANDARD_CHARGE
        if not is_free and weight > 2:
            charge += EXTRA_WEIGHT_CHARGE * int(weight - 2 + 0.999)

        cod_charges = COD_CHARGE if cod and zone.cod_available else 0.0
        return ShippingQuote(
            shipping_charges=charge,
            cod_charges=cod_charges,
            is_free_shipping=is_free,
            zone=zone,
        )


# Singleton instance
delivery_rates = DeliveryRates()
