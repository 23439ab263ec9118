"""Saved shipping addresses, keyed by shopper"""

import uuid
from typing import Optional

from ..models.checkout import ShippingAddress


class AddressBook:
    """In-memory address storage"""

    def __init__(self):
        self.addresses: dict[str, list[ShippingAddress]] = {}

    def list_addresses(self, shopper_id: str) -> list[ShippingAddress]:
        """List a shopper's saved addresses"""
        return list(self.addresses.get(shopper_id, []))

    def get_address(self, shopper_id: str, address_id: str) -> Optional[ShippingAddress]:
        """Get a saved address by ID"""
        return next(
            (a for a in self.addresses.get(shopper_id, []) if a.id == address_id),
            None,
        )

    def get_default(self, shopper_id: str) -> Optional[ShippingAddress]:
        """Get the shopper's default address"""
        return next(
            (a for a in self.addresses.get(shopper_id, []) if a.is_default),
            None,
        )

    def save_address(self, shopper_id: str, address: ShippingAddress) -> ShippingAddress:
        """Persist a new address; the first one becomes the default"""
        existing = self.addresses.setdefault(shopper_id, [])
        saved = address.model_copy(
            update={
                "id": uuid.uuid4().hex[:12],
                "label": address.label or "Home",
                "is_default": address.is_default or not existing,
            }
        )
        if saved.is_default:
            existing[:] = [a.model_copy(update={"is_default": False}) for a in existing]
        existing.append(saved)
        return saved

    def delete_address(self, shopper_id: str, address_id: str) -> bool:
        """Delete a saved address"""
        existing = self.addresses.get(shopper_id, [])
        remaining = [a for a in existing if a.id != address_id]
        if len(remaining) == len(existing):
            return False
        if remaining and not any(a.is_default for a in remaining):
            remaining[0] = remaining[0].model_copy(update={"is_default": True})
        self.addresses[shopper_id] = remaining
        return True


# Singleton instance
address_book = AddressBook()
