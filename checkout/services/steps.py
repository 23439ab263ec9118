"""Checkout Step Controller: Contact -> Address -> Payment"""

import re
import logging

from ..core.errors import ValidationError
from ..core.session import CheckoutSession, CheckoutState, CheckoutStep
from ..database.addresses import AddressBook
from ..models.checkout import (
    PINCODE_PATTERN,
    ContactInfo,
    PaymentInstrument,
    PaymentMethod,
    ShippingAddress,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PHONE_PATTERN = re.compile(r"^\d{10}$")
UPI_PATTERN = re.compile(r"^[\w.-]+@[a-zA-Z]+$")


def contact_errors(contact: ContactInfo) -> dict[str, str]:
    errors = {}
    if not contact.full_name.strip():
        errors["full_name"] = "Full name is required"
    if not contact.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(contact.email):
        errors["email"] = "Email is invalid"
    if not contact.phone.strip():
        errors["phone"] = "Phone number is required"
    elif not PHONE_PATTERN.match(contact.phone):
        errors["phone"] = "Phone number must be 10 digits"
    return errors


def address_errors(address: ShippingAddress) -> dict[str, str]:
    errors = {}
    if not address.address.strip():
        errors["address"] = "Address is required"
    if not address.city.strip():
        errors["city"] = "City is required"
    if not address.state.strip():
        errors["state"] = "State is required"
    if not address.pincode.strip():
        errors["pincode"] = "Pincode is required"
    elif not PINCODE_PATTERN.match(address.pincode):
        errors["pincode"] = "Pincode must be 6 digits"
    return errors


def is_valid_upi_id(upi_id: str) -> bool:
    return bool(UPI_PATTERN.match(upi_id))


class StepController:
    """Gates navigation between checkout steps on per-step validation"""

    def __init__(self, addresses: AddressBook):
        self.addresses = addresses

    @staticmethod
    def _complete(state: CheckoutState, step: CheckoutStep) -> None:
        state.completed_steps.add(int(step))
        state.current_step = step + 1

    def continue_to_address(self, session: CheckoutSession) -> None:
        errors = contact_errors(session.state.contact)
        if errors:
            raise ValidationError(errors)
        self._complete(session.state, CheckoutStep.CONTACT)

    def continue_to_payment(self, session: CheckoutSession) -> None:
        """Requires a selected saved address or a valid new one, which is saved first"""
        state = session.state
        shopper_id = session.auth.shopper_id

        if state.adding_new_address:
            errors = address_errors(state.address)
            if errors:
                raise ValidationError(errors)
            saved = self.addresses.save_address(shopper_id, state.address)
            logger.info(f"Saved address {saved.id} for shopper {shopper_id}")
            state.address = saved
            state.selected_address_id = saved.id
            state.adding_new_address = False
        elif state.selected_address_id is None:
            raise ValidationError({"address": "Please select or add a shipping address"})
        elif self.addresses.get_address(shopper_id, state.selected_address_id) is None:
            raise ValidationError({"address": "Please select a valid shipping address"})

        self._complete(state, CheckoutStep.ADDRESS)

    def edit(self, session: CheckoutSession, step: int) -> None:
        """Go back to a step; completed steps stay completed"""
        step = CheckoutStep(step)
        if step > session.state.current_step and int(step) - 1 not in session.state.completed_steps:
            raise ValidationError({"step": f"Complete step {int(step) - 1} before continuing"})
        session.state.current_step = step

    def final_errors(self, session: CheckoutSession) -> list[str]:
        """Authoritative re-validation of every step before placing an order"""
        state = session.state
        errors = list(contact_errors(state.contact).values())

        shopper_id = session.auth.shopper_id
        if state.selected_address_id and not state.adding_new_address:
            if self.addresses.get_address(shopper_id, state.selected_address_id) is None:
                errors.append("Please select a valid shipping address")
        elif state.adding_new_address:
            errors.extend(address_errors(state.address).values())
        else:
            errors.append("Shipping address is required")

        payment = state.payment
        if payment.method is None:
            errors.append("Payment method is required")
        elif payment.method == PaymentMethod.ONLINE:
            if payment.instrument is None:
                errors.append("Please select an online payment option")
            elif (
                payment.instrument == PaymentInstrument.UPI
                and payment.upi_id.strip()
                and not is_valid_upi_id(payment.upi_id.strip())
            ):
                errors.append("Please enter a valid UPI ID (e.g., 9876543210@paytm)")

        if session.cart.count() == 0:
            errors.append("Cart is empty")

        return errors

    def ensure_ready(self, session: CheckoutSession) -> None:
        if session.state.current_step < CheckoutStep.PAYMENT:
            raise ValidationError({"step": "Complete the contact and address steps first"})
        errors = self.final_errors(session)
        if errors:
            raise ValidationError({f"checkout_{i}": e for i, e in enumerate(errors)})
