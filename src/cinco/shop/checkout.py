from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Optional, Tuple

from cinco.db import crud
from cinco.db.models import CartLine, Order, ShippingDetails
from cinco.db.storage import LocalStorage
from cinco.shop.cart import CartStore, summarize
from cinco.shop.catalog import verify_cart
from cinco.shop.errors import CartTampered, EmptyCart, NotLoggedIn, ValidationError
from cinco.shop.session import SessionManager
from cinco.shop.validation import (
    sanitize_input,
    validate_address,
    validate_email,
    validate_name,
    validate_phone_number,
    validate_zip,
)
from cinco.utils import config
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)

PAYMENT_METHODS: Dict[str, str] = {
    "cash_on_delivery": "Cash on Delivery",
    "gcash": "GCash",
    "card": "Credit / Debit Card",
}
DEFAULT_PAYMENT_METHOD = "cash_on_delivery"


def new_order_number(taken) -> int:
    """A random 5-digit order number not already in taken."""
    while True:
        number = random.randint(10000, 99999)
        if number not in taken:
            return number


@dataclass(frozen=True)
class CheckoutSummary:
    lines: Tuple[CartLine, ...]
    subtotal: float
    delivery_fee: float
    grand_total: float


def clean_shipping_details(details: ShippingDetails) -> ShippingDetails:
    """
    Trim and sanitize every field, then validate. Raises ValidationError with
    the message for the first bad field.
    """
    fields = {k: (v or "").strip() for k, v in vars(details).items()}
    if not all(fields.values()):
        raise ValidationError("Please fill in all required fields.")

    for key in ("first_name", "last_name", "address", "city", "zip_code"):
        fields[key] = sanitize_input(fields[key])
    cleaned = replace(details, **fields)

    if not validate_name(cleaned.first_name):
        raise ValidationError(
            "First name must be 2-100 characters (letters, spaces, hyphens, apostrophes only)."
        )
    if not validate_name(cleaned.last_name):
        raise ValidationError(
            "Last name must be 2-100 characters (letters, spaces, hyphens, apostrophes only)."
        )
    if not validate_email(cleaned.email):
        raise ValidationError("Please enter a valid email address.")
    if not validate_phone_number(cleaned.phone):
        raise ValidationError(
            "Please enter a valid phone number (7-20 characters, digits, spaces, hyphens, +, parentheses)."
        )
    if not validate_address(cleaned.address):
        raise ValidationError("Address must be 5-500 characters and contain no HTML tags.")
    if not validate_name(cleaned.city):
        raise ValidationError("City must be 2-100 characters (letters only).")
    if not validate_zip(cleaned.zip_code):
        raise ValidationError(
            "ZIP code must be 3-10 characters (alphanumeric, hyphens, spaces)."
        )
    return cleaned


class CheckoutService:
    """Mock checkout: integrity gate, order record, cart cleared. No payment."""

    def __init__(
        self,
        storage: LocalStorage,
        sessions: SessionManager,
        cart: CartStore,
        delivery_fee: float = config.DELIVERY_FEE,
    ):
        self.storage = storage
        self.sessions = sessions
        self.cart = cart
        self.delivery_fee = delivery_fee

    async def _verified_cart(self, now: Optional[datetime]) -> Tuple[str, CheckoutSummary]:
        user_id = await self.sessions.current_user(now)
        if user_id is None:
            raise NotLoggedIn("Please log in to proceed to checkout.")
        lines = await crud.get_cart(self.storage, user_id)
        if not lines:
            raise EmptyCart()
        report = verify_cart(lines)
        if not report.valid:
            raise CartTampered(report)
        subtotal = summarize(lines).total
        return user_id, CheckoutSummary(
            lines=tuple(lines),
            subtotal=subtotal,
            delivery_fee=self.delivery_fee,
            grand_total=round(subtotal + self.delivery_fee, 2),
        )

    async def proceed_to_checkout(self, now: Optional[datetime] = None) -> CheckoutSummary:
        """Verify the cart and remember its total for the checkout page."""
        _, summary = await self._verified_cart(now)
        await crud.set_cart_total(self.storage, summary.subtotal)
        return summary

    async def place_order(
        self,
        details: ShippingDetails,
        payment_method: str = DEFAULT_PAYMENT_METHOD,
        now: Optional[datetime] = None,
    ) -> Order:
        now = now or datetime.now()
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("Please choose a payment method.")
        details = clean_shipping_details(details)
        user_id, summary = await self._verified_cart(now)

        order = Order(
            order_number=new_order_number(await crud.order_numbers(self.storage)),
            user_id=user_id,
            lines=summary.lines,
            subtotal=summary.subtotal,
            delivery_fee=summary.delivery_fee,
            grand_total=summary.grand_total,
            payment_method=payment_method,
            shipping=details,
            placed_at=now,
        )
        await crud.append_order(self.storage, order)
        await self.cart.clear_cart(now)
        _logger.info(
            f"Order {order.order_number} placed by {user_id}: "
            f"{config.CURRENCY}{order.grand_total:.2f} via {payment_method}"
        )
        return order

    async def list_orders(self, now: Optional[datetime] = None):
        user_id = await self.sessions.current_user(now)
        if user_id is None:
            return []
        return await crud.list_orders(self.storage, user_id)
