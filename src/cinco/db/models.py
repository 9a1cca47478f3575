# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class User:
    email: str  # key as first registered; lookups are case-insensitive
    name: str
    password_hash: str


@dataclass(frozen=True)
class Session:
    user_id: str
    token: str
    created_at: datetime
    last_activity_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    price: float
    sizes: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    unit_price: float  # price as carried by the cart, not trusted
    size: str
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartSummary:
    item_count: int
    total: float


@dataclass(frozen=True)
class LoginAttempt:
    count: int
    first_at: datetime
    last_at: datetime
    locked_until: Optional[datetime] = None


@dataclass(frozen=True)
class FeedbackEntry:
    id: str
    name: str
    email: str
    subject: str
    message: str
    timestamp: datetime


@dataclass(frozen=True)
class ShippingDetails:
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    zip_code: str


@dataclass(frozen=True)
class Order:
    order_number: int
    user_id: str
    lines: Tuple[CartLine, ...]
    subtotal: float
    delivery_fee: float
    grand_total: float
    payment_method: str
    shipping: ShippingDetails
    placed_at: datetime


@dataclass(frozen=True)
class TamperedLine:
    index: int
    name: str
    price: float
    expected: Optional[float]  # None when the product is unknown
    reason: str


@dataclass(frozen=True)
class IntegrityReport:
    valid: bool
    tampered: Tuple[TamperedLine, ...] = field(default_factory=tuple)
