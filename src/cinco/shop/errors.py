from datetime import timedelta
from math import ceil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cinco.db.models import IntegrityReport


class ShopError(Exception):
    """
    Base for every failure the shop reports back to the user.
    str(error) is the message to show.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    pass


class InvalidCredentials(ShopError):
    def __init__(self, message: str = "Invalid email or password. Please try again."):
        super().__init__(message)


class EmailTaken(ShopError):
    def __init__(self):
        super().__init__("This email is already registered. Please log in.")


class AccountLocked(ShopError):
    def __init__(self, remaining: timedelta):
        self.remaining = remaining
        minutes = max(ceil(remaining.total_seconds() / 60), 1)
        super().__init__(
            f"Too many failed attempts. Try again in {minutes} minute(s)."
        )


class BotCheckFailed(ShopError):
    def __init__(self, message: str = "Please complete the bot check first."):
        super().__init__(message)


class NotLoggedIn(ShopError):
    def __init__(self, message: str = "Please log in first."):
        super().__init__(message)


class EmptyCart(ShopError):
    def __init__(self):
        super().__init__("Your cart is empty. Please add items before checking out.")


class InvalidCartLine(ShopError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"No cart line at position {index + 1}.")


class CartTampered(ShopError):
    def __init__(self, report: "IntegrityReport"):
        self.report = report
        names = ", ".join(t.name or "?" for t in report.tampered)
        super().__init__(
            f"Checkout rejected: cart items do not match our menu ({names})."
        )
