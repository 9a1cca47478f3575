"""
Input validation and sanitization for every form the shop accepts.

Sanitizing strips markup, `javascript:` URLs and inline event handlers.
Validators return bools and never raise; callers decide which message to show.
"""

import re

_TAG_RE = re.compile(r"<[^>]*>")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_NAME_RE = re.compile(r"[a-zA-Z\s\-']{2,100}")
_PHONE_RE = re.compile(r"[0-9\s\-()+]{7,20}")
_PRICE_RE = re.compile(r"[0-9]{1,5}(\.[0-9]{1,2})?")
_ZIP_RE = re.compile(r"[a-zA-Z0-9\s\-]{3,10}")
_PASSWORD_FORBIDDEN_RE = re.compile(r"['\";\\]")

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128
MIN_QUANTITY = 1
MAX_QUANTITY = 999


def sanitize_input(value) -> str:
    if not isinstance(value, str):
        return ""
    value = _TAG_RE.sub("", value)
    value = _JS_PROTOCOL_RE.sub("", value)
    value = _EVENT_HANDLER_RE.sub("", value)
    return value.strip()


def validate_email(email) -> bool:
    if not isinstance(email, str):
        return False
    return (
        _EMAIL_RE.fullmatch(email) is not None
        and len(email) <= MAX_EMAIL_LENGTH
        and "<" not in email
        and ">" not in email
    )


def validate_password(password) -> bool:
    """6-128 characters, none of ' \" ; or backslash."""
    if not isinstance(password, str):
        return False
    if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        return False
    return _PASSWORD_FORBIDDEN_RE.search(password) is None


def validate_name(name) -> bool:
    return _NAME_RE.fullmatch(sanitize_input(name)) is not None


def validate_phone_number(phone) -> bool:
    return _PHONE_RE.fullmatch(sanitize_input(phone)) is not None


def validate_address(address) -> bool:
    sanitized = sanitize_input(address)
    return 5 <= len(sanitized) <= 500 and not any(c in sanitized for c in "<>{}")


def validate_price(price) -> bool:
    """At most five digits before the point and two after."""
    return _PRICE_RE.fullmatch(str(price)) is not None


def validate_quantity(quantity) -> bool:
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        return False
    return MIN_QUANTITY <= qty <= MAX_QUANTITY


def validate_textarea(text, min_length: int = 5, max_length: int = 1000) -> bool:
    sanitized = sanitize_input(text)
    return (
        min_length <= len(sanitized) <= max_length
        and "<script>" not in sanitized
        and "</script>" not in sanitized
    )


def validate_zip(zip_code) -> bool:
    return _ZIP_RE.fullmatch(sanitize_input(zip_code)) is not None
