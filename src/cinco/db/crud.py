# src/cinco/db/crud.py
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Dict, List, Optional, Set

from cinco.db import models
from cinco.db.storage import (
    CART_KEY,
    CART_TOTAL_KEY,
    FEEDBACK_KEY,
    LOGIN_ATTEMPTS_KEY,
    ORDERS_KEY,
    SESSION_KEY,
    USERS_KEY,
    LocalStorage,
)


def _to_int(val) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return 0


def _to_float(val) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return 0.0


def _to_dt(val) -> Optional[datetime]:
    if not val:
        return None
    try:
        return datetime.fromisoformat(val)
    except (TypeError, ValueError):
        return None


def _iso(val: Optional[datetime]) -> Optional[str]:
    return val.isoformat() if val else None


# ---------------------------
# Users
# ---------------------------


async def get_users(storage: LocalStorage) -> Dict[str, models.User]:
    """Return every registered user keyed by email as first registered."""
    raw = await storage.get_json(USERS_KEY, {})
    return {
        email: models.User(
            email=email,
            name=entry.get("name", ""),
            password_hash=entry.get("password", ""),
        )
        for email, entry in raw.items()
        if isinstance(entry, dict)
    }


async def find_user_key(storage: LocalStorage, email: str) -> Optional[str]:
    """Case-insensitive lookup of the stored key for email."""
    wanted = (email or "").strip().lower()
    raw = await storage.get_json(USERS_KEY, {})
    return next((k for k in raw if k.lower() == wanted), None)


async def get_user(storage: LocalStorage, email: str) -> Optional[models.User]:
    key = await find_user_key(storage, email)
    if key is None:
        return None
    return (await get_users(storage)).get(key)


async def email_available(storage: LocalStorage, email: str) -> bool:
    """True if no user already registered with the given email, in any casing."""
    return await find_user_key(storage, email) is None


async def save_user(storage: LocalStorage, user: models.User) -> None:
    raw = await storage.get_json(USERS_KEY, {})
    raw[user.email] = {"name": user.name, "password": user.password_hash}
    await storage.set_json(USERS_KEY, raw)


# ---------------------------
# Sessions
# ---------------------------


async def get_session_record(storage: LocalStorage) -> Optional[models.Session]:
    raw = await storage.get_json(SESSION_KEY)
    if not isinstance(raw, dict):
        return None
    created = _to_dt(raw.get("created_at"))
    last = _to_dt(raw.get("last_activity_at"))
    expires = _to_dt(raw.get("expires_at"))
    if not raw.get("user_id") or not created or not last or not expires:
        return None
    return models.Session(
        user_id=raw["user_id"],
        token=raw.get("token", ""),
        created_at=created,
        last_activity_at=last,
        expires_at=expires,
    )


async def save_session_record(storage: LocalStorage, session: models.Session) -> None:
    await storage.set_json(
        SESSION_KEY,
        {
            "user_id": session.user_id,
            "token": session.token,
            "created_at": _iso(session.created_at),
            "last_activity_at": _iso(session.last_activity_at),
            "expires_at": _iso(session.expires_at),
        },
    )


async def remove_session_record(storage: LocalStorage) -> None:
    await storage.remove_item(SESSION_KEY)


# ---------------------------
# Cart Management
# ---------------------------


def _line_from_dict(raw: dict) -> models.CartLine:
    return models.CartLine(
        product_id=str(raw.get("product_id", "")),
        name=str(raw.get("name", "")),
        unit_price=_to_float(raw.get("unit_price")),
        size=str(raw.get("size", "")),
        quantity=_to_int(raw.get("quantity")),
    )


def _line_to_dict(line: models.CartLine) -> dict:
    return dataclasses.asdict(line)


async def get_cart(storage: LocalStorage, user_id: str) -> List[models.CartLine]:
    """Return the ordered cart lines of one user; empty if none."""
    carts = await storage.get_json(CART_KEY, {})
    lines = carts.get(user_id, []) if isinstance(carts, dict) else []
    return [_line_from_dict(raw) for raw in lines if isinstance(raw, dict)]


async def save_cart(
    storage: LocalStorage, user_id: str, lines: List[models.CartLine]
) -> None:
    """Persist the full cart of one user. An empty cart removes the entry."""
    carts = await storage.get_json(CART_KEY, {})
    if not isinstance(carts, dict):
        carts = {}
    if lines:
        carts[user_id] = [_line_to_dict(line) for line in lines]
    else:
        carts.pop(user_id, None)
    await storage.set_json(CART_KEY, carts)


async def remove_cart(storage: LocalStorage, user_id: str) -> None:
    await save_cart(storage, user_id, [])


async def set_cart_total(storage: LocalStorage, total: float) -> None:
    await storage.set_item(CART_TOTAL_KEY, f"{total:.2f}")


async def get_cart_total(storage: LocalStorage) -> Optional[float]:
    raw = await storage.get_item(CART_TOTAL_KEY)
    return _to_float(raw) if raw is not None else None


async def remove_cart_total(storage: LocalStorage) -> None:
    await storage.remove_item(CART_TOTAL_KEY)


# ---------------------------
# Login attempts
# ---------------------------


def _attempt_from_dict(raw: dict) -> Optional[models.LoginAttempt]:
    first = _to_dt(raw.get("first_at"))
    last = _to_dt(raw.get("last_at"))
    if not first or not last:
        return None
    return models.LoginAttempt(
        count=_to_int(raw.get("count")),
        first_at=first,
        last_at=last,
        locked_until=_to_dt(raw.get("locked_until")),
    )


async def get_login_attempt(
    storage: LocalStorage, email: str
) -> Optional[models.LoginAttempt]:
    raw = await storage.get_json(LOGIN_ATTEMPTS_KEY, {})
    entry = raw.get(email.lower()) if isinstance(raw, dict) else None
    return _attempt_from_dict(entry) if isinstance(entry, dict) else None


async def save_login_attempt(
    storage: LocalStorage, email: str, record: Optional[models.LoginAttempt]
) -> None:
    """Store the record for email; None removes it."""
    raw = await storage.get_json(LOGIN_ATTEMPTS_KEY, {})
    if not isinstance(raw, dict):
        raw = {}
    key = email.lower()
    if record is None:
        if key not in raw:
            return
        raw.pop(key)
    else:
        raw[key] = {
            "count": record.count,
            "first_at": _iso(record.first_at),
            "last_at": _iso(record.last_at),
            "locked_until": _iso(record.locked_until),
        }
    await storage.set_json(LOGIN_ATTEMPTS_KEY, raw)


# ---------------------------
# Feedback
# ---------------------------


async def append_feedback(storage: LocalStorage, entry: models.FeedbackEntry) -> None:
    log = await storage.get_json(FEEDBACK_KEY, [])
    if not isinstance(log, list):
        log = []
    raw = dataclasses.asdict(entry)
    raw["timestamp"] = _iso(entry.timestamp)
    log.append(raw)
    await storage.set_json(FEEDBACK_KEY, log)


async def _log(storage: LocalStorage, key: str) -> List[dict]:
    """An append-only log; entries that are not objects are skipped."""
    log = await storage.get_json(key, [])
    if not isinstance(log, list):
        return []
    return [raw for raw in log if isinstance(raw, dict)]


async def list_feedback(storage: LocalStorage) -> List[models.FeedbackEntry]:
    """Return the feedback log in submission order."""
    return [
        models.FeedbackEntry(
            id=str(raw.get("id", "")),
            name=str(raw.get("name", "")),
            email=str(raw.get("email", "")),
            subject=str(raw.get("subject", "")),
            message=str(raw.get("message", "")),
            timestamp=_to_dt(raw.get("timestamp")) or datetime.min,
        )
        for raw in await _log(storage, FEEDBACK_KEY)
    ]


# ---------------------------
# Orders
# ---------------------------


def _shipping_from_dict(raw) -> models.ShippingDetails:
    raw = raw if isinstance(raw, dict) else {}
    return models.ShippingDetails(
        **{
            f.name: str(raw.get(f.name, ""))
            for f in dataclasses.fields(models.ShippingDetails)
        }
    )


def _order_from_dict(raw: dict) -> models.Order:
    lines = raw.get("lines")
    return models.Order(
        order_number=_to_int(raw.get("order_number")),
        user_id=str(raw.get("user_id", "")),
        lines=tuple(
            _line_from_dict(line)
            for line in (lines if isinstance(lines, list) else [])
            if isinstance(line, dict)
        ),
        subtotal=_to_float(raw.get("subtotal")),
        delivery_fee=_to_float(raw.get("delivery_fee")),
        grand_total=_to_float(raw.get("grand_total")),
        payment_method=str(raw.get("payment_method", "")),
        shipping=_shipping_from_dict(raw.get("shipping")),
        placed_at=_to_dt(raw.get("placed_at")) or datetime.min,
    )


async def append_order(storage: LocalStorage, order: models.Order) -> None:
    log = await storage.get_json(ORDERS_KEY, [])
    if not isinstance(log, list):
        log = []
    raw = dataclasses.asdict(order)
    raw["placed_at"] = _iso(order.placed_at)
    log.append(raw)
    await storage.set_json(ORDERS_KEY, log)


async def order_numbers(storage: LocalStorage) -> Set[int]:
    """Every order number already taken, across all users."""
    return {_to_int(raw.get("order_number")) for raw in await _log(storage, ORDERS_KEY)}


async def list_orders(storage: LocalStorage, user_id: str) -> List[models.Order]:
    """List a user's orders, newest first."""
    orders = [
        _order_from_dict(raw)
        for raw in await _log(storage, ORDERS_KEY)
        if raw.get("user_id") == user_id
    ]
    orders.sort(key=lambda o: o.placed_at, reverse=True)
    return orders


async def get_order(
    storage: LocalStorage, order_number: int
) -> Optional[models.Order]:
    for raw in await _log(storage, ORDERS_KEY):
        if _to_int(raw.get("order_number")) == order_number:
            return _order_from_dict(raw)
    return None
