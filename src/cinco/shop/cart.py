from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple

from cinco.db import crud
from cinco.db.models import CartLine, CartSummary
from cinco.db.storage import LocalStorage
from cinco.shop.errors import InvalidCartLine, NotLoggedIn, ValidationError
from cinco.shop.session import SessionManager
from cinco.shop.validation import MAX_QUANTITY, MIN_QUANTITY, validate_quantity
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)

_QUANTITY_MESSAGE = f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}."


def summarize(lines: List[CartLine]) -> CartSummary:
    return CartSummary(
        item_count=sum(line.quantity for line in lines),
        total=round(sum(line.line_total for line in lines), 2),
    )


class CartStore:
    """
    Per-user carts. Each mutation reads the owner's cart, changes it,
    writes the whole list back and returns the recomputed summary.
    The owner is whoever holds the active session.
    """

    def __init__(self, storage: LocalStorage, sessions: SessionManager):
        self.storage = storage
        self.sessions = sessions

    async def _owner(self, now: Optional[datetime] = None) -> str:
        user_id = await self.sessions.current_user(now)
        if user_id is None:
            raise NotLoggedIn(
                "You need to sign up or log in before adding to cart."
            )
        return user_id

    async def _load(self, now: Optional[datetime]) -> Tuple[str, List[CartLine]]:
        user_id = await self._owner(now)
        return user_id, await crud.get_cart(self.storage, user_id)

    async def _persist(self, user_id: str, lines: List[CartLine]) -> CartSummary:
        await crud.save_cart(self.storage, user_id, lines)
        return summarize(lines)

    async def list_cart(self, now: Optional[datetime] = None) -> List[CartLine]:
        """Lines of the current user's cart; empty when nobody is logged in."""
        user_id = await self.sessions.current_user(now)
        if user_id is None:
            return []
        return await crud.get_cart(self.storage, user_id)

    async def summary(self, now: Optional[datetime] = None) -> CartSummary:
        return summarize(await self.list_cart(now))

    async def add_to_cart(
        self, item: CartLine, now: Optional[datetime] = None
    ) -> CartSummary:
        """
        Merge by (name, size): bump the quantity on a match, else append.
        Both the added and the merged quantity must stay within 1..999.
        """
        if not validate_quantity(item.quantity):
            raise ValidationError(_QUANTITY_MESSAGE)
        user_id, lines = await self._load(now)
        for i, line in enumerate(lines):
            if line.name == item.name and line.size == item.size:
                merged = line.quantity + item.quantity
                if not validate_quantity(merged):
                    raise ValidationError(_QUANTITY_MESSAGE)
                lines[i] = replace(line, quantity=merged)
                break
        else:
            lines.append(item)
        _logger.debug(f"{user_id} added {item.quantity} x {item.name} ({item.size})")
        return await self._persist(user_id, lines)

    async def remove_from_cart(
        self, index: int, now: Optional[datetime] = None
    ) -> CartSummary:
        user_id, lines = await self._load(now)
        if not 0 <= index < len(lines):
            raise InvalidCartLine(index)
        lines.pop(index)
        return await self._persist(user_id, lines)

    async def increase_quantity(
        self, index: int, now: Optional[datetime] = None
    ) -> CartSummary:
        """Quantities never go above the maximum."""
        user_id, lines = await self._load(now)
        if not 0 <= index < len(lines):
            raise InvalidCartLine(index)
        if lines[index].quantity >= MAX_QUANTITY:
            return summarize(lines)
        lines[index] = replace(lines[index], quantity=lines[index].quantity + 1)
        return await self._persist(user_id, lines)

    async def decrease_quantity(
        self, index: int, now: Optional[datetime] = None
    ) -> CartSummary:
        """Quantities never go below 1; use remove_from_cart to drop a line."""
        user_id, lines = await self._load(now)
        if not 0 <= index < len(lines):
            raise InvalidCartLine(index)
        if lines[index].quantity <= 1:
            return summarize(lines)
        lines[index] = replace(lines[index], quantity=lines[index].quantity - 1)
        return await self._persist(user_id, lines)

    async def update_quantity(
        self, index: int, quantity, now: Optional[datetime] = None
    ) -> CartSummary:
        user_id, lines = await self._load(now)
        if not 0 <= index < len(lines):
            raise InvalidCartLine(index)
        if not validate_quantity(quantity):
            raise ValidationError(_QUANTITY_MESSAGE)
        lines[index] = replace(lines[index], quantity=int(quantity))
        return await self._persist(user_id, lines)

    async def clear_cart(self, now: Optional[datetime] = None) -> CartSummary:
        user_id = await self._owner(now)
        await crud.remove_cart(self.storage, user_id)
        await crud.remove_cart_total(self.storage)
        return CartSummary(0, 0.0)
