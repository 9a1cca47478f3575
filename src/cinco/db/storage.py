import json
from typing import Any, List, Optional

import aiosqlite

from cinco.db import database
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)

# fixed key names, one JSON document per key
USERS_KEY = "users"
SESSION_KEY = "currentSession"
CART_KEY = "cincoCoffeeCart"
CART_TOTAL_KEY = "cincoCoffeeTotal"
LOGIN_ATTEMPTS_KEY = "loginAttempts"
ORDERS_KEY = "cincoOrders"
FEEDBACK_KEY = "cincoFeedback"


class LocalStorage:
    """
    Persistent string key/value store, one SQLite file per origin.

    Each call is a single read or write. There is no transaction spanning
    calls, so concurrent writers to the same key overwrite each other.
    Writes are best effort: database errors are logged and dropped.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or database.DB_PATH

    async def get_item(self, key: str) -> Optional[str]:
        async with database.connect(self.path) as conn:
            cur = await conn.execute(
                "SELECT value FROM local_storage WHERE key = ?;", (key,)
            )
            row = await cur.fetchone()
            await cur.close()
        return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        try:
            async with database.connect(self.path) as conn:
                await conn.execute(
                    """
                    INSERT INTO local_storage(key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value;
                    """,
                    (key, str(value)),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            _logger.warning(f"Write to '{key}' dropped: {e}")

    async def remove_item(self, key: str) -> None:
        try:
            async with database.connect(self.path) as conn:
                await conn.execute("DELETE FROM local_storage WHERE key = ?;", (key,))
                await conn.commit()
        except aiosqlite.Error as e:
            _logger.warning(f"Removal of '{key}' dropped: {e}")

    async def keys(self) -> List[str]:
        async with database.connect(self.path) as conn:
            cur = await conn.execute("SELECT key FROM local_storage ORDER BY key;")
            rows = await cur.fetchall()
            await cur.close()
        return [row[0] for row in rows]

    async def clear(self) -> None:
        try:
            async with database.connect(self.path) as conn:
                await conn.execute("DELETE FROM local_storage;")
                await conn.commit()
        except aiosqlite.Error as e:
            _logger.warning(f"Clearing store dropped: {e}")

    async def get_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON document under key, or return default if absent or corrupt."""
        raw = await self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning(f"Ignoring corrupt JSON under '{key}'.")
            return default

    async def set_json(self, key: str, value: Any) -> None:
        await self.set_item(key, json.dumps(value))
