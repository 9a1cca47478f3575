# manages connection to the local store file, internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Optional, Set

import aiosqlite

from cinco.utils import config
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = config.DB_PATH

_SCHEMA = """
CREATE TABLE IF NOT EXISTS local_storage (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

# paths whose schema has been created in this process
_initialized: Set[str] = set()
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    await conn.executescript(_SCHEMA)
    await conn.commit()


@asynccontextmanager
async def connect(path: Optional[str] = None) -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection to the store.

    Creates the parent directory and the key/value table on first use.
    """
    path = path or DB_PATH
    if path not in _initialized:
        async with _init_lock:
            if path not in _initialized:
                folder = os.path.dirname(path)
                if folder:
                    os.makedirs(folder, exist_ok=True)
                _logger.info(f"Initializing local store at {path}...")
                async with aiosqlite.connect(path) as conn:
                    await _init_db(conn)
                _initialized.add(path)

    conn = await aiosqlite.connect(path)
    try:
        yield conn
    finally:
        await conn.close()
