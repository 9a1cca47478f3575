from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import bcrypt

from cinco.db import crud
from cinco.db.models import Session, User
from cinco.db.storage import LocalStorage
from cinco.shop.captcha import BotCheck, require_human
from cinco.shop.errors import (
    AccountLocked,
    EmailTaken,
    InvalidCredentials,
    ValidationError,
)
from cinco.shop.ratelimit import LoginRateLimiter
from cinco.shop.session import SessionManager
from cinco.shop.validation import (
    sanitize_input,
    validate_email,
    validate_name,
    validate_password,
)
from cinco.utils import config
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)


def _secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode()[:72]


def hash_password(password: str, rounds: int = config.BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=rounds)).decode()


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False


class AuthService:
    """Mock sign-up and login against the users map of the local store."""

    def __init__(
        self,
        storage: LocalStorage,
        sessions: SessionManager,
        limiter: Optional[LoginRateLimiter] = None,
        min_bot_score: float = config.MIN_BOT_SCORE,
    ):
        self.storage = storage
        self.sessions = sessions
        self.limiter = limiter or LoginRateLimiter(storage)
        self.min_bot_score = min_bot_score

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        bot_check: Optional[BotCheck],
        now: Optional[datetime] = None,
    ) -> Session:
        """Register a new user and log them in. Returns the new session."""
        name = (name or "").strip()
        email = (email or "").strip()
        password = password or ""

        if not name or not email or not password:
            raise ValidationError("Please fill in all required fields.")
        name = sanitize_input(name)
        if not validate_name(name):
            raise ValidationError(
                "Name must be 2-100 characters (letters, spaces, hyphens, apostrophes only)."
            )
        if not validate_email(email):
            raise ValidationError("Please enter a valid email address.")
        if not validate_password(password):
            raise ValidationError(
                "Password must be 6-128 characters and contain no special "
                "characters like ', \", ;, or \\."
            )
        require_human(bot_check, self.min_bot_score)

        if not await crud.email_available(self.storage, email):
            raise EmailTaken()

        # bcrypt runs in a worker thread, off the event loop
        password_hash = await asyncio.to_thread(hash_password, password)
        await crud.save_user(
            self.storage,
            User(email=email, name=name, password_hash=password_hash),
        )
        _logger.info(f"Registered {email}")
        return await self.sessions.create_session(email, now)

    async def login(
        self,
        email: str,
        password: str,
        bot_check: Optional[BotCheck],
        now: Optional[datetime] = None,
    ) -> Session:
        now = now or datetime.now()
        email = (email or "").strip()
        password = password or ""

        if not email or not password:
            raise ValidationError("Please enter both email and password.")
        if not validate_email(email):
            raise ValidationError("Please enter a valid email address.")

        status = await self.limiter.is_locked(email, now)
        if status.locked:
            raise AccountLocked(status.remaining)
        require_human(bot_check, self.min_bot_score)

        user = await crud.get_user(self.storage, email)
        matched = user is not None and await asyncio.to_thread(
            check_password, password, user.password_hash
        )
        if not matched:
            record = await self.limiter.record_failed_login(email, now)
            _logger.info(f"Failed login for {email.lower()} ({record.count})")
            if record.locked_until and record.locked_until > now:
                raise AccountLocked(record.locked_until - now)
            raise InvalidCredentials()

        await self.limiter.reset_login_attempts(email)
        return await self.sessions.create_session(user.email, now)

    async def logout(self) -> Optional[str]:
        return await self.sessions.end_session()

    async def current_user(self, now: Optional[datetime] = None) -> Optional[User]:
        user_id = await self.sessions.current_user(now)
        if user_id is None:
            return None
        return await crud.get_user(self.storage, user_id)
