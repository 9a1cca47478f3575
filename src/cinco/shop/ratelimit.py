from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from cinco.db import crud
from cinco.db.models import LoginAttempt
from cinco.db.storage import LocalStorage
from cinco.utils import config
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class LockoutPolicy:
    max_attempts: int = config.MAX_LOGIN_ATTEMPTS
    lockout: timedelta = config.LOCKOUT_DURATION
    window: timedelta = config.ATTEMPT_WINDOW


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    remaining: timedelta
    record: Optional[LoginAttempt]  # None once the counter is cleared


def check_lock(record: Optional[LoginAttempt], now: datetime) -> LockStatus:
    """
    Locked while now precedes locked_until. An elapsed lockout clears the
    record, which brings the counter back to zero.
    """
    if record is None or record.locked_until is None:
        return LockStatus(False, timedelta(0), record)
    if now < record.locked_until:
        return LockStatus(True, record.locked_until - now, record)
    return LockStatus(False, timedelta(0), None)


def register_failure(
    record: Optional[LoginAttempt], now: datetime, policy: LockoutPolicy
) -> LoginAttempt:
    """
    Count one failed login. Failures older than the window start a new
    count unless a lock is still running. Reaching max_attempts locks the
    account for policy.lockout.
    """
    status = check_lock(record, now)
    record = status.record
    if record is not None and not status.locked and now - record.first_at > policy.window:
        record = None

    if record is None:
        record = LoginAttempt(count=1, first_at=now, last_at=now)
    else:
        record = replace(record, count=record.count + 1, last_at=now)

    if record.count >= policy.max_attempts and not status.locked:
        record = replace(record, locked_until=now + policy.lockout)
    return record


class LoginRateLimiter:
    """Failed-login counters per email, persisted under the login attempts key."""

    def __init__(self, storage: LocalStorage, policy: Optional[LockoutPolicy] = None):
        self.storage = storage
        self.policy = policy or LockoutPolicy()

    async def attempts(self, email: str) -> int:
        record = await crud.get_login_attempt(self.storage, email)
        return record.count if record else 0

    async def record_failed_login(
        self, email: str, now: Optional[datetime] = None
    ) -> LoginAttempt:
        now = now or datetime.now()
        record = await crud.get_login_attempt(self.storage, email)
        record = register_failure(record, now, self.policy)
        await crud.save_login_attempt(self.storage, email, record)
        if record.locked_until and record.locked_until > now:
            _logger.warning(
                f"Login locked for {email.lower()} until {record.locked_until:%X}"
            )
        return record

    async def is_locked(self, email: str, now: Optional[datetime] = None) -> LockStatus:
        now = now or datetime.now()
        record = await crud.get_login_attempt(self.storage, email)
        status = check_lock(record, now)
        if record is not None and status.record is None:
            _logger.info(f"Lockout elapsed for {email.lower()}, counter reset.")
            await crud.save_login_attempt(self.storage, email, None)
        return status

    async def reset_login_attempts(self, email: str) -> None:
        await crud.save_login_attempt(self.storage, email, None)
