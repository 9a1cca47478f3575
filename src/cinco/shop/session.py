from __future__ import annotations

import secrets
from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from cinco.db import crud
from cinco.db.models import Session
from cinco.db.storage import LocalStorage
from cinco.utils import config
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    ACTIVE = "active"
    EXPIRED = "expired"


class SessionManager:
    """
    The single "logged in" record of the store, with inactivity expiry.

    Anonymous -> Active on create_session.
    Active -> Active on record_activity, at most once per throttle interval.
    Active -> Expired when check_session finds no activity for the timeout;
    the session and that user's cart are cleared on the way out.
    """

    def __init__(
        self,
        storage: LocalStorage,
        timeout: timedelta = config.SESSION_TIMEOUT,
        throttle: timedelta = config.ACTIVITY_THROTTLE,
    ):
        self.storage = storage
        self.timeout = timeout
        self.throttle = throttle

    def _is_expired(self, session: Session, now: datetime) -> bool:
        return now - session.last_activity_at >= self.timeout

    async def create_session(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Session:
        now = now or datetime.now()
        session = Session(
            user_id=user_id,
            token=secrets.token_hex(16),
            created_at=now,
            last_activity_at=now,
            expires_at=now + self.timeout,
        )
        await crud.save_session_record(self.storage, session)
        _logger.info(f"Session started for {user_id}")
        return session

    async def current_session(self, now: Optional[datetime] = None) -> Optional[Session]:
        """The stored session if it is still within the timeout, otherwise None."""
        now = now or datetime.now()
        session = await crud.get_session_record(self.storage)
        if session is None or self._is_expired(session, now):
            return None
        return session

    async def current_user(self, now: Optional[datetime] = None) -> Optional[str]:
        session = await self.current_session(now)
        return session.user_id if session else None

    async def record_activity(self, now: Optional[datetime] = None) -> Optional[Session]:
        """
        Push the expiry forward after user interaction. Writes are skipped when
        the last refresh is more recent than the throttle interval.
        """
        now = now or datetime.now()
        session = await self.current_session(now)
        if session is None:
            return None
        if now - session.last_activity_at < self.throttle:
            return session
        session = replace(
            session, last_activity_at=now, expires_at=now + self.timeout
        )
        await crud.save_session_record(self.storage, session)
        _logger.debug(f"Session refreshed for {session.user_id}")
        return session

    async def check_session(self, now: Optional[datetime] = None) -> SessionStatus:
        """Periodic expiry check."""
        now = now or datetime.now()
        session = await crud.get_session_record(self.storage)
        if session is None:
            return SessionStatus.ANONYMOUS
        if not self._is_expired(session, now):
            return SessionStatus.ACTIVE

        _logger.info(f"Session expired for {session.user_id} after inactivity")
        await self._clear(session.user_id)
        return SessionStatus.EXPIRED

    async def end_session(self) -> Optional[str]:
        """Log out. Returns the user whose session was ended, if any."""
        session = await crud.get_session_record(self.storage)
        if session is None:
            return None
        await self._clear(session.user_id)
        _logger.info(f"Session ended for {session.user_id}")
        return session.user_id

    async def _clear(self, user_id: str) -> None:
        await crud.remove_session_record(self.storage)
        await crud.remove_cart(self.storage, user_id)
        await crud.remove_cart_total(self.storage)
