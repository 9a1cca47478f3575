from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from cinco.db.models import User
from cinco.db.storage import LocalStorage
from cinco.shop.auth import AuthService
from cinco.shop.captcha import BotCheck
from cinco.shop.cart import CartStore
from cinco.shop.checkout import CheckoutService
from cinco.shop.session import SessionManager, SessionStatus


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - storage: the local store every service reads and writes
      - user: the logged-in user, None while anonymous

    The services hang off the state so screens reach them as
    self.app.state.cart, self.app.state.checkout and so on.
    """

    storage: LocalStorage = field(default_factory=LocalStorage)
    user: Optional[User] = None

    def __post_init__(self):
        self.sessions = SessionManager(self.storage)
        self.auth = AuthService(self.storage, self.sessions)
        self.cart = CartStore(self.storage, self.sessions)
        self.checkout = CheckoutService(self.storage, self.sessions, self.cart)

    @property
    def uid(self) -> Optional[str]:
        return self.user.email if self.user else None

    async def restore_session(self, when: Optional[datetime] = None) -> Optional[User]:
        """Pick up a still-active session left in the store by a previous run."""
        self.user = await self.auth.current_user(when)
        return self.user

    async def login(
        self, email: str, pwd: str, bot_check: Optional[BotCheck]
    ) -> User:
        await self.auth.login(email, pwd, bot_check)
        self.user = await self.auth.current_user()
        return self.user

    async def signup(
        self, name: str, email: str, pwd: str, bot_check: Optional[BotCheck]
    ) -> User:
        await self.auth.signup(name, email, pwd, bot_check)
        self.user = await self.auth.current_user()
        return self.user

    async def end_session(self) -> None:
        """
        End the current session if one exists.
        Called upon logging out
        """
        await self.auth.logout()
        self.user = None

    async def record_activity(self, when: Optional[datetime] = None) -> None:
        if self.user is None:
            return
        await self.sessions.record_activity(when)

    async def check_session(self, when: Optional[datetime] = None) -> SessionStatus:
        status = await self.sessions.check_session(when)
        if status is not SessionStatus.ACTIVE:
            self.user = None
        return status
