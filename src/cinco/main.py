import time

from textual import events, on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from cinco.shop.session import SessionStatus
from cinco.utils import config
from cinco.utils.logger import get_logger
from cinco.utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    SessionExpiredMessage,
    UserLogoutMessage,
)
from cinco.utils.state import GlobalState
from cinco.views.base_screen import Sidebar
from cinco.views.scr_cart import CartScreen
from cinco.views.scr_contact import ContactScreen
from cinco.views.scr_login import LoginScreen
from cinco.views.scr_menu import MenuScreen
from cinco.views.scr_past_orders import PastOrdersScreen

_logger = get_logger(__name__)

# input events that count as user activity for the session
ACTIVITY_EVENTS = (
    events.Key,
    events.MouseDown,
    events.MouseMove,
    events.MouseScrollDown,
    events.MouseScrollUp,
)


class CincoApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "menu": MenuScreen,
        "cart": CartScreen,
        "past_orders": PastOrdersScreen,
        "contact": ContactScreen,
    }

    CUSTOMER_MODES = {
        "menu": "Menu",
        "cart": "Cart",
        "past_orders": "Past Orders",
        "contact": "Contact Us",
    }

    CSS_PATH = "styles/cinco.tcss"

    state: GlobalState

    def __init__(self, state: GlobalState | None = None):
        super().__init__()
        self.state = state or GlobalState()
        self._last_activity = 0.0
        self._session_timer = None

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self._session_timer = self.set_interval(
            config.SESSION_CHECK_INTERVAL, self.check_session
        )
        self.main_flow()

    async def on_event(self, event: events.Event) -> None:
        if isinstance(event, ACTIVITY_EVENTS):
            self.note_activity()
        await super().on_event(event)

    def note_activity(self) -> None:
        # keep mouse moves from spawning a worker each
        now = time.monotonic()
        if now - self._last_activity < config.ACTIVITY_THROTTLE.total_seconds():
            return
        self._last_activity = now
        self.run_worker(self.state.record_activity(), group="activity")

    @work(exclusive=True, group="session-check")
    async def check_session(self) -> None:
        was_logged_in = self.state.user is not None
        status = await self.state.check_session()
        if status is SessionStatus.EXPIRED or (
            was_logged_in and status is SessionStatus.ANONYMOUS
        ):
            self.post_message(SessionExpiredMessage())

    @on(SessionExpiredMessage)
    def handle_session_expired(self) -> None:
        self.notify(
            "Your session has expired due to inactivity. Please log in again.",
            severity="warning",
            timeout=config.EXPIRY_REDIRECT_DELAY + 3,
        )
        self.set_timer(config.EXPIRY_REDIRECT_DELAY, self.main_flow)

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(CartChangedMessage)
    def handle_cart_changed(self):
        for sidebar in self.screen.query(Sidebar):
            sidebar.update_user_info()

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.end_session()
        self.notify("Logout successful. Your cart has been cleared.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the session stays in the store until it expires, like a closed tab
        if self._session_timer is not None:
            self._session_timer.stop()
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        if await self.state.restore_session() is None:
            await self.push_screen_wait(LoginScreen())
        _logger.info(f"{self.state.uid} logged in")
        self.post_message(ModeSwitchedMessage(self.current_mode, "menu"))
        await self.switch_mode("menu")


def main() -> None:
    app = CincoApp()
    app.run()


if __name__ == "__main__":
    main()
