import secrets
from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Checkbox, Input, Label, TabbedContent, TabPane

from cinco.shop.captcha import BotCheck
from cinco.shop.errors import AccountLocked, ShopError
from cinco.views.base_screen import BaseScreen
from cinco.views.modal_dialog import QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Login and sign up tabs. Dismisses once a session has been created.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Log In / Sign Up", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Log In", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    yield Checkbox("I'm not a robot", id="chk-login-human")
                    yield Label("", id="label-login-msg", classes="form-message")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Log In", id="btn-login", variant="primary")

            with TabPane("Sign Up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Name")
                    yield Input(placeholder="Juan Dela Cruz", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    yield Checkbox("I'm not a robot", id="chk-reg-human")
                    yield Label("", id="label-reg-msg", classes="form-message")
                    with Container(id="div-reg-btns"):
                        yield Button("Create Account", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    def _bot_check(self, checkbox_id: str) -> Optional[BotCheck]:
        # the checkbox stands in for the external challenge widget
        if not self.query_one(checkbox_id, Checkbox).value:
            return None
        return BotCheck(token=secrets.token_urlsafe(24))

    def _show_message(self, label_id: str, text: str, tone: str = "error") -> None:
        label = self.query_one(label_id, Label)
        label.update(text)
        label.set_classes(f"form-message {tone}")

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value
        pwd = self.query_one("#input-login-pwd", Input).value

        try:
            user = await self.app.state.login(
                email, pwd, self._bot_check("#chk-login-human")
            )
        except AccountLocked as e:
            self._show_message("#label-login-msg", e.message)
            self.notify(e.message, severity="error")
            return
        except ShopError as e:
            self._show_message("#label-login-msg", e.message)
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self._show_message("#label-login-msg", "Login successful!", "success")
        self.notify(f"Hi, {user.name}!")
        self.dismiss()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value
        email = self.query_one("#input-reg-email", Input).value
        pwd = self.query_one("#input-reg-pwd", Input).value

        try:
            user = await self.app.state.signup(
                name, email, pwd, self._bot_check("#chk-reg-human")
            )
        except ShopError as e:
            self._show_message("#label-reg-msg", e.message)
            return

        self._show_message("#label-reg-msg", "Account created!", "success")
        self.notify(f"Welcome to Cinco Coffee, {user.name}!")
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
