from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, TextArea

from cinco.shop.errors import ShopError
from cinco.shop.feedback import submit_feedback
from cinco.views.base_screen import BaseScreen


class ContactScreen(BaseScreen):
    """
    Feedback form. Entries are appended to the local feedback log.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-feedback"):
            yield Label("Name")
            yield Input(id="input-fb-name", placeholder="Juan Dela Cruz")
            yield Label("Email")
            yield Input(id="input-fb-email", placeholder="you@example.com")
            yield Label("Subject")
            yield Input(id="input-fb-subject", placeholder="About my order")
            yield Label("Message")
            yield TextArea(id="text-fb-message")
            yield Label("", id="label-fb-msg", classes="form-message")
            with Horizontal(id="div-fb-btns"):
                yield Button("Send Feedback", id="btn-fb-send", variant="primary")

    def on_mount(self) -> None:
        user = self.app.state.user
        if user:
            self.query_one("#input-fb-name", Input).value = user.name
            self.query_one("#input-fb-email", Input).value = user.email
        self.query_one("#input-fb-subject").focus()

    @on(Button.Pressed, "#btn-fb-send")
    @work(exclusive=True)
    async def handle_send(self) -> None:
        msg_label = self.query_one("#label-fb-msg", Label)
        try:
            await submit_feedback(
                self.app.state.storage,
                self.query_one("#input-fb-name", Input).value,
                self.query_one("#input-fb-email", Input).value,
                self.query_one("#input-fb-subject", Input).value,
                self.query_one("#text-fb-message", TextArea).text,
            )
        except ShopError as e:
            msg_label.update(e.message)
            msg_label.set_classes("form-message error")
            return

        msg_label.update("Thank you! Your feedback has been sent.")
        msg_label.set_classes("form-message success")
        self.query_one("#input-fb-subject", Input).value = ""
        self.query_one("#text-fb-message", TextArea).clear()
        self.set_timer(3.5, lambda: msg_label.update(""))
