from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from cinco.db.models import CartLine, CartSummary
from cinco.shop.errors import ShopError
from cinco.utils.messages import CartChangedMessage, NewOrderMessage
from cinco.utils.pure import format_price
from cinco.views.base_screen import BaseScreen
from cinco.views.modal_checkout import CheckoutModal
from cinco.views.modal_dialog import DialogModal


class CartLineActionMessage(Message):
    """Posted by a cart line when one of its buttons is pressed."""

    bubble = True

    def __init__(self, index: int, action: str) -> None:
        super().__init__()
        self.index = index
        self.action = action


class CartLineWidget(HorizontalGroup):
    def __init__(self, index: int, line: CartLine):
        super().__init__()
        self.index = index
        self.line = line

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(f"{self.line.name} ({self.line.size})", id="label-item-name")
                yield Label(
                    f"{format_price(self.line.unit_price)} x {self.line.quantity}",
                    id="label-item-qty",
                )
                yield Label(format_price(self.line.line_total), id="label-item-price")
            with Container(id="div-actions"):
                yield Button("-", id="btn-item-dec", disabled=self.line.quantity <= 1)
                yield Button("+", id="btn-item-inc")
                yield Button("Remove", id="btn-item-remove", variant="warning")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        action = event.button.id.removeprefix("btn-item-")
        self.post_message(CartLineActionMessage(self.index, action))


class CartScreen(BaseScreen):
    """
    Cart lines with quantity controls, total, and checkout
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: ₱0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must exclusive, else might race cond and gen duplicate
    async def handle_cart_change(self):
        """
        Re-read the cart and rebuild the line widgets.
        """
        lines = await self.app.state.cart.list_cart()

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all(
            [CartLineWidget(i, line) for i, line in enumerate(lines)]
        )
        if not lines:
            await content.mount(Label("Your basket is empty", id="label-empty-cart"))

        summary = await self.app.state.cart.summary()
        self._show_total(summary)

    def _show_total(self, summary: CartSummary) -> None:
        self.query_one("#label-cart-total", Label).update(
            f"Items: {summary.item_count}    Total: {format_price(summary.total)}"
        )

    @on(CartLineActionMessage)
    @work()
    async def handle_line_action(self, message: CartLineActionMessage) -> None:
        cart = self.app.state.cart
        try:
            if message.action == "inc":
                await cart.increase_quantity(message.index)
            elif message.action == "dec":
                await cart.decrease_quantity(message.index)
            elif message.action == "remove":
                if not await self.app.push_screen_wait(
                    DialogModal(
                        "Do you really want to remove this item from cart?",
                        primary_text="Yes",
                        secondary_text="No",
                        tone="warning",
                    )
                ):
                    return
                await cart.remove_from_cart(message.index)
                self.notify("Item removed from cart.", severity="information")
        except ShopError as e:
            self.notify(e.message, severity="error")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not await self.app.state.cart.list_cart():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            await self.app.state.cart.clear_cart()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        """
        Verify the cart, then open the checkout form
        """
        try:
            summary = await self.app.state.checkout.proceed_to_checkout()
        except ShopError as e:
            self.app.notify(e.message, severity="error", timeout=6)
            return

        if await self.app.push_screen_wait(CheckoutModal(summary)):
            self.app.post_message(NewOrderMessage())
        self.post_message(CartChangedMessage())
