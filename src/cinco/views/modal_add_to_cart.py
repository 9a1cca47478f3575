from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, RadioButton, RadioSet

from cinco.shop.catalog import get_product, make_line
from cinco.shop.errors import NotLoggedIn, ShopError
from cinco.shop.validation import MAX_QUANTITY, validate_quantity
from cinco.utils.pure import format_price, generate_markdown_table


class AddToCartModal(ModalScreen[bool]):
    """
    Product detail with size and quantity pickers.
    Returns True if the cart changed, False if not
    """

    order_qty = reactive(1)

    def __init__(self, product_name: str) -> None:
        super().__init__()
        self._prod = get_product(product_name)

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Size")
                with RadioSet(id="radio-size"):
                    for i, size in enumerate(self._prod.sizes):
                        yield RadioButton(size, value=i == 0)
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        rows = [
            ["Price", format_price(self._prod.price)],
            ["Sizes", ", ".join(self._prod.sizes)],
            ["About", self._prod.description],
        ]
        md = f"### {self._prod.name}\n\n" + generate_markdown_table(
            ["", ""], rows, ["l", "l"]
        )
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-order-qty" and validate_quantity(message.value):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int) -> None:
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= MAX_QUANTITY
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(qty):
            qty_input.value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty = min(self.order_qty + 1, MAX_QUANTITY)

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty = max(self.order_qty - 1, 1)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        pressed = self.query_one("#radio-size", RadioSet).pressed_index
        size = self._prod.sizes[max(pressed, 0)]
        line = make_line(self._prod.name, size, self.order_qty)

        try:
            summary = await self.app.state.cart.add_to_cart(line)
        except NotLoggedIn as e:
            self.notify(e.message, severity="warning")
            self.dismiss(False)
            return
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify(
            f"{line.name} ({size}) added to cart. "
            f"{summary.item_count} item(s), {format_price(summary.total)}"
        )
        self.dismiss(True)
