from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, RadioButton, RadioSet

from cinco.db.models import ShippingDetails
from cinco.shop.checkout import PAYMENT_METHODS, CheckoutSummary
from cinco.shop.errors import CartTampered, ShopError
from cinco.utils.pure import format_price, generate_markdown_table
from cinco.views.modal_dialog import DialogModal, SimpleDialogModal

SHIPPING_FIELDS = [
    ("first_name", "First Name", "Juan"),
    ("last_name", "Last Name", "Dela Cruz"),
    ("email", "Email", "you@example.com"),
    ("phone", "Phone", "+63 912 345 6789"),
    ("address", "Address", "123 Rizal St, Brgy. Poblacion"),
    ("city", "City", "Makati"),
    ("zip_code", "ZIP Code", "1210"),
]


class CheckoutModal(ModalScreen[bool]):
    """
    A modal screen for check out: order summary, delivery details and payment.
    Return True when an order was placed, False otherwise.
    """

    def __init__(self, summary: CheckoutSummary):
        super().__init__()
        self.summary = summary

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with VerticalScroll(id="div-shipping"):
                for key, label, placeholder in SHIPPING_FIELDS:
                    yield Label(label)
                    yield Input(placeholder=placeholder, id=f"input-{key}")
                yield Label("Payment Method")
                with RadioSet(id="radio-payment"):
                    for i, (key, label) in enumerate(PAYMENT_METHODS.items()):
                        yield RadioButton(label, value=i == 0, id=f"radio-{key}")
                with Vertical():
                    with Horizontal():
                        yield Button("Go Back", id="btn-quit")
                        yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        headers = ["Item", "Size", "Unit Price", "Qty", "Total"]
        rows = [
            [
                line.name,
                line.size,
                format_price(line.unit_price),
                line.quantity,
                format_price(line.line_total),
            ]
            for line in self.summary.lines
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "c", "r", "c", "r"])
        md += f"\n\n**Subtotal:** {format_price(self.summary.subtotal)}  "
        md += f"\n**Delivery Fee:** {format_price(self.summary.delivery_fee)}  "
        md += f"\n**Total:** {format_price(self.summary.grand_total)}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-first_name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def _shipping_details(self) -> ShippingDetails:
        values = {
            key: self.query_one(f"#input-{key}", Input).value
            for key, _, _ in SHIPPING_FIELDS
        }
        return ShippingDetails(**values)

    def _payment_method(self) -> str:
        pressed = self.query_one("#radio-payment", RadioSet).pressed_button
        if pressed is None:
            return ""
        return pressed.id.removeprefix("radio-")

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        try:
            order = await self.app.state.checkout.place_order(
                self._shipping_details(), self._payment_method()
            )
        except CartTampered as e:
            self.notify(e.message, severity="error", timeout=6)
            self.dismiss(False)
            return
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(
                "Order placed! Thank you for ordering from Cinco Coffee.",
                detail=f"Order number: {order.order_number}  "
                f"Total: {format_price(order.grand_total)}",
                tone="positive",
            )
        )
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
