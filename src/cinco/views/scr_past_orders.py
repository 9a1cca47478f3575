from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from cinco.db.models import Order
from cinco.shop.checkout import PAYMENT_METHODS
from cinco.utils.messages import NewOrderMessage
from cinco.utils.pure import format_price, generate_markdown_table
from cinco.views.base_screen import BaseScreen


class PastOrdersScreen(BaseScreen):
    """
    Orders placed by the logged-in user, newest first.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Placed", "Items", "Total")
        self._load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        index = int(event.row_key.value)
        if 0 <= index < len(self._orders):
            self._render_detail(self._orders[index])

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        orders = await self.app.state.checkout.list_orders()
        self._orders = orders

        table = self.query_one(DataTable)
        table.clear()
        for i, o in enumerate(orders):
            table.add_row(
                o.order_number,
                f"{o.placed_at:%Y-%m-%d %H:%M}",
                sum(line.quantity for line in o.lines),
                format_price(o.grand_total),
                key=str(i),
            )
        if orders:
            table.move_cursor(row=0)
            self._render_detail(orders[0])
        else:
            self._render_detail(None)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### No orders yet.")
            return

        ship = order.shipping
        header = (
            f"### Order #{order.order_number}\n"
            f"Placed: {order.placed_at:%Y-%m-%d %H:%M}  \n"
            f"Deliver to: {ship.first_name} {ship.last_name}, "
            f"{ship.address}, {ship.city} {ship.zip_code}  \n"
            f"Payment: {PAYMENT_METHODS.get(order.payment_method, order.payment_method)}\n\n"
        )
        rows = [
            [
                line.name,
                line.size,
                line.quantity,
                format_price(line.unit_price),
                format_price(line.line_total),
            ]
            for line in order.lines
        ]
        table = generate_markdown_table(
            ["Item", "Size", "Qty", "Unit Price", "Line Total"],
            rows,
            ["l", "c", "r", "r", "r"],
        )
        footer = (
            f"\n\nSubtotal: {format_price(order.subtotal)}  \n"
            f"Delivery: {format_price(order.delivery_fee)}  \n"
            f"**Grand Total: {format_price(order.grand_total)}**"
        )
        viewer.document.update(header + table + footer)
