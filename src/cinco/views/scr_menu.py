from textual import on, work
from textual.app import ComposeResult
from textual.widgets import DataTable, Input, Label

from cinco.shop.catalog import PRODUCTS
from cinco.utils.messages import CartChangedMessage
from cinco.utils.pure import format_price
from cinco.views.base_screen import BaseScreen
from cinco.views.modal_add_to_cart import AddToCartModal


class MenuScreen(BaseScreen):
    """
    The coffee menu. Enter on a row opens the size and quantity picker.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-filter", placeholder="Filter the menu...")
        yield DataTable(id="table-menu")
        yield Label("Prices in Philippine peso. Delivery fee applies at checkout.")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Drink", "Price", "Sizes", "Description")
        self.fill_table("")
        self.query_one(DataTable).focus()

    def fill_table(self, query: str) -> None:
        query = query.strip().lower()
        table = self.query_one(DataTable)
        table.clear()
        for p in PRODUCTS:
            if query and query not in p.name.lower() and query not in p.description.lower():
                continue
            table.add_row(
                p.name, format_price(p.price), " / ".join(p.sizes), p.description,
                key=p.name,
            )

    @on(Input.Changed, "#input-filter")
    def handle_filter(self, message: Input.Changed) -> None:
        self.fill_table(message.value)

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        name = event.row_key.value
        if await self.app.push_screen_wait(AddToCartModal(name)):
            self.app.post_message(CartChangedMessage())
