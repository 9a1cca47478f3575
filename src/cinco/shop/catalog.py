from typing import Dict, Iterable, List, Optional

from cinco.db.models import CartLine, IntegrityReport, Product, TamperedLine
from cinco.shop.validation import validate_price, validate_quantity
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)

SIZES = ("12oz", "16oz")

PRODUCTS: List[Product] = [
    Product("cc-01", "Americano", 70.00, SIZES, "Espresso topped with hot water."),
    Product("cc-02", "Cafe Latte", 90.00, SIZES, "Espresso with steamed milk."),
    Product("cc-03", "Cappuccino", 90.00, SIZES, "Espresso, steamed milk and foam."),
    Product("cc-04", "Spanish Latte", 95.00, SIZES, "Latte sweetened with condensed milk."),
    Product("cc-05", "Caramel Macchiato", 100.00, SIZES, "Vanilla latte marked with espresso and caramel."),
    Product("cc-06", "White Choco Mocha", 100.00, SIZES, "Espresso with white chocolate sauce and milk."),
    Product("cc-07", "Matcha Latte", 110.00, SIZES, "Japanese green tea with steamed milk."),
    Product("cc-08", "Hot Chocolate", 80.00, SIZES, "Rich cocoa with steamed milk."),
]

# trusted prices, keyed by product name
PRICE_TABLE: Dict[str, float] = {p.name: p.price for p in PRODUCTS}


def get_product(name: str) -> Optional[Product]:
    return next((p for p in PRODUCTS if p.name == name), None)


def make_line(name: str, size: str, quantity: int = 1) -> CartLine:
    """Build a cart line at menu price. Raises KeyError for unknown products or sizes."""
    product = get_product(name)
    if product is None:
        raise KeyError(name)
    if size not in product.sizes:
        raise KeyError(size)
    return CartLine(
        product_id=product.product_id,
        name=product.name,
        unit_price=product.price,
        size=size,
        quantity=quantity,
    )


def verify_cart(lines: Iterable[CartLine]) -> IntegrityReport:
    """
    Compare every line against PRICE_TABLE. A single unknown product,
    bad price or bad quantity makes the whole cart invalid.
    """
    tampered: List[TamperedLine] = []
    for index, line in enumerate(lines):
        expected = PRICE_TABLE.get(line.name)
        reason = None
        if expected is None:
            reason = "unknown product"
        elif line.unit_price <= 0:
            reason = "non-positive price"
        elif not validate_price(f"{line.unit_price:.2f}"):
            reason = "invalid price"
        elif round(line.unit_price, 2) != round(expected, 2):
            reason = "price mismatch"
        elif not validate_quantity(line.quantity):
            reason = "invalid quantity"
        if reason:
            tampered.append(
                TamperedLine(index, line.name, line.unit_price, expected, reason)
            )

    if tampered:
        _logger.warning(
            "Cart integrity check failed: "
            + "; ".join(f"{t.name!r} {t.reason}" for t in tampered)
        )
    return IntegrityReport(valid=not tampered, tampered=tuple(tampered))
