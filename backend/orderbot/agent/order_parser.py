"""
Order-line parser - explicit grammar for `Order: <name>, qty: <n>`.

Never raises on malformed input. Returns a ParseResult holding either the
parsed LineItem or a ParseError with a machine-readable reason, so the engine
can answer with a clarification message instead of crashing.

Examples:
    "Order: Sony WH-1000XM4, qty: 2"   -> LineItem("Sony WH-1000XM4", 2)
    "Order: Shirt, blue, qty: 1"       -> LineItem("Shirt, blue", 1)
    "Order: Sony WH-1000XM4"           -> ParseError(missing_qty)
    "Order: Sony WH-1000XM4, qty: two" -> ParseError(invalid_quantity)
    "Order: Sony WH-1000XM4, qty: 10000" -> ParseError(invalid_quantity)
"""
import re
from dataclasses import dataclass
from typing import Optional

from orderbot.core.exceptions import ParseError
from orderbot.schemas.order import DraftOrder, LineItem

_PREFIX_RE = re.compile(r"^\s*order:", re.IGNORECASE)
# Greedy name so product names may contain commas; the last ", qty:" wins.
_BODY_RE = re.compile(r"^(?P<name>.*),\s*qty:\s*(?P<qty>.*?)\s*$", re.IGNORECASE | re.DOTALL)
_QTY_RE = re.compile(r"^\d{1,6}$")

# Keeps unit_price * quantity well inside the Numeric(12, 2) order total.
MAX_QUANTITY = 9999


@dataclass(frozen=True)
class ParseResult:
    item: Optional[LineItem] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.item is not None


def looks_like_order_line(text: Optional[str]) -> bool:
    """True when the text carries the `Order:` prefix, well-formed or not."""
    return bool(text) and _PREFIX_RE.match(text) is not None


def parse_order_line(text: str) -> ParseResult:
    prefix = _PREFIX_RE.match(text or "")
    if not prefix:
        return ParseResult(error=ParseError(ParseError.MISSING_PREFIX, text))

    body = _BODY_RE.match(text[prefix.end():])
    if not body:
        return ParseResult(error=ParseError(ParseError.MISSING_QTY, text))

    name = body.group("name").strip()
    if not name:
        return ParseResult(error=ParseError(ParseError.EMPTY_NAME, text))

    qty = body.group("qty")
    if not _QTY_RE.match(qty) or not 1 <= int(qty) <= MAX_QUANTITY:
        return ParseResult(error=ParseError(ParseError.INVALID_QUANTITY, text))

    return ParseResult(item=LineItem(product_name=name, quantity=int(qty)))


def build_draft(item: LineItem, unit_price: int) -> DraftOrder:
    """Price a single line item at the fixed unit price."""
    return DraftOrder(
        items=[item],
        unit_price=unit_price,
        total_price=unit_price * item.quantity,
    )
