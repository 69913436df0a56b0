"""
Decision Engine - pure transition function for the ordering dialogue.

    decide(event, customer_state, unit_price) -> Decision(reply, mutation)

No database, no HTTP. The webhook handler loads the customer, calls decide(),
persists the mutation and sends the reply. Every inbound event produces at
most one reply and at most one mutation.

Rules, first match wins:
1. "hi" / "hello"              -> welcome prompt with Yes/No buttons
2. button_yes                  -> product catalog list
3. button_no                   -> acknowledgement
4. "Order: <name>, qty: <n>"   -> store draft, ask for address
                                  (malformed -> clarification, no mutation)
5. awaiting address + any text -> text is the address, promote draft to Order
                                  (over 512 chars -> ask again, no mutation)
6. anything else               -> "didn't understand, say Hi"
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union

from orderbot.agent.conversation_state import (
    GREETINGS,
    MAX_ADDRESS_LENGTH,
    ButtonId,
    ConversationStage,
    Messages,
)
from orderbot.agent.order_parser import build_draft, looks_like_order_line, parse_order_line
from orderbot.schemas.order import DraftOrder
from orderbot.schemas.webhook import InboundEvent


@dataclass(frozen=True)
class CustomerState:
    """Snapshot of the persisted customer handed to the engine."""
    stage: ConversationStage = ConversationStage.IDLE
    current_order: Optional[DraftOrder] = None
    address: Optional[str] = None

    @property
    def awaiting_address(self) -> bool:
        return (
            self.stage == ConversationStage.AWAITING_ADDRESS
            and self.current_order is not None
            and not self.address
        )


# ---------------------------------------------------------------------------
# Replies (at most one per event)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SendText:
    body: str


@dataclass(frozen=True)
class SendButtons:
    header: str
    body: str
    buttons: Tuple[Tuple[str, str], ...]  # (id, title)


@dataclass(frozen=True)
class SendProductList:
    """Sections are filled from the live catalog by the handler."""
    header: str
    body: str
    footer: str


Reply = Union[SendText, SendButtons, SendProductList]


# ---------------------------------------------------------------------------
# Mutations (at most one per event)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetDraft:
    draft: DraftOrder


@dataclass(frozen=True)
class PromoteDraft:
    address: str


Mutation = Union[SetDraft, PromoteDraft]


@dataclass(frozen=True)
class Decision:
    rule: str
    reply: Optional[Reply] = None
    mutation: Optional[Mutation] = None


def format_amount(value) -> str:
    """600 -> "600", 12.5 -> "12.50"."""
    amount = Decimal(str(value))
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


def confirmation_text(total, address: str) -> str:
    return Messages.CONFIRMATION.format(total=format_amount(total), address=address)


def decide(event: InboundEvent, customer: CustomerState, unit_price: int) -> Decision:
    text = event.text

    if text and text.strip().lower() in GREETINGS:
        return Decision(
            rule="greeting",
            reply=SendButtons(
                header=Messages.WELCOME_HEADER,
                body=Messages.WELCOME_BODY,
                buttons=tuple(Messages.WELCOME_BUTTONS),
            ),
        )

    if event.button_id == ButtonId.YES:
        return Decision(
            rule="shop_yes",
            reply=SendProductList(
                header=Messages.CATALOG_HEADER,
                body=Messages.CATALOG_BODY,
                footer=Messages.CATALOG_FOOTER,
            ),
        )

    if event.button_id == ButtonId.NO:
        return Decision(rule="shop_no", reply=SendText(Messages.DECLINED))

    if looks_like_order_line(text):
        parsed = parse_order_line(text)
        if not parsed.ok:
            return Decision(
                rule=f"order_line_invalid:{parsed.error.reason}",
                reply=SendText(Messages.CLARIFY_ORDER),
            )
        return Decision(
            rule="order_line",
            reply=SendText(Messages.ASK_ADDRESS),
            mutation=SetDraft(build_draft(parsed.item, unit_price)),
        )

    if customer.awaiting_address and text and text.strip():
        address = text.strip()
        if len(address) > MAX_ADDRESS_LENGTH:
            return Decision(rule="address_too_long", reply=SendText(Messages.ADDRESS_TOO_LONG))
        return Decision(
            rule="address",
            reply=SendText(confirmation_text(customer.current_order.total_price, address)),
            mutation=PromoteDraft(address),
        )

    return Decision(rule="fallback", reply=SendText(Messages.FALLBACK))
