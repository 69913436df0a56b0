"""
Webhook event handling: envelope parsing and the load -> decide -> save -> send loop.

Architecture:
1. extract_event() pulls sender, text and pressed button out of the envelope
2. Per-number lock serializes events from the same customer
3. Customer loaded (or created) from the DB
4. decide() picks the reply and mutation (pure)
5. Mutation committed, then the reply sent (failures logged, not raised)

Failure policy:
- Customer creation / order promotion fails -> StoreError propagates (500)
- Draft save fails -> logged, no reply; the customer resends next message
- Catalog / WhatsApp call fails -> logged; state already committed stays
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import sessionmaker

from orderbot.agent.decision_engine import (
    Decision,
    PromoteDraft,
    Reply,
    SendButtons,
    SendProductList,
    SendText,
    decide,
)
from orderbot.core.config import Settings
from orderbot.core.exceptions import StoreError, UpstreamError
from orderbot.core.keyed_lock import KeyedLock
from orderbot.models.order import Order
from orderbot.schemas.webhook import InboundEvent
from orderbot.services import customer_store
from orderbot.services.catalog_service import build_sections, fetch_products
from orderbot.whatsapp.client import SendResult, WhatsAppClient

logger = logging.getLogger(__name__)


# ============================================================================
# ENVELOPE PARSING
# ============================================================================

def _first(items: Any) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _button_id(message: dict) -> Optional[str]:
    interactive = message.get("interactive")
    if isinstance(interactive, dict):
        reply = interactive.get("button_reply")
        if isinstance(reply, dict) and reply.get("id"):
            return reply["id"]
        # Flat shape: {"interactive": {"button_id": "..."}}
        if interactive.get("button_id"):
            return interactive["button_id"]

    # Template quick-reply buttons
    button = message.get("button")
    if isinstance(button, dict) and button.get("payload"):
        return button["payload"]
    return None


def extract_event(payload: Any) -> Optional[InboundEvent]:
    """
    Read the first message of the first change of the first entry.

    Returns None for status callbacks, empty deliveries and anything
    malformed; the webhook still acknowledges those with 200.
    """
    if not isinstance(payload, dict):
        return None

    entry = _first(payload.get("entry"))
    change = _first(entry.get("changes")) if entry else None
    value = change.get("value") if change else None
    if not isinstance(value, dict):
        return None

    message = _first(value.get("messages"))
    if not message or not message.get("from"):
        return None

    text = message.get("text")
    body = text.get("body") if isinstance(text, dict) else None

    return InboundEvent(
        whatsapp_number=str(message["from"]),
        text=body if isinstance(body, str) else None,
        button_id=_button_id(message),
        message_id=message.get("id"),
    )


# ============================================================================
# EVENT HANDLING
# ============================================================================

@dataclass
class HandleResult:
    decision: Decision
    order: Optional[Order] = None
    send_result: Optional[SendResult] = None


class WebhookHandler:

    def __init__(
        self,
        settings: Settings,
        messenger: WhatsAppClient,
        session_factory: sessionmaker,
        locks: Optional[KeyedLock] = None,
        catalog_fetcher: Optional[Callable[[Settings], List[dict]]] = None,
    ):
        self.settings = settings
        self.messenger = messenger
        self.session_factory = session_factory
        self.locks = locks or KeyedLock()
        self.catalog_fetcher = catalog_fetcher or fetch_products

    def handle(self, event: InboundEvent) -> HandleResult:
        number = event.whatsapp_number
        logger.info(f"[WEBHOOK] Received message from: {number}, text={event.text!r}, button={event.button_id}")

        with self.locks.hold(number):
            db = self.session_factory()
            try:
                customer = customer_store.find_or_create(db, number)
                decision = decide(event, customer_store.to_state(customer), self.settings.UNIT_PRICE)
                logger.info(f"[ENGINE] customer={customer.id}, stage={customer.stage}, rule={decision.rule}")

                result = HandleResult(decision=decision)
                if decision.mutation is not None:
                    try:
                        result.order = customer_store.apply_mutation(db, customer, decision.mutation)
                    except StoreError as e:
                        if isinstance(decision.mutation, PromoteDraft):
                            raise
                        logger.error(f"[STORE] Draft not saved for {number}, waiting for next message: {e}")
                        return result
            finally:
                db.close()

            result.send_result = self._send(number, decision.reply)
            return result

    def _send(self, to: str, reply: Optional[Reply]) -> Optional[SendResult]:
        if reply is None:
            return None

        if isinstance(reply, SendText):
            return self.messenger.send_text(to, reply.body)

        if isinstance(reply, SendButtons):
            return self.messenger.send_buttons(to, reply.header, reply.body, reply.buttons)

        if isinstance(reply, SendProductList):
            try:
                products = self.catalog_fetcher(self.settings)
            except UpstreamError as e:
                logger.error(f"[CATALOG] Error fetching catalog for {to}: {e}")
                return SendResult(ok=False, status_code=e.status_code, error=str(e))

            sections = build_sections(products)
            if not sections:
                logger.info("[CATALOG] No products available.")
                return SendResult(ok=False, error="No products available")

            return self.messenger.send_product_list(
                to,
                reply.header,
                reply.body,
                reply.footer,
                self.settings.COMMERCE_CATALOG_ID,
                sections,
            )

        raise TypeError(f"Unknown reply: {reply!r}")
