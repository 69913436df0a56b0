"""
END-TO-END TEST: full WhatsApp ordering conversation through the webhook.

Flow:
1. Customer says "hi"            -> welcome buttons
2. Presses "Yes"                 -> product catalog
3. Sends order line              -> draft stored (total 600), address prompt
4. Sends address                 -> Order persisted, draft cleared, confirmation
5. Sends the address text again  -> fallback, no duplicate order

Also drives concurrent deliveries for one number through the handler to check
they are serialized.
"""
import threading

from conftest import button_message, text_message
from orderbot.agent.conversation_state import ButtonId, Messages
from orderbot.models import Customer, Order
from orderbot.schemas.webhook import InboundEvent

NUMBER = "+15551234567"


def test_end_to_end_flow(client, messenger, db):
    # ==== STEP 1-2: greeting and shop decision ====
    client.post("/webhook", json=text_message(NUMBER, "Hi"))
    client.post("/webhook", json=button_message(NUMBER, ButtonId.YES))
    assert [m["kind"] for m in messenger.sent] == ["buttons", "product_list"]

    # ==== STEP 3: order line ====
    resp = client.post("/webhook", json=text_message(NUMBER, "Order: Sony WH-1000XM4, qty: 2"))
    assert resp.status_code == 200
    assert messenger.sent[-1]["body"] == Messages.ASK_ADDRESS

    customer = db.query(Customer).filter(Customer.whatsapp_number == NUMBER).one()
    assert customer.stage == "awaiting_address"
    assert customer.current_order["total_price"] == 600
    assert customer.current_order["items"] == [{"product_name": "Sony WH-1000XM4", "quantity": 2}]
    assert customer.address is None

    # ==== STEP 4: address ====
    resp = client.post("/webhook", json=text_message(NUMBER, "221B Baker Street"))
    assert resp.status_code == 200

    orders = db.query(Order).all()
    assert len(orders) == 1, f"Expected exactly one order, got {len(orders)}"
    order = orders[0]
    assert order.customer_id == customer.id
    assert order.total_price == 600
    assert order.address == "221B Baker Street"
    assert order.items == [{"product_name": "Sony WH-1000XM4", "quantity": 2}]

    db.expire_all()
    customer = db.query(Customer).filter(Customer.whatsapp_number == NUMBER).one()
    assert customer.current_order is None
    assert customer.address is None
    assert customer.stage == "idle"

    confirmation = messenger.sent[-1]["body"]
    assert "600" in confirmation
    assert "221B Baker Street" in confirmation

    # ==== STEP 5: repeat does not create a second order ====
    client.post("/webhook", json=text_message(NUMBER, "221B Baker Street"))
    assert messenger.sent[-1]["body"] == Messages.FALLBACK
    assert db.query(Order).count() == 1

    # One reply per inbound event
    assert len(messenger.sent) == 5


def test_malformed_order_line_changes_nothing(client, messenger, db):
    client.post("/webhook", json=text_message(NUMBER, "Order: Sony WH-1000XM4, qty: many"))

    assert [m["body"] for m in messenger.sent] == [Messages.CLARIFY_ORDER]
    customer = db.query(Customer).one()
    assert customer.current_order is None
    assert customer.stage == "idle"
    assert db.query(Order).count() == 0


def test_oversized_quantity_never_reaches_an_order(client, messenger, db):
    client.post("/webhook", json=text_message(NUMBER, "Order: Widget, qty: 12345678901234567"))
    assert messenger.sent[-1]["body"] == Messages.CLARIFY_ORDER

    client.post("/webhook", json=text_message(NUMBER, "221B Baker Street"))
    assert messenger.sent[-1]["body"] == Messages.FALLBACK

    assert db.query(Order).count() == 0
    customer = db.query(Customer).filter(Customer.whatsapp_number == NUMBER).one()
    assert customer.current_order is None


def test_overlong_address_keeps_the_draft(client, messenger, db):
    client.post("/webhook", json=text_message(NUMBER, "Order: Sony WH-1000XM4, qty: 2"))

    client.post("/webhook", json=text_message(NUMBER, "x" * 600))
    assert messenger.sent[-1]["body"] == Messages.ADDRESS_TOO_LONG
    assert db.query(Order).count() == 0

    client.post("/webhook", json=text_message(NUMBER, "221B Baker Street"))
    order = db.query(Order).one()
    assert order.address == "221B Baker Street"
    assert order.total_price == 600

def test_concurrent_order_lines_for_one_number_are_serialized(handler, messenger, session_factory):
    """Both deliveries apply in turn: exactly one draft survives and it is a whole one."""
    events = [
        InboundEvent(whatsapp_number=NUMBER, text="Order: Sony WH-1000XM4, qty: 1"),
        InboundEvent(whatsapp_number=NUMBER, text="Order: Bose QC45, qty: 3"),
    ]
    # Create the customer first so both threads race on the draft, not the insert
    handler.handle(InboundEvent(whatsapp_number=NUMBER, text="banana"))

    errors = []

    def deliver(event):
        try:
            handler.handle(event)
        except Exception as e:  # surfaced via the assertion below
            errors.append(e)

    threads = [threading.Thread(target=deliver, args=(e,)) for e in events]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(messenger.sent) == 3
    db = session_factory()
    try:
        customer = db.query(Customer).one()
        draft = customer.current_order
        assert draft["items"][0]["product_name"] in {"Sony WH-1000XM4", "Bose QC45"}
        assert draft["total_price"] == 300 * draft["items"][0]["quantity"]
    finally:
        db.close()
    assert len(handler.locks) == 0
