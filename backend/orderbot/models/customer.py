"""
Customer Model - one row per WhatsApp number, holding conversation state.

Lifecycle:
    1. Created on the first inbound message from an unseen number
    2. current_order set when an order line is captured (stage awaiting_address)
    3. Cleared back to idle when the draft is promoted to an Order
    Never deleted.

The address column stays NULL: promotion happens in the same turn the address
arrives and copies it straight into the Order.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from orderbot.agent.conversation_state import ConversationStage
from orderbot.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    whatsapp_number = Column(String(64), unique=True, nullable=False, index=True)
    stage = Column(String(32), nullable=False, default=ConversationStage.IDLE.value)
    current_order = Column(JSON, nullable=True)  # draft: {"items": [...], "total_price": int}
    address = Column(String(512), nullable=True)  # only ever cleared; see module docstring
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Customer whatsapp_number={self.whatsapp_number} stage={self.stage}>"
