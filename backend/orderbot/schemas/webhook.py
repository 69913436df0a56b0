from pydantic import BaseModel
from typing import Optional


class InboundEvent(BaseModel):
    """The fields of one WhatsApp message the conversation engine reads."""
    whatsapp_number: str
    text: Optional[str] = None
    button_id: Optional[str] = None
    message_id: Optional[str] = None


class WebhookAck(BaseModel):
    status: str = "ok"
