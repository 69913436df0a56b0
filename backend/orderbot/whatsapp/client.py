"""
WhatsApp Cloud API client - outbound messages only.

Three payload shapes: plain text, reply buttons, product list.

Delivery is at-most-once: each send is a single POST with no retry. Failures
are logged and reported through SendResult; they never raise, so a failed
reply can't roll back the conversation state already committed.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import requests

from orderbot.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    response: Optional[dict] = None


class WhatsAppClient:

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.settings = settings
        self.http = http or requests.Session()

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.WHATSAPP_TOKEN}",
            "Content-Type": "application/json",
        }

    def _post(self, kind: str, payload: dict) -> SendResult:
        to = payload.get("to")
        try:
            r = self.http.post(
                self.settings.messages_url,
                headers=self._headers(),
                json=payload,
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error(f"[WHATSAPP] Error sending {kind} to {to}: {e}")
            return SendResult(ok=False, error=str(e))

        try:
            body = r.json()
        except ValueError:
            body = None

        if not r.ok:
            logger.error(f"[WHATSAPP] Error sending {kind} to {to}: {r.status_code} {body or r.text[:200]}")
            return SendResult(ok=False, status_code=r.status_code, error=r.text[:500], response=body)

        logger.info(f"[WHATSAPP] {kind} sent to {to}: {body}")
        return SendResult(ok=True, status_code=r.status_code, response=body)

    def send_text(self, to: str, body: str) -> SendResult:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        return self._post("text", payload)

    def send_buttons(self, to: str, header: str, body: str, buttons: Sequence[Tuple[str, str]]) -> SendResult:
        """buttons: exactly two (id, title) pairs."""
        if len(buttons) != 2:
            raise ValueError(f"Expected 2 reply buttons, got {len(buttons)}")
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "interactive",
            "interactive": {
                "type": "button",
                "header": {"type": "text", "text": header},
                "body": {"text": body},
                "action": {
                    "buttons": [
                        {"type": "reply", "reply": {"id": button_id, "title": title}}
                        for button_id, title in buttons
                    ]
                },
            },
        }
        return self._post("buttons", payload)

    def send_product_list(
        self,
        to: str,
        header: str,
        body: str,
        footer: str,
        catalog_id: str,
        sections: List[dict],
    ) -> SendResult:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "interactive",
            "interactive": {
                "type": "product_list",
                "header": {"type": "text", "text": header},
                "body": {"text": body},
                "footer": {"text": footer},
                "action": {
                    "catalog_id": catalog_id,
                    "sections": sections,
                },
            },
        }
        return self._post("product_list", payload)
