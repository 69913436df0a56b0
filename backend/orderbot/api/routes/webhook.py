"""
WhatsApp webhook: handshake verification (GET) and event delivery (POST).

POST always acknowledges with 200 unless a write the reply depends on failed;
anything else makes the provider redeliver the same event repeatedly.
"""
import logging
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from orderbot.api.deps import get_handler, get_settings
from orderbot.core.config import Settings
from orderbot.core.exceptions import StoreError, VerificationError, WebhookError
from orderbot.schemas.webhook import WebhookAck
from orderbot.whatsapp.handlers import WebhookHandler, extract_event

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_handshake(mode: str | None, token: str | None, expected_token: str) -> None:
    """Raise VerificationError unless this is a subscribe request with our token."""
    if not expected_token:
        raise VerificationError("WHATSAPP_VERIFY_TOKEN is not configured")
    if mode != "subscribe":
        raise VerificationError(f"Unexpected hub.mode: {mode!r}")
    if token != expected_token:
        raise VerificationError("hub.verify_token mismatch")


@router.get("", response_class=PlainTextResponse)
def verify_webhook(
    mode: str | None = Query(default=None, alias="hub.mode"),
    token: str | None = Query(default=None, alias="hub.verify_token"),
    challenge: str = Query(default="", alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    """Echo hub.challenge back when the verify token matches."""
    try:
        verify_handshake(mode, token, settings.WHATSAPP_VERIFY_TOKEN)
    except VerificationError as e:
        raise WebhookError.forbidden(str(e))

    logger.info("[WEBHOOK] Webhook Verified")
    return PlainTextResponse(content=challenge, status_code=200)


@router.post("", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_handler),
):
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("[WEBHOOK] Ignoring delivery with invalid JSON body")
        return WebhookAck()

    event = extract_event(payload)
    if event is None:
        logger.debug("[WEBHOOK] No message in delivery, acknowledging")
        return WebhookAck()

    try:
        # Blocking DB and HTTP work runs off the event loop
        await run_in_threadpool(handler.handle, event)
    except StoreError as e:
        raise WebhookError.server_error(e)

    return WebhookAck()
