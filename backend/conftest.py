"""Shared fixtures: in-memory DB, recording messenger, stub catalog, test app."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderbot.core.config import Settings
from orderbot.core.keyed_lock import KeyedLock
from orderbot.db.base import Base
from orderbot.main import create_app
from orderbot.models import Customer, Order  # noqa: F401 - register models
from orderbot.whatsapp.client import SendResult
from orderbot.whatsapp.handlers import WebhookHandler

CATALOG = [
    {"name": "Sony WH-1000XM4", "retailer_id": "sony-xm4"},
    {"name": "Bose QuietComfort 45", "retailer_id": "bose-qc45"},
]


class RecordingMessenger:
    """Stands in for WhatsAppClient; records every send."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def _record(self, kind, to, **fields):
        self.sent.append({"kind": kind, "to": to, **fields})
        if self.ok:
            return SendResult(ok=True, status_code=200, response={"messages": [{"id": "wamid.test"}]})
        return SendResult(ok=False, status_code=500, error="provider down")

    def send_text(self, to, body):
        return self._record("text", to, body=body)

    def send_buttons(self, to, header, body, buttons):
        return self._record("buttons", to, header=header, body=body, buttons=list(buttons))

    def send_product_list(self, to, header, body, footer, catalog_id, sections):
        return self._record(
            "product_list", to,
            header=header, body=body, footer=footer, catalog_id=catalog_id, sections=sections,
        )


def text_message(number: str, body: str) -> dict:
    """WhatsApp Cloud API envelope carrying one text message."""
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "messages": [{
                        "from": number,
                        "id": "wamid.in",
                        "type": "text",
                        "text": {"body": body},
                    }],
                },
            }],
        }],
    }


def button_message(number: str, button_id: str) -> dict:
    """Envelope carrying one reply-button press."""
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "messages": [{
                        "from": number,
                        "id": "wamid.btn",
                        "type": "interactive",
                        "interactive": {
                            "type": "button_reply",
                            "button_reply": {"id": button_id, "title": "Yes"},
                        },
                    }],
                },
            }],
        }],
    }


@pytest.fixture
def settings():
    return Settings(
        WHATSAPP_VERIFY_TOKEN="verify-me",
        WHATSAPP_TOKEN="test-token",
        WHATSAPP_PHONE_NUMBER_ID="1234567890",
        COMMERCE_API_URL="https://graph.example.com/catalog/products",
        COMMERCE_CATALOG_ID="catalog-1",
        DATABASE_URL="sqlite://",
        UNIT_PRICE=300,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def handler(settings, messenger, session_factory):
    return WebhookHandler(
        settings=settings,
        messenger=messenger,
        session_factory=session_factory,
        locks=KeyedLock(),
        catalog_fetcher=lambda _settings: list(CATALOG),
    )


@pytest.fixture
def client(settings, session_factory, messenger, monkeypatch):
    monkeypatch.setattr(
        "orderbot.whatsapp.handlers.fetch_products",
        lambda _settings: list(CATALOG),
    )
    app = create_app(settings, session_factory=session_factory, messenger=messenger)
    with TestClient(app) as test_client:
        yield test_client
