"""
Order Bot Backend - WhatsApp order intake.

ARCHITECTURE:
- WhatsApp Cloud API webhook: inbound messages, button presses
- Decision engine: pure greeting -> catalog -> order line -> address flow
- SQLAlchemy DB: customers (conversation stage + draft) and orders
- WhatsApp client: one outbound reply per inbound event

Settings are built once here and handed to everything that needs them.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from orderbot.api.routes import webhook
from orderbot.core.config import Settings
from orderbot.core.keyed_lock import KeyedLock
from orderbot.db.init_db import init_db
from orderbot.db.session import build_engine, build_session_factory
from orderbot.whatsapp.client import WhatsAppClient
from orderbot.whatsapp.handlers import WebhookHandler

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    messenger: Optional[WhatsAppClient] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings.DATABASE_URL))
    messenger = messenger or WhatsAppClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: create tables.
        Shutdown: close the outbound HTTP session.
        """
        logger.info("[*] Initializing database...")
        init_db(session_factory.kw["bind"])
        logger.info(f"[OK] Order bot ready (environment={settings.ENVIRONMENT})")

        yield

        http = getattr(messenger, "http", None)
        if http is not None:
            http.close()

    app = FastAPI(
        title="Order Bot API",
        description="WhatsApp order intake: greeting, catalog, order line, address, confirmation.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.handler = WebhookHandler(
        settings=settings,
        messenger=messenger,
        session_factory=session_factory,
        locks=KeyedLock(),
    )

    app.include_router(webhook.router, prefix="/webhook", tags=["webhook"])

    @app.get("/")
    def root():
        return {"status": "ok", "service": "orderbot"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
