"""FastAPI dependencies: settings and webhook handler from app state."""
from fastapi import Request

from orderbot.core.config import Settings
from orderbot.whatsapp.handlers import WebhookHandler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_handler(request: Request) -> WebhookHandler:
    return request.app.state.handler
