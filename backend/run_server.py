"""Simple server runner: logging from LOG_LEVEL, uvicorn on HOST:PORT."""
import logging
import signal
import sys

import uvicorn

from orderbot.core.config import Settings
from orderbot.main import create_app


def handle_signal(sig, frame):
    logging.getLogger(__name__).info(f"Received signal {sig}, shutting down gracefully...")
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(f"Starting order bot on {settings.HOST}:{settings.PORT}")
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
