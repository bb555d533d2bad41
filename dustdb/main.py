"""DustDB Server: process entry point for the line-protocol listener.

Invariants:
    - Settings are read once here and passed down explicitly
    - Logging configured before the listener binds
    - Ctrl-C stops the listener and exits with status 0
"""

import asyncio
import logging

from pydantic import ValidationError

from dustdb.config import Settings, get_settings
from dustdb.core.errors import ConfigurationError
from dustdb.infrastructure.observability import setup_logging
from dustdb.infrastructure.pile_storage import PileStorage
from dustdb.services.line_server import LineServer
from dustdb.services.request_handler import RequestHandler

logger = logging.getLogger(__name__)


def build_server(settings: Settings) -> LineServer:
    """Wire storage, request handler and listener from one settings object."""
    storage = PileStorage.from_settings(settings)
    return LineServer(settings, RequestHandler(storage))


async def serve(settings: Settings) -> None:
    server = build_server(settings)
    await server.start()
    try:
        await server.serve_forever()
    finally:
        await server.close()


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid DustDB settings: {e}") from e


def main() -> int:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        "dustdb starting",
        extra={"address": settings.address},
    )
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("dustdb shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
