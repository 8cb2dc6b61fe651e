#!/usr/bin/env python3
"""
Run the tracker TCP server
Usage: python -m tracker_proxy.run_server [port]
"""
import asyncio
import logging
import sys
import uuid

from .config import settings
from .logs import configure_logging, stop_logging
from .server import TrackerTCPServer

logger = logging.getLogger(__name__)


async def main(port: int = None):
    """Run the tracker TCP server until SIGINT/SIGTERM"""
    server_settings = settings.model_copy(update={'PORT': port}) if port is not None else settings
    server = TrackerTCPServer(server_settings)
    await server.start()


def cli():
    port = int(sys.argv[1]) if len(sys.argv) > 1 else None

    configure_logging(uuid.uuid4().hex[:8], settings)
    try:
        asyncio.run(main(port))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    finally:
        stop_logging()


if __name__ == "__main__":
    cli()
