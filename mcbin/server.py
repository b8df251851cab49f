#!/usr/bin/env python3
"""
Stub Server Entry Point

Runs the in-memory binary protocol stub server, handy for trying the
client without a real memcached.

Usage:
    mcbin-stub-server                  # 127.0.0.1:11211
    mcbin-stub-server --port 11311     # Custom port
    mcbin-stub-server --debug          # Log every connection

Environment Variables:
    MCBIN_SERVER_HOST, MCBIN_SERVER_PORT, MCBIN_DEBUG
"""

import argparse
import asyncio
import logging

from .config.log import setup_logging
from .config.settings import settings
from .network.stub_server import run_server

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="mcbin stub server: in-memory memcached binary protocol server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=settings.SERVER_HOST, help="Host address to bind to")
    parser.add_argument("--port", type=int, default=settings.SERVER_PORT, help="Port number to listen on")
    parser.add_argument("--debug", action="store_true", default=settings.DEBUG, help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        asyncio.run(run_server(host=args.host, port=args.port))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
