#!/usr/bin/env python3
"""
Interactive Client for mcbin

A small command-line shell for poking at a memcached server over the
binary protocol.

Usage:
    mcbin                          # Connect to localhost:11211
    mcbin --host 1.2.3.4           # Connect to specific host
    mcbin --port 11311 --debug     # Custom port, log every frame

Commands:
    set <key> <value> [expire]   - Store a key-value pair
    get <key>                    - Retrieve a value
    getm <key> [<key> ...]       - Retrieve several values in one round trip
    delete <key>                 - Delete a key
    help                         - Show this help
    exit                         - Exit client
"""

import argparse
import logging
import sys

from .client import Client
from .config.settings import settings
from .protocol.errors import TransportError
from .config.log import setup_logging

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

logger = logging.getLogger(__name__)

HELP = """
mcbin Commands:
---------------
  set <key> <value> [expire]   Store a key-value pair (optional TTL in seconds)
  get <key>                    Retrieve the value for a key
  getm <key> [<key> ...]       Retrieve several keys at once
  delete <key>                 Delete a key
  help                         Show this help message
  exit                         Exit the client

Examples:
---------
  set mykey myvalue            Store "myvalue" under "mykey"
  set tempkey tempval 60       Store with 60 second TTL
  get mykey                    Get value for "mykey"
  getm mykey tempkey other     Get three keys
  delete mykey                 Delete "mykey"
"""


def format_value(value) -> str:
    return "(absent)" if value is None else value


def run_command(client: Client, line: str) -> str:
    """
    Execute one shell line against the client and return the text to print.

    Raises:
        TransportError: the connection failed
    """
    parts = line.split()
    name, args = parts[0].lower(), parts[1:]

    if name == "set" and len(args) in (2, 3):
        try:
            expire = int(args[2]) if len(args) == 3 else 0
        except ValueError:
            return f"ERROR invalid expire: {args[2]}"
        try:
            stored = client.set(args[0], args[1], expire)
        except ValueError as exc:
            return f"ERROR {exc}"
        return "STORED" if stored else "NOT_STORED"

    if name == "get" and len(args) == 1:
        return format_value(client.get(args[0]))

    if name == "getm" and args:
        values = client.get_multi(args)
        return "\n".join(f"{key}: {format_value(value)}" for key, value in values.items())

    if name == "delete" and len(args) == 1:
        return "DELETED" if client.delete(args[0]) else "NOT_FOUND"

    return "ERROR unknown command, type 'help'"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Interactive memcached binary protocol client"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help=f"Server host (default: {settings.HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"Server port (default: {settings.PORT})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.CONNECT_TIMEOUT,
        help=f"Connect timeout in seconds (default: {settings.CONNECT_TIMEOUT})"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        client = Client(args.host, args.port, timeout=args.timeout)
    except TransportError as exc:
        print(f"Failed to connect: {exc}")
        print(f"  Try: mcbin-stub-server --port {args.port}")
        sys.exit(1)

    print("Connected! Type 'help' for commands.\n")

    with client:
        while True:
            try:
                line = input(">>> ").strip()
            except EOFError:
                print("\nGoodbye!")
                break
            except KeyboardInterrupt:
                print("\n\nInterrupted. Goodbye!")
                break

            if not line:
                continue

            lower = line.lower()
            if lower == "help":
                print(HELP)
                continue
            if lower in ("exit", "quit"):
                print("Goodbye!")
                break

            try:
                print(run_command(client, line))
            except TransportError as exc:
                logger.error(f"Connection lost: {exc}")
                sys.exit(1)


if __name__ == "__main__":
    main()
