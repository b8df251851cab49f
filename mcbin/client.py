"""
Memcached Binary Protocol Client

Usage:
    from mcbin import Client

    with Client("localhost", 11211) as client:
        client.set("key", "value")
        client.set("another_key", "another_value", expire_seconds=60)
        client.get("key")                           # "value"
        client.get_multi(["key", "another_key"])    # {"key": "value", ...}
        client.delete("key")                        # True
"""

import logging
from typing import Dict, Iterable, Optional

from .config.settings import settings
from .network.connection import Connection
from .network.stream import SocketStream
from .protocol.errors import ProtocolError
from .protocol.frames import Command

logger = logging.getLogger(__name__)


class Client:
    """
    Blocking client for one memcached server over one connection.

    Keys and values are text; they are encoded with `encoding` (UTF-8 by
    default) on the way out and decoded on the way back.

    Failure conventions:
    - set() and delete() return False on any unsuccessful response
    - get() returns None for a miss
    - get_multi() maps every requested key, None for misses

    A malformed response or an unexpected opcode is logged and collapsed
    into the same negative result. Transport failures (connection lost,
    premature end of stream) raise TransportError.

    Not thread-safe: use one client per thread, or serialize calls with a
    lock held around each operation.

    Attributes:
        host: Server host
        port: Server port
        encoding: Text encoding for keys and values
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            stream=None,
            encoding: str = None,
            timeout: float = None,
    ):
        """
        Open the connection.

        Args:
            host: Server host (default from settings)
            port: Server port (default from settings)
            stream: Ready byte stream to use instead of opening a socket
            encoding: Text encoding (default from settings)
            timeout: Connect timeout in seconds (default from settings)

        Raises:
            TransportError: the server could not be reached
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.encoding = encoding if encoding is not None else settings.ENCODING

        if stream is None:
            stream = SocketStream.connect(self.host, self.port, timeout)
        self.stream = stream
        self.connection = Connection(stream)

    def _encode(self, text: str) -> bytes:
        return text.encode(self.encoding)

    def _decode(self, data: bytes) -> str:
        # Values may come from other writers; never fail on undecodable bytes
        return data.decode(self.encoding, errors="replace")

    def set(self, key: str, value: str, expire_seconds: int = 0) -> bool:
        """
        Store a key-value pair.

        By default the key never expires; pass `expire_seconds` to set
        a TTL.

        Returns:
            True if the server stored the value
        """
        command = Command.set(self._encode(key), self._encode(value), expire_seconds)
        try:
            return self.connection.perform(command)
        except ProtocolError as exc:
            logger.warning(f"SET {key!r} failed: {exc}")
            return False

    def get(self, key: str) -> Optional[str]:
        """
        Get the value of a single key.

        Returns:
            The value, or None if the key was not found or the response
            was unusable
        """
        try:
            value = self.connection.perform(Command.get(self._encode(key)))
        except ProtocolError as exc:
            logger.warning(f"GET {key!r} failed: {exc}")
            return None
        return self._decode(value) if value is not None else None

    def get_multi(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """
        Get the values of several keys in one round trip.

        Returns:
            A dict holding every requested key. Keys that were not found
            map to None.
        """
        keys = list(keys)
        result: Dict[str, Optional[str]] = {key: None for key in keys}
        encoded = {self._encode(key): key for key in keys}
        command = Command.get_multi(self._encode(key) for key in keys)
        try:
            values = self.connection.perform(command)
        except ProtocolError as exc:
            logger.warning(f"GET_MULTI of {len(keys)} keys failed: {exc}")
            return result

        for raw_key, raw_value in values.items():
            if raw_value is not None:
                result[encoded[raw_key]] = self._decode(raw_value)
        return result

    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the server deleted it
        """
        try:
            return self.connection.perform(Command.delete(self._encode(key)))
        except ProtocolError as exc:
            logger.warning(f"DELETE {key!r} failed: {exc}")
            return False

    def close(self) -> None:
        """Close the underlying stream."""
        self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
