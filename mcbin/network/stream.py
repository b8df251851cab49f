"""
Socket Byte Stream

A blocking byte stream over one TCP socket. Writes are buffered until
flush() so a pipelined burst goes out in a single send; reads return
exactly the requested number of bytes or raise.
"""

import logging
import socket
from typing import Optional

from ..config.settings import settings
from ..protocol.errors import TransportError

logger = logging.getLogger(__name__)


class SocketStream:
    """
    Byte stream with write/flush/read_exact over a connected socket.

    Usage:
        with SocketStream.connect("localhost", 11211) as stream:
            stream.write(frame)
            stream.flush()
            header = stream.read_exact(24)
    """

    def __init__(self, sock: socket.socket):
        self.socket: Optional[socket.socket] = sock
        self._buffer = bytearray()

    @classmethod
    def connect(
            cls,
            host: str = None,
            port: int = None,
            timeout: float = None,
    ) -> "SocketStream":
        """
        Open a TCP connection.

        The timeout only bounds connection establishment; the socket is
        switched back to blocking mode once connected.

        Raises:
            TransportError: the connection could not be established
        """
        host = host if host is not None else settings.HOST
        port = port if port is not None else settings.PORT
        timeout = timeout if timeout is not None else settings.CONNECT_TIMEOUT

        logger.info(f"Connecting to {host}:{port}")
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise TransportError(f"cannot connect to {host}:{port}: {exc}") from exc

        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return cls(sock)

    def _require_socket(self) -> socket.socket:
        if self.socket is None:
            raise TransportError("stream is closed")
        return self.socket

    def write(self, data: bytes) -> None:
        """Queue bytes for the next flush()."""
        self._require_socket()
        self._buffer += data

    def flush(self) -> None:
        """Send everything queued by write()."""
        sock = self._require_socket()
        if not self._buffer:
            return
        data = bytes(self._buffer)
        self._buffer.clear()
        try:
            sock.sendall(data)
        except OSError as exc:
            raise TransportError(f"write failed: {exc}") from exc

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly `size` bytes, blocking until they arrive.

        Raises:
            TransportError: the peer closed the connection first, or the
                socket failed
        """
        sock = self._require_socket()
        data = bytearray()
        while len(data) < size:
            try:
                chunk = sock.recv(size - len(data))
            except OSError as exc:
                raise TransportError(f"read failed: {exc}") from exc
            if not chunk:
                raise TransportError(
                    f"connection closed after {len(data)} of {size} bytes"
                )
            data += chunk
        return bytes(data)

    def close(self) -> None:
        """Close the socket. Pending unflushed writes are dropped."""
        if self.socket is None:
            return
        self._buffer.clear()
        try:
            self.socket.close()
        finally:
            self.socket = None

    @property
    def closed(self) -> bool:
        return self.socket is None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
