"""Network module for mcbin."""

from .connection import Connection
from .stream import SocketStream
from .stub_server import StubServer

__all__ = ["Connection", "SocketStream", "StubServer"]
