"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import io
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator

from mcbin.cache.store import KVStore
from mcbin.client import Client
from mcbin.network.stub_server import StubServer
from mcbin.protocol.errors import TransportError


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Stream Fixtures
# ============================================================================

class FakeStream:
    """
    In-memory byte stream with scripted server output.

    Everything passed to write() is collected in `written` once flushed;
    read_exact() serves bytes from `incoming` and raises TransportError
    when the script runs dry, like a peer closing the connection. Once
    closed, every call raises TransportError, as SocketStream does.
    """

    def __init__(self, incoming: bytes = b""):
        self.incoming = io.BytesIO(incoming)
        self.pending = bytearray()
        self.written = bytearray()
        self.flushes = 0
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise TransportError("stream is closed")

    def write(self, data: bytes) -> None:
        self._check_open()
        self.pending += data

    def flush(self) -> None:
        self._check_open()
        self.flushes += 1
        self.written += self.pending
        self.pending.clear()

    def read_exact(self, size: int) -> bytes:
        self._check_open()
        data = self.incoming.read(size)
        if len(data) < size:
            raise TransportError(f"connection closed after {len(data)} of {size} bytes")
        return data

    def close(self) -> None:
        self.closed = True

    @property
    def consumed(self) -> int:
        """Number of scripted bytes read so far."""
        return self.incoming.tell()


@pytest.fixture
def fake_stream_factory():
    """
    Factory fixture for scripted streams.

    Usage:
        def test_something(fake_stream_factory):
            stream = fake_stream_factory(encode_response(Opcode.NOOP))
    """
    def factory(*responses: bytes) -> FakeStream:
        return FakeStream(b"".join(responses))
    return factory


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore."""
    return KVStore()


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[StubServer, None]:
    """
    Create and start a stub server instance for testing.

    This fixture:
    1. Creates a StubServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = StubServer(host='127.0.0.1', port=server_port)

    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to connect clients to the stub server.

    The client blocks, so tests drive it from a worker thread while the
    server runs on the event loop.

    Usage:
        async def test_something(server, client_factory):
            client = await asyncio.to_thread(client_factory)
            assert await asyncio.to_thread(client.set, "key", "value")
    """
    clients = []

    def factory() -> Client:
        client = Client('127.0.0.1', server_port)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
