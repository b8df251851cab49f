"""
Async Stub Server Module

A small memcached binary protocol server built on asyncio, backed by an
in-memory KVStore. It implements exactly the opcodes the client uses and
serves as the conforming peer in integration tests and local experiments.

Per-opcode behavior:
- GET / GETK: hit -> flags + [key +] value, miss -> KEY_NOT_FOUND
- GETQ / GETKQ: hit as above, miss -> no response at all
- SET: stores the value and its flags, expiration in seconds as TTL
- DELETE: SUCCESS or KEY_NOT_FOUND
- NOOP: empty SUCCESS response
"""

import asyncio
import logging
import struct
from asyncio import IncompleteReadError, StreamReader, StreamWriter
from typing import Optional

from ..cache.store import KVStore
from ..config.settings import settings
from ..protocol.codec import decode_header, decode_request, encode_response
from ..protocol.constants import HEADER_SIZE, SET_EXTRAS_FMT, Opcode, Status
from ..protocol.errors import FramingError
from ..protocol.frames import RequestFrame

logger = logging.getLogger(__name__)

FLAGS_FMT = ">I"
NOT_FOUND_MESSAGE = b"Not found"
INVALID_ARGUMENTS_MESSAGE = b"Invalid arguments"


class StubServer:
    """
    Asynchronous TCP server speaking the binary protocol.

    Each client connection is handled in its own coroutine. Requests on a
    connection are answered strictly in order, which is what makes
    pipelined multi-get bursts work.

    Usage:
        server = StubServer(host='127.0.0.1', port=11211)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address
        port: Server port number
        store: The KVStore instance shared by all connections
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
    ):
        self.host = host if host is not None else settings.SERVER_HOST
        self.port = port if port is not None else settings.SERVER_PORT
        self.store = store if store is not None else KVStore()

        self._server: Optional[asyncio.Server] = None

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads one frame at a time until the client disconnects or sends a
        frame that cannot be parsed, in which case the connection is
        dropped since the stream can no longer be trusted.
        """
        addr = writer.get_extra_info('peername')
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                try:
                    raw_header = await reader.readexactly(HEADER_SIZE)
                except IncompleteReadError:
                    logger.debug(f"Client disconnected: {addr}")
                    break

                try:
                    header = decode_header(raw_header)
                    body = await reader.readexactly(header.total_body_length)
                    request = decode_request(header, body)
                except FramingError as exc:
                    logger.warning(f"Dropping client {addr}: {exc}")
                    break

                response = self._execute(request)
                if response:
                    writer.write(response)
                    await writer.drain()

        except (ConnectionResetError, IncompleteReadError):
            logger.debug(f"Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except Exception:
                pass

    def _execute(self, request: RequestFrame) -> bytes:
        """
        Execute one request against the store.

        Returns:
            The encoded response, or b"" when a quiet opcode missed
        """
        opcode = request.opcode

        if opcode in (Opcode.GET, Opcode.GETQ, Opcode.GETK, Opcode.GETKQ):
            entry = self.store.get(request.key)
            if entry is None:
                if opcode.is_quiet:
                    return b""
                return encode_response(opcode, Status.KEY_NOT_FOUND, value=NOT_FOUND_MESSAGE)
            flags, value = entry
            key = request.key if opcode.carries_key else b""
            return encode_response(
                opcode,
                key=key,
                value=value,
                extras=struct.pack(FLAGS_FMT, flags),
            )

        if opcode == Opcode.SET:
            if len(request.extras) != struct.calcsize(SET_EXTRAS_FMT) or not request.key:
                return encode_response(opcode, Status.INVALID_ARGUMENTS, value=INVALID_ARGUMENTS_MESSAGE)
            flags, expire = struct.unpack(SET_EXTRAS_FMT, request.extras)
            self.store.put(request.key, (flags, request.value), ttl=expire)
            return encode_response(opcode)

        if opcode == Opcode.DELETE:
            if self.store.delete(request.key):
                return encode_response(opcode)
            return encode_response(opcode, Status.KEY_NOT_FOUND, value=NOT_FOUND_MESSAGE)

        if opcode == Opcode.NOOP:
            return encode_response(opcode)

        return encode_response(opcode, Status.UNKNOWN_COMMAND)

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or stopped.

        Example:
            server = StubServer(port=11211)
            asyncio.run(server.start())
        """
        if self._server is not None:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.READ_BUFFER_SIZE,
        )
        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None


async def run_server(host: str = None, port: int = None, store: KVStore = None) -> None:
    """
    Convenience function to create and run the stub server.

    Usage:
        asyncio.run(run_server(port=11211))
    """
    server = StubServer(host=host, port=port, store=store)

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()
