"""
Connection Exchange

Drives request/response exchanges over one byte stream. Every exchange
writes its frame(s), flushes once and then blocks until the expected
response(s) have been read.

The protocol carries no request identifiers (opaque is always zero), so
responses are matched to requests purely by order. A Connection must not
be used by more than one caller at a time.
"""

import logging
from typing import Dict, List, Optional

from ..protocol.codec import decode_response, encode_request, set_extras
from ..protocol.constants import Opcode
from ..protocol.errors import FramingError, ProtocolMismatch
from ..protocol.frames import Command, CommandType, ResponseFrame

logger = logging.getLogger(__name__)


class Connection:
    """
    Request/response state machine over an injected byte stream.

    The stream must provide write(bytes), flush() and read_exact(n).

    perform() returns, per command type:
        SET        -> bool
        GET        -> Optional[bytes]
        DELETE     -> bool
        GET_MULTI  -> Dict[bytes, Optional[bytes]]

    FramingError and TransportError propagate to the caller, except in
    GET_MULTI, where a FramingError ends the burst with the hits read so
    far. After a FramingError the stream is closed: the remaining bytes
    can no longer be matched to frames, so later calls fail with
    TransportError instead of reading another request's response. A
    response answering the wrong opcode counts as an unsuccessful
    response.
    """

    def __init__(self, stream):
        self.stream = stream

    def perform(self, command: Command):
        """Drive one command to completion and return its result."""
        if command.type == CommandType.SET:
            return self._set(command.key, command.value, command.expire)
        if command.type == CommandType.GET:
            return self._get(command.key)
        if command.type == CommandType.DELETE:
            return self._delete(command.key)
        if command.type == CommandType.GET_MULTI:
            return self._get_multi(command.keys)
        raise ValueError(f"unsupported command type: {command.type}")

    def _send(self, opcode: Opcode, key: bytes = b"", value: bytes = b"", extras: bytes = b"") -> None:
        self.stream.write(encode_request(opcode, key, value, extras))

    def _read(self) -> ResponseFrame:
        try:
            response = decode_response(self.stream)
        except FramingError as exc:
            logger.warning(f"Closing stream after malformed response: {exc}")
            self.stream.close()
            raise
        logger.debug(
            f"Response received: opcode={response.opcode.name}, "
            f"status={response.status_code}, body length={len(response.body)}"
        )
        return response

    def _exchange(self, opcode: Opcode, key: bytes, value: bytes = b"", extras: bytes = b"") -> ResponseFrame:
        """Send a single request, flush and read its response."""
        self._send(opcode, key, value, extras)
        self.stream.flush()
        response = self._read()
        if response.opcode != opcode:
            raise ProtocolMismatch(opcode, response.opcode)
        return response

    def _set(self, key: bytes, value: bytes, expire: int) -> bool:
        try:
            response = self._exchange(Opcode.SET, key, value, set_extras(expire))
        except ProtocolMismatch as exc:
            logger.debug(f"SET {key!r}: {exc}")
            return False
        return response.successful

    def _get(self, key: bytes) -> Optional[bytes]:
        try:
            response = self._exchange(Opcode.GET, key)
        except ProtocolMismatch as exc:
            logger.debug(f"GET {key!r}: {exc}")
            return None
        return response.body if response.successful else None

    def _delete(self, key: bytes) -> bool:
        try:
            response = self._exchange(Opcode.DELETE, key)
        except ProtocolMismatch as exc:
            logger.debug(f"DELETE {key!r}: {exc}")
            return False
        return response.successful

    def _get_multi(self, keys: List[bytes]) -> Dict[bytes, Optional[bytes]]:
        """
        Fetch several keys in one pipelined burst.

        One GETKQ per key (the server stays silent on a miss), then a NOOP.
        The server answers the NOOP last, so reading stops at the first
        NOOP response whatever number of hits came before it.
        """
        result: Dict[bytes, Optional[bytes]] = {key: None for key in keys}

        # Encode the whole burst first so a bad key leaves nothing queued
        burst = b"".join(encode_request(Opcode.GETKQ, key) for key in keys)
        self.stream.write(burst + encode_request(Opcode.NOOP))
        self.stream.flush()

        while True:
            try:
                response = self._read()
            except FramingError:
                hits = sum(value is not None for value in result.values())
                logger.warning(f"Multi-get cut short, returning {hits} hit(s) read so far")
                return result
            if response.opcode == Opcode.NOOP:
                return result

            if response.opcode != Opcode.GETKQ or not response.successful:
                logger.debug(
                    f"Ignoring {response.opcode.name} response with status "
                    f"{response.status_code} during multi-get"
                )
                continue

            key = response.key
            if key not in result:
                logger.debug(f"Ignoring unrequested key {key!r} in multi-get")
                continue
            result[key] = response.value
