"""
Frame and Command Definitions

This module defines the values that flow between the codec, the connection
exchange and the client facade. Frames are transient: one is built per
request or response and discarded once translated.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List

from .constants import Magic, Opcode, Status


class CommandType(Enum):
    """Enumeration of client operations."""
    GET = auto()
    SET = auto()
    DELETE = auto()
    GET_MULTI = auto()


@dataclass
class Command:
    """
    A client operation waiting to be driven over a connection.

    Attributes:
        type: GET, SET, DELETE or GET_MULTI
        key: The key for single-key operations (empty for GET_MULTI)
        value: The value for SET operations
        expire: Expiration in seconds for SET operations (0 = never)
        keys: Ordered keys for GET_MULTI; duplicates are allowed
    """
    type: CommandType
    key: bytes = b""
    value: bytes = b""
    expire: int = 0
    keys: List[bytes] = field(default_factory=list)

    @classmethod
    def get(cls, key: bytes) -> "Command":
        return cls(type=CommandType.GET, key=key)

    @classmethod
    def set(cls, key: bytes, value: bytes, expire: int = 0) -> "Command":
        return cls(type=CommandType.SET, key=key, value=value, expire=expire)

    @classmethod
    def delete(cls, key: bytes) -> "Command":
        return cls(type=CommandType.DELETE, key=key)

    @classmethod
    def get_multi(cls, keys) -> "Command":
        return cls(type=CommandType.GET_MULTI, keys=list(keys))


@dataclass
class Header:
    """
    The fixed 24-byte frame header, field for field.

    `vbucket_or_status` is the vbucket id in requests and the status code
    in responses.
    """
    magic: Magic
    opcode: Opcode
    key_length: int = 0
    extras_length: int = 0
    data_type: int = 0
    vbucket_or_status: int = 0
    total_body_length: int = 0
    opaque: int = 0
    cas: int = 0


@dataclass
class RequestFrame:
    """A request as seen by the stub server after decoding."""
    opcode: Opcode
    key: bytes = b""
    value: bytes = b""
    extras: bytes = b""

    @property
    def total_body_length(self) -> int:
        return len(self.extras) + len(self.key) + len(self.value)


@dataclass
class ResponseFrame:
    """
    A decoded response.

    Attributes:
        status_code: 0 on success, anything else is a failure
        opcode: The opcode the server echoed
        key_length: Length of the key prefix of `body` (GETK/GETKQ only)
        extras_length: Length of the extras that were skipped
        body: Key (for keyed responses) followed by the value
    """
    status_code: int
    opcode: Opcode
    key_length: int = 0
    extras_length: int = 0
    body: bytes = b""

    @property
    def successful(self) -> bool:
        return self.status_code == Status.SUCCESS

    @property
    def key(self) -> bytes:
        return self.body[:self.key_length]

    @property
    def value(self) -> bytes:
        return self.body[self.key_length:]
