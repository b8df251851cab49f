"""
Binary Protocol Constants

Magic bytes, opcodes, status codes and the fixed header layout of the
memcached binary protocol subset this package speaks.
"""

from enum import IntEnum


class Magic(IntEnum):
    """Tag in byte 0 telling a request frame from a response frame."""
    REQUEST = 0x80
    RESPONSE = 0x81


class Opcode(IntEnum):
    """Operations understood by the client and the stub server."""
    GET = 0x00
    SET = 0x01
    DELETE = 0x04
    GETQ = 0x09
    NOOP = 0x0A
    GETK = 0x0C
    GETKQ = 0x0D

    @property
    def is_quiet(self) -> bool:
        """Quiet opcodes get no response on a miss."""
        return self in (Opcode.GETQ, Opcode.GETKQ)

    @property
    def carries_key(self) -> bool:
        """Responses to these opcodes echo the key at the start of the body."""
        return self in (Opcode.GETK, Opcode.GETKQ)


class Status(IntEnum):
    """Response status codes. Anything but SUCCESS is a failure."""
    SUCCESS = 0x0000
    KEY_NOT_FOUND = 0x0001
    KEY_EXISTS = 0x0002
    VALUE_TOO_LARGE = 0x0003
    INVALID_ARGUMENTS = 0x0004
    UNKNOWN_COMMAND = 0x0081


HEADER_SIZE = 24

# magic, opcode, key length, extras length, data type,
# vbucket id (requests) / status (responses), total body, opaque, cas
HEADER_FMT = ">BBHBBHIIQ"

# Set extras: flags then expiration in seconds
SET_EXTRAS_FMT = ">II"
SET_FLAGS = 0xDEADBEEF
