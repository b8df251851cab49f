"""
Frame Codec

Pure conversions between frame values and the binary wire format:

    +---------------- 24-byte header ----------------+------ body ------+
    | magic | opcode | key len | extras len | ...    | extras|key|value  |
    +------------------------------------------------+------------------+

All multi-byte integers are big-endian. The only I/O here is in
decode_response(), which pulls exact byte counts from an injected stream.
"""

import logging
import struct

from ..config.settings import settings
from .constants import (
    HEADER_FMT,
    HEADER_SIZE,
    SET_EXTRAS_FMT,
    SET_FLAGS,
    Magic,
    Opcode,
    Status,
)
from .errors import FramingError
from .frames import Header, RequestFrame, ResponseFrame

logger = logging.getLogger(__name__)


def _to_opcode(value: int) -> Opcode:
    try:
        return Opcode(value)
    except ValueError:
        raise FramingError(f"unknown opcode 0x{value:02x}") from None


def encode_header(header: Header) -> bytes:
    """Pack a Header into its 24-byte wire form."""
    return struct.pack(
        HEADER_FMT,
        header.magic,
        header.opcode,
        header.key_length,
        header.extras_length,
        header.data_type,
        header.vbucket_or_status,
        header.total_body_length,
        header.opaque,
        header.cas,
    )


def decode_header(data: bytes) -> Header:
    """
    Unpack a 24-byte header.

    Raises:
        FramingError: wrong length, unknown magic or unknown opcode
    """
    if len(data) != HEADER_SIZE:
        raise FramingError(f"header must be {HEADER_SIZE} bytes, got {len(data)}")

    (magic, opcode, key_length, extras_length, data_type,
     vbucket_or_status, total_body_length, opaque, cas) = struct.unpack(HEADER_FMT, data)

    try:
        magic = Magic(magic)
    except ValueError:
        raise FramingError(f"unknown magic 0x{magic:02x}") from None

    return Header(
        magic=magic,
        opcode=_to_opcode(opcode),
        key_length=key_length,
        extras_length=extras_length,
        data_type=data_type,
        vbucket_or_status=vbucket_or_status,
        total_body_length=total_body_length,
        opaque=opaque,
        cas=cas,
    )


def encode_request(
        opcode: Opcode,
        key: bytes = b"",
        value: bytes = b"",
        extras: bytes = b"",
) -> bytes:
    """
    Encode one request frame: header, then extras, key and value.

    Reserved fields (data type, vbucket id, opaque, CAS) are zero.

    Raises:
        ValueError: key longer than 65535 bytes, extras longer than 255
            bytes, or a body that does not fit in 32 bits

    Examples:
        >>> encode_request(Opcode.NOOP).hex()
        '800a00000000000000000000000000000000000000000000'
    """
    if len(key) > settings.MAX_KEY_LENGTH:
        raise ValueError(f"key is {len(key)} bytes, limit is {settings.MAX_KEY_LENGTH}")
    if len(extras) > settings.MAX_EXTRAS_LENGTH:
        raise ValueError(f"extras are {len(extras)} bytes, limit is {settings.MAX_EXTRAS_LENGTH}")

    total_body_length = len(extras) + len(key) + len(value)
    if total_body_length > settings.MAX_BODY_LENGTH:
        raise ValueError(f"body of {total_body_length} bytes does not fit in 32 bits")

    header = Header(
        magic=Magic.REQUEST,
        opcode=opcode,
        key_length=len(key),
        extras_length=len(extras),
        total_body_length=total_body_length,
    )
    return encode_header(header) + bytes(extras) + bytes(key) + bytes(value)


def set_extras(expire: int = 0) -> bytes:
    """
    Build Set extras: fixed flags 0xDEADBEEF and the expiration in seconds.

    Raises:
        ValueError: expiration outside the unsigned 32-bit range
    """
    if not 0 <= expire <= 0xFFFFFFFF:
        raise ValueError(f"expiration {expire} outside 0..{0xFFFFFFFF}")
    return struct.pack(SET_EXTRAS_FMT, SET_FLAGS, expire)


def decode_response(stream) -> ResponseFrame:
    """
    Read and decode one response frame from a byte stream.

    The stream must provide read_exact(n), which blocks until exactly n
    bytes are available and raises TransportError otherwise.

    The header is always consumed in full. Once the magic checks out the
    body is consumed too, so the stream stays aligned on the next frame
    even when the frame itself is rejected.

    Raises:
        FramingError: bad magic, extras longer than the body, unknown
            opcode, or a key length past the end of a keyed body
        TransportError: the stream failed or ended early
    """
    raw = stream.read_exact(HEADER_SIZE)
    if raw[0] != Magic.RESPONSE:
        raise FramingError(f"expected response magic, got 0x{raw[0]:02x}")

    opcode = raw[1]
    key_length = (raw[2] << 8) | raw[3]
    extras_length = raw[4]
    status_code = raw[7]
    total_body_length = int.from_bytes(raw[8:12], "big")

    logger.debug(
        f"Response header: opcode=0x{opcode:02x}, total length: {total_body_length}, "
        f"extras length: {extras_length}, status: {status_code}"
    )

    if extras_length > total_body_length:
        raise FramingError(
            f"extras length {extras_length} exceeds total body length {total_body_length}"
        )
    body_length = total_body_length - extras_length

    if extras_length:
        stream.read_exact(extras_length)
    body = stream.read_exact(body_length) if body_length else b""

    response = ResponseFrame(
        status_code=status_code,
        opcode=_to_opcode(opcode),
        key_length=key_length,
        extras_length=extras_length,
        body=body,
    )
    if response.opcode.carries_key and key_length > body_length:
        raise FramingError(f"key length {key_length} exceeds body length {body_length}")
    return response


def decode_request(header: Header, body: bytes) -> RequestFrame:
    """
    Split a request body into extras, key and value (stub server side).

    Raises:
        FramingError: not a request header, or lengths that do not add up
    """
    if header.magic != Magic.REQUEST:
        raise FramingError(f"expected request magic, got 0x{header.magic:02x}")
    if len(body) != header.total_body_length:
        raise FramingError(
            f"body is {len(body)} bytes, header declares {header.total_body_length}"
        )
    key_end = header.extras_length + header.key_length
    if key_end > len(body):
        raise FramingError("extras and key lengths exceed total body length")

    return RequestFrame(
        opcode=header.opcode,
        extras=body[:header.extras_length],
        key=body[header.extras_length:key_end],
        value=body[key_end:],
    )


def encode_response(
        opcode: Opcode,
        status: int = Status.SUCCESS,
        key: bytes = b"",
        value: bytes = b"",
        extras: bytes = b"",
) -> bytes:
    """Encode one response frame with a 16-bit status in bytes 6-7."""
    header = Header(
        magic=Magic.RESPONSE,
        opcode=opcode,
        key_length=len(key),
        extras_length=len(extras),
        vbucket_or_status=status,
        total_body_length=len(extras) + len(key) + len(value),
    )
    return encode_header(header) + extras + key + value
