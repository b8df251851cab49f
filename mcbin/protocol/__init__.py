"""Binary protocol module for mcbin."""

from .codec import (
    decode_header,
    decode_request,
    decode_response,
    encode_header,
    encode_request,
    encode_response,
    set_extras,
)
from .constants import HEADER_SIZE, Magic, Opcode, Status
from .errors import FramingError, ProtocolError, ProtocolMismatch, TransportError
from .frames import Command, CommandType, Header, RequestFrame, ResponseFrame

__all__ = [
    "Command",
    "CommandType",
    "FramingError",
    "HEADER_SIZE",
    "Header",
    "Magic",
    "Opcode",
    "ProtocolError",
    "ProtocolMismatch",
    "RequestFrame",
    "ResponseFrame",
    "Status",
    "TransportError",
    "decode_header",
    "decode_request",
    "decode_response",
    "encode_header",
    "encode_request",
    "encode_response",
    "set_extras",
]
