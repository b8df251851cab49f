"""
Protocol and Transport Errors

Three failure kinds can come out of an exchange:

- TransportError: the byte stream failed or closed early. Not recoverable
  on this connection.
- FramingError: the bytes read do not form a valid response frame.
- ProtocolMismatch: a well-formed response answered a different opcode
  than the one in flight.
"""


class ProtocolError(Exception):
    """Base class for errors raised while decoding or matching frames."""


class FramingError(ProtocolError):
    """Response header or body does not follow the binary framing rules."""


class ProtocolMismatch(ProtocolError):
    """Response opcode does not echo the request opcode."""

    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f"expected opcode {expected!r}, got {received!r}")


class TransportError(ConnectionError):
    """Underlying stream read/write failure or premature end of stream."""
