"""
Tests for the Connection Exchange

These tests drive Connection.perform() over scripted in-memory streams
and check both the bytes written and the results returned.

Run with: python -m pytest tests/test_connection.py -v
"""

import pytest

from mcbin.network.connection import Connection
from mcbin.protocol.codec import encode_request, encode_response, set_extras
from mcbin.protocol.constants import HEADER_SIZE, Opcode, Status
from mcbin.protocol.errors import FramingError, TransportError
from mcbin.protocol.frames import Command

FLAGS = bytes.fromhex("deadbeef")


def noop() -> bytes:
    return encode_response(Opcode.NOOP)


def hit(key: bytes, value: bytes) -> bytes:
    return encode_response(Opcode.GETKQ, key=key, value=value, extras=FLAGS)


class TestSet:
    """Test SET exchanges."""

    def test_set_success(self, fake_stream_factory):
        """Test a successful echo of SET returns True."""
        stream = fake_stream_factory(encode_response(Opcode.SET))
        result = Connection(stream).perform(Command.set(b"a", b"1", 0))

        assert result is True
        assert bytes(stream.written) == encode_request(Opcode.SET, b"a", b"1", set_extras(0))
        assert stream.flushes == 1

    def test_set_carries_expiration(self, fake_stream_factory):
        """Test the expiration lands in the last four extras bytes."""
        stream = fake_stream_factory(encode_response(Opcode.SET))
        Connection(stream).perform(Command.set(b"a", b"1", 300))

        extras = bytes(stream.written[HEADER_SIZE:HEADER_SIZE + 8])
        assert extras == FLAGS + (300).to_bytes(4, "big")

    def test_set_failure_status(self, fake_stream_factory):
        """Test a non-zero status returns False."""
        stream = fake_stream_factory(encode_response(Opcode.SET, Status.VALUE_TOO_LARGE))
        assert Connection(stream).perform(Command.set(b"a", b"1")) is False

    def test_set_wrong_opcode(self, fake_stream_factory):
        """Test an echo of another opcode counts as failure."""
        stream = fake_stream_factory(encode_response(Opcode.DELETE))
        assert Connection(stream).perform(Command.set(b"a", b"1")) is False


class TestGet:
    """Test GET exchanges."""

    def test_get_hit(self, fake_stream_factory):
        """Test the body of a successful GET is the value."""
        stream = fake_stream_factory(encode_response(Opcode.GET, value=b"v", extras=FLAGS))
        result = Connection(stream).perform(Command.get(b"k"))

        assert result == b"v"
        assert bytes(stream.written) == encode_request(Opcode.GET, b"k")

    def test_get_empty_value(self, fake_stream_factory):
        """Test a stored empty value is distinct from a miss."""
        stream = fake_stream_factory(encode_response(Opcode.GET, extras=FLAGS))
        assert Connection(stream).perform(Command.get(b"k")) == b""

    def test_get_miss(self, fake_stream_factory):
        """Test KEY_NOT_FOUND yields None, not the error message."""
        stream = fake_stream_factory(
            encode_response(Opcode.GET, Status.KEY_NOT_FOUND, value=b"Not found")
        )
        assert Connection(stream).perform(Command.get(b"k")) is None

    def test_get_wrong_opcode(self, fake_stream_factory):
        """Test a successful response to another opcode yields None."""
        stream = fake_stream_factory(encode_response(Opcode.GETK, key=b"k", value=b"v"))
        assert Connection(stream).perform(Command.get(b"k")) is None

    def test_get_bad_magic_raises(self, fake_stream_factory):
        """Test framing errors propagate out of the exchange."""
        frame = bytearray(encode_response(Opcode.GET, value=b"v"))
        frame[0] = 0x80
        stream = fake_stream_factory(bytes(frame))
        with pytest.raises(FramingError):
            Connection(stream).perform(Command.get(b"k"))

    def test_bad_magic_closes_stream(self, fake_stream_factory):
        """Test later exchanges fail with TransportError once framing is lost."""
        frame = bytearray(encode_response(Opcode.GET, value=b"v"))
        frame[0] = 0x80
        stream = fake_stream_factory(bytes(frame), encode_response(Opcode.DELETE))
        connection = Connection(stream)
        with pytest.raises(FramingError):
            connection.perform(Command.get(b"k"))

        assert stream.closed
        with pytest.raises(TransportError):
            connection.perform(Command.delete(b"k"))

    def test_get_stream_closed_raises(self, fake_stream_factory):
        """Test a peer closing mid-exchange surfaces as TransportError."""
        stream = fake_stream_factory()
        with pytest.raises(TransportError):
            Connection(stream).perform(Command.get(b"k"))


class TestDelete:
    """Test DELETE exchanges."""

    def test_delete_success(self, fake_stream_factory):
        stream = fake_stream_factory(encode_response(Opcode.DELETE))
        assert Connection(stream).perform(Command.delete(b"k")) is True
        assert bytes(stream.written) == encode_request(Opcode.DELETE, b"k")

    def test_delete_miss(self, fake_stream_factory):
        stream = fake_stream_factory(encode_response(Opcode.DELETE, Status.KEY_NOT_FOUND))
        assert Connection(stream).perform(Command.delete(b"k")) is False


class TestGetMulti:
    """Test pipelined multi-get exchanges."""

    def test_burst_written_with_single_flush(self, fake_stream_factory):
        """Test one GETKQ per key then NOOP, all in one flush."""
        stream = fake_stream_factory(noop())
        Connection(stream).perform(Command.get_multi([b"x", b"y"]))

        assert bytes(stream.written) == (
            encode_request(Opcode.GETKQ, b"x")
            + encode_request(Opcode.GETKQ, b"y")
            + encode_request(Opcode.NOOP)
        )
        assert stream.flushes == 1

    def test_partial_hits(self, fake_stream_factory):
        """Test only 'y' exists: x stays None, y gets its value."""
        stream = fake_stream_factory(hit(b"y", b"v"), noop())
        result = Connection(stream).perform(Command.get_multi([b"x", b"y"]))

        assert result == {b"x": None, b"y": b"v"}

    def test_all_hits(self, fake_stream_factory):
        stream = fake_stream_factory(hit(b"a", b"1"), hit(b"b", b"22"), noop())
        result = Connection(stream).perform(Command.get_multi([b"a", b"b"]))

        assert result == {b"a": b"1", b"b": b"22"}

    def test_empty_key_list(self, fake_stream_factory):
        """Test an empty request sends only NOOP and ends on its echo."""
        stream = fake_stream_factory(noop())
        result = Connection(stream).perform(Command.get_multi([]))

        assert result == {}
        assert bytes(stream.written) == encode_request(Opcode.NOOP)

    def test_duplicate_keys(self, fake_stream_factory):
        """Test duplicates are each requested but mapped once."""
        stream = fake_stream_factory(hit(b"a", b"1"), hit(b"a", b"1"), noop())
        result = Connection(stream).perform(Command.get_multi([b"a", b"a"]))

        assert result == {b"a": b"1"}
        assert len(stream.written) == 3 * HEADER_SIZE + 2

    def test_stops_at_first_noop(self, fake_stream_factory):
        """Test bytes after the NOOP echo are left unread."""
        trailing = encode_response(Opcode.GET, value=b"later")
        stream = fake_stream_factory(noop(), trailing)
        Connection(stream).perform(Command.get_multi([b"x"]))

        assert stream.consumed == HEADER_SIZE

    def test_ignores_unrequested_keys(self, fake_stream_factory):
        """Test the result only ever holds requested keys."""
        stream = fake_stream_factory(hit(b"z", b"?"), hit(b"x", b"1"), noop())
        result = Connection(stream).perform(Command.get_multi([b"x"]))

        assert result == {b"x": b"1"}

    def test_ignores_failed_and_foreign_responses(self, fake_stream_factory):
        """Test unsuccessful GETKQ and other opcodes do not fill the result."""
        stream = fake_stream_factory(
            encode_response(Opcode.GETKQ, Status.INVALID_ARGUMENTS, key=b"x", value=b"err"),
            encode_response(Opcode.GET, value=b"stray"),
            noop(),
        )
        result = Connection(stream).perform(Command.get_multi([b"x"]))

        assert result == {b"x": None}

    def test_framing_error_returns_hits_so_far(self, fake_stream_factory):
        """Test a malformed frame mid-burst keeps the hits decoded before it."""
        bad = bytearray(noop())
        bad[0] = 0x80
        stream = fake_stream_factory(hit(b"a", b"1"), bytes(bad))
        result = Connection(stream).perform(Command.get_multi([b"a", b"b"]))

        assert result == {b"a": b"1", b"b": None}
        assert stream.closed

    def test_missing_noop_is_transport_error(self, fake_stream_factory):
        """Test a stream ending before the NOOP echo is an error."""
        stream = fake_stream_factory(hit(b"x", b"1"))
        with pytest.raises(TransportError):
            Connection(stream).perform(Command.get_multi([b"x"]))


class TestPerform:
    """Test command dispatch."""

    def test_bound_violation_writes_nothing(self, fake_stream_factory):
        """Test an oversized key fails before any byte is queued."""
        stream = fake_stream_factory(encode_response(Opcode.GET))
        with pytest.raises(ValueError):
            Connection(stream).perform(Command.get(b"k" * 0x10000))

        assert stream.pending == bytearray()
        assert stream.flushes == 0

    def test_bad_key_in_burst_writes_nothing(self, fake_stream_factory):
        """Test an oversized key late in a multi-get leaves nothing queued."""
        stream = fake_stream_factory(encode_response(Opcode.NOOP))
        with pytest.raises(ValueError):
            Connection(stream).perform(Command.get_multi([b"ok", b"k" * 0x10000]))

        assert stream.pending == bytearray()
        assert stream.flushes == 0
