"""Incremental reader that turns a RESP byte stream into replies."""

from __future__ import annotations

import math
import re

from .resp_reply import (
    TYPE_BYTES,
    RedisReply,
    ReplyType,
    RespProtocolError,
    describe_type_byte,
    parse_strict_int,
)

_COMPACT_THRESHOLD = 1024
_MAX_DOUBLE_TEXT = 326
_C_SPACE = " \t\n\v\f\r"
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEXADECIMAL = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
)

_BULK_TYPES = (ReplyType.STRING, ReplyType.VERB)
_AGGREGATE_TYPES = (ReplyType.ARRAY, ReplyType.MAP, ReplyType.SET, ReplyType.PUSH)


def _parse_double_text(text: str) -> float | None:
    body = text.lstrip(_C_SPACE)
    if _DECIMAL.fullmatch(body):
        return float(body)
    if _HEXADECIMAL.fullmatch(body):
        try:
            return float.fromhex(body)
        except OverflowError:
            return None
    return None


class RedisReplyReader:
    """Buffers bytes fed to it and hands out complete replies.

    Partial aggregates are remembered between calls, so bytes may arrive in
    any split. Once a protocol error has been seen the reader stays broken
    and every further call raises :class:`RespProtocolError`.
    """

    def __init__(self, max_elements: int = 0xFFFFFFFF) -> None:
        self.max_elements = max_elements
        self._buf = bytearray()
        self._pos = 0
        self._stack: list[tuple[RedisReply, int]] = []
        self._error: str | None = None

    @property
    def error(self) -> str | None:
        """The message of the error that broke the reader, if any."""
        return self._error

    def feed(self, data: bytes) -> None:
        """Append received bytes to the internal buffer."""
        if self._error is not None:
            raise RespProtocolError(self._error)
        if data:
            self._buf += data

    def pop_reply(self) -> RedisReply | None:
        """Return the next complete reply, or ``None`` if more bytes are needed."""
        if self._error is not None:
            raise RespProtocolError(self._error)
        while True:
            item = self._read_item()
            if item is None:
                self._compact()
                return None
            reply, count = item
            if count > 0:
                self._stack.append((reply, count))
                continue
            # Attach the finished item to its parents, closing any that fill up.
            while self._stack:
                parent, expected = self._stack[-1]
                parent.elements.append(reply)
                if len(parent.elements) < expected:
                    break
                self._stack.pop()
                reply = parent
            else:
                self._compact()
                return reply

    # -- internals ----------------------------------------------------------

    def _compact(self) -> None:
        if self._pos >= _COMPACT_THRESHOLD:
            del self._buf[: self._pos]
            self._pos = 0

    def _fail(self, message: str) -> None:
        self._error = message
        self._buf = bytearray()
        self._pos = 0
        self._stack.clear()
        raise RespProtocolError(message)

    def _parse_length(self, line: bytes, message: str) -> int:
        try:
            return parse_strict_int(line)
        except RespProtocolError:
            self._fail(message)
            raise  # pragma: no cover - _fail always raises

    def _read_item(self) -> tuple[RedisReply, int] | None:
        buf, pos = self._buf, self._pos
        if pos >= len(buf):
            return None
        type_byte = buf[pos]
        rtype = TYPE_BYTES.get(type_byte)
        if rtype is None:
            self._fail(
                f"Protocol error, got {describe_type_byte(type_byte)} as reply type byte"
            )
        newline = buf.find(b"\r\n", pos + 1)
        if newline < 0:
            return None
        line = bytes(buf[pos + 1:newline])
        after_line = newline + 2

        if rtype in _BULK_TYPES:
            return self._read_bulk(rtype, line, after_line)
        if rtype in _AGGREGATE_TYPES:
            return self._read_aggregate(rtype, line, after_line)
        reply = self._read_line_item(rtype, line)
        self._pos = after_line
        return reply, 0

    def _read_bulk(
        self, rtype: ReplyType, line: bytes, start: int
    ) -> tuple[RedisReply, int] | None:
        length = self._parse_length(line, "Bad bulk string length")
        if length < -1:
            self._fail("Bulk string length out of range")
        if length == -1:
            self._pos = start
            return RedisReply(ReplyType.NIL), 0
        stop = start + length + 2
        if stop > len(self._buf):
            return None
        data = bytes(self._buf[start:start + length])
        if rtype is ReplyType.VERB:
            if length < 4 or data[3] != ord(":"):
                self._fail(
                    "Verbatim string 4 bytes of content type are "
                    "missing or incorrectly encoded."
                )
            reply = RedisReply(
                rtype, string=data[4:], vtype=data[:3].decode("latin-1")
            )
        else:
            reply = RedisReply(rtype, string=data)
        self._pos = stop
        return reply, 0

    def _read_aggregate(
        self, rtype: ReplyType, line: bytes, start: int
    ) -> tuple[RedisReply, int]:
        elements = self._parse_length(line, "Bad multi-bulk length")
        if elements < -1 or (self.max_elements > 0 and elements > self.max_elements):
            self._fail("Multi-bulk length out of range")
        self._pos = start
        if elements == -1:
            return RedisReply(ReplyType.NIL), 0
        if rtype is ReplyType.MAP:
            elements *= 2
        return RedisReply(rtype), elements

    def _read_line_item(self, rtype: ReplyType, line: bytes) -> RedisReply:
        if rtype is ReplyType.INTEGER:
            value = self._parse_length(line, "Bad integer value")
            return RedisReply(rtype, integer=value)
        if rtype is ReplyType.DOUBLE:
            return self._read_double(line)
        if rtype is ReplyType.NIL:
            if line:
                self._fail("Bad nil value")
            return RedisReply(rtype)
        if rtype is ReplyType.BOOL:
            if len(line) != 1 or line[0] not in b"tTfF\x00":
                self._fail("Bad bool value")
            return RedisReply(rtype, integer=int(line in (b"t", b"T")))
        if rtype is ReplyType.BIGNUM:
            body = line[1:] if line[:1] == b"-" else line
            if any(b < ord("0") or b > ord("9") for b in body):
                self._fail("Bad bignum value")
            return RedisReply(rtype, string=line)
        if b"\r" in line or b"\n" in line:
            self._fail("Bad simple string value")
        return RedisReply(rtype, string=line)

    def _read_double(self, line: bytes) -> RedisReply:
        if len(line) >= _MAX_DOUBLE_TEXT:
            self._fail("Double value is too large")
        text = line.decode("latin-1")
        lowered = text.lower()
        if lowered == "inf":
            value: float | None = math.inf
        elif lowered == "-inf":
            value = -math.inf
        else:
            value = _parse_double_text(text)
            if value is None or not math.isfinite(value):
                self._fail("Bad double value")
        return RedisReply(ReplyType.DOUBLE, string=line, dval=value)  # type: ignore[arg-type]