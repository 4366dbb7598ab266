"""Reply objects and shared helpers for the RESP wire protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

_LLONG_MAX = (1 << 63) - 1
_LLONG_MIN = -(1 << 63)
_DIGITS = b"0123456789"


class ReplyType(IntEnum):
    """Kinds of reply a server can send."""

    STRING = 1
    ARRAY = 2
    INTEGER = 3
    NIL = 4
    STATUS = 5
    ERROR = 6
    DOUBLE = 7
    BOOL = 8
    MAP = 9
    SET = 10
    ATTR = 11
    PUSH = 12
    BIGNUM = 13
    VERB = 14


TYPE_BYTES: dict[int, ReplyType] = {
    ord("-"): ReplyType.ERROR,
    ord("+"): ReplyType.STATUS,
    ord(":"): ReplyType.INTEGER,
    ord(","): ReplyType.DOUBLE,
    ord("_"): ReplyType.NIL,
    ord("$"): ReplyType.STRING,
    ord("*"): ReplyType.ARRAY,
    ord("%"): ReplyType.MAP,
    ord("~"): ReplyType.SET,
    ord("#"): ReplyType.BOOL,
    ord("="): ReplyType.VERB,
    ord(">"): ReplyType.PUSH,
    ord("("): ReplyType.BIGNUM,
}
"""Map from the leading type byte of a reply to its kind."""


class RespProtocolError(ValueError):
    """Raised when the byte stream breaks the protocol."""


@dataclass
class RedisReply:
    """One decoded reply.

    ``string`` holds the payload of string-like replies (and the original
    text of a double); ``integer`` holds integers and booleans (0 or 1);
    ``dval`` holds doubles; ``elements`` holds the members of aggregates;
    ``vtype`` is the three-letter format of a verbatim string.
    """

    type: ReplyType
    string: bytes | None = None
    integer: int = 0
    dval: float = 0.0
    elements: list[RedisReply] = field(default_factory=list)
    vtype: str | None = None

    @property
    def is_aggregate(self) -> bool:
        """Whether this reply holds other replies."""
        return self.type in (ReplyType.ARRAY, ReplyType.MAP, ReplyType.SET, ReplyType.PUSH)


def parse_strict_int(data: bytes | str) -> int:
    """Parse a signed 64-bit integer written with no extra characters.

    No sign other than a leading ``-``, no spaces and no leading zeros are
    accepted; ``"0"`` is the only way to write zero.
    """
    raw = data.encode("ascii", "replace") if isinstance(data, str) else bytes(data)
    if not raw:
        raise RespProtocolError("empty integer")
    if raw == b"0":
        return 0
    negative = raw[0] == ord("-")
    body = raw[1:] if negative else raw
    if not body:
        raise RespProtocolError("sign without digits")
    if body[0] not in b"123456789":
        raise RespProtocolError(f"invalid integer {raw!r}")
    if any(b not in _DIGITS for b in body):
        raise RespProtocolError(f"invalid integer {raw!r}")
    value = int(body)
    if negative:
        value = -value
        if value < _LLONG_MIN:
            raise RespProtocolError(f"integer out of range {raw!r}")
    elif value > _LLONG_MAX:
        raise RespProtocolError(f"integer out of range {raw!r}")
    return value


_ESCAPES = {
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    0x07: "\\a",
    0x08: "\\b",
}


def describe_type_byte(byte: int | bytes) -> str:
    """A quoted, escaped rendering of one byte for error messages."""
    if isinstance(byte, (bytes, bytearray)):
        if len(byte) != 1:
            raise ValueError("expected exactly one byte")
        byte = byte[0]
    if not 0 <= byte <= 0xFF:
        raise ValueError("byte out of range")
    if byte in (ord("\\"), ord('"')):
        return f'"\\{chr(byte)}"'
    if byte in _ESCAPES:
        return f'"{_ESCAPES[byte]}"'
    if 0x20 <= byte <= 0x7E:
        return f'"{chr(byte)}"'
    return f'"\\x{byte:02x}"'