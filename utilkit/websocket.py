"""WebSocket handshake helpers and frame encoding/decoding."""

from __future__ import annotations

import base64
import hashlib
import struct
from dataclasses import dataclass
from enum import IntEnum

_MAGIC_KEY = b"258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
_KEY_HEADER = b"Sec-WebSocket-Key:"
_PROTOCOL_HEADER = b"Sec-WebSocket-Protocol:"
_RESPONSE_HEAD = (
    b"HTTP/1.1 101 Switching Protocols\r\n"
    b"Upgrade: websocket\r\n"
    b"Connection: Upgrade\r\n"
    b"Sec-WebSocket-Accept: "
)


class FrameType(IntEnum):
    """Frame opcodes."""

    CONTINUE = 0
    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


class WebSocketProtocolError(ValueError):
    """Raised on a malformed handshake."""


@dataclass(frozen=True)
class HandshakeRequest:
    """Fields taken from a client handshake."""

    sec_key: bytes
    sec_protocol: bytes | None
    consumed: int


@dataclass(frozen=True)
class Frame:
    """A decoded frame with its payload already unmasked."""

    is_fin: bool
    frame_type: int
    payload: bytes
    consumed: int


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def compute_sec_accept(sec_key: str | bytes) -> str:
    """Compute the Sec-WebSocket-Accept value for a client key."""
    digest = hashlib.sha1(_as_bytes(sec_key) + _MAGIC_KEY).digest()
    return base64.b64encode(digest).decode("ascii")


def _header_value(data: bytes, end: int, name: bytes) -> bytes | None:
    start = data.find(name, 0, end)
    if start < 0:
        return None
    start += len(name)
    while start < end and data[start] <= 32:
        start += 1
    if start >= end:
        return None
    stop = data.find(b"\r", start, end + 1)
    return data[start:stop]


def decode_handshake_request(data: bytes) -> HandshakeRequest | None:
    """Parse a client handshake; ``None`` if the headers are not complete yet."""
    data = bytes(data)
    end = data.find(b"\r\n\r\n")
    if end < 0:
        return None
    sec_key = _header_value(data, end, _KEY_HEADER)
    if sec_key is None:
        raise WebSocketProtocolError("missing Sec-WebSocket-Key header")
    sec_protocol = _header_value(data, end, _PROTOCOL_HEADER)
    return HandshakeRequest(sec_key, sec_protocol, end + 4)


def encode_handshake_response(
    sec_accept: str | bytes, sec_protocol: str | bytes | None = None
) -> bytes:
    """Build the server's 101 response."""
    parts = [_RESPONSE_HEAD, _as_bytes(sec_accept)]
    if sec_protocol:
        parts += [b"\r\nSec-WebSocket-Protocol: ", _as_bytes(sec_protocol)]
    parts.append(b"\r\n\r\n")
    return b"".join(parts)


def decode_frame(buf: bytes) -> Frame | None:
    """Decode one frame from ``buf``; ``None`` if more bytes are needed."""
    buf = bytes(buf)
    if len(buf) < 2:
        return None
    is_fin = bool(buf[0] >> 7)
    opcode = buf[0] & 0x0F
    mask_len = 4 if buf[1] & 0x80 else 0
    payload_len = buf[1] & 0x7F
    ext_len = {126: 2, 127: 8}.get(payload_len, 0)
    head = 2 + ext_len + mask_len
    if len(buf) < head:
        return None
    if ext_len == 2:
        (payload_len,) = struct.unpack_from(">H", buf, 2)
    elif ext_len == 8:
        (payload_len,) = struct.unpack_from(">Q", buf, 2)
    total = head + payload_len
    if len(buf) < total:
        return None
    payload = buf[head:total]
    if mask_len:
        mask = buf[2 + ext_len:head]
        payload = bytes(b ^ mask[i % 4] for i, b in enumerate(payload))
    try:
        frame_type: int = FrameType(opcode)
    except ValueError:
        frame_type = opcode
    return Frame(is_fin, frame_type, payload, total)


def encode_head_length(datalen: int) -> int:
    """Size of the header for a payload of ``datalen`` bytes."""
    if datalen < 126:
        return 2
    if datalen <= 0xFFFF:
        return 4
    return 10


def encode_frame_header(is_fin: bool, prev_is_fin: bool, frame_type: int, datalen: int) -> bytes:
    """Build an unmasked frame header."""
    first = int(frame_type) if prev_is_fin else int(FrameType.CONTINUE)
    if is_fin:
        first |= 0x80
    if datalen < 126:
        return bytes([first, datalen])
    if datalen <= 0xFFFF:
        return struct.pack(">BBH", first, 126, datalen)
    return struct.pack(">BBQ", first, 127, datalen)