"""HTTP/1.1 head parsing, chunked transfer framing and multipart form data."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HEAD_END = b"\r\n\r\n"
_MULTIPART_FORM_DATA = "multipart/form-data"
_BOUNDARY = "boundary="
_METHOD_LIMIT = 8
_UINT_MASK = 0xFFFFFFFF
_UNSIGNED = re.compile(r"\s*([+-]?)(\d+)")
_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_STATUS_DESC = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "Switch Proxy",
    307: "Temporary Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Request Entity Too Large",
    414: "Request URI Too Long",
    415: "Unsupported media type",
    416: "Requested Range Not Satisfiable",
    417: "Expectation Failed",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Unordered Collection",
    426: "Upgrade Required",
    449: "Retry With",
    451: "Unavailable For Legal Reasons",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    509: "Bandwidth Limit Exceeded",
    510: "Not Extended",
    600: "Unparseable Response Headers",
}


class HttpProtocolError(ValueError):
    """Raised when bytes break the HTTP framing rules."""


@dataclass
class MultipartFormData:
    """One part of a multipart/form-data body."""

    headers: dict[str, str] = field(default_factory=dict)
    data: bytes = b""

    def get_header(self, key: str) -> str | None:
        """Value of the part header ``key`` (case-sensitive)."""
        return self.headers.get(key)


@dataclass
class HttpFrame:
    """A decoded request or response head."""

    status_code: int = 0
    method: str = ""
    uri: str = ""
    query: str = ""
    path_length: int = 0
    headers: dict[str, str] = field(default_factory=dict)
    multipart_form_data_boundary: str = ""
    multipart_form_data: list[MultipartFormData] = field(default_factory=list)
    content_length: int = 0

    @property
    def path(self) -> str:
        """The URI up to the query string."""
        return self.uri[: self.path_length]

    def get_header(self, key: str) -> str | None:
        """Value of the header ``key`` (case-sensitive)."""
        return self.headers.get(key)

    def decode_multipart_form_data_list(
        self, buf: bytes, content_length: int | None = None
    ) -> HttpFrame:
        """Decode a whole multipart body and add its parts to this frame."""
        if content_length is None:
            content_length = self.content_length
        body = bytes(buf)[:content_length]
        parts: list[MultipartFormData] = []
        pos = 0
        while pos < content_length:
            try:
                result = decode_multipart_form_data(
                    self.multipart_form_data_boundary, body[pos:]
                )
            except HttpProtocolError as exc:
                raise HttpProtocolError(f"bad multipart body at offset {pos}: {exc}") from exc
            if result is None:
                raise HttpProtocolError(f"truncated multipart body at offset {pos}")
            part, used = result
            if part is not None:
                parts.append(part)
            pos += used
        self.multipart_form_data.extend(parts)
        return self


def status_desc(status_code: int) -> str:
    """Reason phrase for a status code; empty when unknown."""
    return _STATUS_DESC.get(status_code, "")


def simple_response(status_code: int, body: str | bytes = b"") -> bytes:
    """A minimal complete response carrying ``body``."""
    data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
    head = (
        f"HTTP/1.1 {status_code} {status_desc(status_code)}\r\n"
        "Access-Control-Allow-Origin: *\r\n"
        f"Content-Length:{len(data)}\r\n"
        "\r\n"
    )
    return head.encode("latin-1") + data


def _parse_headers(text: str) -> dict[str, str]:
    """Parse header lines up to the blank line; later duplicates win."""
    headers: dict[str, str] = {}
    pos = 0
    while not text.startswith("\r\n", pos):
        end = text.find("\r", pos)
        if end < 0:
            break
        line = text[pos:end]
        pos = end + 2
        key_end = next((i for i, c in enumerate(line) if c in " :"), len(line))
        key = line[:key_end]
        value_start = key_end + 1
        while value_start < len(line) and line[value_start] in " :":
            value_start += 1
        value = line[value_start:]
        if key and value:
            headers.pop(key, None)
            headers[key] = value
    return headers


def _set_uri(frame: HttpFrame, token: str) -> None:
    query_at = token.find("?")
    frag_at = token.find("#")
    if query_at < 0:
        frame.uri = token
        frame.query = ""
        frame.path_length = len(token)
        return
    frame.path_length = query_at
    frame.uri = token[:frag_at] if frag_at >= 0 else token
    if frag_at > query_at:
        frame.query = token[query_at + 1:frag_at]
    else:
        frame.query = token[query_at + 1:]


def _parse_request_line(frame: HttpFrame, line: str) -> None:
    start = 0
    for i, c in enumerate(line):
        if c != " ":
            continue
        token = line[start:i]
        if not frame.method:
            if len(token) >= _METHOD_LIMIT:
                raise HttpProtocolError(f"method too long: {token!r}")
            frame.method = token
        else:
            _set_uri(frame, token)
        start = i + 1


def _parse_status_line(frame: HttpFrame, line: str) -> None:
    space = line.find(" ")
    if space < 0:
        raise HttpProtocolError("status line has no status code")
    rest = line[space + 1:]
    end = rest.find(" ")
    if end < 0:
        raise HttpProtocolError("status line has no reason phrase")
    code = rest[:end]
    if any(c not in _DIGITS for c in code):
        raise HttpProtocolError(f"bad status code {code!r}")
    frame.status_code = int(code) if code else 0


def _save_special_headers(frame: HttpFrame) -> None:
    content_type = frame.headers.get("Content-Type")
    if content_type is not None:
        at = content_type.find(_MULTIPART_FORM_DATA)
        if at >= 0:
            rest = content_type[at + len(_MULTIPART_FORM_DATA):]
            b_at = rest.find(_BOUNDARY)
            if b_at < 0:
                raise HttpProtocolError("multipart/form-data without boundary")
            frame.multipart_form_data_boundary = rest[b_at + len(_BOUNDARY):]
    content_length = frame.headers.get("Content-Length")
    if content_length is not None:
        m = _UNSIGNED.match(content_length)
        if m is None:
            raise HttpProtocolError(f"bad Content-Length {content_length!r}")
        value = int(m.group(2))
        if m.group(1) == "-":
            value = -value
        frame.content_length = value & _UINT_MASK


def decode_header(buf: bytes) -> tuple[HttpFrame, int] | None:
    """Decode a request or response head.

    Returns the frame and the number of bytes the head took, or ``None``
    when the blank line ending the head has not arrived yet.
    """
    data = bytes(buf)
    end = data.find(_HEAD_END)
    if end < 0:
        return None
    text = data[: end + 4].decode("latin-1")
    first_end = text.find("\r")
    frame = HttpFrame()
    if not data.startswith(b"HTTP"):
        _parse_request_line(frame, text[:first_end])
    else:
        _parse_status_line(frame, text[:first_end])
    frame.headers = _parse_headers(text[first_end + 2:])
    _save_special_headers(frame)
    return frame, end + 4


def decode_chunked(buf: bytes) -> tuple[bytes, int] | None:
    """Decode one chunk; return its data and the bytes it took, or ``None``."""
    data = bytes(buf)
    line_end = data.find(b"\r\n")
    if line_end < 0:
        return None
    size_text = data[:line_end]
    if any(b not in _HEX_DIGITS for b in size_text):
        raise HttpProtocolError(f"bad chunk size {size_text!r}")
    size = int(size_text, 16) if size_text else 0
    total = line_end + 2 + size + 2
    if total > len(data):
        return None
    return data[line_end + 2:line_end + 2 + size], total


def encode_chunked(datalen: int) -> bytes:
    """The size line that precedes a chunk of ``datalen`` bytes."""
    if not 0 <= datalen <= _UINT_MASK:
        raise ValueError(f"chunk length out of range: {datalen}")
    return f"{datalen:x}\r\n".encode("ascii")


def decode_multipart_form_data(
    boundary: str | bytes, buf: bytes
) -> tuple[MultipartFormData | None, int] | None:
    """Decode one part of a multipart body.

    Returns the part (``None`` for the closing delimiter or an empty part)
    with the number of bytes consumed, or ``None`` if more bytes are needed.
    """
    if not boundary:
        raise HttpProtocolError("empty boundary")
    bnd = boundary.encode("latin-1") if isinstance(boundary, str) else bytes(boundary)
    blen = len(bnd)
    data = bytes(buf)
    n = len(data)
    if n < 6 + blen:
        return None
    if not data.startswith(b"--"):
        raise HttpProtocolError("part does not start with '--'")
    s = 2 + blen
    if data.startswith(b"\r\n", s):
        e = data.find(_HEAD_END, s)
        if e < 0:
            return None
        headers: dict[str, str] | None = None
        if e != s and b":" in data[s + 2:e]:
            headers = _parse_headers(data[s + 2:e + 4].decode("latin-1"))
        data_start = e + 4
        search = data_start
        while True:
            e = data.find(b"\r\n--", search)
            if e < 0:
                return None
            if n - e < 4 + blen:
                return None
            if data[e + 4:e + 4 + blen] == bnd:
                break
            search = e + 4
        if n - e < 8 + blen:
            return None
        payload = data[data_start:e]
        part = None
        if payload or headers is not None:
            part = MultipartFormData(headers or {}, payload)
        if data[e + 4 + blen:e + 8 + blen] == b"--\r\n":
            return part, e + 8 + blen
        return part, e + 2
    if data.startswith(b"--", s):
        if data[s + 2:s + 4] != b"\r\n":
            raise HttpProtocolError("closing delimiter not followed by CRLF")
        return None, s + 4
    raise HttpProtocolError("boundary not followed by CRLF or '--'")