"""A lenient JSON tree: parse, inspect, build and serialise."""

from __future__ import annotations

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_DELIMS = re.compile(r'[{}\[\],":]')
_CTRL = "".join(chr(i) for i in range(33))
_DIGITS = "0123456789"


class NodeType(Enum):
    """Kind of a tree node."""

    UNKNOWN = 0
    VALUE = 1
    ARRAY = 2
    OBJECT = 3


class ValueType(Enum):
    """How a value node holds its value."""

    UNKNOWN = 0
    INTEGER = 1
    DOUBLE = 2
    STRING = 3
    WEAK_STRING = 4


class JsonParseError(ValueError):
    """Raised when text cannot be parsed into a tree."""


def _parse_integer_text(s: str) -> int:
    body = s[1:] if s[:1] in ("+", "-") else s
    digits = []
    for c in body:
        if c not in _DIGITS:
            break
        digits.append(c)
    v = int("".join(digits)) if digits else 0
    return -v if s[0] == "-" else v


def _parse_double_text(s: str) -> float:
    n = len(s)
    i = 1 if s[0] in ("+", "-") else 0
    v = 0.0
    dot_seen = False
    dot_num = 0
    e = 0
    e_sign = 0
    while i < n:
        c = s[i]
        if c == ".":
            if dot_seen:
                break
            dot_seen = True
            i += 1
            continue
        if c not in _DIGITS:
            if not e_sign and c in "eE":
                if i + 1 >= n:
                    break
                nxt = s[i + 1]
                if nxt == "-":
                    e_sign = -1
                    i += 2
                    continue
                if nxt == "+":
                    e_sign = 1
                    i += 2
                    continue
                if nxt in _DIGITS:
                    e_sign = 1
                    i += 1
                    continue
            break
        d = ord(c) - ord("0")
        if e_sign:
            e = e * 10 + d
        else:
            if dot_seen:
                dot_num += 1
            v = v * 10.0 + d
        i += 1
    if s[0] == "-":
        v = -v
    for _ in range(dot_num):
        v /= 10
    for _ in range(e if e_sign else 0):
        v = v * 10 if e_sign > 0 else v / 10
    return v


@dataclass(eq=False)
class JsonNode:
    """An object, an array or a value, with its optional member name."""

    node_type: NodeType
    name: str | None = None
    value_type: ValueType = ValueType.UNKNOWN
    value: int | float | str | None = None
    children: list[JsonNode] = field(default_factory=list)
    parent: JsonNode | None = field(default=None, repr=False)

    # -- lookup -------------------------------------------------------------

    def get_field(self, name: str) -> JsonNode | None:
        """First child whose member name equals ``name``."""
        return next((ch for ch in self.children if (ch.name or "") == name), None)

    def get_index(self, idx: int) -> JsonNode | None:
        """Child at position ``idx``, or ``None`` when out of range."""
        if idx < 0 or idx >= len(self.children):
            return None
        return self.children[idx]

    def child_count(self) -> int:
        """Number of direct children."""
        return len(self.children)

    # -- value access -------------------------------------------------------

    def get_integer(self) -> int:
        """The value as an integer; 0 when it has none."""
        if self.node_type is not NodeType.VALUE:
            return 0
        if self.value_type is ValueType.INTEGER:
            return int(self.value)  # type: ignore[arg-type]
        if self.value_type is ValueType.DOUBLE:
            d = float(self.value)  # type: ignore[arg-type]
            return int(d) if math.isfinite(d) else 0
        if not isinstance(self.value, str) or not self.value:
            return 0
        return _parse_integer_text(self.value)

    def get_double(self) -> float:
        """The value as a float; 0.0 when it holds no double or text."""
        if self.node_type is not NodeType.VALUE:
            return 0.0
        if self.value_type is ValueType.DOUBLE:
            return float(self.value)  # type: ignore[arg-type]
        if not isinstance(self.value, str) or not self.value:
            return 0.0
        return _parse_double_text(self.value)

    def get_string(self) -> str | None:
        """The text of a string value, quoted or bare; otherwise ``None``."""
        if self.value_type in (ValueType.STRING, ValueType.WEAK_STRING):
            return self.value  # type: ignore[return-value]
        return None

    def _require_value(self) -> None:
        if self.node_type is not NodeType.VALUE:
            raise TypeError(f"{self.node_type.name} node holds no value")

    def set_integer(self, v: int) -> JsonNode:
        """Store an integer value."""
        self._require_value()
        self.value = int(v)
        self.value_type = ValueType.INTEGER
        return self

    def set_double(self, v: float) -> JsonNode:
        """Store a floating-point value."""
        self._require_value()
        self.value = float(v)
        self.value_type = ValueType.DOUBLE
        return self

    def set_string(self, s: str) -> JsonNode:
        """Store a quoted string value."""
        self._require_value()
        self.value = str(s)
        self.value_type = ValueType.STRING
        return self

    # -- structure ----------------------------------------------------------

    def append(self, node: JsonNode) -> JsonNode:
        """Append ``node`` as the last child and return it."""
        if node.parent is not None:
            node.detach()
        self.children.append(node)
        node.parent = self
        return node

    def _new_child(self, node_type: NodeType, name: str | None) -> JsonNode:
        if self.node_type is NodeType.VALUE:
            raise ValueError("a value node cannot hold children")
        if self.node_type is NodeType.ARRAY and name:
            raise ValueError("array elements cannot be named")
        if self.node_type is NodeType.OBJECT and not name:
            raise ValueError("object members need a name")
        return JsonNode(node_type, name=name or None)

    def append_object(self, name: str | None) -> JsonNode:
        """Append a new empty object and return it."""
        return self.append(self._new_child(NodeType.OBJECT, name))

    def append_array(self, name: str | None) -> JsonNode:
        """Append a new empty array and return it."""
        return self.append(self._new_child(NodeType.ARRAY, name))

    def append_integer(self, name: str | None, v: int) -> JsonNode:
        """Append an integer value and return its node."""
        return self.append(self._new_child(NodeType.VALUE, name).set_integer(v))

    def append_double(self, name: str | None, v: float) -> JsonNode:
        """Append a floating-point value and return its node."""
        return self.append(self._new_child(NodeType.VALUE, name).set_double(v))

    def append_string(self, name: str | None, v: str) -> JsonNode:
        """Append a string value and return its node."""
        return self.append(self._new_child(NodeType.VALUE, name).set_string(v))

    def detach(self) -> JsonNode:
        """Remove this node from its parent."""
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        return self

    # -- output -------------------------------------------------------------

    def _walk(self) -> Iterator[JsonNode]:
        yield self
        for child in self.children:
            yield from child._walk()

    def _value_text(self) -> str:
        if self.value_type is ValueType.INTEGER:
            return str(self.value)
        if self.value_type is ValueType.DOUBLE:
            return f"{self.value:f}"
        if self.value_type is ValueType.STRING:
            return f'"{self.value}"'
        if self.value_type is ValueType.WEAK_STRING:
            return str(self.value)
        return ""

    def byte_size(self) -> int:
        """Number of bytes :meth:`to_string` produces when UTF-8 encoded."""
        total = 0
        for node in self._walk():
            named = len(node.name.encode("utf-8")) + 3 if node.name else 0
            if node.node_type in (NodeType.OBJECT, NodeType.ARRAY):
                total += 2 + max(len(node.children) - 1, 0) + named
            elif node.node_type is NodeType.VALUE:
                total += named + len(node._value_text().encode("utf-8"))
        return total

    def _render(self, out: list[str]) -> None:
        if self.name:
            out.append(f'"{self.name}":')
        if self.node_type in (NodeType.OBJECT, NodeType.ARRAY):
            is_obj = self.node_type is NodeType.OBJECT
            out.append("{" if is_obj else "[")
            for i, child in enumerate(self.children):
                if i:
                    out.append(",")
                child._render(out)
            out.append("}" if is_obj else "]")
        elif self.node_type is NodeType.VALUE:
            out.append(self._value_text())

    def to_string(self) -> str:
        """Serialise this node and its subtree compactly."""
        out: list[str] = []
        self._render(out)
        return "".join(out)


def new_root() -> JsonNode:
    """A new empty object."""
    return JsonNode(NodeType.OBJECT)


def new_root_array() -> JsonNode:
    """A new empty array."""
    return JsonNode(NodeType.ARRAY)


def _skip(text: str, pos: int) -> int:
    n = len(text)
    while pos < n and ord(text[pos]) <= 32:
        pos += 1
    return pos


def _find_delim(text: str, start: int) -> int:
    i = start
    while True:
        m = _DELIMS.search(text, i)
        if m is None:
            return -1
        j = m.start()
        if j > i and text[j - 1] == "\\":
            i = j + 1
            continue
        return j


def parse(s: str | bytes) -> JsonNode:
    """Parse text whose top level is an object or an array.

    Strings are kept as written, escapes included; bare tokens such as
    numbers and literals are kept as text until read.
    """
    text = bytes(s).decode("utf-8") if isinstance(s, (bytes, bytearray)) else s
    n = len(text)
    pos = _skip(text, 0)
    if pos >= n or text[pos] not in "{[":
        raise JsonParseError("document must start with '{' or '['")
    root = JsonNode(NodeType.OBJECT if text[pos] == "{" else NodeType.ARRAY)
    pos += 1
    node: JsonNode | None = root
    while node is not None:
        pos = _skip(text, pos)
        if pos >= n:
            if node.parent is not None:
                raise JsonParseError("unexpected end of document")
            break
        c = text[pos]
        if c == ",":
            pos += 1
            continue
        if c in "}]":
            expected = NodeType.OBJECT if c == "}" else NodeType.ARRAY
            if node.node_type is not expected:
                raise JsonParseError(f"unexpected {c!r} at offset {pos}")
            node = node.parent
            pos += 1
            continue
        name: str | None = None
        if node.node_type is NodeType.OBJECT:
            if c != '"':
                raise JsonParseError(f"expected member name at offset {pos}")
            end = _find_delim(text, pos + 1)
            if end < 0 or text[end] != '"':
                raise JsonParseError(f"unterminated member name at offset {pos}")
            name = text[pos + 1:end]
            pos = _skip(text, end + 1)
            if pos >= n or text[pos] != ":":
                raise JsonParseError(f"expected ':' at offset {pos}")
            pos = _skip(text, pos + 1)
            c = text[pos] if pos < n else ""
        if c == "{" or c == "[":
            child = JsonNode(NodeType.OBJECT if c == "{" else NodeType.ARRAY, name=name)
            node.append(child)
            node = child
            pos += 1
        elif c == '"':
            end = _find_delim(text, pos + 1)
            if end < 0 or text[end] != '"':
                raise JsonParseError(f"unterminated string at offset {pos}")
            child = JsonNode(
                NodeType.VALUE,
                name=name,
                value_type=ValueType.STRING,
                value=text[pos + 1:end].rstrip(_CTRL),
            )
            node.append(child)
            pos = end + 1
        else:
            end = _find_delim(text, pos)
            if end < 0:
                raise JsonParseError(f"unterminated value at offset {pos}")
            if end == pos:
                raise JsonParseError(f"unexpected {text[pos]!r} at offset {pos}")
            child = JsonNode(
                NodeType.VALUE,
                name=name,
                value_type=ValueType.WEAK_STRING,
                value=text[pos:end].rstrip(_CTRL),
            )
            node.append(child)
            pos = end
    return root


def parse_file(path: str | Path) -> JsonNode:
    """Parse the document stored at ``path``."""
    text = Path(path).read_text(encoding="utf-8")
    if not text:
        raise JsonParseError(f"{path}: empty file")
    return parse(text)