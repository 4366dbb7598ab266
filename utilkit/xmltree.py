"""A small, forgiving XML tree parser and printer."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

_WS = frozenset(" \t\n\r")
_NAME_STOPS = _WS | {"/", ">"}
_ATTR_STOPS = _WS | {"=", "/", ">"}
_CLOSE_STOPS = _WS | {">"}


class XmlParseError(ValueError):
    """Raised when a document cannot be parsed."""


@dataclass(eq=False)
class XmlAttr:
    """A named attribute, optionally attached to a node."""

    name: str | None
    value: str | None = None
    node: XmlNode | None = field(default=None, repr=False)

    def detach(self) -> XmlAttr:
        """Remove the attribute from its node."""
        if self.node is not None:
            self.node.attrs.remove(self)
            self.node = None
        return self


def _prefix_match(stored: str | None, wanted: str) -> bool:
    return wanted.startswith(stored or "")


@dataclass(eq=False)
class XmlNode:
    """An element (with a name) or a text segment (without one)."""

    name: str | None = None
    content: str | None = None
    attrs: list[XmlAttr] = field(default_factory=list)
    children: list[XmlNode] = field(default_factory=list)
    parent: XmlNode | None = field(default=None, repr=False)

    def add(self, item: XmlNode) -> XmlNode:
        """Append ``item`` as the last child and return this node."""
        self.children.append(item)
        item.parent = self
        return self

    def detach(self) -> XmlNode:
        """Remove this node from its parent."""
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        return self

    def add_attr(self, attr: XmlAttr) -> XmlNode:
        """Put ``attr`` at the front of the attribute list."""
        self.attrs.insert(0, attr)
        attr.node = self
        return self

    def first_child(self, name: str) -> XmlNode | None:
        """First child element whose name matches ``name``."""
        return next(
            (ch for ch in self.children if ch.name and _prefix_match(ch.name, name)),
            None,
        )

    def next_child(self) -> XmlNode | None:
        """Next sibling element whose name matches this node's name."""
        if self.parent is None or not self.name:
            return None
        siblings = self.parent.children
        idx = next(i for i, ch in enumerate(siblings) if ch is self)
        return next(
            (ch for ch in siblings[idx + 1:] if ch.name and _prefix_match(ch.name, self.name)),
            None,
        )

    def get_attr(self, name: str) -> XmlAttr | None:
        """Attribute whose name matches ``name``."""
        return next((a for a in self.attrs if _prefix_match(a.name, name)), None)

    def _render(self, out: list[str]) -> None:
        if self.name:
            out.append("<" + self.name)
            for attr in self.attrs:
                out.append(f' {attr.name or ""}="{attr.value or ""}"')
            out.append(">")
        if self.children:
            for child in self.children:
                child._render(out)
        elif self.content:
            out.append(self.content)
        if self.name:
            out.append(f"</{self.name}>")

    def to_string(self) -> str:
        """Serialise this node and its subtree."""
        out: list[str] = []
        self._render(out)
        return "".join(out)

    def byte_size(self) -> int:
        """Bytes needed to hold the serialised text plus a terminator."""
        return len(self.to_string().encode("utf-8")) + 1


class _Parser:
    def __init__(self, text: str) -> None:
        self.s = text
        self.pos = 0

    def ch(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.s[i] if i < len(self.s) else ""

    def skip_ws(self) -> None:
        while self.ch() in _WS:
            self.pos += 1

    def skip_wsc(self) -> None:
        while True:
            c = self.ch()
            if c == "<":
                if not self.s.startswith("<!--", self.pos):
                    return
                end = self.s.find("-->", self.pos + 4)
                self.pos = len(self.s) if end < 0 else end + 3
            elif c in _WS:
                self.pos += 1
            else:
                return

    def skip_until(self, stops: frozenset[str]) -> bool:
        while True:
            c = self.ch()
            if c == "":
                return False
            if c in stops:
                return True
            self.pos += 1

    def skip_string(self, quote: str) -> bool:
        s, start = self.s, self.pos
        for i in range(start, len(s)):
            if s[i] != quote:
                continue
            backslashes = 0
            t = i
            while t > start and s[t - 1] == "\\":
                backslashes += 1
                t -= 1
            if backslashes % 2 == 0:
                self.pos = i
                return True
        return False

    def skip_hint(self) -> None:
        if not self.s.startswith("<?", self.pos):
            return
        i = self.pos + 2
        while not (self.s[i - 1] == "?" and i < len(self.s) and self.s[i] == ">"):
            if i >= len(self.s):
                self.pos = i
                return
            i += 1
        self.pos = i + 1

    def parse_node(self) -> XmlNode:
        s = self.s
        self.skip_wsc()
        if self.ch() != "<":
            raise XmlParseError(f"expected '<' at offset {self.pos}")
        node = XmlNode()
        self.pos += 1

        self.skip_ws()
        start = self.pos
        if not self.skip_until(_NAME_STOPS):
            raise XmlParseError("unterminated element name")
        node.name = s[start:self.pos] or None

        self.skip_ws()
        while self.ch() not in (">", "/"):
            name_start = self.pos
            if not self.skip_until(_ATTR_STOPS):
                raise XmlParseError("unterminated attribute")
            attr = XmlAttr(s[name_start:self.pos] or None)
            self.skip_ws()
            if self.ch() == "=":
                self.pos += 1
                self.skip_ws()
                quote = self.ch()
                if quote not in ('"', "'"):
                    raise XmlParseError(f"unquoted attribute value at offset {self.pos}")
                self.pos += 1
                value_start = self.pos
                if not self.skip_string(quote):
                    raise XmlParseError("unterminated attribute value")
                attr.value = s[value_start:self.pos] or None
                self.pos += 1
                self.skip_ws()
            node.add_attr(attr)

        if self.ch() == "/":
            if self.ch(1) != ">":
                raise XmlParseError(f"expected '/>' at offset {self.pos}")
            self.pos += 2
            return node

        self.pos += 1
        self.skip_wsc()
        if self.ch() == "":
            raise XmlParseError("unexpected end of document")

        content_start: int | None = None
        while self.pos < len(s):
            if self.ch() != "<":
                if content_start is None:
                    content_start = self.pos
                self.pos += 1
                continue
            tag_start = self.pos
            if self.ch(1) == "/":
                self.pos += 2
                self.skip_ws()
                end_name_start = self.pos
                if not self.skip_until(_CLOSE_STOPS):
                    raise XmlParseError("unterminated closing tag")
                if s[end_name_start:self.pos] != (node.name or ""):
                    raise XmlParseError(f"mismatched closing tag for {node.name!r}")
                if content_start is not None:
                    text = s[content_start:tag_start] or None
                    if node.children:
                        node.add(XmlNode(content=text))
                    else:
                        node.content = text
                self.pos += 1
                break
            if content_start is not None:
                node.add(XmlNode(content=s[content_start:self.pos] or None))
            node.add(self.parse_node())
            content_start = None
        return node


def parse(data: str | bytes) -> XmlNode:
    """Parse a document and return its root element."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    parser = _Parser(data)
    parser.skip_wsc()
    parser.skip_hint()
    parser.skip_wsc()
    return parser.parse_node()


def parse_file(path: str | Path) -> XmlNode:
    """Parse the document stored at ``path``."""
    text = Path(path).read_text(encoding="utf-8")
    if not text:
        raise XmlParseError(f"{path}: empty file")
    return parse(text)