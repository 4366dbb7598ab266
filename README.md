# utilkit

Small, dependency-free building blocks for text and wire formats. Every
module works on strings and bytes you hand it; none of them opens files
other than the `parse_file` helpers, and none opens a socket.

## Modules

### `utilkit.xmltree`

A forgiving XML tree parser and printer.

- `parse(data)` parses a `str` or UTF-8 `bytes` document (a leading `<?...?>`
  declaration and `<!-- -->` comments between elements are skipped) and
  returns the root `XmlNode`. `parse_file(path)` does the same for a file.
  Both raise `XmlParseError` on malformed input.
- `XmlNode` has `name`, `content`, `attrs`, `children` and `parent`. Text
  between child elements becomes a child node without a name. Methods:
  `add`, `detach`, `add_attr`, `first_child`, `next_child`, `get_attr`,
  `to_string` and `byte_size` (UTF-8 length of `to_string()` plus one).
- `XmlAttr` has `name`, `value`, `node` and `detach()`.

Entities such as `&amp;` are kept as written, not decoded.

```python
from utilkit.xmltree import parse

root = parse('<config><item name="a">1</item></config>')
item = root.first_child("item")
print(item.get_attr("name").value)   # a
print(item.content)                  # 1
print(root.to_string())
```

### `utilkit.jsontree`

A lenient JSON tree that keeps values as written.

- `parse(s)` accepts text whose top level is an object or an array and
  returns a `JsonNode`; `parse_file(path)` reads a file. Both raise
  `JsonParseError`. Quoted strings are kept with their escapes as written
  (`ValueType.STRING`); bare tokens such as numbers, `true` or `null` are
  kept as text (`ValueType.WEAK_STRING`) until read.
- `new_root()` and `new_root_array()` start a new tree.
- `JsonNode` has `node_type` (`NodeType`), `name`, `value_type`
  (`ValueType`), `value`, `children` and `parent`. Lookup: `get_field`,
  `get_index`, `child_count`. Reading: `get_integer`, `get_double`,
  `get_string`. Writing: `set_integer`, `set_double`, `set_string`.
  Building: `append`, `append_object`, `append_array`, `append_integer`,
  `append_double`, `append_string`, `detach`. Output: `to_string` (compact,
  doubles written with six decimals) and `byte_size`.

```python
from utilkit.jsontree import new_root, parse

root = new_root()
root.append_integer("count", 3)
root.append_string("name", "demo")
print(root.to_string())   # {"count":3,"name":"demo"}

doc = parse('{"ratio": 2.5e1, "tags": ["x", "y"]}')
print(doc.get_field("ratio").get_double())                 # 25.0
print(doc.get_field("tags").get_index(1).get_string())     # y
```

### `utilkit.websocket`

Handshake helpers and frame encoding/decoding.

- `compute_sec_accept(sec_key)` returns the `Sec-WebSocket-Accept` value.
- `decode_handshake_request(data)` returns a `HandshakeRequest`
  (`sec_key`, `sec_protocol`, `consumed`), `None` while the header block is
  incomplete, and raises `WebSocketProtocolError` when the key header is
  missing.
- `encode_handshake_response(sec_accept, sec_protocol=None)` builds the
  `101 Switching Protocols` response.
- `decode_frame(buf)` returns a `Frame` (`is_fin`, `frame_type`, `payload`
  already unmasked, `consumed`) or `None` if more bytes are needed.
- `encode_head_length(datalen)` and
  `encode_frame_header(is_fin, prev_is_fin, frame_type, datalen)` build
  unmasked frame headers; `FrameType` names the opcodes.

```python
from utilkit.websocket import (
    compute_sec_accept, decode_handshake_request, encode_handshake_response,
)

raw = (b"GET /chat HTTP/1.1\r\n"
       b"Upgrade: websocket\r\n"
       b"Sec-WebSocket-Key: dGhlIHNhbXBsZSBub25jZQ==\r\n\r\n")
request = decode_handshake_request(raw)
accept = compute_sec_accept(request.sec_key)
response = encode_handshake_response(accept, request.sec_protocol)
```

### `utilkit.httpframe`

HTTP/1.1 head parsing, chunked framing and multipart form data.

- `decode_header(buf)` returns `(HttpFrame, consumed)` or `None` until the
  blank line arrives; raises `HttpProtocolError` on a bad start line or
  header. `HttpFrame` has `status_code`, `method`, `uri`, `query`, `path`,
  `headers`, `content_length`, `multipart_form_data_boundary`,
  `multipart_form_data`, `get_header(key)` and
  `decode_multipart_form_data_list(buf, content_length=None)`.
- `decode_chunked(buf)` returns `(data, consumed)` or `None`;
  `encode_chunked(datalen)` returns the size line.
- `decode_multipart_form_data(boundary, buf)` decodes one part into a
  `MultipartFormData` (`headers`, `data`, `get_header`).
- `status_desc(code)` gives the reason phrase; `simple_response(code, body)`
  builds a minimal complete response.

Header names are matched case-sensitively.

### `utilkit.resp_reply`, `utilkit.resp_reader`, `utilkit.resp_command`

The Redis serialization protocol (RESP2 and RESP3 reply types).

- `RedisReplyReader(max_elements=0xFFFFFFFF)`: `feed(data)` buffers bytes,
  `pop_reply()` returns the next complete `RedisReply` or `None`. After a
  protocol error the reader stays broken (`error` holds the message) and
  every call raises `RespProtocolError`.
- `RedisReply` has `type` (`ReplyType`), `string`, `integer`, `dval`,
  `elements`, `vtype` and `is_aggregate`. Map replies hold keys and values
  alternately in `elements`.
- `format_command(fmt, *args)` builds a request from a template split on
  spaces: `%s` and `%b` take text or bytes, `%%` is a literal percent, and
  printf integer and floating-point directives take numbers. It raises
  `CommandFormatError` for bad directives or missing arguments.
  `format_command_argv(argv)` builds a request from a list of arguments.
- `parse_strict_int` and `describe_type_byte` are the helpers the reader
  uses.

```python
from utilkit.resp_command import format_command
from utilkit.resp_reader import RedisReplyReader

cmd = format_command("SET %s %b", "key", b"value")
# b'*3\r\n$3\r\nSET\r\n$3\r\nkey\r\n$5\r\nvalue\r\n'

reader = RedisReplyReader()
reader.feed(b"*2\r\n:1\r\n+OK\r\n")
reply = reader.pop_reply()
print([e.integer if e.string is None else e.string for e in reply.elements])
# [1, b'OK']
```

## What it does not do

There is no networking here: no Redis client or connection handling, no
HTTP or WebSocket server, and no command-line program. Frame headers are
built unmasked, and JSON strings and XML text are not unescaped.

## Running the tests

```
pip install -e .[test]
pytest
```