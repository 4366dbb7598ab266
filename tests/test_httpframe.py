import pytest

from utilkit.httpframe import (
    HttpFrame,
    HttpProtocolError,
    decode_chunked,
    decode_header,
    decode_multipart_form_data,
    encode_chunked,
    simple_response,
    status_desc,
)

BOUNDARY = "XyZ"
BODY = (
    b"--XyZ\r\n"
    b'Content-Disposition: form-data; name="a"\r\n\r\n'
    b"value1\r\n"
    b"--XyZ\r\n"
    b'Content-Disposition: form-data; name="b"\r\n\r\n'
    b"value2\r\n"
    b"--XyZ--\r\n"
)


def test_status_desc_known_and_unknown():
    assert status_desc(200) == "OK"
    assert status_desc(404) == "Not Found"
    assert status_desc(600) == "Unparseable Response Headers"
    assert status_desc(999) == ""


def test_simple_response_bytes():
    assert simple_response(200, "hi") == (
        b"HTTP/1.1 200 OK\r\nAccess-Control-Allow-Origin: *\r\n"
        b"Content-Length:2\r\n\r\nhi"
    )


def test_simple_response_round_trips_through_decode_header():
    raw = simple_response(404, b"gone")
    frame, used = decode_header(raw)
    assert frame.status_code == 404
    assert frame.content_length == 4
    assert raw[used:] == b"gone"


def test_decode_request_head():
    raw = (
        b"GET /a/b?x=1#frag HTTP/1.1\r\nHost: example.com\r\n"
        b"Content-Length: 5\r\n\r\nhello"
    )
    frame, used = decode_header(raw)
    assert frame.method == "GET"
    assert frame.uri == "/a/b?x=1"
    assert frame.query == "x=1"
    assert frame.path == "/a/b"
    assert frame.get_header("Host") == "example.com"
    assert frame.get_header("host") is None
    assert frame.content_length == 5
    assert raw[used:] == b"hello"


def test_request_without_query():
    frame, _ = decode_header(b"POST /submit HTTP/1.1\r\n\r\n")
    assert frame.method == "POST"
    assert frame.uri == "/submit"
    assert frame.query == ""
    assert frame.path == "/submit"


def test_incomplete_head_returns_none():
    assert decode_header(b"GET / HTTP/1.1\r\nHost: example.com\r\n") is None


def test_method_too_long_raises():
    with pytest.raises(HttpProtocolError):
        decode_header(b"VERYLONGMETHOD / HTTP/1.1\r\n\r\n")


def test_bad_status_code_raises():
    with pytest.raises(HttpProtocolError):
        decode_header(b"HTTP/1.1 4x4 Bad\r\n\r\n")


def test_later_duplicate_header_wins():
    frame, _ = decode_header(b"GET / HTTP/1.1\r\nX-A: first\r\nX-A: second\r\n\r\n")
    assert frame.get_header("X-A") == "second"


def test_multipart_content_type_without_boundary_raises():
    with pytest.raises(HttpProtocolError):
        decode_header(
            b"POST / HTTP/1.1\r\nContent-Type: multipart/form-data\r\n\r\n"
        )


def test_bad_content_length_raises():
    with pytest.raises(HttpProtocolError):
        decode_header(b"GET / HTTP/1.1\r\nContent-Length: abc\r\n\r\n")


def test_decode_chunked():
    assert decode_chunked(b"5\r\nhello\r\n") == (b"hello", 10)
    assert decode_chunked(b"5\r\nhel") is None
    assert decode_chunked(b"5") is None


def test_decode_chunked_bad_size_raises():
    with pytest.raises(HttpProtocolError):
        decode_chunked(b"5z\r\nhello\r\n")


def test_encode_chunked_round_trip():
    payload = bytes(range(200)) + bytes(100)
    line = encode_chunked(len(payload))
    assert line == b"12c\r\n"
    data, used = decode_chunked(line + payload + b"\r\n")
    assert data == payload
    assert used == len(line) + len(payload) + 2


def test_encode_chunked_rejects_negative():
    with pytest.raises(ValueError):
        encode_chunked(-1)


def test_decode_single_part_then_rest():
    part, used = decode_multipart_form_data(BOUNDARY, BODY)
    assert part.data == b"value1"
    assert part.get_header("Content-Disposition") == 'form-data; name="a"'
    assert BODY[used:].startswith(b"--XyZ\r\n")
    part2, used2 = decode_multipart_form_data(BOUNDARY, BODY[used:])
    assert part2.data == b"value2"
    assert used + used2 == len(BODY)


def test_closing_delimiter_only():
    assert decode_multipart_form_data(BOUNDARY, b"--XyZ--\r\n") == (None, 9)


def test_multipart_incomplete_returns_none():
    assert decode_multipart_form_data(BOUNDARY, BODY[:30]) is None


def test_multipart_errors():
    with pytest.raises(HttpProtocolError):
        decode_multipart_form_data("", BODY)
    with pytest.raises(HttpProtocolError):
        decode_multipart_form_data(BOUNDARY, b"xxXyZ\r\n\r\n\r\n")
    with pytest.raises(HttpProtocolError):
        decode_multipart_form_data(BOUNDARY, b"--XyZ--xxxx")


def test_decode_multipart_list_from_frame():
    head = (
        b"POST /upload HTTP/1.1\r\n"
        b"Content-Type: multipart/form-data; boundary=XyZ\r\n"
        b"Content-Length: " + str(len(BODY)).encode() + b"\r\n\r\n"
    )
    frame, used = decode_header(head + BODY)
    assert frame.multipart_form_data_boundary == BOUNDARY
    assert frame.content_length == len(BODY)
    result = frame.decode_multipart_form_data_list((head + BODY)[used:], frame.content_length)
    assert result is frame
    assert [p.data for p in frame.multipart_form_data] == [b"value1", b"value2"]


def test_decode_multipart_list_truncated_raises():
    frame = HttpFrame(multipart_form_data_boundary=BOUNDARY)
    with pytest.raises(HttpProtocolError):
        frame.decode_multipart_form_data_list(BODY[:-4], len(BODY))
    assert frame.multipart_form_data == []