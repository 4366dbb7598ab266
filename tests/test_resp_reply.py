import pytest

from utilkit.resp_reply import (
    TYPE_BYTES,
    RedisReply,
    ReplyType,
    RespProtocolError,
    describe_type_byte,
    parse_strict_int,
)


@pytest.mark.parametrize("text", [b"0", b"7", b"123", b"-45", b"1000000"])
def test_parse_strict_int_round_trip(text):
    value = parse_strict_int(text)
    assert str(value).encode() == text


def test_parse_strict_int_limits():
    assert parse_strict_int(b"9223372036854775807") == (1 << 63) - 1
    assert parse_strict_int(b"-9223372036854775808") == -(1 << 63)


def test_parse_strict_int_accepts_str():
    assert parse_strict_int("-12") == -12


@pytest.mark.parametrize(
    "text",
    [
        b"",
        b"-",
        b"01",
        b"-0",
        b"+5",
        b" 1",
        b"1 ",
        b"12a",
        b"9223372036854775808",
        b"-9223372036854775809",
    ],
)
def test_parse_strict_int_rejects(text):
    with pytest.raises(RespProtocolError):
        parse_strict_int(text)


def test_protocol_error_is_value_error():
    with pytest.raises(ValueError):
        parse_strict_int(b"x")


def test_describe_printable():
    assert describe_type_byte(b"a") == '"a"'
    assert describe_type_byte(ord("!")) == '"!"'


def test_describe_escapes():
    assert describe_type_byte(b"\\") == '"\\\\"'
    assert describe_type_byte(b'"') == '"\\""'
    assert describe_type_byte(b"\n") == '"\\n"'
    assert describe_type_byte(b"\r") == '"\\r"'
    assert describe_type_byte(b"\t") == '"\\t"'


def test_describe_hex():
    assert describe_type_byte(0x01) == '"\\x01"'
    assert describe_type_byte(0xFF) == '"\\xff"'


def test_describe_rejects_bad_input():
    with pytest.raises(ValueError):
        describe_type_byte(b"ab")
    with pytest.raises(ValueError):
        describe_type_byte(300)


def test_type_bytes_cover_protocol():
    assert TYPE_BYTES[ord("+")] is ReplyType.STATUS
    assert TYPE_BYTES[ord("$")] is ReplyType.STRING
    assert TYPE_BYTES[ord("*")] is ReplyType.ARRAY
    assert TYPE_BYTES[ord("%")] is ReplyType.MAP
    assert len(TYPE_BYTES) == 13
    assert ReplyType.ATTR not in TYPE_BYTES.values()


def test_reply_defaults_and_aggregate():
    arr = RedisReply(ReplyType.ARRAY)
    assert arr.elements == []
    assert arr.is_aggregate
    arr.elements.append(RedisReply(ReplyType.INTEGER, integer=5))
    assert arr.elements[0].integer == 5
    assert not arr.elements[0].is_aggregate
    # each reply gets its own element list
    assert RedisReply(ReplyType.ARRAY).elements == []


def test_reply_equality():
    a = RedisReply(ReplyType.STRING, string=b"hi")
    b = RedisReply(ReplyType.STRING, string=b"hi")
    assert a == b
    assert a != RedisReply(ReplyType.STATUS, string=b"hi")