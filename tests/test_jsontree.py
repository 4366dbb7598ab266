import pytest

from utilkit.jsontree import (
    JsonNode,
    JsonParseError,
    NodeType,
    ValueType,
    new_root,
    new_root_array,
    parse,
    parse_file,
)


def test_round_trip_compact_document():
    text = '{"a":1,"b":"x","c":[1,2,{"d":true}],"e":{}}'
    root = parse(text)
    assert root.to_string() == text
    assert root.byte_size() == len(text)


def test_whitespace_is_dropped_on_output():
    compact = '{"a":1,"b":[1,2]}'
    spaced = '{ "a" : 1 ,\n "b" : [ 1 , 2 ] }'
    assert parse(spaced).to_string() == parse(compact).to_string() == compact


def test_trailing_whitespace_in_string_is_trimmed():
    node = parse('{"k":"v  "}').get_field("k")
    assert node.get_string() == "v"
    assert node.value_type is ValueType.STRING


def test_field_and_index_lookup():
    root = parse('{"x":[10,20,30]}')
    arr = root.get_field("x")
    assert arr.node_type is NodeType.ARRAY
    assert arr.child_count() == 3
    assert arr.get_index(1).get_integer() == 20
    assert arr.get_index(3) is None
    assert arr.get_index(-1) is None
    assert root.get_field("missing") is None


@pytest.mark.parametrize(
    "raw, expected",
    [("-17", -17), ("+8", 8), ("12abc", 12), ("true", 0)],
)
def test_integer_from_bare_text(raw, expected):
    node = parse("[" + raw + "]").get_index(0)
    assert node.value_type is ValueType.WEAK_STRING
    assert node.get_integer() == expected


def test_double_from_text():
    root = parse('[1.5,-2.5e2,"0.25"]')
    assert root.get_index(0).get_double() == 1.5
    assert root.get_index(1).get_double() == pytest.approx(-250.0)
    assert root.get_index(2).get_double() == 0.25


def test_double_node_truncates_to_integer():
    node = new_root_array().append_double(None, 2.75)
    assert node.get_integer() == 2
    assert node.get_string() is None


def test_container_has_no_scalar_value():
    root = parse('{"o":{"p":1}}')
    obj = root.get_field("o")
    assert obj.get_integer() == 0
    assert obj.get_double() == 0.0
    assert obj.get_string() is None


def test_builder_serialises():
    root = new_root()
    root.append_integer("n", 5)
    root.append_string("s", "hi")
    arr = root.append_array("arr")
    arr.append_double(None, 1.5)
    out = root.to_string()
    assert out == '{"n":5,"s":"hi","arr":[1.500000]}'
    assert root.byte_size() == len(out)
    again = parse(out)
    assert again.get_field("n").get_integer() == 5
    assert again.get_field("s").get_string() == "hi"
    assert again.get_field("arr").get_index(0).get_double() == 1.5


def test_append_name_rules():
    with pytest.raises(ValueError):
        new_root().append_integer(None, 1)
    with pytest.raises(ValueError):
        new_root().append_object("")
    with pytest.raises(ValueError):
        new_root_array().append_string("x", "y")
    value = new_root_array().append_integer(None, 1)
    with pytest.raises(ValueError):
        value.append_array(None)


def test_setting_value_on_container_raises():
    with pytest.raises(TypeError):
        new_root().set_integer(1)
    with pytest.raises(TypeError):
        new_root_array().set_string("x")


def test_set_value_changes_serialisation():
    root = parse('{"v":"x","w":[]}')
    node = root.get_field("v")
    node.set_integer(7)
    assert node.get_string() is None
    assert node.get_integer() == 7
    reparsed = parse(root.to_string())
    assert reparsed.get_field("v").get_integer() == 7
    assert reparsed.get_field("w").child_count() == 0
    node.set_string("hello")
    assert parse(root.to_string()).get_field("v").get_string() == "hello"


def test_detach_removes_member():
    root = parse('{"a":1,"b":2}')
    a = root.get_field("a")
    assert a.detach() is a
    assert a.parent is None
    assert root.child_count() == 1
    assert root.to_string() == parse('{"b":2}').to_string()
    assert root.get_field("a") is None


def test_append_moves_node_between_parents():
    first = parse('{"a":1}')
    second = new_root()
    moved = second.append(first.get_field("a"))
    assert moved.parent is second
    assert first.child_count() == 0
    assert second.get_field("a").get_integer() == 1


def test_escaped_quote_kept_raw():
    text = r'{"k":"a\"b"}'
    root = parse(text)
    assert root.get_field("k").get_string() == r"a\"b"
    assert root.to_string() == text


@pytest.mark.parametrize(
    "text",
    ["", "abc", '{"a":[1,2}', "{a:1}", '{"a" 1}', "[[1", '{"a":', "[:]", '["abc'],
)
def test_parse_errors(text):
    with pytest.raises(JsonParseError):
        parse(text)


def test_parse_bytes_matches_str():
    text = '{"a":[true,false],"b":"c"}'
    assert parse(text.encode("utf-8")).to_string() == parse(text).to_string()


def test_parse_file(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text('{"name":"demo","items":[3,4]}', encoding="utf-8")
    root = parse_file(path)
    assert root.get_field("name").get_string() == "demo"
    assert root.get_field("items").get_index(0).get_integer() == 3


def test_parse_empty_file_raises(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("", encoding="utf-8")
    with pytest.raises(JsonParseError):
        parse_file(path)


def test_byte_size_counts_utf8_bytes():
    root = new_root()
    root.append_string("k", "é")
    assert root.byte_size() == len(root.to_string().encode("utf-8"))
    assert root.byte_size() > len(root.to_string())


def test_empty_containers_round_trip():
    for text in ("{}", "[]", "[[],{}]"):
        root = parse(text)
        assert root.to_string() == text
        assert root.byte_size() == len(text)


def test_subtree_to_string_includes_name():
    root = parse('{"o":{"p":1}}')
    sub = root.get_field("o")
    assert sub.to_string() == '"o":' + parse('{"p":1}').to_string()
    assert isinstance(sub, JsonNode) and sub.byte_size() == len(sub.to_string())