import json

from toolengine.tools.sanitizer import (
    close_braces,
    convert_single_quotes,
    parse_lenient,
    quote_bare_keys,
    remove_trailing_commas,
    repair_json,
    strip_dangerous_keys,
)


def test_strip_dangerous_keys_at_every_depth():
    value = {
        "a": 1,
        "__proto__": {"polluted": True},
        "b": {"constructor": 2, "c": [{"prototype": 3, "d": 4}, "x"]},
        "__class__": "nope",
        "__dict__": {},
    }
    assert strip_dangerous_keys(value) == {"a": 1, "b": {"c": [{"d": 4}, "x"]}}


def test_strip_dangerous_keys_returns_new_containers():
    value = {"inner": {"__proto__": 1, "keep": 2}}
    cleaned = strip_dangerous_keys(value)
    assert cleaned == {"inner": {"keep": 2}}
    assert value == {"inner": {"__proto__": 1, "keep": 2}}


def test_strip_dangerous_keys_leaves_primitives():
    assert strip_dangerous_keys("constructor") == "constructor"
    assert strip_dangerous_keys(3) == 3
    assert strip_dangerous_keys(None) is None


def test_convert_single_quotes():
    assert convert_single_quotes("{'a': 'b'}") == '{"a": "b"}'


def test_convert_single_quotes_keeps_apostrophes():
    fixed = convert_single_quotes("{'text': 'it's fine'}")
    assert json.loads(fixed) == {"text": "it's fine"}


def test_remove_trailing_commas():
    assert remove_trailing_commas('{"a": [1, 2,], }') == '{"a": [1, 2]}'


def test_quote_bare_keys():
    fixed = quote_bare_keys('{tool: "calculate", parameters: {expression: "1+1"}}')
    assert json.loads(fixed) == {"tool": "calculate", "parameters": {"expression": "1+1"}}


def test_close_braces():
    assert close_braces('{"a": {"b": 1}') == '{"a": {"b": 1}}'
    assert close_braces('{"a": 1}') == '{"a": 1}'


def test_repair_json_combines_rules():
    raw = "{tool: 'calculate', parameters: {expression: '2*3',}"
    assert json.loads(repair_json(raw)) == {"tool": "calculate", "parameters": {"expression": "2*3"}}


def test_parse_lenient_strict_json():
    assert parse_lenient('{"a": [1, 2]}') == {"a": [1, 2]}


def test_parse_lenient_strips_dangerous_keys():
    assert parse_lenient('{"a": 1, "__proto__": {"admin": true}}') == {"a": 1}


def test_parse_lenient_returns_none_on_garbage():
    assert parse_lenient("this is not json") is None
    assert parse_lenient('{"a": }') is None
