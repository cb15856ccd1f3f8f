"""Tests for JSON recovery helpers."""

from onboardai.utils.json_utils import extract_json_object, salvage_json_object, try_parse_json


def test_try_parse_json_valid():
    assert try_parse_json('{"a": 1}') == (True, {"a": 1})


def test_try_parse_json_invalid():
    assert try_parse_json("not json") == (False, None)


def test_salvage_from_markdown_fence():
    text = 'Sure! Here is the script:\n```json\n{"projectName": "X", "scenes": []}\n```\nEnjoy.'
    ok, value = salvage_json_object(text)
    assert ok
    assert value == {"projectName": "X", "scenes": []}


def test_salvage_keeps_nested_braces():
    text = 'prefix {"a": {"b": [1, 2]}} suffix'
    assert extract_json_object(text) == '{"a": {"b": [1, 2]}}'
    assert salvage_json_object(text) == (True, {"a": {"b": [1, 2]}})


def test_salvage_without_braces():
    assert extract_json_object("no object here") is None
    assert salvage_json_object("no object here") == (False, None)


def test_salvage_unparseable_span():
    assert salvage_json_object("{ not: valid }") == (False, None)
