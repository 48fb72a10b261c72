import pytest

from http_mcp.core.urls import resolve_url, stringify_param, with_query


@pytest.mark.parametrize("trailing", ["", "/", "//"])
@pytest.mark.parametrize("leading", ["", "/", "//"])
def test_resolve_url_joins_with_single_slash(trailing, leading):
    assert resolve_url("http://h" + trailing, leading + "tools") == "http://h/tools"


def test_resolve_url_keeps_base_path():
    assert resolve_url("http://h/api/v1/", "prompts/explain") == "http://h/api/v1/prompts/explain"


def test_resolve_url_empty_relative_returns_base():
    assert resolve_url("http://h/", "") == "http://h/"


@pytest.mark.parametrize("value, expected", [
    ("plain", "plain"),
    (3, "3"),
    (2.5, "2.5"),
    (True, "true"),
    (False, "false"),
    (None, "null"),
    ({"a": [1, 2]}, '{"a":[1,2]}'),
])
def test_stringify_param(value, expected):
    assert stringify_param(value) == expected


def test_with_query_preserves_order_and_encodes():
    url = with_query("http://h/resources", {"uri": "file://readme.txt", "lang": "en us"})
    assert url == "http://h/resources?uri=file%3A%2F%2Freadme.txt&lang=en+us"


def test_with_query_without_params():
    assert with_query("http://h/prompts/x", {}) == "http://h/prompts/x"
    assert with_query("http://h/prompts/x", None) == "http://h/prompts/x"
