"""
Unit tests for JSON path lookups
"""

import pytest

from plugins.tumblr.json_path import json_list, json_path, json_str

pytestmark = pytest.mark.unit

BODY = {
    "meta": {"status": 200},
    "response": {
        "posts": [
            {"id": 123, "type": "photo", "photos": [{"original_size": {"url": "http://x/1.jpg"}}]},
        ],
        "blog": {"name": "", "ask": False},
    }
}


class TestJsonPath:
    def test_walks_keys_and_indexes(self):
        assert json_path(BODY, "response", "posts", 0, "type") == "photo"
        assert json_path(BODY, "response", "posts", -1, "id") == 123

    def test_no_path_returns_data(self):
        assert json_path(BODY) is BODY

    @pytest.mark.parametrize("path", [
        ("missing",),
        ("response", "posts", 1),
        ("response", "posts", "0"),
        ("response", "blog", 0),
        ("meta", "status", "code"),
        ("response", "posts", True),
    ])
    def test_missing_or_mistyped_steps_return_none(self, path):
        assert json_path(BODY, *path) is None

    def test_none_input(self):
        assert json_path(None, "a") is None


class TestTypedLookups:
    def test_json_list(self):
        assert len(json_list(BODY, "response", "posts")) == 1
        assert json_list(BODY, "response", "blog") == []
        assert json_list(BODY, "nothing") == []

    def test_json_str(self):
        assert json_str(BODY, "response", "posts", 0, "type") == "photo"
        assert json_str(BODY, "response", "posts", 0, "id") == "123"

    def test_json_str_rejects_empty_and_booleans(self):
        assert json_str(BODY, "response", "blog", "name") is None
        assert json_str(BODY, "response", "blog", "ask") is None
        assert json_str(BODY, "response") is None
