"""Unit tests for panelforms.utilities.utils."""

import pytest

from panelforms.utilities.utils import data_get, data_has, data_set, humanize, slugify, to_snake


class TestNaming:

    @pytest.mark.parametrize("value,expected", [
        ("CustomerAddress", "customer_address"),
        ("HTTPSConnection", "https_connection"),
        ("already_snake", "already_snake"),
    ])
    def test_to_snake(self, value, expected):
        assert to_snake(value) == expected

    def test_slugify(self):
        assert slugify("Profile Details") == "profile-details"
        assert slugify("Über uns!") == "uber-uns"
        assert slugify("a_b c", separator="_") == "a_b_c"

    def test_humanize(self):
        assert humanize("first_name") == "First name"
        assert humanize("record.birthDate") == "Birth date"


class TestDottedPaths:

    def test_get(self):
        data = {"a": {"b": 1}, "items": [10, 20]}
        assert data_get(data, "a.b") == 1
        assert data_get(data, "items.1") == 20
        assert data_get(data, "items.5", "x") == "x"
        assert data_get(data, "a.c", "x") == "x"

    def test_get_attributes(self):
        class Obj:
            title = "t"
        assert data_get({"o": Obj()}, "o.title") == "t"

    def test_has_distinguishes_none(self):
        assert data_has({"a": None}, "a")
        assert not data_has({}, "a")

    def test_set_creates_intermediate_dicts(self):
        data = {"a": "scalar"}
        data_set(data, "a.b.c", 1)
        data_set(data, "x", 2)
        assert data == {"a": {"b": {"c": 1}}, "x": 2}
