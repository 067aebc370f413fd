"""Tests for queue path utilities."""

from functools import cmp_to_key

import pytest

from nestkit_queue import MissingIdentifierError, QueueUtils, get_record_id
from nestkit_queue.utils import copy_along_path, get_value, set_value


class TestGetValue:
    """Test dotted path lookups."""

    def test_nested_lookup(self, company_data):
        assert get_value(company_data, "0.employees.1.name") == "Ada"

    def test_segment_sequence(self, company_data):
        assert get_value(company_data, ["1", "name"]) == "Sales"

    def test_negative_index(self, company_data):
        assert get_value(company_data, "-1.name") == "Sales"

    @pytest.mark.parametrize("path", ["", "5", "0.missing", "0.name.first", "x"])
    def test_unresolved_paths_return_none(self, company_data, path):
        assert get_value(company_data, path) is None

    def test_integer_dict_keys(self):
        assert get_value({1: {"a": "b"}}, "1.a") == "b"


class TestSetValue:
    """Test in-place path assignment."""

    def test_creates_intermediate_mappings(self):
        assert set_value({}, "a.b.c", 1) == {"a": {"b": {"c": 1}}}

    def test_numeric_final_segment_on_dict(self):
        """Test a numeric last segment becomes a dict key, not a list index."""
        assert set_value({}, "items.0", "x") == {"items": {"0": "x"}}

    def test_existing_list(self):
        data = {"items": ["a", "b"]}
        set_value(data, "items.1", "B")
        assert data == {"items": ["a", "B"]}

    def test_empty_path_is_noop(self):
        data = {"a": 1}
        assert set_value(data, "", 2) == {"a": 1}


class TestCopyAlongPath:
    """Test copy-on-write path copying."""

    def test_copies_touched_containers_only(self, company_data):
        new_root, target = copy_along_path(company_data, ["0", "employees"])

        assert new_root is not company_data
        assert new_root[0] is not company_data[0]
        assert target is new_root[0]["employees"]
        assert target is not company_data[0]["employees"]
        assert new_root[1] is company_data[1]

    def test_unresolved_path(self, company_data):
        new_root, target = copy_along_path(company_data, ["0", "name"])
        assert target is None
        assert new_root == company_data


class TestQueueUtils:
    """Test the QueueUtils helpers."""

    def test_parse_and_create_path(self):
        assert QueueUtils.parse_path("0.employees.1") == ["0", "employees", "1"]
        assert QueueUtils.parse_path("") == []
        assert QueueUtils.create_path([0, "employees", 1]) == "0.employees.1"

    def test_deep_clone(self, company_data):
        clone = QueueUtils.deep_clone(company_data)
        clone[0]["employees"].append({"id": 12})

        assert len(company_data[0]["employees"]) == 2

    def test_get_value_at_path(self, company_data):
        assert QueueUtils.get_value_at_path(company_data, "1.employees.0.id") == 20

    def test_set_value_at_path_leaves_original(self):
        original = {"user": {"name": "Ada"}}
        updated = QueueUtils.set_value_at_path(original, "user.name", "Grace")

        assert updated == {"user": {"name": "Grace"}}
        assert original == {"user": {"name": "Ada"}}


class TestCompareValues:
    """Test the three-way comparison used for sorting."""

    def test_numbers_and_strings(self):
        assert QueueUtils.compare_values(1, 2) < 0
        assert QueueUtils.compare_values(2.5, 2) > 0
        assert QueueUtils.compare_values("b", "a") > 0
        assert QueueUtils.compare_values("a", "a") == 0

    def test_descending(self):
        assert QueueUtils.compare_values(1, 2, "desc") > 0

    def test_none_ordering(self):
        assert QueueUtils.compare_values(None, 1) < 0
        assert QueueUtils.compare_values(1, None) > 0
        assert QueueUtils.compare_values(None, 1, "desc") > 0
        assert QueueUtils.compare_values(None, None) == 0

    def test_mixed_types_compare_as_strings(self):
        assert QueueUtils.compare_values(10, "9") < 0
        assert QueueUtils.compare_values(True, "a") > 0

    def test_strings_ignore_case_first(self):
        assert QueueUtils.compare_values("A", "b") < 0
        assert QueueUtils.compare_values("a", "A") < 0
        assert QueueUtils.compare_values("B", "b", "desc") < 0
        assert sorted(
            ["b", "A", "a", "B"], key=cmp_to_key(QueueUtils.compare_values)
        ) == ["a", "A", "b", "B"]

    def test_uncomparable_same_type(self):
        assert QueueUtils.compare_values({"a": 1}, {"b": 1}) < 0


class TestGetRecordId:
    """Test identifier extraction."""

    def test_id_preferred(self):
        assert get_record_id({"id": 1, "key": "k"}) == 1

    def test_key_fallback(self):
        assert get_record_id({"key": "k"}) == "k"

    def test_falsy_id(self):
        assert get_record_id({"id": 0}) == 0

    def test_missing_identifier(self):
        with pytest.raises(MissingIdentifierError) as exc_info:
            get_record_id({"name": "x"})

        assert str(exc_info.value) == "Record must have an id or key property"
        assert exc_info.value.context == {"fields": ["name"]}
