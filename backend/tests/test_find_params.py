"""
Tests for api/contracts/normalize.py

Every accepted shape of a param must collapse to the same canonical value.
"""

import json

import pytest

from api.contracts.normalize import (
    normalize_filter,
    normalize_find_params,
    normalize_populate,
    normalize_projection,
    normalize_sort,
)
from services.query.descriptor import (
    ASCENDING,
    DESCENDING,
    PopulateDirective,
    Projection,
    SortField,
)
from services.query.pagination import PaginationConfig
from utils.normalize import MalformedParameter


class TestFilter:

    @pytest.mark.parametrize("query", [
        {"name": "asd"},
        {"age": {"$gte": 18}, "$or": [{"name": "a"}, {"name": "b"}]},
        {},
    ])
    def test_object_and_json_string_are_identical(self, query):
        from_object = normalize_find_params({"query": query})
        from_string = normalize_find_params({"query": json.dumps(query)})
        assert from_object.filter == from_string.filter == query

    def test_query_wins_over_q(self):
        descriptor = normalize_find_params({"q": {"name": "q"}, "query": {"name": "query"}})
        assert descriptor.filter == {"name": "query"}

    def test_q_alias_used_alone(self):
        descriptor = normalize_find_params({"q": '{"name": "asd"}'})
        assert descriptor.filter == {"name": "asd"}

    def test_missing_filter_is_empty(self):
        assert normalize_find_params({}).filter == {}
        assert normalize_filter("") == {}

    def test_non_json_string_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_find_params({"query": "name=asd"})
        assert exc.value.field == "query"

    def test_json_array_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_filter('[{"name": "asd"}]')
        assert exc.value.field == "query"

    def test_filter_is_copied(self):
        raw = {"name": {"$in": ["a"]}}
        descriptor = normalize_find_params({"query": raw})
        raw["name"]["$in"].append("b")
        assert descriptor.filter == {"name": {"$in": ["a"]}}


class TestProjection:

    @pytest.mark.parametrize("value", [
        "name -_id",
        "name,-_id",
        ["name", "-_id"],
        {"name": 1, "_id": 0},
        '{"name": 1, "_id": 0}',
        '["name", "-_id"]',
    ])
    def test_all_shapes_agree(self, value):
        assert normalize_projection(value) == Projection(include=("name",), exclude=("_id",))

    def test_exclusion_only(self):
        assert normalize_projection("-age -name") == Projection(exclude=("age", "name"))

    def test_projection_wins_over_select(self):
        descriptor = normalize_find_params({"select": "age", "projection": "name"})
        assert descriptor.projection.include == ("name",)

    def test_select_alias_used_alone(self):
        descriptor = normalize_find_params({"select": "-age"})
        assert descriptor.projection.exclude == ("age",)

    def test_mixing_include_and_exclude_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_projection("name -age")
        assert exc.value.field == "projection"

    def test_bad_flag_rejected(self):
        with pytest.raises(MalformedParameter):
            normalize_projection({"name": "yes"})

    def test_number_rejected(self):
        with pytest.raises(MalformedParameter):
            normalize_projection(5)

    def test_bare_dash_rejected(self):
        with pytest.raises(MalformedParameter):
            normalize_projection("name -")


class TestSort:

    def test_string_tokens(self):
        assert normalize_sort("name -age") == (
            SortField(field="name", direction=ASCENDING),
            SortField(field="age", direction=DESCENDING),
        )

    @pytest.mark.parametrize("value", [
        {"name": 1, "age": -1},
        {"name": "asc", "age": "desc"},
        {"name": "ascending", "age": "descending"},
        '{"name": 1, "age": -1}',
        ["name", "-age"],
        [["name", 1], ["age", -1]],
    ])
    def test_all_shapes_agree(self, value):
        assert [(s.field, s.direction) for s in normalize_sort(value)] == [
            ("name", ASCENDING),
            ("age", DESCENDING),
        ]

    def test_first_occurrence_wins(self):
        assert normalize_sort("name -name") == (SortField(field="name", direction=ASCENDING),)

    def test_bad_direction_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_sort({"name": 2})
        assert exc.value.field == "sort"

    def test_operator_field_rejected(self):
        with pytest.raises(MalformedParameter):
            normalize_sort("$where")


class TestPopulate:

    def test_string(self):
        assert normalize_populate("cats owner") == (
            PopulateDirective(path="cats"),
            PopulateDirective(path="owner"),
        )

    def test_array_of_strings_and_objects(self):
        result = normalize_populate(["cats", {"path": "owner", "select": "name"}])
        assert result[0] == PopulateDirective(path="cats")
        assert result[1].path == "owner"
        assert result[1].select == Projection(include=("name",))

    def test_object_with_match(self):
        (directive,) = normalize_populate({"path": "cats", "match": '{"age": {"$gt": 2}}'})
        assert directive.match == {"age": {"$gt": 2}}

    def test_json_string(self):
        result = normalize_populate('[{"path": "cats"}, "owner"]')
        assert [d.path for d in result] == ["cats", "owner"]

    def test_object_without_path_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_populate({"select": "name"})
        assert exc.value.field == "populate"

    def test_duplicate_paths_collapse(self):
        assert [d.path for d in normalize_populate("cats cats")] == ["cats"]


class TestFindParams:

    def test_defaults(self):
        descriptor = normalize_find_params({}, pagination=PaginationConfig(default_limit=50))
        assert descriptor.skip == 0
        assert descriptor.limit == 50
        assert descriptor.wants_total_count is False
        assert descriptor.sort == ()
        assert descriptor.populate == ()
        assert descriptor.projection.is_empty

    def test_page_alias(self):
        descriptor = normalize_find_params({"p": "2", "pageSize": "5"})
        assert (descriptor.skip, descriptor.limit) == (5, 5)

    def test_page_wins_over_p(self):
        descriptor = normalize_find_params({"p": "3", "page": "2", "pageSize": "5"})
        assert descriptor.skip == 5

    def test_total_count_flag(self):
        assert normalize_find_params({"totalCount": "true"}).wants_total_count is True
        assert normalize_find_params({"totalCount": False}).wants_total_count is False

    def test_count_when_paginated(self):
        descriptor = normalize_find_params({"limit": "5"}, count_when_paginated=True)
        assert descriptor.wants_total_count is True
        descriptor = normalize_find_params({}, count_when_paginated=True)
        assert descriptor.wants_total_count is False

    def test_unknown_fields_ignored(self):
        descriptor = normalize_find_params({"foo": "bar", "query": {"a": 1}})
        assert descriptor.filter == {"a": 1}

    def test_descriptor_is_immutable(self):
        descriptor = normalize_find_params({})
        with pytest.raises(Exception):
            descriptor.skip = 10

    def test_negative_limit_rejected(self):
        with pytest.raises(MalformedParameter) as exc:
            normalize_find_params({"limit": "-1"})
        assert exc.value.field == "limit"
