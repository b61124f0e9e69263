"""Tests for RouteParams variants."""

from __future__ import annotations

from typing import Optional

import pytest

from routing_composer.core.route_params import (
    EmptyRouteParams,
    MapRouteParams,
    ModelRouteParams,
    ParsedParams,
)
from routing_composer.exceptions import InvalidParamsError


class UserProfileParams(ModelRouteParams):
    path_fields = ("id",)

    id: str
    tab: Optional[str] = None


class SearchParams(ModelRouteParams):
    query: str
    page: int = 1
    exact: bool = False


class TestEmptyRouteParams:
    def test_singleton_has_no_params(self):
        params = EmptyRouteParams.instance
        assert params.to_path_params() == {}
        assert params.to_query_params() == {}
        assert params.to_map() == {}


class TestMapRouteParams:
    """Raw map parameters."""

    def test_maps_are_copied(self):
        source = {"id": "1"}
        params = MapRouteParams(source, {"tab": "posts"})
        source["id"] = "2"
        assert params.to_path_params() == {"id": "1"}
        params.to_path_params()["id"] = "3"
        assert params.path_params == {"id": "1"}

    def test_to_map_merges_query_over_path(self):
        params = MapRouteParams({"id": "1", "x": "path"}, {"x": "query"})
        assert params.to_map() == {"id": "1", "x": "query"}

    def test_parsed_returns_named_tuple(self):
        params = MapRouteParams({"id": "1"}, {"tab": "posts"})
        assert params.parsed() == ParsedParams({"id": "1"}, {"tab": "posts"})

    def test_equality(self):
        assert MapRouteParams({"id": "1"}) == MapRouteParams({"id": "1"}, {})
        assert MapRouteParams({"id": "1"}) != MapRouteParams({"id": "2"})


class TestModelRouteParams:
    """Typed parameters backed by pydantic."""

    def test_path_and_query_split(self):
        params = UserProfileParams(id="42", tab="posts")
        assert params.to_path_params() == {"id": "42"}
        assert params.to_query_params() == {"tab": "posts"}

    def test_none_values_are_omitted(self):
        params = UserProfileParams(id="42")
        assert params.to_query_params() == {}

    def test_values_are_stringified(self):
        params = SearchParams(query="cats", page=3, exact=True)
        assert params.to_query_params() == {"query": "cats", "page": "3", "exact": "true"}

    def test_from_maps_coerces_strings(self):
        params = SearchParams.from_maps(None, {"query": "cats", "page": "2"})
        assert params.page == 2

    def test_from_maps_reports_missing(self):
        with pytest.raises(InvalidParamsError) as exc_info:
            UserProfileParams.from_maps({}, {"tab": "posts"})
        assert exc_info.value.missing_params == ["id"]
        assert exc_info.value.invalid_params == []

    def test_from_maps_reports_invalid(self):
        with pytest.raises(InvalidParamsError) as exc_info:
            SearchParams.from_maps(None, {"query": "cats", "page": "two"})
        assert exc_info.value.invalid_params == ["page"]
        assert exc_info.value.cause is not None
