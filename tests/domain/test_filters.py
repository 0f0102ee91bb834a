"""Tests for the filter grammar parser."""

from __future__ import annotations

from datetime import datetime

import pytest

from entityctl.domain.errors import MalformedFilter
from entityctl.domain.filters import FilterCondition, parse_condition, parse_filters
from entityctl.domain.types import FilterOperator


class TestParseFilters:
    def test_empty_input(self) -> None:
        assert parse_filters("") == []
        assert parse_filters(None) == []
        assert parse_filters("   ") == []

    def test_preserves_input_order(self) -> None:
        conditions = parse_filters("price:gte10;title:lkdesk;active:true")
        assert [c.field for c in conditions] == ["price", "title", "active"]
        assert [c.operator for c in conditions] == [
            FilterOperator.GREATER_THAN_EQUAL,
            FilterOperator.LIKE,
            FilterOperator.IS_TRUE,
        ]

    @pytest.mark.parametrize("search", ["price:gt1;", "price:gt1;;title:eqx", ";price:gt1"])
    def test_empty_fragment_rejected(self, search: str) -> None:
        with pytest.raises(MalformedFilter) as exc_info:
            parse_filters(search)
        assert exc_info.value.fragment == ""

    def test_trims_fragments(self) -> None:
        (condition,) = parse_filters("  price:lt5  ")
        assert condition.field == "price"
        assert condition.value == 5

    def test_deterministic(self) -> None:
        assert parse_filters("a:in[1,2];b:swx") == parse_filters("a:in[1,2];b:swx")


class TestOperatorResolution:
    @pytest.mark.parametrize(
        ("fragment", "operator", "value"),
        [
            ("price:gte10", FilterOperator.GREATER_THAN_EQUAL, 10),
            ("price:lte10", FilterOperator.LESS_THAN_EQUAL, 10),
            ("price:gt10", FilterOperator.GREATER_THAN, 10),
            ("price:lt10", FilterOperator.LESS_THAN, 10),
            ("title:swAb", FilterOperator.STARTS_WITH, "Ab"),
            ("title:ewAb", FilterOperator.ENDS_WITH, "Ab"),
            ("title:neAb", FilterOperator.NOT_EQUALS, "Ab"),
            ("title:lkAb", FilterOperator.LIKE, "Ab"),
            ("title:eqAb", FilterOperator.EQUALS, "Ab"),
        ],
    )
    def test_prefix_operators(self, fragment: str, operator: FilterOperator, value: object) -> None:
        condition = parse_condition(fragment)
        assert condition.operator == operator
        assert condition.value == value

    def test_gte_wins_over_gt(self) -> None:
        assert parse_condition("price:gte5").operator == FilterOperator.GREATER_THAN_EQUAL

    def test_missing_operator_defaults_to_eq(self) -> None:
        condition = parse_condition("title:hello")
        assert condition.operator == FilterOperator.EQUALS
        assert condition.value == "hello"

    def test_first_prefix_match_wins(self) -> None:
        # "newyork" starts with the ne token.
        condition = parse_condition("city:newyork")
        assert condition.operator == FilterOperator.NOT_EQUALS
        assert condition.value == "wyork"

    @pytest.mark.parametrize(
        ("segment", "operator", "value"),
        [
            ("true", FilterOperator.IS_TRUE, True),
            ("false", FilterOperator.IS_FALSE, False),
            ("null", FilterOperator.IS_NULL, None),
            ("notnull", FilterOperator.IS_NOT_NULL, None),
        ],
    )
    def test_whole_segment_literals(
        self, segment: str, operator: FilterOperator, value: object
    ) -> None:
        condition = parse_condition(f"flag:{segment}")
        assert condition.operator == operator
        assert condition.value == value

    def test_literal_only_when_whole_segment(self) -> None:
        condition = parse_condition("flag:nullable")
        assert condition.operator == FilterOperator.EQUALS
        assert condition.value == "nullable"

    def test_in_list(self) -> None:
        condition = parse_condition("status:in[active, pending ,42]")
        assert condition.operator == FilterOperator.IN
        assert condition.value == ["active", "pending", 42]
        assert condition.raw == ("active", "pending", "42")

    def test_nin_list(self) -> None:
        condition = parse_condition("status:nin[a,b]")
        assert condition.operator == FilterOperator.NOT_IN
        assert condition.value == ["a", "b"]

    def test_unclosed_list_falls_back_to_eq(self) -> None:
        condition = parse_condition("status:in[a,b")
        assert condition.operator == FilterOperator.EQUALS
        assert condition.value == "in[a,b"


class TestValueCoercion:
    def test_integer(self) -> None:
        assert parse_condition("n:eq42").value == 42

    def test_float(self) -> None:
        assert parse_condition("n:gt2.5").value == 2.5

    def test_boolean_literal_case_insensitive(self) -> None:
        assert parse_condition("flag:eqTRUE").value is True
        assert parse_condition("flag:neFalse").value is False

    def test_iso_date(self) -> None:
        assert parse_condition("d:gte2024-03-01").value == datetime(2024, 3, 1)

    def test_raw_text_kept(self) -> None:
        condition = parse_condition("title:eq00123")
        assert condition.value == 123
        assert condition.raw == "00123"

    def test_empty_value_after_operator(self) -> None:
        condition = parse_condition("title:eq")
        assert condition == FilterCondition("title", FilterOperator.EQUALS, "", "")


class TestMalformedFilters:
    @pytest.mark.parametrize("fragment", ["price", ":eq5", "price:"])
    def test_rejected(self, fragment: str) -> None:
        with pytest.raises(MalformedFilter) as exc_info:
            parse_filters(fragment)
        assert exc_info.value.code == "MALFORMED_FILTER"
        assert exc_info.value.fragment == fragment

    def test_one_bad_fragment_rejects_query(self) -> None:
        with pytest.raises(MalformedFilter):
            parse_filters("price:gt1;oops;title:eqx")
