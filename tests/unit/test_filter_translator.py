"""
Unit tests for the filter translator.
"""
import pytest

from internal.domain.errors import InvalidQueryError
from internal.domain.query import Condition, Operator
from internal.usecase.filter_translator import (
    build_text_search,
    coerce_scalar,
    parse_filter_key,
    translate_filters,
)


class TestParseFilterKey:
    """Tests for bracketed key parsing."""

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("price[gt]", ("price", Operator.GT)),
            ("price[gte]", ("price", Operator.GTE)),
            ("price[lt]", ("price", Operator.LT)),
            ("price[lte]", ("price", Operator.LTE)),
            ("category[in]", ("category", Operator.IN)),
            ("brand", ("brand", None)),
        ],
    )
    def test_operator_tokens(self, key, expected):
        assert parse_filter_key(key) == expected

    def test_operator_text_inside_field_name_is_not_an_operator(self):
        """A field literally named `pricegte` is plain equality."""
        assert parse_filter_key("pricegte") == ("pricegte", None)
        assert parse_filter_key("gte") == ("gte", None)

    def test_unknown_bracket_token_addresses_nested_field(self):
        assert parse_filter_key("reviews[rating]") == ("reviews.rating", None)

    def test_malformed_brackets_are_kept_literally(self):
        assert parse_filter_key("price[gte") == ("price[gte", None)
        assert parse_filter_key("price[gte][x]") == ("price[gte][x]", None)


class TestCoerceScalar:
    """Tests for query-string value coercion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-3", -3),
            ("12.5", 12.5),
            ("Calpol", "Calpol"),
            ("1e5", "1e5"),
            ("0", 0),
            ("0.25", 0.25),
            ("007", "007"),
            ("-0", "-0"),
            ("00.5", "00.5"),
            ("True", "True"),
        ],
    )
    def test_coercion(self, raw, expected):
        result = coerce_scalar(raw)
        assert result == expected
        assert type(result) is type(expected)

    def test_non_string_passes_through(self):
        assert coerce_scalar(7) == 7


class TestTranslateFilters:
    """Tests for translate_filters."""

    def test_empty_params_give_empty_predicate(self):
        predicate = translate_filters({})
        assert len(predicate) == 0

    def test_reserved_params_are_not_filters(self):
        predicate = translate_filters({
            "select": "name,price",
            "sort": "-price",
            "page": "2",
            "limit": "5",
            "q": "paracetamol",
        })
        assert len(predicate) == 0

    def test_plain_equality(self):
        predicate = translate_filters({"brand": "Calpol"})
        assert predicate.conditions == (Condition("brand", Operator.EQ, "Calpol"),)

    def test_comparison_operator_with_numeric_coercion(self):
        predicate = translate_filters({"price[gte]": "100"})
        assert predicate.conditions == (Condition("price", Operator.GTE, 100),)

    def test_range_on_one_field_keeps_both_bounds(self):
        predicate = translate_filters({"price[gte]": "10", "price[lte]": "50"})
        assert predicate.conditions == (
            Condition("price", Operator.GTE, 10),
            Condition("price", Operator.LTE, 50),
        )

    def test_operator_mapping_value(self):
        predicate = translate_filters({"price": {"gt": "10", "lt": "50.5"}})
        assert predicate.conditions == (
            Condition("price", Operator.GT, 10),
            Condition("price", Operator.LT, 50.5),
        )

    def test_mapping_with_unknown_token_addresses_nested_field(self):
        predicate = translate_filters({"reviews": {"rating": "5"}})
        assert predicate.conditions == (Condition("reviews.rating", Operator.EQ, 5),)

    def test_in_with_comma_separated_value(self):
        predicate = translate_filters({"category[in]": "Vitamins, Pain Relief"})
        assert predicate.conditions == (
            Condition("category", Operator.IN, ("Vitamins", "Pain Relief")),
        )

    def test_in_with_repeated_values(self):
        predicate = translate_filters({"stock[in]": ["1", "2,3"]})
        assert predicate.conditions == (Condition("stock", Operator.IN, (1, 2, 3)),)

    def test_repeated_equality_becomes_in(self):
        predicate = translate_filters({"brand": ["Calpol", "Brufen"]})
        assert predicate.conditions == (
            Condition("brand", Operator.IN, ("Calpol", "Brufen")),
        )

    def test_boolean_coercion(self):
        predicate = translate_filters({"is_featured": "true"})
        assert predicate.conditions == (Condition("is_featured", Operator.EQ, True),)

    def test_contains_fields_use_substring_match(self):
        predicate = translate_filters({"category": "pain"}, contains_fields={"category"})
        assert predicate.conditions == (Condition("category", Operator.CONTAINS, "pain"),)

    def test_conditions_follow_input_order(self):
        predicate = translate_filters({"brand": "Calpol", "price[lt]": "30", "stock[gt]": "0"})
        assert [c.field for c in predicate] == ["brand", "price", "stock"]


class TestBuildTextSearch:
    """Tests for the `q` search term."""

    def test_builds_trimmed_text_condition(self):
        condition = build_text_search("  paracetamol tablets ")
        assert condition.operator is Operator.TEXT
        assert condition.value == "paracetamol tablets"

    def test_first_of_repeated_values(self):
        assert build_text_search(["cough", "syrup"]).value == "cough"

    @pytest.mark.parametrize("raw", [None, "", "   ", []])
    def test_missing_or_blank_term_is_rejected(self, raw):
        with pytest.raises(InvalidQueryError) as exc_info:
            build_text_search(raw)

        assert exc_info.value.message == "Please provide a search term"
