"""
Unit tests for the JSONB SQL compiler.
"""
from pathlib import Path

import pytest

from internal.domain.query import (
    RELEVANCE_FIELD,
    Condition,
    Operator,
    Predicate,
    ProjectionSpec,
    SortDirection,
    SortField,
    SortSpec,
)
from internal.infrastructure.postgres.sql_compiler import (
    SqlCompiler,
    escape_like,
    text_document_expression,
)
from internal.usecase.catalog_policies import PRODUCT_TEXT_CONFIG, PRODUCT_TEXT_FIELDS


TEXT_FIELDS = ("name", "description")


@pytest.fixture
def compiler() -> SqlCompiler:
    return SqlCompiler(text_fields=TEXT_FIELDS, text_config="simple")


class TestConditions:
    """Tests for single-condition compilation."""

    def test_equality_binds_path_and_value(self, compiler):
        sql = compiler.condition(Condition("brand", Operator.EQ, "Calpol"))

        assert sql == "doc #> $1::text[] = $2::jsonb"
        assert compiler.params == [["brand"], "Calpol"]

    def test_nested_path(self, compiler):
        compiler.condition(Condition("reviews.rating", Operator.EQ, 5))

        assert compiler.params[0] == ["reviews", "rating"]

    def test_in_set(self, compiler):
        sql = compiler.condition(Condition("category", Operator.IN, ("Vitamins", "Skin")))

        assert "jsonb_array_elements($2::jsonb)" in sql
        assert compiler.params == [["category"], ["Vitamins", "Skin"]]

    def test_empty_in_set_matches_nothing(self, compiler):
        assert compiler.condition(Condition("category", Operator.IN, ())) == "FALSE"
        assert compiler.params == []

    def test_contains_escapes_like_metacharacters(self, compiler):
        sql = compiler.condition(Condition("category", Operator.CONTAINS, "50%_off"))

        assert "ILIKE $2::text" in sql
        assert "jsonb_typeof(doc #> $1::text[]) = 'string'" in sql
        assert compiler.params == [["category"], "%50\\%\\_off%"]

    def test_comparison_guards_json_type(self, compiler):
        sql = compiler.condition(Condition("price", Operator.GTE, 100))

        assert sql == (
            "(jsonb_typeof(doc #> $1::text[]) = jsonb_typeof($2::jsonb) "
            "AND doc #> $1::text[] >= $2::jsonb)"
        )
        assert compiler.params == [["price"], 100]

    @pytest.mark.parametrize("value", [True, None, [1, 2]])
    def test_comparison_with_unorderable_operand_matches_nothing(self, compiler, value):
        assert compiler.condition(Condition("price", Operator.GT, value)) == "FALSE"

    def test_text_search(self, compiler):
        sql = compiler.condition(Condition("$text", Operator.TEXT, "cough syrup"))

        assert sql.startswith("to_tsvector('simple', coalesce(doc->>'name', '')")
        assert sql.endswith("@@ plainto_tsquery('simple', $1::text)")
        assert compiler.params == ["cough syrup"]


class TestStatements:
    """Tests for WHERE, ORDER BY and projection compilation."""

    def test_empty_predicate_is_true(self, compiler):
        assert compiler.where(Predicate()) == "TRUE"

    def test_conjunction(self, compiler):
        sql = compiler.where(Predicate(conditions=(
            Condition("brand", Operator.EQ, "Calpol"),
            Condition("is_deleted", Operator.EQ, False),
        )))

        assert sql == "doc #> $1::text[] = $2::jsonb AND doc #> $3::text[] = $4::jsonb"
        assert compiler.params == [["brand"], "Calpol", ["is_deleted"], False]

    def test_where_params_form_a_prefix(self, compiler):
        predicate = Predicate(conditions=(Condition("brand", Operator.EQ, "Calpol"),))
        compiler.where(predicate)
        where_params = list(compiler.params)

        compiler.order_by(SortSpec((SortField("price"),)), predicate)

        assert compiler.params[: len(where_params)] == where_params
        assert len(compiler.params) == len(where_params) + 1

    def test_order_by_fields_sort_missing_last(self, compiler):
        sort = SortSpec((SortField("price", SortDirection.DESC), SortField("id")))

        sql = compiler.order_by(sort, Predicate())

        assert sql == "NULLIF(doc #> $1::text[], 'null'::jsonb) DESC NULLS LAST, id ASC"

    def test_relevance_without_search_is_skipped(self, compiler):
        sort = SortSpec((SortField(RELEVANCE_FIELD, SortDirection.DESC),))

        assert compiler.order_by(sort, Predicate()) == "id ASC"

    def test_relevance_with_search(self, compiler):
        predicate = Predicate(conditions=(Condition("$text", Operator.TEXT, "syrup"),))
        sort = SortSpec((SortField(RELEVANCE_FIELD, SortDirection.DESC), SortField("id")))

        sql = compiler.order_by(sort, predicate)

        assert sql.startswith("ts_rank(to_tsvector('simple'")
        assert sql.endswith("DESC, id ASC")

    def test_projection_all(self, compiler):
        assert compiler.projection(ProjectionSpec()) == "doc"

    def test_projection_subset_includes_id(self, compiler):
        sql = compiler.projection(ProjectionSpec(frozenset({"name", "price"})))

        assert "jsonb_object_agg(key, value)" in sql
        assert compiler.params == [["id", "name", "price"]]


class TestHelpers:
    """Tests for module helpers."""

    def test_escape_like(self):
        assert escape_like("a\\b%c_d") == "a\\\\b\\%c\\_d"

    def test_text_expression_matches_index_shape(self):
        assert text_document_expression(("name", "brand"), "simple") == (
            "to_tsvector('simple', coalesce(doc->>'name', '') || ' ' || coalesce(doc->>'brand', ''))"
        )

    def test_unsafe_names_are_rejected(self):
        with pytest.raises(ValueError):
            text_document_expression(("name'; DROP TABLE products; --",), "simple")
        with pytest.raises(ValueError):
            SqlCompiler(text_fields=("name",), text_config="bad config").condition(
                Condition("$text", Operator.TEXT, "x")
            )

    def test_migration_indexes_the_product_search_expression(self):
        migration = Path(__file__).resolve().parents[2] / "migrations" / "001_catalog.sql"
        expression = text_document_expression(PRODUCT_TEXT_FIELDS, PRODUCT_TEXT_CONFIG)

        def squash(text):
            return "".join(text.split())

        assert squash(expression) in squash(migration.read_text())
