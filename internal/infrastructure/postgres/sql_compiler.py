"""
Predicate to SQL compiler for JSONB document tables.

Field paths and operand values always travel as bind parameters. Only the
text-search fields and configuration, which come from code rather than from
clients, are rendered into the statement, after validation, so that the
expression matches the full-text index.
"""
import re
from typing import Any, Sequence

from internal.domain.query import (
    ID_FIELD,
    RELEVANCE_FIELD,
    Condition,
    Operator,
    Predicate,
    ProjectionSpec,
    SortSpec,
)


_SAFE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_COMPARISON_SQL = {
    Operator.GT: ">",
    Operator.GTE: ">=",
    Operator.LT: "<",
    Operator.LTE: "<=",
}


def _check_name(name: str) -> str:
    if not _SAFE_NAME.match(name):
        raise ValueError(f"Unsafe SQL name: {name!r}")
    return name


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def text_document_expression(text_fields: Sequence[str], config: str) -> str:
    """
    tsvector expression over the text fields.

    Uses `coalesce(...) || ' ' || ...` rather than concat_ws so the
    expression is immutable and can back an index.
    """
    if not text_fields:
        raise ValueError("Text search requires at least one text field")
    parts = " || ' ' || ".join(
        f"coalesce(doc->>'{_check_name(field)}', '')" for field in text_fields
    )
    return f"to_tsvector('{_check_name(config)}', {parts})"


class SqlCompiler:
    """
    Compiles one query's predicate, ordering and projection.

    Parameters are numbered in the order fragments are compiled, so the
    WHERE clause should be compiled first: its parameters then form a prefix
    reusable by a count statement.
    """

    def __init__(self, text_fields: Sequence[str] = (), text_config: str = "simple") -> None:
        self._text_fields = tuple(text_fields)
        self._text_config = text_config
        self.params: list[Any] = []

    def bind(self, value: Any, cast: str = "") -> str:
        """Register a parameter and return its placeholder."""
        self.params.append(value)
        return f"${len(self.params)}{cast}"

    def _path(self, condition_path: Sequence[str]) -> str:
        return f"doc #> {self.bind(list(condition_path), '::text[]')}"

    def _tsquery(self, term: str) -> str:
        return f"plainto_tsquery('{_check_name(self._text_config)}', {self.bind(term, '::text')})"

    def _tsvector(self) -> str:
        return text_document_expression(self._text_fields, self._text_config)

    def condition(self, condition: Condition) -> str:
        """Compile a single condition."""
        op = condition.operator

        if op is Operator.TEXT:
            return f"{self._tsvector()} @@ {self._tsquery(condition.value)}"

        if op is Operator.EQ:
            return f"{self._path(condition.path)} = {self.bind(condition.value, '::jsonb')}"

        if op is Operator.IN:
            members = list(condition.value)
            if not members:
                return "FALSE"
            return (
                f"{self._path(condition.path)} IN "
                f"(SELECT jsonb_array_elements({self.bind(members, '::jsonb')}))"
            )

        if op is Operator.CONTAINS:
            path = self.bind(list(condition.path), "::text[]")
            pattern = self.bind(f"%{escape_like(str(condition.value))}%", "::text")
            return (
                f"(jsonb_typeof(doc #> {path}) = 'string' "
                f"AND doc #>> {path} ILIKE {pattern} ESCAPE '\\')"
            )

        sql_op = _COMPARISON_SQL.get(op)
        if sql_op is None:
            raise ValueError(f"Unsupported operator: {op}")
        value = condition.value
        # only like-typed numbers and strings are ordered against each other
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return "FALSE"
        path = self.bind(list(condition.path), "::text[]")
        operand = self.bind(value, "::jsonb")
        return (
            f"(jsonb_typeof(doc #> {path}) = jsonb_typeof({operand}) "
            f"AND doc #> {path} {sql_op} {operand})"
        )

    def where(self, predicate: Predicate) -> str:
        """Compile a conjunction; an empty predicate is TRUE."""
        clauses = [self.condition(condition) for condition in predicate]
        return " AND ".join(clauses) if clauses else "TRUE"

    def order_by(self, sort: SortSpec, predicate: Predicate) -> str:
        """Compile ORDER BY; missing values sort last in both directions."""
        search = predicate.text_search
        terms = []
        for key in sort:
            direction = "DESC" if key.descending else "ASC"
            if key.field == RELEVANCE_FIELD:
                if search is None:
                    continue
                terms.append(f"ts_rank({self._tsvector()}, {self._tsquery(search.value)}) {direction}")
            elif key.field == ID_FIELD:
                terms.append(f"id {direction}")
            else:
                terms.append(
                    f"NULLIF({self._path(key.path)}, 'null'::jsonb) {direction} NULLS LAST"
                )
        return ", ".join(terms) if terms else "id ASC"

    def projection(self, projection: ProjectionSpec) -> str:
        """Compile the selected document expression."""
        if projection.is_all:
            return "doc"
        keys = sorted(set(projection.fields) | {ID_FIELD})
        return (
            "(SELECT COALESCE(jsonb_object_agg(key, value), '{}'::jsonb) "
            f"FROM jsonb_each(doc) WHERE key = ANY({self.bind(keys, '::text[]')}))"
        )
