"""
Predicate evaluation over plain dict documents.

Mirrors the PostgreSQL JSONB semantics of the SQL compiler: comparisons
only match values of the same JSON type, missing fields never match, text
search requires every term as a whole word, and missing sort keys order
last in both directions.
"""
import re
from functools import cmp_to_key
from numbers import Number
from typing import Any, Callable, Sequence

from internal.domain.query import (
    RELEVANCE_FIELD,
    Condition,
    Operator,
    Predicate,
    SortSpec,
)


MISSING = object()

_WORD = re.compile(r"\w+", re.UNICODE)

# JSONB ordering across types: string < number < boolean < array < object
_TYPE_RANK = {"string": 1, "number": 2, "boolean": 3, "array": 4, "object": 5}


def resolve_path(document: dict, path: Sequence[str]) -> Any:
    """Follow a field path into nested dicts; MISSING when absent."""
    current: Any = document
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return MISSING
        current = current[key]
    return current


def json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, Number):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def same_value(left: Any, right: Any) -> bool:
    """Type-aware equality: True never equals 1."""
    if json_type(left) != json_type(right):
        return False
    return left == right


def _comparable(left: Any, right: Any) -> bool:
    return (
        left is not MISSING
        and json_type(left) == json_type(right)
        and json_type(left) in ("number", "string")
    )


def tokenize(text: str) -> list[str]:
    return [word.lower() for word in _WORD.findall(text)]


def document_words(document: dict, text_fields: Sequence[str]) -> list[str]:
    words = []
    for field_name in text_fields:
        value = resolve_path(document, field_name.split("."))
        if isinstance(value, str):
            words.extend(tokenize(value))
    return words


def relevance(document: dict, term: str, text_fields: Sequence[str]) -> float:
    """Occurrences of the search terms in the text fields, normalized by length."""
    words = document_words(document, text_fields)
    if not words:
        return 0.0
    terms = set(tokenize(term))
    hits = sum(1 for word in words if word in terms)
    return hits / len(words)


def matches_condition(
    document: dict,
    condition: Condition,
    text_fields: Sequence[str] = (),
) -> bool:
    op = condition.operator
    expected = condition.value

    if op is Operator.TEXT:
        terms = tokenize(expected)
        if not terms:
            return False
        words = set(document_words(document, text_fields))
        return all(term in words for term in terms)

    actual = resolve_path(document, condition.path)
    if actual is MISSING:
        return False

    if op is Operator.EQ:
        return same_value(actual, expected)
    if op is Operator.IN:
        return any(same_value(actual, member) for member in expected)
    if op is Operator.CONTAINS:
        return isinstance(actual, str) and str(expected).lower() in actual.lower()

    if not _comparable(actual, expected):
        return False
    if op is Operator.GT:
        return actual > expected
    if op is Operator.GTE:
        return actual >= expected
    if op is Operator.LT:
        return actual < expected
    if op is Operator.LTE:
        return actual <= expected
    raise ValueError(f"Unsupported operator: {op}")


def matches(document: dict, predicate: Predicate, text_fields: Sequence[str] = ()) -> bool:
    """True when the document satisfies every condition."""
    return all(matches_condition(document, c, text_fields) for c in predicate)


def _compare_values(left: Any, right: Any) -> int:
    left_rank = _TYPE_RANK.get(json_type(left), 0)
    right_rank = _TYPE_RANK.get(json_type(right), 0)
    if left_rank != right_rank:
        return -1 if left_rank < right_rank else 1
    try:
        if left < right:
            return -1
        if left > right:
            return 1
    except TypeError:
        # arrays/objects of mixed content: fall back to their text form
        left, right = repr(left), repr(right)
        return (left > right) - (left < right)
    return 0


def sort_key(
    sort: SortSpec,
    score: Callable[[dict], float] = lambda document: 0.0,
) -> Callable[[dict], Any]:
    """
    Build a sort key for `sorted` from a sort spec.

    Args:
        sort: Ordering keys.
        score: Relevance function for the relevance pseudo-field.
    """
    def compare(left: dict, right: dict) -> int:
        for key in sort:
            if key.field == RELEVANCE_FIELD:
                a, b = score(left), score(right)
            else:
                a, b = resolve_path(left, key.path), resolve_path(right, key.path)
            a_missing = a is MISSING or a is None
            b_missing = b is MISSING or b is None
            if a_missing or b_missing:
                if a_missing and b_missing:
                    continue
                return 1 if a_missing else -1
            result = _compare_values(a, b)
            if result:
                return -result if key.descending else result
        return 0

    return cmp_to_key(compare)
