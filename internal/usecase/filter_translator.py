"""
Filter Translator.

Turns flat client query parameters into a structured predicate.

Operator syntax is parsed at the key boundary: `price[gte]=100` becomes
(price, GTE, 100). Only whole bracketed tokens are operators, so a field
literally named `pricegte` stays an equality filter on `pricegte`.
"""
import re
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from internal.domain.errors import InvalidQueryError
from internal.domain.query import Condition, Operator, Predicate
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


ParamValue = Union[str, Sequence[str], Mapping[str, Any]]
QueryParams = Mapping[str, ParamValue]

# Keys that drive selection, ordering, paging and search, never filtering.
RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit", "q"})

COMPARISON_OPERATORS = {
    "gt": Operator.GT,
    "gte": Operator.GTE,
    "lt": Operator.LT,
    "lte": Operator.LTE,
    "in": Operator.IN,
}

_BRACKETED_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<token>[^\[\]]+)\]$")
_INT_LITERAL = re.compile(r"^(0|-?[1-9]\d*)$")
_FLOAT_LITERAL = re.compile(r"^-?(0|[1-9]\d*)\.\d+$")


def parse_filter_key(key: str) -> tuple[str, Optional[Operator]]:
    """
    Split a bracketed key into field and operator.

    A bracketed token that is not an operator addresses a nested field:
    `reviews[rating]` becomes the path `reviews.rating`.

    Args:
        key: Raw parameter name.

    Returns:
        Tuple of (field path, operator or None for plain equality).
    """
    match = _BRACKETED_KEY.match(key)
    if not match:
        return key, None
    field, token = match.group("field"), match.group("token")
    operator = COMPARISON_OPERATORS.get(token)
    if operator is None:
        return f"{field}.{token}", None
    return field, operator


def coerce_scalar(raw: Any) -> Any:
    """
    Coerce a query-string scalar to its natural JSON type.

    `true`/`false` become booleans and numeric literals become numbers;
    anything else is returned unchanged. Zero-padded digits such as
    `007` stay strings, since they would not survive a round trip.
    """
    if not isinstance(raw, str):
        return raw
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_LITERAL.match(raw):
        return int(raw)
    if _FLOAT_LITERAL.match(raw):
        return float(raw)
    return raw


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _split_set(values: Iterable[Any]) -> tuple:
    members = []
    for value in values:
        if isinstance(value, str):
            members.extend(part.strip() for part in value.split(",") if part.strip())
        else:
            members.append(value)
    return tuple(coerce_scalar(member) for member in members)


def _conditions_for(
    field: str,
    operator: Optional[Operator],
    value: Any,
    contains_fields: frozenset[str],
) -> list[Condition]:
    if operator is Operator.IN:
        return [Condition(field, Operator.IN, _split_set(_as_list(value)))]

    if operator is not None:
        return [
            Condition(field, operator, coerce_scalar(item))
            for item in _as_list(value)
        ]

    if field in contains_fields:
        return [
            Condition(field, Operator.CONTAINS, str(item))
            for item in _as_list(value)
        ]

    values = _as_list(value)
    if len(values) > 1:
        return [Condition(field, Operator.IN, tuple(coerce_scalar(v) for v in values))]
    return [Condition(field, Operator.EQ, coerce_scalar(values[0]))]


def translate_filters(
    params: QueryParams,
    contains_fields: Iterable[str] = (),
) -> Predicate:
    """
    Translate query parameters into a predicate.

    Reserved keys are skipped. A mapping value such as
    `{"gte": "10", "lte": "50"}` is read as operator tokens, the same as
    the bracketed keys `price[gte]` and `price[lte]`.

    Args:
        params: Client query parameters.
        contains_fields: Fields matched by case-insensitive substring
            instead of equality.

    Returns:
        Predicate with one condition per filter term, in input order.
    """
    contains = frozenset(contains_fields)
    conditions: list[Condition] = []

    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue

        field, operator = parse_filter_key(key)

        if operator is None and isinstance(value, Mapping):
            for token, operand in value.items():
                nested_operator = COMPARISON_OPERATORS.get(token)
                if nested_operator is None:
                    conditions.extend(
                        _conditions_for(f"{field}.{token}", None, operand, contains)
                    )
                else:
                    conditions.extend(
                        _conditions_for(field, nested_operator, operand, contains)
                    )
            continue

        conditions.extend(_conditions_for(field, operator, value, contains))

    return Predicate(conditions=tuple(conditions))


def build_text_search(raw_query: Optional[ParamValue]) -> Condition:
    """
    Build the free-text search condition for `q`.

    Args:
        raw_query: Raw `q` parameter value.

    Returns:
        TEXT condition carrying the trimmed search string.

    Raises:
        InvalidQueryError: If the search term is missing or blank.
    """
    if isinstance(raw_query, (list, tuple)):
        raw_query = raw_query[0] if raw_query else None
    term = raw_query.strip() if isinstance(raw_query, str) else ""
    if not term:
        logger.info("Rejected empty search term")
        raise InvalidQueryError("Please provide a search term")
    return Condition("$text", Operator.TEXT, term)
