"""
Sort/Select Resolver.

Turns comma-separated `sort` and `select` parameters into a SortSpec and a
ProjectionSpec. Field names are passed through as given; unknown fields are
the storage layer's concern.
"""
from typing import Any, Optional

from internal.domain.query import (
    DEFAULT_SORT,
    ProjectionSpec,
    SortDirection,
    SortField,
    SortSpec,
)


DESCENDING_MARKER = "-"


def _split_fields(raw: Any) -> list[str]:
    if raw is None:
        return []
    parts = raw if isinstance(raw, (list, tuple)) else [raw]
    names = []
    for part in parts:
        if not isinstance(part, str):
            continue
        for name in part.replace(" ", ",").split(","):
            name = name.strip()
            if name:
                names.append(name)
    return names


def resolve_sort(raw: Any, default: SortSpec = DEFAULT_SORT) -> SortSpec:
    """
    Resolve a sort parameter.

    `sort=-price,name` orders by price descending, then name ascending.
    A missing or empty parameter yields `default`.

    Args:
        raw: Raw `sort` parameter value.
        default: Sort used when nothing usable is given.

    Returns:
        SortSpec.
    """
    fields = []
    seen = set()
    for name in _split_fields(raw):
        direction = SortDirection.ASC
        if name.startswith(DESCENDING_MARKER):
            direction = SortDirection.DESC
            name = name[len(DESCENDING_MARKER):]
        elif name.startswith("+"):
            name = name[1:]
        # a bare "-" or a repeated key carries no ordering information
        if not name or name in seen:
            continue
        seen.add(name)
        fields.append(SortField(name, direction))
    if not fields:
        return default
    return SortSpec(fields=tuple(fields))


def resolve_projection(raw: Any) -> ProjectionSpec:
    """
    Resolve a select parameter.

    Args:
        raw: Raw `select` parameter value, e.g. `name,price`.

    Returns:
        ProjectionSpec; all fields when nothing is selected.
    """
    names = _split_fields(raw)
    if not names:
        return ProjectionSpec()
    return ProjectionSpec(fields=frozenset(names))
