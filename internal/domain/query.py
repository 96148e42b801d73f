"""
Query value objects for resource listing.

A listing request is translated once into immutable data (predicate, sort,
projection, page window) and handed to a document collection for execution.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


# Pseudo-field used in sort specs to order by text-search relevance.
RELEVANCE_FIELD = "_relevance"
# Stable secondary key appended to every sort spec.
ID_FIELD = "id"


class Operator(str, Enum):
    """Closed set of predicate operators understood by the storage layer."""

    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    TEXT = "text"
    CONTAINS = "contains"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Condition:
    """
    Single predicate leaf.

    Attributes:
        field: Dotted document field path.
        operator: Comparison operator.
        value: Operand; a tuple for IN, the raw search string for TEXT.
    """
    field: str
    operator: Operator
    value: Any

    @property
    def path(self) -> tuple[str, ...]:
        """Field path split on dots."""
        return tuple(self.field.split("."))


@dataclass(frozen=True)
class Predicate:
    """
    Conjunction of conditions.

    An empty predicate matches every document.
    """
    conditions: tuple[Condition, ...] = ()

    def and_(self, *conditions: Condition) -> "Predicate":
        """Return a new predicate with the given conditions appended."""
        return Predicate(conditions=self.conditions + tuple(conditions))

    def without_fields(self, fields: Iterable[str]) -> "Predicate":
        """Return a new predicate with every condition on `fields` dropped."""
        excluded = set(fields)
        return Predicate(
            conditions=tuple(c for c in self.conditions if c.field not in excluded)
        )

    def renamed(self, aliases: Mapping[str, str]) -> "Predicate":
        """Return a new predicate with aliased fields replaced by their targets."""
        return Predicate(
            conditions=tuple(
                replace(c, field=aliases[c.field]) if c.field in aliases else c
                for c in self.conditions
            )
        )

    @property
    def text_search(self) -> Optional[Condition]:
        """The text-search condition, if any."""
        for condition in self.conditions:
            if condition.operator is Operator.TEXT:
                return condition
        return None

    def __len__(self) -> int:
        return len(self.conditions)

    def __iter__(self):
        return iter(self.conditions)


@dataclass(frozen=True)
class SortField:
    """One ordering key."""
    field: str
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self.field.split("."))


@dataclass(frozen=True)
class SortSpec:
    """Ordered sequence of sort keys."""
    fields: tuple[SortField, ...] = ()

    def with_tie_breaker(self, field_name: str = ID_FIELD) -> "SortSpec":
        """
        Append an ascending key on `field_name` unless already present.

        Guarantees a total order so that offset pagination never skips or
        repeats documents whose primary keys tie.
        """
        if any(f.field == field_name for f in self.fields):
            return self
        return SortSpec(fields=self.fields + (SortField(field_name),))

    def __bool__(self) -> bool:
        return bool(self.fields)

    def __iter__(self):
        return iter(self.fields)


DEFAULT_SORT = SortSpec(fields=(SortField("created_at", SortDirection.DESC),))


@dataclass(frozen=True)
class ProjectionSpec:
    """
    Fields to include in results.

    `fields` of None means all fields. The identifier is always returned.
    """
    fields: Optional[frozenset[str]] = None

    @property
    def is_all(self) -> bool:
        return self.fields is None

    def apply(self, document: dict) -> dict:
        """Project a single document."""
        if self.fields is None:
            return dict(document)
        return {
            key: value
            for key, value in document.items()
            if key in self.fields or key == ID_FIELD
        }


@dataclass(frozen=True)
class PageWindow:
    """
    Bounded offset window.

    Attributes:
        page: 1-based page number.
        limit: Page size.
    """
    page: int = 1
    limit: int = 25

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_dict(self) -> dict:
        return {"page": self.page, "limit": self.limit}


@dataclass(frozen=True)
class ResourceQuery:
    """Fully resolved listing query, built once per request."""
    predicate: Predicate = field(default_factory=Predicate)
    sort: SortSpec = DEFAULT_SORT
    projection: ProjectionSpec = field(default_factory=ProjectionSpec)
    window: PageWindow = field(default_factory=PageWindow)


@dataclass(frozen=True)
class ResultEnvelope:
    """
    One page of results with pagination metadata.

    Attributes:
        items: Matched documents for this page.
        total: Documents matching the predicate, ignoring pagination.
        window: The window that produced `items`.
        next_page: Window of the following page, when one exists.
        prev_page: Window of the preceding page, when one exists.
    """
    items: list[dict]
    total: int
    window: PageWindow
    next_page: Optional[PageWindow] = None
    prev_page: Optional[PageWindow] = None

    @property
    def count(self) -> int:
        return len(self.items)

    def pagination_dict(self) -> dict:
        """Pagination block with absent links omitted."""
        pagination = {}
        if self.next_page is not None:
            pagination["next"] = self.next_page.to_dict()
        if self.prev_page is not None:
            pagination["prev"] = self.prev_page.to_dict()
        return pagination
