"""
List Resources Use Case.

Generic query executor behind every resource listing: translate filters,
resolve sort/select, bound with a page window, then count and fetch against
a document collection and report pagination metadata.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

from internal.domain.query import (
    DEFAULT_SORT,
    RELEVANCE_FIELD,
    Condition,
    Operator,
    Predicate,
    ProjectionSpec,
    ResourceQuery,
    ResultEnvelope,
    SortDirection,
    SortField,
    SortSpec,
)
from internal.infrastructure.metrics import RESOURCE_MATCHED_TOTAL, RESOURCE_QUERIES_TOTAL
from internal.usecase.filter_translator import QueryParams, translate_filters
from internal.usecase.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    adjacent_pages,
    build_page_window,
)
from internal.usecase.sort_select import resolve_projection, resolve_sort
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


SEARCH_SORT = SortSpec(fields=(
    SortField(RELEVANCE_FIELD, SortDirection.DESC),
    SortField("created_at", SortDirection.DESC),
))


class DocumentCollection(Protocol):
    """Protocol for the document store behind a resource."""

    async def find_page(self, query: ResourceQuery) -> tuple[list[dict], int]:
        """
        Count matches and fetch one bounded, sorted, projected page.

        Both passes must observe the same predicate and snapshot.
        """
        ...

    async def find(
        self,
        predicate: Predicate,
        sort: SortSpec = DEFAULT_SORT,
        projection: ProjectionSpec = ProjectionSpec(),
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Fetch matching documents."""
        ...

    async def distinct(self, field: str, predicate: Predicate) -> list[Any]:
        """Distinct values of `field` among matching documents."""
        ...


@dataclass(frozen=True)
class ResourcePolicy:
    """
    Per-resource query rules.

    Attributes:
        name: Resource name used in logs and metrics.
        baseline: Conditions appended to every query; callers cannot
            override them.
        contains_fields: Fields filtered by case-insensitive substring.
        default_sort: Sort used when the caller gives none.
        search_sort: Sort used for text search when the caller gives none.
        field_aliases: (caller name, document field) pairs, such as
            `("isActive", "is_active")`; filters on an alias apply to the
            document field.
    """
    name: str
    baseline: tuple[Condition, ...] = ()
    contains_fields: frozenset[str] = frozenset()
    default_sort: SortSpec = DEFAULT_SORT
    search_sort: SortSpec = SEARCH_SORT
    field_aliases: tuple[tuple[str, str], ...] = ()

    @property
    def baseline_fields(self) -> frozenset[str]:
        return frozenset(condition.field for condition in self.baseline)

    def scope(self, predicate: Predicate) -> Predicate:
        """
        Apply the baseline to a caller predicate.

        Caller conditions on baseline fields are dropped before the baseline
        is appended, so the baseline always holds exactly.
        """
        overridden = [c for c in predicate if c.field in self.baseline_fields]
        if overridden:
            logger.debug(
                "Discarded filters on baseline fields",
                resource=self.name,
                fields=sorted({c.field for c in overridden}),
            )
        return predicate.without_fields(self.baseline_fields).and_(*self.baseline)


@dataclass(frozen=True)
class ListSettings:
    """Page size bounds."""
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT


def build_query(
    params: QueryParams,
    policy: ResourcePolicy,
    extra: Sequence[Condition] = (),
    settings: ListSettings = ListSettings(),
) -> ResourceQuery:
    """
    Build the immutable query for one request.

    Args:
        params: Client query parameters.
        policy: Resource rules.
        extra: Conditions added by the caller of the use case (text search,
            route-level filters). They are subject to the baseline too.
        settings: Page size bounds.

    Returns:
        ResourceQuery with a deterministic total order.
    """
    predicate = translate_filters(params, policy.contains_fields)
    predicate = predicate.renamed(dict(policy.field_aliases)).and_(*extra)
    predicate = policy.scope(predicate)

    default_sort = policy.default_sort
    if predicate.text_search is not None:
        default_sort = policy.search_sort

    sort = resolve_sort(params.get("sort"), default_sort)
    if predicate.text_search is None:
        # relevance only has meaning under a text search
        sort = SortSpec(fields=tuple(f for f in sort if f.field != RELEVANCE_FIELD)) or default_sort

    return ResourceQuery(
        predicate=predicate,
        sort=sort.with_tie_breaker(),
        projection=resolve_projection(params.get("select")),
        window=build_page_window(
            params.get("page"),
            params.get("limit"),
            default_limit=settings.default_limit,
            max_limit=settings.max_limit,
        ),
    )


class ListResourcesUseCase:
    """
    Use case for listing any resource through the query engine.

    The use case holds no per-request state; each call builds its own
    ResourceQuery.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        policy: ResourcePolicy,
        settings: ListSettings = ListSettings(),
    ) -> None:
        """
        Initialize the use case.

        Args:
            collection: Document collection to query.
            policy: Resource rules (baseline, contains fields, default sort).
            settings: Page size bounds.
        """
        self._collection = collection
        self._policy = policy
        self._settings = settings

    @property
    def policy(self) -> ResourcePolicy:
        return self._policy

    async def execute(
        self,
        params: QueryParams,
        extra: Sequence[Condition] = (),
    ) -> ResultEnvelope:
        """
        Execute a listing.

        Args:
            params: Client query parameters.
            extra: Additional mandatory conditions.

        Returns:
            ResultEnvelope for the requested page.
        """
        query = build_query(params, self._policy, extra, self._settings)

        logger.info(
            "Listing resources",
            resource=self._policy.name,
            conditions=len(query.predicate),
            sort=[f"{'-' if f.descending else ''}{f.field}" for f in query.sort],
            page=query.window.page,
            limit=query.window.limit,
        )

        try:
            items, total = await self._collection.find_page(query)
        except Exception:
            RESOURCE_QUERIES_TOTAL.labels(resource=self._policy.name, status="error").inc()
            raise

        # the store must never return more than one page
        items = items[: query.window.limit]
        next_page, prev_page = adjacent_pages(query.window, total)

        RESOURCE_QUERIES_TOTAL.labels(resource=self._policy.name, status="success").inc()
        RESOURCE_MATCHED_TOTAL.labels(resource=self._policy.name).observe(total)
        logger.info(
            "Listing completed",
            resource=self._policy.name,
            total=total,
            returned=len(items),
        )

        return ResultEnvelope(
            items=items,
            total=total,
            window=query.window,
            next_page=next_page,
            prev_page=prev_page,
        )

    async def distinct(self, field: str) -> list[Any]:
        """
        Distinct values of a field among documents visible under the baseline.

        Args:
            field: Document field.

        Returns:
            Sorted distinct non-null values.
        """
        values = await self._collection.distinct(field, self._policy.scope(Predicate()))
        return sorted((v for v in values if v is not None), key=str)

    async def top(
        self,
        extra: Sequence[Condition],
        limit: int,
        sort: Optional[SortSpec] = None,
    ) -> list[dict]:
        """
        Fetch the first `limit` visible documents matching `extra`.

        Args:
            extra: Conditions to apply under the baseline.
            limit: Maximum number of documents.
            sort: Ordering; the policy default when omitted.

        Returns:
            Matching documents.
        """
        predicate = self._policy.scope(Predicate(conditions=tuple(extra)))
        order = (sort or self._policy.default_sort).with_tie_breaker()
        return await self._collection.find(predicate, sort=order, limit=limit)


def equals(field: str, value: Any) -> Condition:
    """Shorthand for an equality condition."""
    return Condition(field, Operator.EQ, value)
