"""
In-memory document collection.

Process-local implementation of the document store for tests and local
runs. No coroutine awaits between reading and writing the backing dict, so
every operation (including count + fetch) observes one consistent state.
"""
import copy
from typing import Any, Optional, Sequence

from internal.domain.query import (
    DEFAULT_SORT,
    ID_FIELD,
    Predicate,
    ProjectionSpec,
    ResourceQuery,
    SortSpec,
)
from pkg.logger.logger import get_logger

from .matcher import MISSING, matches, relevance, resolve_path, same_value, sort_key


logger = get_logger(__name__)


class InMemoryDocumentCollection:
    """
    Dict-backed document collection.

    Documents are keyed by their `id` field and copied on the way in and
    out so callers never share state with the store.
    """

    def __init__(self, name: str, text_fields: Sequence[str] = ()) -> None:
        """
        Initialize the collection.

        Args:
            name: Collection name (for logs).
            text_fields: Fields covered by text search.
        """
        self._name = name
        self._text_fields = tuple(text_fields)
        self._documents: dict[str, dict] = {}

    @property
    def name(self) -> str:
        return self._name

    def _select(self, predicate: Predicate) -> list[dict]:
        return [
            document
            for document in self._documents.values()
            if matches(document, predicate, self._text_fields)
        ]

    def _ordered(self, documents: list[dict], predicate: Predicate, sort: SortSpec) -> list[dict]:
        search = predicate.text_search
        if search is None:
            key = sort_key(sort)
        else:
            key = sort_key(
                sort,
                score=lambda document: relevance(document, search.value, self._text_fields),
            )
        return sorted(documents, key=key)

    async def insert(self, document: dict) -> dict:
        """Insert a document; `id` must be unique."""
        document_id = str(document[ID_FIELD])
        if document_id in self._documents:
            raise KeyError(f"Duplicate id {document_id} in {self._name}")
        self._documents[document_id] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def get(self, document_id: str) -> Optional[dict]:
        document = self._documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def replace(self, document: dict) -> bool:
        """Replace a stored document by `id`; False when it does not exist."""
        document_id = str(document[ID_FIELD])
        if document_id not in self._documents:
            return False
        self._documents[document_id] = copy.deepcopy(document)
        return True

    async def find_one(self, predicate: Predicate) -> Optional[dict]:
        found = await self.find(predicate, limit=1)
        return found[0] if found else None

    async def find(
        self,
        predicate: Predicate,
        sort: SortSpec = DEFAULT_SORT,
        projection: ProjectionSpec = ProjectionSpec(),
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict]:
        ordered = self._ordered(self._select(predicate), predicate, sort.with_tie_breaker())
        end = None if limit is None else skip + limit
        return [copy.deepcopy(projection.apply(d)) for d in ordered[skip:end]]

    async def count(self, predicate: Predicate) -> int:
        return len(self._select(predicate))

    async def find_page(self, query: ResourceQuery) -> tuple[list[dict], int]:
        """Count and fetch one page from the same state."""
        matched = self._select(query.predicate)
        ordered = self._ordered(matched, query.predicate, query.sort)
        window = query.window
        page = ordered[window.offset: window.offset + window.limit]
        logger.debug(
            "In-memory page fetched",
            collection=self._name,
            total=len(matched),
            returned=len(page),
        )
        return [copy.deepcopy(query.projection.apply(d)) for d in page], len(matched)

    async def distinct(self, field: str, predicate: Predicate) -> list[Any]:
        values: list[Any] = []
        path = field.split(".")
        for document in self._select(predicate):
            value = resolve_path(document, path)
            if value is MISSING:
                continue
            if not any(same_value(value, seen) for seen in values):
                values.append(value)
        return values
