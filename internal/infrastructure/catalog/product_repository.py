"""
Product Repository.

Maps Product entities onto any document collection (PostgreSQL JSONB or
in-memory). Soft-deleted products are invisible to every lookup.
"""
from typing import Optional, Protocol

from internal.domain.product import Product
from internal.domain.query import (
    Condition,
    Operator,
    Predicate,
    ProjectionSpec,
    SortSpec,
)


NOT_DELETED = Condition("is_deleted", Operator.EQ, False)


class ProductCollection(Protocol):
    """Subset of the document collection used by the repository."""

    async def insert(self, document: dict) -> dict:
        ...

    async def replace(self, document: dict) -> bool:
        ...

    async def find_one(self, predicate: Predicate) -> Optional[dict]:
        ...

    async def find(
        self,
        predicate: Predicate,
        sort: SortSpec = ...,
        projection: ProjectionSpec = ...,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict]:
        ...


class DocumentProductRepository:
    """Product repository backed by a document collection."""

    def __init__(self, collection: ProductCollection) -> None:
        """
        Initialize the repository.

        Args:
            collection: The products document collection.
        """
        self._collection = collection

    async def _find_live(self, field: str, value: str) -> Optional[Product]:
        document = await self._collection.find_one(
            Predicate(conditions=(Condition(field, Operator.EQ, value), NOT_DELETED))
        )
        return Product.from_document(document) if document else None

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        """Get a live product by ID."""
        return await self._find_live("id", product_id)

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        """Get a live product by slug."""
        return await self._find_live("slug", slug)

    async def create(self, product: Product) -> Product:
        """Insert a new product document."""
        await self._collection.insert(product.to_document())
        return product

    async def update(self, product: Product) -> Product:
        """Replace the stored product document."""
        await self._collection.replace(product.to_document())
        return product

    async def get_many(self, product_ids: list[str]) -> dict[str, dict]:
        """
        Current documents of live products.

        Args:
            product_ids: IDs to resolve.

        Returns:
            Documents keyed by ID; missing or deleted products are absent.
        """
        if not product_ids:
            return {}
        documents = await self._collection.find(
            Predicate(conditions=(
                Condition("id", Operator.IN, tuple(dict.fromkeys(product_ids))),
                NOT_DELETED,
            ))
        )
        return {document["id"]: document for document in documents}
