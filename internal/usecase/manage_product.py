"""
Product read/update/delete use cases.
"""
from typing import Any, Optional

from internal.domain.errors import DomainValidationError, ProductNotFoundError
from internal.domain.product import Product
from internal.usecase.create_product import CacheService, ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class GetProductUseCase:
    """
    Look a product up by ID, falling back to slug.

    Uses the cache-aside pattern when a cache service is configured.
    """

    def __init__(
        self,
        repository: ProductRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repository = repository
        self._cache = cache

    async def execute(self, id_or_slug: str) -> dict:
        """
        Get a product document.

        Args:
            id_or_slug: Product ID or slug.

        Returns:
            Product document.

        Raises:
            ProductNotFoundError: If neither lookup finds a live product.
        """
        if self._cache:
            cached = await self._cache.get_product(id_or_slug)
            if cached is not None:
                return cached

        product = await self._repository.get_by_id(id_or_slug)
        if product is None:
            product = await self._repository.get_by_slug(id_or_slug)
        if product is None:
            raise ProductNotFoundError(id_or_slug)

        document = product.to_document()
        if self._cache:
            await self._cache.set_product(id_or_slug, document)
        return document


class UpdateProductUseCase:
    """Apply a partial update to a live product."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repository = repository
        self._cache = cache

    async def execute(self, product_id: str, changes: dict[str, Any]) -> Product:
        """
        Update a product.

        Args:
            product_id: Product ID.
            changes: Writable fields to change.

        Returns:
            The updated product.

        Raises:
            ProductNotFoundError: If the product does not exist.
            DomainValidationError: If the result violates an invariant or
                the new slug is taken.
        """
        product = await self._repository.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        old_slug = product.slug
        product.apply_changes(changes)

        if product.slug != old_slug:
            clash = await self._repository.get_by_slug(product.slug)
            if clash is not None and clash.id != product.id:
                raise DomainValidationError(
                    f"Product with slug '{product.slug}' already exists"
                )

        updated = await self._repository.update(product)

        if self._cache:
            await self._cache.invalidate_product(product.id, old_slug)
            if updated.slug != old_slug:
                await self._cache.invalidate_product(product.id, updated.slug)

        logger.info("Product updated", product_id=product.id, fields=sorted(changes))
        return updated


class DeleteProductUseCase:
    """Soft-delete a product."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repository = repository
        self._cache = cache

    async def execute(self, product_id: str) -> None:
        """
        Mark a product deleted.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        product = await self._repository.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        product.soft_delete()
        await self._repository.update(product)

        if self._cache:
            await self._cache.invalidate_product(product.id, product.slug)

        logger.info("Product deleted", product_id=product.id)
