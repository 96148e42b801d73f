"""
Create Product Use Case.

Creates a catalog product with a derived slug and pricing fields.
"""
from typing import Any, Optional, Protocol

from internal.domain.product import WRITABLE_FIELDS, Product
from internal.domain.errors import DomainValidationError
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class ProductRepository(Protocol):
    """Protocol for product repository operations."""

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        """Get a non-deleted product by ID."""
        ...

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        """Get a non-deleted product by slug."""
        ...

    async def create(self, product: Product) -> Product:
        """Persist a new product."""
        ...

    async def update(self, product: Product) -> Product:
        """Persist changes to an existing product."""
        ...

    async def get_many(self, product_ids: list[str]) -> dict[str, dict]:
        """Current documents of non-deleted products, keyed by ID."""
        ...


class CacheService(Protocol):
    """Protocol for cache operations."""

    async def get_product(self, key: str) -> Optional[dict]:
        """Get a cached product document."""
        ...

    async def set_product(self, key: str, product_data: dict) -> bool:
        """Cache a product document."""
        ...

    async def invalidate_product(self, product_id: str, slug: Optional[str] = None) -> int:
        """Invalidate cached entries for a product."""
        ...


class CreateProductInput:
    """Input DTO for creating a product."""

    def __init__(
        self,
        fields: dict[str, Any],
        created_by: Optional[str] = None,
    ) -> None:
        """
        Initialize create product input.

        Args:
            fields: Writable product fields supplied by the client.
            created_by: Identity of the creating user, when known.
        """
        self.fields = fields
        self.created_by = created_by


class CreateProductOutput:
    """Output DTO for created product."""

    def __init__(self, product: Product) -> None:
        """
        Initialize create product output.

        Args:
            product: The created product.
        """
        self.product = product

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return self.product.to_document()


class CreateProductUseCase:
    """
    Use case for creating a new catalog product.

    The slug is derived from the name unless one is supplied and must be
    unique among live products.
    """

    def __init__(
        self,
        repository: ProductRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        """
        Initialize the use case.

        Args:
            repository: Product repository for persistence.
            cache: Optional cache service for invalidation.
        """
        self._repository = repository
        self._cache = cache

    async def execute(self, input_dto: CreateProductInput) -> CreateProductOutput:
        """
        Execute the create product use case.

        Args:
            input_dto: Input data for creating the product.

        Returns:
            CreateProductOutput with the created product.

        Raises:
            DomainValidationError: If validation fails or the slug is taken.
        """
        fields = {k: v for k, v in input_dto.fields.items() if k in WRITABLE_FIELDS}
        product = Product(created_by=input_dto.created_by, **fields)

        existing = await self._repository.get_by_slug(product.slug)
        if existing:
            raise DomainValidationError(
                f"Product with slug '{product.slug}' already exists"
            )

        created = await self._repository.create(product)

        if self._cache:
            await self._cache.invalidate_product(created.id, created.slug)

        logger.info("Product created", product_id=created.id, slug=created.slug)

        return CreateProductOutput(product=created)
