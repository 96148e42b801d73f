"""
Search Products Use Case.

Implements free-text search for products with filtering and pagination.
"""
from internal.domain.errors import InvalidQueryError
from internal.domain.query import ResultEnvelope
from internal.infrastructure.metrics import RESOURCE_QUERIES_TOTAL
from internal.usecase.filter_translator import QueryParams, build_text_search
from internal.usecase.list_resources import ListResourcesUseCase
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class SearchProductsUseCase:
    """
    Use case for full-text search of products.

    The `q` term becomes a text-search condition ranked by the store's
    relevance scoring; every other parameter behaves as in a listing.
    """

    def __init__(self, lister: ListResourcesUseCase):
        """
        Initialize the use case.

        Args:
            lister: Listing use case for the product collection.
        """
        self._lister = lister

    async def execute(self, params: QueryParams) -> ResultEnvelope:
        """
        Execute the search use case.

        Args:
            params: Client query parameters including `q`.

        Returns:
            Search results with pagination.

        Raises:
            InvalidQueryError: If `q` is missing or blank.
        """
        try:
            text_search = build_text_search(params.get("q"))
        except InvalidQueryError:
            RESOURCE_QUERIES_TOTAL.labels(
                resource=self._lister.policy.name, status="invalid"
            ).inc()
            raise

        logger.info("Searching products", query=text_search.value)

        return await self._lister.execute(params, extra=(text_search,))
