"""
FastAPI HTTP Handlers for Catalog Service API v1.

Implements REST endpoints for product listing, search and management.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Request, status

from internal.domain.errors import DomainError
from internal.domain.query import Condition, Operator
from internal.transport.http.dto import (
    CategoriesResponse,
    CreateProductRequest,
    ErrorResponse,
    FeaturedResponse,
    ListResponse,
    MessageResponse,
    ProductResponse,
    UpdateProductRequest,
)
from internal.transport.http.errors import to_http_exception
from internal.usecase.create_product import CreateProductInput, CreateProductUseCase
from internal.usecase.list_resources import ListResourcesUseCase, equals
from internal.usecase.manage_product import (
    DeleteProductUseCase,
    GetProductUseCase,
    UpdateProductUseCase,
)
from internal.usecase.search_products import SearchProductsUseCase
from pkg.logger.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["products"])


# Dependency injection container (simplified)
class Dependencies:
    """Container for handler dependencies."""

    products: Optional[ListResourcesUseCase] = None
    admin_products: Optional[ListResourcesUseCase] = None
    search_use_case: Optional[SearchProductsUseCase] = None
    get_use_case: Optional[GetProductUseCase] = None
    create_use_case: Optional[CreateProductUseCase] = None
    update_use_case: Optional[UpdateProductUseCase] = None
    delete_use_case: Optional[DeleteProductUseCase] = None
    featured_limit: int = 10


_deps = Dependencies()


def _require(dependency):
    if dependency is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return dependency


def get_products() -> ListResourcesUseCase:
    return _require(_deps.products)


def get_admin_products() -> ListResourcesUseCase:
    return _require(_deps.admin_products)


def get_search_use_case() -> SearchProductsUseCase:
    return _require(_deps.search_use_case)


def get_get_use_case() -> GetProductUseCase:
    return _require(_deps.get_use_case)


def get_create_use_case() -> CreateProductUseCase:
    return _require(_deps.create_use_case)


def get_update_use_case() -> UpdateProductUseCase:
    return _require(_deps.update_use_case)


def get_delete_use_case() -> DeleteProductUseCase:
    return _require(_deps.delete_use_case)


def set_dependencies(
    products: ListResourcesUseCase,
    admin_products: ListResourcesUseCase,
    search_use_case: SearchProductsUseCase,
    get_use_case: GetProductUseCase,
    create_use_case: CreateProductUseCase,
    update_use_case: UpdateProductUseCase,
    delete_use_case: DeleteProductUseCase,
    featured_limit: int = 10,
) -> None:
    """
    Set handler dependencies.

    Called during application startup.
    """
    _deps.products = products
    _deps.admin_products = admin_products
    _deps.search_use_case = search_use_case
    _deps.get_use_case = get_use_case
    _deps.create_use_case = create_use_case
    _deps.update_use_case = update_use_case
    _deps.delete_use_case = delete_use_case
    _deps.featured_limit = featured_limit


def query_params(request: Request) -> dict[str, Union[str, list[str]]]:
    """
    Collect query parameters, keeping repeated keys as lists.

    `?in_stock=true&brand=a&brand=b` becomes
    `{"in_stock": "true", "brand": ["a", "b"]}`.
    """
    params: dict[str, Union[str, list[str]]] = {}
    for key, value in request.query_params.multi_items():
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    503: {"model": ErrorResponse, "description": "Service unavailable"},
}


# Handlers
@router.get("/products", response_model=ListResponse, responses=_ERROR_RESPONSES)
async def list_products(
    request: Request,
    use_case: ListResourcesUseCase = Depends(get_products),
) -> ListResponse:
    """
    List publicly visible products.

    Any non-reserved parameter filters on the product field of that name;
    `field[gt|gte|lt|lte|in]` selects an operator. `select`, `sort`, `page`
    and `limit` shape the result.
    """
    try:
        envelope = await use_case.execute(query_params(request))
    except DomainError as e:
        raise to_http_exception(e)
    return ListResponse.from_envelope(envelope)


@router.get("/products/search", response_model=ListResponse, responses=_ERROR_RESPONSES)
async def search_products(
    request: Request,
    use_case: SearchProductsUseCase = Depends(get_search_use_case),
) -> ListResponse:
    """
    Full-text search over product name, description, brand and composition.

    Results are ranked by relevance unless `sort` is given.
    """
    try:
        envelope = await use_case.execute(query_params(request))
    except DomainError as e:
        raise to_http_exception(e)
    return ListResponse.from_envelope(envelope)


@router.get("/products/categories", response_model=CategoriesResponse)
async def list_categories(
    use_case: ListResourcesUseCase = Depends(get_products),
) -> CategoriesResponse:
    """Distinct categories among publicly visible products."""
    categories = [str(c) for c in await use_case.distinct("category")]
    return CategoriesResponse(count=len(categories), data=categories)


@router.get(
    "/products/category/{category}",
    response_model=ListResponse,
    responses=_ERROR_RESPONSES,
)
async def list_products_by_category(
    request: Request,
    category: str = Path(..., min_length=1, description="Category name, matched case-insensitively"),
    use_case: ListResourcesUseCase = Depends(get_products),
) -> ListResponse:
    """List visible products whose category contains the given text."""
    try:
        envelope = await use_case.execute(
            query_params(request),
            extra=(Condition("category", Operator.CONTAINS, category),),
        )
    except DomainError as e:
        raise to_http_exception(e)
    return ListResponse.from_envelope(envelope)


@router.get("/products/featured", response_model=FeaturedResponse)
async def list_featured_products(
    use_case: ListResourcesUseCase = Depends(get_products),
) -> FeaturedResponse:
    """Newest featured products."""
    products = await use_case.top(
        extra=(equals("is_featured", True),),
        limit=_deps.featured_limit,
    )
    return FeaturedResponse(count=len(products), data=products)


@router.get(
    "/products/{id_or_slug}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def get_product(
    id_or_slug: str = Path(..., description="Product ID or slug"),
    use_case: GetProductUseCase = Depends(get_get_use_case),
) -> ProductResponse:
    """Get a product by ID, falling back to slug."""
    try:
        document = await use_case.execute(id_or_slug)
    except DomainError as e:
        raise to_http_exception(e)
    return ProductResponse(data=document)


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def create_product(
    body: CreateProductRequest,
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    use_case: CreateProductUseCase = Depends(get_create_use_case),
) -> ProductResponse:
    """Create a product. The slug is derived from the name when omitted."""
    logger.info("Creating product", name=body.name)

    try:
        result = await use_case.execute(
            CreateProductInput(
                fields=body.model_dump(exclude_none=True),
                created_by=x_user_id,
            )
        )
    except DomainError as e:
        raise to_http_exception(e)
    return ProductResponse(data=result.to_dict())


@router.put(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={
        **_ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def update_product(
    body: UpdateProductRequest,
    product_id: str = Path(..., description="Product ID"),
    use_case: UpdateProductUseCase = Depends(get_update_use_case),
) -> ProductResponse:
    """Partially update a product; derived fields are recomputed."""
    try:
        product = await use_case.execute(product_id, body.model_dump(exclude_unset=True))
    except DomainError as e:
        raise to_http_exception(e)
    return ProductResponse(data=product.to_document())


@router.delete(
    "/products/{product_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def delete_product(
    product_id: str = Path(..., description="Product ID"),
    use_case: DeleteProductUseCase = Depends(get_delete_use_case),
) -> MessageResponse:
    """Soft-delete a product."""
    try:
        await use_case.execute(product_id)
    except DomainError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Product deleted")


@router.get(
    "/admin/products",
    response_model=ListResponse,
    responses=_ERROR_RESPONSES,
    tags=["admin"],
)
async def list_admin_products(
    request: Request,
    use_case: ListResourcesUseCase = Depends(get_admin_products),
) -> ListResponse:
    """List every non-deleted product, active or not."""
    try:
        envelope = await use_case.execute(query_params(request))
    except DomainError as e:
        raise to_http_exception(e)
    return ListResponse.from_envelope(envelope)
