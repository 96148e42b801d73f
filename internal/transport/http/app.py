"""
Application assembly.

Builds the FastAPI application and wires use cases onto the routers for a
given document collection and cart repository.
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config.settings import Settings
from internal.infrastructure.catalog import DocumentProductRepository
from internal.transport.http.errors import register_error_handlers
from internal.transport.http.middleware import MetricsMiddleware, RequestIdMiddleware
from internal.transport.http.v1 import cart, handlers
from internal.usecase.cart_service import CartRepository, CartService
from internal.usecase.catalog_policies import ADMIN_PRODUCTS, PUBLIC_PRODUCTS
from internal.usecase.create_product import CacheService, CreateProductUseCase
from internal.usecase.list_resources import DocumentCollection, ListResourcesUseCase, ListSettings
from internal.usecase.manage_product import (
    DeleteProductUseCase,
    GetProductUseCase,
    UpdateProductUseCase,
)
from internal.usecase.search_products import SearchProductsUseCase


def wire_services(
    products: DocumentCollection,
    carts: CartRepository,
    settings: Settings,
    cache: Optional[CacheService] = None,
) -> None:
    """
    Create use cases and hand them to the routers.

    Args:
        products: Products document collection.
        carts: Cart repository.
        settings: Service settings (page bounds, featured limit).
        cache: Optional product cache.
    """
    list_settings = ListSettings(
        default_limit=settings.DEFAULT_LIMIT,
        max_limit=settings.MAX_LIMIT,
    )
    repository = DocumentProductRepository(products)
    public_lister = ListResourcesUseCase(products, PUBLIC_PRODUCTS, list_settings)

    handlers.set_dependencies(
        products=public_lister,
        admin_products=ListResourcesUseCase(products, ADMIN_PRODUCTS, list_settings),
        search_use_case=SearchProductsUseCase(public_lister),
        get_use_case=GetProductUseCase(repository, cache),
        create_use_case=CreateProductUseCase(repository, cache),
        update_use_case=UpdateProductUseCase(repository, cache),
        delete_use_case=DeleteProductUseCase(repository, cache),
        featured_limit=settings.FEATURED_LIMIT,
    )
    cart.set_cart_service(CartService(carts=carts, products=repository))


def create_app(settings: Settings, lifespan=None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Service settings.
        lifespan: Optional lifespan context manager owning resources.

    Returns:
        Configured application with every router mounted.
    """
    app = FastAPI(
        title="Catalog Service API",
        description="Product catalog listing, search and shopping cart",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    # added last so it runs first and the ID is set for everything downstream
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)

    app.include_router(handlers.router)
    app.include_router(cart.router)

    @app.get("/health", tags=["service"])
    async def health_check() -> dict:
        """Liveness probe."""
        return {"status": "healthy", "service": settings.APP_NAME}

    @app.get("/metrics", tags=["service"])
    async def metrics() -> Response:
        """Prometheus metrics in text format."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
