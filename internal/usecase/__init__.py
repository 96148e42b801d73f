"""
Use case package for the Catalog Service.

Contains the query engine and catalog/cart business logic.
"""
from .list_resources import (
    ListResourcesUseCase,
    ListSettings,
    ResourcePolicy,
    build_query,
)
from .search_products import SearchProductsUseCase
from .create_product import (
    CreateProductUseCase,
    CreateProductInput,
    CreateProductOutput,
)
from .manage_product import (
    GetProductUseCase,
    UpdateProductUseCase,
    DeleteProductUseCase,
)
from .cart_service import CartService

__all__ = [
    "ListResourcesUseCase",
    "ListSettings",
    "ResourcePolicy",
    "build_query",
    "SearchProductsUseCase",
    "CreateProductUseCase",
    "CreateProductInput",
    "CreateProductOutput",
    "GetProductUseCase",
    "UpdateProductUseCase",
    "DeleteProductUseCase",
    "CartService",
]
