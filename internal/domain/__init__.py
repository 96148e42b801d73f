"""
Domain package for the Catalog Service.

Contains entities, value objects, query value types and domain errors.
"""
from .product import Product, slugify
from .cart import Cart, LineItem, PricedLine, CartTotals, CartView, aggregate, price_cart
from .value_objects import Price, Quantity
from .query import (
    Condition,
    Operator,
    Predicate,
    SortDirection,
    SortField,
    SortSpec,
    ProjectionSpec,
    PageWindow,
    ResourceQuery,
    ResultEnvelope,
)
from .errors import (
    DomainError,
    DomainValidationError,
    InvalidQueryError,
    ProductNotFoundError,
    CartNotFoundError,
    LineNotFoundError,
    InvalidQuantityError,
)

__all__ = [
    "Product",
    "slugify",
    "Cart",
    "LineItem",
    "PricedLine",
    "CartTotals",
    "CartView",
    "aggregate",
    "price_cart",
    "Price",
    "Quantity",
    # Query
    "Condition",
    "Operator",
    "Predicate",
    "SortDirection",
    "SortField",
    "SortSpec",
    "ProjectionSpec",
    "PageWindow",
    "ResourceQuery",
    "ResultEnvelope",
    # Errors
    "DomainError",
    "DomainValidationError",
    "InvalidQueryError",
    "ProductNotFoundError",
    "CartNotFoundError",
    "LineNotFoundError",
    "InvalidQuantityError",
]
