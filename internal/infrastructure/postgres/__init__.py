"""
PostgreSQL infrastructure package.
"""
from .cart_repository import PostgresCartRepository
from .document_store import PostgresDocumentCollection, create_pool

__all__ = ["PostgresCartRepository", "PostgresDocumentCollection", "create_pool"]
