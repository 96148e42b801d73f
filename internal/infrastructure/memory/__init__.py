"""
In-memory infrastructure package.
"""
from .document_store import InMemoryDocumentCollection
from .cart_repository import InMemoryCartRepository

__all__ = ["InMemoryDocumentCollection", "InMemoryCartRepository"]
