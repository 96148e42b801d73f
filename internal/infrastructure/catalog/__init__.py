"""
Catalog infrastructure package.
"""
from .product_repository import DocumentProductRepository

__all__ = ["DocumentProductRepository"]
