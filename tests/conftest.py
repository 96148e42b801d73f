"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from internal.domain.product import Product
from internal.infrastructure.memory import InMemoryCartRepository, InMemoryDocumentCollection
from internal.usecase.catalog_policies import PRODUCT_TEXT_FIELDS


BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_product_document(minutes: int = 0, **overrides) -> dict:
    """
    Build a valid product document.

    Args:
        minutes: Offset of `created_at` from a fixed base time, so tests
            control the default newest-first order.
        **overrides: Product fields.
    """
    fields = {
        "name": "Paracetamol 500mg",
        "price": 25,
        "category": "Pain Relief",
        "brand": "Calpol",
        "stock": 10,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return Product(**fields).to_document()


@pytest.fixture
def product_document():
    """Factory for product documents."""
    return make_product_document


@pytest.fixture
def product_collection() -> InMemoryDocumentCollection:
    """Empty in-memory products collection."""
    return InMemoryDocumentCollection("products", text_fields=PRODUCT_TEXT_FIELDS)


@pytest.fixture
def cart_repository() -> InMemoryCartRepository:
    """Empty in-memory cart repository."""
    return InMemoryCartRepository()


@pytest_asyncio.fixture
async def seeded_collection(product_collection) -> InMemoryDocumentCollection:
    """
    Products collection with a small catalog.

    Contains four public products, one inactive and one deleted product.
    """
    documents = [
        make_product_document(0, name="Paracetamol 500mg", price=25, category="Pain Relief"),
        make_product_document(1, name="Ibuprofen 400mg", price=40, category="Pain Relief", brand="Brufen"),
        make_product_document(2, name="Vitamin C Tablets", price=120, category="Vitamins", is_featured=True),
        make_product_document(3, name="Cough Syrup", price=85, category="Cold and Flu", brand="Benadryl"),
        make_product_document(4, name="Hidden Balm", price=60, category="Pain Relief", is_active=False),
        make_product_document(5, name="Removed Gel", price=70, category="Pain Relief", is_deleted=True),
    ]
    for document in documents:
        await product_collection.insert(document)
    return product_collection
