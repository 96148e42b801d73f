"""
Unit tests for CartService.
"""
import pytest
import pytest_asyncio
from decimal import Decimal

from internal.domain.errors import (
    CartNotFoundError,
    InvalidQuantityError,
    LineNotFoundError,
    ProductNotFoundError,
)
from internal.infrastructure.catalog import DocumentProductRepository
from internal.usecase.cart_service import CartService


OWNER = "user-1"


@pytest_asyncio.fixture
async def catalog(product_collection, product_document):
    """Products A (50.00) and B (20.00)."""
    a = product_document(0, name="Product A", price=50)
    b = product_document(1, name="Product B", price=20)
    await product_collection.insert(a)
    await product_collection.insert(b)
    return {"a": a["id"], "b": b["id"]}


@pytest.fixture
def service(product_collection, cart_repository) -> CartService:
    return CartService(
        carts=cart_repository,
        products=DocumentProductRepository(product_collection),
    )


class TestCartService:
    """Tests for CartService."""

    @pytest.mark.asyncio
    async def test_get_cart_creates_empty_cart(self, service, cart_repository):
        view = await service.get_cart(OWNER)

        assert view.lines == []
        assert view.totals.total_items == 0
        assert view.totals.total_price == Decimal("0")
        assert await cart_repository.get(OWNER) is not None

    @pytest.mark.asyncio
    async def test_adding_same_product_twice_merges_line(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)
        view = await service.add_item(OWNER, catalog["a"], 3)

        assert len(view.lines) == 1
        assert view.lines[0].quantity == 5
        assert view.totals.total_items == 5
        assert view.totals.total_price == Decimal("250")

    @pytest.mark.asyncio
    async def test_totals_over_several_lines(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 1)
        view = await service.add_item(OWNER, catalog["b"], "2")

        assert view.totals.total_items == 3
        assert view.totals.total_price == Decimal("90")

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, service, cart_repository):
        with pytest.raises(ProductNotFoundError):
            await service.add_item(OWNER, "missing", 1)

        assert await cart_repository.get(OWNER) is None

    @pytest.mark.asyncio
    async def test_add_invalid_quantity(self, service, catalog):
        with pytest.raises(InvalidQuantityError):
            await service.add_item(OWNER, catalog["a"], 0)

    @pytest.mark.asyncio
    async def test_update_to_zero_is_rejected_and_cart_unchanged(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)

        with pytest.raises(InvalidQuantityError):
            await service.update_item(OWNER, catalog["a"], 0)

        view = await service.get_cart(OWNER)
        assert view.lines[0].quantity == 2

    @pytest.mark.asyncio
    async def test_update_sets_quantity(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)

        view = await service.update_item(OWNER, catalog["a"], 4)

        assert view.lines[0].quantity == 4
        assert view.totals.total_price == Decimal("200")

    @pytest.mark.asyncio
    async def test_update_non_member_line(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 1)

        with pytest.raises(LineNotFoundError):
            await service.update_item(OWNER, catalog["b"], 1)

    @pytest.mark.asyncio
    async def test_update_without_cart(self, service, catalog):
        with pytest.raises(CartNotFoundError) as exc_info:
            await service.update_item(OWNER, catalog["a"], 1)

        assert exc_info.value.message == "Cart not found"

    @pytest.mark.asyncio
    async def test_remove_non_member_is_noop(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)

        view = await service.remove_item(OWNER, catalog["b"])

        assert [(l.product_id, l.quantity) for l in view.lines] == [(catalog["a"], 2)]
        assert view.totals.total_price == Decimal("100")

    @pytest.mark.asyncio
    async def test_remove_line(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)
        await service.add_item(OWNER, catalog["b"], 1)

        view = await service.remove_item(OWNER, catalog["a"])

        assert [l.product_id for l in view.lines] == [catalog["b"]]
        assert view.totals.total_price == Decimal("20")

    @pytest.mark.asyncio
    async def test_clear(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)

        view = await service.clear(OWNER)

        assert view.lines == []
        assert view.totals.total_items == 0
        assert view.totals.total_price == Decimal("0")

    @pytest.mark.asyncio
    async def test_remove_and_clear_without_cart(self, service):
        with pytest.raises(CartNotFoundError):
            await service.remove_item(OWNER, "p1")
        with pytest.raises(CartNotFoundError):
            await service.clear(OWNER)

    @pytest.mark.asyncio
    async def test_price_changes_are_reflected_on_read(self, service, catalog, product_collection):
        await service.add_item(OWNER, catalog["a"], 2)
        document = await product_collection.get(catalog["a"])
        document["price"] = 60.0
        document["mrp"] = 60.0
        await product_collection.replace(document)

        view = await service.get_cart(OWNER)

        assert view.totals.total_price == Decimal("120")

    @pytest.mark.asyncio
    async def test_deleted_product_is_reported_unavailable(
        self, service, catalog, product_collection, cart_repository
    ):
        await service.add_item(OWNER, catalog["a"], 2)
        await service.add_item(OWNER, catalog["b"], 1)
        document = await product_collection.get(catalog["a"])
        document["is_deleted"] = True
        await product_collection.replace(document)

        view = await service.get_cart(OWNER)

        assert [l.product_id for l in view.lines] == [catalog["b"]]
        assert view.unavailable == [catalog["a"]]
        assert view.totals.total_items == 1
        assert view.totals.total_price == Decimal("20")
        # the stored line survives
        stored = await cart_repository.get(OWNER)
        assert catalog["a"] in stored.product_ids

    @pytest.mark.asyncio
    async def test_carts_are_isolated_per_owner(self, service, catalog):
        await service.add_item(OWNER, catalog["a"], 2)

        other = await service.get_cart("user-2")

        assert other.lines == []
