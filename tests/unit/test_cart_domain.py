"""
Unit tests for the Cart aggregate and pricing.
"""
import pytest
from decimal import Decimal

from internal.domain.cart import Cart, LineItem, aggregate, price_cart
from internal.domain.errors import InvalidQuantityError, LineNotFoundError
from internal.domain.value_objects import Quantity


class TestQuantity:
    """Tests for the Quantity value object."""

    @pytest.mark.parametrize("raw, expected", [(1, 1), ("3", 3), (" 4 ", 4), (2.0, 2)])
    def test_parse_valid(self, raw, expected):
        assert Quantity.parse(raw).value == expected

    @pytest.mark.parametrize("raw", [0, -1, "0", "abc", 1.5, None, True, [], "2.5"])
    def test_parse_invalid(self, raw):
        with pytest.raises(InvalidQuantityError) as exc_info:
            Quantity.parse(raw)

        assert exc_info.value.message == "Quantity must be at least 1"

    def test_addition(self):
        assert (Quantity(2) + Quantity(3)).value == 5


class TestCart:
    """Tests for Cart line operations."""

    def test_add_appends_new_line(self):
        cart = Cart(owner_id="user-1")

        cart.add("p1", Quantity(2))
        cart.add("p2", Quantity(1))

        assert [(l.product_id, l.quantity) for l in cart.items] == [("p1", 2), ("p2", 1)]

    def test_add_existing_product_merges_quantity(self):
        cart = Cart(owner_id="user-1")

        cart.add("p1", Quantity(2))
        cart.add("p1", Quantity(3))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    def test_set_quantity_replaces(self):
        cart = Cart(owner_id="user-1", items=[LineItem("p1", 2)])

        cart.set_quantity("p1", Quantity(7))

        assert cart.items[0].quantity == 7

    def test_set_quantity_for_missing_line(self):
        cart = Cart(owner_id="user-1")

        with pytest.raises(LineNotFoundError) as exc_info:
            cart.set_quantity("p1", Quantity(1))

        assert exc_info.value.message == "Item not found in cart"

    def test_remove_non_member_is_noop(self):
        cart = Cart(owner_id="user-1", items=[LineItem("p1", 2)])

        cart.remove("p9")

        assert [(l.product_id, l.quantity) for l in cart.items] == [("p1", 2)]

    def test_remove_and_clear(self):
        cart = Cart(owner_id="user-1", items=[LineItem("p1", 2), LineItem("p2", 1)])

        cart.remove("p1")
        assert cart.product_ids == ["p2"]

        cart.clear()
        assert cart.items == []

    def test_document_round_trip(self):
        cart = Cart(owner_id="user-1", items=[LineItem("p1", 2)])

        restored = Cart.from_document(cart.to_document())

        assert restored.owner_id == "user-1"
        assert restored.items == [LineItem("p1", 2)]
        assert restored.created_at == cart.created_at


class TestPricing:
    """Tests for price_cart and aggregate."""

    def test_totals_use_current_prices(self):
        cart = Cart(owner_id="user-1", items=[LineItem("a", 5), LineItem("b", 2)])
        catalog = {
            "a": {"id": "a", "name": "A", "price": 50.0},
            "b": {"id": "b", "name": "B", "price": 19.99},
        }

        view = price_cart(cart, catalog)

        assert view.totals.total_items == 7
        assert view.totals.total_price == Decimal("289.98")
        assert [line.unit_price for line in view.lines] == [Decimal("50.0"), Decimal("19.99")]
        assert view.unavailable == []

    def test_missing_products_are_reported_not_priced(self):
        cart = Cart(owner_id="user-1", items=[LineItem("a", 1), LineItem("gone", 3)])
        catalog = {"a": {"id": "a", "price": 10}}

        view = price_cart(cart, catalog)

        assert [line.product_id for line in view.lines] == ["a"]
        assert view.unavailable == ["gone"]
        assert view.totals.total_items == 1
        assert view.totals.total_price == Decimal("10")

    def test_empty_cart_totals(self):
        totals = aggregate([])
        assert totals.total_items == 0
        assert totals.total_price == Decimal("0")
