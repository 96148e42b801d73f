"""
Cart Use Cases.

Cart reads and mutations. Every operation returns the cart re-priced from
the live catalog; totals are never stored.
"""
from typing import Any, Callable, Optional, Protocol

from internal.domain.cart import Cart, CartView, price_cart
from internal.domain.errors import CartNotFoundError, DomainError, ProductNotFoundError
from internal.domain.value_objects import Quantity
from internal.infrastructure.metrics import CART_MUTATIONS_TOTAL
from internal.usecase.create_product import ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class CartRepository(Protocol):
    """Protocol for cart persistence."""

    async def get(self, owner_id: str) -> Optional[Cart]:
        """Get the owner's cart, if one was ever created."""
        ...

    async def get_or_create(self, owner_id: str) -> Cart:
        """Atomically create an empty cart if absent and return the cart."""
        ...

    async def mutate(
        self,
        owner_id: str,
        change: Callable[[Cart], None],
    ) -> Optional[Cart]:
        """
        Apply `change` to the freshest stored cart and persist it atomically.

        Returns None when the owner has no cart. If `change` raises, nothing
        is persisted and the exception propagates.
        """
        ...


class CartService:
    """
    Line-item aggregator over a per-owner cart.

    States are absent, empty and populated. Reads and adds create the cart
    on first access; update, remove and clear require an existing cart.
    """

    def __init__(
        self,
        carts: CartRepository,
        products: ProductRepository,
    ) -> None:
        """
        Initialize the service.

        Args:
            carts: Cart repository.
            products: Product repository used to resolve live prices.
        """
        self._carts = carts
        self._products = products

    async def _price(self, cart: Cart) -> CartView:
        catalog = await self._products.get_many(cart.product_ids) if cart.items else {}
        view = price_cart(cart, catalog)
        if view.unavailable:
            logger.warning(
                "Cart references unavailable products",
                owner_id=cart.owner_id,
                product_ids=view.unavailable,
            )
        return view

    async def _mutate(
        self,
        operation: str,
        owner_id: str,
        change: Callable[[Cart], None],
    ) -> CartView:
        try:
            cart = await self._carts.mutate(owner_id, change)
            if cart is None:
                raise CartNotFoundError(owner_id)
        except DomainError:
            CART_MUTATIONS_TOTAL.labels(operation=operation, status="rejected").inc()
            raise
        CART_MUTATIONS_TOTAL.labels(operation=operation, status="success").inc()
        return await self._price(cart)

    async def get_cart(self, owner_id: str) -> CartView:
        """
        Read the owner's cart, creating an empty one on first access.

        Args:
            owner_id: Cart owner.

        Returns:
            Priced cart view.
        """
        cart = await self._carts.get_or_create(owner_id)
        return await self._price(cart)

    async def add_item(self, owner_id: str, product_id: str, quantity: Any = 1) -> CartView:
        """
        Add units of a product to the cart.

        Adding a product that is already a line increases that line's
        quantity.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer.
            ProductNotFoundError: If the product does not exist.
        """
        try:
            units = Quantity.parse(quantity)
            if await self._products.get_by_id(product_id) is None:
                raise ProductNotFoundError(product_id)
        except DomainError:
            CART_MUTATIONS_TOTAL.labels(operation="add", status="rejected").inc()
            raise

        await self._carts.get_or_create(owner_id)

        logger.info(
            "Adding item to cart",
            owner_id=owner_id,
            product_id=product_id,
            quantity=units.value,
        )
        return await self._mutate("add", owner_id, lambda cart: cart.add(product_id, units))

    async def update_item(self, owner_id: str, product_id: str, quantity: Any) -> CartView:
        """
        Set the quantity of an existing line.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer; a
                quantity of 0 is not treated as removal.
            CartNotFoundError: If the owner has no cart.
            LineNotFoundError: If the product is not in the cart.
        """
        try:
            units = Quantity.parse(quantity)
        except DomainError:
            CART_MUTATIONS_TOTAL.labels(operation="update", status="rejected").inc()
            raise

        logger.info(
            "Updating cart item",
            owner_id=owner_id,
            product_id=product_id,
            quantity=units.value,
        )
        return await self._mutate(
            "update", owner_id, lambda cart: cart.set_quantity(product_id, units)
        )

    async def remove_item(self, owner_id: str, product_id: str) -> CartView:
        """
        Remove a product's line. Removing a non-member is a no-op.

        Raises:
            CartNotFoundError: If the owner has no cart.
        """
        logger.info("Removing cart item", owner_id=owner_id, product_id=product_id)
        return await self._mutate("remove", owner_id, lambda cart: cart.remove(product_id))

    async def clear(self, owner_id: str) -> CartView:
        """
        Remove every line.

        Raises:
            CartNotFoundError: If the owner has no cart.
        """
        logger.info("Clearing cart", owner_id=owner_id)
        return await self._mutate("clear", owner_id, lambda cart: cart.clear())
