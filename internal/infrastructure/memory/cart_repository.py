"""
In-memory cart repository.
"""
from typing import Callable, Optional

from internal.domain.cart import Cart


class InMemoryCartRepository:
    """
    Dict-backed cart storage keyed by owner.

    Each method runs without awaiting between read and write, which makes
    create-if-absent and read-modify-write atomic within the event loop.
    """

    def __init__(self) -> None:
        self._carts: dict[str, dict] = {}

    async def get(self, owner_id: str) -> Optional[Cart]:
        document = self._carts.get(owner_id)
        return Cart.from_document(document) if document is not None else None

    async def get_or_create(self, owner_id: str) -> Cart:
        document = self._carts.get(owner_id)
        if document is None:
            document = Cart(owner_id=owner_id).to_document()
            self._carts[owner_id] = document
        return Cart.from_document(document)

    async def mutate(
        self,
        owner_id: str,
        change: Callable[[Cart], None],
    ) -> Optional[Cart]:
        document = self._carts.get(owner_id)
        if document is None:
            return None
        cart = Cart.from_document(document)
        change(cart)
        self._carts[owner_id] = cart.to_document()
        return cart
