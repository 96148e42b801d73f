"""
PostgreSQL Cart Repository.

One row per owner. Lines are stored as a JSONB array of
`{"product_id", "quantity"}` objects; prices are never persisted.
"""

from typing import Callable, Optional

from asyncpg import Pool, Record

from internal.domain.cart import Cart, LineItem
from internal.infrastructure.metrics import DB_QUERY_DURATION


class PostgresCartRepository:
    """
    PostgreSQL implementation of the Cart Repository.

    Creation is a single upsert keyed on `owner_id`, and every mutation is a
    row-locked read-modify-write inside one transaction.
    """

    def __init__(self, pool: Pool) -> None:
        """
        Initialize the repository.

        Args:
            pool: asyncpg connection pool.
        """
        self._pool = pool

    async def get(self, owner_id: str) -> Optional[Cart]:
        """
        Get the cart of an owner.

        Args:
            owner_id: Identity of the cart owner.

        Returns:
            Cart if found, None otherwise.
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT owner_id, items, created_at, updated_at
                FROM carts
                WHERE owner_id = $1
                """,
                owner_id,
            )

        if not row:
            return None
        return self._row_to_entity(row)

    async def get_or_create(self, owner_id: str) -> Cart:
        """
        Get the cart of an owner, creating an empty one when absent.

        Concurrent first calls for the same owner converge on one row.
        """
        with DB_QUERY_DURATION.labels(operation="cart_upsert").time():
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO carts (owner_id, items)
                    VALUES ($1, '[]'::jsonb)
                    ON CONFLICT (owner_id) DO UPDATE
                        SET owner_id = EXCLUDED.owner_id
                    RETURNING owner_id, items, created_at, updated_at
                    """,
                    owner_id,
                )

        return self._row_to_entity(row)

    async def mutate(
        self,
        owner_id: str,
        change: Callable[[Cart], None],
    ) -> Optional[Cart]:
        """
        Apply `change` to the owner's cart atomically.

        The row is locked for the duration of the transaction. If `change`
        raises, the transaction rolls back and the exception propagates.

        Args:
            owner_id: Identity of the cart owner.
            change: Function that mutates the loaded cart in place.

        Returns:
            The updated Cart, or None when the owner has no cart.
        """
        with DB_QUERY_DURATION.labels(operation="cart_mutate").time():
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        """
                        SELECT owner_id, items, created_at, updated_at
                        FROM carts
                        WHERE owner_id = $1
                        FOR UPDATE
                        """,
                        owner_id,
                    )
                    if not row:
                        return None

                    cart = self._row_to_entity(row)
                    change(cart)

                    row = await conn.fetchrow(
                        """
                        UPDATE carts
                        SET items = $2::jsonb, updated_at = $3
                        WHERE owner_id = $1
                        RETURNING owner_id, items, created_at, updated_at
                        """,
                        owner_id,
                        [line.to_dict() for line in cart.items],
                        cart.updated_at,
                    )

        return self._row_to_entity(row)

    def _row_to_entity(self, row: Record) -> Cart:
        """Convert a database row to a Cart."""
        return Cart(
            owner_id=row["owner_id"],
            items=[LineItem.from_dict(item) for item in row["items"] or []],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
