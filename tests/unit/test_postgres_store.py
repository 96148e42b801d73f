"""
Unit tests for the PostgreSQL document collection and cart repository.

asyncpg is replaced by mocks; the tests check which statements run, with
which parameters, and inside which transaction.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from internal.domain.query import (
    Condition,
    Operator,
    PageWindow,
    Predicate,
    ResourceQuery,
    SortField,
    SortSpec,
)
from internal.domain.value_objects import Quantity
from internal.infrastructure.postgres import PostgresCartRepository, PostgresDocumentCollection


class AsyncContext:
    """Async context manager yielding a fixed value."""

    def __init__(self, value=None):
        self.value = value
        self.exited_with = None

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, exc_type, exc, tb):
        self.exited_with = exc_type
        return False


def make_pool(conn):
    pool = MagicMock()
    pool.acquire = MagicMock(return_value=AsyncContext(conn))
    return pool


def make_conn():
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=0)
    conn.execute = AsyncMock(return_value="UPDATE 1")
    conn.transaction = MagicMock(return_value=AsyncContext())
    return conn


class TestPostgresDocumentCollection:
    """Tests for PostgresDocumentCollection."""

    def test_table_name_is_validated(self):
        with pytest.raises(ValueError):
            PostgresDocumentCollection(make_pool(make_conn()), "products; DROP TABLE x")

    @pytest.mark.asyncio
    async def test_find_page_counts_and_fetches_in_one_snapshot(self):
        conn = make_conn()
        conn.fetchval = AsyncMock(return_value=12)
        conn.fetch = AsyncMock(return_value=[{"document": {"id": "p1"}}])
        collection = PostgresDocumentCollection(make_pool(conn), "products", ("name",))
        query = ResourceQuery(
            predicate=Predicate(conditions=(Condition("brand", Operator.EQ, "Calpol"),)),
            sort=SortSpec((SortField("price"), SortField("id"))),
            window=PageWindow(page=3, limit=5),
        )

        items, total = await collection.find_page(query)

        assert items == [{"id": "p1"}]
        assert total == 12
        conn.transaction.assert_called_once_with(isolation="repeatable_read", readonly=True)

        count_sql, *count_params = conn.fetchval.call_args.args
        assert count_sql == "SELECT COUNT(*) FROM products WHERE doc #> $1::text[] = $2::jsonb"
        assert count_params == [["brand"], "Calpol"]

        page_sql, *page_params = conn.fetch.call_args.args
        assert "ORDER BY NULLIF(doc #> $3::text[], 'null'::jsonb) ASC NULLS LAST, id ASC" in page_sql
        assert page_sql.endswith("LIMIT $4 OFFSET $5")
        assert page_params == [["brand"], "Calpol", ["price"], 5, 10]

    @pytest.mark.asyncio
    async def test_replace_reports_missing_rows(self):
        conn = make_conn()
        conn.execute = AsyncMock(return_value="UPDATE 0")
        collection = PostgresDocumentCollection(make_pool(conn), "products")

        assert await collection.replace({"id": "p1", "name": "A"}) is False

    @pytest.mark.asyncio
    async def test_insert_uses_document_id(self):
        conn = make_conn()
        collection = PostgresDocumentCollection(make_pool(conn), "products")
        document = {"id": "p1", "name": "A"}

        await collection.insert(document)

        sql, document_id, payload = conn.execute.call_args.args
        assert sql.startswith("INSERT INTO products (id, doc)")
        assert document_id == "p1"
        assert payload is document

    @pytest.mark.asyncio
    async def test_find_one_limits_to_one_row(self):
        conn = make_conn()
        conn.fetch = AsyncMock(return_value=[{"document": {"id": "p1"}}])
        collection = PostgresDocumentCollection(make_pool(conn), "products")

        found = await collection.find_one(Predicate(conditions=(Condition("slug", Operator.EQ, "a"),)))

        assert found == {"id": "p1"}
        sql, *params = conn.fetch.call_args.args
        assert sql.endswith("LIMIT $4")
        assert params[-1] == 1


def cart_row(items):
    now = datetime(2024, 1, 15, tzinfo=timezone.utc)
    return {"owner_id": "user-1", "items": items, "created_at": now, "updated_at": now}


class TestPostgresCartRepository:
    """Tests for PostgresCartRepository."""

    @pytest.mark.asyncio
    async def test_get_or_create_is_a_single_upsert(self):
        conn = make_conn()
        conn.fetchrow = AsyncMock(return_value=cart_row([]))
        repository = PostgresCartRepository(make_pool(conn))

        cart = await repository.get_or_create("user-1")

        assert cart.owner_id == "user-1"
        assert cart.items == []
        sql = conn.fetchrow.call_args.args[0]
        assert "ON CONFLICT (owner_id) DO UPDATE" in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_mutate_locks_row_and_writes_back(self):
        conn = make_conn()
        conn.fetchrow = AsyncMock(side_effect=[
            cart_row([{"product_id": "p1", "quantity": 2}]),
            cart_row([{"product_id": "p1", "quantity": 5}]),
        ])
        repository = PostgresCartRepository(make_pool(conn))

        cart = await repository.mutate("user-1", lambda c: c.add("p1", Quantity(3)))

        assert cart.items[0].quantity == 5
        select_sql = conn.fetchrow.call_args_list[0].args[0]
        assert "FOR UPDATE" in select_sql
        update_args = conn.fetchrow.call_args_list[1].args
        assert update_args[2] == [{"product_id": "p1", "quantity": 5}]

    @pytest.mark.asyncio
    async def test_mutate_missing_cart(self):
        conn = make_conn()
        repository = PostgresCartRepository(make_pool(conn))

        assert await repository.mutate("user-1", lambda c: c.clear()) is None
        assert conn.fetchrow.call_count == 1

    @pytest.mark.asyncio
    async def test_failed_change_rolls_back(self):
        conn = make_conn()
        transaction = AsyncContext()
        conn.transaction = MagicMock(return_value=transaction)
        conn.fetchrow = AsyncMock(return_value=cart_row([]))
        repository = PostgresCartRepository(make_pool(conn))

        def change(cart):
            raise ValueError("rejected")

        with pytest.raises(ValueError):
            await repository.mutate("user-1", change)

        assert conn.fetchrow.call_count == 1
        assert transaction.exited_with is ValueError
