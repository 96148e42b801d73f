"""
PostgreSQL Document Collection.

Stores documents as JSONB rows `(id, doc, created_at)` and executes
predicate/sort/projection queries compiled by SqlCompiler, using asyncpg.
"""

import json
from typing import Any, Optional, Sequence

import asyncpg
from asyncpg import Pool

from internal.domain.query import (
    DEFAULT_SORT,
    ID_FIELD,
    Predicate,
    ProjectionSpec,
    ResourceQuery,
    SortSpec,
)
from internal.infrastructure.metrics import DB_QUERY_DURATION
from pkg.logger.logger import get_logger

from .sql_compiler import SqlCompiler, _check_name


logger = get_logger(__name__)


class PostgresDocumentCollection:
    """
    JSONB-backed document collection.

    `find_page` runs the count and the bounded fetch inside one
    REPEATABLE READ, READ ONLY transaction on a single connection, so both
    statements see the same snapshot.
    """

    def __init__(
        self,
        pool: Pool,
        table: str,
        text_fields: Sequence[str] = (),
        text_config: str = "simple",
    ) -> None:
        """
        Initialize the collection.

        Args:
            pool: asyncpg connection pool.
            table: Backing table name.
            text_fields: Document fields covered by full-text search.
            text_config: PostgreSQL text search configuration.
        """
        self._pool = pool
        self._table = _check_name(table)
        self._text_fields = tuple(text_fields)
        self._text_config = text_config

    def _compiler(self) -> SqlCompiler:
        return SqlCompiler(text_fields=self._text_fields, text_config=self._text_config)

    def _select_sql(
        self,
        compiler: SqlCompiler,
        predicate: Predicate,
        sort: SortSpec,
        projection: ProjectionSpec,
        skip: int,
        limit: Optional[int],
    ) -> str:
        where = compiler.where(predicate)
        order = compiler.order_by(sort, predicate)
        selected = compiler.projection(projection)
        sql = (
            f"SELECT {selected} AS document FROM {self._table} "
            f"WHERE {where} ORDER BY {order}"
        )
        if limit is not None:
            sql += f" LIMIT {compiler.bind(limit)}"
        if skip:
            sql += f" OFFSET {compiler.bind(skip)}"
        return sql

    async def insert(self, document: dict) -> dict:
        """Insert a document; `id` must be unique."""
        with DB_QUERY_DURATION.labels(operation="insert").time():
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"INSERT INTO {self._table} (id, doc) VALUES ($1, $2::jsonb)",
                    str(document[ID_FIELD]),
                    document,
                )
        return document

    async def get(self, document_id: str) -> Optional[dict]:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                f"SELECT doc FROM {self._table} WHERE id = $1",
                document_id,
            )

    async def replace(self, document: dict) -> bool:
        """Replace a stored document by `id`; False when it does not exist."""
        with DB_QUERY_DURATION.labels(operation="update").time():
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    f"UPDATE {self._table} SET doc = $2::jsonb WHERE id = $1",
                    str(document[ID_FIELD]),
                    document,
                )
        return status.endswith(" 1")

    async def find_one(self, predicate: Predicate) -> Optional[dict]:
        found = await self.find(predicate, limit=1)
        return found[0] if found else None

    async def find(
        self,
        predicate: Predicate,
        sort: SortSpec = DEFAULT_SORT,
        projection: ProjectionSpec = ProjectionSpec(),
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict]:
        compiler = self._compiler()
        sql = self._select_sql(
            compiler, predicate, sort.with_tie_breaker(), projection, skip, limit
        )
        with DB_QUERY_DURATION.labels(operation="find").time():
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(sql, *compiler.params)
        return [row["document"] for row in rows]

    async def count(self, predicate: Predicate) -> int:
        compiler = self._compiler()
        where = compiler.where(predicate)
        with DB_QUERY_DURATION.labels(operation="count").time():
            async with self._pool.acquire() as conn:
                total = await conn.fetchval(
                    f"SELECT COUNT(*) FROM {self._table} WHERE {where}",
                    *compiler.params,
                )
        return total or 0

    async def find_page(self, query: ResourceQuery) -> tuple[list[dict], int]:
        """
        Count matches and fetch one page from a single snapshot.

        Args:
            query: Resolved resource query.

        Returns:
            Tuple of (page documents, total matches).
        """
        compiler = self._compiler()
        where = compiler.where(query.predicate)
        # WHERE parameters come first, so they alone serve the count
        count_params = list(compiler.params)
        count_sql = f"SELECT COUNT(*) FROM {self._table} WHERE {where}"

        order = compiler.order_by(query.sort, query.predicate)
        selected = compiler.projection(query.projection)
        window = query.window
        page_sql = (
            f"SELECT {selected} AS document FROM {self._table} "
            f"WHERE {where} ORDER BY {order} "
            f"LIMIT {compiler.bind(window.limit)} OFFSET {compiler.bind(window.offset)}"
        )

        with DB_QUERY_DURATION.labels(operation="find_page").time():
            async with self._pool.acquire() as conn:
                async with conn.transaction(isolation="repeatable_read", readonly=True):
                    total = await conn.fetchval(count_sql, *count_params)
                    rows = await conn.fetch(page_sql, *compiler.params)

        logger.debug(
            "Page fetched",
            table=self._table,
            total=total,
            returned=len(rows),
        )
        return [row["document"] for row in rows], total or 0

    async def distinct(self, field: str, predicate: Predicate) -> list[Any]:
        compiler = self._compiler()
        where = compiler.where(predicate)
        path = compiler.bind(field.split("."), "::text[]")
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT DISTINCT doc #> {path} AS value FROM {self._table} "
                f"WHERE {where} AND doc #> {path} IS NOT NULL",
                *compiler.params,
            )
        return [row["value"] for row in rows]


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode and encode JSONB as Python objects."""
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


async def create_pool(dsn: str, min_size: int = 10, max_size: int = 50) -> Pool:
    """
    Create an asyncpg connection pool with the JSONB codec installed.

    Args:
        dsn: Database connection string.
        min_size: Minimum pool size.
        max_size: Maximum pool size.

    Returns:
        asyncpg connection pool.
    """
    return await asyncpg.create_pool(
        dsn=dsn,
        min_size=min_size,
        max_size=max_size,
        init=_init_connection,
    )
