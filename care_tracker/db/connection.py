"""Database connection management and field-equality helpers"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Mapping, Optional, Sequence, Union
import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from care_tracker.config import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE
from care_tracker.exceptions import wrap_external_exception

logger = logging.getLogger(__name__)

Params = Union[Sequence[Any], Mapping[str, Any], None]


def _where_clause(filters: Mapping[str, Any]) -> sql.Composable:
    """Build 'WHERE a = %s AND b = %s' from a filter mapping"""
    if not filters:
        return sql.SQL("")
    conditions = sql.SQL(" AND ").join(
        sql.SQL("{} = %s").format(sql.Identifier(field)) for field in filters
    )
    return sql.SQL(" WHERE ") + conditions


class Database:
    """
    Database connection pool manager.

    Besides raw connections it exposes the small set of storage operations the
    tracking core relies on: fetch/insert/update/delete by field equality and
    arbitrary parameterized queries. Services receive an instance explicitly.
    """

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Initialize connection pool"""
        logger.info("Initializing database connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=DB_POOL_MIN_SIZE,
            max_size=DB_POOL_MAX_SIZE,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Get database connection from pool"""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    # Field-equality operations

    async def fetch_all(self, table: str, filters: Optional[Mapping[str, Any]] = None) -> list[dict]:
        """Fetch every row of table matching all filters"""
        filters = filters or {}
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table)) + _where_clause(filters)
        query += sql.SQL(" ORDER BY id")
        return await self._fetch(query, tuple(filters.values()), operation="fetch_all")

    async def fetch_first(self, table: str, filters: Mapping[str, Any]) -> Optional[dict]:
        """Fetch the first row (lowest id) of table matching all filters"""
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table)) + _where_clause(filters)
        query += sql.SQL(" ORDER BY id LIMIT 1")
        rows = await self._fetch(query, tuple(filters.values()), operation="fetch_first")
        return rows[0] if rows else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert a row and return its generated id"""
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(field) for field in values),
            sql.SQL(", ").join(sql.Placeholder() for _ in values)
        )
        rows = await self._fetch(query, tuple(values.values()), operation="insert", write=True)
        return rows[0]["id"]

    async def update(self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]) -> int:
        """Update rows matching all filters, returning the affected row count"""
        if not filters:
            raise ValueError("update requires at least one filter")
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(field)) for field in values
        )
        query = sql.SQL("UPDATE {} SET ").format(sql.Identifier(table)) + assignments + _where_clause(filters)
        params = tuple(values.values()) + tuple(filters.values())
        return await self.execute(query, params)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete rows matching all filters, returning the affected row count"""
        if not filters:
            raise ValueError("delete requires at least one filter")
        query = sql.SQL("DELETE FROM {}").format(sql.Identifier(table)) + _where_clause(filters)
        return await self.execute(query, tuple(filters.values()))

    # Raw queries

    async def run_query(self, query: Union[str, sql.Composable], params: Params = None) -> list[dict]:
        """Run an arbitrary parameterized read query"""
        return await self._fetch(query, params, operation="run_query")

    async def execute(self, query: Union[str, sql.Composable], params: Params = None) -> int:
        """Run a write statement and commit, returning the affected row count"""
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rowcount = cur.rowcount
                await conn.commit()
            return rowcount
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="execute", context={"query": str(query)})

    async def _fetch(
        self,
        query: Union[str, sql.Composable],
        params: Params,
        operation: str,
        write: bool = False
    ) -> list[dict]:
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
                if write:
                    await conn.commit()
            return rows
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation, context={"query": str(query)})


# Process-level default instance, wired into services by the entry points
db = Database()
