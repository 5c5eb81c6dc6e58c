"""
Persistence gateway over async SQLAlchemy Core.

The caches never build queries themselves; they address tables by name and
pass plain mappings of column values. Every call runs in its own transaction
and is committed before it returns, so a successful return means the write is
durable.
"""
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import MetaData, Table, delete, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from faceunlock.models.base import Base
from faceunlock.services.exceptions import InputValidationError, PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertResult:
    """Result of an insert: the id generated by the database."""

    last_id: int


class PersistenceGateway:
    """Parameterized select/insert/update/delete against the relational store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata: MetaData = Base.metadata,
    ) -> None:
        self._session_factory = session_factory
        self._metadata = metadata

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise InputValidationError(f"Unknown table: {name}")
        return table

    @staticmethod
    def _check_columns(table: Table, columns: Sequence[str] | Mapping[str, Any]) -> None:
        unknown = [c for c in columns if c not in table.c]
        if unknown:
            raise InputValidationError(
                f"Unknown column(s) for table {table.name}: {', '.join(sorted(unknown))}",
            )

    @asynccontextmanager
    async def _transaction(self, operation: str, target: str) -> AsyncGenerator[AsyncSession, None]:
        """Run the body in a committed transaction, mapping driver errors to PersistenceError."""
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.debug("gateway_failed operation=%s target=%s error=%s", operation, target, e)
            raise PersistenceError(f"{operation} on {target} failed: {e}") from e

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Read every row of a table in insertion order.

        Args:
            table: Table name.
            columns: Column names to read; all columns when None or empty.

        Returns:
            One dict per row, keyed by column name.
        """
        tbl = self._table(table)
        if columns:
            self._check_columns(tbl, columns)
            stmt = select(*(tbl.c[c] for c in columns))
        else:
            stmt = select(tbl)
        stmt = stmt.order_by(*tbl.primary_key.columns)

        async with self._transaction("select", table) as session:
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings()]

    async def insert(self, table: str, values: Mapping[str, Any]) -> InsertResult:
        """Insert one row and return the generated primary key."""
        tbl = self._table(table)
        self._check_columns(tbl, values)

        async with self._transaction("insert", table) as session:
            result = await session.execute(insert(tbl).values(**values))
            last_id = result.inserted_primary_key[0]
        logger.debug("gateway_insert table=%s last_id=%s", table, last_id)
        return InsertResult(last_id=last_id)

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        where: Mapping[str, Any],
    ) -> int:
        """
        Update rows matching every ``column == value`` pair in ``where``.

        Returns:
            Number of rows affected.

        Raises:
            InputValidationError: If ``where`` is empty or names unknown columns.
        """
        tbl = self._table(table)
        self._check_columns(tbl, values)
        self._check_columns(tbl, where)
        if not where:
            raise InputValidationError(f"Refusing to update all rows of {table}")

        stmt = (
            update(tbl)
            .where(*(tbl.c[k] == v for k, v in where.items()))
            .values(**values)
        )
        async with self._transaction("update", table) as session:
            result = await session.execute(stmt)
            return result.rowcount

    async def delete_data(self, table: str, where: Mapping[str, Any]) -> int:
        """Delete rows matching every ``column == value`` pair in ``where``."""
        tbl = self._table(table)
        self._check_columns(tbl, where)
        if not where:
            raise InputValidationError(f"Refusing to delete all rows of {table}")

        stmt = delete(tbl).where(*(tbl.c[k] == v for k, v in where.items()))
        async with self._transaction("delete", table) as session:
            result = await session.execute(stmt)
            return result.rowcount

    async def execute(
        self,
        statement: str | Executable,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a raw parameterized query.

        Args:
            statement: SQL text with ``:name`` placeholders, or a SQLAlchemy
                executable (used when column type processing is needed).
            params: Bound parameters.

        Returns:
            Result rows as dicts; empty for statements that return no rows.
        """
        stmt = text(statement) if isinstance(statement, str) else statement
        async with self._transaction("execute", "query") as session:
            # Core execution on the connection always yields a CursorResult
            connection = await session.connection()
            result = await connection.execute(stmt, dict(params or {}))
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings()]
