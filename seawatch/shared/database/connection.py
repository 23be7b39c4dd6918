from typing import Optional, AsyncGenerator, Any
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    AsyncEngine,
    async_sessionmaker
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from contextlib import asynccontextmanager

from seawatch.shared.core.config import DatabaseConfig
from seawatch.shared.core.enums import IsolationLevel
from seawatch.shared.database.models.base import Base

class DatabaseConnection:
    """
    Database connection manager.
    Provides schema isolation and transaction management on PostgreSQL,
    and a plain file database on SQLite for local runs and tests.
    """
    def __init__(self, config: DatabaseConfig, schema: Optional[str] = None):
        self.url = config.url
        self.schema = schema or config.schema
        self.dialect = config.dialect
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._engine_options = config.get_engine_options()

    @property
    def is_postgres(self) -> bool:
        return self.dialect == "postgresql"

    async def initialize(self) -> None:
        """Initialize database connection"""
        if self.engine is None:
            self.engine = create_async_engine(self.url, **self._engine_options)

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False
            )

            # Verify connection and schema
            if self.is_postgres:
                async with self.session() as session:
                    await session.execute(text(f"CREATE SCHEMA IF NOT EXISTS {self.schema}"))

    def insert(self, model: Any) -> Any:
        """Dialect specific INSERT supporting ON CONFLICT clauses"""
        if self.is_postgres:
            return pg_insert(model)
        return sqlite_insert(model)

    async def create_tables(self) -> None:
        """Create all tables in the service schema (development and tests)"""
        if not self.engine:
            raise SQLAlchemyError("Database not initialized")

        async with self.engine.begin() as conn:
            if self.is_postgres:
                await conn.execute(text(f"SET search_path TO {self.schema}"))
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connection and cleanup"""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None

    @asynccontextmanager
    async def session(self, isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session with schema and isolation level set.

        Args:
            isolation_level: Optional transaction isolation level (PostgreSQL only)

        Raises:
            SQLAlchemyError: If database is not initialized
        """
        if not self.session_factory:
            raise SQLAlchemyError("Database not initialized")

        session = self.session_factory()
        try:
            if self.is_postgres:
                await session.execute(text(f"SET search_path TO {self.schema}"))
                await session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {isolation_level.value}"))

            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def check_health(self) -> dict[str, Any]:
        """
        Basic connectivity check.

        Returns:
            dict: Health check results including:
                - connection_ok: bool
                - schema: str
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
                return {
                    "connection_ok": True,
                    "dialect": self.dialect,
                    "schema": self.schema
                }
        except Exception as e:
            return {
                "connection_ok": False,
                "error": str(e),
                "schema": self.schema
            }
