# tests/conftest.py

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from seawatch.shared.core.config import DatabaseConfig
from seawatch.shared.database.connection import DatabaseConnection
from seawatch.shared.database.repositories import CheckpointRepository, EventLogRepository

from fakes import FakeChainClient


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest_asyncio.fixture
async def db(tmp_path) -> AsyncGenerator[DatabaseConnection, None]:
    """File backed SQLite database with the service tables"""
    config = DatabaseConfig(dialect="sqlite", driver="aiosqlite", database=str(tmp_path / "seawatch.db"))
    connection = DatabaseConnection(config)
    await connection.initialize()
    await connection.create_tables()
    yield connection
    await connection.close()


@pytest.fixture
def checkpoint_repository(db: DatabaseConnection) -> CheckpointRepository:
    return CheckpointRepository(db)


@pytest.fixture
def event_repository(db: DatabaseConnection) -> EventLogRepository:
    return EventLogRepository(db)
