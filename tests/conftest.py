from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.db import Base
from src.db.cards import SqlAlchemyCardStore
from src.srs import InMemoryCardStore


NOW = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory() -> async_sessionmaker:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def memory_store() -> InMemoryCardStore:
    return InMemoryCardStore()


@pytest_asyncio.fixture
async def sql_store(session_factory) -> SqlAlchemyCardStore:
    return SqlAlchemyCardStore(session_factory)
